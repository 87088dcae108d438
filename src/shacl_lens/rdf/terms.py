"""RDF term model shared by the resolver, the locator and the report projector.

Terms are plain immutable values; they never hold a reference back to the
graph they came from. The dict form follows the RDF/JS field names so that a
rendered report can be handed to a presentation layer unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from rdflib import BNode, Literal, URIRef
from rdflib.graph import DATASET_DEFAULT_GRAPH_ID
from rdflib.namespace import XSD
from rdflib.term import Identifier, Node


class TermKind(str, Enum):
    IRI = "NamedNode"
    BLANK_NODE = "BlankNode"
    LITERAL = "Literal"
    DEFAULT_GRAPH = "DefaultGraph"

    @classmethod
    def parse(cls, value: "str | TermKind") -> "TermKind":
        if isinstance(value, TermKind):
            return value
        normalized = value.strip().lower().replace("_", "").replace("-", "")
        aliases = {
            "namednode": cls.IRI,
            "iri": cls.IRI,
            "uri": cls.IRI,
            "uriref": cls.IRI,
            "blanknode": cls.BLANK_NODE,
            "bnode": cls.BLANK_NODE,
            "literal": cls.LITERAL,
            "defaultgraph": cls.DEFAULT_GRAPH,
        }
        if normalized not in aliases:
            raise ValueError(f"Unknown term kind: {value}")
        return aliases[normalized]


@dataclass(frozen=True)
class Term:
    kind: TermKind
    value: str
    language: str | None = None
    datatype: str | None = None

    @classmethod
    def iri(cls, value: str) -> "Term":
        return cls(TermKind.IRI, value)

    @classmethod
    def blank(cls, label: str) -> "Term":
        return cls(TermKind.BLANK_NODE, label)

    @classmethod
    def literal(
        cls, value: str, language: str | None = None, datatype: str | None = None
    ) -> "Term":
        return cls(TermKind.LITERAL, value, language or None, datatype or None)

    @classmethod
    def from_rdflib(cls, node: object) -> "Term":
        """Convert an rdflib node (or an already converted term) into a Term.

        Anything that is not an IRI, blank node or literal is kept as a
        literal of its string form rather than rejected.
        """
        if isinstance(node, Term):
            return node
        if isinstance(node, URIRef):
            if node == DATASET_DEFAULT_GRAPH_ID:
                return cls(TermKind.DEFAULT_GRAPH, "")
            return cls.iri(str(node))
        if isinstance(node, BNode):
            return cls.blank(str(node))
        if isinstance(node, Literal):
            datatype = str(node.datatype) if node.datatype is not None else None
            return cls.literal(str(node), node.language, datatype)
        return cls.literal(str(node))

    @classmethod
    def parse(cls, text: str, kind: "str | TermKind | None" = None) -> "Term":
        """Build a term from a presentation string plus an optional kind hint."""
        stripped = text.strip()
        resolved = TermKind.parse(kind) if kind is not None else None
        if resolved is None:
            if stripped.startswith("_:"):
                resolved = TermKind.BLANK_NODE
            elif stripped.startswith("<") and stripped.endswith(">"):
                resolved = TermKind.IRI
            elif ":" in stripped and " " not in stripped:
                resolved = TermKind.IRI
            else:
                resolved = TermKind.LITERAL
        if resolved is TermKind.IRI:
            if stripped.startswith("<") and stripped.endswith(">"):
                stripped = stripped[1:-1]
            return cls.iri(stripped)
        if resolved is TermKind.BLANK_NODE:
            return cls.blank(stripped[2:] if stripped.startswith("_:") else stripped)
        if resolved is TermKind.DEFAULT_GRAPH:
            return cls(TermKind.DEFAULT_GRAPH, "")
        return cls.literal(text)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Term":
        datatype = data.get("datatype")
        if isinstance(datatype, Mapping):
            datatype = datatype.get("value")
        return cls(
            kind=TermKind.parse(str(data.get("termType", TermKind.LITERAL.value))),
            value=str(data.get("value", "")),
            language=data.get("language") or None,
            datatype=str(datatype) if datatype else None,
        )

    @property
    def is_node(self) -> bool:
        return self.kind in (TermKind.IRI, TermKind.BLANK_NODE)

    def to_rdflib(self) -> Node:
        if self.kind is TermKind.IRI:
            return URIRef(self.value)
        if self.kind is TermKind.BLANK_NODE:
            return BNode(self.value)
        if self.kind is TermKind.DEFAULT_GRAPH:
            return DATASET_DEFAULT_GRAPH_ID
        datatype = URIRef(self.datatype) if self.datatype and not self.language else None
        return Literal(self.value, lang=self.language, datatype=datatype)

    def render(self) -> str:
        if self.kind is TermKind.IRI:
            return f"<{self.value}>"
        if self.kind is TermKind.BLANK_NODE:
            return f"_:{self.value}"
        if self.kind is TermKind.DEFAULT_GRAPH:
            return "DefaultGraph"
        escaped = self.value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        if self.language:
            return f'"{escaped}"@{self.language}'
        if self.datatype and self.datatype != str(XSD.string):
            return f'"{escaped}"^^<{self.datatype}>'
        return f'"{escaped}"'

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"value": self.value, "termType": self.kind.value}
        if self.kind is TermKind.LITERAL:
            if self.language:
                data["language"] = self.language
            if self.datatype:
                data["datatype"] = {"value": self.datatype, "termType": TermKind.IRI.value}
        return data

    def __str__(self) -> str:
        return self.render()


def term_or_none(node: object) -> Term | None:
    if node is None:
        return None
    return Term.from_rdflib(node)


def as_identifier(node: "Term | Identifier | str") -> Identifier:
    """Accept a term, an rdflib node or an IRI string and return an rdflib node."""
    if isinstance(node, Term):
        return node.to_rdflib()  # type: ignore[return-value]
    if isinstance(node, Identifier):
        return node
    text = str(node)
    if text.startswith("_:"):
        return BNode(text[2:])
    return URIRef(text)


def local_name(iri: str) -> str:
    """Text after the last ``#`` or, failing that, the last ``/``."""
    if "#" in iri:
        return iri[iri.rindex("#") + 1 :]
    if "/" in iri:
        return iri[iri.rindex("/") + 1 :]
    return ""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from rdflib import BNode, Graph, URIRef
from rdflib.namespace import RDF, RDFS, SH
from rdflib.term import Identifier

from shacl_lens.rdf.terms import Term, as_identifier

logger = logging.getLogger("shacl_lens.shacl.targets")


class TargetKind(str, Enum):
    NODE = "sh:targetNode"
    CLASS = "sh:targetClass"
    SUBJECTS_OF = "sh:targetSubjectsOf"
    OBJECTS_OF = "sh:targetObjectsOf"
    IMPLICIT_CLASS = "implicit_class"


# Enumeration order of explicit target predicates; results never interleave kinds.
EXPLICIT_TARGETS: tuple[tuple[TargetKind, URIRef], ...] = (
    (TargetKind.CLASS, SH.targetClass),
    (TargetKind.NODE, SH.targetNode),
    (TargetKind.SUBJECTS_OF, SH.targetSubjectsOf),
    (TargetKind.OBJECTS_OF, SH.targetObjectsOf),
)


@dataclass(frozen=True)
class ShapeTarget:
    kind: TargetKind
    value: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.value}"


def node_shapes(shape_graph: Graph) -> list[Identifier]:
    """Subjects typed ``sh:NodeShape``, first occurrence order, without duplicates."""
    seen: dict[Identifier, None] = {}
    for subject in shape_graph.subjects(RDF.type, SH.NodeShape):
        seen.setdefault(subject, None)
    return list(seen)


def extract_targets(shape_graph: Graph, shape: Term | Identifier | str) -> list[ShapeTarget]:
    """Target declarations of ``shape``, or its implicit class target.

    A shape with neither yields an empty list.
    """
    subject = as_identifier(shape)
    targets: list[ShapeTarget] = []
    for kind, predicate in EXPLICIT_TARGETS:
        for value in shape_graph.objects(subject, predicate):
            targets.append(ShapeTarget(kind, str(value)))
    if not targets and (subject, RDF.type, RDFS.Class) in shape_graph:
        targets.append(ShapeTarget(TargetKind.IMPLICIT_CLASS, str(subject)))
    logger.debug("Shape %s: %s target(s)", subject, len(targets))
    return targets


def _node(value: str) -> Identifier:
    return BNode(value[2:]) if value.startswith("_:") else URIRef(value)


def _instances(data_graph: Graph, class_iri: str) -> Iterable[Identifier]:
    return data_graph.subjects(RDF.type, URIRef(class_iri))


def find_focus_nodes(data_graph: Graph, targets: Iterable[ShapeTarget]) -> set[str]:
    """Focus node identifiers selected by ``targets`` in ``data_graph``.

    Identifiers are the node values (IRI string or blank node label).
    """
    focus_nodes: set[str] = set()
    for target in targets:
        if target.kind is TargetKind.NODE:
            focus_nodes.add(target.value)
        elif target.kind in (TargetKind.CLASS, TargetKind.IMPLICIT_CLASS):
            focus_nodes.update(str(node) for node in _instances(data_graph, target.value))
        elif target.kind is TargetKind.SUBJECTS_OF:
            focus_nodes.update(
                str(node) for node in data_graph.subjects(_node(target.value), None)
            )
        elif target.kind is TargetKind.OBJECTS_OF:
            # literals cannot be focus nodes
            focus_nodes.update(
                str(node)
                for node in data_graph.objects(None, _node(target.value))
                if isinstance(node, (URIRef, BNode))
            )
    logger.debug("Resolved %s focus node(s)", len(focus_nodes))
    return focus_nodes


def has_property_constraints(shape_graph: Graph, shape: Term | Identifier | str) -> bool:
    return (as_identifier(shape), SH.property, None) in shape_graph

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator

from rdflib import Graph

from shacl_lens.locations import DocumentLocation

from .formats import TURTLE_FAMILY, infer_rdf_format
from .store import new_graph

logger = logging.getLogger("shacl_lens.rdf.documents")

PREFIX_DECL_RE = re.compile(
    r"^\s*(?:@prefix\s+([A-Za-z][\w.\-]*)?:\s*<([^>\s]*)>\s*\.|PREFIX\s+([A-Za-z][\w.\-]*)?:\s*<([^>\s]*)>)",
    re.IGNORECASE | re.MULTILINE,
)
LINE_IN_MESSAGE_RE = re.compile(r"\bline (\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class Diagnostic:
    message: str
    line: int | None = None
    is_parser_error: bool = True

    @property
    def severity(self) -> str:
        return "error" if self.is_parser_error else "warning"


def scan_prefix_declarations(text: str) -> dict[str, str]:
    """Collect ``@prefix``/``PREFIX`` declarations lexically, in document order."""
    prefixes: dict[str, str] = {}
    for match in PREFIX_DECL_RE.finditer(text):
        prefix = match.group(1) if match.group(2) is not None else match.group(3)
        namespace = match.group(2) if match.group(2) is not None else match.group(4)
        prefixes[prefix or ""] = namespace
    return prefixes


def _error_line(exc: BaseException) -> int | None:
    lines = getattr(exc, "lines", None)
    if isinstance(lines, int):
        return lines + 1
    get_line = getattr(exc, "getLineNumber", None)
    if callable(get_line):
        try:
            return int(get_line())
        except (TypeError, ValueError):
            return None
    match = LINE_IN_MESSAGE_RE.search(str(exc))
    if match:
        return int(match.group(1))
    return None


class RdfDocument:
    """Parsed view of one source document: graph, prefix map and diagnostics.

    :meth:`update` rebuilds all three from scratch.
    """

    def __init__(
        self,
        location: DocumentLocation,
        text: str,
        rdf_format: str | None = None,
        graph_store: str | None = None,
    ) -> None:
        self.location = location
        self.rdf_format = rdf_format
        self.graph_store = graph_store
        self.text = text
        self.graph: Graph = new_graph(graph_store, bind_namespaces="none")
        self.prefixes: dict[str, str] = {}
        self.diagnostics: list[Diagnostic] = []
        self._parse()

    @property
    def is_valid(self) -> bool:
        return not any(d.is_parser_error for d in self.diagnostics)

    @property
    def parser_errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.is_parser_error]

    def update(self, text: str) -> None:
        self.text = text
        self._parse()

    def _parse(self) -> None:
        graph = new_graph(self.graph_store, bind_namespaces="none")
        diagnostics: list[Diagnostic] = []
        prefixes: dict[str, str] = {}
        try:
            rdf_format = infer_rdf_format(self.location.path, self.rdf_format)
        except ValueError as exc:
            diagnostics.append(Diagnostic(str(exc), None))
            self._replace(graph, prefixes, diagnostics)
            return
        logger.debug("Parsing %s (format=%s)", self.location, rdf_format)
        try:
            graph.parse(data=self.text, format=rdf_format, publicID=self.location.uri)
        except Exception as exc:  # rdflib raises parser-specific types
            line = _error_line(exc)
            logger.debug("Parse failed for %s at line %s: %s", self.location, line, exc)
            diagnostics.append(Diagnostic(str(exc) or type(exc).__name__, line))
            self._replace(new_graph(self.graph_store, bind_namespaces="none"), prefixes, diagnostics)
            return

        prefixes = {prefix: str(namespace) for prefix, namespace in graph.namespaces()}
        if rdf_format in TURTLE_FAMILY:
            for prefix, namespace in scan_prefix_declarations(self.text).items():
                if prefix not in prefixes and ":" in namespace:
                    prefixes[prefix] = namespace
        for prefix, namespace in prefixes.items():
            if not namespace.endswith(("#", "/")):
                diagnostics.append(
                    Diagnostic(
                        f"Prefix '{prefix}:' <{namespace}> does not end with '#' or '/'",
                        None,
                        is_parser_error=False,
                    )
                )
        logger.debug(
            "Parsed %s: %s triple(s), %s prefix(es)", self.location, len(graph), len(prefixes)
        )
        self._replace(graph, prefixes, diagnostics)

    def _replace(
        self, graph: Graph, prefixes: dict[str, str], diagnostics: list[Diagnostic]
    ) -> None:
        self.graph = graph
        self.prefixes = prefixes
        self.diagnostics = diagnostics


class DocumentRegistry:
    """Owned collection of parsed documents keyed by location URI."""

    def __init__(self, graph_store: str | None = None) -> None:
        self.graph_store = graph_store
        self._documents: dict[str, RdfDocument] = {}

    def __contains__(self, location: object) -> bool:
        return isinstance(location, DocumentLocation) and location.uri in self._documents

    def __iter__(self) -> Iterator[RdfDocument]:
        return iter(list(self._documents.values()))

    def __len__(self) -> int:
        return len(self._documents)

    def get(self, location: DocumentLocation) -> RdfDocument | None:
        return self._documents.get(location.uri)

    def open(self, location: DocumentLocation, rdf_format: str | None = None) -> RdfDocument:
        """Read ``location`` from disk, reparsing only when its text changed."""
        text = location.read_text()
        document = self._documents.get(location.uri)
        if document is not None and document.text == text and (
            rdf_format is None or rdf_format == document.rdf_format
        ):
            return document
        return self.change(location, text, rdf_format)

    def change(
        self, location: DocumentLocation, text: str, rdf_format: str | None = None
    ) -> RdfDocument:
        document = self._documents.get(location.uri)
        if document is None or (rdf_format is not None and rdf_format != document.rdf_format):
            document = RdfDocument(location, text, rdf_format, self.graph_store)
            self._documents[location.uri] = document
        else:
            document.update(text)
        return document

    def close(self, location: DocumentLocation) -> bool:
        return self._documents.pop(location.uri, None) is not None

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from rdflib.term import Identifier

from shacl_lens.rdf.documents import RdfDocument
from shacl_lens.rdf.terms import Term

from .locator import TextRange, find_shape_declaration_range
from .targets import (
    ShapeTarget,
    extract_targets,
    find_focus_nodes,
    has_property_constraints,
    node_shapes,
)

logger = logging.getLogger("shacl_lens.shacl.overview")

NO_DATA_TITLE = "select a data graph to show focus nodes"
NO_FOCUS_TITLE = "no focus nodes"


@dataclass(frozen=True)
class ShapeLens:
    shape: Term
    targets: tuple[ShapeTarget, ...]
    focus_nodes: tuple[str, ...] | None
    range: TextRange | None
    has_property_constraints: bool
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "shape": self.shape.to_dict(),
            "targets": [{"kind": t.kind.value, "value": t.value} for t in self.targets],
            "focusNodes": list(self.focus_nodes) if self.focus_nodes is not None else None,
            "range": self.range.to_dict() if self.range is not None else None,
            "hasPropertyConstraints": self.has_property_constraints,
            "title": self.title,
        }


def lens_title(focus_count: int | None, with_properties: bool) -> str:
    if focus_count is None:
        return NO_DATA_TITLE
    if focus_count == 0:
        return NO_FOCUS_TITLE
    if with_properties:
        return f"{focus_count} focus node(s) with property constraints"
    return f"{focus_count} focus node(s)"


def _lens(
    shapes_document: RdfDocument,
    shape: Identifier,
    data_document: RdfDocument | None,
    lookahead_lines: int,
) -> ShapeLens:
    graph = shapes_document.graph
    term = Term.from_rdflib(shape)
    targets = tuple(extract_targets(graph, shape))
    focus_nodes: tuple[str, ...] | None = None
    if data_document is not None:
        focus_nodes = tuple(sorted(find_focus_nodes(data_document.graph, targets)))
    with_properties = has_property_constraints(graph, shape)
    text_range = find_shape_declaration_range(
        shapes_document.text, shapes_document.prefixes, term, lookahead_lines
    )
    if text_range is None:
        logger.debug("No declaration position for shape %s", term)
    return ShapeLens(
        shape=term,
        targets=targets,
        focus_nodes=focus_nodes,
        range=text_range,
        has_property_constraints=with_properties,
        title=lens_title(None if focus_nodes is None else len(focus_nodes), with_properties),
    )


def shape_overview(
    shapes_document: RdfDocument,
    data_document: RdfDocument | None = None,
    lookahead_lines: int = 5,
) -> list[ShapeLens]:
    """Summarize every node shape: targets, focus nodes and declaration range."""
    if not shapes_document.is_valid:
        logger.debug("Skipping overview of invalid shapes document %s", shapes_document.location)
        return []
    if data_document is not None and not data_document.is_valid:
        logger.debug("Data document %s is invalid; overview without focus nodes", data_document.location)
        data_document = None
    return [
        _lens(shapes_document, shape, data_document, lookahead_lines)
        for shape in node_shapes(shapes_document.graph)
    ]

from __future__ import annotations

import logging
import re
from pathlib import Path

from rdflib import Graph

from shacl_lens.locations import DocumentLocation
from shacl_lens.rdf.documents import RdfDocument
from shacl_lens.settings import Settings, ValidationSettings

from .report import (
    RawReport,
    ValidationReport,
    engine_failure_report,
    parse_failure_report,
    project,
    raw_report_from_graph,
)

logger = logging.getLogger("shacl_lens.shacl.validator")

# IRIs in angle brackets are not paths
SHAPES_HINT_RE = re.compile(r"#\s*shapes:\s*([^\s<>\"]+)", re.IGNORECASE)


def validate_graph(
    data_graph: Graph,
    shapes_graph: Graph,
    options: ValidationSettings | None = None,
) -> RawReport:
    from pyshacl import validate

    options = options or ValidationSettings()
    logger.debug(
        "Validating %s data triple(s) against %s shape triple(s) (inference=%s)",
        len(data_graph),
        len(shapes_graph),
        options.inference,
    )
    conforms, report_graph, _ = validate(
        data_graph=data_graph,
        shacl_graph=shapes_graph,
        inference=options.inference,
        abort_on_first=options.abort_on_first,
        allow_warnings=options.allow_warnings,
        meta_shacl=False,
        advanced=options.advanced,
        debug=False,
    )
    logger.debug("SHACL conforms=%s", conforms)
    return raw_report_from_graph(report_graph, bool(conforms))


def run_validation(
    data_document: RdfDocument,
    shapes_document: RdfDocument,
    settings: Settings | None = None,
) -> ValidationReport:
    """Validate two parsed documents; parse and engine failures become reports."""
    data_location = data_document.location
    shapes_location = shapes_document.location
    if not data_document.is_valid:
        logger.debug("Data document %s has parse errors", data_location)
        return parse_failure_report(
            data_document.diagnostics, data_location, shapes_location, "data"
        )
    if not shapes_document.is_valid:
        logger.debug("Shapes document %s has parse errors", shapes_location)
        return parse_failure_report(
            shapes_document.diagnostics, data_location, shapes_location, "shapes"
        )
    options = settings.validation if settings is not None else None
    try:
        raw = validate_graph(data_document.graph, shapes_document.graph, options)
    except Exception as exc:  # engine errors are reported, not raised
        logger.warning("Validation of %s failed: %s", data_location, exc)
        return engine_failure_report(exc, data_location, shapes_location)
    return project(raw, data_location, shapes_location)


def detect_shapes_hint(
    text: str,
    location: DocumentLocation,
    max_lines: int = 10,
) -> DocumentLocation | None:
    """Find a ``# shapes: <path>`` comment in the first ``max_lines`` lines.

    Relative paths resolve against the data file's directory. Only existing
    files are returned.
    """
    head = "\n".join(text.splitlines()[:max_lines])
    match = SHAPES_HINT_RE.search(head)
    if match is None:
        return None
    hint = Path(match.group(1)).expanduser()
    if not hint.is_absolute():
        base = location.path.parent if location.path is not None else Path.cwd()
        hint = base / hint
    hint = hint.resolve()
    if not hint.is_file():
        logger.info("Shapes hint %s in %s does not exist", hint, location)
        return None
    logger.debug("Shapes hint in %s: %s", location, hint)
    return DocumentLocation.from_path(hint)

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from rdflib import Graph
from rdflib.namespace import SH

from shacl_lens.locations import DocumentLocation
from shacl_lens.rdf.documents import Diagnostic
from shacl_lens.rdf.terms import Term

logger = logging.getLogger("shacl_lens.shacl.report")

PARSER_SEVERITY = "Error (Parser)"

# (attribute, dict key, report predicate)
TERM_FIELDS: tuple[tuple[str, str, Any], ...] = (
    ("path", "path", SH.resultPath),
    ("focus_node", "focusNode", SH.focusNode),
    ("severity", "severity", SH.resultSeverity),
    ("source_constraint_component", "sourceConstraintComponent", SH.sourceConstraintComponent),
    ("source_shape", "sourceShape", SH.sourceShape),
    ("value", "value", SH.value),
)


@dataclass
class RawResult:
    """One result record as the engine reports it, before projection."""

    message: Any = None
    path: Any = None
    focus_node: Any = None
    severity: Any = None
    source_constraint_component: Any = None
    source_shape: Any = None
    value: Any = None


@dataclass
class RawReport:
    conforms: bool
    results: list[RawResult | Mapping[str, Any]] = field(default_factory=list)
    serialized: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    message: tuple[str, ...] = ()
    path: Term | None = None
    focus_node: Term | None = None
    severity: Term | None = None
    source_constraint_component: Term | None = None
    source_shape: Term | None = None
    value: Term | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"message": list(self.message)}
        for attribute, key, _ in TERM_FIELDS:
            term = getattr(self, attribute)
            if term is not None:
                data[key] = term.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationResult":
        terms = {
            attribute: Term.from_dict(data[key])
            for attribute, key, _ in TERM_FIELDS
            if isinstance(data.get(key), Mapping)
        }
        return cls(message=tuple(_messages(data.get("message"))), **terms)


@dataclass(frozen=True)
class ValidationReport:
    conforms: bool
    results: tuple[ValidationResult, ...]
    data_document: DocumentLocation
    shapes_document: DocumentLocation
    raw_report: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "conforms": self.conforms,
            "results": [result.to_dict() for result in self.results],
            "dataDocumentUri": self.data_document.uri,
            "shapesDocumentUri": self.shapes_document.uri,
        }
        if self.raw_report is not None:
            data["rawReportTurtle"] = self.raw_report
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationReport":
        return cls(
            conforms=bool(data.get("conforms", False)),
            results=tuple(ValidationResult.from_dict(item) for item in data.get("results", [])),
            data_document=DocumentLocation.parse(str(data["dataDocumentUri"])),
            shapes_document=DocumentLocation.parse(str(data["shapesDocumentUri"])),
            raw_report=data.get("rawReportTurtle"),
        )


def _message_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, Term):
        return value.value
    if isinstance(value, Mapping):
        inner = value.get("value")
        return None if inner is None else str(inner)
    return str(value)


def _messages(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, bytes, Mapping, Term)) or not isinstance(value, Iterable):
        value = [value]
    texts = (_message_text(item) for item in value)
    return [text for text in texts if text is not None]


def _term(value: Any) -> Term | None:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return Term.from_dict(value)
    return Term.from_rdflib(value)


def _field(record: RawResult | Mapping[str, Any], attribute: str, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key, record.get(attribute))
    return getattr(record, attribute, None)


def project_result(record: RawResult | Mapping[str, Any]) -> ValidationResult:
    terms = {
        attribute: _term(_field(record, attribute, key)) for attribute, key, _ in TERM_FIELDS
    }
    return ValidationResult(message=tuple(_messages(_field(record, "message", "message"))), **terms)


def project(
    raw_report: RawReport,
    data_document: DocumentLocation,
    shapes_document: DocumentLocation,
) -> ValidationReport:
    """Reshape an engine report into a serializable report, keeping result order."""
    results = tuple(project_result(record) for record in raw_report.results)
    logger.debug("Projected %s result(s), conforms=%s", len(results), raw_report.conforms)
    return ValidationReport(
        conforms=bool(raw_report.conforms),
        results=results,
        data_document=data_document,
        shapes_document=shapes_document,
        raw_report=raw_report.serialized,
    )


def raw_report_from_graph(report_graph: Graph, conforms: bool) -> RawReport:
    """Read ``sh:result`` nodes from a pySHACL report graph."""
    results: list[RawResult | Mapping[str, Any]] = []
    for result_node in report_graph.objects(None, SH.result):
        messages = list(report_graph.objects(result_node, SH.resultMessage))
        record = RawResult(message=messages[0] if len(messages) == 1 else messages or None)
        for attribute, _, predicate in TERM_FIELDS:
            setattr(record, attribute, report_graph.value(result_node, predicate))
        results.append(record)
    serialized = report_graph.serialize(format="turtle")
    return RawReport(conforms=bool(conforms), results=results, serialized=serialized)


def parse_failure_report(
    diagnostics: Sequence[Diagnostic],
    data_document: DocumentLocation,
    shapes_document: DocumentLocation,
    document_kind: str = "data",
) -> ValidationReport:
    """Degraded report standing in for a document that could not be parsed."""
    results = tuple(
        ValidationResult(
            message=(diagnostic.message,),
            severity=Term.literal(PARSER_SEVERITY),
            focus_node=Term.literal(f"Line {diagnostic.line}") if diagnostic.line else None,
        )
        for diagnostic in diagnostics
        if diagnostic.is_parser_error
    )
    if not results:
        results = (ValidationResult(message=(f"Could not parse {document_kind} document.",)),)
    logger.debug("Parse failure report for %s document: %s result(s)", document_kind, len(results))
    return ValidationReport(False, results, data_document, shapes_document)


def engine_failure_report(
    error: BaseException | str,
    data_document: DocumentLocation,
    shapes_document: DocumentLocation,
) -> ValidationReport:
    message = f"Validation process error: {error}"
    return ValidationReport(
        False, (ValidationResult(message=(message,)),), data_document, shapes_document
    )

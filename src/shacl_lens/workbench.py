"""Typed command dispatch between a presentation layer and the validation core.

Presentation messages are turned into a :class:`Command` (a kind plus a
payload dataclass) and handed to :meth:`Workbench.dispatch`, which always
answers with an :class:`Outcome`. Expected user errors (unknown session,
unreadable file, term not found) come back as ``Outcome(ok=False)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from rdflib import BNode

from shacl_lens.locations import DocumentLocation
from shacl_lens.rdf.documents import Diagnostic, DocumentRegistry, RdfDocument
from shacl_lens.rdf.terms import Term, TermKind
from shacl_lens.sessions import JsonSessionStore, SessionManager, ValidationSession
from shacl_lens.settings import Settings
from shacl_lens.shacl.locator import TextRange, locate_all, search
from shacl_lens.shacl.overview import ShapeLens, shape_overview
from shacl_lens.shacl.report import ValidationReport, parse_failure_report
from shacl_lens.shacl.validator import run_validation

logger = logging.getLogger("shacl_lens.workbench")

READ_ERRORS = (OSError, UnicodeDecodeError)


class CommandKind(str, Enum):
    CREATE_SESSION = "createSession"
    RUN_VALIDATION = "runValidation"
    VIEW_SESSION_REPORT = "viewSessionReport"
    RENAME_SESSION = "renameSession"
    DELETE_SESSION = "deleteSession"
    REPLACE_DATA_GRAPH = "replaceDataGraph"
    REPLACE_SHAPES_GRAPH = "replaceShapesGraph"
    JUMP_TO_LOCATION = "jumpToLocation"
    HIGHLIGHT_FOCUS_NODES = "highlightFocusNodes"
    SHOW_SHAPE_OVERVIEW = "showShapeOverview"
    SHOW_RAW_REPORT = "showRawReport"


@dataclass(frozen=True)
class CreateSession:
    data_graph: DocumentLocation
    shapes_graph: DocumentLocation
    name: str | None = None


@dataclass(frozen=True)
class SessionRef:
    session_id: str


@dataclass(frozen=True)
class RenameSession:
    session_id: str
    name: str


@dataclass(frozen=True)
class ReplaceGraph:
    session_id: str
    location: DocumentLocation


@dataclass(frozen=True)
class JumpToLocation:
    target: DocumentLocation
    term: str
    term_kind: str | None = None


@dataclass(frozen=True)
class HighlightFocusNodes:
    target: DocumentLocation
    focus_nodes: tuple[str, ...]


@dataclass(frozen=True)
class ShowShapeOverview:
    shapes_graph: DocumentLocation
    data_graph: DocumentLocation | None = None


PAYLOAD_TYPES: dict[CommandKind, type] = {
    CommandKind.CREATE_SESSION: CreateSession,
    CommandKind.RUN_VALIDATION: SessionRef,
    CommandKind.VIEW_SESSION_REPORT: SessionRef,
    CommandKind.RENAME_SESSION: RenameSession,
    CommandKind.DELETE_SESSION: SessionRef,
    CommandKind.REPLACE_DATA_GRAPH: ReplaceGraph,
    CommandKind.REPLACE_SHAPES_GRAPH: ReplaceGraph,
    CommandKind.JUMP_TO_LOCATION: JumpToLocation,
    CommandKind.HIGHLIGHT_FOCUS_NODES: HighlightFocusNodes,
    CommandKind.SHOW_SHAPE_OVERVIEW: ShowShapeOverview,
    CommandKind.SHOW_RAW_REPORT: SessionRef,
}


def _required(message: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = message.get(key)
        if value not in (None, ""):
            return value
    raise ValueError(f"Message is missing '{keys[0]}'")


def _location(message: Mapping[str, Any], *keys: str) -> DocumentLocation:
    return DocumentLocation.parse(str(_required(message, *keys)))


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    payload: Any

    def __post_init__(self) -> None:
        expected = PAYLOAD_TYPES[self.kind]
        if not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.kind.value} expects {expected.__name__}, got {type(self.payload).__name__}"
            )

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> "Command":
        """Build a command from a presentation message (``{"command": ..., ...}``)."""
        raw_kind = _required(message, "command", "kind")
        try:
            kind = CommandKind(raw_kind)
        except ValueError as exc:
            raise ValueError(f"Unknown command: {raw_kind}") from exc

        if kind is CommandKind.CREATE_SESSION:
            payload: Any = CreateSession(
                _location(message, "dataGraphUri", "dataGraph"),
                _location(message, "shapesGraphUri", "shapesGraph"),
                message.get("name") or None,
            )
        elif kind is CommandKind.RENAME_SESSION:
            payload = RenameSession(str(_required(message, "sessionId")), str(_required(message, "name")))
        elif kind in (CommandKind.REPLACE_DATA_GRAPH, CommandKind.REPLACE_SHAPES_GRAPH):
            payload = ReplaceGraph(
                str(_required(message, "sessionId")), _location(message, "uri", "targetUri")
            )
        elif kind is CommandKind.JUMP_TO_LOCATION:
            term_type = message.get("termType") or None
            if term_type is not None:
                term_type = TermKind.parse(str(term_type)).value
            payload = JumpToLocation(
                _location(message, "targetUri"),
                str(_required(message, "termString")),
                term_type,
            )
        elif kind is CommandKind.HIGHLIGHT_FOCUS_NODES:
            nodes = message.get("focusNodes") or []
            if isinstance(nodes, str):
                nodes = [nodes]
            payload = HighlightFocusNodes(
                _location(message, "targetUri", "dataGraphUri"),
                tuple(str(node) for node in nodes),
            )
        elif kind is CommandKind.SHOW_SHAPE_OVERVIEW:
            data_uri = message.get("dataGraphUri")
            payload = ShowShapeOverview(
                _location(message, "shapesGraphUri", "targetUri"),
                DocumentLocation.parse(str(data_uri)) if data_uri else None,
            )
        else:
            payload = SessionRef(str(_required(message, "sessionId")))
        return cls(kind, payload)


@dataclass(frozen=True)
class Outcome:
    ok: bool
    message: str
    report: ValidationReport | None = None
    session: ValidationSession | None = None
    location: DocumentLocation | None = None
    ranges: tuple[TextRange, ...] = ()
    candidates: tuple[str, ...] = ()
    lenses: tuple[ShapeLens, ...] = ()
    text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ok": self.ok, "message": self.message}
        if self.report is not None:
            data["report"] = self.report.to_dict()
        if self.session is not None:
            data["session"] = self.session.to_dict()
        if self.location is not None:
            data["location"] = self.location.uri
        if self.ranges:
            data["ranges"] = [text_range.to_dict() for text_range in self.ranges]
        if self.candidates:
            data["candidates"] = list(self.candidates)
        if self.lenses:
            data["lenses"] = [lens.to_dict() for lens in self.lenses]
        if self.text is not None:
            data["text"] = self.text
        return data


def focus_node_term(identifier: str, document: RdfDocument) -> Term:
    """Term for a focus node identifier: a blank node or an IRI, never a literal.

    Blank node identifiers may come without ``_:``; they are recognised by
    occurring as a blank node in the document's graph.
    """
    if identifier.startswith("_:"):
        return Term.blank(identifier[2:])
    node = BNode(identifier)
    if (node, None, None) in document.graph or (None, None, node) in document.graph:
        return Term.blank(identifier)
    return Term.iri(identifier)


def _failure(message: str, **extra: Any) -> Outcome:
    logger.info(message)
    return Outcome(ok=False, message=message, **extra)


@dataclass
class Workbench:
    settings: Settings
    documents: DocumentRegistry
    sessions: SessionManager
    _handlers: dict = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._handlers = {
            CommandKind.CREATE_SESSION: self._create_session,
            CommandKind.RUN_VALIDATION: self._run_validation,
            CommandKind.VIEW_SESSION_REPORT: self._view_session_report,
            CommandKind.RENAME_SESSION: self._rename_session,
            CommandKind.DELETE_SESSION: self._delete_session,
            CommandKind.REPLACE_DATA_GRAPH: self._replace_data_graph,
            CommandKind.REPLACE_SHAPES_GRAPH: self._replace_shapes_graph,
            CommandKind.JUMP_TO_LOCATION: self._jump_to_location,
            CommandKind.HIGHLIGHT_FOCUS_NODES: self._highlight_focus_nodes,
            CommandKind.SHOW_SHAPE_OVERVIEW: self._show_shape_overview,
            CommandKind.SHOW_RAW_REPORT: self._show_raw_report,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "Workbench":
        manager = SessionManager(
            JsonSessionStore(settings.session_store), persist_reports=settings.persist_reports
        )
        return cls(settings, DocumentRegistry(settings.graph_store), manager)

    def dispatch(self, command: Command) -> Outcome:
        logger.debug("Dispatching %s", command.kind.value)
        return self._handlers[command.kind](command.payload)

    def open_document(self, location: DocumentLocation) -> RdfDocument:
        """Open ``location`` through the registry; raises one of ``READ_ERRORS`` when unreadable."""
        return self.documents.open(location)

    def _session(self, session_id: str) -> ValidationSession | None:
        return self.sessions.get(session_id)

    def _create_session(self, payload: CreateSession) -> Outcome:
        session = self.sessions.create(payload.data_graph, payload.shapes_graph, payload.name)
        return Outcome(ok=True, message=f"Created session '{session.name}'", session=session)

    def validate_session(self, session: ValidationSession) -> ValidationReport:
        """Validate a session's graphs and store the report on it, even a failed one."""
        try:
            data_document = self.open_document(session.data_graph)
        except READ_ERRORS as exc:
            report = parse_failure_report(
                [Diagnostic(f"Could not read data graph: {exc}")],
                session.data_graph,
                session.shapes_graph,
                "data",
            )
        else:
            try:
                shapes_document = self.open_document(session.shapes_graph)
            except READ_ERRORS as exc:
                report = parse_failure_report(
                    [Diagnostic(f"Could not read shapes graph: {exc}")],
                    session.data_graph,
                    session.shapes_graph,
                    "shapes",
                )
            else:
                report = run_validation(data_document, shapes_document, self.settings)
        self.sessions.update_report(session.id, report)
        return report

    def _run_validation(self, payload: SessionRef) -> Outcome:
        session = self._session(payload.session_id)
        if session is None:
            return _failure(f"Session not found: {payload.session_id}")
        report = self.validate_session(session)
        verdict = "conforms" if report.conforms else f"{len(report.results)} result(s)"
        return Outcome(
            ok=True, message=f"Validated '{session.name}': {verdict}", report=report, session=session
        )

    def _view_session_report(self, payload: SessionRef) -> Outcome:
        session = self._session(payload.session_id)
        if session is None:
            return _failure(f"Session not found: {payload.session_id}")
        if session.last_report is None:
            return _failure(f"No validation report for session '{session.name}' yet", session=session)
        return Outcome(ok=True, message=session.name, report=session.last_report, session=session)

    def _rename_session(self, payload: RenameSession) -> Outcome:
        if payload.session_id not in self.sessions:
            return _failure(f"Session not found: {payload.session_id}")
        try:
            session = self.sessions.rename(payload.session_id, payload.name)
        except ValueError as exc:
            return _failure(str(exc))
        return Outcome(ok=True, message=f"Renamed session to '{session.name}'", session=session)

    def _delete_session(self, payload: SessionRef) -> Outcome:
        if not self.sessions.delete(payload.session_id):
            return _failure(f"Session not found: {payload.session_id}")
        return Outcome(ok=True, message=f"Deleted session {payload.session_id}")

    def _replace_data_graph(self, payload: ReplaceGraph) -> Outcome:
        if payload.session_id not in self.sessions:
            return _failure(f"Session not found: {payload.session_id}")
        session = self.sessions.replace_data_graph(payload.session_id, payload.location)
        return Outcome(
            ok=True, message=f"Data graph set to {session.data_graph_file_name}", session=session
        )

    def _replace_shapes_graph(self, payload: ReplaceGraph) -> Outcome:
        if payload.session_id not in self.sessions:
            return _failure(f"Session not found: {payload.session_id}")
        session = self.sessions.replace_shapes_graph(payload.session_id, payload.location)
        return Outcome(
            ok=True, message=f"Shapes graph set to {session.shapes_graph_file_name}", session=session
        )

    def _jump_to_location(self, payload: JumpToLocation) -> Outcome:
        if not payload.term.strip():
            return _failure("No term provided to jump to.")
        try:
            document = self.open_document(payload.target)
        except READ_ERRORS as exc:
            return _failure(f"Could not open {payload.target}: {exc}", location=payload.target)
        try:
            term = Term.parse(payload.term, payload.term_kind)
        except ValueError as exc:
            return _failure(str(exc), location=payload.target)
        result = search(document.text, document.prefixes, term)
        if result.range is None:
            display = document.location.path or document.location
            return _failure(
                f"Could not find '{payload.term}' in {display}. "
                f"Tried patterns: {', '.join(result.candidates)}",
                location=payload.target,
                candidates=result.candidates,
            )
        return Outcome(
            ok=True,
            message=f"Found '{payload.term}' as {result.matched}",
            location=payload.target,
            ranges=(result.range,),
            candidates=result.candidates,
        )

    def _highlight_focus_nodes(self, payload: HighlightFocusNodes) -> Outcome:
        try:
            document = self.open_document(payload.target)
        except READ_ERRORS as exc:
            return _failure(f"Could not open {payload.target}: {exc}", location=payload.target)
        ranges: list[TextRange] = []
        missing: list[str] = []
        for node in payload.focus_nodes:
            found = locate_all(document.text, document.prefixes, focus_node_term(node, document))
            if found:
                ranges.extend(found)
            else:
                missing.append(node)
        ranges.sort(key=lambda text_range: text_range.start_offset)
        message = f"Highlighted {len(ranges)} occurrence(s) of {len(payload.focus_nodes)} focus node(s)"
        if missing:
            message += f"; not found: {', '.join(missing)}"
        return Outcome(ok=True, message=message, location=payload.target, ranges=tuple(ranges))

    def _show_shape_overview(self, payload: ShowShapeOverview) -> Outcome:
        try:
            shapes_document = self.open_document(payload.shapes_graph)
            data_document = (
                self.open_document(payload.data_graph) if payload.data_graph is not None else None
            )
        except READ_ERRORS as exc:
            return _failure(f"Could not open document: {exc}")
        if not shapes_document.is_valid:
            return _failure(
                f"Shapes document {payload.shapes_graph} has parse errors",
                location=payload.shapes_graph,
            )
        lenses = shape_overview(shapes_document, data_document, self.settings.lookahead_lines)
        return Outcome(
            ok=True,
            message=f"{len(lenses)} node shape(s)",
            location=payload.shapes_graph,
            lenses=tuple(lenses),
        )

    def _show_raw_report(self, payload: SessionRef) -> Outcome:
        session = self._session(payload.session_id)
        if session is None:
            return _failure(f"Session not found: {payload.session_id}")
        report = session.last_report
        if report is None or report.raw_report is None:
            return _failure("No raw report available to show.", session=session)
        return Outcome(ok=True, message=session.name, session=session, text=report.raw_report)

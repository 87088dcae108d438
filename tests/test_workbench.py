from __future__ import annotations

from pathlib import Path

import pytest
from rdflib import URIRef

from shacl_lens.locations import DocumentLocation
from shacl_lens.rdf.documents import DocumentRegistry
from shacl_lens.rdf.terms import Term, TermKind
from shacl_lens.sessions import MemorySessionStore, SessionManager
from shacl_lens.settings import Settings
from shacl_lens.workbench import (
    Command,
    CommandKind,
    HighlightFocusNodes,
    JumpToLocation,
    SessionRef,
    Workbench,
    focus_node_term,
)

RESOURCES = Path(__file__).parent / "resources"
EX = "http://example.org/"
PEOPLE = DocumentLocation.from_path(RESOURCES / "people.ttl")
SHAPES = DocumentLocation.from_path(RESOURCES / "people-shapes.ttl")


@pytest.fixture()
def workbench() -> Workbench:
    return Workbench(Settings(), DocumentRegistry(), SessionManager(MemorySessionStore()))


def _create(workbench: Workbench, data: DocumentLocation = PEOPLE) -> str:
    outcome = workbench.dispatch(
        Command.from_message(
            {"command": "createSession", "dataGraphUri": data.uri, "shapesGraphUri": SHAPES.uri}
        )
    )
    assert outcome.ok
    assert outcome.session is not None
    return outcome.session.id


def test_run_validation_stores_report_on_session(workbench: Workbench) -> None:
    session_id = _create(workbench)
    outcome = workbench.dispatch(Command(CommandKind.RUN_VALIDATION, SessionRef(session_id)))
    assert outcome.ok
    assert outcome.report is not None and not outcome.report.conforms
    assert workbench.sessions.require(session_id).last_report is outcome.report

    viewed = workbench.dispatch(Command.from_message({"command": "viewSessionReport", "sessionId": session_id}))
    assert viewed.report is outcome.report

    raw = workbench.dispatch(Command.from_message({"command": "showRawReport", "sessionId": session_id}))
    assert raw.ok and raw.text


def test_failed_run_still_replaces_last_report(workbench: Workbench, tmp_path: Path) -> None:
    missing = DocumentLocation.from_path(tmp_path / "gone.ttl")
    session_id = _create(workbench, missing)
    outcome = workbench.dispatch(Command(CommandKind.RUN_VALIDATION, SessionRef(session_id)))
    assert outcome.report is not None
    assert not outcome.report.conforms
    assert outcome.report.results[0].message[0].startswith("Could not read data graph")
    assert workbench.sessions.require(session_id).last_report is outcome.report


def test_unknown_session_is_an_outcome_not_an_exception(workbench: Workbench) -> None:
    for kind in (CommandKind.RUN_VALIDATION, CommandKind.DELETE_SESSION, CommandKind.SHOW_RAW_REPORT):
        outcome = workbench.dispatch(Command(kind, SessionRef("nope")))
        assert not outcome.ok
        assert "nope" in outcome.message


def test_rename_replace_and_delete(workbench: Workbench) -> None:
    session_id = _create(workbench)
    renamed = workbench.dispatch(
        Command.from_message({"command": "renameSession", "sessionId": session_id, "name": "People"})
    )
    assert renamed.ok and renamed.session.name == "People"

    blank = workbench.dispatch(
        Command.from_message({"command": "renameSession", "sessionId": session_id, "name": " "})
    )
    assert not blank.ok

    replaced = workbench.dispatch(
        Command.from_message(
            {"command": "replaceShapesGraph", "sessionId": session_id, "uri": PEOPLE.uri}
        )
    )
    assert replaced.session.shapes_graph == PEOPLE

    assert workbench.dispatch(Command(CommandKind.DELETE_SESSION, SessionRef(session_id))).ok
    assert workbench.sessions.get(session_id) is None


def test_jump_to_location(workbench: Workbench) -> None:
    outcome = workbench.dispatch(
        Command.from_message(
            {
                "command": "jumpToLocation",
                "targetUri": PEOPLE.uri,
                "termString": EX + "Bob",
                "termType": "NamedNode",
            }
        )
    )
    assert outcome.ok
    assert outcome.ranges[0].start.line == 8
    assert "ex:Bob" in outcome.message


def test_jump_miss_lists_candidates(workbench: Workbench) -> None:
    outcome = workbench.dispatch(
        Command(CommandKind.JUMP_TO_LOCATION, JumpToLocation(PEOPLE, EX + "Nobody"))
    )
    assert not outcome.ok
    assert outcome.message.startswith("Could not find")
    assert "Tried patterns: <http://example.org/Nobody>" in outcome.message
    assert "ex:Nobody" in outcome.candidates


def test_highlight_focus_nodes(workbench: Workbench) -> None:
    outcome = workbench.dispatch(
        Command(
            CommandKind.HIGHLIGHT_FOCUS_NODES,
            HighlightFocusNodes(PEOPLE, (EX + "Bob", EX + "Ghost")),
        )
    )
    assert outcome.ok
    assert [r.start.line for r in outcome.ranges] == [8, 10]
    assert "not found" in outcome.message


def test_shape_overview_command(workbench: Workbench) -> None:
    outcome = workbench.dispatch(
        Command.from_message(
            {"command": "showShapeOverview", "shapesGraphUri": SHAPES.uri, "dataGraphUri": PEOPLE.uri}
        )
    )
    assert outcome.ok
    assert len(outcome.lenses) == 3
    assert outcome.to_dict()["lenses"][0]["title"]


def test_message_validation() -> None:
    with pytest.raises(ValueError):
        Command.from_message({"command": "formatDisk"})
    with pytest.raises(ValueError):
        Command.from_message({"command": "jumpToLocation", "targetUri": PEOPLE.uri})
    with pytest.raises(TypeError):
        Command(CommandKind.RUN_VALIDATION, JumpToLocation(PEOPLE, "x"))


def test_unknown_term_kind_is_rejected(workbench: Workbench) -> None:
    with pytest.raises(ValueError):
        Command.from_message(
            {"command": "jumpToLocation", "targetUri": PEOPLE.uri, "termString": "x", "termType": "Quad"}
        )
    outcome = workbench.dispatch(
        Command(CommandKind.JUMP_TO_LOCATION, JumpToLocation(PEOPLE, EX + "Bob", "Quad"))
    )
    assert not outcome.ok
    assert "Quad" in outcome.message


def test_term_kind_aliases_are_normalized() -> None:
    command = Command.from_message(
        {"command": "jumpToLocation", "targetUri": PEOPLE.uri, "termString": "x", "termType": "iri"}
    )
    assert command.payload.term_kind == "NamedNode"


def test_focus_node_term_recognises_blank_nodes(workbench: Workbench, tmp_path: Path) -> None:
    path = tmp_path / "blank.ttl"
    path.write_text(
        "@prefix ex: <http://example.org/> .\nex:Ann ex:contact [ ex:email \"ann@example.org\" ] .\n",
        encoding="utf-8",
    )
    document = workbench.open_document(DocumentLocation.from_path(path))
    blank = next(document.graph.objects(None, URIRef(EX + "contact")))

    assert focus_node_term(str(blank), document) == Term.blank(str(blank))
    assert focus_node_term("_:b1", document) == Term.blank("b1")
    assert focus_node_term(EX + "Ann", document) == Term.iri(EX + "Ann")
    assert focus_node_term("Ann", document).kind is TermKind.IRI


def test_settings_store_error_surfaces_on_session_manager(tmp_path: Path) -> None:
    store = tmp_path / "sessions.json"
    store.write_text("{not json", encoding="utf-8")
    workbench = Workbench.from_settings(Settings(session_store=store))
    assert workbench.sessions.load_error is not None
    outcome = workbench.dispatch(Command(CommandKind.RUN_VALIDATION, SessionRef("1")))
    assert not outcome.ok

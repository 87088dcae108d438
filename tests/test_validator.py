from __future__ import annotations

from pathlib import Path

from rdflib.namespace import SH

from shacl_lens.locations import DocumentLocation
from shacl_lens.rdf.documents import DocumentRegistry, RdfDocument
from shacl_lens.settings import Settings
from shacl_lens.shacl import validator
from shacl_lens.shacl.validator import detect_shapes_hint, run_validation

RESOURCES = Path(__file__).parent / "resources"
EX = "http://example.org/"


def _open(name: str) -> RdfDocument:
    return DocumentRegistry().open(DocumentLocation.from_path(RESOURCES / name))


def test_non_conforming_data_reports_violations() -> None:
    report = run_validation(_open("people.ttl"), _open("people-shapes.ttl"), Settings())
    assert not report.conforms
    assert report.raw_report
    focus_nodes = {r.focus_node.value for r in report.results if r.focus_node is not None}
    assert focus_nodes == {EX + "Bob"}
    messages = [m for r in report.results for m in r.message]
    assert "A person needs a name" in messages
    assert all(r.severity is not None and r.severity.value == str(SH.Violation) for r in report.results)


def test_conforming_data() -> None:
    report = run_validation(_open("conforming.ttl"), _open("people-shapes.ttl"), Settings())
    assert report.conforms
    assert report.results == ()


def test_malformed_data_degrades_to_single_parser_result() -> None:
    data = _open("broken.ttl")
    report = run_validation(data, _open("people-shapes.ttl"), Settings())
    assert not report.conforms
    assert len(report.results) == 1
    result = report.results[0]
    assert result.message == (data.diagnostics[0].message,)
    assert result.severity is not None and result.severity.value == "Error (Parser)"
    assert result.focus_node is not None and result.focus_node.value.startswith("Line ")
    assert report.data_document == data.location


def test_malformed_shapes_are_reported_too() -> None:
    shapes = _open("broken.ttl")
    report = run_validation(_open("people.ttl"), shapes, Settings())
    assert not report.conforms
    assert report.shapes_document == shapes.location
    assert report.results[0].message == (shapes.diagnostics[0].message,)


def test_engine_exception_becomes_report(monkeypatch) -> None:
    def explode(*args, **kwargs):
        raise RuntimeError("engine exploded")

    monkeypatch.setattr(validator, "validate_graph", explode)
    report = run_validation(_open("people.ttl"), _open("people-shapes.ttl"))
    assert not report.conforms
    assert report.results[0].message == ("Validation process error: engine exploded",)


def test_shapes_hint_resolves_relative_to_data_file() -> None:
    location = DocumentLocation.from_path(RESOURCES / "people.ttl")
    text = location.read_text()
    hinted = detect_shapes_hint(text, location)
    assert hinted == DocumentLocation.from_path(RESOURCES / "people-shapes.ttl")


def test_shapes_hint_ignores_missing_files_and_late_comments(tmp_path: Path) -> None:
    data = tmp_path / "data.ttl"
    location = DocumentLocation.from_path(data)
    assert detect_shapes_hint("# shapes: nowhere.ttl\n", location) is None
    (tmp_path / "late.ttl").write_text("", encoding="utf-8")
    text = "\n" * 12 + "# SHAPES: late.ttl\n"
    assert detect_shapes_hint(text, location) is None
    assert detect_shapes_hint(text, location, max_lines=20) == DocumentLocation.from_path(
        tmp_path / "late.ttl"
    )

from __future__ import annotations

from pathlib import Path

from shacl_lens.locations import DocumentLocation
from shacl_lens.rdf.documents import DocumentRegistry, RdfDocument
from shacl_lens.shacl.overview import lens_title, shape_overview

RESOURCES = Path(__file__).parent / "resources"
EX = "http://example.org/"


def _open(name: str) -> RdfDocument:
    return DocumentRegistry().open(DocumentLocation.from_path(RESOURCES / name))


def test_overview_with_data_graph() -> None:
    lenses = {lens.shape.value: lens for lens in shape_overview(_open("people-shapes.ttl"), _open("people.ttl"))}

    person = lenses[EX + "PersonShape"]
    assert person.focus_nodes == (EX + "Alice", EX + "Bob")
    assert person.title == "2 focus node(s) with property constraints"
    assert person.range is not None
    assert person.range.start.line == 5

    knows = lenses[EX + "KnowsShape"]
    assert knows.focus_nodes == (EX + "Bob",)
    assert knows.title == "1 focus node(s)"
    assert knows.range is not None and knows.range.start.line == 18

    assert lenses[EX + "UnusedShape"].title == "no focus nodes"


def test_overview_without_data_graph_prompts_for_one() -> None:
    lenses = shape_overview(_open("people-shapes.ttl"))
    assert len(lenses) == 3
    assert {lens.title for lens in lenses} == {"select a data graph to show focus nodes"}
    assert all(lens.focus_nodes is None for lens in lenses)


def test_overview_of_broken_shapes_is_empty() -> None:
    assert shape_overview(_open("broken.ttl"), _open("people.ttl")) == []


def test_lens_titles() -> None:
    assert lens_title(None, True) == "select a data graph to show focus nodes"
    assert lens_title(0, True) == "no focus nodes"
    assert lens_title(3, False) == "3 focus node(s)"

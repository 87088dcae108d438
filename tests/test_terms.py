from __future__ import annotations

import pytest
from rdflib import BNode, Literal, URIRef
from rdflib.namespace import XSD

from shacl_lens.rdf.terms import Term, TermKind, as_identifier, local_name


def test_from_rdflib_covers_every_node_kind() -> None:
    assert Term.from_rdflib(URIRef("http://example.org/a")) == Term.iri("http://example.org/a")
    assert Term.from_rdflib(BNode("b1")) == Term.blank("b1")
    literal = Term.from_rdflib(Literal("chat", lang="fr"))
    assert literal.kind is TermKind.LITERAL
    assert literal.language == "fr"
    typed = Term.from_rdflib(Literal(5))
    assert typed.datatype == str(XSD.integer)


def test_equality_is_structural() -> None:
    assert Term.literal("a", language="en") != Term.literal("a", language="de")
    assert Term.literal("a") != Term.iri("a")
    assert Term.literal("1", datatype=str(XSD.integer)) == Term.literal(
        "1", datatype=str(XSD.integer)
    )


def test_render_follows_ntriples_spelling() -> None:
    assert Term.iri("http://example.org/a").render() == "<http://example.org/a>"
    assert Term.blank("b1").render() == "_:b1"
    assert Term.literal("hi", language="en").render() == '"hi"@en'
    assert Term.literal("hi", datatype=str(XSD.string)).render() == '"hi"'
    assert (
        Term.literal("5", datatype=str(XSD.integer)).render()
        == f'"5"^^<{XSD.integer}>'
    )


def test_dict_form_uses_presentation_keys() -> None:
    term = Term.literal("5", datatype=str(XSD.integer))
    data = term.to_dict()
    assert data == {
        "value": "5",
        "termType": "Literal",
        "datatype": {"value": str(XSD.integer), "termType": "NamedNode"},
    }
    assert Term.from_dict(data) == term
    assert Term.iri("http://example.org/a").to_dict() == {
        "value": "http://example.org/a",
        "termType": "NamedNode",
    }


@pytest.mark.parametrize(
    ("text", "kind", "expected"),
    [
        ("<http://example.org/a>", None, Term.iri("http://example.org/a")),
        ("http://example.org/a", None, Term.iri("http://example.org/a")),
        ("_:b7", None, Term.blank("b7")),
        ("Alice Smith", None, Term.literal("Alice Smith")),
        ("12", "literal", Term.literal("12")),
        ("b7", "BlankNode", Term.blank("b7")),
    ],
)
def test_parse_accepts_presentation_strings(text, kind, expected) -> None:
    assert Term.parse(text, kind) == expected


def test_unknown_kind_is_rejected() -> None:
    with pytest.raises(ValueError):
        TermKind.parse("quoted-triple")


def test_local_name_and_identifier_helpers() -> None:
    assert local_name("http://example.org/ns#Person") == "Person"
    assert local_name("http://example.org/people/Bob") == "Bob"
    assert local_name("urn:isbn:123") == ""
    assert as_identifier("_:x") == BNode("x")
    assert as_identifier(Term.iri("http://example.org/a")) == URIRef("http://example.org/a")

from __future__ import annotations

from rdflib import BNode, Literal, Namespace
from rdflib.namespace import RDF, RDFS, SH

from shacl_lens.rdf.store import new_graph
from shacl_lens.shacl.targets import (
    ShapeTarget,
    TargetKind,
    extract_targets,
    find_focus_nodes,
    has_property_constraints,
    node_shapes,
)

EX = Namespace("http://example.org/")


def test_extract_targets_counts_every_declaration() -> None:
    shapes = new_graph()
    shapes.add((EX.S, RDF.type, SH.NodeShape))
    shapes.add((EX.S, SH.targetObjectsOf, EX.knows))
    shapes.add((EX.S, SH.targetClass, EX.Person))
    shapes.add((EX.S, SH.targetClass, EX.Agent))
    shapes.add((EX.S, SH.targetNode, EX.alice))
    shapes.add((EX.S, SH.targetSubjectsOf, EX.name))
    # an rdfs:Class declaration does not add an implicit target next to explicit ones
    shapes.add((EX.S, RDF.type, RDFS.Class))

    targets = extract_targets(shapes, EX.S)

    assert len(targets) == 5
    assert [t.kind for t in targets] == [
        TargetKind.CLASS,
        TargetKind.CLASS,
        TargetKind.NODE,
        TargetKind.SUBJECTS_OF,
        TargetKind.OBJECTS_OF,
    ]
    assert {t.value for t in targets if t.kind is TargetKind.CLASS} == {
        str(EX.Person),
        str(EX.Agent),
    }


def test_implicit_class_target() -> None:
    shapes = new_graph()
    shapes.add((EX.PersonShape, RDF.type, SH.NodeShape))
    shapes.add((EX.PersonShape, RDF.type, RDFS.Class))

    assert extract_targets(shapes, str(EX.PersonShape)) == [
        ShapeTarget(TargetKind.IMPLICIT_CLASS, str(EX.PersonShape))
    ]


def test_shape_without_targets_yields_nothing() -> None:
    shapes = new_graph()
    shapes.add((EX.Lonely, RDF.type, SH.NodeShape))
    assert extract_targets(shapes, EX.Lonely) == []
    assert extract_targets(new_graph(), EX.Missing) == []


def test_focus_nodes_for_target_class() -> None:
    data = new_graph()
    data.add((EX.Bob, RDF.type, EX.Person))
    data.add((EX.Rex, RDF.type, EX.Dog))

    targets = [ShapeTarget(TargetKind.CLASS, str(EX.Person))]

    assert find_focus_nodes(data, targets) == {str(EX.Bob)}


def test_focus_nodes_are_deduplicated_across_targets() -> None:
    data = new_graph()
    data.add((EX.Bob, RDF.type, EX.Person))
    data.add((EX.Bob, EX.name, Literal("Bob")))
    data.add((EX.Ann, EX.knows, EX.Bob))

    targets = [
        ShapeTarget(TargetKind.CLASS, str(EX.Person)),
        ShapeTarget(TargetKind.SUBJECTS_OF, str(EX.name)),
        ShapeTarget(TargetKind.OBJECTS_OF, str(EX.knows)),
        ShapeTarget(TargetKind.NODE, str(EX.Bob)),
    ]

    focus = find_focus_nodes(data, targets)
    assert focus == {str(EX.Bob)}


def test_objects_of_skips_literals() -> None:
    data = new_graph()
    data.add((EX.Ann, EX.contact, EX.Bob))
    data.add((EX.Ann, EX.contact, Literal("mailto:ann@example.org")))
    data.add((EX.Ann, EX.contact, BNode("c1")))

    focus = find_focus_nodes(data, [ShapeTarget(TargetKind.OBJECTS_OF, str(EX.contact))])

    assert focus == {str(EX.Bob), "c1"}


def test_target_node_is_kept_without_data() -> None:
    focus = find_focus_nodes(new_graph(), [ShapeTarget(TargetKind.NODE, str(EX.ghost))])
    assert focus == {str(EX.ghost)}


def test_node_shapes_and_property_constraints() -> None:
    shapes = new_graph()
    shapes.add((EX.A, RDF.type, SH.NodeShape))
    shapes.add((EX.B, RDF.type, SH.NodeShape))
    shapes.add((EX.A, SH.property, BNode("p")))

    assert set(node_shapes(shapes)) == {EX.A, EX.B}
    assert has_property_constraints(shapes, EX.A)
    assert not has_property_constraints(shapes, str(EX.B))

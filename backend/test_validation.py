"""Tests for family graph validation."""
from conftest import member, relation
from kintree.validation import build_parent_graph, validate_graph


def test_clean_graph_has_no_warnings():
    members = [member("S", is_self=True, birth_date="1990-05-01"), member("D", birth_date="1960-03-02")]
    relations = [relation("S", "D", "father")]
    assert validate_graph(members, relations) == []


def test_parent_graph_normalises_direction():
    relations = [
        relation("S", "D", "father"),
        relation("D", "K", "son"),
        relation("S", "W", "spouse"),
    ]
    P = build_parent_graph(relations)
    assert sorted(P.edges()) == [("D", "K"), ("D", "S")]


def test_parent_child_cycle():
    members = [member("A", nickname="阿甲"), member("B", nickname="阿乙")]
    relations = [relation("A", "B", "father"), relation("B", "A", "father")]

    warnings = validate_graph(members, relations)

    assert len(warnings) == 1
    assert warnings[0].startswith("Cycle detected in parent-child relationships")
    assert "阿甲" in warnings[0] and "阿乙" in warnings[0]


def test_child_born_before_parent():
    members = [member("S", birth_date="1950-01-01"), member("D", birth_date="1960-01-01")]
    relations = [relation("S", "D", "father")]
    assert validate_graph(members, relations) == ["Impossible: S born before parent D"]


def test_very_young_parent():
    members = [member("S", birth_date="1968-01-01"), member("D", birth_date="1960-01-01")]
    relations = [relation("S", "D", "father")]
    assert validate_graph(members, relations) == ["Suspicious: D was less than 12 years old when S was born"]


def test_several_self_members_and_unknown_endpoints():
    members = [member("A", is_self=True), member("B", is_self=True)]
    relations = [relation("A", "ghost", "spouse", relation_id="r1")]

    warnings = validate_graph(members, relations)

    assert "More than one self member: ['A', 'B']" in warnings
    assert "Relation r1 references unknown member ghost" in warnings

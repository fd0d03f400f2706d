import itertools

import pytest

from kinship_tree.indexer import build_index, flatten, flatten_forest
from kinship_tree.labels import PERSIAN
from kinship_tree.models import FamilyTree, SpouseRef
from kinship_tree.mutations import set_spouse
from kinship_tree.relationship import (
    ancestor_path, find_kinship_path, relationship_between, resolve_relationship, resolve_spouse,
)


def test_grandparent_scenario():
    tree = FamilyTree.from_dict({
        "id": "G", "name": "Grandpa", "gender": "male", "children": [
            {"id": "F", "name": "Dad", "gender": "male", "children": [
                {"id": "C", "name": "Kid", "gender": "female"},
            ]},
        ],
    })
    result = relationship_between(flatten(tree), "C", "G")
    assert result.related
    assert result.blood.lca_id == "G"
    assert (result.blood.dist_a, result.blood.dist_b) == (2, 0)
    assert "grandfather" in result.labels


def test_cousin_scenario():
    tree = FamilyTree.from_dict({
        "id": "R", "name": "R", "gender": "male", "children": [
            {"id": "P1", "name": "P1", "gender": "male", "children": [{"id": "A", "name": "A", "gender": "male"}]},
            {"id": "P2", "name": "P2", "gender": "male", "children": [{"id": "B", "name": "B", "gender": "male"}]},
        ],
    })
    result = relationship_between(flatten(tree), "A", "B")
    assert result.blood.lca_id == "R"
    assert (result.blood.dist_a, result.blood.dist_b) == (2, 2)
    assert result.labels == ("son of paternal uncle",)


def test_distances_are_symmetric(family):
    idx = build_index(flatten(family))
    for a, b in itertools.permutations(idx, 2):
        ab = find_kinship_path(idx[a], idx[b], idx)
        ba = find_kinship_path(idx[b], idx[a], idx)
        assert ab.lca_id == ba.lca_id
        assert (ab.dist_a, ab.dist_b) == (ba.dist_b, ba.dist_a)


def test_ancestor_path(family):
    idx = build_index(flatten(family))
    assert [m.id for m in ancestor_path(idx["8"], idx)] == ["8", "7", "4", "1"]
    assert [m.id for m in ancestor_path(idx["1"], idx)] == ["1"]


def test_self_relationship(family):
    result = relationship_between(flatten(family), "3", "3")
    assert result.labels == ("same person",)
    assert result.related


def test_unrelated_trees_have_no_relationship(family):
    stranger = FamilyTree.from_dict({"id": "z", "name": "Z"})
    result = relationship_between(flatten_forest([family, stranger]), "3", "z")
    assert not result.related
    assert result.labels == ("no identifiable relationship",)
    assert result.blood is None
    assert str(result) == "no identifiable relationship"


def test_unknown_person_raises_key_error(family):
    with pytest.raises(KeyError):
        relationship_between(flatten(family), "3", "nope")


@pytest.fixture
def married(family):
    # F is married to Mina Rahimi, who appears only in the in-law tree
    return set_spouse(family, "2", SpouseRef("Mina Rahimi"))


def test_relationship_through_parents_spouse(married, in_laws):
    members = flatten_forest([married, in_laws])
    assert relationship_between(members, "3", "m").labels == ("mother (through Mina Rahimi, spouse of F)",)
    assert relationship_between(members, "3", "h").labels == ("grandfather (through Mina Rahimi, spouse of F)",)
    result = relationship_between(members, "3", "k")
    assert result.labels == ("maternal uncle (through Mina Rahimi, spouse of F)",)
    assert result.blood is None
    assert result.indirect[0].spouse.id == "m"
    assert result.indirect[0].parent.id == "2"


def test_marriage_path_shifts_one_generation():
    # the spouse's child is the person's sibling
    family = FamilyTree.from_dict({
        "id": "r", "name": "R", "children": [
            {"id": "p", "name": "P", "gender": "male", "spouses": [{"name": "W", "id": "w"}], "children": [
                {"id": "a", "name": "A"},
            ]},
        ],
    })
    other = FamilyTree.from_dict({
        "id": "w", "name": "W", "gender": "female", "children": [{"id": "half", "name": "H", "gender": "female"}],
    })
    result = relationship_between(flatten_forest([family, other]), "a", "half")
    assert result.labels == ("sister (through W, spouse of P)",)


def test_explicit_spouse_id_wins_over_name(family, in_laws):
    tree = set_spouse(family, "2", SpouseRef("Someone Else", "k"))
    result = relationship_between(flatten_forest([tree, in_laws]), "3", "h")
    assert result.labels == ("grandfather (through Karim Rahimi, spouse of F)",)


def test_fuzzy_spouse_match_can_be_disabled(in_laws):
    tree = FamilyTree.from_dict({
        "id": "ali", "name": "Ali", "children": [
            {"id": "reza", "name": "Reza", "spouses": ["Mina Rahimi Tehrani"], "children": [
                {"id": "sara", "name": "Sara", "gender": "female"},
            ]},
        ],
    })
    members = flatten_forest([tree, in_laws])
    assert relationship_between(members, "sara", "k").labels == ("maternal uncle (through Mina Rahimi, spouse of Reza)",)
    result = relationship_between(members, "sara", "k", fuzzy_spouse_match=False)
    assert not result.related


def test_blood_and_marriage_labels_are_both_reported(married, in_laws):
    merged = FamilyTree.from_dict({"id": "top", "name": "Top", "children": [married.to_dict(), in_laws.to_dict()]})
    result = relationship_between(flatten(merged), "3", "k")
    assert len(result.labels) == 2
    assert result.labels[1] == "maternal uncle (through Mina Rahimi, spouse of F)"
    assert result.blood.lca_id == "top"


def test_resolve_spouse_prefers_candidate_pointing_back():
    members = flatten_forest([
        FamilyTree.from_dict({"id": "p", "name": "Reza", "spouses": ["Sara"]}),
        FamilyTree.from_dict({"id": "s1", "name": "Sara"}),
        FamilyTree.from_dict({"id": "s2", "name": "Sara", "spouses": ["Reza"]}),
    ])
    idx = build_index(members)
    assert resolve_spouse(idx["p"].spouses[0], idx, idx["p"]).id == "s2"


def test_persian_vocabulary(married, in_laws):
    members = flatten_forest([married, in_laws])
    result = resolve_relationship(build_index(members)["3"], build_index(members)["k"], members, vocabulary=PERSIAN)
    assert result.labels == ("دایی (از طریق Mina Rahimi، همسر F)",)


def test_result_to_dict(family):
    d = relationship_between(flatten(family), "3", "4").to_dict()
    assert d["labels"] == ["paternal aunt"]
    assert d["text"] == "paternal aunt"
    assert d["related"] is True
    assert d["blood"] == {"lca_id": "1", "dist_a": 2, "dist_b": 1, "path_a": ["3", "2", "1"], "path_b": ["4", "1"]}
    assert d["indirect"] == []


def test_each_spouse_reports_its_own_path():
    # P married two sisters, so both marriages reach X as grandfather
    family = FamilyTree.from_dict({
        "id": "r", "name": "R", "children": [
            {"id": "p", "name": "P", "gender": "male", "spouses": [
                {"name": "W1", "id": "w1"}, {"name": "W2", "id": "w2"},
            ], "children": [{"id": "a", "name": "A"}]},
        ],
    })
    in_laws = FamilyTree.from_dict({
        "id": "x", "name": "X", "gender": "male", "children": [
            {"id": "w1", "name": "W1", "gender": "female"},
            {"id": "w2", "name": "W2", "gender": "female"},
        ],
    })
    result = relationship_between(flatten_forest([family, in_laws]), "a", "x")
    assert result.labels == (
        "grandfather (through W1, spouse of P)",
        "grandfather (through W2, spouse of P)",
    )
    assert [p.spouse.id for p in result.indirect] == ["w1", "w2"]


def test_spouse_recorded_twice_is_reported_once(in_laws):
    family = FamilyTree.from_dict({
        "id": "r", "name": "R", "children": [
            {"id": "p", "name": "P", "gender": "male", "spouses": [
                {"name": "Mina", "id": "m"}, {"name": "Mina Rahimi", "id": "m"},
            ], "children": [{"id": "a", "name": "A"}]},
        ],
    })
    result = relationship_between(flatten_forest([family, in_laws]), "a", "h")
    assert result.labels == ("grandfather (through Mina Rahimi, spouse of P)",)

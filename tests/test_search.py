from kinship_tree.indexer import flatten, flatten_forest
from kinship_tree.models import FamilyTree
from kinship_tree.search import match_by_name, normalize_name, search_members


def _members():
    tree = FamilyTree.from_dict({
        "id": "1", "name": "Ali", "surname": "Karimi", "children": [
            {"id": "2", "name": "Reza", "surname": "Karimi"},
            {"id": "3", "name": "Alireza", "surname": "Moradi"},
            {"id": "4", "name": "Maryam", "surname": "Alavi", "title": "Dr."},
        ],
    })
    return flatten(tree)


def test_normalize_name():
    assert normalize_name("  Éléonore   DUPONT ") == "eleonore dupont"
    assert normalize_name(None) == ""
    # Arabic yeh and kaf fold to their Persian forms
    assert normalize_name("\u0639\u0644\u064a") == normalize_name("\u0639\u0644\u06cc")
    assert normalize_name("\u0643\u0631\u06cc\u0645") == normalize_name("\u06a9\u0631\u06cc\u0645")
    # zero-width non-joiner counts as a space
    assert normalize_name("\u0645\u06cc\u200c\u0631") == "\u0645\u06cc \u0631"


def test_search_orders_by_relevance():
    res = search_members(_members(), "ali")
    ids = [m.id for m in res]
    # exact name first, then prefix
    assert ids == ["1", "3"]


def test_search_requires_every_token():
    res = search_members(_members(), "reza karimi")
    assert [m.id for m in res] == ["2"]


def test_search_limit_and_empty_query():
    assert len(search_members(_members(), "a", limit=2)) == 2
    assert search_members(_members(), "") == []
    assert search_members(_members(), "   ") == []
    assert search_members(_members(), "zzz") == []


def test_match_by_name_exact_before_fuzzy():
    members = _members()
    assert [m.id for m in match_by_name(members, "Reza")] == ["2"]
    assert [m.id for m in match_by_name(members, "reza karimi")] == ["2"]
    # no exact hit: fall back to substring matching on the full name
    assert [m.id for m in match_by_name(members, "Alireza Moradi Jr")] == ["3"]
    assert match_by_name(members, "Alireza Moradi Jr", fuzzy=False) == []
    assert match_by_name(members, "") == []


def test_match_by_name_returns_all_namesakes():
    members = flatten_forest([
        FamilyTree.from_dict({"id": "a", "name": "Sara"}),
        FamilyTree.from_dict({"id": "b", "name": "Sara"}),
    ])
    assert [m.id for m in match_by_name(members, "sara")] == ["a", "b"]

"""Small example script that demonstrates the tree engine and kinship labels.

Builds a three-generation family plus a linked in-law tree and prints:
 - the flattened tree with identity labels
 - a few blood relationships
 - a relationship found only through a marriage
 - the refusal of a cyclic move

Run:
    python scripts/example_relationships.py
"""
from pathlib import Path
import sys

# Ensure repo root is on sys.path when running this script directly
repo_root = Path(__file__).resolve().parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from kinship_tree.models import FamilyTree
from kinship_tree.indexer import flatten, flatten_forest
from kinship_tree.labels import identity_label
from kinship_tree.mutations import StructuralCycleError, move_subtree
from kinship_tree.relationship import relationship_between


def build_demo():
    family = FamilyTree.from_dict({
        "id": "ali", "name": "Ali", "gender": "male", "children": [
            {"id": "reza", "name": "Reza", "gender": "male", "spouses": [{"name": "Maryam Karimi"}], "children": [
                {"id": "sara", "name": "Sara", "gender": "female"},
                {"id": "omid", "name": "Omid", "gender": "male"},
            ]},
            {"id": "zahra", "name": "Zahra", "gender": "female", "children": [
                {"id": "nima", "name": "Nima", "gender": "male"},
            ]},
        ],
    })
    in_laws = FamilyTree.from_dict({
        "id": "hassan", "name": "Hassan", "surname": "Karimi", "gender": "male", "children": [
            {"id": "maryam", "name": "Maryam", "surname": "Karimi", "gender": "female"},
            {"id": "leila", "name": "Leila", "surname": "Karimi", "gender": "female"},
        ],
    })
    return family, in_laws


def main():
    family, in_laws = build_demo()

    print("Flattened family:")
    for m in flatten(family):
        print(f"  {'  ' * m.depth}{identity_label(m)}")

    members = flatten_forest([family, in_laws], titles=["Family", "Karimi"])
    print("\nRelationships (B relative to A):")
    for a, b in (("sara", "ali"), ("ali", "sara"), ("sara", "omid"), ("sara", "zahra"), ("sara", "nima"), ("sara", "leila")):
        print(f"  {a} -> {b}: {relationship_between(members, a, b)}")

    print("\nMoving Reza under his own daughter:")
    try:
        move_subtree(family, "sara", "reza")
    except StructuralCycleError as e:
        print(f"  refused: {e}")


if __name__ == "__main__":
    main()

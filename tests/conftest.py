import os
import sys
from pathlib import Path

import pytest

# Ensure repo root is on sys.path so tests can import the package directly
root = Path(__file__).resolve().parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from kinship_tree.models import FamilyTree


def pytest_configure(config):
    """Keep a developer's KINSHIP_* environment from leaking into tests."""
    for key in list(os.environ):
        if key.startswith("KINSHIP_"):
            del os.environ[key]


def family_dict():
    #            G(1, m)
    #          /        \
    #      F(2, m)      S(4, f)
    #      /     \          \
    #   C(3, f)  D(5, m)    N(7, f)
    #     |                   |
    #   GC(6, m)            NN(8, m)
    return {
        "id": "1", "name": "G", "children": [
            {"id": "2", "name": "F", "gender": "male", "children": [
                {"id": "3", "name": "C", "gender": "female", "children": [
                    {"id": "6", "name": "GC", "gender": "male"},
                ]},
                {"id": "5", "name": "D", "gender": "male"},
            ]},
            {"id": "4", "name": "S", "gender": "female", "children": [
                {"id": "7", "name": "N", "gender": "female", "children": [
                    {"id": "8", "name": "NN", "gender": "male"},
                ]},
            ]},
        ],
    }


def in_laws_dict():
    return {
        "id": "h", "name": "Hassan", "surname": "Rahimi", "gender": "male", "children": [
            {"id": "m", "name": "Mina", "surname": "Rahimi", "gender": "female"},
            {"id": "k", "name": "Karim", "surname": "Rahimi", "gender": "male"},
        ],
    }


@pytest.fixture
def family():
    return FamilyTree.from_dict(family_dict())


@pytest.fixture
def in_laws():
    return FamilyTree.from_dict(in_laws_dict())

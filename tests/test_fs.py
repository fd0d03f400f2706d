import json

import pytest

from kinship_tree import fs
from kinship_tree.models import FamilyTree


def test_ensure_dir_and_atomic_write(tmp_path):
    d = tmp_path / "sub"
    p = d / "file.txt"
    fs.ensure_dir(d)
    assert d.exists()
    fs.atomic_write_text(p, "hello")
    assert p.read_text() == "hello"
    assert [x.name for x in d.iterdir()] == ["file.txt"]


def test_json_save_and_load(tmp_path):
    p = tmp_path / "data.json"
    obj = {"a": 1, "b": "نام"}
    fs.json_save(p, obj)
    assert fs.json_load(p) == obj
    assert "نام" in p.read_text(encoding="utf-8")
    assert fs.json_load(tmp_path / "missing.json", default=[]) == []


def test_save_and_load_tree(tmp_path, family):
    p = tmp_path / "trees" / "family.json"
    fs.save_tree(p, family)
    loaded = fs.load_tree(p)
    assert dict(loaded.nodes) == dict(family.nodes)


def test_load_tree_accepts_data_wrapper(tmp_path):
    p = tmp_path / "tab.json"
    p.write_text(json.dumps({"id": "tab-1", "title": "Main", "data": {"id": "r", "name": "Root"}}))
    tree = fs.load_tree(p)
    assert isinstance(tree, FamilyTree)
    assert tree.root.name == "Root"


def test_load_tree_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        fs.load_tree(tmp_path / "missing.json")
    p = tmp_path / "list.json"
    p.write_text("[]")
    with pytest.raises(ValueError):
        fs.load_tree(p)

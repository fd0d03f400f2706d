"""Filesystem helpers used by the command line front end.

Safe JSON read/write with atomic replacement, and tree file loading.
"""
from __future__ import annotations
from pathlib import Path
import json
import tempfile
import os
from typing import Any, Optional

from .models import FamilyTree


def ensure_dir(path: Path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """Write text to path atomically using a temp file in the same dir.

    This avoids partial writes when the process is interrupted.
    """
    path = Path(path)
    ensure_dir(path.parent)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
        os.replace(tmp, str(path))
    finally:
        # If replace failed and tmp still exists, remove it
        if Path(tmp).exists():
            Path(tmp).unlink()


def json_load(path: Path, default: Optional[Any] = None) -> Any:
    p = Path(path)
    if not p.exists():
        return default
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def json_save(path: Path, obj: Any) -> None:
    text = json.dumps(obj, ensure_ascii=False, indent=2)
    atomic_write_text(Path(path), text)


def load_tree(path: Path) -> FamilyTree:
    """Read a nested JSON person tree; a {"data": {...}} wrapper is accepted."""
    data = json_load(path)
    if data is None:
        raise FileNotFoundError(str(path))
    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        data = data["data"]
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return FamilyTree.from_dict(data)


def save_tree(path: Path, tree: FamilyTree) -> None:
    json_save(path, tree.to_dict())

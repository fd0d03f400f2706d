"""JSON API over the tree engine.

The service is stateless: every request carries the tree(s) it operates on
as nested JSON and every mutation answers with the new tree. Storage,
ownership and conflict detection belong to the caller.
"""
from fastapi import FastAPI, HTTPException, Body, Request
from fastapi.responses import JSONResponse
from typing import Any, Dict, List, Optional
import logging

from ..config import configure_logging, load_config
from ..indexer import flatten, flatten_forest
from ..labels import get_vocabulary
from ..models import FamilyTree
from ..mutations import (
    StructuralCycleError, add_child, extract_subtree, move_subtree, remove_subtree, shift_child, update_fields
)
from ..relationship import relationship_between
from ..search import search_members

cfg = load_config()
configure_logging(cfg)

app = FastAPI(title="kinship-tree")


@app.exception_handler(StructuralCycleError)
async def cycle_error_handler(request: Request, exc: StructuralCycleError):
    return JSONResponse(status_code=409, content={"detail": str(exc), "node_id": exc.node_id, "new_parent_id": exc.new_parent_id})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logging.info("rejected request to %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def _tree(payload: Dict[str, Any], key: str = "tree") -> FamilyTree:
    raw = payload.get(key)
    if not isinstance(raw, dict):
        raise HTTPException(status_code=400, detail=f"'{key}' must be a person object")
    return FamilyTree.from_dict(raw)


def _members(payload: Dict[str, Any]):
    if isinstance(payload.get("trees"), list):
        trees = [FamilyTree.from_dict(t) for t in payload["trees"] if isinstance(t, dict)]
        if not trees:
            raise HTTPException(status_code=400, detail="'trees' must contain person objects")
        return flatten_forest(trees, titles=payload.get("titles"), default_gender=cfg.default_gender)
    return flatten(_tree(payload), default_gender=cfg.default_gender)


def _required(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise HTTPException(status_code=400, detail=f"'{key}' is required")
    return value


def _tree_response(old: FamilyTree, new: Optional[FamilyTree]) -> Dict[str, Any]:
    if new is None:
        return {"tree": None, "changed": True}
    return {"tree": new.to_dict(), "changed": new is not old, "size": len(new)}


@app.get("/")
def index():
    return {"name": app.title, "language": cfg.language}


@app.post("/api/flatten")
def api_flatten(payload: Dict[str, Any] = Body(...)):
    return {"members": [m.to_dict() for m in _members(payload)]}


@app.post("/api/person/update")
def api_update_person(payload: Dict[str, Any] = Body(...)):
    tree = _tree(payload)
    fields = payload.get("fields")
    if not isinstance(fields, dict):
        raise HTTPException(status_code=400, detail="'fields' must be an object")
    return _tree_response(tree, update_fields(tree, _required(payload, "target_id"), fields))


@app.post("/api/person/add-child")
def api_add_child(payload: Dict[str, Any] = Body(...)):
    tree = _tree(payload)
    return _tree_response(tree, add_child(tree, _required(payload, "parent_id"), _required(payload, "name"), child_id=payload.get("child_id")))


@app.post("/api/person/remove")
def api_remove_person(payload: Dict[str, Any] = Body(...)):
    tree = _tree(payload)
    return _tree_response(tree, remove_subtree(tree, _required(payload, "target_id")))


@app.post("/api/person/move")
def api_move_person(payload: Dict[str, Any] = Body(...)):
    tree = _tree(payload)
    new = move_subtree(tree, _required(payload, "new_parent_id"), _required(payload, "node_id"))
    if new is not tree:
        logging.info("moved %s under %s", payload["node_id"], payload["new_parent_id"])
    return _tree_response(tree, new)


@app.post("/api/person/shift")
def api_shift_child(payload: Dict[str, Any] = Body(...)):
    tree = _tree(payload)
    return _tree_response(tree, shift_child(tree, _required(payload, "child_id"), up=payload.get("direction", "up") != "down"))


@app.post("/api/subtree/extract")
def api_extract_subtree(payload: Dict[str, Any] = Body(...)):
    tree = _tree(payload)
    branch = extract_subtree(tree, _required(payload, "node_id"))
    if branch is None:
        raise HTTPException(status_code=404, detail="Person not found")
    return {"tree": branch.to_dict(), "size": len(branch)}


@app.post("/api/relationship")
def api_relationship(payload: Dict[str, Any] = Body(...)):
    members = _members(payload)
    options = cfg.resolver_options()
    if payload.get("language"):
        options["vocabulary"] = get_vocabulary(payload["language"])
    try:
        result = relationship_between(members, _required(payload, "person_a"), _required(payload, "person_b"), **options)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=f"Person not found: {e.args[0]}")
    return result.to_dict()


@app.post("/api/search")
def api_search(payload: Dict[str, Any] = Body(...)):
    members = _members(payload)
    found: List = search_members(members, _required(payload, "q"), limit=int(payload.get("limit", 20)))
    return {"members": [m.to_dict() for m in found]}

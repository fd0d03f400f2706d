"""Structural edits on a `FamilyTree`.

Every operation takes a tree and returns a new tree; the input snapshot is
never modified, so readers holding it keep a consistent view.

APIs:
    update_fields(tree, target_id, fields) -> FamilyTree
    add_child(tree, parent_id, name, child_id=None) -> FamilyTree
    remove_subtree(tree, target_id) -> Optional[FamilyTree]
    move_subtree(tree, new_parent_id, node_id) -> FamilyTree
    shift_child(tree, child_id, up=True) -> FamilyTree
    regenerate_identities(tree, root_id=None) -> Optional[FamilyTree]
    extract_subtree(tree, node_id) -> Optional[FamilyTree]
    graft_subtree(tree, new_parent_id, branch) -> FamilyTree
    merge_trees(trees, root_name, titles=None) -> FamilyTree
    set_spouse(tree, person_id, spouse, slot=0) -> FamilyTree
    link_shared_child(tree, person_id, child) -> FamilyTree

Targets that do not exist are silent no-ops (the same tree is returned).
The only refused edit is a move that would make a node its own ancestor,
which raises StructuralCycleError before anything is detached.
"""
from __future__ import annotations
from dataclasses import fields as dataclass_fields, replace
from typing import Any, Dict, List, Optional, Sequence
import logging

from .models import ChildRef, FamilyTree, Person, SpouseRef, coerce_fields, new_person_id

STRUCTURAL_FIELDS = frozenset({"id", "children", "parent_id"})
_PERSON_FIELDS = frozenset(f.name for f in dataclass_fields(Person))


class StructuralCycleError(ValueError):
    def __init__(self, node_id: str, new_parent_id: str) -> None:
        super().__init__(f"cannot move {node_id} under its own descendant {new_parent_id}")
        self.node_id = node_id
        self.new_parent_id = new_parent_id


def update_fields(tree: FamilyTree, target_id: str, fields: Dict[str, Any]) -> FamilyTree:
    bad = STRUCTURAL_FIELDS.intersection(fields)
    if bad:
        raise ValueError(f"structural fields cannot be updated directly: {sorted(bad)}")
    p = tree.get(target_id)
    if p is None:
        logging.debug("update_fields: %s not found, tree unchanged", target_id)
        return tree
    values = coerce_fields(fields, p)
    unknown = set(values) - _PERSON_FIELDS
    if unknown:
        raise ValueError(f"unknown person fields: {sorted(unknown)}")
    updated = replace(p, **values)
    return tree.evolve({target_id: updated})


def add_child(tree: FamilyTree, parent_id: str, name: str, child_id: Optional[str] = None) -> FamilyTree:
    parent = tree.get(parent_id)
    if parent is None:
        logging.debug("add_child: parent %s not found, tree unchanged", parent_id)
        return tree
    if child_id is not None and child_id in tree:
        raise ValueError(f"duplicate person id: {child_id}")
    child = Person(id=child_id or new_person_id(), name=name, parent_id=parent_id)
    return tree.evolve({
        child.id: child,
        parent_id: replace(parent, children=parent.children + (child.id,)),
    })


def remove_subtree(tree: FamilyTree, target_id: str) -> Optional[FamilyTree]:
    """Remove a person and all descendants.

    Returns None when the target is the root: deleting the whole tree is the
    caller's decision.
    """
    if target_id == tree.root_id:
        return None
    p = tree.get(target_id)
    if p is None:
        logging.debug("remove_subtree: %s not found, tree unchanged", target_id)
        return tree
    parent = tree.nodes[p.parent_id]
    doomed = tuple(tree.subtree_ids(target_id))
    logging.debug("remove_subtree: removing %d persons under %s", len(doomed), target_id)
    return tree.evolve(
        {parent.id: replace(parent, children=tuple(c for c in parent.children if c != target_id))},
        removed=doomed,
    )


def is_descendant(tree: FamilyTree, ancestor_id: str, candidate_id: str) -> bool:
    """True when candidate_id is ancestor_id itself or lies below it."""
    return candidate_id in set(tree.subtree_ids(ancestor_id))


def move_subtree(tree: FamilyTree, new_parent_id: str, node_id: str) -> FamilyTree:
    node = tree.get(node_id)
    new_parent = tree.get(new_parent_id)
    if node is None or new_parent is None:
        logging.debug("move_subtree: %s or %s not found, tree unchanged", node_id, new_parent_id)
        return tree
    # the full subtree is checked before anything is detached
    if is_descendant(tree, node_id, new_parent_id):
        logging.info("move_subtree: refused moving %s under %s (cycle)", node_id, new_parent_id)
        raise StructuralCycleError(node_id, new_parent_id)

    old_parent = tree.nodes[node.parent_id]
    changed: Dict[str, Person] = {}
    old_children = tuple(c for c in old_parent.children if c != node_id)
    if old_parent.id == new_parent_id:
        changed[new_parent_id] = replace(old_parent, children=old_children + (node_id,))
    else:
        changed[old_parent.id] = replace(old_parent, children=old_children)
        changed[new_parent_id] = replace(new_parent, children=new_parent.children + (node_id,))
    changed[node_id] = replace(node, parent_id=new_parent_id)
    return tree.evolve(changed)


def shift_child(tree: FamilyTree, child_id: str, up: bool = True) -> FamilyTree:
    """Swap a child with its previous (up) or next sibling.

    Only the display order changes; at either end of the list this is a
    no-op.
    """
    p = tree.get(child_id)
    if p is None or p.parent_id is None:
        return tree
    parent = tree.nodes[p.parent_id]
    kids = list(parent.children)
    i = kids.index(child_id)
    j = i - 1 if up else i + 1
    if j < 0 or j >= len(kids):
        return tree
    kids[i], kids[j] = kids[j], kids[i]
    return tree.evolve({parent.id: replace(parent, children=tuple(kids))})


def regenerate_identities(tree: FamilyTree, root_id: Optional[str] = None) -> Optional[FamilyTree]:
    """Deep-clone a subtree into an independent tree with fresh ids.

    Weak references (spouse and shared-child ids) that point inside the
    cloned subtree are remapped; those pointing elsewhere are kept as-is.
    Returns None when `root_id` is not in the tree.
    """
    start = tree.root_id if root_id is None else root_id
    if start not in tree:
        logging.debug("regenerate_identities: %s not found", start)
        return None
    old_ids = tree.subtree_ids(start)
    mapping = {old: new_person_id() for old in old_ids}

    def remap(ref):
        if ref.id in mapping:
            return replace(ref, id=mapping[ref.id])
        return ref

    table: Dict[str, Person] = {}
    for old in old_ids:
        p = tree.nodes[old]
        table[mapping[old]] = replace(
            p,
            id=mapping[old],
            parent_id=None if old == start else mapping[p.parent_id],
            children=tuple(mapping[c] for c in p.children),
            spouses=tuple(remap(s) for s in p.spouses),
            shared_children=tuple(remap(c) for c in p.shared_children),
        )
    return FamilyTree(root_id=mapping[start], nodes=table)


def extract_subtree(tree: FamilyTree, node_id: str) -> Optional[FamilyTree]:
    return regenerate_identities(tree, node_id)


def graft_subtree(tree: FamilyTree, new_parent_id: str, branch: FamilyTree) -> FamilyTree:
    """Copy `branch` (fresh ids) under `new_parent_id` as its last child."""
    parent = tree.get(new_parent_id)
    if parent is None:
        logging.debug("graft_subtree: parent %s not found, tree unchanged", new_parent_id)
        return tree
    clone = regenerate_identities(branch)
    changed: Dict[str, Person] = dict(clone.nodes)
    changed[clone.root_id] = replace(clone.root, parent_id=new_parent_id)
    changed[new_parent_id] = replace(parent, children=parent.children + (clone.root_id,))
    return tree.evolve(changed)


def merge_trees(trees: Sequence[FamilyTree], root_name: str, titles: Optional[Sequence[str]] = None) -> FamilyTree:
    """Join several trees under a new synthetic root.

    Each former root is tagged with the tree it came from so that callers can
    trace merged members back. Ids must not collide across the inputs.
    """
    root = Person(name=root_name)
    table: Dict[str, Person] = {}
    sub_roots: List[str] = []
    for i, t in enumerate(trees):
        clash = set(t.nodes).intersection(table)
        if clash or root.id in t.nodes:
            raise ValueError(f"cannot merge trees with shared person ids: {sorted(clash)[:5]}")
        table.update(t.nodes)
        title = titles[i] if titles is not None and i < len(titles) else None
        table[t.root_id] = replace(t.root, parent_id=root.id, origin_tree_id=t.root_id, origin_tree_title=title)
        sub_roots.append(t.root_id)
    table[root.id] = replace(root, children=tuple(sub_roots))
    logging.info("merge_trees: merged %d trees (%d persons)", len(sub_roots), len(table))
    return FamilyTree(root_id=root.id, nodes=table)


def link_shared_child(tree: FamilyTree, person_id: str, child: ChildRef) -> FamilyTree:
    """Record a weak reference to a child owned elsewhere."""
    p = tree.get(person_id)
    if p is None:
        return tree
    if child in p.shared_children or (child.id is not None and child.id in p.children):
        return tree
    return tree.evolve({person_id: replace(p, shared_children=p.shared_children + (child,))})


def set_spouse(tree: FamilyTree, person_id: str, spouse: SpouseRef, slot: int = 0) -> FamilyTree:
    """Set the first (slot 0) or second (slot 1) spouse of a person."""
    if slot not in (0, 1):
        raise ValueError("spouse slot must be 0 or 1")
    p = tree.get(person_id)
    if p is None:
        return tree
    spouses = list(p.spouses)
    if slot < len(spouses):
        spouses[slot] = spouse
    else:
        spouses.append(spouse)
    return tree.evolve({person_id: replace(p, spouses=tuple(spouses))})

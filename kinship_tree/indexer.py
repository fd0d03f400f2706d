"""Flat, annotated views over a `FamilyTree`.

APIs:
    flatten(tree, default_gender=Gender.MALE) -> List[ExtendedPerson]
    flatten_forest(trees, titles=None, default_gender=Gender.MALE) -> List[ExtendedPerson]
    build_index(members) -> Dict[str, ExtendedPerson]
    filter_by_gender(tree, gender) -> Optional[FamilyTree]

`flatten` walks the tree once, pre-order, and annotates every person with
its depth (root = 0), parent id, the names of its nearest two ancestors and
the parent's gender, with UNKNOWN resolved to `default_gender`. The result
is a pure function of the tree: flattening an unchanged tree twice yields
equal lists.
"""
from __future__ import annotations
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple
import logging

from .models import ExtendedPerson, FamilyTree, Gender


def flatten(
    tree: FamilyTree,
    tree_id: Optional[str] = None,
    tree_title: Optional[str] = None,
    default_gender: Gender = Gender.MALE,
) -> List[ExtendedPerson]:
    results: List[ExtendedPerson] = []
    # (person id, depth, father name, grandfather name, parent gender)
    stack: List[Tuple[str, int, Optional[str], Optional[str], Optional[Gender]]] = [
        (tree.root_id, 0, None, None, None)
    ]
    while stack:
        pid, depth, father, grandfather, pgender = stack.pop()
        p = tree.nodes[pid]
        results.append(
            ExtendedPerson(
                person=p,
                depth=depth,
                parent_id=p.parent_id,
                father_name=father,
                grandfather_name=grandfather,
                parent_gender=pgender,
                tree_id=tree_id,
                tree_title=tree_title,
            )
        )
        for cid in reversed(p.children):
            stack.append((cid, depth + 1, p.name, father, p.gender.resolve(default_gender)))
    return results


def flatten_forest(
    trees: Iterable[FamilyTree],
    titles: Optional[Sequence[str]] = None,
    default_gender: Gender = Gender.MALE,
) -> List[ExtendedPerson]:
    """Merge the flat views of several trees into one index.

    Each member is tagged with the root id of its tree (and its title when
    given). Ids must be unique across the forest for relationship lookups to
    be meaningful; on a collision the first occurrence is kept.
    """
    seen: Set[str] = set()
    out: List[ExtendedPerson] = []
    for i, tree in enumerate(trees):
        title = titles[i] if titles is not None and i < len(titles) else None
        for m in flatten(tree, tree_id=tree.root_id, tree_title=title, default_gender=default_gender):
            if m.id in seen:
                logging.warning("flatten_forest: duplicate person id %s in tree %s, keeping first", m.id, tree.root_id)
                continue
            seen.add(m.id)
            out.append(m)
    return out


def build_index(members: Iterable[ExtendedPerson]) -> Dict[str, ExtendedPerson]:
    index: Dict[str, ExtendedPerson] = {}
    for m in members:
        index.setdefault(m.id, m)
    return index


def filter_by_gender(tree: FamilyTree, gender: Gender, default_gender: Gender = Gender.MALE) -> Optional[FamilyTree]:
    """Return the male-line or female-line view of a tree.

    The male view drops every female person together with her branch. The
    female view keeps female persons plus whichever ancestors are needed to
    reach them. Returns None when nothing is left (for the male view, when
    the root itself is female).
    """
    def is_female(pid: str) -> bool:
        return tree.nodes[pid].gender.resolve(default_gender) is Gender.FEMALE

    if gender is Gender.UNKNOWN:
        return tree

    keep: Set[str] = set()
    if gender is Gender.MALE:
        if is_female(tree.root_id):
            return None
        stack = [tree.root_id]
        while stack:
            pid = stack.pop()
            keep.add(pid)
            stack.extend(c for c in tree.nodes[pid].children if not is_female(c))
    else:
        for p in tree.walk():
            if p.id in keep or not is_female(p.id):
                continue
            cur: Optional[str] = p.id
            while cur is not None and cur not in keep:
                keep.add(cur)
                cur = tree.nodes[cur].parent_id
        if not keep:
            return None

    changed = {}
    for pid in keep:
        p = tree.nodes[pid]
        kids = tuple(c for c in p.children if c in keep)
        changed[pid] = p if kids == p.children else replace(p, children=kids)
    return FamilyTree(root_id=tree.root_id, nodes=changed, version=tree.version)

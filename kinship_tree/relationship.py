"""Kinship resolution between two members of a flattened index.

Blood relationships are found through the lowest common ancestor (LCA) of
the two persons: each person's ancestor path ``[self, parent, grandparent,
...]`` is built by following ``parent_id`` through the index, and the first
entry of A's path that also occurs in B's path is the LCA. The two indices
of the LCA are the generation distances (dist_a, dist_b) that select the
label (see `labels.kinship_label`).

Relationships through marriage are explored from A's structural parent P:
each of P's recorded spouses is resolved to a member of the index (by id
when the reference carries one, else by name), the blood path from that
spouse S to B is computed, and A is placed one generation below S. This
shifts every term one step: S's sibling becomes A's aunt/uncle (paternal or
maternal according to S's gender), S's parent becomes A's grandparent, S's
child becomes A's sibling, S itself becomes A's parent, and so on.

API:
    resolve_relationship(person_a, person_b, members, ...) -> RelationshipResult
    relationship_between(members, a_id, b_id, ...) -> RelationshipResult

"No relationship" is an ordinary result, never an exception.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
import logging

from .labels import ENGLISH, Vocabulary, kinship_label
from .models import ExtendedPerson, Gender, SpouseRef
from .search import match_by_name, normalize_name

Members = Union[Iterable[ExtendedPerson], Mapping[str, ExtendedPerson]]


@dataclass(frozen=True)
class KinshipPath:
    lca_id: str
    path_a: Tuple[ExtendedPerson, ...]
    path_b: Tuple[ExtendedPerson, ...]

    @property
    def dist_a(self) -> int:
        return len(self.path_a) - 1

    @property
    def dist_b(self) -> int:
        return len(self.path_b) - 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lca_id": self.lca_id,
            "dist_a": self.dist_a,
            "dist_b": self.dist_b,
            "path_a": [m.id for m in self.path_a],
            "path_b": [m.id for m in self.path_b],
        }


@dataclass(frozen=True)
class IndirectPath:
    parent: ExtendedPerson
    spouse: ExtendedPerson
    path: KinshipPath
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parent_id": self.parent.id,
            "spouse_id": self.spouse.id,
            "label": self.label,
            "path": self.path.to_dict(),
        }


@dataclass(frozen=True)
class RelationshipResult:
    labels: Tuple[str, ...]
    related: bool
    blood: Optional[KinshipPath] = None
    indirect: Tuple[IndirectPath, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return "; ".join(self.labels)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "labels": list(self.labels),
            "text": str(self),
            "related": self.related,
            "blood": self.blood.to_dict() if self.blood else None,
            "indirect": [p.to_dict() for p in self.indirect],
        }


def _as_index(members: Members) -> Dict[str, ExtendedPerson]:
    if isinstance(members, Mapping):
        return dict(members)
    index: Dict[str, ExtendedPerson] = {}
    for m in members:
        index.setdefault(m.id, m)
    return index


def ancestor_path(person: ExtendedPerson, index: Mapping[str, ExtendedPerson]) -> List[ExtendedPerson]:
    """Return [person, parent, grandparent, ...] up to the first person without a parent."""
    path = [person]
    seen = {person.id}
    cur = person
    while cur.parent_id:
        parent = index.get(cur.parent_id)
        if parent is None or parent.id in seen:
            break
        path.append(parent)
        seen.add(parent.id)
        cur = parent
    return path


def find_kinship_path(person_a: ExtendedPerson, person_b: ExtendedPerson, index: Mapping[str, ExtendedPerson]) -> Optional[KinshipPath]:
    path_a = ancestor_path(person_a, index)
    path_b = ancestor_path(person_b, index)
    pos_b = {m.id: j for j, m in enumerate(path_b)}
    for i, anc in enumerate(path_a):
        j = pos_b.get(anc.id)
        if j is not None:
            return KinshipPath(lca_id=anc.id, path_a=tuple(path_a[: i + 1]), path_b=tuple(path_b[: j + 1]))
    return None


def resolve_spouse(
    ref: SpouseRef,
    index: Mapping[str, ExtendedPerson],
    partner: ExtendedPerson,
    fuzzy: bool = True,
) -> Optional[ExtendedPerson]:
    """Find the member a spouse reference points at.

    An explicit id wins. Otherwise the name is matched (exact, then
    substring when `fuzzy`); this is a heuristic, and when several members
    match, one that records `partner` as its own spouse is preferred.
    """
    if ref.id and ref.id in index:
        return index[ref.id]
    candidates = [m for m in match_by_name(index.values(), ref.name, fuzzy=fuzzy) if m.id != partner.id]
    if not candidates:
        return None
    if len(candidates) > 1:
        partner_name = normalize_name(partner.person.full_name)

        def points_back(m: ExtendedPerson) -> bool:
            return any(s.id == partner.id or normalize_name(s.name) in (partner_name, normalize_name(partner.name)) for s in m.spouses)

        preferred = [m for m in candidates if points_back(m)]
        logging.debug("resolve_spouse: %d candidates for %r, %d point back", len(candidates), ref.name, len(preferred))
        if preferred:
            return preferred[0]
    return candidates[0]


def resolve_relationship(
    person_a: ExtendedPerson,
    person_b: ExtendedPerson,
    members: Members,
    vocabulary: Vocabulary = ENGLISH,
    default_gender: Gender = Gender.MALE,
    fuzzy_spouse_match: bool = True,
) -> RelationshipResult:
    """Describe person_b relative to person_a.

    `members` is the flattened index the two persons belong to; it may span
    several trees when the caller has merged their indices.
    """
    if person_a.id == person_b.id:
        path = KinshipPath(lca_id=person_a.id, path_a=(person_a,), path_b=(person_b,))
        return RelationshipResult(labels=(vocabulary.self_identity,), related=True, blood=path)

    index = _as_index(members)
    labels: List[str] = []

    blood = find_kinship_path(person_a, person_b, index)
    if blood is not None:
        labels.append(kinship_label(blood.path_a, blood.path_b, vocabulary, default_gender))

    indirect: List[IndirectPath] = []
    parent = index.get(person_a.parent_id) if person_a.parent_id else None
    if parent is not None:
        blood_label = labels[0] if labels else None
        for ref in parent.spouses:
            spouse = resolve_spouse(ref, index, parent, fuzzy=fuzzy_spouse_match)
            if spouse is None or spouse.id == person_a.id:
                logging.debug("resolve_relationship: spouse %r of %s not resolved", ref.name, parent.id)
                continue
            path = find_kinship_path(spouse, person_b, index)
            if path is None:
                continue
            # person_a sits one generation below the spouse
            base = kinship_label((person_a,) + path.path_a, path.path_b, vocabulary, default_gender)
            if base == blood_label:
                continue
            label = vocabulary.via_spouse.format(label=base, spouse=spouse.person.full_name, parent=parent.person.full_name)
            if label in labels:
                continue
            indirect.append(IndirectPath(parent=parent, spouse=spouse, path=path, label=label))
            labels.append(label)

    if not labels:
        return RelationshipResult(labels=(vocabulary.no_relation,), related=False)
    return RelationshipResult(labels=tuple(dict.fromkeys(labels)), related=True, blood=blood, indirect=tuple(indirect))


def relationship_between(members: Members, a_id: str, b_id: str, **kwargs: Any) -> RelationshipResult:
    """Id-based wrapper around `resolve_relationship`; raises KeyError for unknown ids."""
    index = _as_index(members)
    for pid in (a_id, b_id):
        if pid not in index:
            raise KeyError(pid)
    return resolve_relationship(index[a_id], index[b_id], index, **kwargs)

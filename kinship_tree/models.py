from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, Flag
from types import MappingProxyType
from typing import List, Optional, Dict, Any, Iterator, Mapping, Tuple, Union
import uuid


def new_person_id() -> str:
    return f"p-{uuid.uuid4().hex}"


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"

    @staticmethod
    def parse(value: Any) -> "Gender":
        if isinstance(value, Gender):
            return value
        if not value:
            return Gender.UNKNOWN
        txt = str(value).strip().lower()
        if txt in ("male", "m", "man"):
            return Gender.MALE
        if txt in ("female", "f", "woman"):
            return Gender.FEMALE
        if txt in ("unknown", "u", "n"):
            return Gender.UNKNOWN
        raise ValueError(f"unknown gender: {value!r}")

    def resolve(self, default: Optional["Gender"] = None) -> "Gender":
        """Return a binary gender, substituting `default` for UNKNOWN."""
        if self is Gender.UNKNOWN:
            return default if default is not None else Gender.MALE
        return self


class Status(Flag):
    NONE = 0
    DECEASED = 1
    MARTYR = 2
    SINGLE = 4
    MARRIED = 8

    @staticmethod
    def from_tags(tags: Any) -> "Status":
        if isinstance(tags, Status):
            return tags
        if not tags:
            return Status.NONE
        if isinstance(tags, str):
            tags = [tags]
        result = Status.NONE
        for tag in tags:
            key = str(tag).strip().lower()
            flag = _STATUS_TAGS.get(key)
            if flag is None:
                raise ValueError(f"unknown status tag: {tag!r}")
            result |= flag
        if Status.SINGLE in result and Status.MARRIED in result:
            raise ValueError("status cannot be both single and married")
        return result

    def to_tags(self) -> List[str]:
        return [name for name, flag in _STATUS_ORDER if flag in self]


_STATUS_ORDER = (
    ("deceased", Status.DECEASED),
    ("martyr", Status.MARTYR),
    ("single", Status.SINGLE),
    ("married", Status.MARRIED),
)

# canonical names plus the Persian tags found in legacy data files
_STATUS_TAGS = {
    "deceased": Status.DECEASED,
    "مرحوم": Status.DECEASED,
    "martyr": Status.MARTYR,
    "شهید": Status.MARTYR,
    "single": Status.SINGLE,
    "مجرد": Status.SINGLE,
    "married": Status.MARRIED,
    "متاهل": Status.MARRIED,
}


@dataclass(frozen=True)
class SpouseRef:
    name: str
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "id": self.id}

    @staticmethod
    def from_value(v: Union[str, Dict[str, Any], "SpouseRef"]) -> "SpouseRef":
        if isinstance(v, SpouseRef):
            return v
        if isinstance(v, str):
            return SpouseRef(name=v)
        return SpouseRef(name=v.get("name", ""), id=v.get("id"))


@dataclass(frozen=True)
class ChildRef:
    name: str
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "id": self.id}

    @staticmethod
    def from_value(v: Union[str, Dict[str, Any], "ChildRef"]) -> "ChildRef":
        if isinstance(v, ChildRef):
            return v
        if isinstance(v, str):
            return ChildRef(name=v)
        return ChildRef(name=v.get("name", ""), id=v.get("id"))


# optional free-text fields: attribute name -> accepted input keys
_TEXT_FIELDS = {
    "surname": ("surname",),
    "title": ("title",),
    "description": ("description",),
    "birth_date": ("birth_date", "birthDate"),
    "death_date": ("death_date", "deathDate"),
    "mobile": ("mobile",),
    "email": ("email",),
    "image_url": ("image_url", "imageUrl"),
    "origin_tree_id": ("origin_tree_id", "originalTabId"),
    "origin_tree_title": ("origin_tree_title", "originalTabTitle"),
}

MAX_SPOUSES = 2


@dataclass(frozen=True)
class Person:
    id: str = field(default_factory=new_person_id)
    name: str = ""
    surname: Optional[str] = None
    title: Optional[str] = None
    gender: Gender = Gender.UNKNOWN
    status: Status = Status.NONE
    spouses: Tuple[SpouseRef, ...] = ()
    children: Tuple[str, ...] = ()
    shared_children: Tuple[ChildRef, ...] = ()
    parent_id: Optional[str] = None
    description: Optional[str] = None
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    image_url: Optional[str] = None
    origin_tree_id: Optional[str] = None
    origin_tree_title: Optional[str] = None

    def __post_init__(self) -> None:
        if len(self.spouses) > MAX_SPOUSES:
            raise ValueError(f"person {self.id} has more than {MAX_SPOUSES} spouses")
        if Status.SINGLE in self.status and Status.MARRIED in self.status:
            raise ValueError(f"person {self.id} cannot be both single and married")

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname or ''}".strip()

    def to_dict(self) -> Dict[str, Any]:
        """Flat row representation; `children` holds ids, not nested persons."""
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "gender": self.gender.value,
            "status": self.status.to_tags(),
            "spouses": [s.to_dict() for s in self.spouses],
            "children": list(self.children),
            "shared_children": [c.to_dict() for c in self.shared_children],
            "parent_id": self.parent_id,
        }
        for attr in _TEXT_FIELDS:
            d[attr] = getattr(self, attr)
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any], parent_id: Optional[str] = None, children: Tuple[str, ...] = ()) -> "Person":
        """Build a single row from a JSON-shaped person.

        Nested `children` in `d` are ignored here; `FamilyTree.from_dict`
        walks them and passes the resulting ids.
        """
        kwargs: Dict[str, Any] = {}
        for attr, keys in _TEXT_FIELDS.items():
            for k in keys:
                if d.get(k) is not None:
                    kwargs[attr] = d[k]
                    break
        return Person(
            id=d.get("id") or new_person_id(),
            name=d.get("name", ""),
            gender=Gender.parse(d.get("gender")),
            status=Status.from_tags(d.get("status")),
            spouses=_spouses_from_dict(d),
            children=tuple(children),
            shared_children=tuple(ChildRef.from_value(c) for c in (d.get("shared_children") or d.get("sharedChildren") or [])),
            parent_id=parent_id,
            **kwargs,
        )


# legacy layout: one name/id key pair per spouse slot
_LEGACY_SPOUSE_KEYS = (("spouseName", "spouseId"), ("secondSpouseName", "secondSpouseId"))


def _spouses_from_dict(d: Dict[str, Any]) -> Tuple[SpouseRef, ...]:
    if d.get("spouses"):
        return tuple(SpouseRef.from_value(s) for s in d["spouses"])
    out = []
    for name_key, id_key in _LEGACY_SPOUSE_KEYS:
        if d.get(name_key):
            out.append(SpouseRef(name=d[name_key], id=d.get(id_key)))
    return tuple(out)


@dataclass(frozen=True)
class FamilyTree:
    """A rooted, ordered tree stored as a table of rows keyed by id.

    Instances are never modified: mutations build a new table sharing every
    unchanged row with the previous snapshot.
    """

    root_id: str
    nodes: Mapping[str, Person]
    version: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.nodes, MappingProxyType):
            object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))
        root = self.nodes.get(self.root_id)
        if root is None:
            raise ValueError(f"root {self.root_id} is not in the tree")
        if root.parent_id is not None:
            raise ValueError(f"root {self.root_id} has a parent")

    @property
    def root(self) -> Person:
        return self.nodes[self.root_id]

    def __contains__(self, pid: object) -> bool:
        return pid in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, pid: str) -> Optional[Person]:
        return self.nodes.get(pid)

    def children_of(self, pid: str) -> List[Person]:
        p = self.nodes.get(pid)
        if p is None:
            return []
        return [self.nodes[c] for c in p.children]

    def walk(self, start_id: Optional[str] = None) -> Iterator[Person]:
        """Yield the subtree at `start_id` (default: root) in pre-order."""
        start = self.root_id if start_id is None else start_id
        if start not in self.nodes:
            return
        stack = [start]
        while stack:
            p = self.nodes[stack.pop()]
            yield p
            stack.extend(reversed(p.children))

    def subtree_ids(self, pid: str) -> List[str]:
        return [p.id for p in self.walk(pid)]

    def evolve(self, changed: Dict[str, Person], removed: Tuple[str, ...] = ()) -> "FamilyTree":
        table = dict(self.nodes)
        for pid in removed:
            table.pop(pid, None)
        table.update(changed)
        return FamilyTree(root_id=self.root_id, nodes=table, version=self.version + 1)

    def to_dict(self, start_id: Optional[str] = None) -> Dict[str, Any]:
        """Nested JSON-shaped representation of the subtree at `start_id`."""
        start = self.root_id if start_id is None else start_id
        out: Dict[str, Dict[str, Any]] = {}
        # post-order so children are serialised before their parent
        for p in reversed(list(self.walk(start))):
            d = p.to_dict()
            d.pop("parent_id")
            d["children"] = [out.pop(c) for c in p.children]
            out[p.id] = d
        return out[start]

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "FamilyTree":
        table: Dict[str, Person] = {}
        root_id: Optional[str] = None
        stack: List[Tuple[Dict[str, Any], Optional[str]]] = [(d, None)]
        while stack:
            raw, parent = stack.pop()
            pid = raw.get("id") or new_person_id()
            if pid in table:
                raise ValueError(f"duplicate person id: {pid}")
            raw_kids = raw.get("children") or []
            if not all(isinstance(c, dict) for c in raw_kids):
                raise ValueError(f"children of {pid} must be person objects")
            kids = [c if c.get("id") else dict(c, id=new_person_id()) for c in raw_kids]
            table[pid] = Person.from_dict(dict(raw, id=pid), parent_id=parent, children=tuple(c["id"] for c in kids))
            if root_id is None:
                root_id = pid
            stack.extend((c, pid) for c in reversed(kids))
        return FamilyTree(root_id=root_id, nodes=table)


@dataclass(frozen=True)
class ExtendedPerson:
    person: Person
    depth: int
    parent_id: Optional[str] = None
    father_name: Optional[str] = None
    grandfather_name: Optional[str] = None
    parent_gender: Optional[Gender] = None
    tree_id: Optional[str] = None
    tree_title: Optional[str] = None

    @property
    def id(self) -> str:
        return self.person.id

    @property
    def name(self) -> str:
        return self.person.name

    @property
    def surname(self) -> Optional[str]:
        return self.person.surname

    @property
    def gender(self) -> Gender:
        return self.person.gender

    @property
    def spouses(self) -> Tuple[SpouseRef, ...]:
        return self.person.spouses

    def to_dict(self) -> Dict[str, Any]:
        d = self.person.to_dict()
        d.update({
            "depth": self.depth,
            "parent_id": self.parent_id,
            "father_name": self.father_name,
            "grandfather_name": self.grandfather_name,
            "parent_gender": self.parent_gender.value if self.parent_gender else None,
            "tree_id": self.tree_id,
            "tree_title": self.tree_title,
        })
        return d


def coerce_fields(fields: Dict[str, Any], current: Optional[Person] = None) -> Dict[str, Any]:
    """Convert JSON-shaped field values to the types `Person` stores.

    Legacy per-slot spouse keys are folded into `spouses`, starting from
    `current`'s spouses; a slot whose name and id both end up empty is
    dropped.
    """
    out = dict(fields)
    if "sharedChildren" in out:
        out["shared_children"] = out.pop("sharedChildren")
    if "gender" in out:
        out["gender"] = Gender.parse(out["gender"])
    if "status" in out:
        out["status"] = Status.from_tags(out["status"])
    if "spouses" in out:
        out["spouses"] = tuple(SpouseRef.from_value(s) for s in (out["spouses"] or []))
    if any(k in out for pair in _LEGACY_SPOUSE_KEYS for k in pair):
        base = out.get("spouses", current.spouses if current is not None else ())
        slots: List[Optional[SpouseRef]] = list(base) + [None] * (len(_LEGACY_SPOUSE_KEYS) - len(base))
        for i, (name_key, id_key) in enumerate(_LEGACY_SPOUSE_KEYS):
            if name_key not in out and id_key not in out:
                continue
            old = slots[i] or SpouseRef(name="")
            name = out.pop(name_key, old.name) or ""
            sid = out.pop(id_key, old.id) or None
            slots[i] = SpouseRef(name=name, id=sid) if (name or sid) else None
        out["spouses"] = tuple(s for s in slots if s is not None)
    if "shared_children" in out:
        out["shared_children"] = tuple(ChildRef.from_value(c) for c in (out["shared_children"] or []))
    for attr, keys in _TEXT_FIELDS.items():
        for k in keys[1:]:
            if k in out:
                out[attr] = out.pop(k)
    return out

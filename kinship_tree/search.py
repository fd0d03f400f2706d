from __future__ import annotations
from typing import Iterable, List, Optional, Tuple
from unicodedata import combining, normalize as _uni_norm

from .models import ExtendedPerson

# Arabic code points commonly typed in place of their Persian forms
_FOLD = str.maketrans({"\u064a": "\u06cc", "\u0643": "\u06a9", "\u0649": "\u06cc", "\u200c": " "})


def normalize_name(s: Optional[str]) -> str:
    if not s:
        return ""
    nf = _uni_norm("NFKD", s.translate(_FOLD))
    stripped = "".join(c for c in nf if not combining(c))
    return " ".join(_uni_norm("NFKC", stripped).casefold().split())


def _member_search_fields(m: ExtendedPerson) -> List[Tuple[str, str]]:
    """Return list of (field_name, normalized_text) for searchable fields."""
    return [
        ("name", normalize_name(m.name)),
        ("surname", normalize_name(m.surname)),
        ("fullname", normalize_name(m.person.full_name)),
        ("title", normalize_name(m.person.title)),
    ]


def search_members(members: Iterable[ExtendedPerson], q: str, limit: int = 20) -> List[ExtendedPerson]:
    """Search members by query string q. Returns members ordered by relevance."""
    if not q:
        return []
    tokens = normalize_name(q).split()
    if not tokens:
        return []

    scored = []
    for order, m in enumerate(members):
        fields = _member_search_fields(m)
        score = 0
        matched_all = True
        for tok in tokens:
            best = 0
            for fname, txt in fields:
                if not txt:
                    continue
                if txt == tok:
                    s = 100
                elif tok in txt.split():
                    s = 70
                elif txt.startswith(tok):
                    s = 50
                elif tok in txt:
                    s = 20
                else:
                    s = 0
                # boost matches in surname/name/fullname
                if s and fname == "surname":
                    s += 30
                if s and fname == "name":
                    s += 20
                if s and fname == "fullname":
                    s += 10
                best = max(best, s)
            if not best:
                matched_all = False
                break
            score += best
        if matched_all and score > 0:
            scored.append((-score, order, m))

    scored.sort(key=lambda x: (x[0], x[1]))
    return [m for _, _, m in scored[:limit]]


def match_by_name(members: Iterable[ExtendedPerson], name: str, fuzzy: bool = True) -> List[ExtendedPerson]:
    """Members whose name or full name equals `name`; failing that, contains it.

    Matching is on normalized text. Several people can share a name, so the
    result is a best-effort candidate list in index order, not an identity.
    """
    target = normalize_name(name)
    if not target:
        return []
    members = list(members)
    exact = [m for m in members if target in (normalize_name(m.name), normalize_name(m.person.full_name))]
    if exact or not fuzzy:
        return exact
    out = []
    for m in members:
        full = normalize_name(m.person.full_name)
        if full and (target in full or full in target):
            out.append(m)
    return out

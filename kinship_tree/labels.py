"""Kinship vocabulary and label rendering.

APIs:
    kinship_label(path_a, path_b, vocabulary=ENGLISH, default_gender=Gender.MALE) -> str
    identity_label(member, vocabulary=ENGLISH, default_gender=Gender.MALE) -> str
    get_vocabulary(code) -> Vocabulary

`path_a` and `path_b` run from each person up to, and including, their
lowest common ancestor, so ``len(path) - 1`` is the generation distance to
it. The label names person B relative to person A. For example:
    - dist_a=0, dist_b=1 : B is A's son / daughter
    - dist_a=1, dist_b=0 : B is A's father / mother
    - dist_a=1, dist_b=1 : brother / sister
    - dist_a=2, dist_b=1 : paternal or maternal uncle / aunt, decided by the
      gender of A's parent
    - anything further is spelled out generation by generation, e.g.
      dist_a=2, dist_b=2 -> "son of paternal uncle" (a first cousin) and
      dist_a=3, dist_b=1 -> "maternal aunt of father".

Persons whose gender is unknown are treated as `default_gender`.
"""
from dataclasses import dataclass
from typing import Dict, Sequence

from .models import ExtendedPerson, Gender


@dataclass(frozen=True)
class Vocabulary:
    code: str
    self_identity: str
    no_relation: str
    son: str
    daughter: str
    grandson: str
    granddaughter: str
    descendant: str  # formatted with n
    father: str
    mother: str
    grandfather: str
    grandmother: str
    ancestor: str  # formatted with n
    brother: str
    sister: str
    paternal_uncle: str
    paternal_aunt: str
    maternal_uncle: str
    maternal_aunt: str
    son_of: str
    daughter_of: str
    of_father: str
    of_mother: str
    via_spouse: str  # formatted with label, spouse, parent
    child_of_male: str
    child_of_female: str
    grandchild_of: str
    list_separator: str


ENGLISH = Vocabulary(
    code="en",
    self_identity="same person",
    no_relation="no identifiable relationship",
    son="son",
    daughter="daughter",
    grandson="grandson",
    granddaughter="granddaughter",
    descendant="descendant, {n} generations",
    father="father",
    mother="mother",
    grandfather="grandfather",
    grandmother="grandmother",
    ancestor="ancestor, {n} generations back",
    brother="brother",
    sister="sister",
    paternal_uncle="paternal uncle",
    paternal_aunt="paternal aunt",
    maternal_uncle="maternal uncle",
    maternal_aunt="maternal aunt",
    son_of="son of ",
    daughter_of="daughter of ",
    of_father=" of father",
    of_mother=" of mother",
    via_spouse="{label} (through {spouse}, spouse of {parent})",
    child_of_male="son of",
    child_of_female="daughter of",
    grandchild_of="grandchild of",
    list_separator=", ",
)

PERSIAN = Vocabulary(
    code="fa",
    self_identity="این خود شخص است!",
    no_relation="نسبت فامیلی مشخصی یافت نشد.",
    son="پسر",
    daughter="دختر",
    grandson="نوه (دختری/پسری)",
    granddaughter="نوه (دختری/پسری)",
    descendant="نوه (نتیجه/نبیره - نسل {n}م)",
    father="پدر",
    mother="مادر",
    grandfather="پدربزرگ",
    grandmother="مادربزرگ",
    ancestor="جد ({n} نسل قبل)",
    brother="برادر",
    sister="خواهر",
    paternal_uncle="عمو",
    paternal_aunt="عمه",
    maternal_uncle="دایی",
    maternal_aunt="خاله",
    son_of="پسرِ ",
    daughter_of="دخترِ ",
    of_father="ِ پدر",
    of_mother="ِ مادر",
    via_spouse="{label} (از طریق {spouse}، همسر {parent})",
    child_of_male="پسرِ",
    child_of_female="دخترِ",
    grandchild_of="نوهٔ",
    list_separator="، ",
)

VOCABULARIES: Dict[str, Vocabulary] = {v.code: v for v in (ENGLISH, PERSIAN)}


def get_vocabulary(code: str) -> Vocabulary:
    try:
        return VOCABULARIES[code]
    except KeyError:
        raise ValueError(f"unknown language: {code!r} (expected one of {sorted(VOCABULARIES)})") from None


def _aunt_uncle(vocab: Vocabulary, paternal: bool, female: bool) -> str:
    if paternal:
        return vocab.paternal_aunt if female else vocab.paternal_uncle
    return vocab.maternal_aunt if female else vocab.maternal_uncle


def kinship_label(path_a: Sequence, path_b: Sequence, vocabulary: Vocabulary = ENGLISH, default_gender: Gender = Gender.MALE) -> str:
    dist_a = len(path_a) - 1
    dist_b = len(path_b) - 1
    if dist_a < 0 or dist_b < 0:
        raise ValueError("paths must contain at least the person itself")

    def female(p) -> bool:
        return p.gender.resolve(default_gender) is Gender.FEMALE

    v = vocabulary
    b_female = female(path_b[0])

    if dist_a == 0 and dist_b == 0:
        return v.self_identity
    if dist_a == 0:
        if dist_b == 1:
            return v.daughter if b_female else v.son
        if dist_b == 2:
            return v.granddaughter if b_female else v.grandson
        return v.descendant.format(n=dist_b)
    if dist_b == 0:
        if dist_a == 1:
            return v.mother if b_female else v.father
        if dist_a == 2:
            return v.grandmother if b_female else v.grandfather
        return v.ancestor.format(n=dist_a)
    if dist_a == 1 and dist_b == 1:
        return v.sister if b_female else v.brother
    if dist_a == 2 and dist_b == 1:
        return _aunt_uncle(v, paternal=not female(path_a[1]), female=b_female)

    # B's side: one qualifier per generation below the LCA's child
    prefix = "".join(v.daughter_of if female(path_b[i]) else v.son_of for i in range(dist_b - 1))
    b_root = path_b[dist_b - 1]
    if dist_a == 1:
        return prefix + (v.sister if female(b_root) else v.brother)

    base = _aunt_uncle(v, paternal=not female(path_a[dist_a - 1]), female=female(b_root))
    # A's side: walk from just below the LCA's child back down to A's parent
    suffix = "".join(v.of_mother if female(path_a[k]) else v.of_father for k in range(dist_a - 2, 0, -1))
    return prefix + base + suffix


def identity_label(member: ExtendedPerson, vocabulary: Vocabulary = ENGLISH, default_gender: Gender = Gender.MALE) -> str:
    """Name plus nearest ancestors, for telling same-named people apart."""
    label = member.person.full_name
    if not member.father_name:
        return label
    female = member.gender.resolve(default_gender) is Gender.FEMALE
    rel = vocabulary.child_of_female if female else vocabulary.child_of_male
    label += f" ({rel} {member.father_name}"
    if member.grandfather_name:
        label += f"{vocabulary.list_separator}{vocabulary.grandchild_of} {member.grandfather_name}"
    return label + ")"

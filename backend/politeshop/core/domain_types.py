"""Domain Types: plain records produced by the crawler and hypermedia vocabulary.

Invariants:
    - All identifiers are strings taken from the last path segment of a canonical link
    - Unit -> Lesson -> Activity is a strict tree; each child records its parent id
    - Module references its Semester by id, User references its School by id
    - Records are frozen: created by the parser, never mutated afterwards

Design Decisions:
    - Frozen dataclasses over ORM objects: the crawler stays free of DB concerns,
      the store maps records to rows (ADR: core never imports db/)
    - Children held in tuples so a parsed tree is hashable and immutable
    - Rel and class vocabularies kept as tuples: matching is exact sequence equality
"""

from dataclasses import dataclass, field


# ─── Records ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class School:
    id: str
    name: str


@dataclass(frozen=True)
class User:
    id: str
    name: str
    school: str = ""


@dataclass(frozen=True)
class Semester:
    id: str
    name: str


@dataclass(frozen=True)
class Module:
    id: str
    name: str
    code: str
    semester_id: str


@dataclass(frozen=True)
class Activity:
    id: str
    lesson_id: str
    title: str


@dataclass(frozen=True)
class Lesson:
    id: str
    unit_id: str
    title: str
    transparent: bool = False
    activities: tuple[Activity, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Unit:
    id: str
    module_id: str
    title: str
    lessons: tuple[Lesson, ...] = field(default_factory=tuple)


# ─── Hypermedia Vocabulary ───────────────────────────────────────

REL_SELF = ("self",)
REL_SELF_DESCRIBES = ("self", "describes")
REL_UP = ("up",)
REL_ORGANIZATION = ("https://api.brightspace.com/rels/organization",)
REL_PARENT_SEMESTER = ("https://api.brightspace.com/rels/parent-semester",)

# ADR: order-sensitive on purpose; upstream tag order is assumed stable
LESSON_CLASSES = ("release-condition-fix", "sequence", "sequence-description")
ACTIVITY_CLASSES = ("release-condition-fix", "sequenced-activity")

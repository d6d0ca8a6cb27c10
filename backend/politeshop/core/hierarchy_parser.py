"""Hierarchy Parser: Siren entities -> School, Semester, Module, Unit, Lesson, Activity.

Invariants:
    - Node id = last path segment of the ["self", "describes"] link
    - Parent id = last path segment of the ["up"] link (required in this schema version)
    - Title comes from the string `title` property
    - Missing id link, parent link or title fails the node AND its whole subtree;
      no partial result is ever returned
    - Lessons are children whose class list == LESSON_CLASSES exactly, activities
      == ACTIVITY_CLASSES exactly; anything else (including reordered tags) is skipped
    - Pure: never fetches, the sequence document is already fully embedded

Design Decisions:
    - Depth-first recursion over an explicit stack: trees are 3 levels deep
    - `where` strings thread the node kind into MissingElementError for tracing
"""

from politeshop.core.domain_types import (
    ACTIVITY_CLASSES, LESSON_CLASSES, REL_PARENT_SEMESTER, REL_SELF,
    REL_SELF_DESCRIBES, REL_UP,
    Activity, Lesson, Module, School, Semester, Unit,
)
from politeshop.core.errors import MissingElementError
from politeshop.core.urls import first_subdomain, last_path_component
from politeshop.schemas.siren import Entity


def id_from_href(href: str, what: str, where: str) -> str:
    """Last path segment of href, or MissingElementError if the path is empty."""
    segment = last_path_component(href)
    if segment is None:
        raise MissingElementError("path segment", what, where)
    return segment


def _node_id(ent: Entity, where: str) -> str:
    link = ent.require_link(*REL_SELF_DESCRIBES, where=where)
    return id_from_href(link.href, "self+describes", where)


def _parent_id(ent: Entity, where: str) -> str:
    link = ent.require_link(*REL_UP, where=where)
    return id_from_href(link.href, "up", where)


# ─── Sequences ───────────────────────────────────────────────────

def parse_activity(ent: Entity) -> Activity:
    where = "activity entity"
    return Activity(
        id=_node_id(ent, where),
        lesson_id=_parent_id(ent, where),
        title=ent.require_string_property("title", where),
    )


def parse_lesson(ent: Entity) -> Lesson:
    where = "lesson entity"
    lesson_id = _node_id(ent, where)
    unit_id = _parent_id(ent, where)
    title = ent.require_string_property("title", where)

    activities = tuple(
        parse_activity(sub) for sub in ent.entities
        if sub.class_is(*ACTIVITY_CLASSES)
    )
    return Lesson(
        id=lesson_id,
        unit_id=unit_id,
        title=title,
        transparent=False,
        activities=activities,
    )


def parse_unit(ent: Entity) -> Unit:
    where = "unit entity"
    unit_id = _node_id(ent, where)
    module_id = _parent_id(ent, where)
    title = ent.require_string_property("title", where)

    lessons = tuple(
        parse_lesson(sub) for sub in ent.entities
        if sub.class_is(*LESSON_CLASSES)
    )
    return Unit(id=unit_id, module_id=module_id, title=title, lessons=lessons)


def parse_sequence(ent: Entity) -> list[Unit]:
    """Every embedded entity of a module's sequence document is a Unit."""
    return [parse_unit(sub) for sub in ent.entities]


# ─── Organizations ───────────────────────────────────────────────

def parse_school(org: Entity) -> School:
    where = "organization entity"
    name = org.require_string_property("name", where)
    link = org.require_link(*REL_SELF, where=where)
    return School(id=id_from_href(link.href, "self", where), name=name)


def parse_module(org_href: str, org: Entity) -> Module:
    """Build a Module from an organization entity and the URL it was fetched from."""
    where = "organization entity"
    # e.g. https://{tenant}.organizations.api.brightspace.com/332340?localeId=3
    semester_link = org.require_link(*REL_PARENT_SEMESTER, where=where)
    return Module(
        id=id_from_href(org_href, "organization href", where),
        name=org.require_string_property("name", where),
        code=org.require_string_property("code", where),
        semester_id=id_from_href(semester_link.href, "parent-semester", where),
    )


# ─── Semesters ───────────────────────────────────────────────────

def parse_semesters(ent: Entity) -> list[Semester]:
    """Each ACTION (not link) on the semester-search document is one semester."""
    return [
        # Titles sometimes carry leading spaces
        Semester(id=action.name, name=action.title.strip())
        for action in ent.actions
    ]


def tenant_id_from_semesters(ent: Entity) -> str | None:
    """Tenant id from the host of the first semester action's URL, if any."""
    if not ent.actions:
        return None
    return first_subdomain(ent.actions[0].href)

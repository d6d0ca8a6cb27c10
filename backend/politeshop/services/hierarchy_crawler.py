"""Hierarchy Crawler: walks the Brightspace hypermedia graph for one verified user.

Invariants:
    - Every function takes an already-resolved PolitemallSession and never mutates it
    - resolve_tenant() is the only place a tenant id may be discovered and it returns
      a NEW session; it must complete before get_modules() fans out
    - get_modules(): one task per enrollment, all concurrent, first error wins and the
      whole call fails with that single error (siblings cancelled, results discarded)
    - Module order is NOT guaranteed to follow enrollment order
    - get_module_units() issues exactly one fetch; the rest is pure parsing

Design Decisions:
    - asyncio.TaskGroup over gather(): structured fan-out that cancels in-flight
      siblings on failure (ADR: no orphaned requests after an aborted crawl)
    - ExceptionGroup unwrapped to its first member so callers see one typed
      PoliteShopError, same as every other crawler call
"""

import asyncio
import logging
from dataclasses import replace

from politeshop.core.domain_types import REL_ORGANIZATION, Module, School, Semester, Unit, User
from politeshop.core.errors import MissingCredentialsError, MissingElementError
from politeshop.core.hierarchy_parser import (
    parse_module, parse_school, parse_semesters, parse_sequence,
    tenant_id_from_semesters,
)
from politeshop.infrastructure.politemall_client import PolitemallSession

logger = logging.getLogger(__name__)

SEQUENCE_QUERY = "deepEmbedEntities=1&embedDepth=1&filterOnDatesAndDepth=0"


def _require_user(session: PolitemallSession) -> str:
    if not session.user_id:
        raise MissingCredentialsError("verified user id")
    return session.user_id


def _require_tenant(session: PolitemallSession) -> str:
    if not session.tenant_id:
        raise MissingCredentialsError("tenantid")
    return session.tenant_id


def enrollments_href(session: PolitemallSession) -> str:
    _require_tenant(session)
    return session.hypermedia_url("enrollments", f"/users/{_require_user(session)}")


def semesters_href(session: PolitemallSession) -> str:
    return (
        f"{session.site_base_url}/d2l/api/le/manageCourses/courses-searches/"
        f"{_require_user(session)}/BySemester?desc=1"
    )


def sequence_href(session: PolitemallSession, module_id: str) -> str:
    _require_tenant(session)
    return session.hypermedia_url("sequences", f"/{module_id}?{SEQUENCE_QUERY}")


# ─── User + School ───────────────────────────────────────────────

async def get_user_and_school(session: PolitemallSession) -> tuple[User, School]:
    """Fetch the user's school via the enrollments graph, and the user via whoami."""
    user_ent = await session.fetch_entity(enrollments_href(session))
    org_link = user_ent.require_link(*REL_ORGANIZATION, where="user entity")

    org_ent = await session.fetch_entity(org_link.href)
    school = parse_school(org_ent)

    user = await session.who_am_i()
    return replace(user, school=school.id), school


# ─── Semesters ───────────────────────────────────────────────────

async def get_semesters(session: PolitemallSession) -> list[Semester]:
    ent = await session.fetch_entity(semesters_href(session))
    return parse_semesters(ent)


async def resolve_tenant(session: PolitemallSession) -> PolitemallSession:
    """Return a session with a tenant id, discovering it from semesters if needed."""
    if session.tenant_id:
        return session
    ent = await session.fetch_entity(semesters_href(session))
    tenant_id = tenant_id_from_semesters(ent)
    if not tenant_id:
        raise MissingElementError("action", "semester", "semester search entity")
    logger.info(
        "Resolved tenant id from semester actions",
        extra={"tenant_id": tenant_id, "user_id": session.user_id},
    )
    return session.with_tenant_id(tenant_id)


# ─── Modules ─────────────────────────────────────────────────────

async def get_module_from_enrollment(
    session: PolitemallSession, enrollment_href: str,
) -> Module:
    """enrollment -> organization link -> organization entity -> Module."""
    enrollment = await session.fetch_entity(enrollment_href)
    org_link = enrollment.require_link(*REL_ORGANIZATION, where="enrollment entity")
    org = await session.fetch_entity(org_link.href)
    return parse_module(org_link.href, org)


async def get_modules(session: PolitemallSession) -> list[Module]:
    """Fetch every module the user is enrolled in, concurrently."""
    root = await session.fetch_entity(enrollments_href(session))
    hrefs = []
    for sub in root.entities:
        if not sub.href:
            raise MissingElementError("href", "enrollment", "enrollments entity")
        hrefs.append(sub.href)

    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [
                tg.create_task(get_module_from_enrollment(session, href))
                for href in hrefs
            ]
    except ExceptionGroup as eg:
        first = eg.exceptions[0]
        logger.warning(
            f"Module fetch aborted: {first}",
            extra={"user_id": session.user_id, "tenant_id": session.tenant_id},
        )
        raise first

    modules = [task.result() for task in tasks]
    logger.debug(
        f"Fetched {len(modules)} modules",
        extra={"user_id": session.user_id},
    )
    return modules


# ─── Units / Lessons / Activities ────────────────────────────────

async def get_module_units(session: PolitemallSession, module_id: str) -> list[Unit]:
    ent = await session.fetch_entity(sequence_href(session, module_id))
    return parse_sequence(ent)

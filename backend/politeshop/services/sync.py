"""Sync Service: crawl one user's hierarchy and hand the records to the store.

Invariants:
    - Tenant resolution happens before the concurrent module fetch
    - Write order follows foreign keys: school -> user -> semesters -> modules
    - Nothing is written for a section whose crawl failed; earlier sections stay written
    - The users row and the user_modules links share the verified session.user_id,
      whatever id whoami reports
"""

import logging
from dataclasses import dataclass, replace

from politeshop.infrastructure.politemall_client import PolitemallSession
from politeshop.services import hierarchy_crawler as crawler
from politeshop.services.store import PoliteStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    user_id: str
    school_id: str
    semesters: int
    modules: int


async def sync_user(session: PolitemallSession, store: PoliteStore) -> SyncResult:
    session = await crawler.resolve_tenant(session)

    user, school = await crawler.get_user_and_school(session)
    if user.id != session.user_id:
        logger.warning(
            f"whoami identifier {user.id} differs from verified user id",
            extra={"user_id": session.user_id},
        )
        # Every row is keyed by the verified id
        user = replace(user, id=session.user_id)
    await store.upsert_school(school)
    await store.upsert_user(user)

    semesters = await crawler.get_semesters(session)
    await store.upsert_semesters(semesters)

    modules = await crawler.get_modules(session)
    await store.upsert_user_modules(session.user_id, modules)

    logger.info(
        f"Synced {len(semesters)} semesters and {len(modules)} modules",
        extra={"user_id": session.user_id, "tenant_id": session.tenant_id},
    )
    return SyncResult(
        user_id=session.user_id,
        school_id=school.id,
        semesters=len(semesters),
        modules=len(modules),
    )

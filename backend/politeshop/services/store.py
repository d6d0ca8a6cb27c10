"""POLITEShop Store: upsert/query interface over the crawl result tables.

Invariants:
    - Every upsert is a single INSERT ... ON CONFLICT statement per table:
      concurrent syncs of users sharing a module never race on the same row
    - Conflicting rows are updated (records) or skipped (user-module links)
    - upsert_user_modules writes modules and associations in ONE transaction
    - Reads return domain records (core/domain_types.py), never ORM rows
    - The store never talks to upstream APIs; it only persists crawler output

Design Decisions:
    - Dialect insert (postgresql / sqlite) chosen from the session's bind, so
      production and the SQLite used in tests run the same conflict clause
    - Caller supplies the AsyncSession (get_db / db_manager.session()), so rollback
      and DatabaseError mapping stay in infrastructure/database.py
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from politeshop.core.domain_types import Module, School, Semester, User
from politeshop.core.errors import ConfigurationError
from politeshop.models.module import Module as ModuleRow
from politeshop.models.school import School as SchoolRow
from politeshop.models.semester import Semester as SemesterRow
from politeshop.models.user import User as UserRow
from politeshop.models.user_module import UserModule

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PoliteStore:
    """Persistence collaborator consumed by the sync service and routes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self, model):
        dialect = self.db.get_bind().dialect.name
        try:
            return _INSERTS[dialect](model)
        except KeyError:
            raise ConfigurationError(
                "database_url", f"unsupported database dialect {dialect!r}",
            ) from None

    async def _upsert(self, model, rows: list[dict], update: tuple[str, ...]) -> None:
        # One row per id: a statement may not update the same row twice
        rows = list({row["id"]: row for row in rows}.values())
        if not rows:
            return
        stmt = self._insert(model).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={col: stmt.excluded[col] for col in update},
        )
        await self.db.execute(stmt)

    async def upsert_school(self, school: School) -> None:
        await self._upsert(
            SchoolRow, [{"id": school.id, "name": school.name, "updated_at": _now()}],
            ("name", "updated_at"),
        )
        await self.db.commit()

    async def upsert_user(self, user: User) -> None:
        await self._upsert(
            UserRow, [{
                "id": user.id, "name": user.name, "school": user.school,
                "updated_at": _now(),
            }],
            ("name", "school", "updated_at"),
        )
        await self.db.commit()

    async def upsert_semesters(self, semesters: list[Semester]) -> None:
        await self._upsert(
            SemesterRow, [{"id": s.id, "name": s.name} for s in semesters],
            ("name",),
        )
        await self.db.commit()

    async def upsert_modules(self, modules: list[Module]) -> None:
        await self._upsert_modules(modules)
        await self.db.commit()

    async def upsert_user_modules(self, user_id: str, modules: list[Module]) -> None:
        """Upsert modules and link them to the user atomically."""
        await self._upsert_modules(modules)
        if modules:
            module_ids = dict.fromkeys(mod.id for mod in modules)
            links = self._insert(UserModule).values(
                [{"user_id": user_id, "module_id": mod_id} for mod_id in module_ids],
            )
            await self.db.execute(links.on_conflict_do_nothing(
                index_elements=["user_id", "module_id"],
            ))
        await self.db.commit()
        logger.debug(
            f"Linked {len(modules)} modules", extra={"user_id": user_id},
        )

    async def _upsert_modules(self, modules: list[Module]) -> None:
        await self._upsert(
            ModuleRow,
            [
                {"id": m.id, "name": m.name, "code": m.code, "semester": m.semester_id}
                for m in modules
            ],
            ("name", "code", "semester"),
        )

    async def get_user_modules(self, user_id: str) -> list[Module]:
        """Modules already known for this user."""
        result = await self.db.execute(
            select(ModuleRow)
            .join(UserModule, UserModule.module_id == ModuleRow.id)
            .where(UserModule.user_id == user_id)
            .order_by(ModuleRow.id)
            .execution_options(populate_existing=True),
        )
        return [
            Module(id=row.id, name=row.name, code=row.code, semester_id=row.semester)
            for row in result.scalars()
        ]

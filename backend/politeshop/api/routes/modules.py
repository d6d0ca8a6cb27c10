"""Module Routes: known modules from the store, live unit trees from upstream.

Invariants:
    - GET /modules reads only the store (no upstream calls)
    - GET /modules/{id}/units issues exactly one sequence fetch
"""

import logging

from fastapi import APIRouter, Depends

from politeshop.api.dependencies import get_politemall_session, get_store
from politeshop.infrastructure.politemall_client import PolitemallSession
from politeshop.schemas.api import ModuleResponse, UnitResponse
from politeshop.services import hierarchy_crawler as crawler
from politeshop.services.store import PoliteStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/modules", tags=["modules"])


@router.get("", response_model=list[ModuleResponse])
async def list_modules(
    session: PolitemallSession = Depends(get_politemall_session),
    store: PoliteStore = Depends(get_store),
):
    """Modules already known for the verified user."""
    modules = await store.get_user_modules(session.user_id)
    return [ModuleResponse.model_validate(m) for m in modules]


@router.get("/{module_id}/units", response_model=list[UnitResponse])
async def list_units(
    module_id: str,
    session: PolitemallSession = Depends(get_politemall_session),
):
    """Units, lessons and activities of one module."""
    units = await crawler.get_module_units(session, module_id)
    logger.debug(
        f"Parsed {len(units)} units",
        extra={"module_id": module_id, "user_id": session.user_id},
    )
    return [UnitResponse.model_validate(u) for u in units]

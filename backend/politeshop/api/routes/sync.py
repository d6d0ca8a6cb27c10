"""Sync Route: crawl the verified user's hierarchy into the store.

Invariants:
    - Requires a fully resolved PolitemallSession (cookies + tokens)
    - Upstream failures surface as 502 via the PoliteShopError handler
"""

import logging

from fastapi import APIRouter, Depends

from politeshop.api.dependencies import get_politemall_session, get_store
from politeshop.infrastructure.politemall_client import PolitemallSession
from politeshop.schemas.api import SyncResponse
from politeshop.services.store import PoliteStore
from politeshop.services.sync import sync_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sync", tags=["sync"])


@router.post("", response_model=SyncResponse)
async def sync(
    session: PolitemallSession = Depends(get_politemall_session),
    store: PoliteStore = Depends(get_store),
):
    """Crawl user, school, semesters and modules and persist them."""
    result = await sync_user(session, store)
    return SyncResponse.model_validate(result)

"""
Inventory endpoints

GET /api/inventory/{steam_id}            marketable items (15 min cache, ?force=true bypasses it)
GET /api/inventory/{steam_id}/snapshot   last stored snapshot, never contacts Steam
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from skinmarket.core.errors import FailureCategory, NoDataAvailable
from skinmarket.schemas.steam import InventoryItem, InventorySnapshotOut
from skinmarket.services.inventory import InventorySyncService

logger = logging.getLogger(__name__)
router = APIRouter()

_STATUS_BY_CATEGORY = {
    FailureCategory.RATE_LIMITED: 429,
    FailureCategory.ACCESS_DENIED: 403,
    FailureCategory.BAD_REQUEST: 400,
    FailureCategory.TRANSIENT: 502,
}

_HINTS = {
    FailureCategory.RATE_LIMITED: "Steam is rate limiting requests, try again later.",
    FailureCategory.ACCESS_DENIED: "Inventory is private. Make it public in the Steam privacy settings.",
    FailureCategory.BAD_REQUEST: "Steam rejected the request. Check the Steam ID and that the inventory is public.",
    FailureCategory.TRANSIENT: "Steam is unreachable right now.",
}


def get_inventory_service(request: Request) -> InventorySyncService:
    return request.app.state.inventory_service


def _steam_id_or_400(steam_id: str) -> str:
    steam_id = steam_id.strip()
    if not steam_id:
        raise HTTPException(status_code=400, detail="Steam ID is required")
    return steam_id


@router.get("/{steam_id}", response_model=List[InventoryItem])
async def get_inventory(
    steam_id: str,
    force: bool = Query(False, description="Skip the 15 minute cache and fetch from Steam"),
    service: InventorySyncService = Depends(get_inventory_service),
):
    """
    Marketable CS2 items of a Steam account. Fetched items are also
    added to the item catalog.
    """
    steam_id = _steam_id_or_400(steam_id)
    try:
        items = await service.sync(steam_id, force_refresh=force)
    except NoDataAvailable as e:
        raise HTTPException(
            status_code=_STATUS_BY_CATEGORY[e.category],
            detail={"category": e.category.value, "message": _HINTS[e.category], "source": e.message},
        )
    logger.info("get_inventory: %s  items=%d", steam_id, len(items))
    return items


@router.get("/{steam_id}/snapshot", response_model=InventorySnapshotOut)
async def get_snapshot(
    steam_id: str,
    service: InventorySyncService = Depends(get_inventory_service),
):
    snapshot = await service.cached(_steam_id_or_400(steam_id))
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"No stored inventory for {steam_id}")
    return InventorySnapshotOut(steam_id=snapshot.steam_id, updated_at=snapshot.updated_at, items=snapshot.items)

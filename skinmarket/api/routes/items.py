"""
Item catalog endpoints

GET /api/items                      list catalog items (search, type filter, paging)
GET /api/items/count                number of catalog items
GET /api/items/{market_hash_name}   one catalog item
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from skinmarket.models.db_models import Item
from skinmarket.services.catalog import CatalogStore

router = APIRouter()


def get_catalog_store() -> CatalogStore:
    return CatalogStore()


def _item_out(r: Item) -> dict:
    return {
        "id": r.id,
        "market_hash_name": r.market_hash_name,
        "name": r.name,
        "image_url": r.image_url,
        "type": r.type,
        "rarity": r.rarity,
        "marketable": r.marketable,
        "tradable": r.tradable,
        "updated_at": r.updated_at,
    }


@router.get("/")
async def list_items(
    q: Optional[str] = Query(None, description="Case-insensitive match on name or market_hash_name"),
    type: Optional[str] = Query(None, description="Exact item type, e.g. 'Classified Rifle'"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    store: CatalogStore = Depends(get_catalog_store),
):
    """Items collected from synced inventories"""
    total, rows = await store.search(q=q, item_type=type, limit=limit, offset=offset)
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "data": [_item_out(r) for r in rows],
    }


@router.get("/count")
async def count_items(store: CatalogStore = Depends(get_catalog_store)):
    return {"count": await store.count()}


@router.get("/{market_hash_name:path}")
async def get_item(market_hash_name: str, store: CatalogStore = Depends(get_catalog_store)):
    item = await store.get(market_hash_name)
    if not item:
        raise HTTPException(status_code=404, detail=f"Item not found: {market_hash_name}")
    return _item_out(item)

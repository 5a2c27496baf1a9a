"""
Item catalog (table item)

Every inventory sync feeds the descriptions it saw into CatalogReconciler,
so the catalog grows with each account that is synced. Entries are upserted
by market_hash_name, never deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skinmarket.core.database import AsyncSessionLocal
from skinmarket.models.db_models import Item
from skinmarket.schemas.steam import SteamDescription
from skinmarket.services.snapshots import utcnow
from skinmarket.services.steam import build_image_url

logger = logging.getLogger(__name__)


@dataclass
class CatalogEntry:
    market_hash_name: str
    name: str
    image_url: str
    icon_url: str
    type: Optional[str]
    rarity: Optional[str]
    marketable: int
    tradable: int

    @classmethod
    def from_description(cls, desc: SteamDescription, base_url: Optional[str] = None) -> "CatalogEntry":
        icon = desc.icon_url or desc.icon_url_large or ""
        return cls(
            market_hash_name=desc.catalog_key,
            name=desc.catalog_key,
            image_url=build_image_url(icon, base_url),
            icon_url=icon,
            type=desc.type or None,
            rarity=desc.rarity or None,
            marketable=desc.marketable,
            tradable=desc.tradable,
        )


class CatalogStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal):
        self._session_factory = session_factory

    async def upsert(self, entry: CatalogEntry, now: Optional[datetime] = None) -> None:
        now = now or utcnow()
        stmt = sqlite_insert(Item).values(
            market_hash_name=entry.market_hash_name,
            name=entry.name,
            image_url=entry.image_url,
            icon_url=entry.icon_url,
            type=entry.type,
            rarity=entry.rarity,
            marketable=entry.marketable,
            tradable=entry.tradable,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["market_hash_name"],
            set_={
                "name": stmt.excluded["name"],
                "image_url": stmt.excluded["image_url"],
                "icon_url": stmt.excluded["icon_url"],
                "type": stmt.excluded["type"],
                "rarity": stmt.excluded["rarity"],
                "marketable": stmt.excluded["marketable"],
                "tradable": stmt.excluded["tradable"],
                "updated_at": stmt.excluded["updated_at"],
            },
        )
        async with self._session_factory() as db:
            await db.execute(stmt)
            await db.commit()

    async def get(self, market_hash_name: str) -> Optional[Item]:
        async with self._session_factory() as db:
            return (await db.execute(
                select(Item).where(Item.market_hash_name == market_hash_name)
            )).scalar_one_or_none()

    async def count(self) -> int:
        async with self._session_factory() as db:
            return (await db.execute(select(func.count()).select_from(Item))).scalar_one()

    async def search(
        self,
        q: Optional[str] = None,
        item_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[int, List[Item]]:
        """Returns (total matches, one page ordered by market_hash_name)"""
        stmt = select(Item)
        if q:
            pattern = f"%{q.lower()}%"
            stmt = stmt.where(or_(
                func.lower(Item.name).like(pattern),
                func.lower(Item.market_hash_name).like(pattern),
            ))
        if item_type:
            stmt = stmt.where(Item.type == item_type)

        async with self._session_factory() as db:
            total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
            rows = (await db.execute(
                stmt.order_by(Item.market_hash_name).offset(offset).limit(limit)
            )).scalars().all()
        return total, list(rows)


@dataclass
class ReconcileResult:
    unique: int = 0
    upserted: int = 0
    failed: int = 0


class CatalogReconciler:
    def __init__(self, store: CatalogStore, base_url: Optional[str] = None):
        self._store = store
        self._base_url = base_url

    async def reconcile(self, descriptions: List[SteamDescription]) -> ReconcileResult:
        """Upsert each distinct description; a failing entry is logged and skipped."""
        unique: Dict[str, SteamDescription] = {}
        for desc in descriptions:
            key = desc.catalog_key
            if key and key not in unique:
                unique[key] = desc

        result = ReconcileResult(unique=len(unique))
        logger.info("reconcile: %d descriptions, %d unique items", len(descriptions), len(unique))

        for key, desc in unique.items():
            try:
                await self._store.upsert(CatalogEntry.from_description(desc, self._base_url))
                result.upserted += 1
            except Exception as e:
                result.failed += 1
                logger.error("reconcile: failed to upsert %s: %s", key, e)

        logger.info("reconcile: upserted=%d failed=%d", result.upserted, result.failed)
        return result

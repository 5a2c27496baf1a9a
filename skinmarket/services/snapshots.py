"""Per-account inventory snapshots (table user_inventory)"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skinmarket.core.database import AsyncSessionLocal
from skinmarket.models.db_models import UserInventory
from skinmarket.schemas.steam import InventoryItem

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class Snapshot:
    steam_id: str
    items: List[InventoryItem]
    updated_at: datetime


class SnapshotStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal):
        self._session_factory = session_factory

    async def read(self, steam_id: str) -> Optional[Snapshot]:
        async with self._session_factory() as db:
            row = (await db.execute(
                select(UserInventory).where(UserInventory.steam_id == steam_id)
            )).scalar_one_or_none()

        if row is None:
            return None

        raw = row.items if isinstance(row.items, list) else []
        items = [InventoryItem.model_validate(i) for i in raw]
        return Snapshot(steam_id=steam_id, items=items, updated_at=row.updated_at)

    async def write(self, steam_id: str, items: List[InventoryItem], now: Optional[datetime] = None) -> Snapshot:
        now = now or utcnow()
        payload = [i.model_dump(by_alias=True) for i in items]

        stmt = sqlite_insert(UserInventory).values(steam_id=steam_id, items=payload, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=["steam_id"],
            set_={"items": stmt.excluded["items"], "updated_at": stmt.excluded["updated_at"]},
        )
        async with self._session_factory() as db:
            await db.execute(stmt)
            await db.commit()

        logger.info("snapshot saved: %s  items=%d", steam_id, len(items))
        return Snapshot(steam_id=steam_id, items=list(items), updated_at=now)

"""
Inventory sync coordinator

sync(steam_id, force_refresh):
  1. join a sync already running for steam_id (SingleFlight)
  2. snapshot younger than inventory_cache_minutes → return it (skipped on force)
  3. walk Steam (InventoryAssembler), retrying transient failures per RetryPolicy
  4. success → catalog reconcile + snapshot write, both best-effort
  5. failure → last snapshot of any age, else NoDataAvailable
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import httpx

from skinmarket.core.config import settings
from skinmarket.core.errors import ExternalSourceError, FailureCategory, NoDataAvailable
from skinmarket.schemas.steam import InventoryItem
from skinmarket.services.catalog import CatalogReconciler, CatalogStore
from skinmarket.services.retry import RetryPolicy, attempt_with_retry
from skinmarket.services.singleflight import SingleFlight
from skinmarket.services.snapshots import Snapshot, SnapshotStore, utcnow
from skinmarket.services.steam import AssembledInventory, InventoryAssembler, InventoryPageFetcher

logger = logging.getLogger(__name__)


def _is_transient(e: Exception) -> bool:
    return isinstance(e, ExternalSourceError) and e.category is FailureCategory.TRANSIENT


class InventorySyncService:
    def __init__(
        self,
        assembler: InventoryAssembler,
        snapshots: SnapshotStore,
        reconciler: CatalogReconciler,
        flights: Optional[SingleFlight] = None,
        freshness: Optional[timedelta] = None,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._assembler = assembler
        self._snapshots = snapshots
        self._reconciler = reconciler
        self._flights = flights if flights is not None else SingleFlight()
        self._freshness = freshness if freshness is not None else timedelta(minutes=settings.inventory_cache_minutes)
        self._retry_policy = retry_policy or RetryPolicy()
        self._clock = clock

    async def sync(self, steam_id: str, force_refresh: bool = False) -> List[InventoryItem]:
        return await self._flights.run(steam_id, lambda: self._sync(steam_id, force_refresh))

    async def cached(self, steam_id: str) -> Optional[Snapshot]:
        """Stored snapshot without contacting Steam"""
        return await self._snapshots.read(steam_id)

    async def _read_snapshot(self, steam_id: str) -> Optional[Snapshot]:
        try:
            return await self._snapshots.read(steam_id)
        except Exception as e:
            logger.error("sync: reading snapshot for %s failed: %s", steam_id, e)
            return None

    async def _sync(self, steam_id: str, force_refresh: bool) -> List[InventoryItem]:
        logger.info("sync: %s  force=%s", steam_id, force_refresh)

        if force_refresh:
            logger.info("sync: %s force refresh, bypassing cache", steam_id)
        else:
            snapshot = await self._read_snapshot(steam_id)
            if snapshot is not None:
                age = self._clock() - snapshot.updated_at
                if age < self._freshness:
                    logger.info("sync: %s cache hit (%.1f min old)  items=%d",
                                steam_id, age.total_seconds() / 60, len(snapshot.items))
                    return snapshot.items
                logger.info("sync: %s cache stale (%.1f min old)", steam_id, age.total_seconds() / 60)
            else:
                logger.info("sync: %s no cached inventory", steam_id)

        try:
            assembled: AssembledInventory = await attempt_with_retry(
                lambda: self._assembler.assemble(steam_id),
                self._retry_policy,
                should_retry=_is_transient,
            )
        except ExternalSourceError as e:
            return await self._fallback(steam_id, e.category, str(e))
        except Exception as e:
            logger.exception("sync: unexpected error walking %s", steam_id)
            return await self._fallback(steam_id, FailureCategory.TRANSIENT, str(e))

        if assembled.descriptions:
            try:
                await self._reconciler.reconcile(assembled.descriptions)
            except Exception as e:
                logger.error("sync: catalog reconcile for %s failed: %s", steam_id, e)

        if assembled.items:
            try:
                await self._snapshots.write(steam_id, assembled.items, now=self._clock())
            except Exception as e:
                logger.warning("sync: failed to save snapshot for %s: %s", steam_id, e)
        else:
            logger.info("sync: %s returned no marketable items, snapshot left untouched", steam_id)

        return assembled.items

    async def _fallback(self, steam_id: str, category: FailureCategory, message: str) -> List[InventoryItem]:
        logger.warning("sync: %s live fetch failed (%s): %s, checking stored snapshot",
                       steam_id, category.value, message)
        snapshot = await self._read_snapshot(steam_id)
        if snapshot is not None and snapshot.items:
            logger.info("sync: %s returning %d items from snapshot of %s",
                        steam_id, len(snapshot.items), snapshot.updated_at.isoformat())
            return snapshot.items

        logger.error("sync: %s failed and no snapshot is available", steam_id)
        raise NoDataAvailable(steam_id, category, message)


def build_inventory_service(client: httpx.AsyncClient) -> InventorySyncService:
    """Wire the service against the configured database and Steam settings."""
    fetcher = InventoryPageFetcher(client)
    return InventorySyncService(
        assembler=InventoryAssembler(fetcher),
        snapshots=SnapshotStore(),
        reconciler=CatalogReconciler(CatalogStore()),
        retry_policy=RetryPolicy(
            max_attempts=settings.inventory_transient_attempts,
            base_delay=settings.inventory_retry_delay,
        ),
    )

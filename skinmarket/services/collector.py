"""
Background inventory collector.

Scheduled task:
  collect_inventories()   every inventory_warm_interval_minutes, syncs each
                          account in inventory_warm_steam_ids so that API
                          reads hit a fresh snapshot
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from skinmarket.core.config import settings
from skinmarket.core.errors import NoDataAvailable
from skinmarket.services.inventory import InventorySyncService

logger = logging.getLogger(__name__)

# ── Run state (in memory, reported by /health) ─────────────────────────────
collector_state: dict = {
    "status": "idle",        # idle | running | error
    "last_run": None,
    "last_error": None,
    "accounts_synced": 0,
    "accounts_failed": 0,
}


async def collect_inventories(
    service: InventorySyncService,
    steam_ids: Optional[Iterable[str]] = None,
) -> None:
    ids = list(steam_ids if steam_ids is not None else settings.inventory_warm_steam_ids)
    if not ids:
        logger.debug("collect_inventories: no accounts configured, skipping")
        return

    collector_state["status"] = "running"
    collector_state["last_error"] = None
    collector_state["accounts_synced"] = 0
    collector_state["accounts_failed"] = 0

    for steam_id in ids:
        try:
            items = await service.sync(steam_id)
            collector_state["accounts_synced"] += 1
            logger.info("collect_inventories: %s  items=%d", steam_id, len(items))
        except NoDataAvailable as e:
            collector_state["accounts_failed"] += 1
            collector_state["last_error"] = str(e)
            logger.warning("collect_inventories: %s", e)

    collector_state["status"] = "error" if collector_state["accounts_failed"] else "idle"
    collector_state["last_run"] = datetime.now(timezone.utc).isoformat()
    logger.info(
        "collect_inventories: done, %d synced, %d failed",
        collector_state["accounts_synced"],
        collector_state["accounts_failed"],
    )

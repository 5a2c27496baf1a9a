"""
Steam Community inventory service

Endpoint: GET https://steamcommunity.com/inventory/{steamid}/730/2
          ?l=english&count=1000[&start_assetid={cursor}]

Walk:
  one page per request, cursor = last_assetid of the previous page,
  stops on more_items != 1, on a page with success=false, or after
  inventory_max_pages pages. Pages are spaced inventory_page_delay seconds
  apart, Steam answers 429 for anything faster.

Failure classes (ExternalSourceError.category):
  429            → rate_limited
  401 / 403      → access_denied (private inventory)
  other 4xx      → bad_request
  5xx / network  → transient
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from skinmarket.core.config import settings
from skinmarket.core.errors import ExternalSourceError, FailureCategory
from skinmarket.schemas.steam import (
    InventoryItem,
    SteamAsset,
    SteamDescription,
    SteamInventoryResponse,
)

logger = logging.getLogger(__name__)

_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
]

_ECONOMY_IMAGE_RE = re.compile(r"/economy/image/(.+)$")

MARKETABLE = 1


# ------------------------------------------------------------------ #
#  Image links                                                         #
# ------------------------------------------------------------------ #

def build_image_url(icon_url: Optional[str], base_url: Optional[str] = None) -> str:
    """
    Turn a Steam icon path into a link to our /image-proxy relay.
    Full URLs outside /economy/image/ are returned unchanged.
    """
    if not icon_url:
        return ""

    path = icon_url
    if path.startswith(("http://", "https://")):
        match = _ECONOMY_IMAGE_RE.search(path)
        if not match:
            return path
        path = match.group(1)

    base = (base_url or settings.app_url).rstrip("/")
    return f"{base}/image-proxy/{quote(path.lstrip('/'), safe='')}"


# ------------------------------------------------------------------ #
#  Page fetch                                                          #
# ------------------------------------------------------------------ #

@dataclass
class InventoryPage:
    success: bool
    assets: List[SteamAsset] = field(default_factory=list)
    descriptions: List[SteamDescription] = field(default_factory=list)
    more_available: bool = False
    next_cursor: Optional[str] = None
    total_count: int = 0
    message: Optional[str] = None


def _classify_status(status_code: int) -> FailureCategory:
    if status_code == 429:
        return FailureCategory.RATE_LIMITED
    if status_code in (401, 403):
        return FailureCategory.ACCESS_DENIED
    if 400 <= status_code < 500:
        return FailureCategory.BAD_REQUEST
    return FailureCategory.TRANSIENT


class InventoryPageFetcher:
    """Fetches one inventory page and narrows the JSON into typed records."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
        language: Optional[str] = None,
    ):
        self._client = client
        self._page_size = page_size or settings.inventory_page_size
        self._timeout = timeout or settings.inventory_request_timeout
        self._language = language or settings.steam_inventory_language

    def _url(self, steam_id: str) -> str:
        return settings.steam_inventory_url.format(
            steam_id=steam_id,
            app_id=settings.steam_app_id,
            context_id=settings.steam_context_id,
        )

    @staticmethod
    def _headers(steam_id: str) -> Dict[str, str]:
        return {
            "User-Agent": random.choice(_USER_AGENTS),
            "Referer": f"https://steamcommunity.com/profiles/{steam_id}/inventory",
            "Accept": "application/json",
            "Accept-Language": "en-US,en;q=0.9",
        }

    async def fetch_page(self, steam_id: str, cursor: Optional[str] = None) -> InventoryPage:
        params: dict = {"l": self._language, "count": self._page_size}
        if cursor:
            params["start_assetid"] = cursor

        try:
            r = await self._client.get(
                self._url(steam_id),
                params=params,
                headers=self._headers(steam_id),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise ExternalSourceError(FailureCategory.TRANSIENT, f"Steam request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ExternalSourceError(FailureCategory.TRANSIENT, f"Steam request failed: {e}") from e

        if not r.is_success:
            category = _classify_status(r.status_code)
            logger.warning("fetch_page: %s cursor=%s → HTTP %d (%s)", steam_id, cursor, r.status_code, category.value)
            raise ExternalSourceError(category, f"Steam returned HTTP {r.status_code}", r.status_code)

        try:
            data = r.json()
        except ValueError as e:
            raise ExternalSourceError(FailureCategory.TRANSIENT, "Steam returned a non-JSON body", r.status_code) from e
        if not isinstance(data, dict):
            raise ExternalSourceError(FailureCategory.TRANSIENT, "Empty response from Steam", r.status_code)

        try:
            inv = SteamInventoryResponse.model_validate(data)
        except ValidationError as e:
            raise ExternalSourceError(
                FailureCategory.TRANSIENT, f"Malformed inventory payload: {e.error_count()} errors", r.status_code,
            ) from e

        if not inv.success:
            return InventoryPage(success=False, message=inv.message or inv.error or "Unknown")

        return InventoryPage(
            success=True,
            assets=inv.assets,
            descriptions=inv.descriptions,
            more_available=inv.more_items == 1 and bool(inv.last_assetid),
            next_cursor=inv.last_assetid,
            total_count=inv.total_inventory_count,
        )


# ------------------------------------------------------------------ #
#  Assembly                                                            #
# ------------------------------------------------------------------ #

@dataclass
class AssembledInventory:
    items: List[InventoryItem]
    descriptions: List[SteamDescription]
    pages: int = 0


def to_inventory_item(asset: SteamAsset, desc: SteamDescription, base_url: Optional[str] = None) -> InventoryItem:
    icon = desc.icon_url or desc.icon_url_large or ""
    if not icon:
        logger.warning("No icon_url for item: %s", desc.catalog_key or "Unknown")
    return InventoryItem(
        asset_id=asset.assetid,
        name=desc.catalog_key or "Unknown Item",
        image_url=build_image_url(icon, base_url),
        rarity=desc.rarity,
        type=desc.type or "",
        marketable=desc.marketable,
        tradable=desc.tradable,
    )


def join_assets(
    assets: List[SteamAsset],
    descriptions: List[SteamDescription],
    base_url: Optional[str] = None,
) -> List[InventoryItem]:
    """
    Pair every asset with its description by (classid, instanceid).
    Assets without a description are dropped.
    """
    desc_map: Dict[Tuple[str, str], SteamDescription] = {}
    for desc in descriptions:
        desc_map.setdefault((desc.classid, desc.instanceid), desc)

    items: List[InventoryItem] = []
    for asset in assets:
        desc = desc_map.get((asset.classid, asset.instanceid))
        if desc is None:
            logger.debug("No description for asset %s: classid=%s instanceid=%s",
                         asset.assetid, asset.classid, asset.instanceid)
            continue
        items.append(to_inventory_item(asset, desc, base_url))
    return items


class InventoryAssembler:
    """Walks every page of one account's inventory and builds the item list."""

    def __init__(
        self,
        fetcher: InventoryPageFetcher,
        page_delay: Optional[float] = None,
        max_pages: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        base_url: Optional[str] = None,
    ):
        self._fetcher = fetcher
        self._page_delay = settings.inventory_page_delay if page_delay is None else page_delay
        self._max_pages = max_pages or settings.inventory_max_pages
        self._sleep = sleep
        self._base_url = base_url

    async def assemble(self, steam_id: str) -> AssembledInventory:
        all_assets: List[SteamAsset] = []
        all_descriptions: List[SteamDescription] = []
        cursor: Optional[str] = None
        pages = 0

        while pages < self._max_pages:
            page = await self._fetcher.fetch_page(steam_id, cursor)
            pages += 1

            if not page.success:
                logger.warning("assemble: %s page %d success=false (%s), stopping", steam_id, pages, page.message)
                break

            all_assets.extend(page.assets)
            all_descriptions.extend(page.descriptions)
            logger.info("assemble: %s page %d  assets=%d  total so far=%d",
                        steam_id, pages, len(page.assets), len(all_assets))

            if not page.more_available:
                break
            cursor = page.next_cursor

            if pages < self._max_pages:
                logger.info("assemble: waiting %.1fs before next page", self._page_delay)
                await self._sleep(self._page_delay)
        else:
            logger.warning("assemble: %s hit the %d page ceiling", steam_id, self._max_pages)

        joined = join_assets(all_assets, all_descriptions, self._base_url)
        items = [i for i in joined if i.marketable == MARKETABLE]

        logger.info("assemble: %s  pages=%d  assets=%d  joined=%d  marketable=%d",
                    steam_id, pages, len(all_assets), len(joined), len(items))
        if joined and not items:
            logger.warning("assemble: %s has no marketable items", steam_id)

        return AssembledInventory(items=items, descriptions=all_descriptions, pages=pages)

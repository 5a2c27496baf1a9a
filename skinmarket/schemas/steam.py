"""Pydantic models for the Steam Community inventory endpoint and the assembled items"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SteamAsset(BaseModel):
    """One entry of the assets array"""
    appid: Optional[int] = None
    contextid: Optional[str] = None
    assetid: str
    classid: str
    instanceid: str = "0"
    amount: str = "1"


class SteamTag(BaseModel):
    category: str
    internal_name: Optional[str] = None
    localized_category_name: Optional[str] = None
    localized_tag_name: Optional[str] = None
    name: Optional[str] = None


class SteamDescription(BaseModel):
    """One entry of the descriptions array"""
    classid: str
    instanceid: str = "0"
    market_hash_name: Optional[str] = None
    market_name: Optional[str] = None
    name: Optional[str] = None
    icon_url: Optional[str] = None
    icon_url_large: Optional[str] = None
    type: Optional[str] = None
    tradable: int = 0
    marketable: int = 0
    tags: List[SteamTag] = Field(default_factory=list)

    @property
    def catalog_key(self) -> Optional[str]:
        return self.market_hash_name or self.market_name or self.name

    @property
    def rarity(self) -> str:
        for tag in self.tags:
            if tag.category == "Rarity":
                return tag.localized_tag_name or tag.name or ""
        return ""


class SteamInventoryResponse(BaseModel):
    """Full response of the Steam Community inventory endpoint"""
    success: bool = False
    assets: List[SteamAsset] = Field(default_factory=list)
    descriptions: List[SteamDescription] = Field(default_factory=list)
    total_inventory_count: int = 0
    more_items: Optional[int] = None
    last_assetid: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = Field(alias="Error", default=None)

    model_config = {"populate_by_name": True}


class InventoryItem(BaseModel):
    """An assembled, marketable inventory item as served to clients"""
    asset_id: str = Field(alias="assetId")
    name: str
    image_url: str = Field(alias="imageUrl", default="")
    rarity: str = ""
    type: str = ""
    marketable: int = 0
    tradable: int = 0

    model_config = {"populate_by_name": True}


class InventorySnapshotOut(BaseModel):
    steam_id: str
    updated_at: datetime
    items: List[InventoryItem]

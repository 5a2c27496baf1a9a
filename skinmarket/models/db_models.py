"""
Database ORM models

Tables:
  item            — shared CS2 item catalog, one row per market_hash_name,
                    upserted from every inventory sync across all accounts
  user_inventory  — last successfully synced inventory per Steam account
                    (the snapshot used for caching and fallback)
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from skinmarket.core.database import Base


class Item(Base):
    """Item catalog (keyed by market_hash_name, never deleted by sync)"""

    __tablename__ = "item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    market_hash_name: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)   # proxied URL
    icon_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)    # raw Steam icon path
    type: Mapped[Optional[str]] = mapped_column(String, index=True, nullable=True)
    rarity: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    marketable: Mapped[int] = mapped_column(Integer, default=0)
    tradable: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())


class UserInventory(Base):
    """
    Inventory snapshot of one Steam account.

    Overwritten wholesale on every successful sync; updated_at drives the
    freshness check. items holds the camelCase item dicts as served by the API.
    """

    __tablename__ = "user_inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    steam_id: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

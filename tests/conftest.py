import asyncio

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from skinmarket.core.database import Base
from skinmarket.models import db_models  # noqa: F401


def steam_asset(assetid, classid, instanceid="0", amount="1"):
    return {
        "appid": 730,
        "contextid": "2",
        "assetid": assetid,
        "classid": classid,
        "instanceid": instanceid,
        "amount": amount,
    }


def steam_description(classid, instanceid="0", name="Widget", marketable=1, tradable=1, **extra):
    desc = {
        "appid": 730,
        "classid": classid,
        "instanceid": instanceid,
        "icon_url": f"icon-{classid}",
        "name": name,
        "market_hash_name": name,
        "market_name": name,
        "type": "Mil-Spec Grade Rifle",
        "tradable": tradable,
        "marketable": marketable,
        "tags": [
            {"category": "Type", "internal_name": "CSGO_Type_Rifle", "localized_tag_name": "Rifle"},
            {"category": "Rarity", "internal_name": "Rarity_Rare_Weapon", "localized_tag_name": "Mil-Spec Grade"},
        ],
    }
    desc.update(extra)
    return desc


def steam_page(assets, descriptions, more_items=None, last_assetid=None, total=None):
    page = {
        "assets": assets,
        "descriptions": descriptions,
        "total_inventory_count": total if total is not None else len(assets),
        "success": 1,
        "rwgrsn": -2,
    }
    if more_items:
        page["more_items"] = more_items
        page["last_assetid"] = last_assetid
    return page


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())

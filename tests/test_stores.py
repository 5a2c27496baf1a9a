import asyncio
from datetime import datetime

from conftest import steam_description
from skinmarket.schemas.steam import InventoryItem, SteamDescription
from skinmarket.services.catalog import CatalogEntry, CatalogReconciler, CatalogStore
from skinmarket.services.snapshots import SnapshotStore

STEAM_ID = "76561198000000001"
BASE = "http://api.test"


def _desc(classid, **kwargs):
    return SteamDescription.model_validate(steam_description(classid, **kwargs))


# ── snapshots ─────────────────────────────────────────────────────────────

def test_snapshot_read_missing_returns_none(session_factory):
    assert asyncio.run(SnapshotStore(session_factory).read(STEAM_ID)) is None


def test_snapshot_write_then_read(session_factory):
    store = SnapshotStore(session_factory)
    items = [
        InventoryItem(asset_id="1", name="AK-47 | Redline (Field-Tested)", image_url=f"{BASE}/image-proxy/x",
                      rarity="Classified", type="Classified Rifle", marketable=1, tradable=0),
    ]
    written_at = datetime(2026, 10, 19, 12, 0, 0)

    async def _run():
        await store.write(STEAM_ID, items, now=written_at)
        return await store.read(STEAM_ID)

    snapshot = asyncio.run(_run())

    assert snapshot.steam_id == STEAM_ID
    assert snapshot.updated_at == written_at
    assert snapshot.items == items


def test_snapshot_write_overwrites_previous(session_factory):
    store = SnapshotStore(session_factory)

    async def _run():
        await store.write(STEAM_ID, [InventoryItem(asset_id="1", name="Old")], now=datetime(2026, 1, 1))
        await store.write(STEAM_ID, [InventoryItem(asset_id="2", name="New")], now=datetime(2026, 2, 1))
        return await store.read(STEAM_ID)

    snapshot = asyncio.run(_run())

    assert [i.name for i in snapshot.items] == ["New"]
    assert snapshot.updated_at == datetime(2026, 2, 1)


# ── catalog ───────────────────────────────────────────────────────────────

def test_catalog_entry_from_description():
    entry = CatalogEntry.from_description(_desc("C1", name="AWP | Asiimov (Field-Tested)"), BASE)

    assert entry.market_hash_name == "AWP | Asiimov (Field-Tested)"
    assert entry.image_url == f"{BASE}/image-proxy/icon-C1"
    assert entry.icon_url == "icon-C1"
    assert entry.rarity == "Mil-Spec Grade"
    assert entry.marketable == 1


def test_catalog_upsert_creates_then_updates(session_factory):
    store = CatalogStore(session_factory)

    async def _run():
        await store.upsert(CatalogEntry.from_description(_desc("C1", name="Widget", tradable=0), BASE),
                           now=datetime(2026, 1, 1))
        created = await store.get("Widget")
        await store.upsert(CatalogEntry.from_description(_desc("C1", name="Widget", tradable=1, icon_url="new"), BASE),
                           now=datetime(2026, 3, 1))
        updated = await store.get("Widget")
        return created, updated

    created, updated = asyncio.run(_run())

    assert created.tradable == 0
    assert updated.id == created.id
    assert updated.tradable == 1
    assert updated.icon_url == "new"
    assert updated.image_url == f"{BASE}/image-proxy/new"
    assert updated.updated_at == datetime(2026, 3, 1)
    assert updated.created_at == datetime(2026, 1, 1)


def test_catalog_search_and_count(session_factory):
    store = CatalogStore(session_factory)
    entries = [
        _desc("C1", name="AK-47 | Redline (Field-Tested)", type="Classified Rifle"),
        _desc("C2", name="AWP | Asiimov (Field-Tested)", type="Covert Sniper Rifle"),
        _desc("C3", name="AK-47 | Slate (Minimal Wear)", type="Mil-Spec Grade Rifle"),
    ]

    async def _run():
        for desc in entries:
            await store.upsert(CatalogEntry.from_description(desc, BASE))
        return (
            await store.count(),
            await store.search(q="ak-47"),
            await store.search(item_type="Covert Sniper Rifle"),
            await store.search(limit=1, offset=2),
        )

    count, by_name, by_type, paged = asyncio.run(_run())

    assert count == 3
    total, rows = by_name
    assert total == 2
    assert [r.market_hash_name for r in rows] == ["AK-47 | Redline (Field-Tested)", "AK-47 | Slate (Minimal Wear)"]
    assert by_type[0] == 1
    assert by_type[1][0].market_hash_name == "AWP | Asiimov (Field-Tested)"
    assert paged[0] == 3
    assert [r.market_hash_name for r in paged[1]] == ["AWP | Asiimov (Field-Tested)"]


class RecordingStore:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.entries = []

    async def upsert(self, entry, now=None):
        if entry.market_hash_name in self.fail_on:
            raise RuntimeError("constraint failed")
        self.entries.append(entry)


def test_reconcile_dedupes_by_market_hash_name_first_wins():
    store = RecordingStore()
    descriptions = [
        _desc("C1", name="Widget", type="First"),
        _desc("C2", name="Gadget"),
        _desc("C3", name="Widget", type="Second"),
    ]

    result = asyncio.run(CatalogReconciler(store, BASE).reconcile(descriptions))

    assert [e.market_hash_name for e in store.entries] == ["Widget", "Gadget"]
    assert store.entries[0].type == "First"
    assert (result.unique, result.upserted, result.failed) == (2, 2, 0)


def test_reconcile_skips_failing_entries():
    store = RecordingStore(fail_on={"Gadget"})
    descriptions = [_desc("C1", name="Widget"), _desc("C2", name="Gadget"), _desc("C3", name="Doohickey")]

    result = asyncio.run(CatalogReconciler(store, BASE).reconcile(descriptions))

    assert [e.market_hash_name for e in store.entries] == ["Widget", "Doohickey"]
    assert (result.upserted, result.failed) == (2, 1)


def test_reconcile_ignores_descriptions_without_a_name():
    store = RecordingStore()
    nameless = _desc("C1", market_hash_name=None, market_name=None, name=None)

    result = asyncio.run(CatalogReconciler(store, BASE).reconcile([nameless]))

    assert store.entries == []
    assert result.unique == 0


def test_reconcile_writes_to_database(session_factory):
    store = CatalogStore(session_factory)
    descriptions = [_desc("C1", name="Widget"), _desc("C2", name="Medal", marketable=0)]

    async def _run():
        await CatalogReconciler(store, BASE).reconcile(descriptions)
        return await store.get("Widget"), await store.get("Medal")

    widget, medal = asyncio.run(_run())

    assert widget.marketable == 1
    assert medal.marketable == 0

"""
One-off inventory sync from the command line
Usage: python tools/sync_inventory.py STEAM_ID [--force]

Uses the same database and settings (.env) as the API server and prints
the synced items as JSON.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).parent.parent))

from skinmarket.core.database import init_db  # noqa: E402
from skinmarket.core.errors import NoDataAvailable  # noqa: E402
from skinmarket.services.inventory import build_inventory_service  # noqa: E402


async def _run(steam_id: str, force: bool) -> int:
    await init_db()
    async with httpx.AsyncClient(follow_redirects=True) as client:
        service = build_inventory_service(client)
        try:
            items = await service.sync(steam_id, force_refresh=force)
        except NoDataAvailable as e:
            print(f"sync failed: {e}", file=sys.stderr)
            return 1

    print(json.dumps([i.model_dump(by_alias=True) for i in items], ensure_ascii=False, indent=2))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync one Steam inventory")
    parser.add_argument("steam_id")
    parser.add_argument("--force", action="store_true", help="ignore the 15 minute cache")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-7s %(name)s: %(message)s")
    return asyncio.run(_run(args.steam_id, args.force))


if __name__ == "__main__":
    sys.exit(main())

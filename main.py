import logging

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from skinmarket.core.config import settings
from skinmarket.core.database import init_db
from skinmarket.api.routes import image_proxy, inventory, items
from skinmarket.services.inventory import build_inventory_service

# ── Scheduled jobs ──────────────────────────────────────────────────────────
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from skinmarket.services.collector import collect_inventories, collector_state

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
)

scheduler = AsyncIOScheduler()
logger = logging.getLogger(__name__)
# ────────────────────────────────────────────────────────────────────────────

VERSION = "0.1.0"

app = FastAPI(
    title="SkinMarket",
    description="CS2 marketplace backend: Steam inventory sync and item catalog",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(inventory.router, prefix="/api/inventory", tags=["inventory"])
app.include_router(items.router, prefix="/api/items", tags=["items"])
app.include_router(image_proxy.router, prefix="/image-proxy", tags=["image-proxy"])


@app.on_event("startup")
async def startup():
    await init_db()

    app.state.steam_client = httpx.AsyncClient(follow_redirects=True)
    app.state.inventory_service = build_inventory_service(app.state.steam_client)

    if settings.inventory_warm_steam_ids:
        scheduler.add_job(
            collect_inventories, "interval",
            minutes=settings.inventory_warm_interval_minutes,
            args=[app.state.inventory_service],
            id="inventory_collect",
            misfire_grace_time=300,
        )
        scheduler.start()
        logger.info("APScheduler started, keeping %d inventories warm", len(settings.inventory_warm_steam_ids))


@app.on_event("shutdown")
async def shutdown():
    if scheduler.running:
        scheduler.shutdown(wait=False)
    await app.state.steam_client.aclose()


@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION, "collector": collector_state}


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)

"""
Steam economy image relay

GET /image-proxy/{path}   fetches the icon from the first Steam CDN that answers
                          and serves it with permissive CORS headers
"""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from skinmarket.core.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()

CDN_BASES = [
    "https://community.fastly.steamstatic.com/economy/image/",
    "https://community.cloudflare.steamstatic.com/economy/image/",
    "https://steamcommunity-a.akamaihd.net/economy/image/",
]

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "image/webp,image/apng,image/*,*/*;q=0.8",
    "Referer": "https://steamcommunity.com/",
}


@router.get("/{image_path:path}")
async def proxy_image(image_path: str):
    path = image_path.lstrip("/")
    if not path:
        raise HTTPException(status_code=400, detail="Image path is required")

    async with httpx.AsyncClient(timeout=settings.image_proxy_timeout, headers=_HEADERS) as client:
        for base in CDN_BASES:
            url = base + path
            try:
                r = await client.get(url)
            except httpx.HTTPError as e:
                logger.debug("image-proxy: %s failed: %s", url, e)
                continue
            if r.status_code == 200 and r.content:
                return Response(
                    content=r.content,
                    media_type=r.headers.get("content-type", "image/png"),
                    headers={
                        "Access-Control-Allow-Origin": "*",
                        "Access-Control-Allow-Methods": "GET",
                        "Cache-Control": "public, max-age=86400",
                    },
                )
            logger.debug("image-proxy: %s answered %d", url, r.status_code)

    logger.warning("image-proxy: no CDN served %s", path)
    raise HTTPException(status_code=404, detail="Failed to fetch image from all CDN sources")

"""
Destination photos from the Unsplash search API, with a fixed fallback set.
"""

from typing import List, Optional

import httpx
import structlog

from odysea.core.settings import Settings

logger = structlog.get_logger(__name__)

UNSPLASH_SEARCH_URL = "https://api.unsplash.com/search/photos"
IMAGE_COUNT = 3

FALLBACK_IMAGES = [
    "https://images.unsplash.com/photo-1488646953014-85cb44e25828?w=800&h=600&fit=crop&q=80",
    "https://images.unsplash.com/photo-1507525428034-b723cf961d3e?w=800&h=600&fit=crop&q=80",
    "https://images.unsplash.com/photo-1476514525535-07fb3b4ae5f1?w=800&h=600&fit=crop&q=80",
]


def pad_with_fallbacks(images: List[str], count: int = IMAGE_COUNT) -> List[str]:
    """Fill up to ``count`` URLs by cycling through FALLBACK_IMAGES"""
    images = list(images[:count])
    while len(images) < count:
        images.append(FALLBACK_IMAGES[len(images) % len(FALLBACK_IMAGES)])
    return images


async def search_photos(
    query: str,
    per_page: int,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> List[str]:
    """Photo URLs for ``query``; raises httpx errors on transport or HTTP failure"""
    params = {"query": query, "per_page": per_page, "orientation": "landscape"}
    headers = {"Authorization": f"Client-ID {settings.UNSPLASH_ACCESS_KEY}"}

    if client is None:
        async with httpx.AsyncClient(timeout=settings.EXTERNAL_TIMEOUT_SECONDS) as own_client:
            resp = await own_client.get(UNSPLASH_SEARCH_URL, params=params, headers=headers)
    else:
        resp = await client.get(UNSPLASH_SEARCH_URL, params=params, headers=headers)
    resp.raise_for_status()

    data = resp.json()
    urls = []
    for photo in data.get("results") or []:
        photo_urls = photo.get("urls") or {}
        url = photo_urls.get("regular") or photo_urls.get("small")
        if url:
            urls.append(url)
    return urls


async def fetch_destination_images(
    destination: str,
    country: str,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> List[str]:
    """Exactly three image URLs for a destination; never raises"""
    if not settings.UNSPLASH_ACCESS_KEY:
        return list(FALLBACK_IMAGES)

    try:
        images = await search_photos(
            f"{destination} {country} travel landmark", IMAGE_COUNT, settings, client
        )
    except (httpx.HTTPError, ValueError, AttributeError) as e:
        logger.warning("unsplash_search_failed", destination=destination, error=str(e))
        return list(FALLBACK_IMAGES)

    return pad_with_fallbacks(images)


async def fetch_cover_image(
    name: str,
    country: str,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """One image URL for a saved destination"""
    if settings.UNSPLASH_ACCESS_KEY:
        try:
            images = await search_photos(f"{name} {country} travel landmark", 1, settings, client)
            if images:
                return images[0]
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning("unsplash_search_failed", destination=name, error=str(e))
    return FALLBACK_IMAGES[0]

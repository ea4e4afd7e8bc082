import logging
from urllib.parse import quote

import httpx

from buildr.config import settings
from buildr.schemas.images import ImageCredit, ImageResult, VideoResult

logger = logging.getLogger(__name__)

UNSPLASH_API = "https://api.unsplash.com"
PEXELS_API = "https://api.pexels.com/v1"
PEXELS_VIDEO_API = "https://api.pexels.com/videos"

MAX_BATCH_QUERIES = 10
BATCH_RESULTS_PER_QUERY = 3

_LOOKUP_ERRORS = (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError)

# Categories where provider search returns poor matches; these are served from a fixed list
CURATED_PHOTOS = {
    "hip hop": [
        "https://images.unsplash.com/photo-1523398002811-999ca8dec234?w=1200",
        "https://images.unsplash.com/photo-1552374196-1ab2a1c593e8?w=1200",
        "https://images.unsplash.com/photo-1529139574466-a303027c1d8b?w=1200",
        "https://images.unsplash.com/photo-1515886657613-9f3515b0c78f?w=1200",
        "https://images.unsplash.com/photo-1509631179647-0177331693ae?w=1200",
        "https://images.unsplash.com/photo-1517841905240-472988babdf9?w=1200",
        "https://images.unsplash.com/photo-1539109136881-3be0616acf4b?w=1200",
        "https://images.unsplash.com/photo-1496345875659-11f7dd282d1d?w=1200",
    ],
    "streetwear": [
        "https://images.unsplash.com/photo-1552374196-1ab2a1c593e8?w=1200",
        "https://images.unsplash.com/photo-1523398002811-999ca8dec234?w=1200",
        "https://images.unsplash.com/photo-1529139574466-a303027c1d8b?w=1200",
        "https://images.unsplash.com/photo-1515886657613-9f3515b0c78f?w=1200",
        "https://images.unsplash.com/photo-1539109136881-3be0616acf4b?w=1200",
        "https://images.unsplash.com/photo-1509631179647-0177331693ae?w=1200",
    ],
    "urban fashion": [
        "https://images.unsplash.com/photo-1515886657613-9f3515b0c78f?w=1200",
        "https://images.unsplash.com/photo-1552374196-1ab2a1c593e8?w=1200",
        "https://images.unsplash.com/photo-1539109136881-3be0616acf4b?w=1200",
        "https://images.unsplash.com/photo-1496345875659-11f7dd282d1d?w=1200",
        "https://images.unsplash.com/photo-1517841905240-472988babdf9?w=1200",
    ],
    "clothing brand": [
        "https://images.unsplash.com/photo-1441986300917-64674bd600d8?w=1200",
        "https://images.unsplash.com/photo-1567401893414-76b7b1e5a7a5?w=1200",
        "https://images.unsplash.com/photo-1558618666-fcd25c85cd64?w=1200",
        "https://images.unsplash.com/photo-1489987707025-afc232f7ea0f?w=1200",
    ],
}
CURATED_PHOTO_TRIGGERS = ("hip hop", "hip-hop", "hiphop", "streetwear", "urban fashion", "urban clothing", "street style")

_CITY_NIGHT = (
    "https://player.vimeo.com/external/370467553.hd.mp4?s=96de8b923370e5d&profile_id=175",
    "https://images.pexels.com/videos/3571264/pictures/preview-0.jpg",
)
_CITY_LIGHTS = (
    "https://player.vimeo.com/external/434045526.hd.mp4?s=c27eecc69a27dc&profile_id=175",
    "https://images.pexels.com/videos/4434242/pictures/preview-0.jpg",
)
CURATED_VIDEOS = {
    "hip hop": [_CITY_NIGHT, _CITY_LIGHTS],
    "streetwear": [_CITY_NIGHT],
    "urban": [_CITY_NIGHT],
    "clothing": [_CITY_LIGHTS],
}
CURATED_VIDEO_TRIGGERS = ("hip hop", "hip-hop", "hiphop", "streetwear", "urban fashion", "urban clothing", "rapper")


def _curated_key(query: str, triggers: tuple[str, ...], table: dict) -> str | None:
    lowered = query.lower()
    if not any(trigger in lowered for trigger in triggers):
        return None
    return next((key for key in table if key in lowered), "hip hop")


def curated_photos(query: str, count: int) -> list[ImageResult] | None:
    key = _curated_key(query, CURATED_PHOTO_TRIGGERS, CURATED_PHOTOS)
    if key is None:
        return None
    return [
        ImageResult(
            id=f"curated-{key}-{i}",
            url=url,
            thumbnail=url.replace("w=1200", "w=400"),
            alt=f"{key} fashion",
            credit=ImageCredit(name="Unsplash", url="https://unsplash.com"),
            width=1200,
            height=800,
        )
        for i, url in enumerate(CURATED_PHOTOS[key][:count])
    ]


def curated_videos(query: str, count: int) -> list[VideoResult] | None:
    key = _curated_key(query, CURATED_VIDEO_TRIGGERS, CURATED_VIDEOS)
    if key is None:
        return None
    return [
        VideoResult(
            id=f"curated-video-{i}",
            url=url,
            poster=poster,
            width=1920,
            height=1080,
            credit=ImageCredit(name="Pexels", url="https://pexels.com"),
        )
        for i, (url, poster) in enumerate(CURATED_VIDEOS[key][:count])
    ]


def placeholder_images(query: str, count: int) -> list[ImageResult]:
    """Stock photos from picsum, seeded by the query so the same search gives the same pictures."""
    seed = quote(query, safe="")
    return [
        ImageResult(
            id=f"placeholder-{i}",
            url=f"https://picsum.photos/seed/{seed}{i}/1200/800",
            thumbnail=f"https://picsum.photos/seed/{seed}{i}/400/300",
            alt=query,
            width=1200,
            height=800,
        )
        for i in range(count)
    ]


async def _get_json(client: httpx.AsyncClient, url: str, params: dict, headers: dict) -> dict:
    response = await client.get(url, params=params, headers=headers)
    response.raise_for_status()
    return response.json()


async def _fetch_unsplash(client: httpx.AsyncClient, query: str, count: int, orientation: str) -> list[ImageResult]:
    data = await _get_json(
        client,
        f"{UNSPLASH_API}/search/photos",
        {"query": query, "per_page": count, "orientation": orientation},
        {"Authorization": f"Client-ID {settings.unsplash_access_key}"},
    )
    return [
        ImageResult(
            id=str(photo["id"]),
            url=photo["urls"]["regular"],
            thumbnail=photo["urls"]["small"],
            alt=photo.get("alt_description") or photo.get("description") or query,
            credit=ImageCredit(
                name=photo["user"]["name"],
                url=f"https://unsplash.com/@{photo['user']['username']}?utm_source=buildr&utm_medium=referral",
            ),
            width=photo["width"],
            height=photo["height"],
        )
        for photo in data.get("results", [])
    ]


async def search_unsplash(
    client: httpx.AsyncClient, query: str, count: int = 5, orientation: str = "landscape"
) -> tuple[list[ImageResult], str]:
    curated = curated_photos(query, count)
    if curated is not None:
        logger.info("Serving %d curated photos for %r", len(curated), query)
        return curated, "curated"

    if not settings.unsplash_access_key:
        return placeholder_images(query, count), "placeholder"

    try:
        return await _fetch_unsplash(client, query, count, orientation), "unsplash"
    except _LOOKUP_ERRORS as e:
        logger.warning("Unsplash search for %r failed: %s", query, e)
        return placeholder_images(query, count), "placeholder"


async def search_unsplash_batch(
    client: httpx.AsyncClient, queries: list[str]
) -> tuple[dict[str, list[ImageResult]], str]:
    """A few photos for each of several queries; a failing query falls back on its own."""
    queries = queries[:MAX_BATCH_QUERIES]
    if not settings.unsplash_access_key:
        return {q: placeholder_images(q, BATCH_RESULTS_PER_QUERY) for q in queries}, "placeholder"

    results = {}
    for query in queries:
        try:
            results[query] = await _fetch_unsplash(client, query, BATCH_RESULTS_PER_QUERY, "landscape")
        except _LOOKUP_ERRORS as e:
            logger.warning("Unsplash batch search for %r failed: %s", query, e)
            results[query] = placeholder_images(query, BATCH_RESULTS_PER_QUERY)
    return results, "unsplash"


async def search_pexels(
    client: httpx.AsyncClient, query: str, count: int = 5, orientation: str = "landscape"
) -> tuple[list[ImageResult], str]:
    if not settings.pexels_api_key:
        return placeholder_images(query, count), "placeholder"

    try:
        data = await _get_json(
            client,
            f"{PEXELS_API}/search",
            {"query": query, "per_page": count, "orientation": orientation},
            {"Authorization": settings.pexels_api_key},
        )
        photos = [
            ImageResult(
                id=str(photo["id"]),
                url=photo["src"].get("large2x") or photo["src"]["large"],
                thumbnail=photo["src"]["medium"],
                alt=photo.get("alt") or query,
                credit=ImageCredit(name=photo["photographer"], url=photo.get("photographer_url")),
                width=photo["width"],
                height=photo["height"],
            )
            for photo in data.get("photos", [])
        ]
    except _LOOKUP_ERRORS as e:
        logger.warning("Pexels search for %r failed: %s", query, e)
        return placeholder_images(query, count), "placeholder"

    return photos, "pexels"


def _video_file(files: list[dict]) -> dict | None:
    """Prefer an HD mp4, then an SD mp4, then whatever is listed first."""
    for quality in ("hd", "sd"):
        for f in files:
            if f.get("quality") == quality and f.get("file_type") == "video/mp4":
                return f
    return files[0] if files else None


async def search_pexels_videos(
    client: httpx.AsyncClient, query: str, count: int = 5, orientation: str = "landscape"
) -> tuple[list[VideoResult], str]:
    curated = curated_videos(query, count)
    if curated is not None:
        logger.info("Serving %d curated videos for %r", len(curated), query)
        return curated, "curated"

    # There is no stock-video placeholder service; callers fall back to a plain background
    if not settings.pexels_api_key:
        return [], "none"

    try:
        data = await _get_json(
            client,
            f"{PEXELS_VIDEO_API}/search",
            {"query": query, "per_page": count, "orientation": orientation},
            {"Authorization": settings.pexels_api_key},
        )
        videos = []
        for video in data.get("videos", []):
            file = _video_file(video.get("video_files", []))
            pictures = video.get("video_pictures", [])
            videos.append(VideoResult(
                id=str(video["id"]),
                url=file["link"] if file else "",
                poster=pictures[0]["picture"] if pictures else "",
                width=video["width"],
                height=video["height"],
                credit=ImageCredit(name=video["user"]["name"], url=video["user"].get("url")),
            ))
    except _LOOKUP_ERRORS as e:
        logger.warning("Pexels video search for %r failed: %s", query, e)
        return [], "error"

    return videos, "pexels"

import asyncio
import os

import requests

from jamstore.db.models import GeoPoint
from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

GEO_URL = os.getenv("JAMSTORE_GEO_URL", "http://ip-api.com/json/")
GEO_TIMEOUT = 5


class GeolocationError(Exception):
    pass


def _lookup(url: str) -> GeoPoint:
    try:
        resp = requests.get(url, timeout=GEO_TIMEOUT)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        raise GeolocationError(f"Location lookup failed: {e}") from e

    try:
        lat = float(data.get("lat", data.get("latitude")))
        lng = float(data.get("lon", data.get("longitude")))
    except (AttributeError, TypeError, ValueError) as e:
        raise GeolocationError("Location service returned no coordinates.") from e
    return GeoPoint(latitude=lat, longitude=lng)


async def locate(url: str = GEO_URL) -> GeoPoint:
    """Approximate position of this machine. Raises GeolocationError."""
    point = await asyncio.to_thread(_lookup, url)
    _logger.debug(f"Located at {point.latitude:.4f}, {point.longitude:.4f}")
    return point

"""
Delivery estimates between pickup points.

Walking distance comes from OpenRouteService when an API key is configured.
Without a key, or when the call fails, a fixed estimate is returned instead.
"""
import logging
import math
from typing import Any, Dict, List, Optional

import httpx

from .core import Estimate

logger = logging.getLogger(__name__)

# [longitude, latitude]
PICKUP_POINTS: Dict[str, List[float]] = {
    # ADMU
    "SEC-A Lobby": [121.07793, 14.64068],
    "Gate 2.5": [121.07888, 14.6418],
    "Regis": [121.07496, 14.63995],
    "Katipunan LRT": [121.07309, 14.63909],
    # UPD
    "AS Steps": [121.0647, 14.6547],
    "Shopping Center": [121.0657, 14.653],
    "Sunken Garden": [121.0644, 14.6536],
    # Manila
    "Main Gate": [120.989, 14.6096],
    "Quadricentennial Park": [120.9898, 14.6101],
    "Beato Library": [120.9904, 14.6092],
}

DEFAULT_METERS = 500
DEFAULT_SECONDS = 600
BASE_FEE = 10
FEE_PER_100M = 0.5

FALLBACK_ESTIMATE = Estimate(meters=500, minutes=10, fee=20, note="Estimated values (API unavailable)")


class UnknownPickupPoint(ValueError):
    pass


def lookup_point(name: Optional[str]) -> List[float]:
    coords = PICKUP_POINTS.get(name or "")
    if coords is None:
        raise UnknownPickupPoint(name)
    return coords


def fee_for_distance(meters: float) -> int:
    return math.ceil(BASE_FEE + math.ceil(meters / 100) * FEE_PER_100M)


def estimate_from_summary(summary: Dict[str, Any]) -> Estimate:
    meters = summary.get("distance")
    if meters is None:
        meters = DEFAULT_METERS
    seconds = summary.get("duration")
    if seconds is None:
        seconds = DEFAULT_SECONDS
    return Estimate(meters=meters, minutes=math.ceil(seconds / 60), fee=fee_for_distance(meters))


def _route_summary(data: Dict[str, Any]) -> Dict[str, Any]:
    features = data.get("features") or [{}]
    props = features[0].get("properties") or {}
    return props.get("summary") or {}


async def fetch_walking_estimate(
    client: httpx.AsyncClient,
    url: str,
    api_key: str,
    start: List[float],
    end: List[float],
) -> Optional[Estimate]:
    """Ask OpenRouteService for a walking route; None on any failure."""
    try:
        r = await client.post(
            url,
            headers={"Authorization": api_key, "Content-Type": "application/json"},
            json={"coordinates": [start, end]},
        )
        if not r.is_success:
            logger.warning(f"ORS returned HTTP {r.status_code}, falling back to estimate")
            return None
        return estimate_from_summary(_route_summary(r.json()))
    except (httpx.HTTPError, ValueError, TypeError, AttributeError, IndexError) as e:
        logger.warning(f"ORS API failed, falling back to estimate: {e}")
        return None


async def estimate_delivery(
    origin: Optional[str],
    destination: Optional[str],
    api_key: str = "",
    url: str = "",
    timeout: float = 5.0,
    client: Optional[httpx.AsyncClient] = None,
) -> Estimate:
    """
    Estimate walking distance, time and delivery fee between two pickup points.

    Raises UnknownPickupPoint if either name is not in PICKUP_POINTS.
    """
    start = lookup_point(origin)
    end = lookup_point(destination)

    if not api_key:
        return FALLBACK_ESTIMATE

    if client is not None:
        result = await fetch_walking_estimate(client, url, api_key, start, end)
    else:
        async with httpx.AsyncClient(timeout=timeout) as ac:
            result = await fetch_walking_estimate(ac, url, api_key, start, end)
    return result or FALLBACK_ESTIMATE

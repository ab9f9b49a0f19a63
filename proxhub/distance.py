"""Distance estimation from signal strength."""
from __future__ import annotations

import math
from typing import Optional

from proxhub.models.device_record import UNKNOWN_DISTANCE

DEFAULT_REFERENCE_POWER = -59
DEFAULT_DISTANCE = 5.0
NEAR_THRESHOLD = 2.0
MEDIUM_THRESHOLD = 5.0


def estimate_distance(rssi: int, reference_power: int = DEFAULT_REFERENCE_POWER) -> float:
    """Log-distance path-loss estimate.

    ``reference_power`` is the expected RSSI at one unit of distance. An
    RSSI of exactly 0 means the radio had no reading, and yields
    ``UNKNOWN_DISTANCE``. Raises ``ValueError`` when the reading is too
    weak for the estimate to be represented.
    """
    if rssi == 0:
        return UNKNOWN_DISTANCE
    try:
        return 10 ** ((reference_power - rssi) / 20.0)
    except OverflowError:
        raise ValueError(f"rssi {rssi} is out of range") from None


def resolve_distance(
    distance: Optional[float],
    rssi: Optional[int],
    *,
    reference_power: int = DEFAULT_REFERENCE_POWER,
    default: float = DEFAULT_DISTANCE,
) -> float:
    if distance is not None:
        if not math.isfinite(distance):
            raise ValueError(f"distance must be finite, got {distance!r}")
        return float(distance)
    if rssi is not None:
        return estimate_distance(rssi, reference_power)
    return default


def is_in_range(distance: float, near_threshold: float = NEAR_THRESHOLD) -> bool:
    # The -1.0 sentinel sorts below every threshold and counts as near.
    return distance <= near_threshold


def distance_bucket(
    distance: float,
    near_threshold: float = NEAR_THRESHOLD,
    medium_threshold: float = MEDIUM_THRESHOLD,
) -> str:
    if distance <= near_threshold:
        return "close"
    if distance <= medium_threshold:
        return "medium"
    return "far"


__all__ = [
    "DEFAULT_DISTANCE",
    "DEFAULT_REFERENCE_POWER",
    "MEDIUM_THRESHOLD",
    "NEAR_THRESHOLD",
    "distance_bucket",
    "estimate_distance",
    "is_in_range",
    "resolve_distance",
]

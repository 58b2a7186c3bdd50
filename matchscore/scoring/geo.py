"""Commute estimation helpers."""

from __future__ import annotations

import math

from matchscore.scoring.config import ScoringConfig
from matchscore.scoring.models import Coordinates, MatchInput

EARTH_RADIUS_KM = 6371.2


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two points in kilometres."""
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.asin(min(1.0, math.sqrt(h)))


def resolve_commute_minutes(
    match_input: MatchInput, config: ScoringConfig
) -> tuple[int | None, bool]:
    """Return (one-way minutes, estimated) for the candidate's commute.

    Supplied minutes take precedence; otherwise minutes are estimated from
    home and office coordinates. (None, False) when neither is available.
    """
    candidate = match_input.candidate
    if candidate.commute_minutes is not None:
        return candidate.commute_minutes, False

    office = match_input.job.office_location
    if candidate.home_location is None or office is None:
        return None, False

    km = haversine_km(candidate.home_location, office)
    return int(round(km / config.commute_speed_kmh * 60)), True

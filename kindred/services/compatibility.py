import math

from kindred.core.constants import (
    APOLITICAL,
    CHILDREN_MATCH,
    CHILDREN_MISMATCH,
    EARTH_RADIUS_KM,
    POLITICS_APOLITICAL,
    POLITICS_MATCH,
    POLITICS_MISMATCH,
    RELIGION_MATCH,
    RELIGION_MISMATCH,
    VALUES_BASE_SCORE,
    WEIGHT_AGE,
    WEIGHT_INTERESTS,
    WEIGHT_LOCATION,
    WEIGHT_VALUES,
)
from kindred.models.match import Compatibility, CompatibilityFactor
from kindred.models.profile import GeoPoint, Profile


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    h = math.sin(d_lat / 2) ** 2 + math.cos(math.radians(a.latitude)) * math.cos(
        math.radians(b.latitude)
    ) * math.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def age_score(a: Profile, b: Profile) -> float:
    return max(0, 100 - 2 * abs(a.age - b.age))


def common_interests(a: Profile, b: Profile) -> list[str]:
    theirs = set(b.interests)
    return [interest for interest in a.interests if interest in theirs]


def interest_score(a: Profile, b: Profile) -> float:
    largest = max(len(a.interests), len(b.interests))
    if largest == 0:
        return 0.0
    return 100 * len(common_interests(a, b)) / largest


def location_score(distance_km: float) -> float:
    return max(0.0, 100 - 2 * distance_km)


def values_score(a: Profile, b: Profile) -> int:
    score = VALUES_BASE_SCORE

    if a.religion and b.religion:
        score += RELIGION_MATCH if a.religion == b.religion else RELIGION_MISMATCH

    if a.political_views and b.political_views:
        if a.political_views == b.political_views:
            score += POLITICS_MATCH
        elif APOLITICAL in (a.political_views, b.political_views):
            score += POLITICS_APOLITICAL
        else:
            score += POLITICS_MISMATCH

    if a.wants_children is not None and b.wants_children is not None:
        score += CHILDREN_MATCH if a.wants_children == b.wants_children else CHILDREN_MISMATCH

    return max(0, min(100, score))


def calculate_compatibility(a: Profile, b: Profile) -> Compatibility:
    """
    Score how well two profiles fit together.

    Factors are age, interest overlap, distance (only when both profiles carry
    coordinates) and shared values. The total is the weighted sum of the
    included factors; weights are not rescaled when distance is missing.
    """
    factors = [
        CompatibilityFactor(factor="age", weight=WEIGHT_AGE, score=age_score(a, b)),
        CompatibilityFactor(factor="interests", weight=WEIGHT_INTERESTS, score=interest_score(a, b)),
    ]
    if a.location_data and b.location_data:
        distance = haversine_km(a.location_data, b.location_data)
        factors.append(CompatibilityFactor(factor="location", weight=WEIGHT_LOCATION, score=location_score(distance)))
    factors.append(CompatibilityFactor(factor="values", weight=WEIGHT_VALUES, score=values_score(a, b)))
    return Compatibility(factors=factors)

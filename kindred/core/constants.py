"""
Core constants used across the application. Keep these simple and documented.
"""

from typing import Final

# Compatibility factor weights. They are not renormalised when a factor is missing.
WEIGHT_AGE: Final[float] = 0.2
WEIGHT_INTERESTS: Final[float] = 0.3
WEIGHT_LOCATION: Final[float] = 0.25
WEIGHT_VALUES: Final[float] = 0.25

EARTH_RADIUS_KM: Final[float] = 6371.0

# Values factor adjustments
VALUES_BASE_SCORE: Final[int] = 50
RELIGION_MATCH: Final[int] = 20
RELIGION_MISMATCH: Final[int] = -10
POLITICS_MATCH: Final[int] = 15
POLITICS_APOLITICAL: Final[int] = 5
POLITICS_MISMATCH: Final[int] = -10
CHILDREN_MATCH: Final[int] = 15
CHILDREN_MISMATCH: Final[int] = -20
APOLITICAL: Final[str] = "apolitical"

# Match quality buckets (compatibility score lower bounds)
QUALITY_HIGH_MIN_SCORE: Final[int] = 70
QUALITY_MEDIUM_MIN_SCORE: Final[int] = 40

# Profile limits
MIN_AGE: Final[int] = 18
MAX_AGE: Final[int] = 100
MAX_BIO_LENGTH: Final[int] = 500
MAX_PHOTOS: Final[int] = 6
MAX_INTEREST_LENGTH: Final[int] = 50
MAX_LOOKING_FOR_LENGTH: Final[int] = 200

MAX_MESSAGE_LENGTH: Final[int] = 1000
MIN_PASSWORD_LENGTH: Final[int] = 6

USERS: Final[str] = "users"
PROFILES: Final[str] = "profiles"
MATCHES: Final[str] = "matches"

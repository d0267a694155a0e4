"""
Wormhole Router Constants

Shared constants used by the catalog, classifier and route services.
"""

# =============================================================================
# ESI Route Service
# =============================================================================

ESI_ROUTE_BASE_URL = "https://esi.evetech.net/route"
ESI_COMPATIBILITY_DATE = "2025-09-30"

# Route preferences accepted by /route/{origin}/{destination}
DEFAULT_PREFERENCE = "Shorter"
VALID_PREFERENCES = frozenset({"Shorter", "Safer", "LessSecure"})

# HTTP status codes that should trigger retry
RETRYABLE_STATUS_CODES = {
    429,  # Too Many Requests (rate limited)
    502,  # Bad Gateway
    503,  # Service Unavailable
    504,  # Gateway Timeout
}

# =============================================================================
# System Classification
#
# Solar system IDs at or above this value belong to wormhole space
# (J-space, Thera, Pochven-adjacent drifter holes).
# =============================================================================

WORMHOLE_ID_MIN = 31_000_000

# EVE security thresholds: >= 0.45 rounds to high-sec, > 0.0 is low-sec
HIGHSEC_THRESHOLD = 0.45
LOWSEC_THRESHOLD = 0.0

# Class tokens that may appear in a bookmark label ("- ABC C3 J123456")
WORMHOLE_CLASS_PATTERN = r"\b(C(?:[1-9]|1[0-8])|THERA)\b"

# =============================================================================
# Route Planning
# =============================================================================

DEFAULT_EXIT_CANDIDATE_LIMIT = 10
DEFAULT_BRIDGE_CANDIDATE_LIMIT = 4
DEFAULT_SUGGESTION_LIMIT = 8

# Minimum fuzzy score for a catalog name to count as a suggestion
MIN_SUGGESTION_SCORE = 5.0
MIN_SUGGESTION_QUERY = 2

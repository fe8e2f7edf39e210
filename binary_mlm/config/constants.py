"""
Application constants.

Centralized constants for the binary plan.
"""

from decimal import Decimal

# Money precision for commission amounts
MONEY_QUANTUM = Decimal("0.01")

# Tree snapshot: derived leg statistics only for the first N levels
SNAPSHOT_STATS_DEPTH = 3

# Tree snapshot cache key prefix
TREE_CACHE_KEY_PREFIX = "tree"

# Member public code
MEMBER_CODE_LENGTH = 8
MEMBER_CODE_MAX_ATTEMPTS = 10

# Commission reasons returned to the UI
REASON_NOT_QUALIFIED = (
    "Member not qualified: needs at least one active direct member "
    "on the left and one on the right"
)
REASON_NO_ACTIVES = "Empty leg: no active member on the left or right leg"
REASON_EMPTY_VOLUME = "Empty leg: no volume on the {side} leg - no cycle possible"
REASON_INSUFFICIENT_VOLUME = (
    "Insufficient volume: weaker leg is below one cycle"
)
REASON_DAILY_LIMIT = "Daily cycle limit reached"
REASON_WEEKLY_LIMIT = "Weekly cycle limit reached"

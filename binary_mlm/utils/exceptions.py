"""
Exception handling utilities.

Defines the error taxonomy of the binary plan and categorized
store exceptions for graceful degradation during traversal.
"""

from sqlalchemy.exc import DisconnectionError, OperationalError, TimeoutError as PoolTimeoutError


class BinaryMLMError(Exception):
    """Base error of the binary plan."""
    pass


class MemberNotFoundError(BinaryMLMError):
    """Raised when a referenced member or sponsor does not exist."""

    def __init__(self, member_id: int | str, role: str = "Member") -> None:
        self.member_id = member_id
        self.role = role
        super().__init__(f"{role} {member_id} not found")


class PlacementError(BinaryMLMError):
    """Raised when a tree slot cannot be assigned."""
    pass


class InvalidPositionError(PlacementError):
    """Requested position is neither 'left' nor 'right'."""
    pass


class SponsorFullError(PlacementError):
    """Sponsor already has both a left and a right child."""
    pass


class SlotOccupiedError(PlacementError):
    """Requested side of the sponsor is already taken."""
    pass


class PayoutAtomicityError(BinaryMLMError):
    """Raised when the atomic payout section failed and was rolled back."""
    pass


# Exception categories based on handling strategy

# Transient store failures - logged, branch treated as inactive/empty
TRANSIENT_STORE_ERRORS = (
    OperationalError,   # Connection dropped, statement timeout, locked db
    DisconnectionError,
    PoolTimeoutError,   # Connection pool exhausted
    ConnectionError,
    TimeoutError,
)


def is_transient_store_error(exc: BaseException) -> bool:
    """
    Check if exception is a transient store failure.

    Args:
        exc: Exception to check

    Returns:
        True if the failure may be degraded to an empty result
    """
    return isinstance(exc, TRANSIENT_STORE_ERRORS)

"""
Member code helpers.

Public 8-digit numeric codes given to members on enrollment.
"""

import secrets

from binary_mlm.config.constants import MEMBER_CODE_LENGTH

_CODE_MIN = 10 ** (MEMBER_CODE_LENGTH - 1)
_CODE_MAX = 10 ** MEMBER_CODE_LENGTH - 1


def generate_member_code() -> str:
    """
    Generate a random member code.

    Returns:
        8-digit numeric string, first digit non-zero
    """
    return str(_CODE_MIN + secrets.randbelow(_CODE_MAX - _CODE_MIN + 1))


def is_valid_member_code(code: str) -> bool:
    """
    Validate member code format.

    Args:
        code: Code to check

    Returns:
        True if code is exactly 8 ASCII digits
    """
    return (
        len(code) == MEMBER_CODE_LENGTH
        and code.isascii()
        and code.isdigit()
    )

"""
Standard type definitions for database models.

Provides a consistent type for monetary and volume fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for volumes, commissions, balances
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

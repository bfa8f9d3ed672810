"""
Warranty Calculator
===================

Every sale carries a fixed 15-day store warranty. The end date is computed
once, whenever the purchase date is written, and stored next to it so the
cohort queries can compare stored values directly.
"""

from datetime import date, timedelta
from typing import TypeVar

WARRANTY_DAYS = 15

D = TypeVar("D", bound=date)


def compute_warranty_end(purchase_date: D) -> D:
    """Return purchase_date + WARRANTY_DAYS calendar days (date or datetime)."""
    return purchase_date + timedelta(days=WARRANTY_DAYS)

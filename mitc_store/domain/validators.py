"""
Validators - Customer and Review Input Rules
=============================================

Each validate_* function returns a list of human-readable errors (empty
when valid). Managers turn a non-empty list into a ValidationError before
touching the store.
"""

import re
from typing import Any, List, Mapping, Optional

from .formatters import clean_phone, parse_datetime

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_RATING = 1
MAX_RATING = 5


def is_required(value: Any) -> bool:
    if isinstance(value, str):
        return len(value.strip()) > 0
    return value is not None


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def is_valid_phone(phone: str) -> bool:
    """10 digits once spaces, dashes and brackets are stripped."""
    return len(clean_phone(phone)) == 10


def is_valid_date(value: Any) -> bool:
    try:
        parse_datetime(value)
        return True
    except (TypeError, ValueError):
        return False


def coerce_rating(rating: Any) -> Optional[int]:
    """Integer rating in range, or None. Accepts numeric strings, rejects bools and fractions."""
    if isinstance(rating, bool):
        return None
    if isinstance(rating, str):
        rating = rating.strip()
        if not rating.isdigit():
            return None
        rating = int(rating)
    if isinstance(rating, float):
        if not rating.is_integer():
            return None
        rating = int(rating)
    if not isinstance(rating, int):
        return None
    if MIN_RATING <= rating <= MAX_RATING:
        return rating
    return None


def validate_customer(data: Mapping[str, Any]) -> List[str]:
    errors = []

    if not is_required(data.get("name")):
        errors.append("Name is required")

    phone = data.get("phone")
    if not is_required(phone):
        errors.append("Phone is required")
    elif not is_valid_phone(str(phone)):
        errors.append("Valid 10-digit phone number is required")

    email = data.get("email")
    if email and not is_valid_email(str(email)):
        errors.append("Valid email is required")

    purchase_date = data.get("purchase_date")
    if not is_required(purchase_date):
        errors.append("Purchase date is required")
    elif not is_valid_date(purchase_date):
        errors.append("Purchase date is not a valid date")

    if not is_required(data.get("product_id")):
        errors.append("Product is required")

    return errors


def validate_customer_changes(changes: Mapping[str, Any]) -> List[str]:
    """Same rules as validate_customer, applied only to the fields being changed."""
    errors = []

    if "name" in changes and not is_required(changes["name"]):
        errors.append("Name cannot be empty")

    if "phone" in changes and not is_valid_phone(str(changes["phone"])):
        errors.append("Valid 10-digit phone number is required")

    email = changes.get("email")
    if email and not is_valid_email(str(email)):
        errors.append("Valid email is required")

    if "purchase_date" in changes and not is_valid_date(changes["purchase_date"]):
        errors.append("Purchase date is not a valid date")

    if "product_id" in changes and not is_required(changes["product_id"]):
        errors.append("Product cannot be empty")

    return errors


def validate_review(data: Mapping[str, Any]) -> List[str]:
    errors = []

    if not is_required(data.get("customer_name")):
        errors.append("Name is required")

    rating = data.get("rating")
    if not is_required(rating):
        errors.append("Rating is required")
    elif coerce_rating(rating) is None:
        errors.append(f"Rating must be a whole number between {MIN_RATING} and {MAX_RATING}")

    if not is_required(data.get("comment")):
        errors.append("Comment is required")

    return errors

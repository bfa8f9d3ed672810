"""
Error Taxonomy
==============

Every layer raises one of these. The web layer maps them to HTTP status
codes; the campaign runner logs BackendError per customer and moves on.
"""

from typing import Iterable


class StoreError(Exception):
    """Base exception for all store errors."""
    pass


class ValidationError(StoreError):
    """Required field missing or a constraint violated. Raised before any write."""

    def __init__(self, errors: Iterable[str]):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(StoreError):
    """Lookup by id found no record."""

    def __init__(self, entity: str, record_id: str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} not found: {record_id}")


class BackendError(StoreError):
    """The persistence or messaging collaborator failed."""
    pass

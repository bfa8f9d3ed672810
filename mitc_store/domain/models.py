"""
Domain Models - Customers, Reviews and Typed Patches
=====================================================

Records are plain dataclasses converted to and from store documents.
Timestamps travel through the store as ISO strings and come back out
as aware datetimes.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .errors import ValidationError
from .formatters import DateLike, parse_datetime, parse_optional_datetime


class CustomerStatus(Enum):
    """Warranty lifecycle status. Only ever advances, in declaration order."""
    ACTIVE = "Active"
    WARRANTY_EXPIRED = "WarrantyExpired"
    REVIEW_REQUESTED = "ReviewRequested"
    COMPLETED = "Completed"

    @property
    def rank(self) -> int:
        return list(CustomerStatus).index(self)

    @classmethod
    def parse(cls, value: Union["CustomerStatus", str]) -> "CustomerStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError(f"Invalid customer status '{value}'. Allowed: {allowed}")


class ReviewStatus(Enum):
    """Moderation status for a store review."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @classmethod
    def parse(cls, value: Union["ReviewStatus", str]) -> "ReviewStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError(f"Invalid review status '{value}'. Allowed: {allowed}")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Customer:
    """Customer record: one sale with its warranty window."""
    id: str
    name: str
    phone: str
    purchase_date: datetime
    warranty_end_date: datetime
    product_id: str
    email: str = ""
    product_details: Dict[str, Any] = field(default_factory=dict)
    notes: str = ""
    status: CustomerStatus = CustomerStatus.ACTIVE
    created_at: Optional[datetime] = None
    reminder_sent_at: Optional[datetime] = None

    @property
    def product_title(self) -> str:
        return str(self.product_details.get("title") or "")

    def warranty_expired(self, now: datetime) -> bool:
        return now > self.warranty_end_date

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Customer":
        return cls(
            id=doc["id"],
            name=doc.get("name", ""),
            phone=doc.get("phone", ""),
            purchase_date=parse_datetime(doc["purchase_date"]),
            warranty_end_date=parse_datetime(doc["warranty_end_date"]),
            product_id=doc.get("product_id", ""),
            email=doc.get("email") or "",
            product_details=doc.get("product_details") or {},
            notes=doc.get("notes") or "",
            status=CustomerStatus(doc.get("status", CustomerStatus.ACTIVE.value)),
            created_at=parse_optional_datetime(doc.get("created_at")),
            reminder_sent_at=parse_optional_datetime(doc.get("reminder_sent_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "purchase_date": _iso(self.purchase_date),
            "warranty_end_date": _iso(self.warranty_end_date),
            "product_id": self.product_id,
            "product_details": self.product_details,
            "notes": self.notes,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "reminder_sent_at": _iso(self.reminder_sent_at),
        }


@dataclass
class CustomerPatch:
    """
    Updatable customer fields. None means "leave unchanged".

    warranty_end_date is not a field: the manager derives it from
    purchase_date and writes both in the same update.
    """
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    purchase_date: Optional[DateLike] = None
    product_id: Optional[str] = None
    product_details: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    status: Optional[Union[CustomerStatus, str]] = None

    @classmethod
    def from_mapping(cls, changes: Mapping[str, Any]) -> "CustomerPatch":
        allowed = {f.name for f in fields(cls)}
        unknown = sorted(set(changes) - allowed)
        if unknown:
            errors = []
            for key in unknown:
                if key == "warranty_end_date":
                    errors.append("warranty_end_date is derived from purchase_date and cannot be set")
                else:
                    errors.append(f"Unknown customer field: {key}")
            raise ValidationError(errors)
        return cls(**dict(changes))

    def changes(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def is_empty(self) -> bool:
        return not self.changes()


@dataclass
class Review:
    """Store review submitted by a customer."""
    id: str
    customer_name: str
    rating: int
    comment: str
    title: str = ""
    status: ReviewStatus = ReviewStatus.PENDING
    source: str = "Manual"
    created_at: Optional[datetime] = None

    @property
    def is_approved(self) -> bool:
        return self.status == ReviewStatus.APPROVED

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Review":
        return cls(
            id=doc["id"],
            customer_name=doc.get("customer_name", ""),
            rating=int(doc.get("rating", 0)),
            comment=doc.get("comment", ""),
            title=doc.get("title") or "",
            status=ReviewStatus(doc.get("status", ReviewStatus.PENDING.value)),
            source=doc.get("source") or "Manual",
            created_at=parse_optional_datetime(doc.get("created_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "rating": self.rating,
            "title": self.title,
            "comment": self.comment,
            "status": self.status.value,
            "source": self.source,
            "created_at": _iso(self.created_at),
        }


@dataclass
class ReviewStats:
    """Aggregate over approved reviews. average_rating is "4.4"-style text, or 0 when empty."""
    total: int = 0
    average_rating: Union[str, int] = 0
    rating_distribution: Dict[int, int] = field(default_factory=lambda: {r: 0 for r in range(1, 6)})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "average_rating": self.average_rating,
            "rating_distribution": dict(self.rating_distribution),
        }


"""
Review Lifecycle Manager - Submission, Moderation and Statistics
=================================================================

Reviews arrive Pending and become visible on the storefront only once an
admin approves them. Moderation is a plain overwrite: an approved review
can later be rejected and vice versa, but nothing moves back to Pending.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Mapping, Optional, Union

from ..domain.errors import NotFoundError, ValidationError
from ..domain.models import Review, ReviewStats, ReviewStatus
from ..domain.validators import coerce_rating, validate_review
from ..infrastructure.persistence import DocumentStore

logger = logging.getLogger(__name__)

REVIEWS_COLLECTION = "store_reviews"
DEFAULT_SOURCE = "Manual"

MODERATION_DECISIONS = (ReviewStatus.APPROVED, ReviewStatus.REJECTED)


class ReviewManager:
    """
    Store reviews.

    Usage:
        reviews = ReviewManager(store)
        review = reviews.submit({"customer_name": "Asif", "rating": 5, "comment": "Great laptop"})
        reviews.approve(review.id)
        print(reviews.stats().average_rating)
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def submit(self, data: Mapping[str, Any]) -> Review:
        """Validate and store a new review in Pending state."""
        errors = validate_review(data)
        if errors:
            raise ValidationError(errors)

        document = {
            "customer_name": str(data["customer_name"]).strip(),
            "rating": coerce_rating(data["rating"]),
            "title": (data.get("title") or "").strip(),
            "comment": str(data["comment"]).strip(),
            "status": ReviewStatus.PENDING.value,
            "source": data.get("source") or DEFAULT_SOURCE,
            "created_at": self.store.server_timestamp(),
        }

        review_id = self.store.add(REVIEWS_COLLECTION, document)
        logger.info(f"Review {review_id} submitted by {document['customer_name']} ({document['rating']} stars)")
        return self.get(review_id)

    def get(self, review_id: str) -> Review:
        doc = self.store.get(REVIEWS_COLLECTION, review_id)
        if doc is None:
            raise NotFoundError("Review", review_id)
        return Review.from_document(doc)

    def list(self, status: Optional[Union[ReviewStatus, str]] = None) -> List[Review]:
        """Reviews, newest first, optionally filtered by status."""
        where = None
        if status is not None:
            where = ("status", ReviewStatus.parse(status).value)

        docs = self.store.query(REVIEWS_COLLECTION, where=where, order_by="created_at", descending=True)
        return [Review.from_document(doc) for doc in docs]

    def list_approved(self) -> List[Review]:
        """The only subset shown to storefront visitors."""
        return self.list(status=ReviewStatus.APPROVED)

    def moderate(self, review_id: str, decision: Union[ReviewStatus, str]) -> Review:
        status = ReviewStatus.parse(decision)
        if status not in MODERATION_DECISIONS:
            raise ValidationError(f"Moderation decision must be Approved or Rejected, got {status.value}")

        if not self.store.update(REVIEWS_COLLECTION, review_id, {"status": status.value}):
            raise NotFoundError("Review", review_id)

        logger.info(f"Review {review_id} moderated: {status.value}")
        return self.get(review_id)

    def approve(self, review_id: str) -> Review:
        return self.moderate(review_id, ReviewStatus.APPROVED)

    def reject(self, review_id: str) -> Review:
        return self.moderate(review_id, ReviewStatus.REJECTED)

    def delete(self, review_id: str) -> None:
        self.store.delete(REVIEWS_COLLECTION, review_id)
        logger.info(f"Deleted review {review_id}")

    def stats(self) -> ReviewStats:
        """
        Totals over approved reviews.

        average_rating is the mean rounded half-up to one decimal, as text
        ("4.4"); an empty set gives zeroed stats rather than an error.
        """
        reviews = self.list_approved()
        stats = ReviewStats()
        if not reviews:
            return stats

        total_rating = 0
        for review in reviews:
            total_rating += review.rating
            stats.rating_distribution[review.rating] += 1

        stats.total = len(reviews)
        mean = Decimal(total_rating) / Decimal(stats.total)
        stats.average_rating = str(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
        return stats

"""
Customer Lifecycle Manager - Warranty State Machine
====================================================

Owns customer records and their status:

    Active --(now > warranty_end_date)--> WarrantyExpired
    WarrantyExpired --(mark_review_requested)--> ReviewRequested
    ReviewRequested --(mark_completed)--> Completed

Statuses only move forward. The manager never runs anything on its own:
the scheduler (run_campaign.py) calls recompute_status / recompute_all and
the cohort queries, sends messages, then reports back through
mark_review_requested.

Cohort queries scan the whole candidate set in memory. The store serves a
single shop, so a few thousand customers is the expected ceiling; scans
above COHORT_SCAN_WARN_THRESHOLD are logged.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from ..domain.errors import NotFoundError, ValidationError
from ..domain.formatters import clean_phone, parse_datetime
from ..domain.models import Customer, CustomerPatch, CustomerStatus
from ..domain.templates import render_warranty_message
from ..domain.validators import validate_customer, validate_customer_changes
from ..domain.warranty import compute_warranty_end
from ..infrastructure.persistence import DocumentStore

logger = logging.getLogger(__name__)

CUSTOMERS_COLLECTION = "customers"
COHORT_SCAN_WARN_THRESHOLD = 2000

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CustomerManager:
    """
    Customer records and warranty lifecycle.

    Usage:
        customers = CustomerManager(store)
        customer = customers.create({
            "name": "Asif", "phone": "9876543210",
            "purchase_date": date(2024, 1, 20), "product_id": "tp-x1",
        })
        customers.expiring_within(3)
    """

    def __init__(self, store: DocumentStore, clock: Optional[Clock] = None):
        self.store = store
        self._clock = clock or utc_now

    def now(self) -> datetime:
        return self._clock()

    # ── CRUD ───────────────────────────────────────────────────────

    def create(self, data: Mapping[str, Any]) -> Customer:
        """Validate, derive the warranty end date, persist as Active."""
        errors = validate_customer(data)
        if errors:
            raise ValidationError(errors)

        purchase_date = parse_datetime(data["purchase_date"])
        document = {
            "name": str(data["name"]).strip(),
            "phone": clean_phone(data["phone"]),
            "email": (data.get("email") or "").strip(),
            "purchase_date": purchase_date,
            "warranty_end_date": compute_warranty_end(purchase_date),
            "product_id": str(data["product_id"]),
            "product_details": dict(data.get("product_details") or {}),
            "notes": data.get("notes") or "",
            "status": CustomerStatus.ACTIVE.value,
            "created_at": self.store.server_timestamp(),
        }

        customer_id = self.store.add(CUSTOMERS_COLLECTION, document)
        logger.info(f"Created customer {customer_id} ({document['name']}), warranty ends {document['warranty_end_date'].date()}")
        return self.get(customer_id)

    def bulk_create(self, rows: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Create many customers, e.g. from an imported sales sheet.

        Returns:
            Dict with 'added' count and 'errors' list; one bad row does not stop the rest
        """
        result = {"added": 0, "errors": []}
        for index, row in enumerate(rows, start=1):
            try:
                self.create(row)
                result["added"] += 1
            except ValidationError as e:
                result["errors"].append(f"Row {index} ({row.get('name') or 'Unknown'}): {e}")
                logger.warning(f"Skipped import row {index}: {e}")

        logger.info(f"Bulk import: {result['added']} added, {len(result['errors'])} rejected")
        return result

    def get(self, customer_id: str) -> Customer:
        doc = self.store.get(CUSTOMERS_COLLECTION, customer_id)
        if doc is None:
            raise NotFoundError("Customer", customer_id)
        return Customer.from_document(doc)

    def list(self, status: Optional[Union[CustomerStatus, str]] = None) -> List[Customer]:
        """All customers, most recent purchase first, optionally filtered by status."""
        where = None
        if status is not None:
            where = ("status", CustomerStatus.parse(status).value)

        docs = self.store.query(CUSTOMERS_COLLECTION, where=where, order_by="purchase_date", descending=True)
        return [Customer.from_document(doc) for doc in docs]

    def update(self, customer_id: str, changes: Union[CustomerPatch, Mapping[str, Any]]) -> Customer:
        """
        Apply a patch. A new purchase_date brings its recomputed
        warranty_end_date in the same document update.
        """
        patch = changes if isinstance(changes, CustomerPatch) else CustomerPatch.from_mapping(changes)
        fields = patch.changes()

        errors = validate_customer_changes(fields)
        if errors:
            raise ValidationError(errors)

        current = self.get(customer_id)
        if patch.is_empty():
            return current

        if "phone" in fields:
            fields["phone"] = clean_phone(fields["phone"])

        warranty_end = current.warranty_end_date
        if "purchase_date" in fields:
            purchase_date = parse_datetime(fields["purchase_date"])
            fields["purchase_date"] = purchase_date
            fields["warranty_end_date"] = warranty_end = compute_warranty_end(purchase_date)
            # A new warranty window gets its own reminder
            if warranty_end != current.warranty_end_date:
                fields["reminder_sent_at"] = None

        if "status" in fields:
            status = CustomerStatus.parse(fields["status"])
            self._check_transition(current, status, warranty_end)
            fields["status"] = status.value

        if not self.store.update(CUSTOMERS_COLLECTION, customer_id, fields):
            raise NotFoundError("Customer", customer_id)

        logger.info(f"Updated customer {customer_id}: {', '.join(sorted(fields))}")
        return self.get(customer_id)

    def delete(self, customer_id: str) -> None:
        """Remove a customer for good. No lifecycle checks."""
        self.store.delete(CUSTOMERS_COLLECTION, customer_id)
        logger.info(f"Deleted customer {customer_id}")

    # ── Status transitions ─────────────────────────────────────────

    def _check_transition(self, customer: Customer, status: CustomerStatus, warranty_end: datetime) -> None:
        """
        Raise ValidationError unless `status` is the current status or a
        transition the state machine allows. `warranty_end` is the end date
        the customer will have once the pending write lands.
        """
        current = customer.status
        if status == current:
            return
        if status.rank < current.rank:
            raise ValidationError(
                f"Customer {customer.id} cannot move from {current.value} back to {status.value}"
            )

        lapsed = self.now() > warranty_end
        if status == CustomerStatus.WARRANTY_EXPIRED:
            allowed = lapsed
        elif status == CustomerStatus.REVIEW_REQUESTED:
            allowed = current == CustomerStatus.WARRANTY_EXPIRED or lapsed
        else:
            allowed = current == CustomerStatus.REVIEW_REQUESTED

        if not allowed:
            raise ValidationError(
                f"Customer {customer.id} cannot move from {current.value} to {status.value}"
                + ("" if lapsed else " while the warranty is still valid")
            )

    def _set_status(self, customer: Customer, status: CustomerStatus) -> Customer:
        if not self.store.update(CUSTOMERS_COLLECTION, customer.id, {"status": status.value}):
            raise NotFoundError("Customer", customer.id)
        logger.info(f"Customer {customer.id} ({customer.name}): {customer.status.value} -> {status.value}")
        customer.status = status
        return customer

    def recompute_status(self, customer_id: str) -> CustomerStatus:
        """Expire an Active customer whose warranty has passed. No-op otherwise."""
        customer = self.get(customer_id)
        if customer.status == CustomerStatus.ACTIVE and customer.warranty_expired(self.now()):
            self._set_status(customer, CustomerStatus.WARRANTY_EXPIRED)
        return customer.status

    def recompute_all(self) -> List[Customer]:
        """Run the expiry check over every Active customer. Returns those that expired."""
        now = self.now()
        active = self.list(status=CustomerStatus.ACTIVE)
        self._warn_on_large_scan(len(active), "recompute_all")

        expired = []
        for customer in active:
            if customer.warranty_expired(now):
                expired.append(self._set_status(customer, CustomerStatus.WARRANTY_EXPIRED))

        if expired:
            logger.info(f"{len(expired)} warranties expired")
        return expired

    def mark_review_requested(self, customer_id: str) -> Customer:
        """Record that a review request was sent. Caller invokes this after a successful send."""
        customer = self.get(customer_id)
        if customer.status == CustomerStatus.WARRANTY_EXPIRED:
            return self._set_status(customer, CustomerStatus.REVIEW_REQUESTED)
        if customer.status == CustomerStatus.ACTIVE and customer.warranty_expired(self.now()):
            return self._set_status(customer, CustomerStatus.REVIEW_REQUESTED)
        raise ValidationError(
            f"Cannot request a review from customer {customer_id} in status {customer.status.value}"
        )

    def mark_completed(self, customer_id: str) -> Customer:
        customer = self.get(customer_id)
        if customer.status != CustomerStatus.REVIEW_REQUESTED:
            raise ValidationError(
                f"Only customers in {CustomerStatus.REVIEW_REQUESTED.value} can be completed "
                f"(customer {customer_id} is {customer.status.value})"
            )
        return self._set_status(customer, CustomerStatus.COMPLETED)

    def mark_reminder_sent(self, customer_id: str) -> Customer:
        """Stamp the expiry reminder as delivered for the current warranty window."""
        sent_at = self.store.server_timestamp()
        if not self.store.update(CUSTOMERS_COLLECTION, customer_id, {"reminder_sent_at": sent_at}):
            raise NotFoundError("Customer", customer_id)
        logger.info(f"Reminder recorded for customer {customer_id}")
        return self.get(customer_id)

    # ── Cohorts ────────────────────────────────────────────────────

    def _warn_on_large_scan(self, size: int, operation: str) -> None:
        if size > COHORT_SCAN_WARN_THRESHOLD:
            logger.warning(f"{operation} scanned {size} customers (threshold {COHORT_SCAN_WARN_THRESHOLD})")

    def expiring_within(self, days_ahead: int = 3) -> List[Customer]:
        """Active customers whose warranty ends in [now, now + days_ahead]."""
        if days_ahead < 0:
            raise ValidationError("days_ahead cannot be negative")

        now = self.now()
        horizon = now + timedelta(days=days_ahead)
        candidates = self.list(status=CustomerStatus.ACTIVE)
        self._warn_on_large_scan(len(candidates), "expiring_within")

        return [c for c in candidates if now <= c.warranty_end_date <= horizon]

    def awaiting_reminder(self, days_ahead: int = 3) -> List[Customer]:
        """expiring_within() minus customers already reminded for this warranty."""
        return [c for c in self.expiring_within(days_ahead) if c.reminder_sent_at is None]

    def expired_needing_review(self) -> List[Customer]:
        """Warranty in the past and no review requested or completed yet."""
        now = self.now()
        done = (CustomerStatus.REVIEW_REQUESTED, CustomerStatus.COMPLETED)
        candidates = self.list()
        self._warn_on_large_scan(len(candidates), "expired_needing_review")

        return [c for c in candidates if c.warranty_end_date < now and c.status not in done]

    # ── Messages ───────────────────────────────────────────────────

    def compose_message(self, customer: Customer, kind, site_settings: Mapping[str, Any]) -> str:
        """Render a warranty template for this customer with the given site settings."""
        return render_warranty_message(kind, customer, site_settings)

"""
Integration tests for the customer warranty lifecycle.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import NOW
from mitc_store.application.customer_manager import CUSTOMERS_COLLECTION
from mitc_store.domain.errors import NotFoundError, ValidationError
from mitc_store.domain.models import CustomerPatch, CustomerStatus


def test_create_sets_active_and_warranty_end(customers):
    """New customers start Active with warranty_end = purchase + 15 days."""
    customer = customers.create({
        "name": " Asif ",
        "phone": "98765-43210",
        "purchase_date": date(2024, 1, 20),
        "product_id": "tp-x1",
        "product_details": {"title": "ThinkPad X1", "price": 85000},
    })

    assert customer.id
    assert customer.name == "Asif"
    assert customer.phone == "9876543210"
    assert customer.status == CustomerStatus.ACTIVE
    assert customer.purchase_date == datetime(2024, 1, 20, tzinfo=timezone.utc)
    assert customer.warranty_end_date == datetime(2024, 2, 4, tzinfo=timezone.utc)
    assert customer.product_details == {"title": "ThinkPad X1", "price": 85000}
    assert customer.email == ""
    assert customer.created_at is not None


def test_create_year_boundary(customers):
    customer = customers.create({
        "name": "Bilal", "phone": "9876500001", "purchase_date": "2024-12-25", "product_id": "p1",
    })
    assert customer.warranty_end_date.date() == date(2025, 1, 9)


def test_create_rejects_invalid_input_before_writing(customers, store):
    with pytest.raises(ValidationError) as exc:
        customers.create({"name": "Asif", "phone": "12345", "purchase_date": "2024-01-20"})

    assert "Valid 10-digit phone number is required" in exc.value.errors
    assert "Product is required" in exc.value.errors
    assert store.count(CUSTOMERS_COLLECTION) == 0


def test_get_missing_raises_not_found(customers):
    with pytest.raises(NotFoundError):
        customers.get("does-not-exist")


def test_list_orders_by_purchase_date_desc(customers, make_customer):
    older = make_customer(purchase_date=NOW - timedelta(days=10))
    newest = make_customer(purchase_date=NOW)
    middle = make_customer(purchase_date=NOW - timedelta(days=5))

    assert [c.id for c in customers.list()] == [newest.id, middle.id, older.id]


def test_list_filters_by_status(customers, make_customer):
    expired = make_customer(warranty_end=NOW - timedelta(days=1))
    active = make_customer(warranty_end=NOW + timedelta(days=5))
    customers.recompute_status(expired.id)

    assert [c.id for c in customers.list(status="Active")] == [active.id]
    assert [c.id for c in customers.list(status=CustomerStatus.WARRANTY_EXPIRED)] == [expired.id]


def test_update_purchase_date_recomputes_warranty(customers, make_customer):
    customer = make_customer(purchase_date=date(2024, 1, 20))

    updated = customers.update(customer.id, {"purchase_date": date(2024, 3, 1)})

    assert updated.purchase_date == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert updated.warranty_end_date == datetime(2024, 3, 16, tzinfo=timezone.utc)
    assert customers.get(customer.id).warranty_end_date == updated.warranty_end_date


def test_update_other_fields_keeps_warranty(customers, make_customer):
    customer = make_customer(purchase_date=date(2024, 1, 20))

    updated = customers.update(customer.id, CustomerPatch(notes="Charger replaced", phone="98765 11111"))

    assert updated.notes == "Charger replaced"
    assert updated.phone == "9876511111"
    assert updated.warranty_end_date == customer.warranty_end_date


def test_update_cannot_set_warranty_end_directly(customers, make_customer):
    customer = make_customer()
    with pytest.raises(ValidationError):
        customers.update(customer.id, {"warranty_end_date": "2030-01-01"})


def test_update_rejects_status_regression(customers, make_customer):
    customer = make_customer(warranty_end=NOW - timedelta(days=1))
    customers.recompute_status(customer.id)

    with pytest.raises(ValidationError):
        customers.update(customer.id, {"status": "Active"})
    assert customers.get(customer.id).status == CustomerStatus.WARRANTY_EXPIRED


def test_update_missing_customer(customers):
    with pytest.raises(NotFoundError):
        customers.update("nope", {"notes": "x"})


def test_delete_is_irreversible(customers, make_customer):
    customer = make_customer()
    customers.delete(customer.id)
    with pytest.raises(NotFoundError):
        customers.get(customer.id)


def test_recompute_status_expires_once(customers, make_customer):
    """Idempotent: second call leaves WarrantyExpired alone."""
    customer = make_customer(warranty_end=NOW - timedelta(hours=1))

    assert customers.recompute_status(customer.id) == CustomerStatus.WARRANTY_EXPIRED
    assert customers.recompute_status(customer.id) == CustomerStatus.WARRANTY_EXPIRED
    assert customers.get(customer.id).status == CustomerStatus.WARRANTY_EXPIRED


def test_recompute_status_leaves_valid_warranty_active(customers, make_customer):
    customer = make_customer(warranty_end=NOW + timedelta(days=1))
    assert customers.recompute_status(customer.id) == CustomerStatus.ACTIVE


def test_recompute_status_never_regresses(customers, make_customer, clock):
    customer = make_customer(warranty_end=NOW - timedelta(days=1))
    customers.mark_review_requested(customer.id)

    clock.now = NOW - timedelta(days=30)
    assert customers.recompute_status(customer.id) == CustomerStatus.REVIEW_REQUESTED

    customers.mark_completed(customer.id)
    assert customers.recompute_status(customer.id) == CustomerStatus.COMPLETED


def test_recompute_all_returns_transitioned(customers, make_customer):
    expired = make_customer(warranty_end=NOW - timedelta(days=2))
    make_customer(warranty_end=NOW + timedelta(days=2))

    transitioned = customers.recompute_all()

    assert [c.id for c in transitioned] == [expired.id]
    assert customers.recompute_all() == []


def test_expiring_within_window(customers, make_customer):
    soon = make_customer(warranty_end=NOW + timedelta(days=2))
    make_customer(warranty_end=NOW + timedelta(days=4))
    make_customer(warranty_end=NOW - timedelta(days=1))

    assert [c.id for c in customers.expiring_within(3)] == [soon.id]


def test_expiring_within_is_inclusive(customers, make_customer):
    edge = make_customer(warranty_end=NOW + timedelta(days=3))
    today = make_customer(warranty_end=NOW)

    assert {c.id for c in customers.expiring_within(3)} == {edge.id, today.id}


def test_expiring_within_only_active(customers, make_customer, clock):
    customer = make_customer(warranty_end=NOW + timedelta(days=1))
    clock.advance(days=2)
    customers.mark_review_requested(customer.id)

    clock.now = NOW
    assert customers.expiring_within(3) == []


def test_expired_needing_review_excludes_solicited(customers, make_customer):
    not_recomputed = make_customer(warranty_end=NOW - timedelta(days=1))
    expired = make_customer(warranty_end=NOW - timedelta(days=2))
    requested = make_customer(warranty_end=NOW - timedelta(days=3))
    completed = make_customer(warranty_end=NOW - timedelta(days=4))
    make_customer(warranty_end=NOW + timedelta(days=1))

    customers.recompute_status(expired.id)
    customers.mark_review_requested(requested.id)
    customers.mark_review_requested(completed.id)
    customers.mark_completed(completed.id)

    ids = {c.id for c in customers.expired_needing_review()}
    assert ids == {not_recomputed.id, expired.id}


def test_mark_review_requested_rejects_valid_warranty(customers, make_customer):
    customer = make_customer(warranty_end=NOW + timedelta(days=5))
    with pytest.raises(ValidationError):
        customers.mark_review_requested(customer.id)


def test_mark_completed_requires_review_requested(customers, make_customer):
    customer = make_customer(warranty_end=NOW - timedelta(days=1))
    customers.recompute_status(customer.id)
    with pytest.raises(ValidationError):
        customers.mark_completed(customer.id)


def test_bulk_create_collects_errors(customers):
    result = customers.bulk_create([
        {"name": "Asif", "phone": "9876543210", "purchase_date": "2024-06-01", "product_id": "p1"},
        {"name": "", "phone": "9876543211", "purchase_date": "2024-06-01", "product_id": "p1"},
        {"name": "Bilal", "phone": "98765", "purchase_date": "2024-06-01", "product_id": "p1"},
    ])

    assert result["added"] == 1
    assert len(result["errors"]) == 2
    assert result["errors"][1].startswith("Row 3 (Bilal)")
    assert len(customers.list()) == 1


def test_compose_message_uses_passed_settings(customers, make_customer):
    customer = make_customer(purchase_date=date(2024, 1, 20), name="Asif")
    site_settings = {"warranty_templates": {"reminder": "{customerName}: {productTitle} until {warrantyEndDate}"}}

    text = customers.compose_message(customer, "reminder", site_settings)

    assert text == "Asif: ThinkPad X1 until 4 February 2024"


@pytest.mark.parametrize("status", ["WarrantyExpired", "ReviewRequested", "Completed"])
def test_update_cannot_skip_guards_while_warranty_valid(customers, make_customer, status):
    customer = make_customer(warranty_end=NOW + timedelta(days=10))

    with pytest.raises(ValidationError):
        customers.update(customer.id, {"status": status})
    assert customers.get(customer.id).status == CustomerStatus.ACTIVE


def test_update_cannot_complete_before_review_requested(customers, make_customer):
    customer = make_customer(warranty_end=NOW - timedelta(days=1))
    customers.recompute_status(customer.id)

    with pytest.raises(ValidationError):
        customers.update(customer.id, {"status": "Completed"})


def test_update_follows_allowed_transitions(customers, make_customer):
    customer = make_customer(warranty_end=NOW - timedelta(days=1))

    assert customers.update(customer.id, {"status": "WarrantyExpired"}).status == CustomerStatus.WARRANTY_EXPIRED
    assert customers.update(customer.id, {"status": "ReviewRequested"}).status == CustomerStatus.REVIEW_REQUESTED
    assert customers.update(customer.id, {"status": "Completed"}).status == CustomerStatus.COMPLETED


def test_update_same_status_is_allowed(customers, make_customer):
    customer = make_customer(warranty_end=NOW + timedelta(days=10))
    updated = customers.update(customer.id, {"status": "Active", "notes": "Called"})

    assert updated.status == CustomerStatus.ACTIVE
    assert updated.notes == "Called"


def test_update_status_checks_new_purchase_date(customers, make_customer):
    customer = make_customer(warranty_end=NOW + timedelta(days=10))

    updated = customers.update(customer.id, {
        "purchase_date": NOW - timedelta(days=20),
        "status": "WarrantyExpired",
    })

    assert updated.status == CustomerStatus.WARRANTY_EXPIRED


def test_awaiting_reminder_skips_reminded(customers, make_customer):
    reminded = make_customer(warranty_end=NOW + timedelta(days=2))
    pending = make_customer(warranty_end=NOW + timedelta(days=1))

    marked = customers.mark_reminder_sent(reminded.id)

    assert marked.reminder_sent_at is not None
    assert [c.id for c in customers.awaiting_reminder(3)] == [pending.id]
    assert {c.id for c in customers.expiring_within(3)} == {reminded.id, pending.id}


def test_new_purchase_date_clears_reminder(customers, make_customer):
    customer = make_customer(warranty_end=NOW + timedelta(days=2))
    customers.mark_reminder_sent(customer.id)

    updated = customers.update(customer.id, {"purchase_date": NOW - timedelta(days=14)})

    assert updated.reminder_sent_at is None
    assert [c.id for c in customers.awaiting_reminder(3)] == [customer.id]


def test_mark_reminder_sent_missing_customer(customers):
    with pytest.raises(NotFoundError):
        customers.mark_reminder_sent("nope")

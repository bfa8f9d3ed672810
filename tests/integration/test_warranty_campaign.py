"""
Integration tests for the scheduled warranty campaign.
"""
from datetime import timedelta

import pytest

from conftest import NOW, RecordingProvider
from mitc_store.application import WarrantyCampaign, default_site_settings
from mitc_store.domain.errors import BackendError, ValidationError
from mitc_store.domain.models import CustomerStatus

SITE_SETTINGS = {
    "warranty_templates": {
        "reminder": "reminder {customerName}",
        "expired": "expired {customerName}",
        "review_request": "review {customerName}",
    }
}


class ExplodingProvider(RecordingProvider):

    def send_message(self, phone, text):
        raise BackendError("browser crashed")


def run_campaign(customers, provider, site_settings=SITE_SETTINGS):
    pauses = []
    campaign = WarrantyCampaign(
        customers, provider, site_settings, reminder_days_ahead=3, pause=lambda: pauses.append(1)
    )
    return campaign.run(), pauses


def test_campaign_sends_each_template_once(customers, make_customer, provider):
    soon = make_customer(warranty_end=NOW + timedelta(days=2), name="Soon")
    make_customer(warranty_end=NOW + timedelta(days=10), name="Later")
    lapsed = make_customer(warranty_end=NOW - timedelta(days=1), name="Lapsed")
    old = make_customer(warranty_end=NOW - timedelta(days=20), name="Old")
    customers.recompute_status(old.id)

    result, pauses = run_campaign(customers, provider)

    assert sorted(text for _, text in provider.sent) == ["expired Lapsed", "reminder Soon", "review Old"]
    assert result.expired == 1
    assert result.reminders_sent == 1
    assert result.review_requests_sent == 2
    assert result.messages_sent == 3
    assert result.failures == []
    assert len(pauses) == 2

    assert customers.get(soon.id).status == CustomerStatus.ACTIVE
    assert customers.get(lapsed.id).status == CustomerStatus.REVIEW_REQUESTED
    assert customers.get(old.id).status == CustomerStatus.REVIEW_REQUESTED


def test_second_run_sends_no_duplicate_solicitations(customers, make_customer, provider):
    make_customer(warranty_end=NOW - timedelta(days=1))

    run_campaign(customers, provider)
    result, _ = run_campaign(customers, provider)

    assert result.review_requests_sent == 0
    assert len(provider.sent) == 1


def test_failed_send_keeps_status(customers, make_customer):
    customer = make_customer(warranty_end=NOW - timedelta(days=1))
    provider = RecordingProvider(failing_phones=[customer.phone])

    result, _ = run_campaign(customers, provider)

    assert result.review_requests_sent == 0
    assert len(result.failures) == 1
    assert customers.get(customer.id).status == CustomerStatus.WARRANTY_EXPIRED


def test_backend_error_is_counted_and_run_continues(customers, make_customer):
    make_customer(warranty_end=NOW - timedelta(days=1))
    make_customer(warranty_end=NOW - timedelta(days=2))

    result, _ = run_campaign(customers, ExplodingProvider())

    assert len(result.failures) == 2
    assert "browser crashed" in result.failures[0]
    assert [c.status for c in customers.list()] == [CustomerStatus.WARRANTY_EXPIRED] * 2


def test_campaign_with_default_templates(customers, make_customer, provider):
    make_customer(warranty_end=NOW + timedelta(days=1), name="Asif")

    run_campaign(customers, provider, default_site_settings())

    (_, text), = provider.sent
    assert text.startswith("Hi Asif, your warranty for ThinkPad X1 expires on 16 June 2024.")


def test_missing_template_fails_before_sending(customers, make_customer, provider):
    make_customer(warranty_end=NOW + timedelta(days=1))

    with pytest.raises(ValidationError):
        run_campaign(customers, provider, {"warranty_templates": {}})
    assert provider.sent == []


def test_reminder_sent_once_across_runs(customers, make_customer, provider, clock):
    customer = make_customer(warranty_end=NOW + timedelta(days=3), name="Soon")

    first, _ = run_campaign(customers, provider)
    clock.advance(days=1)
    second, _ = run_campaign(customers, provider)

    assert provider.sent == [(customer.phone, "reminder Soon")]
    assert (first.reminders_sent, second.reminders_sent) == (1, 0)
    assert customers.get(customer.id).reminder_sent_at is not None


def test_failed_reminder_is_retried(customers, make_customer, provider):
    customer = make_customer(warranty_end=NOW + timedelta(days=2), name="Soon")
    flaky = RecordingProvider(failing_phones=[customer.phone])

    run_campaign(customers, flaky)
    result, _ = run_campaign(customers, provider)

    assert result.reminders_sent == 1
    assert provider.sent == [(customer.phone, "reminder Soon")]

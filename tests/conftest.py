"""
Pytest configuration and fixtures.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Tuple

import pytest

from mitc_store.application import CustomerManager, ReviewManager, SiteSettingsStore
from mitc_store.domain.warranty import WARRANTY_DAYS
from mitc_store.infrastructure.persistence import DocumentStore
from mitc_store.infrastructure.whatsapp import MessagingProvider

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock the tests can move by hand."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingProvider(MessagingProvider):
    """Messaging provider that records messages instead of sending them."""

    def __init__(self, failing_phones=()):
        self.sent: List[Tuple[str, str]] = []
        self.failing_phones = set(failing_phones)
        self.connected = False

    def connect(self, **kwargs) -> bool:
        self.connected = True
        return True

    def is_connected(self) -> bool:
        return self.connected

    def send_message(self, phone: str, text: str) -> bool:
        if phone in self.failing_phones:
            return False
        self.sent.append((phone, text))
        return True

    def close(self) -> None:
        self.connected = False


def purchased_for_warranty_end(end: datetime) -> datetime:
    """Purchase date that gives the requested warranty end date."""
    return end - timedelta(days=WARRANTY_DAYS)


@pytest.fixture
def store(tmp_path) -> DocumentStore:
    document_store = DocumentStore(str(tmp_path / "test.db"))
    document_store.init()
    return document_store


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def customers(store, clock) -> CustomerManager:
    return CustomerManager(store, clock=clock)


@pytest.fixture
def reviews(store) -> ReviewManager:
    return ReviewManager(store)


@pytest.fixture
def site(store) -> SiteSettingsStore:
    return SiteSettingsStore(store)


@pytest.fixture
def provider() -> RecordingProvider:
    recording = RecordingProvider()
    recording.connect()
    return recording


@pytest.fixture
def make_customer(customers):
    """Factory creating a customer whose warranty ends at `warranty_end`."""
    counter = {"n": 0}

    def _make(warranty_end: datetime = None, **overrides):
        counter["n"] += 1
        data = {
            "name": f"Customer {counter['n']}",
            "phone": f"98765{counter['n']:05d}",
            "purchase_date": purchased_for_warranty_end(warranty_end) if warranty_end else NOW,
            "product_id": "tp-x1",
            "product_details": {"title": "ThinkPad X1"},
        }
        data.update(overrides)
        return customers.create(data)

    return _make

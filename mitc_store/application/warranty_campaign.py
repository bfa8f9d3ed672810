"""
Warranty Campaign - Scheduled Reminder and Review-Request Run
==============================================================

One pass of the periodic job:

1. Expire every Active customer whose warranty has passed.
2. Send the `reminder` template once to each customer whose warranty ends
   soon; the send is recorded in reminder_sent_at.
3. Send one solicitation to each customer from expired_needing_review():
   the `expired` notice if the warranty expired during this run, the
   `review_request` template otherwise. A successful send moves the
   customer to ReviewRequested.

A failed send is logged and counted; the customer keeps its status and is
picked up again on the next run.
"""

import random
import time
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional

from ..domain.errors import BackendError
from ..domain.models import Customer
from ..domain.templates import WarrantyTemplate
from ..infrastructure.config import CampaignSettings, get_settings
from ..infrastructure.whatsapp import MessagingProvider
from .customer_manager import CustomerManager

logger = logging.getLogger(__name__)


@dataclass
class CampaignResult:
    """Outcome of one campaign run."""
    expired: int = 0
    reminders_sent: int = 0
    review_requests_sent: int = 0
    failures: List[str] = field(default_factory=list)

    @property
    def messages_sent(self) -> int:
        return self.reminders_sent + self.review_requests_sent


def random_delay(settings: CampaignSettings) -> Callable[[], None]:
    """Human-like pause between messages."""

    def pause() -> None:
        delay = random.randint(settings.min_delay_between_messages, settings.max_delay_between_messages)
        logger.info(f"Waiting {delay}s before next message...")
        time.sleep(delay)

    return pause


class WarrantyCampaign:
    """
    Usage:
        campaign = WarrantyCampaign(customers, provider, site.get())
        result = campaign.run()
    """

    def __init__(
        self,
        customers: CustomerManager,
        provider: MessagingProvider,
        site_settings: Mapping[str, Any],
        reminder_days_ahead: Optional[int] = None,
        pause: Optional[Callable[[], None]] = None,
    ):
        campaign_settings = get_settings().campaign
        self.customers = customers
        self.provider = provider
        self.site_settings = site_settings
        self.reminder_days_ahead = (
            campaign_settings.reminder_days_ahead if reminder_days_ahead is None else reminder_days_ahead
        )
        self._pause = pause or random_delay(campaign_settings)
        self._sent_any = False

    def _send(self, customer: Customer, kind: WarrantyTemplate, result: CampaignResult) -> bool:
        if self._sent_any:
            self._pause()

        text = self.customers.compose_message(customer, kind, self.site_settings)
        try:
            sent = self.provider.send_message(customer.phone, text)
        except BackendError as e:
            logger.exception(f"Error sending {kind.value} to {customer.name}: {e}")
            result.failures.append(f"{customer.id} ({customer.name}): {kind.value}: {e}")
            return False

        self._sent_any = True
        if not sent:
            logger.warning(f"{kind.value} to {customer.name} ({customer.phone}) was not delivered")
            result.failures.append(f"{customer.id} ({customer.name}): {kind.value}: not delivered")
            return False

        logger.info(f"Sent {kind.value} to {customer.name}")
        return True

    def run(self) -> CampaignResult:
        result = CampaignResult()

        newly_expired = {c.id for c in self.customers.recompute_all()}
        result.expired = len(newly_expired)

        for customer in self.customers.awaiting_reminder(self.reminder_days_ahead):
            if self._send(customer, WarrantyTemplate.REMINDER, result):
                self.customers.mark_reminder_sent(customer.id)
                result.reminders_sent += 1

        for customer in self.customers.expired_needing_review():
            kind = WarrantyTemplate.EXPIRED if customer.id in newly_expired else WarrantyTemplate.REVIEW_REQUEST
            if self._send(customer, kind, result):
                self.customers.mark_review_requested(customer.id)
                result.review_requests_sent += 1

        logger.info(
            f"Campaign done: {result.expired} expired, {result.reminders_sent} reminders, "
            f"{result.review_requests_sent} review requests, {len(result.failures)} failures"
        )
        return result

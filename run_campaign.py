"""
Campaign Runner - Warranty Reminders and Review Requests
=========================================================

Run this from a scheduler (cron, Task Scheduler) once or twice a day:
    python run_campaign.py
    python run_campaign.py --dry-run     # print messages, send nothing

Uses the messaging provider abstraction:
- WHATSAPP_PROVIDER=selenium: WhatsApp Web automation (QR scan on first run)
- WHATSAPP_PROVIDER=cloud_api: WhatsApp Cloud API
"""

import argparse
import logging
import sys

from mitc_store.application import CustomerManager, SiteSettingsStore, WarrantyCampaign
from mitc_store.domain.errors import BackendError
from mitc_store.domain.formatters import format_date, format_phone
from mitc_store.domain.templates import WarrantyTemplate
from mitc_store.infrastructure.config import get_settings
from mitc_store.infrastructure.persistence import DocumentStore
from mitc_store.infrastructure.whatsapp import create_provider

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def dry_run(customers: CustomerManager, site_settings: dict, days_ahead: int, country_code: str = "91"):
    """Show what the campaign would send without changing any status."""
    print("\nReminders:")
    for customer in customers.awaiting_reminder(days_ahead):
        print(f"   {customer.name} ({format_phone(customer.phone, country_code)}), "
              f"ends {format_date(customer.warranty_end_date, 'short')}: "
              f"{customers.compose_message(customer, WarrantyTemplate.REMINDER, site_settings)}")

    print("\nReview requests:")
    for customer in customers.expired_needing_review():
        print(f"   {customer.name} ({format_phone(customer.phone, country_code)}): "
              f"{customers.compose_message(customer, WarrantyTemplate.REVIEW_REQUEST, site_settings)}")


def run_campaign(argv=None) -> int:
    """Run one warranty campaign pass. Returns a process exit code."""
    parser = argparse.ArgumentParser(description="MITC warranty campaign")
    parser.add_argument("--dry-run", action="store_true", help="print messages without sending")
    args = parser.parse_args(argv)

    print("\n" + "=" * 60)
    print("   MITC Store - Warranty Campaign")
    print("=" * 60 + "\n")

    settings = get_settings()
    for issue in settings.validate():
        logger.warning(issue)

    store = DocumentStore(str(settings.database_file))
    store.init()
    customers = CustomerManager(store)
    site_settings = SiteSettingsStore(store).get()

    if args.dry_run:
        dry_run(customers, site_settings, settings.campaign.reminder_days_ahead, settings.whatsapp.country_code)
        return 0

    try:
        provider = create_provider(settings.whatsapp)
    except ValueError as e:
        logger.error(f"{e}. Set WHATSAPP_PROVIDER to 'selenium' or 'cloud_api'.")
        return 1

    print(f"Connecting to WhatsApp ({settings.whatsapp.provider})...")
    if settings.whatsapp.provider == "selenium":
        print("   Scan the QR code if WhatsApp Web asks for it.\n")

    try:
        if not provider.connect():
            print("WhatsApp did not connect. Try again.")
            return 1

        result = WarrantyCampaign(customers, provider, site_settings).run()
    except BackendError as e:
        logger.exception(f"Campaign aborted: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted! Progress saved.")
        return 130
    finally:
        provider.close()

    print("\n" + "=" * 60)
    print("Campaign Complete!")
    print(f"   Expired: {result.expired} | Reminders: {result.reminders_sent} | "
          f"Review requests: {result.review_requests_sent} | Failures: {len(result.failures)}")
    print("=" * 60 + "\n")
    return 0 if not result.failures else 2


if __name__ == "__main__":
    sys.exit(run_campaign())

"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded secrets)
- Settings are immutable dataclasses
- Single source of truth for process-level configuration

Site content (branding, message templates) is NOT configured here: it lives
in the site settings document and is edited by the admin at runtime.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass(frozen=True)
class WhatsAppSettings:
    """Outbound WhatsApp messaging settings."""

    # "selenium" drives WhatsApp Web, "cloud_api" calls the Meta Cloud API
    provider: str = field(default_factory=lambda: os.getenv("WHATSAPP_PROVIDER", "selenium"))

    api_token: str = field(default_factory=lambda: os.getenv("WHATSAPP_API_TOKEN", ""))
    phone_number_id: str = field(default_factory=lambda: os.getenv("WHATSAPP_PHONE_NUMBER_ID", ""))
    api_url: str = "https://graph.facebook.com/v18.0"
    timeout_seconds: int = 15

    # Prefixed to the 10-digit local numbers stored on customers
    country_code: str = field(default_factory=lambda: os.getenv("WHATSAPP_COUNTRY_CODE", "91"))

    # Browser settings
    headless: bool = False  # MUST be False for QR code scanning
    login_timeout: int = 120


@dataclass(frozen=True)
class CampaignSettings:
    """Warranty campaign (scheduler job) settings."""

    reminder_days_ahead: int = field(default_factory=lambda: _env_int("REMINDER_DAYS_AHEAD", 3))

    # SAFETY: Human-like delay ranges between messages (in seconds)
    min_delay_between_messages: int = field(default_factory=lambda: _env_int("CAMPAIGN_MIN_DELAY", 40))
    max_delay_between_messages: int = field(default_factory=lambda: _env_int("CAMPAIGN_MAX_DELAY", 90))


@dataclass(frozen=True)
class Settings:
    """
    Root settings container.

    Usage:
        from mitc_store.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.database_file)
    """

    whatsapp: WhatsAppSettings = field(default_factory=WhatsAppSettings)
    campaign: CampaignSettings = field(default_factory=CampaignSettings)

    database_file: Path = field(
        default_factory=lambda: Path(os.getenv("MITC_DATABASE_FILE", "mitc_store.db"))
    )

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings/errors.
        Returns empty list if all settings are valid.
        """
        issues = []

        if self.whatsapp.provider not in ("selenium", "cloud_api"):
            issues.append(
                f"ERROR: WHATSAPP_PROVIDER '{self.whatsapp.provider}' is not supported. "
                "Use 'selenium' or 'cloud_api'."
            )

        if self.whatsapp.provider == "cloud_api" and (
            not self.whatsapp.api_token or not self.whatsapp.phone_number_id
        ):
            issues.append(
                "WARNING: WHATSAPP_API_TOKEN and WHATSAPP_PHONE_NUMBER_ID must be set "
                "for the cloud_api provider."
            )

        if self.campaign.min_delay_between_messages > self.campaign.max_delay_between_messages:
            issues.append("WARNING: CAMPAIGN_MIN_DELAY is larger than CAMPAIGN_MAX_DELAY.")

        if self.campaign.reminder_days_ahead < 0:
            issues.append("ERROR: REMINDER_DAYS_AHEAD cannot be negative.")

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()

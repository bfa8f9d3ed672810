# Application Layer
# =================
# Use cases over the domain rules, persisted through the document store:
# - customer_manager.py:  customer records and warranty state machine
# - review_manager.py:    review submission, moderation and statistics
# - site_settings.py:     site configuration and message templates
# - warranty_campaign.py: scheduled reminder / review-request run

from .customer_manager import CustomerManager
from .review_manager import ReviewManager
from .site_settings import SiteSettingsStore, default_site_settings
from .warranty_campaign import CampaignResult, WarrantyCampaign

__all__ = [
    "CustomerManager",
    "ReviewManager",
    "SiteSettingsStore",
    "default_site_settings",
    "CampaignResult",
    "WarrantyCampaign",
]

"""
Site Settings Store - Branding, Links and Message Templates
============================================================

One configuration document (site_settings/main) edited from the admin
panel. When it has never been saved, get() hands back the built-in
defaults so callers never see an empty configuration.

Callers fetch the settings once and pass the value on explicitly
(CustomerManager.compose_message, WarrantyCampaign), which keeps the
lifecycle code testable with any configuration.
"""

import copy
import logging
from typing import Any, Dict, Mapping

from ..domain.errors import ValidationError
from ..domain.templates import WarrantyTemplate
from ..infrastructure.persistence import DocumentStore

logger = logging.getLogger(__name__)

SETTINGS_COLLECTION = "site_settings"
SETTINGS_DOC_ID = "main"
PAGES_COLLECTION = "pages"

SETTINGS_KEYS = ("branding", "social", "cloudinary", "contact_templates", "warranty_templates")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "branding": {
        "logo": "",
        "slogan": "Premium Laptops in Kashmir",
        "phone": "",
        "address": "Maisuma, Near Gaw Kadal Bridge, Srinagar",
        "email": "",
    },
    "social": {
        "whatsapp": "",
        "instagram": "",
        "facebook": "",
        "youtube": "",
        "twitter": "",
    },
    "cloudinary": {
        "cloud_name": "",
        "api_key": "",
        "folder": "mitc-store",
    },
    "contact_templates": [
        "Hi, I'm interested in {productTitle}. Is it available?",
        "Can I get more details about {productTitle}?",
        "What's the final price for {productTitle}?",
        "Is {productTitle} still in stock?",
        "Can I visit the store to see {productTitle}?",
        "Do you offer any warranty on {productTitle}?",
        "Can you send more photos of {productTitle}?",
        "What are the payment options for {productTitle}?",
        "Is there any discount on {productTitle}?",
        "Can you hold {productTitle} for me?",
    ],
    "warranty_templates": {
        "reminder": "Hi {customerName}, your warranty for {productTitle} expires on {warrantyEndDate}. Please contact us if you need any assistance.",
        "expired": "Hi {customerName}, your warranty for {productTitle} has expired. We hope you're enjoying your purchase! Please share your experience.",
        "review_request": "Hi {customerName}, we'd love to hear about your experience with {productTitle}. Please leave us a review!",
    },
}

DEFAULT_PAGES: Dict[str, Dict[str, str]] = {
    "about": {
        "title": "About MITC Store",
        "content": "Welcome to Mateen IT Corp. - your trusted source for premium laptops in Kashmir.",
        "featured_image": "",
    },
    "terms": {
        "title": "Terms and Conditions",
        "content": "Please read these terms and conditions carefully before using our services.",
        "featured_image": "",
    },
    "privacy": {
        "title": "Privacy Policy",
        "content": "Your privacy is important to us. This policy explains how we handle your information.",
        "featured_image": "",
    },
    "contact": {
        "title": "Contact Us",
        "content": "Get in touch with us for any inquiries about our products and services.",
        "featured_image": "",
    },
}


def default_site_settings() -> Dict[str, Any]:
    """Fresh copy of the built-in configuration."""
    return copy.deepcopy(DEFAULT_SETTINGS)


def default_page(page_id: str) -> Dict[str, Any]:
    page = copy.deepcopy(DEFAULT_PAGES.get(page_id, {"title": "", "content": "", "featured_image": ""}))
    page["id"] = page_id
    return page


def validate_settings_changes(changes: Mapping[str, Any]) -> list:
    errors = []

    unknown = sorted(set(changes) - set(SETTINGS_KEYS))
    for key in unknown:
        errors.append(f"Unknown settings key: {key}")

    for key in ("branding", "social", "cloudinary"):
        if key in changes and not isinstance(changes[key], Mapping):
            errors.append(f"{key} must be an object")

    if "contact_templates" in changes:
        templates = changes["contact_templates"]
        if not isinstance(templates, list) or not all(isinstance(t, str) for t in templates):
            errors.append("contact_templates must be a list of strings")

    if "warranty_templates" in changes:
        templates = changes["warranty_templates"]
        if not isinstance(templates, Mapping):
            errors.append("warranty_templates must be an object")
        else:
            for kind in WarrantyTemplate:
                if not isinstance(templates.get(kind.value), str) or not templates[kind.value].strip():
                    errors.append(f"warranty_templates.{kind.value} is required")

    return errors


class SiteSettingsStore:
    """
    Read and write the site configuration document and static pages.

    Usage:
        site = SiteSettingsStore(store)
        settings = site.get()
        site.update({"social": {"instagram": "mitc.store"}})
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self) -> Dict[str, Any]:
        """Stored settings, or the defaults when nothing has been saved yet."""
        doc = self.store.get(SETTINGS_COLLECTION, SETTINGS_DOC_ID)
        if doc is None:
            logger.debug("No site settings stored, using defaults")
            return default_site_settings()
        return doc

    def update(self, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Shallow-merge top-level keys over the current settings and save.

        A nested value such as `social` replaces the stored one wholesale.
        """
        errors = validate_settings_changes(changes)
        if errors:
            raise ValidationError(errors)

        current = self.get()
        current.pop("id", None)
        current.update(copy.deepcopy(dict(changes)))
        current["updated_at"] = self.store.server_timestamp()

        self.store.set(SETTINGS_COLLECTION, SETTINGS_DOC_ID, current)
        logger.info(f"Site settings updated: {', '.join(sorted(changes)) or 'no changes'}")
        return self.get()

    # ── Pages ──────────────────────────────────────────────────────

    def get_page(self, page_id: str) -> Dict[str, Any]:
        doc = self.store.get(PAGES_COLLECTION, page_id)
        if doc is None:
            return default_page(page_id)
        return doc

    def update_page(self, page_id: str, content: Mapping[str, Any]) -> Dict[str, Any]:
        """Merge content into the page (created from defaults if missing)."""
        page = self.get_page(page_id)
        page.pop("id", None)
        page.update(dict(content))
        page["updated_at"] = self.store.server_timestamp()

        self.store.set(PAGES_COLLECTION, page_id, page)
        logger.info(f"Page '{page_id}' updated")
        return self.get_page(page_id)

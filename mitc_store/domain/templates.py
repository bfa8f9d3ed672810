"""
Template Engine - Outbound Message Rendering
=============================================

Templates are plain strings with {placeholder} markers, edited by the
admin in site settings. Substitution is permissive: a placeholder with no
value in the context is left as literal text instead of failing.

Placeholder sets:
- contact templates:  {productTitle}
- warranty templates: {customerName}, {productTitle}, {warrantyEndDate}
"""

import re
from enum import Enum
from typing import Any, Dict, List, Mapping

from .errors import ValidationError
from .formatters import format_date
from .models import Customer

PLACEHOLDER = re.compile(r"\{(\w+)\}")

DEFAULT_PRODUCT_TITLE = "your purchase"


class WarrantyTemplate(Enum):
    """Purpose keys of the warranty template set."""
    REMINDER = "reminder"
    EXPIRED = "expired"
    REVIEW_REQUEST = "review_request"


def render(template: str, context: Mapping[str, Any]) -> str:
    """Replace every {key} with str(context[key]); unknown keys stay as-is."""

    def substitute(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key in context:
            return str(context[key])
        return match.group(0)

    return PLACEHOLDER.sub(substitute, template)


def warranty_context(customer: Customer) -> Dict[str, str]:
    return {
        "customerName": customer.name,
        "productTitle": customer.product_title or DEFAULT_PRODUCT_TITLE,
        "warrantyEndDate": format_date(customer.warranty_end_date),
    }


def render_warranty_message(kind, customer: Customer, site_settings: Mapping[str, Any]) -> str:
    """Render the reminder / expired / review_request template for one customer."""
    if not isinstance(kind, WarrantyTemplate):
        try:
            kind = WarrantyTemplate(kind)
        except ValueError:
            raise ValidationError(f"Unknown warranty template: {kind}")

    templates = site_settings.get("warranty_templates") or {}
    template = templates.get(kind.value)
    if not template:
        raise ValidationError(f"Warranty template '{kind.value}' is not configured")
    return render(template, warranty_context(customer))


def render_contact_messages(product_title: str, site_settings: Mapping[str, Any]) -> List[str]:
    """Every contact-inquiry template filled in for one product."""
    context = {"productTitle": product_title}
    return [render(t, context) for t in site_settings.get("contact_templates") or []]

# Domain Layer
# ============
# Pure business rules with no I/O:
# - warranty.py:   warranty end-date calculation
# - templates.py:  placeholder substitution for outbound messages
# - validators.py: customer/review input rules
# - models.py:     records, status enums and typed patches
# - errors.py:     error taxonomy shared by every layer

from .errors import StoreError, ValidationError, NotFoundError, BackendError
from .models import (
    Customer,
    CustomerPatch,
    CustomerStatus,
    Review,
    ReviewStats,
    ReviewStatus,
)
from .warranty import WARRANTY_DAYS, compute_warranty_end
from .templates import WarrantyTemplate, render, render_warranty_message, render_contact_messages

__all__ = [
    "StoreError",
    "ValidationError",
    "NotFoundError",
    "BackendError",
    "Customer",
    "CustomerPatch",
    "CustomerStatus",
    "Review",
    "ReviewStats",
    "ReviewStatus",
    "WARRANTY_DAYS",
    "compute_warranty_end",
    "WarrantyTemplate",
    "render",
    "render_warranty_message",
    "render_contact_messages",
]

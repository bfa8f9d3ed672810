"""
FastAPI Web Application - MITC Store Back Office API
=====================================================

JSON endpoints for the admin panel and storefront: customers and their
warranty lifecycle, store reviews, site settings and pages.

Error mapping:
    ValidationError -> 422
    NotFoundError   -> 404
    BackendError    -> 502

Field names are snake_case throughout. In the site settings payload that
means cloudinary.cloud_name / cloudinary.api_key (cloudName / apiKey in the
storefront admin) and warranty_templates.review_request (reviewRequest).
Template placeholders keep their camelCase form: {customerName},
{productTitle}, {warrantyEndDate}.
"""

import io
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Union

import pandas as pd
from fastapi import FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from ..application import CustomerManager, ReviewManager, SiteSettingsStore
from ..application.customer_manager import Clock
from ..domain.errors import BackendError, NotFoundError, ValidationError
from ..domain.formatters import format_date, format_phone, whatsapp_link
from ..domain.models import CustomerPatch
from ..domain.templates import render_contact_messages
from ..infrastructure.config import get_settings
from ..infrastructure.importer import ExcelParser
from ..infrastructure.persistence import DocumentStore

logger = logging.getLogger(__name__)


# ── Request bodies ─────────────────────────────────────────────────

class CustomerIn(BaseModel):
    name: str = ""
    phone: str = ""
    email: Optional[str] = None
    purchase_date: Optional[str] = None
    product_id: str = ""
    product_details: Dict[str, Any] = {}
    notes: str = ""


class CustomerUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    purchase_date: Optional[str] = None
    product_id: Optional[str] = None
    product_details: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    status: Optional[str] = None


class ReviewIn(BaseModel):
    customer_name: str = ""
    rating: Optional[Union[int, str]] = None
    title: str = ""
    comment: str = ""
    source: Optional[str] = None


class ModerationIn(BaseModel):
    decision: str


# ── App factory ────────────────────────────────────────────────────

def create_app(store: Optional[DocumentStore] = None, clock: Optional[Clock] = None) -> FastAPI:
    """
    Build the API around a document store.
    Defaults to the SQLite file from MITC_DATABASE_FILE.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store.init()
        logger.info("Document store ready")
        yield

    app = FastAPI(title="MITC Store", description="Warranty & review back office", lifespan=lifespan)
    app.state.store = store or DocumentStore(str(get_settings().database_file))
    app.state.customers = CustomerManager(app.state.store, clock=clock)
    app.state.reviews = ReviewManager(app.state.store)
    app.state.site = SiteSettingsStore(app.state.store)

    register_error_handlers(app)
    register_customer_routes(app)
    register_review_routes(app)
    register_settings_routes(app)
    return app


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(ValidationError)
    async def on_validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": exc.errors})

    @app.exception_handler(NotFoundError)
    async def on_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(BackendError)
    async def on_backend_error(request: Request, exc: BackendError):
        logger.error(f"Backend failure on {request.url.path}: {exc}")
        return JSONResponse(status_code=502, content={"detail": str(exc)})


# ── Customers ──────────────────────────────────────────────────────

def register_customer_routes(app: FastAPI) -> None:
    customers: CustomerManager = app.state.customers

    @app.get("/api/customers")
    async def list_customers(status: Optional[str] = None):
        return {"customers": [c.to_dict() for c in customers.list(status=status)]}

    @app.post("/api/customers", status_code=201)
    async def create_customer(body: CustomerIn):
        return customers.create(body.model_dump()).to_dict()

    @app.post("/api/customers/import")
    async def import_customers(file: UploadFile = File(...)):
        """Bulk-create customers from an uploaded .xlsx/.xls/.csv sales sheet."""
        filename = (file.filename or "").lower()
        content = await file.read()
        try:
            if filename.endswith(".csv"):
                df = pd.read_csv(io.BytesIO(content), dtype=str)
            elif filename.endswith((".xlsx", ".xls")):
                df = pd.read_excel(io.BytesIO(content), dtype=object)
            else:
                raise ValidationError("Unsupported file format. Use .xlsx, .xls, or .csv")
            rows = ExcelParser().parse_frame(df)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return customers.bulk_create(rows)

    @app.get("/api/customers/cohorts/expiring")
    async def expiring_customers(days_ahead: int = 3):
        return {"customers": [c.to_dict() for c in customers.expiring_within(days_ahead)]}

    @app.get("/api/customers/cohorts/expired")
    async def expired_customers():
        return {"customers": [c.to_dict() for c in customers.expired_needing_review()]}

    @app.post("/api/customers/recompute")
    async def recompute_all():
        return {"expired": [c.id for c in customers.recompute_all()]}

    @app.get("/api/customers/{customer_id}")
    async def get_customer(customer_id: str):
        return customers.get(customer_id).to_dict()

    @app.patch("/api/customers/{customer_id}")
    async def update_customer(customer_id: str, body: CustomerUpdate):
        patch = CustomerPatch(**body.model_dump(exclude_none=True))
        return customers.update(customer_id, patch).to_dict()

    @app.delete("/api/customers/{customer_id}", status_code=204)
    async def delete_customer(customer_id: str):
        customers.delete(customer_id)

    @app.post("/api/customers/{customer_id}/recompute-status")
    async def recompute_status(customer_id: str):
        return {"status": customers.recompute_status(customer_id).value}

    @app.post("/api/customers/{customer_id}/review-requested")
    async def mark_review_requested(customer_id: str):
        return customers.mark_review_requested(customer_id).to_dict()

    @app.post("/api/customers/{customer_id}/reminder-sent")
    async def mark_reminder_sent(customer_id: str):
        return customers.mark_reminder_sent(customer_id).to_dict()

    @app.post("/api/customers/{customer_id}/completed")
    async def mark_completed(customer_id: str):
        return customers.mark_completed(customer_id).to_dict()

    @app.get("/api/customers/{customer_id}/messages/{kind}")
    async def customer_message(customer_id: str, kind: str):
        """Rendered warranty message plus a click-to-chat link for manual sending."""
        customer = customers.get(customer_id)
        text = customers.compose_message(customer, kind, app.state.site.get())
        country_code = get_settings().whatsapp.country_code
        return {
            "customer_id": customer.id,
            "kind": kind,
            "phone": format_phone(customer.phone, country_code),
            "warranty_ends": format_date(customer.warranty_end_date, "long"),
            "text": text,
            "whatsapp_link": whatsapp_link(customer.phone, text, country_code),
        }


# ── Reviews ────────────────────────────────────────────────────────

def register_review_routes(app: FastAPI) -> None:
    reviews: ReviewManager = app.state.reviews

    @app.get("/api/reviews")
    async def list_reviews(status: Optional[str] = None):
        return {"reviews": [r.to_dict() for r in reviews.list(status=status)]}

    @app.get("/api/reviews/approved")
    async def approved_reviews():
        return {"reviews": [r.to_dict() for r in reviews.list_approved()]}

    @app.get("/api/reviews/stats")
    async def review_stats():
        return reviews.stats().to_dict()

    @app.post("/api/reviews", status_code=201)
    async def submit_review(body: ReviewIn):
        return reviews.submit(body.model_dump(exclude_none=True)).to_dict()

    @app.get("/api/reviews/{review_id}")
    async def get_review(review_id: str):
        return reviews.get(review_id).to_dict()

    @app.post("/api/reviews/{review_id}/moderate")
    async def moderate_review(review_id: str, body: ModerationIn):
        return reviews.moderate(review_id, body.decision).to_dict()

    @app.delete("/api/reviews/{review_id}", status_code=204)
    async def delete_review(review_id: str):
        reviews.delete(review_id)


# ── Settings & pages ───────────────────────────────────────────────

def register_settings_routes(app: FastAPI) -> None:
    site: SiteSettingsStore = app.state.site

    @app.get("/api/settings")
    async def get_site_settings():
        return site.get()

    @app.patch("/api/settings")
    async def update_site_settings(changes: Dict[str, Any]):
        return site.update(changes)

    @app.get("/api/settings/contact-templates")
    async def contact_templates(product_title: str):
        return {"messages": render_contact_messages(product_title, site.get())}

    @app.get("/api/pages/{page_id}")
    async def get_page(page_id: str):
        return site.get_page(page_id)

    @app.put("/api/pages/{page_id}")
    async def update_page(page_id: str, content: Dict[str, Any]):
        return site.update_page(page_id, content)


app = create_app()

"""
Export API Endpoints.

Endpoints for exporting an audience as plain CSV, hashed CSV, or a webhook push.
"""

import requests
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.dependencies import get_contact_service, get_http_session, get_settings
from api.models import AudienceFilterRequest, WebhookExportRequest, WebhookExportResponse
from domain.settings import AppSettings
from services.contact_service import ContactService
from services.export_service import generate_contacts_csv, generate_hashed_csv, send_to_webhook

router = APIRouter()


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post(
    "/exports/csv",
    summary="Export Audience CSV",
    response_class=Response,
)
def export_audience_csv(
    request: AudienceFilterRequest,
    filename: str = Query("contacts.csv", description="Download filename"),
    sanitize: bool = Query(False, description="Strip spreadsheet formula characters"),
    service: ContactService = Depends(get_contact_service),
):
    """
    Download the filtered audience as CSV.

    **Columns:** id, email, phone, name, company, industry, location,
    keywords (";"-joined), intentScore, activityDate, source
    """
    contacts = service.build_audience(request.to_domain())
    return _csv_response(generate_contacts_csv(contacts, sanitize=sanitize), filename)


@router.post(
    "/exports/hashed",
    summary="Export Hashed Audience CSV",
    response_class=Response,
)
def export_hashed_audience(
    request: AudienceFilterRequest,
    filename: str = Query("hashed_audience.csv", description="Download filename"),
    service: ContactService = Depends(get_contact_service),
):
    """
    Download the filtered audience with SHA-256 hashed email and phone.

    Suitable for ad-platform audience matching: raw identity fields never
    leave the system.
    """
    contacts = service.build_audience(request.to_domain())
    return _csv_response(generate_hashed_csv(contacts), filename)


@router.post(
    "/exports/webhook",
    response_model=WebhookExportResponse,
    summary="Push Audience To Webhook",
)
def export_to_webhook(
    request: WebhookExportRequest,
    service: ContactService = Depends(get_contact_service),
    settings: AppSettings = Depends(get_settings),
    session: requests.Session = Depends(get_http_session),
):
    """
    POST the filtered audience to a webhook as `{contacts, timestamp, count}`.

    Delivery succeeds only if the webhook answers with a 2xx status. Failed
    deliveries are not retried.
    """
    webhook_url = request.webhook_url or settings.webhook_url
    if not webhook_url:
        raise HTTPException(status_code=400, detail="Webhook URL is not configured")

    contacts = service.build_audience(request.filters.to_domain())
    success = send_to_webhook(webhook_url, contacts, session=session)

    if success:
        message = f"Sent {len(contacts)} contacts to webhook."
    else:
        message = "Webhook delivery failed."

    return WebhookExportResponse(success=success, count=len(contacts), message=message)

"""
Contacts API Endpoints.

Endpoints for importing, listing, editing, scoring and enriching contacts.
"""

import requests
from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile

from api.dependencies import get_contact_service, get_http_session, get_settings
from api.models import (
    ContactListResponse,
    ContactResponse,
    ContactUpdateRequest,
    CSVUploadResponse,
    EnrichmentResponse,
    SearchRequest,
    SearchResponse,
)
from domain.intent import get_intent_summary
from domain.settings import AppSettings
from services.contact_service import ContactNotFoundError, ContactService
from services.enrichment_service import EnrichmentPolicy
from services.ingestion_service import generate_csv_template
from services.search_service import search_contacts

router = APIRouter()


@router.get(
    "/contacts",
    response_model=ContactListResponse,
    summary="List Contacts",
)
def list_contacts(service: ContactService = Depends(get_contact_service)):
    """
    List every stored contact with a count per intent level.
    """
    contacts = service.list_contacts()
    return ContactListResponse(
        contacts=[ContactResponse.from_domain(c) for c in contacts],
        total_count=len(contacts),
        summary=get_intent_summary(contacts),
    )


@router.get(
    "/contacts/template",
    summary="Download CSV Template",
    response_class=Response,
)
def download_template():
    """
    CSV template with the accepted columns and an example row.
    """
    return Response(
        content=generate_csv_template(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=contacts_template.csv"},
    )


def _import_csv_bytes(raw: bytes, service: ContactService) -> CSVUploadResponse:
    if not raw:
        raise HTTPException(status_code=400, detail="CSV content is empty")

    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")

    try:
        result = service.import_csv_text(text)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to import CSV: {str(e)}"
        )

    return CSVUploadResponse(
        total_rows=result.total_rows,
        imported=result.accepted,
        rejected=result.rejected,
        errors=result.errors,
        contacts=[ContactResponse.from_domain(c) for c in result.contacts],
    )


@router.post(
    "/contacts/upload",
    response_model=CSVUploadResponse,
    summary="Upload Contacts CSV",
    description="Import contacts from a CSV file. Rows without an email or phone are rejected individually.",
)
async def upload_contacts_csv(
    file: UploadFile = File(...),
    service: ContactService = Depends(get_contact_service),
):
    """
    Import contacts from a multipart CSV file upload.

    **Expected columns:** email, phone, name, company, industry, location,
    keywords (comma-joined), activityDate

    Accepted rows are scored immediately and appended to the store.

    **Response:**
    ```json
    {
      "total_rows": 3,
      "imported": 2,
      "rejected": 1,
      "errors": ["Row 3: Must have email or phone"],
      "contacts": []
    }
    ```
    """
    raw = await file.read()
    return _import_csv_bytes(raw, service)


@router.post(
    "/contacts/import",
    response_model=CSVUploadResponse,
    summary="Import Contacts From CSV Body",
)
async def import_contacts_csv(
    request: Request,
    service: ContactService = Depends(get_contact_service),
):
    """
    Import contacts from a raw `text/csv` request body.
    """
    raw = await request.body()
    return _import_csv_bytes(raw, service)


@router.post(
    "/contacts/search",
    response_model=SearchResponse,
    summary="Import Contacts From Search",
)
def import_from_search(
    request: SearchRequest,
    service: ContactService = Depends(get_contact_service),
    settings: AppSettings = Depends(get_settings),
    session: requests.Session = Depends(get_http_session),
):
    """
    Run a web search and import each organic result as a contact.

    Requires a configured search API key.
    """
    if not settings.serp_api_key:
        raise HTTPException(status_code=400, detail="Search API key is not configured")

    outcome = search_contacts(request.query, settings.serp_api_key, session=session)
    if not outcome.ok:
        raise HTTPException(status_code=502, detail=outcome.error)

    imported = service.import_search_results(outcome.contacts)
    return SearchResponse(
        imported=len(imported),
        contacts=[ContactResponse.from_domain(c) for c in imported],
    )


@router.post(
    "/contacts/rescore",
    response_model=ContactListResponse,
    summary="Re-score All Contacts",
)
def rescore_contacts(service: ContactService = Depends(get_contact_service)):
    """
    Recompute the intent level of every contact against the current time.
    """
    contacts = service.rescore_all()
    return ContactListResponse(
        contacts=[ContactResponse.from_domain(c) for c in contacts],
        total_count=len(contacts),
        summary=get_intent_summary(contacts),
    )


@router.post(
    "/contacts/enrich",
    response_model=EnrichmentResponse,
    summary="Enrich All Contacts",
)
def enrich_all_contacts(
    service: ContactService = Depends(get_contact_service),
    settings: AppSettings = Depends(get_settings),
    session: requests.Session = Depends(get_http_session),
):
    """
    Enrich every contact sequentially through the skip-trace provider.

    The request blocks until the whole batch is processed.
    """
    if not settings.skip_trace_api_key:
        raise HTTPException(status_code=400, detail="Enrichment API key is not configured")

    contacts = service.enrich_all(
        settings.skip_trace_api_key,
        policy=EnrichmentPolicy(),
        session=session,
    )
    return EnrichmentResponse(
        processed=len(contacts),
        contacts=[ContactResponse.from_domain(c) for c in contacts],
    )


@router.patch(
    "/contacts/{contact_id}",
    response_model=ContactResponse,
    summary="Update Contact",
)
def update_contact(
    contact_id: str,
    request: ContactUpdateRequest,
    service: ContactService = Depends(get_contact_service),
):
    """
    Update editable fields of a contact. The contact is re-scored afterwards.
    """
    updates = request.model_dump(exclude_unset=True)
    try:
        contact = service.update_contact(contact_id, updates)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ContactResponse.from_domain(contact)


@router.delete(
    "/contacts/{contact_id}",
    status_code=204,
    summary="Delete Contact",
)
def delete_contact(
    contact_id: str,
    service: ContactService = Depends(get_contact_service),
):
    try:
        service.delete_contact(contact_id)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(status_code=204)


@router.delete(
    "/contacts",
    status_code=204,
    summary="Delete All Contacts",
)
def clear_contacts(service: ContactService = Depends(get_contact_service)):
    service.clear()
    return Response(status_code=204)

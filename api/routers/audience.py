"""
Audience API Endpoints.

Endpoints for carving audience segments out of the stored contacts.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_contact_service
from api.models import (
    AudienceFilterRequest,
    AudienceResponse,
    ContactResponse,
    FilterOptionsResponse,
)
from services.contact_service import ContactService

router = APIRouter()


@router.post(
    "/audience",
    response_model=AudienceResponse,
    summary="Build Audience",
    description="Filter contacts by industry, location, intent level, activity date range and keywords."
)
def build_audience(
    request: AudienceFilterRequest,
    service: ContactService = Depends(get_contact_service),
):
    """
    Return the contacts matching every supplied filter clause.

    **Example usage:**
    - High-intent tech contacts: `{"industry": "tech", "intent_levels": ["High"]}`
    - Anyone mentioning a demo: `{"keywords": ["demo"]}`
    - Everyone: `{}`
    """
    contacts = service.build_audience(request.to_domain())
    return AudienceResponse(
        contacts=[ContactResponse.from_domain(c) for c in contacts],
        total_count=len(contacts),
        filters_applied=request.model_dump(exclude_none=True, mode="json"),
    )


@router.get(
    "/audience/options",
    response_model=FilterOptionsResponse,
    summary="Audience Filter Options",
)
def audience_filter_options(service: ContactService = Depends(get_contact_service)):
    """
    Distinct industries and locations present in the stored contacts.
    """
    options = service.filter_options()
    return FilterOptionsResponse(
        industries=options.industries,
        locations=options.locations,
    )

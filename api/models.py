"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from domain.audience import AudienceFilter, DateRange
from domain.contact import Contact, IntentLevel
from domain.time import to_utc


# ============================================================================
# Contact Models
# ============================================================================

class EnrichedDataResponse(BaseModel):
    address: Optional[str] = None
    social_profiles: List[str] = []
    additional_info: Dict[str, Any] = {}


class ContactResponse(BaseModel):
    """Single contact in API responses."""
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    company: Optional[str] = None
    industry: Optional[str] = None
    location: Optional[str] = None
    keywords: List[str] = []
    activity_date: Optional[datetime] = None
    intent_score: Optional[IntentLevel] = None
    enriched_data: Optional[EnrichedDataResponse] = None
    source: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, contact: Contact) -> "ContactResponse":
        enriched = None
        if contact.enriched_data is not None:
            enriched = EnrichedDataResponse(
                address=contact.enriched_data.address,
                social_profiles=list(contact.enriched_data.social_profiles),
                additional_info=dict(contact.enriched_data.additional_info),
            )
        return cls(
            id=contact.contact_id,
            email=contact.email,
            phone=contact.phone,
            name=contact.name,
            company=contact.company,
            industry=contact.industry,
            location=contact.location,
            keywords=list(contact.keywords),
            activity_date=contact.activity_date,
            intent_score=contact.intent_score,
            enriched_data=enriched,
            source=contact.source.value,
            created_at=contact.created_at,
            updated_at=contact.updated_at,
        )


class ContactListResponse(BaseModel):
    """Response for contact listing."""
    contacts: List[ContactResponse]
    total_count: int
    summary: Dict[str, int]


class ContactUpdateRequest(BaseModel):
    """
    Partial update of a contact's editable fields.

    intent_score is not accepted: it is always recomputed.
    """
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    company: Optional[str] = None
    industry: Optional[str] = None
    location: Optional[str] = None
    keywords: Optional[List[str]] = None
    activity_date: Optional[datetime] = None

    class Config:
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "industry": "Technology",
                "keywords": ["pricing", "demo request"]
            }
        }


class CSVUploadResponse(BaseModel):
    """Result of a CSV upload."""
    total_rows: int
    imported: int
    rejected: int
    errors: List[str]
    contacts: List[ContactResponse]


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Search query")


class SearchResponse(BaseModel):
    imported: int
    contacts: List[ContactResponse]


class EnrichmentResponse(BaseModel):
    processed: int
    contacts: List[ContactResponse]


# ============================================================================
# Audience Models
# ============================================================================

class DateRangeRequest(BaseModel):
    start: datetime
    end: datetime


class AudienceFilterRequest(BaseModel):
    """Audience filter. Omitted clauses impose no constraint."""
    industry: Optional[str] = None
    location: Optional[str] = None
    intent_levels: Optional[List[IntentLevel]] = None
    date_range: Optional[DateRangeRequest] = None
    keywords: Optional[List[str]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "industry": "tech",
                "intent_levels": ["High", "Medium"],
                "date_range": {
                    "start": "2025-01-01T00:00:00Z",
                    "end": "2025-01-31T23:59:59Z"
                }
            }
        }

    def to_domain(self) -> AudienceFilter:
        date_range = None
        if self.date_range is not None:
            date_range = DateRange(
                start=to_utc(self.date_range.start),
                end=to_utc(self.date_range.end),
            )
        return AudienceFilter(
            industry=self.industry,
            location=self.location,
            intent_levels=frozenset(self.intent_levels) if self.intent_levels else None,
            date_range=date_range,
            keywords=tuple(self.keywords) if self.keywords else None,
        )


class AudienceResponse(BaseModel):
    contacts: List[ContactResponse]
    total_count: int
    filters_applied: dict


class FilterOptionsResponse(BaseModel):
    industries: List[str]
    locations: List[str]


# ============================================================================
# Export Models
# ============================================================================

class WebhookExportRequest(BaseModel):
    """Push the filtered audience to a webhook."""
    filters: AudienceFilterRequest = AudienceFilterRequest()
    webhook_url: Optional[str] = Field(
        None,
        description="Overrides the configured webhook URL"
    )


class WebhookExportResponse(BaseModel):
    success: bool
    count: int
    message: str


# ============================================================================
# Settings Models
# ============================================================================

class SettingsPayload(BaseModel):
    serp_api_key: Optional[str] = None
    skip_trace_api_key: Optional[str] = None
    webhook_url: Optional[str] = None

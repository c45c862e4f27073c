"""
Settings API Endpoints.

API keys are masked on read and never echoed back in full.
"""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from api.models import SettingsPayload
from domain.settings import AppSettings
from repositories.settings_repository import load_settings, save_settings

router = APIRouter()

MASK_CHARACTER = "*"


@router.get(
    "/settings",
    response_model=SettingsPayload,
    summary="Get Settings",
)
def get_settings_view():
    return SettingsPayload(**asdict(load_settings().masked()))


@router.put(
    "/settings",
    response_model=SettingsPayload,
    summary="Update Settings",
)
def update_settings(request: SettingsPayload):
    """
    Save settings. Omitted or null fields keep their current value.

    Masked keys as returned by GET (leading `*`) are rejected with a 400 and
    the stored key is left untouched.
    """
    masked_fields = [
        name
        for name in ("serp_api_key", "skip_trace_api_key")
        if (getattr(request, name) or "").startswith(MASK_CHARACTER)
    ]
    if masked_fields:
        raise HTTPException(
            status_code=400,
            detail=f"Masked values cannot be saved: {', '.join(masked_fields)}. "
                   f"Send the full key or omit the field.",
        )

    current = load_settings()
    updated = AppSettings(
        serp_api_key=request.serp_api_key or current.serp_api_key,
        skip_trace_api_key=request.skip_trace_api_key or current.skip_trace_api_key,
        webhook_url=request.webhook_url or current.webhook_url,
    )

    try:
        save_settings(updated)
    except OSError as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save settings: {str(e)}"
        )

    return SettingsPayload(**asdict(updated.masked()))

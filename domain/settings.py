"""
Domain: Application settings.

Credentials and endpoints for the external collaborators (search, enrichment,
webhook delivery). All values are optional; features that need a missing value
report it at call time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


def _mask(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


@dataclass(frozen=True, slots=True)
class AppSettings:
    serp_api_key: Optional[str] = None
    skip_trace_api_key: Optional[str] = None
    webhook_url: Optional[str] = None

    def masked(self) -> "AppSettings":
        """Copy safe for display: API keys show only their last four characters."""

        return AppSettings(
            serp_api_key=_mask(self.serp_api_key),
            skip_trace_api_key=_mask(self.skip_trace_api_key),
            webhook_url=self.webhook_url,
        )


__all__ = ["AppSettings"]

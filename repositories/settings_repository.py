"""
Settings repository.

Settings come from two layers:
1. Environment variables (optionally loaded from the project's .env file)
2. A JSON settings file, which overrides the environment when a key is set

Environment variables:
- SERPAPI_API_KEY
- SKIP_TRACE_API_KEY
- WEBHOOK_URL
- SETTINGS_PATH: location of the JSON settings file (default: settings.json)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from domain.settings import AppSettings

logger = logging.getLogger(__name__)

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_SETTINGS_PATH = "settings.json"


def settings_path() -> Path:
    return Path(os.getenv("SETTINGS_PATH", DEFAULT_SETTINGS_PATH))


def _from_environment() -> AppSettings:
    return AppSettings(
        serp_api_key=os.getenv("SERPAPI_API_KEY") or None,
        skip_trace_api_key=os.getenv("SKIP_TRACE_API_KEY") or None,
        webhook_url=os.getenv("WEBHOOK_URL") or None,
    )


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """
    Load settings from the environment, overlaid by the JSON settings file.

    A missing or unreadable settings file falls back to the environment values.
    """

    settings = _from_environment()
    path = path or settings_path()

    if not path.exists():
        return settings

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Settings load failed: {e}", extra={"path": str(path)})
        return settings

    if not isinstance(data, dict):
        logger.warning("Settings file is not a JSON object", extra={"path": str(path)})
        return settings

    return AppSettings(
        serp_api_key=data.get("serp_api_key") or settings.serp_api_key,
        skip_trace_api_key=data.get("skip_trace_api_key") or settings.skip_trace_api_key,
        webhook_url=data.get("webhook_url") or settings.webhook_url,
    )


def save_settings(settings: AppSettings, path: Optional[Path] = None) -> Path:
    """Persist settings to the JSON settings file."""

    path = path or settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
    return path


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "load_settings",
    "save_settings",
    "settings_path",
]

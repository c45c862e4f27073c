"""
Shared FastAPI dependencies.

The contact store backend is chosen by CONTACT_STORE_BACKEND:
- "file" (default): JSON file at CONTACT_STORE_PATH (default contacts.json)
- "memory": process-local, lost on restart
- "supabase": table SUPABASE_CONTACTS_TABLE (default contacts)
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Iterator

import requests
from dotenv import load_dotenv

from domain.settings import AppSettings
from repositories.contact_repository import (
    ContactStore,
    InMemoryContactStore,
    JsonFileContactStore,
    SupabaseContactStore,
)
from repositories.settings_repository import load_settings
from services.contact_service import ContactService

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


@lru_cache(maxsize=1)
def get_contact_store() -> ContactStore:
    backend = os.getenv("CONTACT_STORE_BACKEND", "file").lower()

    if backend == "memory":
        return InMemoryContactStore()

    if backend == "supabase":
        from repositories.client import get_supabase_client

        return SupabaseContactStore(
            get_supabase_client(),
            table=os.getenv("SUPABASE_CONTACTS_TABLE", "contacts"),
        )

    if backend == "file":
        return JsonFileContactStore(os.getenv("CONTACT_STORE_PATH", "contacts.json"))

    raise RuntimeError(
        f"Unknown CONTACT_STORE_BACKEND '{backend}'. "
        "Use 'file', 'memory' or 'supabase'."
    )


def get_contact_service() -> ContactService:
    return ContactService(get_contact_store())


def get_settings() -> AppSettings:
    return load_settings()


def get_http_session() -> Iterator[requests.Session]:
    """Outbound HTTP session for one request, closed once the response is sent."""
    session = requests.Session()
    try:
        yield session
    finally:
        session.close()

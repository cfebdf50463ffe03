"""
Backend connection utilities for the Streamlit app.
Builds the REST client from secrets/env and falls back to demo data.
"""
import logging
import os
from typing import Optional

import streamlit as st

from backend_client import BackendClient, DEFAULT_TIMEOUT
from mock_data import InMemoryBackend

logger = logging.getLogger(__name__)


def _secret(section: str, key: str) -> Optional[str]:
    try:
        return st.secrets[section][key]
    except (KeyError, FileNotFoundError):
        return None


def get_backend_url() -> Optional[str]:
    return _secret("backend", "url") or os.getenv("BACKEND_API_URL")


def is_demo_mode() -> bool:
    return not get_backend_url()


@st.cache_resource
def _demo_backend() -> InMemoryBackend:
    return InMemoryBackend()


@st.cache_resource
def _rest_backend(url: str, token: Optional[str], timeout: float) -> BackendClient:
    logger.info("Connecting to backend at %s", url)
    return BackendClient(url, token=token, timeout=timeout)


def get_backend():
    """
    Get the backend client for this app.

    Uses st.secrets["backend"] (url, token), then BACKEND_API_URL /
    BACKEND_API_TOKEN. With neither configured the app runs on the
    in-memory demo backend.
    """
    url = get_backend_url()
    if not url:
        return _demo_backend()

    token = _secret("backend", "token") or os.getenv("BACKEND_API_TOKEN")
    timeout = float(os.getenv("REQUEST_TIMEOUT", DEFAULT_TIMEOUT))
    return _rest_backend(url, token, timeout)


def get_public_base_url() -> str:
    """Origin used when building share links."""
    return (
        _secret("app", "public_base_url")
        or os.getenv("PUBLIC_BASE_URL")
        or "http://localhost:8000"
    ).rstrip("/")

"""Report API configuration read from Streamlit secrets."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict

import streamlit as st

DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_UPLOAD_PATH = "/api/form-submissions/upload"
DEFAULT_SUBMISSION_PATH = "/api/crusade-form-submissions"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class ApiSettings:
    """Where the report API lives and how long to wait for it."""

    base_url: str = DEFAULT_BASE_URL
    upload_path: str = DEFAULT_UPLOAD_PATH
    submission_path: str = DEFAULT_SUBMISSION_PATH
    timeout: float = DEFAULT_TIMEOUT


def _secret(name: str, default: Any = None) -> Any:
    """Return ``st.secrets[name]`` or ``default`` when secrets are unavailable."""

    try:
        return st.secrets.get(name, default)
    except FileNotFoundError:
        return default


def _secrets_dict(name: str) -> Dict[str, Any]:
    """Return a mapping stored under ``name`` in Streamlit secrets."""

    value = _secret(name, {})
    if isinstance(value, Mapping):
        return dict(value)
    return {}


def _as_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        return DEFAULT_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_TIMEOUT


def api_settings() -> ApiSettings:
    """Return API settings from the ``[api]`` table or flat ``api_*`` keys."""

    secrets = _secrets_dict("api")
    base_url = secrets.get("base_url") or _secret("api_base_url") or DEFAULT_BASE_URL
    upload_path = secrets.get("upload_path") or _secret("api_upload_path") or DEFAULT_UPLOAD_PATH
    submission_path = (
        secrets.get("submission_path") or _secret("api_submission_path") or DEFAULT_SUBMISSION_PATH
    )
    timeout = secrets.get("timeout", _secret("api_timeout", DEFAULT_TIMEOUT))

    return ApiSettings(
        base_url=str(base_url).rstrip("/"),
        upload_path=str(upload_path),
        submission_path=str(submission_path),
        timeout=_as_timeout(timeout),
    )

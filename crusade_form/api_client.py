"""Thin wrapper over the report API's upload and submission endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import requests

from crusade_form.attachments import Attachment
from crusade_form.errors import SubmissionError, UploadError
from crusade_form.settings import (
    DEFAULT_SUBMISSION_PATH,
    DEFAULT_TIMEOUT,
    DEFAULT_UPLOAD_PATH,
    ApiSettings,
)

DEFAULT_SUBMISSION_ERROR = "Submission failed"


@dataclass
class ReportApiClient:
    """Report API wrapper for uploading attachments and posting reports."""

    base_url: str
    upload_path: str = DEFAULT_UPLOAD_PATH
    submission_path: str = DEFAULT_SUBMISSION_PATH
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_settings(cls, settings: ApiSettings) -> "ReportApiClient":
        return cls(
            base_url=settings.base_url,
            upload_path=settings.upload_path,
            submission_path=settings.submission_path,
            timeout=settings.timeout,
        )

    def _url(self, path: str) -> str:
        """Join ``path`` onto the configured base URL."""

        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def upload_attachment(self, attachment: Attachment, resource_type: str) -> str:
        """Upload ``attachment`` as multipart form data and return its hosted URL."""

        files = {"file": (attachment.filename, attachment.content, attachment.mime_type)}
        try:
            response = requests.post(
                self._url(self.upload_path),
                params={"resourceType": resource_type},
                files=files,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise UploadError(str(exc) or "Failed to upload file") from exc

        if not response.ok:
            raise UploadError(response.text or "Failed to upload file")

        try:
            payload = response.json()
        except ValueError as exc:
            raise UploadError("Upload response was not valid JSON.") from exc

        url = payload.get("url") if isinstance(payload, dict) else None
        if not isinstance(url, str) or not url:
            raise UploadError("Upload response did not include a URL.")
        return url

    def submit_report(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST the report ``payload`` as JSON and return the created record."""

        try:
            response = requests.post(
                self._url(self.submission_path),
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise SubmissionError(str(exc) or DEFAULT_SUBMISSION_ERROR) from exc

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("error") if isinstance(body, dict) else None
            raise SubmissionError(message or DEFAULT_SUBMISSION_ERROR)

        try:
            record = response.json()
        except ValueError:
            return {}
        return record if isinstance(record, dict) else {"record": record}

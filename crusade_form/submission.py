"""Assemble and send a confirmed crusade report."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from crusade_form.attachments import ATTACHMENT_FIELD, Attachment, resource_type_for
from crusade_form.errors import SubmissionError, UploadError
from crusade_form.form_state import FormState
from crusade_form.schema import MEMBER_TYPE_FIELD

logger = logging.getLogger(__name__)


class ReportClient(Protocol):
    def upload_attachment(self, attachment: Attachment, resource_type: str) -> str: ...

    def submit_report(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...


@dataclass
class SubmissionResult:
    """Outcome of a report that the API accepted."""

    record: Dict[str, Any]
    warnings: List[str] = field(default_factory=list)
    attachment_url: str = ""


def build_payload(state: FormState, attachment_url: str) -> Dict[str, Any]:
    """Return the JSON body posted to the submission endpoint."""

    form_data: Dict[str, Any] = dict(state.form_data)
    form_data[MEMBER_TYPE_FIELD] = state.member_type
    form_data[ATTACHMENT_FIELD] = attachment_url
    return {"memberType": state.member_type, "formData": form_data}


def submit_report(
    client: ReportClient,
    state: FormState,
    attachment: Optional[Attachment] = None,
) -> SubmissionResult:
    """Upload the optional attachment, then post the report.

    A failed upload does not stop the submission: the report is sent without
    the attachment and the returned result carries a warning for the user.
    A rejected post raises :class:`SubmissionError` and leaves ``state`` as it
    was so the caller can offer a retry.
    """

    if state.member_type is None:
        raise SubmissionError("Select a member type before submitting.")

    warnings: List[str] = []
    existing = state.form_data.get(ATTACHMENT_FIELD)
    attachment_url = existing if isinstance(existing, str) else ""

    if attachment is not None:
        try:
            attachment_url = client.upload_attachment(attachment, resource_type_for(attachment))
        except UploadError as exc:
            logger.warning("Attachment upload failed for %s: %s", attachment.filename, exc)
            kind = "audio recording" if attachment.is_audio else "report file"
            warnings.append(
                f"Could not upload the {kind}. The form will be submitted without it. Error: {exc}"
            )
            attachment_url = ""

    payload = build_payload(state, attachment_url)
    try:
        record = client.submit_report(payload)
    except SubmissionError:
        logger.exception("Crusade report submission failed")
        raise

    logger.info("Crusade report submitted for member type %s", state.member_type)
    return SubmissionResult(record=record, warnings=warnings, attachment_url=attachment_url)


__all__ = ["ReportClient", "SubmissionResult", "build_payload", "submit_report"]

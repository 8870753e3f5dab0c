"""Tests for assembling and sending crusade reports."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from crusade_form.attachments import Attachment, read_attachment, resource_type_for
from crusade_form.errors import SubmissionError, UploadError
from crusade_form.form_state import FormState
from crusade_form.submission import build_payload, submit_report

MEDIA_URL = "https://media.example/reports/abc123"


class DummyClient:
    def __init__(self, *, upload_error=None, submit_error=None) -> None:
        self.upload_error = upload_error
        self.submit_error = submit_error
        self.uploads = []
        self.payloads = []

    def upload_attachment(self, attachment, resource_type):
        self.uploads.append((attachment.filename, resource_type))
        if self.upload_error is not None:
            raise self.upload_error
        return MEDIA_URL

    def submit_report(self, payload):
        self.payloads.append(payload)
        if self.submit_error is not None:
            raise self.submit_error
        return {"id": "rec-1"}


def _state(**answers):
    form_data = {"memberType": "others", "organizer_name": "Grace Cell"}
    form_data.update(answers)
    return FormState(member_type="others", current_step=5, form_data=form_data)


def _recording():
    return Attachment(filename="audio_recording.wav", content=b"RIFF", mime_type="audio/wav", recorded=True)


def test_uploaded_attachment_url_replaces_placeholder() -> None:
    client = DummyClient()

    result = submit_report(client, _state(writeup_file="audio_recording.wav"), _recording())

    assert client.uploads == [("audio_recording.wav", "raw")]
    assert client.payloads[0]["formData"]["writeup_file"] == MEDIA_URL
    assert result.attachment_url == MEDIA_URL
    assert result.record == {"id": "rec-1"}
    assert result.warnings == []


def test_document_attachment_uses_auto_resource_type() -> None:
    client = DummyClient()
    document = Attachment(filename="report.pdf", content=b"%PDF", mime_type="application/pdf")

    submit_report(client, _state(writeup_file="report.pdf"), document)

    assert client.uploads == [("report.pdf", "auto")]


def test_failed_upload_still_submits_without_attachment() -> None:
    client = DummyClient(upload_error=UploadError("media host unavailable"))

    result = submit_report(client, _state(writeup_file="audio_recording.wav"), _recording())

    assert len(client.payloads) == 1
    assert client.payloads[0]["formData"]["writeup_file"] == ""
    assert len(result.warnings) == 1
    assert "audio recording" in result.warnings[0]
    assert "media host unavailable" in result.warnings[0]


def test_rejected_submission_raises_with_server_message() -> None:
    client = DummyClient(submit_error=SubmissionError("Missing crusade name"))

    with pytest.raises(SubmissionError, match="Missing crusade name"):
        submit_report(client, _state())


def test_submission_requires_member_type() -> None:
    client = DummyClient()

    with pytest.raises(SubmissionError):
        submit_report(client, FormState())

    assert client.payloads == []


def test_payload_without_attachment_keeps_form_data() -> None:
    client = DummyClient()

    submit_report(client, _state(writeup="We reached 300 people."))

    assert client.uploads == []
    assert client.payloads == [
        {
            "memberType": "others",
            "formData": {
                "memberType": "others",
                "organizer_name": "Grace Cell",
                "writeup": "We reached 300 people.",
                "writeup_file": "",
            },
        }
    ]


def test_build_payload_does_not_mutate_state() -> None:
    state = _state()

    payload = build_payload(state, MEDIA_URL)

    assert payload["formData"]["writeup_file"] == MEDIA_URL
    assert "writeup_file" not in state.form_data


def test_read_attachment_from_uploaded_file() -> None:
    uploaded = SimpleNamespace(name="notes.docx", type="", getvalue=lambda: b"PK")

    attachment = read_attachment(uploaded)

    assert attachment.filename == "notes.docx"
    assert attachment.content == b"PK"
    assert resource_type_for(attachment) == "auto"


def test_read_attachment_marks_recordings_as_audio() -> None:
    recording = SimpleNamespace(name="clip", type="application/octet-stream", getvalue=lambda: b"RIFF")

    attachment = read_attachment(recording, filename="audio_recording.wav", recorded=True)

    assert attachment.filename == "audio_recording.wav"
    assert attachment.is_audio is True
    assert resource_type_for(attachment) == "raw"


def test_read_attachment_rejects_empty_content() -> None:
    with pytest.raises(ValueError):
        read_attachment(SimpleNamespace(name="empty.pdf", type="application/pdf", getvalue=lambda: b""))

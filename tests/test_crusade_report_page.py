"""Tests for the session handling of the crusade report page."""

from __future__ import annotations

import importlib
from datetime import date
from types import SimpleNamespace

from crusade_form.attachments import Attachment
from crusade_form.errors import SubmissionError, UploadError
from crusade_form.form_state import FormState, apply_change, initial_state, select_member_type
from crusade_form.form_store import load_form
from crusade_form.schema import parse_form


def _load_page(monkeypatch):
    page = importlib.import_module("pages.01_Crusade_Report")
    session = {}
    monkeypatch.setattr(page.st, "session_state", session)
    monkeypatch.setattr(page, "load_form_definition", load_form)
    return page, session


class DummyClient:
    def __init__(self, *, upload_error=None, submit_error=None) -> None:
        self.upload_error = upload_error
        self.submit_error = submit_error
        self.payloads = []

    def upload_attachment(self, attachment, resource_type):
        if self.upload_error is not None:
            raise self.upload_error
        return "https://media.example/report.pdf"

    def submit_report(self, payload):
        self.payloads.append(payload)
        if self.submit_error is not None:
            raise self.submit_error
        return {"id": "rec-1"}


def _filled_state():
    form = load_form()
    state = select_member_type(form, initial_state(), "others")
    state = apply_change(form, state, "organizer_name", "Grace Cell")
    state = apply_change(form, state, "writeup_file", "report.pdf")
    return FormState(
        member_type=state.member_type,
        current_step=5,
        form_data=state.form_data,
        expanded=state.expanded,
    )


def _prime_session(page, session):
    session[page.STATE_KEY] = _filled_state()
    session[page.ATTACHMENT_KEY] = Attachment(
        filename="report.pdf", content=b"%PDF", mime_type="application/pdf"
    )
    session[page.CONFIRM_KEY] = True
    session[page.BUSY_KEY] = True
    session[page._widget_key("organizer_name")] = "Grace Cell"


def test_confirm_submission_resets_form_after_success(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    _prime_session(page, session)
    client = DummyClient()

    result = page.confirm_submission(client, success_message="Thanks!")

    assert result is not None
    assert client.payloads[0]["formData"]["writeup_file"] == "https://media.example/report.pdf"
    assert session[page.STATE_KEY] == initial_state()
    assert session[page.BUSY_KEY] is False
    assert session[page.CONFIRM_KEY] is False
    assert page.ATTACHMENT_KEY not in session
    assert page._widget_key("organizer_name") not in session
    assert session[page.NOTICES_KEY] == [{"kind": "success", "message": "Thanks!"}]


def test_confirm_submission_keeps_answers_when_rejected(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    _prime_session(page, session)
    before = session[page.STATE_KEY]

    result = page.confirm_submission(DummyClient(submit_error=SubmissionError("Missing crusade name")))

    assert result is None
    assert session[page.STATE_KEY] is before
    assert session[page.BUSY_KEY] is False
    assert page.ATTACHMENT_KEY in session
    assert session[page.NOTICES_KEY] == [
        {"kind": "error", "message": "Failed to submit form: Missing crusade name"}
    ]


def test_confirm_submission_warns_when_attachment_upload_fails(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    _prime_session(page, session)
    client = DummyClient(upload_error=UploadError("media host unavailable"))

    page.confirm_submission(client, success_message="Thanks!")

    assert client.payloads[0]["formData"]["writeup_file"] == ""
    kinds = [notice["kind"] for notice in session[page.NOTICES_KEY]]
    assert kinds == ["warning", "success"]
    assert "report file" in session[page.NOTICES_KEY][0]["message"]


def test_request_submission_ignores_repeat_clicks(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)

    page._request_submission()
    session[page.BUSY_KEY] = "pending"
    page._request_submission()

    assert session[page.BUSY_KEY] == "pending"


def test_apply_answer_forgets_widgets_of_cleared_answers(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    form = load_form()
    state = select_member_type(form, initial_state(), "christ-embassy")
    state = apply_change(form, state, "crusade_category", "Special Crusades")
    state = apply_change(form, state, "special_crusade_type", "Others")
    state = apply_change(form, state, "other_crusade_type", "Hospital outreach")
    session[page.STATE_KEY] = state
    session[page._widget_key("special_crusade_type")] = "Others"
    session[page._widget_key("other_crusade_type")] = "Hospital outreach"

    page._apply_answer("crusade_category", "Online Crusade")

    updated = session[page.STATE_KEY]
    assert updated.form_data["crusade_category"] == "Online Crusade"
    assert page._widget_key("special_crusade_type") not in session
    assert page._widget_key("other_crusade_type") not in session


def test_apply_answer_reports_unknown_question(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    session[page.STATE_KEY] = select_member_type(load_form(), initial_state(), "others")

    page._apply_answer("zone_name", "Zone 1")

    assert session[page.NOTICES_KEY][0]["kind"] == "error"
    assert "zone_name" not in session[page.STATE_KEY].form_data


def test_next_on_last_step_opens_confirmation(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    session[page.STATE_KEY] = _filled_state()

    page._on_next()

    assert session[page.CONFIRM_KEY] is True
    assert session[page.STATE_KEY].current_step == 5

    page._on_back()

    assert session[page.CONFIRM_KEY] is False
    assert session[page.STATE_KEY].current_step == 4


def test_widget_answer_conversions(monkeypatch) -> None:
    page, _ = _load_page(monkeypatch)

    assert page._widget_answer(None) is None
    assert page._widget_answer("Select an option") is None
    assert page._widget_answer("Street Crusade") == "Street Crusade"
    assert page._widget_answer(date(2024, 5, 1)) == "2024-05-01"
    assert page._widget_answer(250) == "250"
    assert page._widget_answer(12.0) == "12"


class BrokenHandle:
    name = "clip.wav"
    type = "audio/wav"

    def getvalue(self):
        raise OSError("microphone unavailable")


def _handle(name, content, mime_type):
    return SimpleNamespace(name=name, type=mime_type, getvalue=lambda: content)


def _answering(page, session, member_type="others"):
    session[page.STATE_KEY] = select_member_type(load_form(), initial_state(), member_type)


def test_failed_recording_alerts_user_without_storing_attachment(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    _answering(page, session)
    session[page.RECORDING_WIDGET] = BrokenHandle()

    page._on_recording_finished()

    assert page.ATTACHMENT_KEY not in session
    assert "writeup_file" not in session[page.STATE_KEY].form_data
    assert session[page.NOTICES_KEY] == [
        {
            "kind": "error",
            "message": "Could not use the audio recording. Please check your microphone permissions.",
        }
    ]


def test_empty_report_file_alerts_user_without_storing_attachment(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    _answering(page, session)
    session[page.REPORT_UPLOAD_WIDGET] = _handle("report.pdf", b"", "application/pdf")

    page._on_report_file_selected()

    assert page.ATTACHMENT_KEY not in session
    assert "writeup_file" not in session[page.STATE_KEY].form_data
    assert session[page.NOTICES_KEY][0]["kind"] == "error"


def test_recording_is_stored_as_wav_attachment(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    _answering(page, session)
    session[page.RECORDING_WIDGET] = _handle("blob", b"RIFF", "audio/wav")

    page._on_recording_finished()

    attachment = session[page.ATTACHMENT_KEY]
    assert attachment.filename == "audio_recording.wav"
    assert attachment.is_audio is True
    assert session[page.STATE_KEY].form_data["writeup_file"] == "audio_recording.wav"


def test_selected_file_is_stored_and_remove_clears_it(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    _answering(page, session)
    session[page.REPORT_UPLOAD_WIDGET] = _handle("report.pdf", b"%PDF", "application/pdf")

    page._on_report_file_selected()

    assert session[page.ATTACHMENT_KEY].filename == "report.pdf"
    assert session[page.STATE_KEY].form_data["writeup_file"] == "report.pdf"

    page._remove_attachment()

    assert page.ATTACHMENT_KEY not in session
    assert page.REPORT_UPLOAD_WIDGET not in session
    assert "writeup_file" not in session[page.STATE_KEY].form_data


def test_confirm_submission_refuses_incomplete_last_step(monkeypatch) -> None:
    page, session = _load_page(monkeypatch)
    form = parse_form(
        "short",
        {
            "member_types": [{"value": "all", "steps": ["only"]}],
            "steps": {"only": {"step": 2, "questions": [{"id": "summary", "label": "Summary", "required": True}]}},
        },
    )
    monkeypatch.setattr(page, "load_form_definition", lambda: form)
    state = select_member_type(form, initial_state(), "all")
    session[page.STATE_KEY] = FormState(member_type="all", current_step=2, form_data=state.form_data)
    session[page.CONFIRM_KEY] = True
    session[page.BUSY_KEY] = True
    client = DummyClient()

    result = page.confirm_submission(client)

    assert result is None
    assert client.payloads == []
    assert session[page.BUSY_KEY] is False
    assert session[page.CONFIRM_KEY] is False
    assert session[page.NOTICES_KEY] == [{"kind": "error", "message": "Please answer: Summary"}]

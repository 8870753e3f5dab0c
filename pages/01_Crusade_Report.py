"""Streamlit page running the multi-step crusade report form."""

from __future__ import annotations

import logging
from datetime import date
from html import escape as html_escape
from typing import Any, Dict, List, Optional

import streamlit as st

from Home import load_form_definition
from crusade_form.api_client import ReportApiClient
from crusade_form.attachments import (
    ATTACHMENT_FIELD,
    RECORDING_FILENAME,
    Attachment,
    read_attachment,
)
from crusade_form.errors import CrusadeFormError, SchemaError, SubmissionError
from crusade_form.form_state import (
    FormState,
    apply_change,
    current_questions,
    reset_state,
    select_member_type,
    visible_questions,
)
from crusade_form.logging_setup import configure_logging
from crusade_form.navigation import (
    SUBMIT,
    can_proceed_to_next,
    handle_back,
    handle_next,
    is_last_step,
    missing_required_questions,
    total_steps,
)
from crusade_form.review import answers_frame
from crusade_form.schema import FormDefinition, Question
from crusade_form.schema_defaults import (
    DEFAULT_BACK_LABEL,
    DEFAULT_CANCEL_LABEL,
    DEFAULT_CONFIRM_HEADING,
    DEFAULT_CONFIRM_LABEL,
    DEFAULT_CONFIRM_MESSAGE,
    DEFAULT_DEBUG_LABEL,
    DEFAULT_INTRO_HEADING,
    DEFAULT_MEMBER_TYPE_PROMPT,
    DEFAULT_NEXT_LABEL,
    DEFAULT_PAGE_TITLE,
    DEFAULT_SELECT_PLACEHOLDER,
    DEFAULT_SHOW_DEBUG,
    DEFAULT_SHOW_INTRODUCTION,
    DEFAULT_SUBMIT_FAILURE_MESSAGE,
    DEFAULT_SUBMIT_LABEL,
    DEFAULT_SUBMIT_SUCCESS_MESSAGE,
    intro_paragraphs_list,
)
from crusade_form.settings import api_settings
from crusade_form.submission import SubmissionResult, submit_report
from crusade_form.ui_theme import (
    apply_app_theme,
    page_header,
    question_block_markup,
    step_progress_markup,
)

logger = logging.getLogger(__name__)

STATE_KEY = "crusade_report_state"
ATTACHMENT_KEY = "crusade_report_attachment"
CONFIRM_KEY = "crusade_report_confirm"
BUSY_KEY = "crusade_report_busy"
NOTICES_KEY = "crusade_report_notices"
WIDGET_PREFIX = "crusade_question_"
REPORT_UPLOAD_WIDGET = "crusade_report_file"
RECORDING_WIDGET = "crusade_report_recording"


def _widget_key(question_id: str) -> str:
    return f"{WIDGET_PREFIX}{question_id}"


def _get_state() -> FormState:
    state = st.session_state.get(STATE_KEY)
    if not isinstance(state, FormState):
        state = reset_state()
        st.session_state[STATE_KEY] = state
    return state


def _set_state(state: FormState) -> None:
    st.session_state[STATE_KEY] = state


def _notify(kind: str, message: str) -> None:
    """Queue a notice rendered at the top of the next pass through the page."""

    notices: List[Dict[str, str]] = st.session_state.setdefault(NOTICES_KEY, [])
    notices.append({"kind": kind, "message": message})


def _render_notices() -> None:
    notices = st.session_state.pop(NOTICES_KEY, None) or []
    for notice in notices:
        render = getattr(st, notice.get("kind", "info"), st.info)
        render(notice.get("message", ""))


def _page_text(page: Dict[str, Any], section: str, key: str, default: str) -> str:
    """Return ``page[section][key]`` when configured, otherwise ``default``."""

    settings = page.get(section) if isinstance(page.get(section), dict) else {}
    value = settings.get(key)
    return str(value) if isinstance(value, str) and value.strip() else default


def _widget_answer(value: Any) -> Optional[str]:
    """Convert a widget value into the string stored in the form data."""

    if value is None:
        return None
    if isinstance(value, str):
        return None if value == DEFAULT_SELECT_PLACEHOLDER else value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)):
        return str(int(value))
    return str(value)


def _apply_answer(question_id: str, value: Optional[str]) -> None:
    """Run the reducer and forget widget state of answers it cleared."""

    form = load_form_definition()
    previous = _get_state()
    try:
        updated = apply_change(form, previous, question_id, value)
    except CrusadeFormError as exc:
        _notify("error", str(exc))
        return

    _set_state(updated)
    for stale_id in set(previous.form_data) - set(updated.form_data):
        if stale_id != question_id:
            st.session_state.pop(_widget_key(stale_id), None)


def _on_answer_change(question_id: str) -> None:
    _apply_answer(question_id, _widget_answer(st.session_state.get(_widget_key(question_id))))


def _on_member_type_selected(member_type: str) -> None:
    form = load_form_definition()
    try:
        _set_state(select_member_type(form, _get_state(), member_type))
    except CrusadeFormError as exc:
        _notify("error", str(exc))


def _on_next() -> None:
    form = load_form_definition()
    state = _get_state()
    if not can_proceed_to_next(form, state):
        return
    updated, action = handle_next(form, state)
    _set_state(updated)
    if action == SUBMIT:
        st.session_state[CONFIRM_KEY] = True


def _on_back() -> None:
    st.session_state[CONFIRM_KEY] = False
    _set_state(handle_back(_get_state()))


def _store_attachment(attachment: Attachment) -> None:
    st.session_state[ATTACHMENT_KEY] = attachment
    _apply_answer(ATTACHMENT_FIELD, attachment.filename)


def _on_report_file_selected() -> None:
    uploaded = st.session_state.get(REPORT_UPLOAD_WIDGET)
    if uploaded is None:
        _remove_attachment()
        return
    try:
        attachment = read_attachment(uploaded)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read selected report file: %s", exc)
        _notify("error", f"Could not read the selected file: {exc}")
        return
    _store_attachment(attachment)


def _on_recording_finished() -> None:
    recording = st.session_state.get(RECORDING_WIDGET)
    if recording is None:
        return
    try:
        attachment = read_attachment(recording, filename=RECORDING_FILENAME, recorded=True)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read audio recording: %s", exc)
        _notify(
            "error",
            "Could not use the audio recording. Please check your microphone permissions.",
        )
        return
    _store_attachment(attachment)


def _remove_attachment() -> None:
    st.session_state.pop(ATTACHMENT_KEY, None)
    st.session_state.pop(REPORT_UPLOAD_WIDGET, None)
    st.session_state.pop(RECORDING_WIDGET, None)
    _apply_answer(ATTACHMENT_FIELD, None)


def _reset_form() -> None:
    """Forget every answer, the attachment and all widget state."""

    _set_state(reset_state())
    st.session_state[CONFIRM_KEY] = False
    for key in list(st.session_state.keys()):
        if key.startswith(WIDGET_PREFIX) or key in {
            ATTACHMENT_KEY,
            REPORT_UPLOAD_WIDGET,
            RECORDING_WIDGET,
        }:
            st.session_state.pop(key, None)


def _request_submission() -> None:
    if st.session_state.get(BUSY_KEY):
        return
    st.session_state[BUSY_KEY] = True


def _cancel_submission() -> None:
    st.session_state[CONFIRM_KEY] = False


def confirm_submission(
    client: ReportApiClient, *, success_message: str = DEFAULT_SUBMIT_SUCCESS_MESSAGE
) -> Optional[SubmissionResult]:
    """Send the confirmed report and reset the form once the API accepts it."""

    state = _get_state()
    form = load_form_definition()
    if not is_last_step(form, state) or not can_proceed_to_next(form, state):
        st.session_state[BUSY_KEY] = False
        st.session_state[CONFIRM_KEY] = False
        missing = missing_required_questions(form, state)
        message = "The report is not ready to submit."
        if missing:
            message = "Please answer: " + ", ".join(missing)
        _notify("error", message)
        return None

    attachment = st.session_state.get(ATTACHMENT_KEY)
    try:
        result = submit_report(client, state, attachment)
    except SubmissionError as exc:
        _notify("error", DEFAULT_SUBMIT_FAILURE_MESSAGE.format(error=exc))
        return None
    finally:
        st.session_state[BUSY_KEY] = False

    for warning in result.warnings:
        _notify("warning", warning)
    _reset_form()
    _notify("success", success_message)
    return result


def render_attachment_control(question: Question) -> None:
    """Render the file picker and microphone recorder for the report slot."""

    attachment: Optional[Attachment] = st.session_state.get(ATTACHMENT_KEY)
    accept = [ext.strip().lstrip(".") for ext in (question.accept or "").split(",") if ext.strip()]
    upload_col, record_col = st.columns(2)
    upload_col.file_uploader(
        "Upload PDF, Word Document, or Audio File",
        type=accept or None,
        key=REPORT_UPLOAD_WIDGET,
        on_change=_on_report_file_selected,
    )
    record_col.audio_input(
        "Record an audio report",
        key=RECORDING_WIDGET,
        on_change=_on_recording_finished,
    )

    if attachment is None:
        return
    if attachment.is_audio:
        st.audio(attachment.content, format=attachment.mime_type)
    else:
        st.caption(f"File selected: {attachment.filename}")
    st.button("Remove", key="crusade_report_remove_attachment", on_click=_remove_attachment)


def render_question(question: Question, state: FormState, *, depth: int = 0) -> None:
    """Render the widget for ``question`` bound to the reducer."""

    st.markdown(
        question_block_markup(
            question.label,
            required=question.required,
            description=question.description,
            depth=depth,
        ),
        unsafe_allow_html=True,
    )

    key = _widget_key(question.id)
    current = state.form_data.get(question.id)
    common = {
        "key": key,
        "on_change": _on_answer_change,
        "args": (question.id,),
        "label_visibility": "collapsed",
    }

    if question.type == "text" and question.input == "number":
        number = int(current) if isinstance(current, str) and current.isdigit() else None
        st.number_input(question.label, min_value=0, step=1, value=number, **common)
    elif question.type == "text" and question.input == "date":
        try:
            chosen = date.fromisoformat(current) if current else None
        except ValueError:
            chosen = None
        st.date_input(question.label, value=chosen, **common)
    elif question.type == "text":
        st.text_input(question.label, value=current or "", **common)
    elif question.type == "textarea":
        st.text_area(question.label, value=current or "", height=120, **common)
        if question.has_file_upload:
            render_attachment_control(question)
    elif question.type == "select":
        choices = [DEFAULT_SELECT_PLACEHOLDER, *question.options]
        index = choices.index(current) if current in question.options else 0
        st.selectbox(question.label, choices, index=index, **common)
    elif question.type == "radio":
        index = list(question.options).index(current) if current in question.options else None
        st.radio(question.label, list(question.options), index=index, **common)
    elif question.type == "file":
        st.file_uploader(question.label, key=key, label_visibility="collapsed")
        uploaded = st.session_state.get(key)
        if uploaded is not None and getattr(uploaded, "name", None) != current:
            _apply_answer(question.id, uploaded.name)
    else:
        st.warning(f"Unsupported question type: {question.type}")


def render_member_type_step(form: FormDefinition, state: FormState, prompt: str) -> None:
    st.markdown(f"#### {html_escape(prompt)}")
    for option in form.member_types:
        selected = state.member_type == option.value
        st.button(
            f"✓ {option.label}" if selected else option.label,
            key=f"crusade_member_type_{option.value}",
            type="primary" if selected else "secondary",
            use_container_width=True,
            on_click=_on_member_type_selected,
            args=(option.value,),
        )


def render_navigation(form: FormDefinition, state: FormState, page: Dict[str, Any]) -> None:
    can_proceed = can_proceed_to_next(form, state)
    back_col, next_col = st.columns(2)
    if state.current_step > 1:
        back_col.button(DEFAULT_BACK_LABEL, key="crusade_back", on_click=_on_back)
    if state.member_type is None:
        return

    submit_label = _page_text(page, "submit", "label", DEFAULT_SUBMIT_LABEL)
    next_label = submit_label if is_last_step(form, state) else DEFAULT_NEXT_LABEL
    next_col.button(
        next_label,
        key="crusade_next",
        type="primary",
        disabled=not can_proceed,
        on_click=_on_next,
    )
    if not can_proceed and state.current_step > 1:
        missing = missing_required_questions(form, state)
        if missing:
            st.caption("Still needed: " + ", ".join(missing))


def render_confirmation(form: FormDefinition, state: FormState) -> None:
    busy = bool(st.session_state.get(BUSY_KEY))
    st.markdown(f"### {DEFAULT_CONFIRM_HEADING}")
    st.write(DEFAULT_CONFIRM_MESSAGE)
    st.dataframe(answers_frame(form, state), hide_index=True, use_container_width=True)
    confirm_col, cancel_col = st.columns(2)
    confirm_col.button(
        DEFAULT_CONFIRM_LABEL,
        key="crusade_confirm",
        type="primary",
        disabled=busy,
        on_click=_request_submission,
    )
    cancel_col.button(
        DEFAULT_CANCEL_LABEL,
        key="crusade_cancel",
        disabled=busy,
        on_click=_cancel_submission,
    )


def _render_introduction(page: Dict[str, Any]) -> None:
    show_introduction = page.get("show_introduction")
    if show_introduction is None:
        show_introduction = DEFAULT_SHOW_INTRODUCTION
    if not show_introduction:
        return

    introduction = page.get("introduction") if isinstance(page.get("introduction"), dict) else {}
    heading = str(introduction.get("heading") or DEFAULT_INTRO_HEADING)
    paragraphs = introduction.get("paragraphs")
    if not isinstance(paragraphs, list):
        paragraphs = intro_paragraphs_list()

    parts = ["<div class=\"questionnaire-intro\">", f"<h2>{html_escape(heading)}</h2>"]
    parts.extend(f"<p>{html_escape(str(paragraph))}</p>" for paragraph in paragraphs)
    parts.append("</div>")
    st.markdown("\n".join(parts), unsafe_allow_html=True)


def main() -> None:
    """Render the crusade report page."""

    configure_logging()
    apply_app_theme(page_title="Crusade report", page_icon="📝")

    try:
        form = load_form_definition()
    except SchemaError as exc:
        page_header(DEFAULT_PAGE_TITLE, "The form is unavailable right now.", icon="📝")
        st.error(f"The crusade report form could not be loaded: {exc}")
        return

    page = dict(form.page)
    page_header(str(page.get("title") or form.label or DEFAULT_PAGE_TITLE), icon="📝")
    _render_introduction(page)

    if st.session_state.get(BUSY_KEY):
        client = ReportApiClient.from_settings(api_settings())
        success_message = _page_text(
            page, "submit", "success_message", DEFAULT_SUBMIT_SUCCESS_MESSAGE
        )
        with st.spinner("Submitting your report..."):
            confirm_submission(client, success_message=success_message)

    _render_notices()

    state = _get_state()
    st.markdown(
        step_progress_markup(state.current_step, total_steps(form, state.member_type)),
        unsafe_allow_html=True,
    )

    if st.session_state.get(CONFIRM_KEY):
        render_confirmation(form, state)
    elif state.current_step == 1:
        render_member_type_step(form, state, DEFAULT_MEMBER_TYPE_PROMPT)
        render_navigation(form, state, page)
    else:
        for question, depth in visible_questions(current_questions(form, state), state.form_data):
            render_question(question, state, depth=depth)
        render_navigation(form, state, page)

    show_debug = page.get("show_debug_answers")
    if show_debug is None:
        show_debug = DEFAULT_SHOW_DEBUG
    if show_debug:
        with st.expander(DEFAULT_DEBUG_LABEL, expanded=False):
            st.json({"form_data": state.form_data, "expanded": sorted(state.expanded)})


if __name__ == "__main__":
    main()

"""Tests for the answer summary shown before confirmation."""

from __future__ import annotations

from crusade_form.form_state import apply_change, initial_state, select_member_type
from crusade_form.form_store import load_form
from crusade_form.review import SUMMARY_COLUMNS, answers_frame, answers_rows


def test_answers_rows_follow_render_order_with_nested_markers() -> None:
    form = load_form()
    state = select_member_type(form, initial_state(), "christ-embassy")
    state = apply_change(form, state, "crusade_name", "Harvest")
    state = apply_change(form, state, "crusade_category", "Special Crusades")
    state = apply_change(form, state, "special_crusade_type", "Others")
    state = apply_change(form, state, "other_crusade_type", "Hospital outreach")
    state = apply_change(form, state, "writeup_file", "report.pdf")

    rows = answers_rows(form, state)

    assert rows[0] == {"Step": 1, "Question": "Category", "Answer": form.member_type_label("christ-embassy")}
    assert [row["Answer"] for row in rows[1:]] == [
        "Harvest",
        "Special Crusades",
        "Others",
        "Hospital outreach",
        "report.pdf",
    ]
    assert rows[3]["Question"].strip().startswith("↳")
    assert rows[-1] == {"Step": 5, "Question": "Report attachment", "Answer": "report.pdf"}


def test_answers_frame_is_empty_without_member_type() -> None:
    frame = answers_frame(load_form(), initial_state())

    assert list(frame.columns) == list(SUMMARY_COLUMNS)
    assert frame.empty

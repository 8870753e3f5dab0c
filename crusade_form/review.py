"""Tabular summary of the answers shown before a report is confirmed."""

from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from crusade_form.attachments import ATTACHMENT_FIELD
from crusade_form.form_state import FormState, visible_questions
from crusade_form.schema import FormDefinition

SUMMARY_COLUMNS = ("Step", "Question", "Answer")


def answers_rows(form: FormDefinition, state: FormState) -> List[Dict[str, Any]]:
    """Return one row per visible answered question, in render order."""

    if state.member_type is None:
        return []

    rows: List[Dict[str, Any]] = [
        {
            "Step": 1,
            "Question": "Category",
            "Answer": form.member_type_label(state.member_type) or state.member_type,
        }
    ]
    for step_config in form.steps_for(state.member_type):
        for question, depth in visible_questions(
            step_config.questions, state.form_data, include_hidden=True
        ):
            value = state.form_data.get(question.id)
            if not isinstance(value, str) or not value.strip():
                continue
            label = question.label if depth == 0 else f"{'  ' * depth}↳ {question.label}"
            if question.id == ATTACHMENT_FIELD:
                label = "Report attachment"
            rows.append({"Step": step_config.step, "Question": label, "Answer": value})
    return rows


def answers_frame(form: FormDefinition, state: FormState) -> pd.DataFrame:
    """Return the review summary as a :class:`pandas.DataFrame`."""

    return pd.DataFrame(answers_rows(form, state), columns=list(SUMMARY_COLUMNS))

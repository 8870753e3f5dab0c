"""Step navigation and required-answer gating for the crusade report form."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Mapping, Optional, Sequence, Tuple

from crusade_form.form_state import (
    FormState,
    active_conditional_questions,
    current_questions,
)
from crusade_form.schema import CHOICE_TYPES, FormDefinition, Question

STAY = "stay"
ADVANCE = "advance"
SUBMIT = "submit"


def has_required_answer(question: Question, form_data: Mapping[str, Optional[str]]) -> bool:
    """Check whether ``form_data`` holds a usable answer for ``question``."""

    value = form_data.get(question.id)
    if not isinstance(value, str) or not value.strip():
        return False
    if question.type in CHOICE_TYPES:
        return value in question.options
    if question.input == "number":
        return value.strip().isdigit()
    return True


def _question_satisfied(question: Question, form_data: Mapping[str, Optional[str]]) -> bool:
    if question.required and not has_required_answer(question, form_data):
        return False
    return check_conditional_questions(active_conditional_questions(question, form_data), form_data)


def check_conditional_questions(
    questions: Sequence[Question], form_data: Mapping[str, Optional[str]]
) -> bool:
    """Return ``True`` when ``questions`` and their revealed descendants are answered."""

    return all(_question_satisfied(question, form_data) for question in questions)


def _collect_missing(
    questions: Sequence[Question],
    form_data: Mapping[str, Optional[str]],
    missing: List[str],
) -> None:
    for question in questions:
        if question.required and not has_required_answer(question, form_data):
            missing.append(question.label)
        _collect_missing(active_conditional_questions(question, form_data), form_data, missing)


def missing_required_questions(form: FormDefinition, state: FormState) -> List[str]:
    """Return labels of visible required questions on the current step without answers."""

    missing: List[str] = []
    _collect_missing(current_questions(form, state), state.form_data, missing)
    return missing


def can_proceed_to_next(form: FormDefinition, state: FormState) -> bool:
    """Return ``True`` when the Next/Submit control should be enabled."""

    if state.current_step == 1:
        return state.member_type is not None
    if state.member_type is None:
        return False
    return check_conditional_questions(current_questions(form, state), state.form_data)


def max_step(form: FormDefinition, member_type: Optional[str]) -> int:
    """Return the number of the last step for ``member_type``."""

    return max(step_config.step for step_config in form.steps_for(member_type))


def total_steps(form: FormDefinition, member_type: Optional[str]) -> int:
    """Return the step count shown in the progress label, member selection included."""

    if member_type is None:
        return 1
    return len(form.steps_for(member_type)) + 1


def is_last_step(form: FormDefinition, state: FormState) -> bool:
    if state.member_type is None:
        return False
    return state.current_step >= max_step(form, state.member_type)


def handle_next(form: FormDefinition, state: FormState) -> Tuple[FormState, str]:
    """Advance one step, or report that the form is ready to submit.

    Returns the next state together with one of ``STAY``, ``ADVANCE`` or
    ``SUBMIT``.  Submission itself is left to the caller, which shows the
    confirmation step before anything is sent.
    """

    if state.member_type is None:
        return state, STAY
    if state.current_step == 1:
        return replace(state, current_step=2), ADVANCE
    if state.current_step < max_step(form, state.member_type):
        return replace(state, current_step=state.current_step + 1), ADVANCE
    return state, SUBMIT


def handle_back(state: FormState) -> FormState:
    """Go back one step, never past member type selection."""

    if state.current_step > 1:
        return replace(state, current_step=state.current_step - 1)
    return state


__all__ = [
    "ADVANCE",
    "STAY",
    "SUBMIT",
    "can_proceed_to_next",
    "check_conditional_questions",
    "handle_back",
    "handle_next",
    "has_required_answer",
    "is_last_step",
    "max_step",
    "missing_required_questions",
    "total_steps",
]

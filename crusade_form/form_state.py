"""Answer bookkeeping for the multi-step crusade report form.

``FormState`` is treated as an immutable value: every operation returns a new
state and leaves its input untouched, which keeps Streamlit reruns and tests
free of aliasing surprises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, List, MutableMapping, Optional, Sequence, Set, Tuple

from crusade_form.errors import UnknownQuestionError
from crusade_form.schema import (
    MEMBER_TYPE_FIELD,
    BranchingConditional,
    FormDefinition,
    Question,
    StepConfig,
    conditional_children,
    iter_questions,
)

logger = logging.getLogger(__name__)

Answer = Optional[str]
FormData = Dict[str, Answer]


def _empty_form_data() -> FormData:
    return {MEMBER_TYPE_FIELD: None}


@dataclass(frozen=True)
class FormState:
    """Where the user is in the form and what they have answered so far."""

    member_type: Optional[str] = None
    current_step: int = 1
    form_data: FormData = field(default_factory=_empty_form_data)
    expanded: FrozenSet[str] = frozenset()


def initial_state() -> FormState:
    """Return the state of a freshly opened form."""

    return FormState()


def reset_state() -> FormState:
    """Return a blank state after a successful submission."""

    return initial_state()


def should_show_conditional(question: Question, form_data: MutableMapping[str, Any]) -> bool:
    """Return ``True`` when the conditional attached to ``question`` is satisfied."""

    conditional = question.conditional
    if conditional is None:
        return False
    answer = form_data.get(conditional.field)
    if isinstance(conditional, BranchingConditional):
        return any(branch.value == answer for branch in conditional.branches)
    return answer == conditional.value


def active_branch_questions(question: Question, form_data: MutableMapping[str, Any]) -> Tuple[Question, ...]:
    """Return the questions of the branch matching the current answer."""

    conditional = question.conditional
    if not isinstance(conditional, BranchingConditional):
        return ()
    answer = form_data.get(conditional.field)
    for branch in conditional.branches:
        if branch.value == answer:
            return branch.questions
    return ()


def active_conditional_questions(question: Question, form_data: MutableMapping[str, Any]) -> Tuple[Question, ...]:
    """Return the nested questions ``question`` currently reveals."""

    conditional = question.conditional
    if conditional is None or not should_show_conditional(question, form_data):
        return ()
    if isinstance(conditional, BranchingConditional):
        return active_branch_questions(question, form_data)
    return conditional.questions


def visible_questions(
    questions: Sequence[Question],
    form_data: MutableMapping[str, Any],
    *,
    include_hidden: bool = False,
    depth: int = 0,
) -> List[Tuple[Question, int]]:
    """Flatten ``questions`` and their revealed descendants in render order.

    Each entry pairs the question with its nesting depth so callers can indent
    conditional questions under the one that revealed them.  Questions flagged
    ``hidden`` are skipped unless ``include_hidden`` is set; they are filled by
    other controls rather than rendered on their own.
    """

    flattened: List[Tuple[Question, int]] = []
    for question in questions:
        if question.hidden and not include_hidden:
            continue
        flattened.append((question, depth))
        flattened.extend(
            visible_questions(
                active_conditional_questions(question, form_data),
                form_data,
                include_hidden=include_hidden,
                depth=depth + 1,
            )
        )
    return flattened


def current_questions(form: FormDefinition, state: FormState) -> Tuple[Question, ...]:
    """Return the top-level questions of the step the user is on."""

    if state.member_type is None or state.current_step == 1:
        return ()
    for step_config in form.steps_for(state.member_type):
        if step_config.step == state.current_step:
            return step_config.questions
    return ()


def _visible_ids(steps: Sequence[StepConfig], form_data: MutableMapping[str, Any]) -> Set[str]:
    visible: Set[str] = set()
    for step_config in steps:
        for question, _ in visible_questions(step_config.questions, form_data, include_hidden=True):
            visible.add(question.id)
    return visible


def _clear_nested(questions: Sequence[Question], form_data: FormData, expanded: Set[str]) -> None:
    """Drop answers and expansion for ``questions`` and all their descendants."""

    for question in questions:
        form_data.pop(question.id, None)
        expanded.discard(question.id)
        _clear_nested(conditional_children(question.conditional), form_data, expanded)


def _normalise_answer(value: Any) -> Answer:
    if value is None or isinstance(value, str):
        return value
    return str(value)


def select_member_type(form: FormDefinition, state: FormState, member_type: str) -> FormState:
    """Record the member type chosen on step 1.

    Answers that do not belong to the newly selected schema, or that sit under
    a conditional the kept answers do not reveal, are dropped so a change of
    mind on step 1 cannot leak fields into the submission.
    """

    index = form.question_index(member_type)
    steps = form.steps_for(member_type)
    form_data: FormData = {
        key: value for key, value in state.form_data.items() if key in index
    }
    form_data[MEMBER_TYPE_FIELD] = member_type

    # Pruning a nested answer can hide its own descendants, so repeat until stable.
    while True:
        visible = _visible_ids(steps, form_data)
        stale = [key for key in form_data if key != MEMBER_TYPE_FIELD and key not in visible]
        if not stale:
            break
        for key in stale:
            form_data.pop(key)

    visible = _visible_ids(steps, form_data)
    expanded = frozenset(
        question.id
        for question in index.values()
        if question.id in visible and should_show_conditional(question, form_data)
    )
    return replace(state, member_type=member_type, form_data=form_data, expanded=expanded)


def apply_change(form: FormDefinition, state: FormState, question_id: str, value: Any) -> FormState:
    """Record a new answer and recompute conditional visibility.

    Every question whose conditional is controlled by ``question_id`` is
    revisited.  Branching conditionals clear the answers of all their branches
    on every change, matching or not, before deciding whether a branch is now
    expanded.  Single conditionals clear their nested answers once the
    controlling value stops matching.  Answers to conditional questions that
    are not currently revealed are ignored.
    """

    if state.member_type is None:
        raise UnknownQuestionError("Select a member type before answering questions.")

    steps = form.steps_for(state.member_type)
    if question_id not in form.question_index(state.member_type):
        raise UnknownQuestionError(
            f"Question {question_id!r} is not part of the {state.member_type} form."
        )
    if question_id not in _visible_ids(steps, state.form_data):
        logger.warning("Ignoring answer to hidden conditional question %s", question_id)
        return state

    answer = _normalise_answer(value)
    form_data: FormData = dict(state.form_data)
    if answer is None:
        form_data.pop(question_id, None)
    else:
        form_data[question_id] = answer
    expanded: Set[str] = set(state.expanded)

    for step_config in steps:
        for question in iter_questions(step_config.questions):
            conditional = question.conditional
            if conditional is None or conditional.field != question_id:
                continue

            if isinstance(conditional, BranchingConditional):
                for branch in conditional.branches:
                    _clear_nested(branch.questions, form_data, expanded)
                if any(branch.value == answer for branch in conditional.branches):
                    expanded.add(question.id)
                else:
                    expanded.discard(question.id)
            elif answer == conditional.value:
                expanded.add(question.id)
            else:
                expanded.discard(question.id)
                _clear_nested(conditional.questions, form_data, expanded)

    return replace(state, form_data=form_data, expanded=frozenset(expanded))


__all__ = [
    "Answer",
    "FormData",
    "FormState",
    "active_branch_questions",
    "active_conditional_questions",
    "apply_change",
    "current_questions",
    "initial_state",
    "reset_state",
    "select_member_type",
    "should_show_conditional",
    "visible_questions",
]

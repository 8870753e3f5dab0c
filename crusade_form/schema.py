"""Typed model of the crusade report form schema.

A schema file describes the numbered steps each member type walks through.
Every step holds questions, and a question may carry a conditional that
reveals further questions depending on a controlling answer.  Conditionals
come in two shapes:

``SingleConditional``
    Reveal ``questions`` when the answer to ``field`` equals ``value``.
``BranchingConditional``
    Reveal the questions of the branch whose ``value`` equals the answer
    to ``field``.

Nested questions may carry conditionals of their own, so the schema is a
finite tree walked by plain recursion.  Answers are stored in one flat
mapping keyed by question id, which is why ids must be unique within a
member type and why ``field`` references are validated at load time.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from crusade_form.errors import SchemaError, UnknownMemberTypeError

QUESTION_TYPES = frozenset({"text", "textarea", "select", "radio", "file"})
CHOICE_TYPES = frozenset({"select", "radio"})
INPUT_HINTS = frozenset({"number", "date"})
MEMBER_TYPE_FIELD = "memberType"
FIRST_QUESTION_STEP = 2


@dataclass(frozen=True)
class Question:
    """A single form field."""

    id: str
    label: str
    type: str
    required: bool = False
    options: Tuple[str, ...] = ()
    description: Optional[str] = None
    has_file_upload: bool = False
    hidden: bool = False
    accept: Optional[str] = None
    input: Optional[str] = None
    conditional: Optional["Conditional"] = None


@dataclass(frozen=True)
class SingleConditional:
    """Reveal ``questions`` when ``field`` is answered with ``value``."""

    field: str
    value: str
    questions: Tuple[Question, ...] = ()


@dataclass(frozen=True)
class Branch:
    """One value-to-questions alternative of a branching conditional."""

    value: str
    questions: Tuple[Question, ...] = ()


@dataclass(frozen=True)
class BranchingConditional:
    """Reveal the branch whose ``value`` matches the answer to ``field``."""

    field: str
    branches: Tuple[Branch, ...] = ()


Conditional = Union[SingleConditional, BranchingConditional]


@dataclass(frozen=True)
class StepConfig:
    """Questions shown on one numbered step."""

    step: int
    questions: Tuple[Question, ...] = ()


@dataclass(frozen=True)
class MemberTypeOption:
    """A selectable member type and the steps it walks through."""

    value: str
    label: str


@dataclass(frozen=True)
class FormDefinition:
    """A loaded form: member types, their steps and page settings."""

    key: str
    label: str
    member_types: Tuple[MemberTypeOption, ...]
    configs: Mapping[str, Tuple[StepConfig, ...]]
    page: Mapping[str, Any] = field(default_factory=dict)

    def steps_for(self, member_type: Optional[str]) -> Tuple[StepConfig, ...]:
        """Return the step list of ``member_type``."""

        if member_type not in self.configs:
            raise UnknownMemberTypeError(f"Unknown member type: {member_type!r}")
        return self.configs[member_type]

    def member_type_label(self, member_type: Optional[str]) -> str:
        for option in self.member_types:
            if option.value == member_type:
                return option.label
        return ""

    def question_index(self, member_type: Optional[str]) -> Dict[str, Question]:
        """Return every question of ``member_type`` keyed by id."""

        index: Dict[str, Question] = {}
        for step_config in self.steps_for(member_type):
            for question in iter_questions(step_config.questions):
                index[question.id] = question
        return index


def conditional_children(conditional: Optional[Conditional]) -> Tuple[Question, ...]:
    """Return all questions a conditional can reveal, across every branch."""

    if conditional is None:
        return ()
    if isinstance(conditional, BranchingConditional):
        children: List[Question] = []
        for branch in conditional.branches:
            children.extend(branch.questions)
        return tuple(children)
    return conditional.questions


def iter_questions(questions: Sequence[Question]) -> Iterator[Question]:
    """Yield ``questions`` and all of their conditional descendants depth-first."""

    for question in questions:
        yield question
        yield from iter_questions(conditional_children(question.conditional))


def _ensure_mapping(value: Any) -> Dict[str, Any]:
    """Return ``value`` if it is a mapping, otherwise an empty dict."""

    return dict(value) if isinstance(value, Mapping) else {}


def _ensure_list(value: Any) -> List[Any]:
    """Return ``value`` if it is a list, otherwise an empty list."""

    return list(value) if isinstance(value, list) else []


def _clean_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if value is None:
        return ""
    return str(value).strip()


def parse_conditional(payload: Any, path: str) -> Conditional:
    """Build a conditional from its JSON representation."""

    if not isinstance(payload, Mapping):
        raise SchemaError(f"{path}: conditional must be an object.")

    field_name = _clean_text(payload.get("field"))
    if not field_name:
        raise SchemaError(f"{path}: conditional is missing 'field'.")

    if "branches" in payload:
        branches: List[Branch] = []
        for index, raw_branch in enumerate(_ensure_list(payload.get("branches"))):
            branch = _ensure_mapping(raw_branch)
            branch_path = f"{path}.branches[{index}]"
            if "value" not in branch:
                raise SchemaError(f"{branch_path}: branch is missing 'value'.")
            branches.append(
                Branch(
                    value=_clean_text(branch.get("value")),
                    questions=parse_questions(branch.get("questions"), branch_path),
                )
            )
        if not branches:
            raise SchemaError(f"{path}: branching conditional has no branches.")
        return BranchingConditional(field=field_name, branches=tuple(branches))

    if "value" not in payload:
        raise SchemaError(f"{path}: conditional is missing 'value'.")
    return SingleConditional(
        field=field_name,
        value=_clean_text(payload.get("value")),
        questions=parse_questions(payload.get("questions"), path),
    )


def parse_question(payload: Any, path: str) -> Question:
    """Build a :class:`Question` from its JSON representation."""

    if not isinstance(payload, Mapping):
        raise SchemaError(f"{path}: question must be an object.")

    question_id = _clean_text(payload.get("id"))
    if not question_id:
        raise SchemaError(f"{path}: question is missing 'id'.")
    path = f"{path}.{question_id}"

    question_type = _clean_text(payload.get("type")) or "text"
    if question_type not in QUESTION_TYPES:
        raise SchemaError(f"{path}: unsupported question type {question_type!r}.")

    options = tuple(
        _clean_text(option) for option in _ensure_list(payload.get("options")) if _clean_text(option)
    )
    if question_type in CHOICE_TYPES and not options:
        raise SchemaError(f"{path}: {question_type} questions need options.")

    input_hint = _clean_text(payload.get("input")) or None
    if input_hint is not None and input_hint not in INPUT_HINTS:
        raise SchemaError(f"{path}: unsupported input hint {input_hint!r}.")

    conditional = None
    if payload.get("conditional") is not None:
        conditional = parse_conditional(payload["conditional"], f"{path}.conditional")

    return Question(
        id=question_id,
        label=_clean_text(payload.get("label")) or question_id,
        type=question_type,
        required=bool(payload.get("required")),
        options=options,
        description=_clean_text(payload.get("description")) or None,
        has_file_upload=bool(payload.get("has_file_upload")),
        hidden=bool(payload.get("hidden")),
        accept=_clean_text(payload.get("accept")) or None,
        input=input_hint,
        conditional=conditional,
    )


def parse_questions(payload: Any, path: str) -> Tuple[Question, ...]:
    return tuple(
        parse_question(item, f"{path}[{index}]")
        for index, item in enumerate(_ensure_list(payload))
    )


def _validate_member_steps(member_type: str, steps: Sequence[StepConfig]) -> None:
    """Check step numbering, id uniqueness and ``field`` references."""

    if not steps:
        raise SchemaError(f"{member_type}: at least one question step is required.")

    numbers = [step_config.step for step_config in steps]
    expected = list(range(FIRST_QUESTION_STEP, FIRST_QUESTION_STEP + len(steps)))
    if numbers != expected:
        raise SchemaError(
            f"{member_type}: steps must be numbered consecutively from "
            f"{FIRST_QUESTION_STEP}, got {numbers}."
        )

    seen: Dict[str, int] = {}
    for step_config in steps:
        for question in iter_questions(step_config.questions):
            if question.id == MEMBER_TYPE_FIELD:
                raise SchemaError(f"{member_type}: question id {MEMBER_TYPE_FIELD!r} is reserved.")
            if question.id in seen:
                raise SchemaError(
                    f"{member_type}: duplicate question id {question.id!r} "
                    f"(steps {seen[question.id]} and {step_config.step})."
                )
            seen[question.id] = step_config.step

    for step_config in steps:
        for question in iter_questions(step_config.questions):
            conditional = question.conditional
            if conditional is not None and conditional.field not in seen:
                raise SchemaError(
                    f"{member_type}: conditional on {question.id!r} references "
                    f"unknown field {conditional.field!r}."
                )


def parse_form(form_key: str, payload: Mapping[str, Any]) -> FormDefinition:
    """Convert a raw schema payload into a validated :class:`FormDefinition`."""

    raw_steps = _ensure_mapping(payload.get("steps"))
    steps: Dict[str, StepConfig] = {}
    for step_name, raw_step in raw_steps.items():
        step_payload = _ensure_mapping(raw_step)
        try:
            number = int(step_payload.get("step"))
        except (TypeError, ValueError) as exc:
            raise SchemaError(f"steps.{step_name}: 'step' must be an integer.") from exc
        steps[str(step_name)] = StepConfig(
            step=number,
            questions=parse_questions(step_payload.get("questions"), f"steps.{step_name}"),
        )

    member_types: List[MemberTypeOption] = []
    configs: Dict[str, Tuple[StepConfig, ...]] = {}
    for index, raw_option in enumerate(_ensure_list(payload.get("member_types"))):
        option = _ensure_mapping(raw_option)
        value = _clean_text(option.get("value"))
        if not value:
            raise SchemaError(f"member_types[{index}]: missing 'value'.")
        if value in configs:
            raise SchemaError(f"member_types[{index}]: duplicate member type {value!r}.")

        member_steps: List[StepConfig] = []
        for step_name in _ensure_list(option.get("steps")):
            if step_name not in steps:
                raise SchemaError(f"{value}: unknown step {step_name!r}.")
            member_steps.append(steps[step_name])
        _validate_member_steps(value, member_steps)

        member_types.append(MemberTypeOption(value=value, label=_clean_text(option.get("label")) or value))
        configs[value] = tuple(member_steps)

    if not member_types:
        raise SchemaError(f"{form_key}: no member types configured.")

    return FormDefinition(
        key=form_key,
        label=_clean_text(payload.get("label")) or form_key.replace("_", " ").title(),
        member_types=tuple(member_types),
        configs=configs,
        page=_ensure_mapping(payload.get("page")),
    )


__all__ = [
    "Branch",
    "BranchingConditional",
    "CHOICE_TYPES",
    "Conditional",
    "FormDefinition",
    "MEMBER_TYPE_FIELD",
    "MemberTypeOption",
    "Question",
    "QUESTION_TYPES",
    "SingleConditional",
    "StepConfig",
    "conditional_children",
    "iter_questions",
    "parse_conditional",
    "parse_form",
    "parse_question",
]

"""Default page copy used when the form schema does not override it."""

from __future__ import annotations

from typing import List

DEFAULT_PAGE_TITLE = "Crusade Report"
DEFAULT_INTRO_HEADING = "🙌 Welcome!"
DEFAULT_INTRO_PARAGRAPHS: tuple[str, ...] = (
    "Please tell us about your crusade so the team can celebrate and follow up.",
    "Questions may appear or disappear automatically depending on your responses.",
)
DEFAULT_MEMBER_TYPE_PROMPT = "Please select your category:"
DEFAULT_NEXT_LABEL = "Next →"
DEFAULT_BACK_LABEL = "← Back"
DEFAULT_SUBMIT_LABEL = "Submit"
DEFAULT_CONFIRM_HEADING = "Confirm submission"
DEFAULT_CONFIRM_MESSAGE = (
    "Please review your answers. Once submitted, your report goes to the admin team for review."
)
DEFAULT_CONFIRM_LABEL = "Yes, submit report"
DEFAULT_CANCEL_LABEL = "Go back and edit"
DEFAULT_SUBMIT_SUCCESS_MESSAGE = (
    "Your crusade form has been submitted successfully! It will be reviewed by the admin team."
)
DEFAULT_SUBMIT_FAILURE_MESSAGE = "Failed to submit form: {error}"
DEFAULT_SELECT_PLACEHOLDER = "Select an option"
DEFAULT_DEBUG_LABEL = "Debug: current answers"
DEFAULT_SHOW_INTRODUCTION = True
DEFAULT_SHOW_DEBUG = False


def intro_paragraphs_list() -> List[str]:
    """Return a mutable list of the default introduction paragraphs."""

    return list(DEFAULT_INTRO_PARAGRAPHS)

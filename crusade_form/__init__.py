"""Library helpers for the crusade report submission form."""

from .form_state import (  # noqa: F401
    FormState,
    apply_change,
    initial_state,
    reset_state,
    select_member_type,
)
from .form_store import load_form  # noqa: F401
from .navigation import can_proceed_to_next, handle_back, handle_next  # noqa: F401
from .submission import SubmissionResult, submit_report  # noqa: F401

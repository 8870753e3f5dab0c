"""Streamlit home screen introducing the crusade report flow."""

from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd
import streamlit as st

from crusade_form.errors import SchemaError
from crusade_form.form_store import CRUSADE_REPORT_FORM_KEY, load_form
from crusade_form.logging_setup import configure_logging
from crusade_form.schema import FormDefinition, iter_questions
from crusade_form.ui_theme import apply_app_theme, page_header

REPORT_PAGE = "pages/01_Crusade_Report.py"
OVERVIEW_COLUMNS = ("Category", "Steps", "Questions", "Required")


# ``pages/01_Crusade_Report.py`` imports ``load_form_definition`` from this
# module so both pages share one cached copy of the schema.
@st.cache_data(show_spinner=False)
def load_form_definition() -> FormDefinition:
    """Load and validate the crusade report schema from ``form_schemas``."""

    return load_form(CRUSADE_REPORT_FORM_KEY)


def _member_type_overview(form: FormDefinition) -> pd.DataFrame:
    """Return one row per member type summarising its steps and questions."""

    rows: List[Dict[str, Any]] = []
    for option in form.member_types:
        steps = form.steps_for(option.value)
        questions = [
            question
            for step_config in steps
            for question in iter_questions(step_config.questions)
            if not question.hidden
        ]
        rows.append(
            {
                "Category": option.label,
                "Steps": len(steps) + 1,
                "Questions": len(questions),
                "Required": sum(1 for question in questions if question.required),
            }
        )
    return pd.DataFrame(rows, columns=list(OVERVIEW_COLUMNS))


def _switch_to_report() -> None:
    """Navigate to the crusade report page."""

    if hasattr(st, "switch_page"):
        try:
            st.switch_page(REPORT_PAGE)
        except Exception:  # pragma: no cover - streamlit navigation fallback
            st.info("Use the navigation menu to open the Crusade Report page.")
    else:
        st.info("Use the navigation menu to open the Crusade Report page.")


def main() -> None:
    """Render the home screen."""

    configure_logging()
    apply_app_theme(page_title="Crusade reports", page_icon="🙌")
    page_header(
        "Crusade reports",
        "Share what happened at your crusade: attendance, converts, testimonies and more.",
        icon="🙌",
    )

    try:
        form = load_form_definition()
    except SchemaError as exc:
        st.error(f"The crusade report form could not be loaded: {exc}")
        return

    st.markdown(
        "Reports are reviewed by the admin team before they appear on the site. "
        "The form adapts to your category and to the kind of crusade you held."
    )
    st.dataframe(_member_type_overview(form), hide_index=True, use_container_width=True)

    if st.button("Submit a crusade report", type="primary"):
        _switch_to_report()


if __name__ == "__main__":
    main()

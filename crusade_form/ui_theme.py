"""Shared visual identity for the crusade report pages."""

from __future__ import annotations

from html import escape as html_escape
from typing import Any, Optional

import streamlit as st


_THEME_CSS = """
<style>
:root {
    --app-accent: #54037C;
    --app-accent-dark: #3D0259;
    --app-accent-soft: #F3E8FA;
    --app-surface: rgba(255, 255, 255, 0.92);
    --app-surface-strong: #FFFFFF;
    --app-shadow: 0 18px 40px rgba(15, 23, 42, 0.08);
    --app-text: #1F2933;
    --app-muted: #52606D;
}

html, body {
    font-family: "Inter", "Segoe UI", system-ui, -apple-system, sans-serif;
    color: var(--app-text);
}

[data-testid="stAppViewContainer"] {
    background: radial-gradient(circle at top right, #F6EEFB 0%, #F3EEFF 35%, #FFFFFF 75%);
}

.block-container {
    padding-top: 2.5rem;
    padding-bottom: 4rem;
    max-width: 860px;
}

.app-header {
    display: flex;
    align-items: center;
    gap: 1.5rem;
    padding: 1.75rem 2rem;
    background: var(--app-surface);
    border-radius: 1.75rem;
    border: 1px solid rgba(84, 3, 124, 0.18);
    box-shadow: var(--app-shadow);
    margin-bottom: 2rem;
}

.app-header__icon {
    font-size: 2.75rem;
    line-height: 1;
}

.app-header__title {
    margin: 0;
    font-size: 2.1rem;
    font-weight: 700;
}

.app-header__subtitle {
    margin: 0.25rem 0 0 0;
    color: var(--app-muted);
}

.stButton>button {
    border-radius: 999px !important;
    font-weight: 600 !important;
    padding: 0.6rem 1.6rem !important;
}

.stButton>button[kind="primary"] {
    background: var(--app-accent) !important;
    border: none !important;
    color: #fff !important;
}

.stButton>button[kind="primary"]:hover {
    background: var(--app-accent-dark) !important;
}

.questionnaire-intro {
    background: linear-gradient(135deg, rgba(84, 3, 124, 0.1), rgba(196, 181, 253, 0.2));
    padding: 1.75rem;
    border-radius: 1.5rem;
    border: 1px solid rgba(84, 3, 124, 0.18);
    margin-bottom: 1.5rem;
}

.questionnaire-intro h2 {
    margin: 0 0 0.75rem 0;
}

.questionnaire-intro p {
    margin-bottom: 0.75rem;
    color: var(--app-muted);
}

.step-progress {
    font-size: 0.85rem;
    font-weight: 700;
    color: var(--app-muted);
    text-transform: uppercase;
    letter-spacing: 0.08em;
    margin-bottom: 1rem;
}

.question-block {
    margin-top: 1rem;
}

.question-block--nested {
    border-left: 3px solid var(--app-accent-soft);
    padding-left: 1rem;
}

.question-block__title {
    margin: 0;
    font-size: 1.05rem;
    font-weight: 600;
    line-height: 1.4;
}

.question-block__title sup {
    color: #DC2626;
    margin-left: 0.2rem;
}

.question-block__help {
    margin: 0.25rem 0 0 0;
    color: var(--app-muted);
    font-size: 0.92rem;
}
</style>
"""


def apply_app_theme(page_title: str, page_icon: Optional[str] = None) -> None:
    """Set up consistent page configuration and inject the shared CSS theme."""

    st.set_page_config(
        page_title=page_title,
        page_icon=page_icon,
        layout="centered",
        initial_sidebar_state="collapsed",
    )
    st.markdown(_THEME_CSS, unsafe_allow_html=True)


def page_header(
    title: str,
    subtitle: Optional[str] = None,
    icon: Optional[str] = None,
    *,
    container: Optional[Any] = None,
) -> None:
    """Render a hero-style header with a title, subtitle, and optional icon."""

    icon_markup = f"<span class='app-header__icon'>{icon}</span>" if icon else ""
    subtitle_markup = (
        f"<p class='app-header__subtitle'>{html_escape(subtitle)}</p>" if subtitle else ""
    )
    target = container.markdown if container is not None else st.markdown
    target(
        f"""
        <div class="app-header">
            {icon_markup}
            <div>
                <h1 class="app-header__title">{html_escape(title)}</h1>
                {subtitle_markup}
            </div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def question_block_markup(
    label: str,
    *,
    required: bool = False,
    description: Optional[str] = None,
    depth: int = 0,
) -> str:
    """Return the heading markup shown above a question widget."""

    classes = "question-block question-block--nested" if depth else "question-block"
    indent = f" style='margin-left: {depth * 1.25}rem'" if depth else ""
    required_marker = "<sup>*</sup>" if required else ""
    help_markup = (
        f"<p class='question-block__help'>{html_escape(description)}</p>" if description else ""
    )
    return (
        f"<div class='{classes}'{indent}>"
        f"<p class='question-block__title'>{html_escape(label)}{required_marker}</p>"
        f"{help_markup}</div>"
    )


def step_progress_markup(current_step: int, total_steps: int) -> str:
    return f"<p class='step-progress'>Step {current_step} of {total_steps}</p>"

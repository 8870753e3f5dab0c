"""Deployment entrypoint: configures logging and renders the crusade home page."""

from importlib import import_module

import streamlit as st

from crusade_form.logging_setup import configure_logging


def main() -> None:
    configure_logging()
    try:
        home = import_module("Home")
    except ModuleNotFoundError:
        st.error("The crusade report home page is missing from this deployment.")
        return

    render = getattr(home, "main", None)
    if render is None:
        st.error("The crusade report home page has no main() function.")
        return
    render()


if __name__ == "__main__":
    main()

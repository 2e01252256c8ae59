"""Top-level navigation between the Exploration and CRM views."""

from typing import MutableMapping

import streamlit as st

from .pipeline import unmount_pipeline


EXPLORATION_VIEW = "Exploration"
CRM_VIEW = "CRM"
VIEWS = [EXPLORATION_VIEW, CRM_VIEW]
CURRENT_VIEW_KEY = "current_view"


def switch_view(session: MutableMapping, view: str) -> str:
    """
    Make `view` the active view, closing the CRM subscription when leaving it.

    Args:
        session: Session state mapping
        view: One of VIEWS

    Returns:
        The active view
    """
    if view not in VIEWS:
        raise ValueError(f"Unknown view: {view}")
    previous = session.get(CURRENT_VIEW_KEY, EXPLORATION_VIEW)
    if previous == CRM_VIEW and view != CRM_VIEW:
        unmount_pipeline(session)
    session[CURRENT_VIEW_KEY] = view
    return view


def render_navbar() -> str:
    """Render the app title and view switcher. Returns the active view."""
    title_col, nav_col = st.columns([3, 2])
    with title_col:
        st.title("📍 Maps Prospector AI")
    with nav_col:
        current = st.session_state.get(CURRENT_VIEW_KEY, EXPLORATION_VIEW)
        choice = st.radio(
            "View",
            options=VIEWS,
            index=VIEWS.index(current),
            horizontal=True,
            key="view_switch",
            label_visibility="collapsed"
        )
    return switch_view(st.session_state, choice)

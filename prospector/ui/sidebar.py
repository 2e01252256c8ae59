"""Sidebar component for system configuration."""

import streamlit as st

from ..config import Settings, DEFAULT_GEMINI_MODEL
from ..services.prospect_store import ProspectStore


MODEL_OPTIONS = [DEFAULT_GEMINI_MODEL, "gemini-2.5-pro", "gemini-2.0-flash"]


def render_sidebar(settings: Settings, store: ProspectStore) -> dict:
    """
    Render the sidebar with API configuration options.

    Args:
        settings: Settings loaded from secrets / environment
        store: Active prospect store, shown as the CRM backend

    Returns:
        dict with configuration values
    """
    with st.sidebar:
        st.header("System Config")

        st.subheader("API Keys")

        default_gemini = settings.gemini_api_key or st.session_state.get("gemini_api_key", "")

        gemini_key = st.text_input(
            "Gemini API Key",
            type="password",
            value=default_gemini,
            key="gemini_key_input",
            help="Required for business search and scoring (auto-loaded from .env if present)"
        )

        if gemini_key:
            st.session_state["gemini_api_key"] = gemini_key

        st.divider()

        st.subheader("Model Selection")

        options = MODEL_OPTIONS if settings.gemini_model in MODEL_OPTIONS else [settings.gemini_model] + MODEL_OPTIONS
        gemini_model = st.selectbox(
            "Gemini Model",
            options=options,
            index=options.index(settings.gemini_model),
            key="gemini_model_select",
            help="Used for both the grounded search and the analysis"
        )
        st.session_state["gemini_model"] = gemini_model

        st.divider()

        # Mode toggle
        use_mock = st.toggle(
            "Use Mock Data",
            value=st.session_state.get("use_mock", not gemini_key),
            key="use_mock_toggle",
            help="Enable for UI testing without API calls"
        )
        st.session_state["use_mock"] = use_mock

        if use_mock:
            st.info("Mock mode: Using sample data for testing")
        elif not gemini_key:
            st.warning("Enter a Gemini API key to use live mode")

        st.divider()

        st.subheader("CRM Storage")
        if store.is_live:
            st.success(f"Supabase project: {settings.project_id}")
        else:
            st.info("Local storage (no live updates)")

        return {
            "gemini_api_key": gemini_key,
            "gemini_model": gemini_model,
            "use_mock": use_mock
        }

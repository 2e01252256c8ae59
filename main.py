"""Maps Prospector - Find local businesses, score them with Gemini, track them in a CRM."""

import streamlit as st

from prospector.config import Settings, configure_logging
from prospector.agents import (
    MockScoutAgent,
    MockAnalystAgent,
    ScoutAgent,
    AnalystAgent,
)
from prospector.services import GeminiService, ProspectStore, create_prospect_store
from prospector.ui import render_sidebar, render_exploration, render_pipeline, render_navbar
from prospector.ui.navigation import CRM_VIEW, CURRENT_VIEW_KEY, EXPLORATION_VIEW


# Page configuration
st.set_page_config(
    page_title="Maps Prospector AI",
    page_icon="📍",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS for better styling
st.markdown("""
<style>
    .main .block-container {
        padding-top: 2rem;
    }
    div[data-testid="stMetric"] {
        border: 1px solid #2D3142;
        border-radius: 8px;
        padding: 8px 12px;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def load_settings() -> Settings:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return settings


@st.cache_resource
def get_store() -> ProspectStore:
    """One store per server process, shared by every session."""
    return create_prospect_store(load_settings())


def initialize_session_state():
    """Initialize session state variables."""
    defaults = {
        CURRENT_VIEW_KEY: EXPLORATION_VIEW,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def build_agents(config: dict):
    """Build the scout and analyst for the sidebar's current mode."""
    if config["use_mock"]:
        return (
            MockScoutAgent(),
            MockAnalystAgent(),
        )

    gemini = GeminiService(
        api_key=config["gemini_api_key"],
        model=config["gemini_model"]
    )
    return (
        ScoutAgent(gemini),
        AnalystAgent(gemini),
    )


def main():
    """Main application entry point."""
    initialize_session_state()

    settings = load_settings()
    store = get_store()

    config = render_sidebar(settings, store)
    view = render_navbar()

    if view == CRM_VIEW:
        render_pipeline(store)
    else:
        scout, analyst = build_agents(config)
        render_exploration(scout, analyst, store)


if __name__ == "__main__":
    main()

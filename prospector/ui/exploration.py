"""Exploration tab - Search the map, analyze a business, save it to the CRM."""

import logging
from typing import Optional

import pandas as pd
import streamlit as st

from ..models.exploration_state import ExplorationState
from ..models.prospects import AIInsight, Prospect, now_ms
from ..services.prospect_store import ProspectStore

logger = logging.getLogger(__name__)


SEARCH_ERROR_MESSAGE = "Error searching. Check API Key."
SAVED_MESSAGE = "Prospect saved to CRM!"
AGENT_FAILURE_INSIGHT = AIInsight(
    score=0,
    analysis_summary="AI could not complete analysis.",
    suggested_offer="Manual review required."
)


def get_score_color(score: int) -> str:
    """Return color indicator for a score band."""
    if score > 70:
        return "🟢"
    elif score > 40:
        return "🟡"
    else:
        return "🔴"


def get_exploration_state() -> ExplorationState:
    """Fetch (or create) this session's exploration state."""
    if "exploration" not in st.session_state:
        st.session_state["exploration"] = ExplorationState()
    return st.session_state["exploration"]


# Handlers: plain functions over ExplorationState so they run without Streamlit

def handle_search(state: ExplorationState, scout) -> None:
    """Run a search and replace the result set. Searching always ends."""
    token = state.begin_search()
    try:
        results = scout.execute(query=state.query, location_name=state.location_name)
        if not state.complete_search(token, results):
            logger.info("Discarded stale search response (token %d)", token)
    except Exception as e:
        logger.error("Search failed: %s", e)
        state.show_error(SEARCH_ERROR_MESSAGE)
    finally:
        state.end_search(token)


def handle_select(state: ExplorationState, result_id: str) -> None:
    """Open the detail panel for a result."""
    state.select(result_id)


def handle_close_detail(state: ExplorationState) -> None:
    state.clear_selection()


def handle_analyze(state: ExplorationState, analyst) -> None:
    """Analyze the selected business. Analyzing always ends."""
    if state.selected is None:
        return
    token = state.begin_analysis()
    try:
        try:
            insight = analyst.execute(business=state.selected.business_data)
        except Exception as e:
            logger.error("Analysis failed: %s", e)
            insight = AGENT_FAILURE_INSIGHT.model_copy()
        if not state.complete_analysis(token, insight):
            logger.info("Discarded stale analysis response (token %d)", token)
    finally:
        state.end_analysis(token)


def handle_save(
    state: ExplorationState,
    store: ProspectStore,
    now: Optional[int] = None
) -> Optional[Prospect]:
    """
    Save the selected business and its insight as a New prospect.

    Args:
        state: Exploration state with a selection and an insight
        store: Prospect store
        now: Timestamp override in epoch ms

    Returns:
        The saved prospect, or None if there was nothing to save
    """
    if state.selected is None or state.insight is None:
        return None

    prospect = Prospect.from_search_result(
        state.selected,
        state.insight,
        now=now if now is not None else now_ms()
    )
    store.save_prospect(prospect)
    state.flash(SAVED_MESSAGE)
    return prospect


# Rendering

@st.fragment(run_every=1)
def render_message():
    """Show the current message; transient ones disappear once they expire."""
    message = get_exploration_state().active_message()
    if not message:
        return
    if message == SEARCH_ERROR_MESSAGE:
        st.error(message)
    else:
        st.success(message)


def render_exploration(scout, analyst, store: ProspectStore):
    """
    Render the Exploration tab.

    Args:
        scout: Agent used for business search
        analyst: Agent used for prospect scoring
        store: Prospect store used on save
    """
    state = get_exploration_state()

    render_search_bar(state, scout)

    render_message()

    col1, col2 = st.columns([2, 1])

    with col1:
        render_results_map(state)

    with col2:
        if state.selected is None:
            st.info("Pick a business from the results to see details.")
        else:
            render_detail_panel(state, analyst, store)


def render_search_bar(state: ExplorationState, scout):
    """Render the business type / city search form."""
    with st.form("search_form", border=False):
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            query = st.text_input(
                "Business Type",
                value=state.query,
                placeholder="Business Type (e.g. Dentist)",
                key="query_input"
            )
        with col2:
            location_name = st.text_input(
                "City",
                value=state.location_name,
                placeholder="City",
                key="location_input"
            )
        with col3:
            st.write("")
            submitted = st.form_submit_button(
                "Searching..." if state.searching else "Search Maps",
                type="primary",
                disabled=state.searching,
                use_container_width=True
            )

    if submitted:
        state.query = query
        state.location_name = location_name
        with st.spinner(f"Searching for {query} in {location_name}..."):
            handle_search(state, scout)
        st.rerun()


def render_results_map(state: ExplorationState):
    """Render result markers and the result picker."""
    if state.results:
        points = pd.DataFrame([
            {"lat": r.location.lat, "lon": r.location.lng}
            for r in state.results
        ])
    else:
        points = pd.DataFrame([{"lat": state.map_center.lat, "lon": state.map_center.lng}])

    st.map(points, zoom=13, use_container_width=True)

    if not state.results:
        st.caption("No results yet. Search for a business type in a city.")
        return

    st.caption(f"{len(state.results)} businesses found")
    labels = {r.id: f"{r.business_data.name} — {r.business_data.address}" for r in state.results}
    current = state.selected.id if state.selected else None
    choice = st.radio(
        "Results",
        options=list(labels.keys()),
        format_func=lambda result_id: labels[result_id],
        index=list(labels.keys()).index(current) if current in labels else None,
        key=f"result_picker_{state.search_seq}",
        label_visibility="collapsed"
    )
    if choice is not None and choice != current:
        handle_select(state, choice)
        st.rerun()


def render_detail_panel(state: ExplorationState, analyst, store: ProspectStore):
    """Render business details, AI analysis and the save action."""
    business = state.selected.business_data

    header_col, close_col = st.columns([5, 1])
    with header_col:
        st.subheader(business.name)
        st.caption(business.address)
    with close_col:
        if st.button("✕", key="close_detail", help="Close"):
            handle_close_detail(state)
            st.session_state.pop(f"result_picker_{state.search_seq}", None)
            st.rerun()

    rating = business.rating or "N/A"
    st.write(f"**Rating:** ★ {rating} ({business.user_rating_count or 0})")
    if business.website:
        st.write(f"**Website:** [Visit Link]({business.website})")
    else:
        st.write("**Website:** :red[Missing]")
    st.write(f"**Phone:** {business.phone or 'N/A'}")

    st.divider()

    insight = state.insight
    if insight is None:
        st.caption("Use Gemini to analyze if this business is a good prospect for your services.")
        if st.button(
            "Processing..." if state.analyzing else "⚡ Analyze with Gemini",
            type="primary",
            disabled=state.analyzing,
            use_container_width=True,
            key="analyze_button"
        ):
            with st.spinner("Analyzing prospect..."):
                handle_analyze(state, analyst)
            st.rerun()
        return

    st.metric("Prospect Score", f"{get_score_color(insight.score)} {insight.score}/100")
    st.markdown("**Analysis**")
    st.write(insight.analysis_summary)
    st.markdown("**Strategy**")
    st.info(f"\"{insight.suggested_offer}\"")

    if st.button("Save Prospect", type="primary", use_container_width=True, key="save_button"):
        handle_save(state, store)
        st.rerun()


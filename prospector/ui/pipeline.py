"""CRM tab - Live prospect pipeline with status tracking."""

import logging
import threading
from datetime import datetime
from typing import List, MutableMapping, Optional

import pandas as pd
import streamlit as st

from ..models.prospects import Prospect, UserStatus
from ..services.prospect_store import ProspectStore

logger = logging.getLogger(__name__)


FEED_KEY = "pipeline_feed"
UNSUBSCRIBE_KEY = "pipeline_unsubscribe"
PENDING_DELETE_KEY = "pipeline_pending_delete"
LIVE_REFRESH_SECONDS = 2


class ProspectFeed:
    """Latest prospect snapshot pushed by a store subscription.

    Written from the watcher thread, read from the script thread.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._prospects: List[Prospect] = []
        self.loaded = False

    def update(self, prospects: List[Prospect]) -> None:
        """Replace the held collection with a full snapshot."""
        with self._lock:
            self._prospects = list(prospects)
            self.loaded = True

    def snapshot(self) -> List[Prospect]:
        with self._lock:
            return list(self._prospects)


def score_band(score: int) -> str:
    """Display band for a score: high, medium or low."""
    if score > 75:
        return "high"
    elif score > 40:
        return "medium"
    return "low"


BAND_ICONS = {"high": "🟢", "medium": "🟡", "low": "🔴"}


# Subscription lifecycle

def mount_pipeline(session: MutableMapping, store: ProspectStore) -> ProspectFeed:
    """Subscribe to the store once per mount and return the feed."""
    feed = session.get(FEED_KEY)
    if feed is not None and UNSUBSCRIBE_KEY in session:
        return feed

    feed = ProspectFeed()
    session[FEED_KEY] = feed
    session[UNSUBSCRIBE_KEY] = store.subscribe_to_prospects(feed.update)
    return feed


def unmount_pipeline(session: MutableMapping) -> None:
    """Close the subscription opened by mount_pipeline, if any."""
    unsubscribe = session.pop(UNSUBSCRIBE_KEY, None)
    session.pop(FEED_KEY, None)
    session.pop(PENDING_DELETE_KEY, None)
    if unsubscribe is not None:
        try:
            unsubscribe()
        except Exception as e:
            logger.error("Error closing prospect subscription: %s", e)


# Mutations

def handle_status_change(store: ProspectStore, prospect_id: str, status: UserStatus) -> None:
    store.update_prospect_status(prospect_id, UserStatus(status))


def request_delete(session: MutableMapping, prospect_id: str) -> None:
    """First step of deletion: remember which prospect awaits confirmation."""
    session[PENDING_DELETE_KEY] = prospect_id


def cancel_delete(session: MutableMapping) -> None:
    session.pop(PENDING_DELETE_KEY, None)


def confirm_delete(session: MutableMapping, store: ProspectStore) -> Optional[str]:
    """Second step of deletion. Returns the deleted id, or None if none was pending."""
    prospect_id = session.pop(PENDING_DELETE_KEY, None)
    if prospect_id is None:
        return None
    store.delete_prospect(prospect_id)
    return prospect_id


# View helpers

def sort_for_display(prospects: List[Prospect]) -> List[Prospect]:
    """Newest first, whatever order the store returned."""
    return sorted(prospects, key=lambda p: p.timestamp, reverse=True)


def filter_prospects(prospects: List[Prospect], status_filter: str) -> List[Prospect]:
    if status_filter == "All":
        return prospects
    return [p for p in prospects if p.user_status.value == status_filter]


def build_pipeline_frame(prospects: List[Prospect]) -> pd.DataFrame:
    """Tabular view of prospects for the CSV export."""
    columns = [
        "Score", "Business", "Address", "Website", "Phone",
        "Insight", "Offer", "Status", "Added",
    ]
    rows = []
    for p in prospects:
        insight = p.ai_insight
        rows.append({
            "Score": p.score,
            "Business": p.business_data.name,
            "Address": p.business_data.address,
            "Website": p.business_data.website,
            "Phone": p.business_data.phone,
            "Insight": insight.analysis_summary if insight else "",
            "Offer": insight.suggested_offer if insight else "",
            "Status": p.user_status.value,
            "Added": datetime.fromtimestamp(p.timestamp / 1000).strftime("%Y-%m-%d"),
        })
    return pd.DataFrame(rows, columns=columns)


def pipeline_metrics(prospects: List[Prospect]) -> dict:
    """Totals shown above the table."""
    counts = {status.value: 0 for status in UserStatus}
    for p in prospects:
        counts[p.user_status.value] += 1
    scores = [p.score for p in prospects if p.ai_insight]
    return {
        "total": len(prospects),
        "by_status": counts,
        "avg_score": sum(scores) / len(scores) if scores else 0,
    }


# Rendering

def render_pipeline(store: ProspectStore):
    """
    Render the CRM tab.

    Args:
        store: Prospect store to subscribe to and mutate
    """
    feed = mount_pipeline(st.session_state, store)

    if not feed.loaded:
        st.info("Connecting to CRM Database...")
        return

    if store.is_live:
        _render_live_body(store)
    else:
        st.caption("Local mode: changes appear after a refresh.")
        if st.button("🔄 Refresh", key="pipeline_refresh"):
            unmount_pipeline(st.session_state)
            st.rerun()
        render_pipeline_body(store, feed)


@st.fragment(run_every=LIVE_REFRESH_SECONDS)
def _render_live_body(store: ProspectStore):
    feed = st.session_state.get(FEED_KEY)
    if feed is not None:
        render_pipeline_body(store, feed)


def render_pipeline_body(store: ProspectStore, feed: ProspectFeed):
    """Render metrics, filters, table and row actions from the feed snapshot."""
    prospects = sort_for_display(feed.snapshot())
    metrics = pipeline_metrics(prospects)

    st.header(f"Prospect Pipeline ({metrics['total']} leads)")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Total Leads", metrics["total"])
    with col2:
        st.metric("Contacted", metrics["by_status"][UserStatus.CONTACTED.value])
    with col3:
        st.metric("Signed", metrics["by_status"][UserStatus.SIGNED.value])
    with col4:
        st.metric("Avg Score", f"{metrics['avg_score']:.0f}")

    if not prospects:
        st.info("No prospects saved yet. Go to Exploration mode to find new clients.")
        return

    filter_col, export_col = st.columns([3, 1])
    with filter_col:
        status_filter = st.selectbox(
            "Status",
            options=["All"] + [s.value for s in UserStatus],
            key="pipeline_status_filter"
        )
    with export_col:
        st.write("")
        st.download_button(
            label="📥 Download CSV",
            data=build_pipeline_frame(prospects).to_csv(index=False),
            file_name="maps_prospector_pipeline.csv",
            mime="text/csv",
            type="secondary"
        )

    visible = filter_prospects(prospects, status_filter)
    if not visible:
        st.info("No prospects match the current filter.")
        return

    st.divider()
    for prospect in visible:
        render_prospect_row(store, prospect)


def render_prospect_row(store: ProspectStore, prospect: Prospect):
    """Render one prospect with status control and two-step delete."""
    business = prospect.business_data
    band = score_band(prospect.score)

    score_col, business_col, strategy_col, contact_col, status_col, action_col = st.columns(
        [1, 3, 4, 2, 2, 1]
    )

    with score_col:
        st.markdown(f"### {BAND_ICONS[band]} {prospect.score}")

    with business_col:
        st.markdown(f"**{business.name}**")
        st.caption(business.address)
        added = datetime.fromtimestamp(prospect.timestamp / 1000).strftime("%Y-%m-%d")
        st.caption(f"Added: {added}")

    with strategy_col:
        if prospect.ai_insight:
            st.write(f"**Insight:** {prospect.ai_insight.analysis_summary}")
            st.caption(f"\"{prospect.ai_insight.suggested_offer}\"")

    with contact_col:
        if business.website:
            st.markdown(f"[Website ↗]({business.website})")
        else:
            st.caption("No Website")
        st.caption(business.phone or "No Phone")

    with status_col:
        statuses = list(UserStatus)
        widget_key = f"status_{prospect.id}"
        st.selectbox(
            "Status",
            options=statuses,
            index=statuses.index(prospect.user_status),
            format_func=lambda s: s.value,
            key=widget_key,
            on_change=lambda: handle_status_change(store, prospect.id, st.session_state[widget_key]),
            label_visibility="collapsed"
        )

    with action_col:
        if st.session_state.get(PENDING_DELETE_KEY) == prospect.id:
            if st.button("Confirm", key=f"confirm_delete_{prospect.id}", type="primary"):
                confirm_delete(st.session_state, store)
                st.rerun()
            if st.button("Cancel", key=f"cancel_delete_{prospect.id}"):
                cancel_delete(st.session_state)
                st.rerun()
        elif st.button("🗑", key=f"delete_{prospect.id}", help="Delete Prospect"):
            request_delete(st.session_state, prospect.id)
            st.rerun()

    st.divider()

"""Exploration view state: search results, selection, insight and toast."""

import time
from typing import Optional, List
from pydantic import BaseModel, Field

from .prospects import SearchResult, AIInsight, Location


DEFAULT_QUERY = "Marketing Agencies"
DEFAULT_LOCATION_NAME = "New York, NY"
DEFAULT_MAP_CENTER = Location(lat=40.7128, lng=-74.0060)
TOAST_SECONDS = 3.0


class ExplorationState(BaseModel):
    """
    State machine behind the Exploration view.

    idle -> searching -> idle (results populated)
    selected -> analyzing -> insight ready -> (save) -> idle with toast

    Search and analysis requests carry a monotonic token. A response whose
    token is no longer current belongs to a superseded request and is dropped.
    """

    query: str = DEFAULT_QUERY
    location_name: str = DEFAULT_LOCATION_NAME
    results: List[SearchResult] = Field(default_factory=list)
    selected: Optional[SearchResult] = None
    insight: Optional[AIInsight] = None
    map_center: Location = Field(default_factory=lambda: DEFAULT_MAP_CENTER.model_copy())

    searching: bool = False
    analyzing: bool = False

    message: str = ""
    message_expires_at: Optional[float] = None

    search_seq: int = 0
    analysis_seq: int = 0

    # Search

    def begin_search(self) -> int:
        """Clear selection and insight and enter searching. Returns the request token."""
        self.selected = None
        self.insight = None
        self._drop_analysis()
        self.searching = True
        self.search_seq += 1
        return self.search_seq

    def complete_search(self, token: int, results: List[SearchResult]) -> bool:
        """Replace the result set unless the response is stale."""
        if token != self.search_seq:
            return False
        self.results = list(results)
        if self.results:
            self.map_center = self.results[0].location.model_copy()
        return True

    def end_search(self, token: int):
        if token == self.search_seq:
            self.searching = False

    # Selection

    def select(self, result_id: str) -> Optional[SearchResult]:
        """Select a result by id, dropping any insight from a previous selection."""
        match = next((r for r in self.results if r.id == result_id), None)
        if match is not None:
            self.selected = match
            self.insight = None
            self._drop_analysis()
        return match

    def clear_selection(self):
        self.selected = None
        self.insight = None
        self._drop_analysis()

    def _drop_analysis(self):
        # An in-flight analysis belongs to the previous selection
        self.analysis_seq += 1
        self.analyzing = False

    # Analysis

    def begin_analysis(self) -> int:
        self.analyzing = True
        self.analysis_seq += 1
        return self.analysis_seq

    def complete_analysis(self, token: int, insight: AIInsight) -> bool:
        if token != self.analysis_seq:
            return False
        self.insight = insight
        return True

    def end_analysis(self, token: int):
        if token == self.analysis_seq:
            self.analyzing = False

    # Toast

    def flash(self, message: str, seconds: float = TOAST_SECONDS, now: Optional[float] = None):
        """Show a transient message that clears itself after `seconds`."""
        now = time.time() if now is None else now
        self.message = message
        self.message_expires_at = now + seconds

    def show_error(self, message: str):
        """Show an inline message that stays until replaced."""
        self.message = message
        self.message_expires_at = None

    def active_message(self, now: Optional[float] = None) -> str:
        """Return the current message, or "" once a transient one has expired."""
        if not self.message:
            return ""
        now = time.time() if now is None else now
        if self.message_expires_at is not None and now >= self.message_expires_at:
            self.message = ""
            self.message_expires_at = None
            return ""
        return self.message

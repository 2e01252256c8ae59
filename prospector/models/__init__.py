"""Data models for prospects and exploration state."""

from .prospects import (
    UserStatus,
    BusinessData,
    Location,
    SearchResult,
    AIInsight,
    Prospect,
    now_ms,
)
from .exploration_state import ExplorationState

__all__ = [
    "UserStatus",
    "BusinessData",
    "Location",
    "SearchResult",
    "AIInsight",
    "Prospect",
    "now_ms",
    "ExplorationState",
]

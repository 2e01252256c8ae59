"""External service integrations."""

from .gemini_service import (
    GeminiService,
    GeminiServiceError,
    FALLBACK_INSIGHT,
    clean_json_string,
)
from .prospect_store import (
    ProspectStore,
    LocalProspectStore,
    SupabaseProspectStore,
    create_prospect_store,
    PROSPECTS_TABLE_SQL,
)
from .realtime import ProspectWatcher

__all__ = [
    "GeminiService",
    "GeminiServiceError",
    "FALLBACK_INSIGHT",
    "clean_json_string",
    "ProspectStore",
    "LocalProspectStore",
    "SupabaseProspectStore",
    "create_prospect_store",
    "PROSPECTS_TABLE_SQL",
    "ProspectWatcher",
]

"""Prospect persistence: Supabase backend with a local JSON fallback."""

import json
import logging
import tempfile
import threading
import weakref
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError
from supabase import Client, create_client

from ..config import Settings
from ..models.prospects import Prospect, UserStatus, now_ms
from .realtime import ProspectWatcher

logger = logging.getLogger(__name__)


TABLE_NAME = "prospects"
STORAGE_KEY = "maps_prospector_db"

# Run once in the Supabase SQL editor before enabling the backend.
PROSPECTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS prospects (
    id              TEXT PRIMARY KEY,
    business_data   JSONB NOT NULL,
    location        JSONB NOT NULL,
    ai_insight      JSONB,
    user_status     TEXT NOT NULL DEFAULT 'New',
    timestamp       BIGINT NOT NULL
);
CREATE INDEX IF NOT EXISTS prospects_timestamp_idx ON prospects (timestamp DESC);
ALTER PUBLICATION supabase_realtime ADD TABLE prospects;
"""

ProspectsCallback = Callable[[List[Prospect]], None]
Unsubscribe = Callable[[], None]


def _noop_unsubscribe() -> None:
    return None


def _callback_ref(callback: ProspectsCallback) -> Callable[[], Optional[ProspectsCallback]]:
    """
    Reference a subscriber callback.

    Bound methods are held weakly, so a subscriber whose owner is garbage
    collected (a closed browser session) drops out on the next change.
    Anything else is held strongly.
    """
    try:
        return weakref.WeakMethod(callback)
    except TypeError:
        return lambda: callback


class ProspectStore(ABC):
    """Storage interface shared by the live backend and the local fallback."""

    #: Whether subscribe_to_prospects pushes updates after the first snapshot
    is_live: bool = False

    @abstractmethod
    def save_prospect(self, prospect: Prospect) -> None:
        """Insert or replace the prospect with the same id."""

    @abstractmethod
    def get_prospects(self) -> List[Prospect]:
        """Return all saved prospects."""

    @abstractmethod
    def delete_prospect(self, prospect_id: str) -> None:
        """Remove a prospect. Unknown ids are ignored."""

    @abstractmethod
    def update_prospect_status(self, prospect_id: str, status: UserStatus) -> None:
        """Change one prospect's status. Unknown ids are ignored."""

    @abstractmethod
    def subscribe_to_prospects(self, callback: ProspectsCallback) -> Unsubscribe:
        """Deliver the prospect list to callback; returns an unsubscribe handle."""


class LocalProspectStore(ProspectStore):
    """
    Fallback store that keeps the whole prospect list in one JSON blob.

    Every write reads the full list, changes it and rewrites it while holding
    the store lock. Records that fail validation are skipped, and a blob that
    cannot be parsed is moved aside before anything overwrites it. Reads return
    the list in stored order, NOT sorted by timestamp, and subscriptions get a
    single snapshot with no further updates.
    """

    # Default storage locations
    PRIMARY_STORAGE_DIR = Path.home() / ".maps_prospector"
    FALLBACK_STORAGE_DIR = Path("./data")
    STORAGE_FILENAME = f"{STORAGE_KEY}.json"

    def __init__(self, storage_dir: Optional[Path] = None):
        """
        Initialize the local store.

        Args:
            storage_dir: Directory for the blob; defaults to ~/.maps_prospector
        """
        self._storage_dir = Path(storage_dir) if storage_dir else None
        self._storage_path: Optional[Path] = None
        # One instance is shared by every session
        self._lock = threading.RLock()

    @property
    def storage_path(self) -> Path:
        """Get the path to the blob, creating its directory if needed."""
        if self._storage_path is not None:
            return self._storage_path

        candidates = [self._storage_dir] if self._storage_dir else [
            self.PRIMARY_STORAGE_DIR,
            self.FALLBACK_STORAGE_DIR,
        ]
        for directory in candidates:
            try:
                directory.mkdir(parents=True, exist_ok=True)
                self._storage_path = directory / self.STORAGE_FILENAME
                return self._storage_path
            except (PermissionError, OSError):
                continue

        # Last resort: current directory
        self._storage_path = Path(self.STORAGE_FILENAME)
        return self._storage_path

    def _read(self) -> List[Prospect]:
        path = self.storage_path
        if not path.exists():
            return []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self._set_aside(path, e)
            return []
        if not isinstance(data, list):
            self._set_aside(path, "top level is not a list")
            return []

        prospects = []
        for item in data:
            try:
                prospects.append(Prospect.model_validate(item))
            except ValidationError as e:
                logger.warning("[Store] Skipping invalid record in %s: %s", path, e)
        return prospects

    @staticmethod
    def _set_aside(path: Path, reason: Any) -> None:
        """Move an unreadable blob out of the way so the next write cannot destroy it."""
        backup = path.with_name(f"{path.name}.corrupt-{now_ms()}")
        path.replace(backup)
        logger.warning("[Store] Could not read %s (%s). Moved it to %s.", path, reason, backup)

    def _write(self, prospects: List[Prospect]) -> None:
        path = self.storage_path

        # Write to a unique temp file first, then rename (atomic operation)
        with tempfile.NamedTemporaryFile(
            'w',
            encoding='utf-8',
            dir=path.parent,
            prefix=f"{path.stem}-",
            suffix='.tmp',
            delete=False
        ) as f:
            json.dump([p.to_record() for p in prospects], f, indent=2)
            temp_path = Path(f.name)
        temp_path.replace(path)

    def save_prospect(self, prospect: Prospect) -> None:
        with self._lock:
            prospects = self._read()
            for index, existing in enumerate(prospects):
                if existing.id == prospect.id:
                    prospects[index] = prospect
                    break
            else:
                prospects.append(prospect)
            self._write(prospects)

    def get_prospects(self) -> List[Prospect]:
        with self._lock:
            return self._read()

    def delete_prospect(self, prospect_id: str) -> None:
        with self._lock:
            prospects = self._read()
            self._write([p for p in prospects if p.id != prospect_id])

    def update_prospect_status(self, prospect_id: str, status: UserStatus) -> None:
        with self._lock:
            prospects = self._read()
            for index, existing in enumerate(prospects):
                if existing.id == prospect_id:
                    prospects[index] = existing.model_copy(update={"user_status": UserStatus(status)})
                    self._write(prospects)
                    return

    def subscribe_to_prospects(self, callback: ProspectsCallback) -> Unsubscribe:
        # No push updates without a live backend
        callback(self.get_prospects())
        return _noop_unsubscribe


class SupabaseProspectStore(ProspectStore):
    """
    Live store backed by the Supabase `prospects` table.

    Write, read, delete and status paths log backend errors and retry the same
    operation on the local fallback store. Subscriptions have no such recovery.

    All subscribers share one realtime watcher. Each change is fetched once and
    fanned out; the watcher stops when the last subscriber leaves.
    """

    is_live = True

    def __init__(
        self,
        client: Client,
        fallback: LocalProspectStore,
        watcher_factory: Optional[Callable[[Callable[[], None]], Any]] = None
    ):
        """
        Initialize the backend store.

        Args:
            client: Supabase client
            fallback: Store used when a backend call fails
            watcher_factory: Builds a change watcher from an on_change callback;
                the watcher must offer start() and stop()
        """
        self.client = client
        self.fallback = fallback
        self.watcher_factory = watcher_factory
        self._watcher: Optional[Any] = None
        self._subscribers: Dict[int, Callable[[], Optional[ProspectsCallback]]] = {}
        self._subscribers_lock = threading.Lock()
        self._next_token = 0

    def _table(self):
        return self.client.table(TABLE_NAME)

    def save_prospect(self, prospect: Prospect) -> None:
        record = prospect.model_copy(update={"timestamp": now_ms()}).to_record()
        try:
            self._table().upsert(record, on_conflict="id").execute()
            logger.info("[Store] Prospect written/updated: %s", prospect.id)
            return
        except Exception as e:
            logger.error("[Store] Error writing prospect %s to Supabase: %s", prospect.id, e)
        self.fallback.save_prospect(prospect)

    def get_prospects(self) -> List[Prospect]:
        try:
            response = self._table().select("*").order("timestamp", desc=True).execute()
            return [Prospect.model_validate(row) for row in response.data or []]
        except Exception as e:
            logger.error("[Store] Error fetching prospects from Supabase: %s", e)
        return self.fallback.get_prospects()

    def delete_prospect(self, prospect_id: str) -> None:
        try:
            self._table().delete().eq("id", prospect_id).execute()
            return
        except Exception as e:
            logger.error("[Store] Error deleting prospect %s from Supabase: %s", prospect_id, e)
        self.fallback.delete_prospect(prospect_id)

    def update_prospect_status(self, prospect_id: str, status: UserStatus) -> None:
        try:
            self._table().update({"user_status": UserStatus(status).value}).eq("id", prospect_id).execute()
            return
        except Exception as e:
            logger.error("[Store] Error updating prospect %s in Supabase: %s", prospect_id, e)
        self.fallback.update_prospect_status(prospect_id, status)

    def subscribe_to_prospects(self, callback: ProspectsCallback) -> Unsubscribe:
        callback(self.get_prospects())
        if self.watcher_factory is None:
            return _noop_unsubscribe

        with self._subscribers_lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = _callback_ref(callback)
            if self._watcher is None:
                self._watcher = self.watcher_factory(self._broadcast)
                self._watcher.start()

        def unsubscribe() -> None:
            self._remove_subscribers([token])

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._subscribers_lock:
            return len(self._subscribers)

    def _remove_subscribers(self, tokens: List[int]) -> None:
        """Drop subscribers and stop the shared watcher once none remain."""
        with self._subscribers_lock:
            for token in tokens:
                self._subscribers.pop(token, None)
            watcher = None
            if not self._subscribers and self._watcher is not None:
                watcher, self._watcher = self._watcher, None
        if watcher is not None:
            watcher.stop()

    def _broadcast(self) -> None:
        """Fetch one snapshot and hand it to every live subscriber."""
        with self._subscribers_lock:
            subscribers = list(self._subscribers.items())

        prospects = self.get_prospects()
        dead = []
        for token, ref in subscribers:
            callback = ref()
            if callback is None:
                dead.append(token)
                continue
            try:
                callback(prospects)
            except Exception as e:
                logger.error("[Store] Prospect subscriber failed: %s", e)
        if dead:
            logger.info("[Store] Dropping %d abandoned subscriptions", len(dead))
            self._remove_subscribers(dead)


def create_prospect_store(settings: Settings) -> ProspectStore:
    """
    Pick the store implementation for this process.

    Args:
        settings: Connection settings

    Returns:
        SupabaseProspectStore when the backend is configured, else LocalProspectStore
    """
    local = LocalProspectStore(settings.data_dir)
    if not settings.backend_configured:
        logger.info("[Store] Supabase not configured; using local store at %s", local.storage_path)
        return local

    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error("[Store] Could not create Supabase client: %s. Using local store.", e)
        return local

    def watcher_factory(on_change: Callable[[], None]) -> ProspectWatcher:
        return ProspectWatcher(settings.supabase_url, settings.supabase_key, on_change)

    logger.info("[Store] Using Supabase project %s", settings.project_id)
    return SupabaseProspectStore(client, local, watcher_factory)

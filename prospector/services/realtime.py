"""Background watcher that turns Supabase Realtime events into snapshot refreshes."""

import asyncio
import logging
import threading
from typing import Any, Callable, Optional

from supabase import acreate_client

logger = logging.getLogger(__name__)


class ProspectWatcher(threading.Thread):
    """
    Listens for any insert/update/delete on the prospects table.

    Runs its own asyncio loop on a daemon thread. Each change calls
    `on_change`, which re-reads the full ordered list. If the channel cannot
    be opened the watcher logs the error and exits without retrying.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        on_change: Callable[[], None],
        table: str = "prospects"
    ):
        super().__init__(name=f"{table}-watcher", daemon=True)
        self.supabase_url = supabase_url
        self.supabase_key = supabase_key
        self.on_change = on_change
        self.table = table
        self._stop_requested = threading.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_event: Optional[asyncio.Event] = None

    def run(self):
        try:
            asyncio.run(self._watch())
        except Exception as e:
            logger.error("[Realtime] Watcher for %s stopped: %s", self.table, e)

    async def _watch(self):
        self._stop_event = asyncio.Event()
        self._loop = asyncio.get_running_loop()
        if self._stop_requested.is_set():
            return

        client = await acreate_client(self.supabase_url, self.supabase_key)
        await client.realtime.connect()
        channel = client.channel(f"{self.table}-changes")
        channel.on_postgres_changes(
            "*",
            schema="public",
            table=self.table,
            callback=self._handle_change
        )
        await channel.subscribe()
        logger.info("[Realtime] Subscribed to %s changes", self.table)

        try:
            await self._stop_event.wait()
        finally:
            await client.remove_channel(channel)
            logger.info("[Realtime] Unsubscribed from %s changes", self.table)

    def _handle_change(self, payload: Any):
        logger.debug("[Realtime] Change on %s: %s", self.table, payload)
        try:
            self.on_change()
        except Exception as e:
            logger.error("[Realtime] Snapshot refresh failed: %s", e)

    def stop(self):
        """Close the channel and end the thread. Safe to call more than once."""
        self._stop_requested.set()
        if self._loop is not None and self._stop_event is not None:
            try:
                self._loop.call_soon_threadsafe(self._stop_event.set)
            except RuntimeError:
                # Loop already closed
                pass

"""Tests for the prospect stores and backend selection."""

import gc
import json
import threading

import pytest

from prospector.config import Settings
from prospector.models import UserStatus
from prospector.services import prospect_store
from prospector.services.prospect_store import (
    LocalProspectStore,
    SupabaseProspectStore,
    create_prospect_store,
)

from conftest import FakeSupabaseClient, FakeWatcher, make_prospect


class TestLocalProspectStore:
    """JSON blob fallback store."""

    def test_empty_store_returns_empty_list(self, local_store):
        assert local_store.get_prospects() == []

    def test_save_is_an_upsert(self, local_store):
        local_store.save_prospect(make_prospect("a", timestamp=1000))
        local_store.save_prospect(make_prospect("a", timestamp=2000))

        prospects = local_store.get_prospects()
        assert len(prospects) == 1
        assert prospects[0].timestamp == 2000

    def test_get_keeps_insertion_order(self, local_store):
        local_store.save_prospect(make_prospect("old", timestamp=1000))
        local_store.save_prospect(make_prospect("new", timestamp=3000))
        local_store.save_prospect(make_prospect("mid", timestamp=2000))

        assert [p.id for p in local_store.get_prospects()] == ["old", "new", "mid"]

    def test_upsert_keeps_position(self, local_store):
        local_store.save_prospect(make_prospect("a"))
        local_store.save_prospect(make_prospect("b"))
        local_store.save_prospect(make_prospect("a", score=10))

        prospects = local_store.get_prospects()
        assert [p.id for p in prospects] == ["a", "b"]
        assert prospects[0].score == 10

    def test_delete(self, local_store):
        local_store.save_prospect(make_prospect("a"))
        local_store.save_prospect(make_prospect("b"))

        local_store.delete_prospect("a")

        assert [p.id for p in local_store.get_prospects()] == ["b"]

    def test_delete_unknown_id_is_noop(self, local_store):
        local_store.save_prospect(make_prospect("a"))
        before = local_store.get_prospects()

        local_store.delete_prospect("missing")

        assert local_store.get_prospects() == before

    def test_update_status(self, local_store):
        local_store.save_prospect(make_prospect("a"))

        local_store.update_prospect_status("a", UserStatus.CONTACTED)

        assert local_store.get_prospects()[0].user_status == UserStatus.CONTACTED

    def test_update_status_unknown_id_is_noop(self, local_store):
        local_store.save_prospect(make_prospect("a"))
        before = local_store.storage_path.read_text()

        local_store.update_prospect_status("missing", UserStatus.SIGNED)

        assert local_store.storage_path.read_text() == before

    def test_blob_uses_wire_field_names(self, local_store):
        local_store.save_prospect(make_prospect("a"))

        data = json.loads(local_store.storage_path.read_text())

        assert data[0]["user_status"] == "New"
        assert data[0]["business_data"]["userRatingCount"] == 42
        assert data[0]["ai_insight"]["score"] == 82
        assert local_store.storage_path.name == "maps_prospector_db.json"

    def test_corrupt_blob_reads_as_empty_and_is_kept(self, local_store):
        path = local_store.storage_path
        path.write_text("{not json")

        assert local_store.get_prospects() == []
        local_store.save_prospect(make_prospect("a"))

        backups = list(path.parent.glob(f"{path.name}.corrupt-*"))
        assert len(backups) == 1
        assert backups[0].read_text() == "{not json"
        assert [p.id for p in local_store.get_prospects()] == ["a"]

    def test_invalid_record_is_skipped_not_erased(self, local_store):
        local_store.save_prospect(make_prospect("good"))
        data = json.loads(local_store.storage_path.read_text())
        bad = make_prospect("bad").to_record()
        bad["ai_insight"]["score"] = 150
        local_store.storage_path.write_text(json.dumps(data + [bad]))

        assert [p.id for p in local_store.get_prospects()] == ["good"]

        local_store.save_prospect(make_prospect("new"))
        assert [p.id for p in local_store.get_prospects()] == ["good", "new"]

    def test_concurrent_saves_all_persist(self, local_store):
        errors = []

        def save(index):
            try:
                local_store.save_prospect(make_prospect(f"p{index}"))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=save, args=(i,)) for i in range(40)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert {p.id for p in local_store.get_prospects()} == {f"p{i}" for i in range(40)}
        assert list(local_store.storage_path.parent.glob("*.tmp")) == []

    def test_subscribe_delivers_one_snapshot(self, local_store):
        local_store.save_prospect(make_prospect("a"))
        received = []

        unsubscribe = local_store.subscribe_to_prospects(received.append)
        local_store.save_prospect(make_prospect("b"))
        unsubscribe()

        assert len(received) == 1
        assert [p.id for p in received[0]] == ["a"]
        assert unsubscribe() is None

    def test_is_not_live(self, local_store):
        assert local_store.is_live is False


class TestSupabaseProspectStore:
    """Backend store and its local fallback."""

    @pytest.fixture
    def store(self, supabase_client, local_store):
        return SupabaseProspectStore(supabase_client, local_store)

    def test_save_upserts_on_id_and_stamps_time(self, store, supabase_client, monkeypatch):
        monkeypatch.setattr(prospect_store, "now_ms", lambda: 5000)

        store.save_prospect(make_prospect("a", timestamp=1000))

        action, payload, _ = supabase_client.prospects().executed[-1]
        assert action == "upsert"
        assert payload["id"] == "a"
        assert payload["timestamp"] == 5000
        assert payload["business_data"]["userRatingCount"] == 42

    def test_second_save_wins(self, store, supabase_client, monkeypatch):
        stamps = iter([1000, 2000])
        monkeypatch.setattr(prospect_store, "now_ms", lambda: next(stamps))

        store.save_prospect(make_prospect("a"))
        store.save_prospect(make_prospect("a"))

        prospects = store.get_prospects()
        assert len(prospects) == 1
        assert prospects[0].timestamp == 2000

    def test_get_orders_newest_first(self, store, supabase_client):
        table = supabase_client.prospects()
        for pid, ts in [("old", 1000), ("new", 3000), ("mid", 2000)]:
            table.rows[pid] = make_prospect(pid, timestamp=ts).to_record()

        assert [p.id for p in store.get_prospects()] == ["new", "mid", "old"]

    def test_delete_and_unknown_delete(self, store, supabase_client):
        table = supabase_client.prospects()
        table.rows["a"] = make_prospect("a").to_record()

        store.delete_prospect("missing")
        assert list(table.rows) == ["a"]

        store.delete_prospect("a")
        assert table.rows == {}

    def test_update_status_patches_only_status(self, store, supabase_client):
        table = supabase_client.prospects()
        table.rows["a"] = make_prospect("a").to_record()

        store.update_prospect_status("a", UserStatus.SIGNED)

        action, payload, filters = table.executed[-1]
        assert action == "update"
        assert payload == {"user_status": "Signed"}
        assert filters == [("id", "a")]
        assert store.get_prospects()[0].user_status == UserStatus.SIGNED

    def test_failures_fall_back_to_local(self, store, supabase_client, local_store):
        supabase_client.prospects().fail = True

        store.save_prospect(make_prospect("a"))
        store.save_prospect(make_prospect("b"))
        store.update_prospect_status("a", UserStatus.IGNORED)
        store.delete_prospect("b")

        prospects = store.get_prospects()
        assert [p.id for p in prospects] == ["a"]
        assert prospects[0].user_status == UserStatus.IGNORED
        assert local_store.get_prospects() == prospects

    def test_subscribe_without_watcher(self, store, supabase_client):
        supabase_client.prospects().rows["a"] = make_prospect("a").to_record()
        received = []

        unsubscribe = store.subscribe_to_prospects(received.append)

        assert [p.id for p in received[0]] == ["a"]
        assert unsubscribe() is None

    def test_subscribe_pushes_snapshot_per_change(self, supabase_client, local_store):
        watchers = []

        def factory(on_change):
            watchers.append(FakeWatcher(on_change))
            return watchers[-1]

        store = SupabaseProspectStore(supabase_client, local_store, factory)
        received = []

        unsubscribe = store.subscribe_to_prospects(received.append)
        watcher = watchers[0]
        assert watcher.started
        assert received == [[]]

        supabase_client.prospects().rows["a"] = make_prospect("a").to_record()
        watcher.fire()
        assert [p.id for p in received[-1]] == ["a"]

        unsubscribe()
        assert watcher.stopped

    @pytest.fixture
    def watched(self, supabase_client, local_store):
        watchers = []

        def factory(on_change):
            watchers.append(FakeWatcher(on_change))
            return watchers[-1]

        return SupabaseProspectStore(supabase_client, local_store, factory), watchers

    def test_subscribers_share_one_watcher(self, watched, supabase_client):
        store, watchers = watched
        first, second = [], []

        stop_first = store.subscribe_to_prospects(first.append)
        stop_second = store.subscribe_to_prospects(second.append)
        assert len(watchers) == 1

        supabase_client.prospects().rows["a"] = make_prospect("a").to_record()
        watchers[0].fire()
        assert [p.id for p in first[-1]] == ["a"]
        assert [p.id for p in second[-1]] == ["a"]

        stop_first()
        assert not watchers[0].stopped
        watchers[0].fire()
        assert len(first) == 2
        assert len(second) == 3

        stop_second()
        assert watchers[0].stopped
        assert store.subscriber_count == 0

    def test_resubscribe_after_last_leaves_starts_new_watcher(self, watched):
        store, watchers = watched

        store.subscribe_to_prospects(lambda prospects: None)()
        store.subscribe_to_prospects(lambda prospects: None)

        assert len(watchers) == 2
        assert watchers[0].stopped
        assert watchers[1].started and not watchers[1].stopped

    def test_abandoned_subscriber_is_dropped(self, watched):
        store, watchers = watched

        class Sink:
            def __init__(self):
                self.snapshots = []

            def update(self, prospects):
                self.snapshots.append(prospects)

        sink = Sink()
        store.subscribe_to_prospects(sink.update)
        assert store.subscriber_count == 1

        # Session discarded without unsubscribing
        del sink
        gc.collect()
        watchers[0].fire()

        assert store.subscriber_count == 0
        assert watchers[0].stopped

    def test_failing_subscriber_does_not_starve_others(self, watched):
        store, watchers = watched
        received = []

        def broken(prospects):
            if received:
                raise RuntimeError("render failed")

        store.subscribe_to_prospects(broken)
        store.subscribe_to_prospects(received.append)
        watchers[0].fire()

        assert len(received) == 2

    def test_is_live(self, store):
        assert store.is_live is True


class TestCreateProspectStore:
    """Backend selection at startup."""

    def test_unconfigured_uses_local(self, tmp_path):
        store = create_prospect_store(Settings(data_dir=tmp_path))
        assert isinstance(store, LocalProspectStore)

    def test_placeholder_project_uses_local(self, tmp_path):
        settings = Settings(
            supabase_url="https://mock-project.supabase.co",
            supabase_key="key",
            data_dir=tmp_path
        )
        assert isinstance(create_prospect_store(settings), LocalProspectStore)

    def test_configured_uses_supabase(self, tmp_path, monkeypatch):
        client = FakeSupabaseClient()
        monkeypatch.setattr(prospect_store, "create_client", lambda url, key: client)
        settings = Settings(
            supabase_url="https://abcd1234.supabase.co",
            supabase_key="key",
            data_dir=tmp_path
        )

        store = create_prospect_store(settings)

        assert isinstance(store, SupabaseProspectStore)
        assert store.client is client
        assert store.fallback.storage_path.parent == tmp_path

    def test_client_error_uses_local(self, tmp_path, monkeypatch):
        def broken(url, key):
            raise ValueError("Invalid API key")

        monkeypatch.setattr(prospect_store, "create_client", broken)
        settings = Settings(
            supabase_url="https://abcd1234.supabase.co",
            supabase_key="bad",
            data_dir=tmp_path
        )

        assert isinstance(create_prospect_store(settings), LocalProspectStore)

"""Tests for CheckpointStore."""

import json
import threading

import pytest

from graphpack.drivers.file import FileDriver
from graphpack.exceptions import BinaryMismatch
from graphpack.exceptions import CannotPack
from graphpack.exceptions import TypeMismatch
from graphpack.store import CHECKPOINT_MISS
from graphpack.store import CheckpointStore
from graphpack.thunk import Thunk


@pytest.fixture
def driver(tmp_path):
    return FileDriver(str(tmp_path / "checkpoints"))


@pytest.fixture
def store(driver):
    return CheckpointStore(driver)


class TestCheckpointStore:
    """Tests for storing and restoring checkpoints."""

    def test_put_and_get(self, store):
        store.put("model/state", {"weights": [0.1, 0.2]})
        assert store.get("model/state", dict) == {"weights": [0.1, 0.2]}

    def test_missing_key_is_a_miss(self, store):
        assert store.get("missing", dict) is CHECKPOINT_MISS

    def test_writes_packet_and_metadata(self, store, driver):
        store.put("state", [1, 2, 3], ttl=60)
        assert driver.list_keys() == ["state.pkt", "state.pkt.meta.json"]

        metadata = json.loads(driver.load("state.pkt.meta.json"))
        assert metadata["ttl"] == 60
        assert metadata["size"] > 0
        assert len(metadata["program"]) == 32
        assert len(metadata["type"]) == 32

    def test_accepts_base_path(self, tmp_path):
        store = CheckpointStore(str(tmp_path / "by-path"))
        store.put("k", "value")
        assert store.get("k", str) == "value"

    def test_type_mismatch_is_raised(self, store):
        store.put("numbers", [1, 2])
        with pytest.raises(TypeMismatch):
            store.get("numbers", dict)

    def test_foreign_program_is_raised(self, store, driver):
        store.put("numbers", [1, 2])
        data = bytearray(driver.load("numbers.pkt"))
        data[0] ^= 0xFF
        driver.save("numbers.pkt", bytes(data))
        with pytest.raises(BinaryMismatch):
            store.get("numbers", list)

    def test_put_propagates_pack_errors(self, store):
        with pytest.raises(CannotPack):
            store.put("lock", threading.Lock())
        assert not store.exists("lock")

    def test_thunks_survive(self, store):
        store.put("lazy", Thunk(pow, 2, 10))
        assert store.get("lazy", Thunk).force() == 1024


class TestCheckpointExpiry:
    """Tests for TTL handling."""

    def test_expired_checkpoint_is_removed(self, store, monkeypatch):
        import graphpack.store

        store.put("temp", 1, ttl=10)
        now = graphpack.store.time.time()
        monkeypatch.setattr(graphpack.store.time, "time", lambda: now + 11)

        assert store.get("temp", int) is CHECKPOINT_MISS
        assert not store.exists("temp")

    def test_unexpired_checkpoint(self, store):
        store.put("temp", 1, ttl=3600)
        assert store.get("temp", int) == 1

    def test_no_ttl_never_expires(self, store, monkeypatch):
        import graphpack.store

        store.put("forever", 1)
        now = graphpack.store.time.time()
        monkeypatch.setattr(graphpack.store.time, "time", lambda: now + 10**9)
        assert store.get("forever", int) == 1

    def test_unreadable_metadata_is_ignored(self, store, driver, caplog):
        store.put("temp", 1, ttl=10)
        driver.save("temp.pkt.meta.json", b"{not json")
        assert store.get("temp", int) == 1
        assert "unreadable metadata" in caplog.text


class TestCheckpointManagement:
    """Tests for listing and removing checkpoints."""

    def test_keys(self, store):
        store.put("b", 1)
        store.put("a/nested", 2)
        assert store.keys() == ["a/nested", "b"]

    def test_invalidate(self, store, driver):
        store.put("a", 1)
        store.invalidate("a")
        assert not store.exists("a")
        assert driver.list_keys() == []
        store.invalidate("a")

    def test_clear(self, store):
        store.put("a", 1)
        store.put("b", 2)
        store.clear()
        assert store.keys() == []

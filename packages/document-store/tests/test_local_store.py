"""Tests for the filesystem document store."""

from __future__ import annotations

import pytest
from relay_document_store.local import LocalDocumentStore

DOCUMENTS = [
    b"",
    b"RUNNING",
    b'{"records_synced": 1200, "state": {"cursor": "2026-10-01"}}',
    bytes(range(256)),
]


class TestRoundTrip:
    @pytest.mark.parametrize("document", DOCUMENTS)
    def test_put_then_get_returns_same_bytes(self, local_store, document):
        local_store.put("42/0/replication/output", document)
        assert local_store.get("42/0/replication/output") == document

    def test_missing_key_reads_none(self, local_store):
        assert local_store.get("never-written") is None

    def test_last_write_wins(self, local_store):
        local_store.put("42/0/status", b"INITIALIZING")
        local_store.put("42/0/status", b"SUCCEEDED")
        assert local_store.get("42/0/status") == b"SUCCEEDED"


class TestLayout:
    def test_documents_live_under_prefix(self, tmp_path, local_store):
        local_store.put("42/0/status", b"RUNNING")
        assert (tmp_path / "state" / "42%2F0%2Fstatus").read_bytes() == b"RUNNING"

    def test_no_temp_files_left_behind(self, tmp_path, local_store):
        local_store.put("42/0/status", b"RUNNING")
        assert [p.name for p in (tmp_path / "state").iterdir()] == ["42%2F0%2Fstatus"]

    @pytest.mark.parametrize("key", ["../escape", "a/../../b", "..", "/etc/passwd"])
    def test_keys_never_leave_the_prefix(self, tmp_path, local_store, key):
        local_store.put(key, b"x")
        assert [p.parent for p in tmp_path.rglob("*") if p.is_file()] == [tmp_path / "state"]
        assert local_store.get(key) == b"x"

    def test_rejects_empty_key(self, local_store):
        with pytest.raises(ValueError):
            local_store.put("", b"x")


class TestDelete:
    def test_delete_existing(self, local_store):
        local_store.put("k", b"v")
        assert local_store.delete("k") is True
        assert local_store.get("k") is None

    def test_delete_missing(self, local_store):
        assert local_store.delete("k") is False


def test_prefix_is_normalized_to_absolute(tmp_path):
    assert str(LocalDocumentStore(tmp_path, "state").prefix) == "/state"

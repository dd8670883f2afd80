"""
tests/test_memory_store.py
Unit tests for src/memory/kv.py and src/memory/schema.py — key-value persistence.
"""

import sqlite3

import pytest


def test_init_store_db_creates_table(tmp_path):
    from src.memory_store import init_store_db

    db_path = tmp_path / "nested" / "kv.db"
    init_store_db(str(db_path))

    with sqlite3.connect(db_path) as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert "kv_entries" in tables


@pytest.mark.asyncio
async def test_sqlite_store_put_get_overwrite_delete(tmp_path):
    from src.memory_store import SqliteKeyValueStore

    store = SqliteKeyValueStore(str(tmp_path / "kv.db"))

    assert await store.get("memory:ws-1") is None
    await store.put("memory:ws-1", '{"a": 1}')
    await store.put("memory:ws-1", '{"a": 2}')
    assert await store.get("memory:ws-1") == '{"a": 2}'

    await store.delete("memory:ws-1")
    assert await store.get("memory:ws-1") is None


@pytest.mark.asyncio
async def test_sqlite_store_survives_new_instance(tmp_path):
    from src.memory_store import SqliteKeyValueStore

    db_path = str(tmp_path / "kv.db")
    await SqliteKeyValueStore(db_path).put("token:org-1", "value")

    assert await SqliteKeyValueStore(db_path).get("token:org-1") == "value"


@pytest.mark.asyncio
async def test_in_memory_store_delete_missing_key_is_noop():
    from src.memory_store import InMemoryKeyValueStore

    store = InMemoryKeyValueStore({"k": "v"})
    await store.delete("missing")

    assert await store.get("k") == "v"


def test_build_store_uses_configured_path(monkeypatch, tmp_path):
    from src.memory_store import build_store

    monkeypatch.setenv("FIRSTDRAFT_STORE_DB_PATH", str(tmp_path / "configured.db"))

    assert build_store().db_path == str(tmp_path / "configured.db")

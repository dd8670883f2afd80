"""
src/memory_store.py
Facade for FirstDraft key-value persistence helpers.
Exports: KeyValueStore, InMemoryKeyValueStore, SqliteKeyValueStore, build_store, init_store_db,
WorkspaceMemory, MemoryUpdate, OAuthToken
"""

from src.memory.kv import InMemoryKeyValueStore, KeyValueStore, SqliteKeyValueStore, build_store
from src.memory.schema import init_store_db
from src.memory.types import MemoryUpdate, OAuthToken, WorkspaceMemory

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SqliteKeyValueStore",
    "build_store",
    "init_store_db",
    "WorkspaceMemory",
    "MemoryUpdate",
    "OAuthToken",
]

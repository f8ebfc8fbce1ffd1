"""
Document store implementations for contentgraph.

Provides abstract base and concrete implementations for document storage.

Available backends:
- InMemoryDocumentStore: Dict-backed, for tests and single-process use
- SQLiteDocumentStore: Local persistent storage via aiosqlite
"""

from contentgraph.core.document_store.base import DocumentStore, PreRemoveHook
from contentgraph.core.document_store.memory_store import InMemoryDocumentStore
from contentgraph.core.document_store.sqlite_store import SQLiteDocumentStore

__all__ = [
    "DocumentStore",
    "PreRemoveHook",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
]

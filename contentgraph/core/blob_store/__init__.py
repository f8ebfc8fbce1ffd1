"""
Blob store implementations for contentgraph.

Available backends:
- LocalBlobStore: Files on the local filesystem
- InMemoryBlobStore: Dict-backed store for tests
"""

from contentgraph.core.blob_store.base import BlobStore, StoredBlob
from contentgraph.core.blob_store.local import LocalBlobStore
from contentgraph.core.blob_store.memory import InMemoryBlobStore

__all__ = [
    "BlobStore",
    "StoredBlob",
    "LocalBlobStore",
    "InMemoryBlobStore",
]

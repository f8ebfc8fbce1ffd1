"""
Factory modules for creating contentgraph components.

Provides modular factories for the document store and the blob store.
"""

from contentgraph.core.factory.blob_factory import BlobStoreFactory
from contentgraph.core.factory.store_factory import DocumentStoreFactory

__all__ = [
    "DocumentStoreFactory",
    "BlobStoreFactory",
]

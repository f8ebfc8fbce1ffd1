"""
Factory for creating document store backends.
"""

from contentgraph.config import StoreConfig
from contentgraph.core.document_store.base import DocumentStore
from contentgraph.core.document_store.memory_store import InMemoryDocumentStore
from contentgraph.core.document_store.sqlite_store import SQLiteDocumentStore
from contentgraph.utils.exceptions import ConfigurationError


class DocumentStoreFactory:
    """Factory for creating document store backends from configuration."""

    @staticmethod
    def create(config: StoreConfig) -> DocumentStore:
        """
        Create document store from configuration.

        Args:
            config: Document store configuration

        Returns:
            Document store instance

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.backend == "memory":
            return InMemoryDocumentStore()
        elif config.backend == "sqlite":
            return SQLiteDocumentStore(db_path=config.db_path)
        else:
            raise ConfigurationError(
                f"Unsupported document store backend: {config.backend}",
                context={"backend": config.backend},
            )

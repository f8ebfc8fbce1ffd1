"""
Factory for creating blob store backends.
"""

from contentgraph.config import BlobStoreConfig
from contentgraph.core.blob_store.base import BlobStore
from contentgraph.core.blob_store.local import LocalBlobStore
from contentgraph.core.blob_store.memory import InMemoryBlobStore
from contentgraph.utils.exceptions import ConfigurationError


class BlobStoreFactory:
    """Factory for creating blob store backends from configuration."""

    @staticmethod
    def create(config: BlobStoreConfig) -> BlobStore:
        """
        Create blob store from configuration.

        Args:
            config: Blob store configuration

        Returns:
            Blob store instance

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.backend == "local":
            return LocalBlobStore(
                root_dir=config.root_dir,
                folder=config.folder,
                base_url=config.base_url,
            )
        elif config.backend == "memory":
            return InMemoryBlobStore(base_url=config.base_url or "memory://")
        else:
            raise ConfigurationError(
                f"Unsupported blob store backend: {config.backend}",
                context={"backend": config.backend},
            )

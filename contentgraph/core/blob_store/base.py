"""
Base interface for binary file storage.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel


class StoredBlob(BaseModel):
    """Result of an upload."""

    name: str
    uri: str


class BlobStore(ABC):
    """Abstract base class for blob storage implementations."""

    @abstractmethod
    async def upload(self, source: str | Path) -> StoredBlob:
        """
        Store a local file.

        Args:
            source: Path of the file to upload

        Returns:
            Stored name and URI of the blob

        Raises:
            BlobStoreError: If the upload fails
        """
        pass

    @abstractmethod
    async def remove(self, names: list[str]) -> None:
        """
        Delete stored blobs by name.

        Removing a blob that doesn't exist is a no-op.

        Args:
            names: Stored blob names

        Raises:
            BlobStoreError: If a deletion fails
        """
        pass

    async def close(self) -> None:
        """Release resources held by the store."""
        pass

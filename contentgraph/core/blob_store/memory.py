"""In-memory blob store."""

import asyncio
from pathlib import Path
from uuid import uuid4

from contentgraph.core.blob_store.base import BlobStore, StoredBlob
from contentgraph.utils.exceptions import BlobStoreError


class InMemoryBlobStore(BlobStore):
    """
    Keeps blob bytes in a dict. Useful for tests and short dry runs.

    ``removed`` records every removed name and is never trimmed, so it grows
    with the number of removals over the store's lifetime.
    """

    def __init__(self, base_url: str = "memory://"):
        self.base_url = base_url
        self.blobs: dict[str, bytes] = {}
        self.removed: list[str] = []

    async def upload(self, source: str | Path) -> StoredBlob:
        source = Path(source)
        try:
            payload = await asyncio.to_thread(source.read_bytes)
        except OSError as e:
            raise BlobStoreError(
                f"Failed to upload {source}: {e}", context={"source": str(source)}
            ) from e

        name = f"{uuid4().hex[:12]}_{source.name}"
        self.blobs[name] = payload
        return StoredBlob(name=name, uri=f"{self.base_url}{name}")

    async def remove(self, names: list[str]) -> None:
        await asyncio.sleep(0)
        for name in names:
            self.blobs.pop(name, None)
            self.removed.append(name)

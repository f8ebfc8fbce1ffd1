"""
Local filesystem blob store.
"""

import asyncio
import shutil
from pathlib import Path
from uuid import uuid4

from contentgraph.core.blob_store.base import BlobStore, StoredBlob
from contentgraph.utils.exceptions import BlobStoreError
from contentgraph.utils.logger import get_logger

logger = get_logger(__name__)


class LocalBlobStore(BlobStore):
    """
    Stores blobs under ``root_dir/folder``.

    Blob names are prefixed with a random token so two uploads of files
    with the same basename never collide.
    """

    def __init__(self, root_dir: str = "data/uploads", folder: str = "items", base_url: str = ""):
        """
        Initialize local blob store.

        Args:
            root_dir: Root directory for stored files
            folder: Sub-directory blobs are written to
            base_url: Public URL prefix prepended to stored names
        """
        self.root_dir = Path(root_dir)
        self.folder = folder
        self.base_url = base_url

    @property
    def directory(self) -> Path:
        return self.root_dir / self.folder

    async def upload(self, source: str | Path) -> StoredBlob:
        source = Path(source)
        name = f"{uuid4().hex[:12]}_{source.name}"
        target = self.directory / name

        try:
            await asyncio.to_thread(self._copy, source, target)
        except OSError as e:
            raise BlobStoreError(
                f"Failed to upload {source}: {e}", context={"source": str(source)}
            ) from e

        logger.bind(blob=name).debug(f"Uploaded {source} as {name}")
        return StoredBlob(name=name, uri=f"{self.base_url}{self.folder}/{name}")

    async def remove(self, names: list[str]) -> None:
        for name in names:
            path = self.directory / name
            try:
                await asyncio.to_thread(path.unlink, missing_ok=True)
            except OSError as e:
                raise BlobStoreError(
                    f"Failed to remove blob {name}: {e}", context={"blob": name}
                ) from e
            logger.bind(blob=name).debug(f"Removed blob {name}")

    @staticmethod
    def _copy(source: Path, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)

"""
SQLite document store implementation using aiosqlite.

Every collection shares one table; documents are stored as JSON and
filtered with SQLite's JSON functions.
"""

from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite

from contentgraph.core.document_store.base import DocumentStore, EntityT, validate_field_names
from contentgraph.models.entity import Entity
from contentgraph.utils.exceptions import PersistenceError
from contentgraph.utils.logger import get_logger

logger = get_logger(__name__)


class SQLiteDocumentStore(DocumentStore):
    """
    SQLite-based document store.

    Features:
    - Fast local storage
    - JSON documents with json_each based filtering
    - WAL journal mode
    """

    def __init__(self, db_path: str = "data/contentgraph.db"):
        """
        Initialize SQLite document store.

        Args:
            db_path: Path to SQLite database file
        """
        super().__init__()
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None

        # Ensure directory exists
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            self.connection = await aiosqlite.connect(self.db_path)
            await self.connection.execute("PRAGMA journal_mode = WAL")
            await self.connection.commit()

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self.connect()

        await self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                collection TEXT NOT NULL,
                id TEXT NOT NULL,
                data TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (collection, id)
            )
        """
        )
        await self.connection.execute(
            "CREATE INDEX IF NOT EXISTS idx_documents_created ON documents(collection, created_at)"
        )
        await self.connection.commit()
        logger.debug(f"SQLite document store ready at {self.db_path}")

    # ═══════════════════════════════════════════════════════════
    # DOCUMENT OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def get(self, model: type[EntityT], doc_id: str) -> EntityT | None:
        """Retrieve a document by ID."""
        await self.connect()

        try:
            cursor = await self.connection.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (model.collection, doc_id),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise PersistenceError(
                f"Failed to load {model.collection}/{doc_id}: {e}",
                context={"collection": model.collection, "id": doc_id},
            ) from e

        if not row:
            return None

        return model.model_validate_json(row[0])

    async def save(self, entity: Entity) -> None:
        """Insert or replace a document."""
        await self.connect()

        try:
            await self.connection.execute(
                """
                INSERT OR REPLACE INTO documents (collection, id, data, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    entity.collection,
                    entity.id,
                    entity.model_dump_json(),
                    entity.created_at.isoformat(),
                    entity.updated_at.isoformat(),
                ),
            )
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(
                f"Failed to save {entity.collection}/{entity.id}: {e}",
                context={"collection": entity.collection, "id": entity.id},
            ) from e

    async def delete_document(self, collection: str, doc_id: str) -> None:
        """Physically delete a document."""
        await self.connect()

        try:
            await self.connection.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?", (collection, doc_id)
            )
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(
                f"Failed to delete {collection}/{doc_id}: {e}",
                context={"collection": collection, "id": doc_id},
            ) from e

    async def query(
        self,
        model: type[EntityT],
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = True,
        limit: int = 100,
        offset: int = 0,
    ) -> list[EntityT]:
        """Query documents with filters."""
        await self.connect()

        where, params = self._where(model, filters)
        query = f"SELECT data FROM documents WHERE {where}"

        if order_by:
            validate_field_names([order_by])
            query += f" ORDER BY json_extract(data, '$.{order_by}') {'DESC' if descending else 'ASC'}"

        query += " LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        try:
            cursor = await self.connection.execute(query, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise PersistenceError(
                f"Failed to query {model.collection}: {e}",
                context={"collection": model.collection, "filters": filters or {}},
            ) from e

        return [model.model_validate_json(row[0]) for row in rows]

    async def count(self, model: type[Entity], filters: dict[str, Any] | None = None) -> int:
        """Count documents matching filters."""
        await self.connect()

        where, params = self._where(model, filters)
        try:
            cursor = await self.connection.execute(
                f"SELECT COUNT(*) FROM documents WHERE {where}", params
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise PersistenceError(
                f"Failed to count {model.collection}: {e}",
                context={"collection": model.collection},
            ) from e

        return row[0] if row else 0

    async def close(self) -> None:
        """Close SQLite connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None

    def _where(self, model: type[Entity], filters: dict[str, Any] | None) -> tuple[str, list]:
        filters = filters or {}
        validate_field_names(list(filters))

        clauses = ["collection = ?"]
        params: list[Any] = [model.collection]
        for field, value in filters.items():
            if isinstance(value, Enum):
                value = value.value
            # json_each yields the scalar itself for non-array fields
            clauses.append(
                "EXISTS (SELECT 1 FROM json_each(documents.data, ?) WHERE json_each.value = ?)"
            )
            params.extend([f"$.{field}", value])

        return " AND ".join(clauses), params

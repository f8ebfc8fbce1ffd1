"""
In-memory document store.

Documents are kept serialized, so every load returns an independent copy,
the same as a real database round-trip.
"""

import asyncio
import json
from enum import Enum
from typing import Any

from contentgraph.core.document_store.base import DocumentStore, EntityT, validate_field_names
from contentgraph.models.entity import Entity


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed document store.

    Features:
    - Copy-on-read semantics (JSON round-trip)
    - A scheduling point on every operation, like awaiting a database ack
    """

    def __init__(self):
        super().__init__()
        self._collections: dict[str, dict[str, str]] = {}

    async def initialize(self) -> None:
        """Nothing to set up."""
        pass

    async def get(self, model: type[EntityT], doc_id: str) -> EntityT | None:
        await asyncio.sleep(0)
        raw = self._collections.get(model.collection, {}).get(doc_id)
        if raw is None:
            return None
        return model.model_validate_json(raw)

    async def save(self, entity: Entity) -> None:
        await asyncio.sleep(0)
        self._collections.setdefault(entity.collection, {})[entity.id] = entity.model_dump_json()

    async def delete_document(self, collection: str, doc_id: str) -> None:
        await asyncio.sleep(0)
        self._collections.get(collection, {}).pop(doc_id, None)

    async def query(
        self,
        model: type[EntityT],
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = True,
        limit: int = 100,
        offset: int = 0,
    ) -> list[EntityT]:
        await asyncio.sleep(0)
        rows = self._matching(model, filters)

        if order_by:
            validate_field_names([order_by])
            rows.sort(key=lambda row: _sort_key(row.get(order_by)), reverse=descending)

        return [model.model_validate(row) for row in rows[offset : offset + limit]]

    async def count(self, model: type[Entity], filters: dict[str, Any] | None = None) -> int:
        await asyncio.sleep(0)
        return len(self._matching(model, filters))

    async def close(self) -> None:
        pass

    def _matching(self, model: type[Entity], filters: dict[str, Any] | None) -> list[dict]:
        filters = filters or {}
        validate_field_names(list(filters))
        rows = [json.loads(raw) for raw in self._collections.get(model.collection, {}).values()]
        return [row for row in rows if all(_matches(row.get(k), v) for k, v in filters.items())]


def _matches(stored: Any, expected: Any) -> bool:
    if isinstance(expected, Enum):
        expected = expected.value
    if isinstance(stored, list):
        return expected in stored
    return stored == expected


def _sort_key(value: Any) -> tuple[int, Any]:
    # None sorts before every value
    return (0, "") if value is None else (1, value)

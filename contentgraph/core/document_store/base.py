"""
Base interface for document storage.

A document store keeps Content, Feature and Image documents in named
collections and runs a registered pre-removal hook before physically
deleting a document.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from contentgraph.models.entity import Entity
from contentgraph.utils.exceptions import NotFoundError
from contentgraph.utils.logger import get_logger

logger = get_logger(__name__)

EntityT = TypeVar("EntityT", bound=Entity)
PreRemoveHook = Callable[[Any], Awaitable[None]]


class DocumentStore(ABC):
    """Abstract base class for document storage implementations."""

    def __init__(self):
        self._pre_remove_hooks: dict[str, PreRemoveHook] = {}

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the store (create tables/schema)."""
        pass

    # ═══════════════════════════════════════════════════════════
    # HOOKS
    # ═══════════════════════════════════════════════════════════

    def register_pre_remove(self, model: type[Entity], hook: PreRemoveHook) -> None:
        """
        Register the hook run before a document of ``model`` is deleted.

        One hook per collection; registering again replaces the previous hook.

        Args:
            model: Entity class whose removals trigger the hook
            hook: Async callable receiving the entity being removed
        """
        self._pre_remove_hooks[model.collection] = hook

    def has_pre_remove(self, model: type[Entity]) -> bool:
        return model.collection in self._pre_remove_hooks

    # ═══════════════════════════════════════════════════════════
    # DOCUMENT OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def find_by_id(self, model: type[EntityT], doc_id: str) -> EntityT:
        """
        Load a document, failing if it doesn't exist.

        Args:
            model: Entity class to load
            doc_id: Document identifier

        Returns:
            The loaded entity

        Raises:
            NotFoundError: If no document has this ID
        """
        entity = await self.get(model, doc_id)
        if entity is None:
            raise NotFoundError(
                f"{model.__name__} {doc_id} not found",
                context={"collection": model.collection, "id": doc_id},
            )
        return entity

    async def remove(self, entity: Entity) -> None:
        """
        Remove a document.

        Runs the pre-removal hook registered for the entity's collection
        first; the document is only deleted if the hook succeeds.

        Args:
            entity: Entity to remove

        Raises:
            Whatever the hook raises (document is kept)
            PersistenceError: If the physical delete fails
        """
        hook = self._pre_remove_hooks.get(entity.collection)
        if hook is not None:
            await hook(entity)

        await self.delete_document(entity.collection, entity.id)
        logger.bind(collection=entity.collection, id=entity.id).debug(
            f"Removed {entity.collection}/{entity.id}"
        )

    @abstractmethod
    async def get(self, model: type[EntityT], doc_id: str) -> EntityT | None:
        """
        Retrieve a document by ID.

        Args:
            model: Entity class to load
            doc_id: Document identifier

        Returns:
            A fresh entity instance or None if not found
        """
        pass

    @abstractmethod
    async def save(self, entity: Entity) -> None:
        """
        Insert or replace a document.

        Args:
            entity: Entity to persist
        """
        pass

    @abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> None:
        """
        Physically delete a document without running hooks.

        Deleting a missing document is a no-op.

        Args:
            collection: Collection name
            doc_id: Document identifier
        """
        pass

    @abstractmethod
    async def query(
        self,
        model: type[EntityT],
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = True,
        limit: int = 100,
        offset: int = 0,
    ) -> list[EntityT]:
        """
        Query documents of a collection.

        Filters match top-level fields by equality; when the stored field
        is a list, a filter matches if the list contains the value.

        Args:
            model: Entity class to list
            filters: Field -> value conditions
            order_by: Field to sort by
            descending: Sort direction
            limit: Maximum results
            offset: Number of results to skip

        Returns:
            List of matching entities
        """
        pass

    @abstractmethod
    async def count(self, model: type[Entity], filters: dict[str, Any] | None = None) -> int:
        """
        Count documents matching filters.

        Args:
            model: Entity class to count
            filters: Optional filter conditions

        Returns:
            Count of documents
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection to the store."""
        pass


def validate_field_names(names: list[str]) -> None:
    """Reject filter/sort field names that aren't plain identifiers."""
    for name in names:
        if not name.isidentifier():
            raise ValueError(f"Invalid field name: {name!r}")

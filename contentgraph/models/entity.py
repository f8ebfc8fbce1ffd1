"""
Base model shared by every document kept in the document store.
"""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field


class Entity(BaseModel):
    """
    A document with an identity, stored in one named collection.

    Subclasses set ``collection`` to the store collection they live in.
    """

    collection: ClassVar[str] = ""

    id: str = Field(..., description="Unique document ID")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")

    def touch(self) -> None:
        """Bump the update timestamp."""
        self.updated_at = datetime.now()


def add_to_set(items: list[str], value: str) -> bool:
    """
    Append ``value`` unless already present.

    Returns:
        True if the list changed
    """
    if value in items:
        return False
    items.append(value)
    return True


def pull(items: list[str], value: str) -> bool:
    """
    Remove every occurrence of ``value``.

    Returns:
        True if the list changed
    """
    before = len(items)
    items[:] = [item for item in items if item != value]
    return len(items) != before


def unique(items: list[str]) -> list[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(items))

"""
Feature model: a map feature grouping contents.
"""

from typing import ClassVar

from pydantic import Field

from contentgraph.models.entity import Entity, add_to_set, pull


class Feature(Entity):
    """Feature with the inverse edge of Content.features."""

    collection: ClassVar[str] = "features"

    title: str = Field(default="", description="Feature title")
    layer: str | None = Field(default=None, description="Layer ID")
    contents: list[str] = Field(default_factory=list, description="Content IDs")

    def attach_content(self, content_id: str) -> bool:
        """Set-insert a content reference. Returns True if it was added."""
        return add_to_set(self.contents, content_id)

    def detach_content(self, content_id: str) -> bool:
        """Remove a content reference. Returns True if it was present."""
        return pull(self.contents, content_id)

"""Category model for the per-event category forest."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Category:
    """Represents one node of an event's category forest.

    Attributes:
        id: Unique identifier (auto-generated).
        label: Display label, never blank.
        event_id: Owning event. Fixed at creation.
        parent_id: Parent category ID, or None for a root category.
        depth: Distance from the traversal root. Only set by tree reads.
    """

    id: int
    label: str
    event_id: int
    parent_id: Optional[int] = None
    depth: Optional[int] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def to_dict(self) -> dict:
        """Convert category to a plain dictionary."""
        data = {
            "id": self.id,
            "label": self.label,
            "parent_id": self.parent_id,
            "event_id": self.event_id,
        }
        if self.depth is not None:
            data["depth"] = self.depth
        return data

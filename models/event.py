from dataclasses import dataclass
from typing import Optional


@dataclass
class Event:
    id: int
    name: str  # never blank, e.g. "PyCon 2026"
    created_at: Optional[str] = None  # SQLite CURRENT_TIMESTAMP text

    def to_dict(self) -> dict:
        """Convert event to a plain dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
        }

"""Event service for database operations."""

from typing import List, Optional

from errors import NotFoundError
from logger import get_logger
from models.event import Event
from services.validation import require_id, require_text

logger = get_logger()

_EVENT_SELECT = "SELECT id, name, created_at FROM events"


class EventService:
    """Service for creating and looking up events."""

    def __init__(self, coordinator):
        """Initialize the event service.

        Args:
            coordinator: TransactionCoordinator used for every database call.
        """
        self.coordinator = coordinator

    def create(self, name: str, timeout: Optional[float] = None) -> Event:
        """Create a new event.

        Args:
            name: Event name. Leading and trailing whitespace is stripped.
            timeout: Optional deadline in seconds.

        Returns:
            The created Event object with id populated.

        Raises:
            ValidationError: If the name is missing or blank.
        """
        name = require_text(name, "name")

        def insert(conn) -> Event:
            cursor = conn.execute("INSERT INTO events (name) VALUES (?)", (name,))
            row = conn.execute(
                f"{_EVENT_SELECT} WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
            return self._row_to_event(row)

        event = self.coordinator.run_atomic(insert, timeout=timeout)
        logger.debug(f"Created event {event.id} ({event.name!r})")
        return event

    def get(self, event_id, timeout: Optional[float] = None) -> Event:
        """Get a single event by ID.

        Raises:
            ValidationError: If the ID is not an integer.
            NotFoundError: If no such event exists.
        """
        event = self.find(event_id, timeout=timeout)
        if event is None:
            raise NotFoundError("event", event_id)
        return event

    def find(self, event_id, timeout: Optional[float] = None) -> Optional[Event]:
        """Get a single event by ID, or None if it does not exist."""
        event_id = require_id(event_id, "event_id")
        with self.coordinator.read(timeout=timeout) as conn:
            row = conn.execute(
                f"{_EVENT_SELECT} WHERE id = ?", (event_id,)
            ).fetchone()
            return self._row_to_event(row) if row else None

    def find_all(self, timeout: Optional[float] = None) -> List[Event]:
        """Get all events, ordered by id."""
        with self.coordinator.read(timeout=timeout) as conn:
            rows = conn.execute(f"{_EVENT_SELECT} ORDER BY id").fetchall()
            return [self._row_to_event(row) for row in rows]

    def find_for_category(
        self, category_id, timeout: Optional[float] = None
    ) -> Optional[Event]:
        """Get the event that owns a category.

        Returns:
            The owning Event, or None if the category does not exist.
        """
        category_id = require_id(category_id, "category_id")
        with self.coordinator.read(timeout=timeout) as conn:
            row = conn.execute(
                """
                SELECT e.id, e.name, e.created_at
                FROM events e
                JOIN categories c ON c.event_id = e.id
                WHERE c.id = ?
                """,
                (category_id,),
            ).fetchone()
            return self._row_to_event(row) if row else None

    @staticmethod
    def _row_to_event(row) -> Event:
        return Event(id=row[0], name=row[1], created_at=row[2])

"""Category service: the per-event category forest.

Categories are stored as an adjacency list (``categories.parent_id``).
Subtrees are reconstructed with recursive closure queries, and every
mutation runs through the transaction coordinator so its validation and
writes are atomic.
"""

from collections.abc import Mapping, Sequence
from typing import List, Optional

from config import DEFAULT_MAX_TREE_DEPTH
from errors import InvalidReference, InvariantViolation, NotFoundError, ValidationError
from logger import get_logger
from models.category import Category
from services.validation import require_id, require_text

logger = get_logger()

_CATEGORY_SELECT = "SELECT id, label, event_id, parent_id FROM categories"

# Recursion goes one level past :max_depth so corrupted (cyclic or over-deep)
# data still terminates and shows up in "deepest"; rows past the cap are
# dropped by the caller. GROUP BY keeps one row per category at its
# shallowest depth.
_SUBTREE_SQL = """
WITH RECURSIVE subtree(id, label, event_id, parent_id, depth) AS (
    SELECT id, label, event_id, parent_id, 0
    FROM categories
    WHERE id = :root_id
    UNION ALL
    SELECT c.id, c.label, c.event_id, c.parent_id, s.depth + 1
    FROM categories c
    JOIN subtree s ON c.parent_id = s.id AND c.event_id = s.event_id
    WHERE s.depth <= :max_depth
)
SELECT id, label, event_id, parent_id, MIN(depth) AS depth,
       MAX(MAX(depth)) OVER () AS deepest
FROM subtree
GROUP BY id
ORDER BY MIN(depth), id
"""

_FULL_TREE_SQL = """
WITH RECURSIVE tree(id, label, event_id, parent_id, depth) AS (
    SELECT id, label, event_id, parent_id, 0
    FROM categories
    WHERE event_id = :event_id AND parent_id IS NULL
    UNION ALL
    SELECT c.id, c.label, c.event_id, c.parent_id, t.depth + 1
    FROM categories c
    JOIN tree t ON c.parent_id = t.id
    WHERE c.event_id = :event_id AND t.depth <= :max_depth
)
SELECT id, label, event_id, parent_id, MIN(depth) AS depth,
       MAX(MAX(depth)) OVER () AS deepest
FROM tree
GROUP BY id
ORDER BY MIN(depth), id
"""

_ANCESTORS_SQL = """
WITH RECURSIVE ancestors(id, parent_id, depth) AS (
    SELECT id, parent_id, 0
    FROM categories
    WHERE id = :start_id
    UNION ALL
    SELECT c.id, c.parent_id, a.depth + 1
    FROM categories c
    JOIN ancestors a ON c.id = a.parent_id
    WHERE a.depth < :max_depth
)
SELECT id, parent_id FROM ancestors ORDER BY depth
"""


class CategoryService:
    """Service for managing the category forest of each event.

    Args:
        coordinator: TransactionCoordinator used for every database call.
        max_depth: Deepest level a category may sit at (roots are 0).
            Writes past it are refused and traversals stop there.
    """

    def __init__(self, coordinator, max_depth: int = DEFAULT_MAX_TREE_DEPTH):
        self.coordinator = coordinator
        self.max_depth = max_depth

    def create(
        self,
        label: str,
        event_id,
        parent_id=None,
        timeout: Optional[float] = None,
    ) -> Category:
        """Create a new category under an event.

        Args:
            label: Category label. Leading and trailing whitespace is stripped.
            event_id: ID of the owning event.
            parent_id: Optional parent category ID. The parent must belong to
                the same event. None creates a root category.
            timeout: Optional deadline in seconds.

        Returns:
            The created Category object with id populated.

        Raises:
            ValidationError: If the label is blank or the event does not exist.
            InvalidReference: If the parent does not exist or belongs to a
                different event.
            InvariantViolation: If the parent is already at the maximum depth.
        """
        label = require_text(label, "label")
        event_id = require_id(event_id, "event_id")
        if parent_id is not None:
            parent_id = require_id(parent_id, "parent_id")

        def insert(conn) -> Category:
            _check_event(conn, event_id)
            if parent_id is not None:
                _check_parent(conn, parent_id, event_id)
                if self._depth_of(conn, parent_id) >= self.max_depth:
                    raise InvariantViolation(
                        f"Category {parent_id} is already at the maximum depth "
                        f"of {self.max_depth}"
                    )
            return _insert_category(conn, label, event_id, parent_id)

        category = self.coordinator.run_atomic(insert, timeout=timeout)
        logger.debug(
            f"Created category {category.id} ({category.label!r}) "
            f"in event {event_id} under parent {parent_id}"
        )
        return category

    def create_tree(
        self,
        event_id,
        nodes: Sequence[Mapping],
        parent_id=None,
        timeout: Optional[float] = None,
    ) -> List[Category]:
        """Create a nested structure of categories in one transaction.

        Each node is a mapping with a ``label`` and an optional list of
        ``children`` nodes. Either every node is created or none is.

        Args:
            event_id: ID of the owning event.
            nodes: Top-level nodes to create.
            parent_id: Optional existing category to attach the nodes under.
            timeout: Optional deadline in seconds.

        Returns:
            Created categories in pre-order (each parent before its children).

        Raises:
            ValidationError: If any node is malformed or the event does not exist.
            InvalidReference: If ``parent_id`` cannot be used as a parent.
            InvariantViolation: If any node would sit deeper than the maximum depth.
        """
        event_id = require_id(event_id, "event_id")
        if parent_id is not None:
            parent_id = require_id(parent_id, "parent_id")

        def insert_all(conn) -> List[Category]:
            _check_event(conn, event_id)
            depth = 0
            if parent_id is not None:
                _check_parent(conn, parent_id, event_id)
                depth = self._depth_of(conn, parent_id) + 1
            created = []
            _insert_nodes(conn, nodes, event_id, parent_id, created, depth=depth,
                          max_depth=self.max_depth)
            return created

        created = self.coordinator.run_atomic(insert_all, timeout=timeout)
        logger.debug(f"Created {len(created)} categories in event {event_id}")
        return created

    def find(self, category_id, timeout: Optional[float] = None) -> Optional[Category]:
        """Get a single category by ID.

        Returns:
            Category object if found, None otherwise.
        """
        category_id = require_id(category_id, "category_id")
        with self.coordinator.read(timeout=timeout) as conn:
            return _find_category(conn, category_id)

    def fetch_subtree(self, category_id, timeout: Optional[float] = None) -> List[Category]:
        """Get a category and all of its descendants.

        Depth on each result is relative to the requested category (0).

        Returns:
            Categories ordered by (depth, id), root first. Empty if the
            category does not exist.
        """
        category_id = require_id(category_id, "category_id")
        with self.coordinator.read(timeout=timeout) as conn:
            rows = conn.execute(
                _SUBTREE_SQL, {"root_id": category_id, "max_depth": self.max_depth}
            ).fetchall()

        return self._rows_within_cap(rows, f"subtree of category {category_id}")

    def fetch_roots(self, event_id, timeout: Optional[float] = None) -> List[Category]:
        """Get the root categories of an event, ordered by id.

        Raises:
            NotFoundError: If the event does not exist.
        """
        event_id = require_id(event_id, "event_id")
        with self.coordinator.read(timeout=timeout) as conn:
            _require_event(conn, event_id)
            rows = conn.execute(
                f"{_CATEGORY_SELECT} WHERE event_id = ? AND parent_id IS NULL ORDER BY id",
                (event_id,),
            ).fetchall()
            return [_row_to_category(row) for row in rows]

    def fetch_full_tree(self, event_id, timeout: Optional[float] = None) -> List[Category]:
        """Get every category of an event annotated with its depth.

        Roots have depth 0. The flat result is ordered by (depth, id);
        use tree.build_forest to nest it.

        Raises:
            NotFoundError: If the event does not exist.
        """
        event_id = require_id(event_id, "event_id")
        with self.coordinator.read(timeout=timeout) as conn:
            _require_event(conn, event_id)
            rows = conn.execute(
                _FULL_TREE_SQL, {"event_id": event_id, "max_depth": self.max_depth}
            ).fetchall()

        return self._rows_within_cap(rows, f"tree of event {event_id}")

    def delete(self, category_id, timeout: Optional[float] = None) -> None:
        """Delete a category together with its entire subtree.

        Raises:
            NotFoundError: If the category does not exist.
        """
        category_id = require_id(category_id, "category_id")

        def remove(conn) -> int:
            if _find_category(conn, category_id) is None:
                raise NotFoundError("category", category_id)
            params = {"root_id": category_id, "max_depth": self.max_depth}
            count = conn.execute(
                f"SELECT COUNT(*) FROM ({_SUBTREE_SQL})", params
            ).fetchone()[0]
            # Rows past the depth cap are removed by the ON DELETE CASCADE
            conn.execute(
                f"DELETE FROM categories WHERE id IN (SELECT id FROM ({_SUBTREE_SQL}))",
                params,
            )
            return count

        removed = self.coordinator.run_atomic(remove, timeout=timeout)
        logger.debug(f"Deleted category {category_id} and {removed - 1} descendant(s)")

    def move_subtree(
        self, category_id, new_parent_id=None, timeout: Optional[float] = None
    ) -> Category:
        """Re-parent a category; its descendants move with it.

        Args:
            category_id: The category to move.
            new_parent_id: New parent category ID, or None to make it a root.
            timeout: Optional deadline in seconds.

        Returns:
            The moved Category with its new parent_id.

        Raises:
            NotFoundError: If the category does not exist.
            InvalidReference: If the new parent does not exist or belongs to
                a different event.
            InvariantViolation: If the new parent is the category itself or
                one of its descendants, or the moved subtree would end up
                deeper than the maximum depth.
        """
        category_id = require_id(category_id, "category_id")
        if new_parent_id is not None:
            new_parent_id = require_id(new_parent_id, "new_parent_id")

        def move(conn) -> Category:
            category = _find_category(conn, category_id)
            if category is None:
                raise NotFoundError("category", category_id)

            if new_parent_id is not None:
                if new_parent_id == category_id:
                    raise InvariantViolation(
                        f"Category {category_id} cannot be its own parent"
                    )
                _check_parent(conn, new_parent_id, category.event_id)
                parent_depth = self._check_not_ancestor(conn, category_id, new_parent_id)
                height = self._height_of(conn, category_id)
                if parent_depth + 1 + height > self.max_depth:
                    raise InvariantViolation(
                        f"Moving category {category_id} under {new_parent_id} would "
                        f"exceed the maximum depth of {self.max_depth}"
                    )

            conn.execute(
                "UPDATE categories SET parent_id = ? WHERE id = ?",
                (new_parent_id, category_id),
            )
            category.parent_id = new_parent_id
            return category

        category = self.coordinator.run_atomic(move, timeout=timeout)
        logger.debug(f"Moved category {category_id} under parent {new_parent_id}")
        return category

    def _check_not_ancestor(self, conn, category_id: int, new_parent_id: int) -> int:
        """Reject a move that would put a category beneath itself.

        Returns:
            Depth of the new parent.
        """
        chain = self._ancestors(conn, new_parent_id)
        if any(row[0] == category_id for row in chain):
            raise InvariantViolation(
                f"Category {new_parent_id} is a descendant of category "
                f"{category_id}; moving would create a cycle"
            )
        return self._chain_depth(chain, new_parent_id)

    def _depth_of(self, conn, category_id: int) -> int:
        return self._chain_depth(self._ancestors(conn, category_id), category_id)

    def _ancestors(self, conn, category_id: int):
        return conn.execute(
            _ANCESTORS_SQL, {"start_id": category_id, "max_depth": self.max_depth}
        ).fetchall()

    def _chain_depth(self, chain, category_id: int) -> int:
        if chain and chain[-1][1] is not None:
            # Walk stopped before reaching a root
            raise InvariantViolation(
                f"Ancestors of category {category_id} exceed the maximum "
                f"depth of {self.max_depth}"
            )
        return len(chain) - 1

    def _height_of(self, conn, category_id: int) -> int:
        """Levels below a category, 0 for a leaf."""
        row = conn.execute(
            _SUBTREE_SQL, {"root_id": category_id, "max_depth": self.max_depth}
        ).fetchone()
        return row[5]

    def _rows_within_cap(self, rows, what: str) -> List[Category]:
        # Column 5 is the deepest level the recursion reached
        if rows and rows[0][5] > self.max_depth:
            logger.warning(f"Traversal of {what} stopped at depth limit {self.max_depth}")
        return [_row_to_category(row) for row in rows if row[4] <= self.max_depth]


def _row_to_category(row) -> Category:
    depth = row[4] if len(row) > 4 else None
    return Category(
        id=row[0], label=row[1], event_id=row[2], parent_id=row[3], depth=depth
    )


def _find_category(conn, category_id: int) -> Optional[Category]:
    row = conn.execute(f"{_CATEGORY_SELECT} WHERE id = ?", (category_id,)).fetchone()
    return _row_to_category(row) if row else None


def _event_exists(conn, event_id: int) -> bool:
    return conn.execute("SELECT 1 FROM events WHERE id = ?", (event_id,)).fetchone() is not None


def _check_event(conn, event_id: int) -> None:
    """Reject writes that reference an unknown event."""
    if not _event_exists(conn, event_id):
        raise ValidationError(f"Event with ID {event_id} does not exist", field_name="event_id")


def _require_event(conn, event_id: int) -> None:
    """Reject reads scoped to an unknown event."""
    if not _event_exists(conn, event_id):
        raise NotFoundError("event", event_id)


def _check_parent(conn, parent_id: int, event_id: int) -> None:
    parent = _find_category(conn, parent_id)
    if parent is None:
        raise InvalidReference(
            f"Parent category with ID {parent_id} does not exist",
            field_name="parent_id",
        )
    if parent.event_id != event_id:
        raise InvalidReference(
            f"Parent category {parent_id} belongs to event {parent.event_id}, "
            f"not event {event_id}",
            field_name="parent_id",
        )


def _insert_category(conn, label: str, event_id: int, parent_id: Optional[int]) -> Category:
    cursor = conn.execute(
        "INSERT INTO categories (label, event_id, parent_id) VALUES (?, ?, ?)",
        (label, event_id, parent_id),
    )
    return Category(id=cursor.lastrowid, label=label, event_id=event_id, parent_id=parent_id)


def _insert_nodes(conn, nodes, event_id, parent_id, created, depth, max_depth) -> None:
    if isinstance(nodes, (str, bytes, Mapping)) or not isinstance(nodes, Sequence):
        raise ValidationError("children must be a list of nodes", field_name="children")

    for node in nodes:
        if not isinstance(node, Mapping):
            raise ValidationError(f"Category node must be a mapping, got {node!r}",
                                  field_name="children")
        label = require_text(node.get("label"), "label")
        if depth > max_depth:
            raise InvariantViolation(
                f"Category {label!r} would be deeper than the maximum depth of {max_depth}"
            )
        category = _insert_category(conn, label, event_id, parent_id)
        created.append(category)
        _insert_nodes(conn, node.get("children") or [], event_id, category.id,
                      created, depth + 1, max_depth)

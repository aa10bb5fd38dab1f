"""Base services container for dependency injection."""

from config import Config
from db.atomic import TransactionCoordinator
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    Each container owns its own database manager and coordinator, so several
    containers (for example one per test) can run side by side.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is
            only used for non-database settings.
    """

    def __init__(self, config: Config, db_manager=None):
        """Initialize services with configuration.

        Args:
            config: Config object containing application configuration.
            db_manager: Optional database manager for dependency injection (testing).
                       If None, creates DatabaseManager from config.
        """
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)
        self.coordinator = TransactionCoordinator(self.db_manager)

        # Lazy import to avoid circular dependencies
        from services.events import EventService
        from services.categories import CategoryService

        self.events = EventService(self.coordinator)
        self.categories = CategoryService(
            self.coordinator, max_depth=config.max_tree_depth
        )

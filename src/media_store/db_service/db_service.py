from __future__ import annotations

from sqlalchemy.orm import Session

from ..common.events import EventDispatcher
from .media import MediaDBService, ThumbnailDBService


class DBService:
    """Facade providing access to all table services.

    Each service manages its own sessions internally for multi-process safety.
    """

    def __init__(self, event_dispatcher: EventDispatcher | None = None, db: Session | None = None):
        """Initialize all table services.

        Args:
            event_dispatcher: Sink shared by all services for write events
            db: Optional DB session to share across services (for testing/transactions)
        """
        from . import database

        if db is None and database.SessionLocal is None:
            database.init_db()

        self.event_dispatcher: EventDispatcher = event_dispatcher or EventDispatcher()
        self.media = MediaDBService(event_dispatcher=self.event_dispatcher, db=db)
        self.thumbnail = ThumbnailDBService(event_dispatcher=self.event_dispatcher, db=db)

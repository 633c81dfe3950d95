# floortrack/services/events.py
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List

from sqlalchemy.orm import Session

logger = logging.getLogger("floortrack.events")


@dataclass(frozen=True)
class EntryRejected:
    entry_id: int
    technician_id: int
    supervisor_id: int
    entry_date: date


Handler = Callable[[object, Session], None]


class EventDispatcher:
    """
    Post-commit hook bus. publish() is called after the triggering change has
    been committed; each subscriber then runs in its own transaction on the
    same session. A failing subscriber is rolled back and logged, it never
    reaches the caller.
    """
    def __init__(self):
        self._handlers: Dict[type, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler):
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Handler):
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    def publish(self, event, db: Session) -> int:
        """Runs every subscriber for the event. Returns how many succeeded."""
        succeeded = 0
        for handler in list(self._handlers[type(event)]):
            try:
                handler(event, db)
                db.commit()
                succeeded += 1
            except Exception:
                db.rollback()
                logger.exception("Subscriber %s failed for %s", getattr(handler, "__name__", handler), event)
        return succeeded


dispatcher = EventDispatcher()

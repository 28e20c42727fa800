from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from ..db_service.schemas import WriteEvent

Listener = Callable[["WriteEvent"], None]

ALL_ENTITIES = "*"


class EventDispatcher:
    """In-process event sink for repository write events.

    Listeners are registered per entity name; ALL_ENTITIES receives every event.
    Listener errors propagate to the code that dispatched the event.
    """

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def add_listener(self, entity: str, listener: Listener) -> None:
        self._listeners[entity].append(listener)

    def remove_listener(self, entity: str, listener: Listener) -> None:
        if listener in self._listeners.get(entity, []):
            self._listeners[entity].remove(listener)

    def dispatch(self, event: WriteEvent) -> WriteEvent:
        listeners = [*self._listeners.get(event.entity, []), *self._listeners.get(ALL_ENTITIES, [])]
        logger.debug(
            f"Dispatching {type(event).__name__} for '{event.entity}' to {len(listeners)} listener(s)"
        )
        for listener in listeners:
            listener(event)
        return event

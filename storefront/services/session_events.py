# storefront/services/session_events.py
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, DefaultDict, List, Type

from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LoggedIn:
    user_id: str
    guest_items: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class LoggedOut:
    user_id: str


class SessionEventBus:
    """
    Minimal in-process observer for session transitions.

    Handlers run synchronously in subscription order; a failing handler is
    logged and re-raised so the caller sees the failure.
    """

    def __init__(self):
        self._handlers: DefaultDict[Type, List[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, event_type: Type, handler: Callable[[Any], None]) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event: Any) -> None:
        for handler in list(self._handlers[type(event)]):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Session handler {getattr(handler, '__qualname__', handler)} failed: {e}")
                raise

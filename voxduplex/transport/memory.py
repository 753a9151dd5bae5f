"""In-process transport: handlers run synchronously inside ``emit``."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from voxduplex.transport.base import Handler, Transport

logger = logging.getLogger(__name__)


class InMemoryTransport(Transport):
    """
    Loopback transport for tests, demos and in-process backends.

    Every emitted message is also recorded in ``sent`` so tests can assert
    on outbound traffic without subscribing.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self.sent: list[tuple[str, Any]] = []

    def emit(self, event: str, payload: Any = None) -> None:
        self.sent.append((event, payload))
        for handler in list(self._handlers.get(event, ())):
            handler(payload)

    def on(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if not handlers:
            return
        self._handlers[event] = [h for h in handlers if h != handler]

    def handler_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._handlers.get(event, ()))
        return sum(len(h) for h in self._handlers.values())

    def sent_on(self, event: str) -> list[Any]:
        return [payload for name, payload in self.sent if name == event]

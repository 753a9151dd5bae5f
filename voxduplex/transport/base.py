"""
Transport protocol.

The transport is a duplex, named-event message channel owned by someone
else. This core only emits utterances on it and listens to a handful of
inbound events; connection setup, wire format and retries are not its
business.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


@runtime_checkable
class Transport(Protocol):
    """Protocol for event transports."""

    def emit(self, event: str, payload: Any = None) -> None:
        """Send one message on a named event."""
        ...

    def on(self, event: str, handler: Handler) -> None:
        """Subscribe ``handler`` to a named event."""
        ...

    def off(self, event: str, handler: Handler) -> None:
        """Remove a subscription made with ``on``."""
        ...


class Subscriptions:
    """
    Scoped set of transport subscriptions.

    Every ``subscribe`` is paired with an ``off`` when the scope closes, in
    reverse order. Closing twice is harmless.

    Usage:
        with Subscriptions(transport) as subs:
            subs.subscribe("partial_text", on_caption)
            ...
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._pairs: list[tuple[str, Handler]] = []

    def subscribe(self, event: str, handler: Handler) -> Subscriptions:
        self._transport.on(event, handler)
        self._pairs.append((event, handler))
        return self

    def __len__(self) -> int:
        return len(self._pairs)

    @property
    def events(self) -> list[str]:
        return [event for event, _ in self._pairs]

    def close(self) -> None:
        while self._pairs:
            event, handler = self._pairs.pop()
            try:
                self._transport.off(event, handler)
            except Exception as e:
                logger.warning(f"Failed to unsubscribe from {event!r}: {e}")

    def __enter__(self) -> Subscriptions:
        return self

    def __exit__(self, *args) -> None:
        self.close()

"""Transport collaborator interface."""

from voxduplex.transport.base import Handler, Subscriptions, Transport
from voxduplex.transport.memory import InMemoryTransport

__all__ = [
    "Handler",
    "Subscriptions",
    "Transport",
    "InMemoryTransport",
]

"""
Outbound adapters.

Adapters turn a finalized Utterance into the payload the transport
expects. The core does not care about wire formats; it hands the
utterance to whichever adapter the session was configured with.
"""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, TypeVar

from voxduplex.core.messages import Utterance


T = TypeVar("T")


class Adapter(ABC, Generic[T]):
    """
    Abstract base for outbound adapters.

    Usage:
        class MyAdapter(Adapter[MyPayload]):
            def transform(self, utterance: Utterance) -> MyPayload:
                return MyPayload(...)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique adapter name."""
        ...

    @abstractmethod
    def transform(self, utterance: Utterance) -> T:
        """Transform an Utterance to the target payload."""
        ...


class RawPCMAdapter(Adapter[bytes]):
    """Raw little-endian mono PCM16 bytes, sample count x 2 bytes."""

    @property
    def name(self) -> str:
        return "raw_pcm"

    def transform(self, utterance: Utterance) -> bytes:
        return utterance.to_bytes()


class Base64PCMAdapter(Adapter[str]):
    """The same PCM16 bytes, base64 encoded, for text-only transports."""

    @property
    def name(self) -> str:
        return "base64_pcm"

    def transform(self, utterance: Utterance) -> str:
        return base64.b64encode(utterance.to_bytes()).decode("ascii")


class DictAdapter(Adapter[dict[str, Any]]):
    """
    JSON-friendly envelope with metadata.

    Useful when the backend wants to know the rate and timing without
    sniffing the audio.
    """

    @property
    def name(self) -> str:
        return "dict"

    def transform(self, utterance: Utterance) -> dict[str, Any]:
        return {
            "utterance_id": utterance.utterance_id,
            "sample_rate": utterance.sample_rate,
            "sample_count": utterance.sample_count,
            "started_ms": utterance.started_ms,
            "ended_ms": utterance.ended_ms,
            "pcm": base64.b64encode(utterance.to_bytes()).decode("ascii"),
        }


class CallbackAdapter(Adapter[Any]):
    """Delegates to a plain function."""

    def __init__(self, callback: Callable[[Utterance], Any]) -> None:
        self._callback = callback

    @property
    def name(self) -> str:
        return "callback"

    def transform(self, utterance: Utterance) -> Any:
        return self._callback(utterance)

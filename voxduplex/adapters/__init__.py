"""Outbound payload adapters."""

from voxduplex.adapters.base import (
    Adapter,
    RawPCMAdapter,
    Base64PCMAdapter,
    DictAdapter,
    CallbackAdapter,
)

__all__ = [
    "Adapter",
    "RawPCMAdapter",
    "Base64PCMAdapter",
    "DictAdapter",
    "CallbackAdapter",
]

"""
Error taxonomy.

Only genuinely exceptional situations raise. Silence detection and
hangover expiry are ordinary state transitions, not errors.
"""

from __future__ import annotations


class VoxDuplexError(Exception):
    """Base class for all voxduplex errors."""


class DeviceUnavailable(VoxDuplexError):
    """Capture device missing or microphone permission denied.

    Fatal to ``SessionCoordinator.start()``; never retried automatically.
    """


class PlaybackRejected(VoxDuplexError):
    """Output device refused to start a playback.

    Non-fatal: the playback simply does not occur.
    """


class EmptySegmentDiscarded(VoxDuplexError):
    """Internal guard: a segment was finalized with no audio in it."""

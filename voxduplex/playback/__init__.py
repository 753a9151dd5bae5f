"""Synthesized-speech playback and interruption."""

from voxduplex.playback.clip import AudioClip
from voxduplex.playback.controller import (
    OutputDevice,
    PlaybackController,
    PlaybackSession,
    PlaybackState,
)
from voxduplex.playback.speaker import SoundDeviceOutput

__all__ = [
    "AudioClip",
    "OutputDevice",
    "PlaybackController",
    "PlaybackSession",
    "PlaybackState",
    "SoundDeviceOutput",
]

"""Capture devices for the voxduplex pipeline."""

from voxduplex.sources.synthetic import ArrayCapture, constant, sine, noise, silence, frames_from
from voxduplex.sources.microphone import MicrophoneCapture

__all__ = [
    "ArrayCapture",
    "MicrophoneCapture",
    "constant",
    "sine",
    "noise",
    "silence",
    "frames_from",
]

"""Shared fixtures and fakes."""

import numpy as np
import pytest

from voxduplex.errors import PlaybackRejected
from voxduplex.playback.clip import AudioClip
from voxduplex.sources.synthetic import sine


class FakeHandle:
    def __init__(self, clip):
        self.clip = clip
        self.playing = True
        self.end_callback = None


class FakeOutputDevice:
    """Output device that records calls; ``finish`` simulates a natural end."""

    def __init__(self, reject=False):
        self.reject = reject
        self.played = []
        self.stopped = []

    def play(self, clip):
        if self.reject:
            raise PlaybackRejected("autoplay blocked until user gesture")
        handle = FakeHandle(clip)
        self.played.append(handle)
        return handle

    def stop(self, handle):
        handle.playing = False
        self.stopped.append(handle)

    def on_natural_end(self, handle, callback):
        handle.end_callback = callback

    def finish(self, handle):
        handle.playing = False
        if handle.end_callback is not None:
            handle.end_callback()


@pytest.fixture
def output_device():
    return FakeOutputDevice()


@pytest.fixture
def wav_payload():
    """Base64 WAV, the form synthesized replies arrive in."""
    return AudioClip(samples=sine(amplitude=0.3, duration_ms=200), sample_rate=16000).to_base64()


@pytest.fixture
def voiced_frame():
    def make(level=0.02, size=320):
        signs = np.where(np.arange(size) % 2 == 0, 1.0, -1.0)
        return (level * signs).astype(np.float32)
    return make


@pytest.fixture
def rejecting_device():
    return FakeOutputDevice(reject=True)

"""
Speaker output via sounddevice.

Requires: pip install sounddevice

Each playback gets its own OutputStream, so stopping one never disturbs
another. PortAudio calls back from its own thread; the controller's
identity check absorbs any end notification that arrives late.
"""

from __future__ import annotations

import logging
from typing import Callable

import numpy as np

from voxduplex.errors import PlaybackRejected
from voxduplex.playback.clip import AudioClip

logger = logging.getLogger(__name__)


def _import_sounddevice():
    try:
        import sounddevice as sd
    except ImportError:
        raise ImportError(
            "sounddevice is required for speaker output.\n"
            "Install with: pip install sounddevice"
        )
    return sd


class _Playback:
    """Feeds one clip into an OutputStream and reports how it ended."""

    def __init__(self, clip: AudioClip, sd) -> None:
        self._sd = sd
        samples = clip.samples
        self.data = samples.reshape(-1, 1) if samples.ndim == 1 else samples
        self.position = 0
        self.stream = None
        self.stopped = False
        self.end_callbacks: list[Callable[[], None]] = []
        self.finished = False

    def callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug(f"Output status: {status}")
        chunk = self.data[self.position:self.position + frames]
        outdata[:len(chunk)] = chunk
        outdata[len(chunk):] = 0
        self.position += len(chunk)
        if len(chunk) < frames:
            raise self._sd.CallbackStop()

    def on_finished(self) -> None:
        self.finished = True
        if self.stopped:
            return
        if self.stream is not None:
            self.stream.close()
            self.stream = None
        for callback in self.end_callbacks:
            callback()


class SoundDeviceOutput:
    """
    OutputDevice backed by sounddevice.

    ``play`` raises PlaybackRejected when PortAudio refuses to open or
    start the stream (no device, device busy, unsupported rate).
    """

    def __init__(self, device: int | str | None = None, blocksize: int = 1024) -> None:
        self._device = device
        self._blocksize = blocksize

    def play(self, clip: AudioClip) -> _Playback:
        sd = _import_sounddevice()
        playback = _Playback(clip, sd)
        try:
            stream = sd.OutputStream(
                samplerate=clip.sample_rate,
                channels=clip.channels,
                dtype=np.float32,
                blocksize=self._blocksize,
                device=self._device,
                callback=playback.callback,
                finished_callback=playback.on_finished,
            )
            stream.start()
        except sd.PortAudioError as e:
            raise PlaybackRejected(f"output device refused playback: {e}") from e
        if playback.finished:
            stream.close()
        else:
            playback.stream = stream
        return playback

    def stop(self, handle: _Playback) -> None:
        if handle is None or handle.stream is None:
            return
        handle.stopped = True
        handle.stream.abort()
        handle.stream.close()
        handle.stream = None

    def on_natural_end(self, handle: _Playback, callback: Callable[[], None]) -> None:
        if handle.finished and not handle.stopped:
            callback()
            return
        handle.end_callbacks.append(callback)

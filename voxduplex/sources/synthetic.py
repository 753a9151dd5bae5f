"""Synthetic capture and signal generators for tests and demos."""

from __future__ import annotations

from typing import Any, Iterator
import numpy as np
from numpy.typing import ArrayLike, NDArray

from voxduplex.core.stream import AudioConfig, AudioFrame, CaptureDevice, FrameCallback
from voxduplex.errors import DeviceUnavailable


class ArrayCapture(CaptureDevice):
    """
    CaptureDevice fed from numpy arrays.

    ``push`` delivers frames synchronously to the registered callback, the
    way a real device would from its audio thread. Pushing while the device
    is not acquired delivers nothing.

    Set ``available=False`` to simulate a missing or denied microphone.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        frame_size: int = 320,
        available: bool = True,
    ) -> None:
        self._config = AudioConfig.for_block(sample_rate, frame_size)
        self._frame_size = frame_size
        self._available = available

        self._callback: FrameCallback | None = None
        self._handle: object | None = None
        self._pending = np.array([], dtype=np.float32)
        self._frame_id = 0
        self._samples_seen = 0
        self.acquire_count = 0
        self.release_count = 0

    @property
    def config(self) -> AudioConfig:
        return self._config

    @property
    def frame_size(self) -> int:
        return self._frame_size

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def on_frame(self, callback: FrameCallback | None) -> None:
        self._callback = callback

    def acquire(self) -> Any:
        if not self._available:
            raise DeviceUnavailable("no capture device available")
        if self._handle is None:
            self._handle = object()
            self._pending = np.array([], dtype=np.float32)
            self.acquire_count += 1
        return self._handle

    def release(self, handle: Any) -> None:
        if handle is not None and handle is self._handle:
            self._handle = None
            self.release_count += 1

    def push(self, samples: ArrayLike) -> int:
        """Split samples into frames and deliver each complete one. Returns frames delivered."""
        data = np.concatenate([self._pending, np.asarray(samples, dtype=np.float32)])
        delivered = 0
        while len(data) >= self._frame_size:
            self.push_frame(data[:self._frame_size])
            data = data[self._frame_size:]
            delivered += 1
        self._pending = data
        return delivered

    def push_frame(self, samples: ArrayLike) -> AudioFrame | None:
        """Deliver exactly one frame, whatever its length."""
        if self._handle is None:
            return None
        frame = AudioFrame(
            data=np.asarray(samples, dtype=np.float32).copy(),
            frame_id=self._frame_id,
            timestamp_ms=int(self._samples_seen * 1000 / self._config.sample_rate),
            config=self._config,
        )
        self._frame_id += 1
        self._samples_seen += len(frame.data)
        if self._callback is not None:
            self._callback(frame)
        return frame


def constant(level: float, samples: int) -> NDArray[np.float32]:
    """Square wave alternating +level/-level: RMS is exactly ``abs(level)``."""
    signs = np.where(np.arange(samples) % 2 == 0, 1.0, -1.0)
    return (level * signs).astype(np.float32)


def sine(
    frequency_hz: float = 220.0,
    amplitude: float = 0.5,
    duration_ms: int = 1000,
    sample_rate: int = 16000,
) -> NDArray[np.float32]:
    total_samples = int(sample_rate * duration_ms / 1000)
    t = np.arange(total_samples) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency_hz * t)).astype(np.float32)


def noise(
    amplitude: float = 0.1,
    duration_ms: int = 1000,
    sample_rate: int = 16000,
    seed: int | None = None,
) -> NDArray[np.float32]:
    rng = np.random.default_rng(seed)
    total_samples = int(sample_rate * duration_ms / 1000)
    return (amplitude * rng.standard_normal(total_samples)).astype(np.float32)


def silence(duration_ms: int = 1000, sample_rate: int = 16000) -> NDArray[np.float32]:
    return np.zeros(int(sample_rate * duration_ms / 1000), dtype=np.float32)


def frames_from(
    data: ArrayLike,
    sample_rate: int = 16000,
    frame_size: int = 320,
) -> Iterator[AudioFrame]:
    """Slice an array into consecutive frames (trailing partial frame dropped)."""
    data = np.asarray(data, dtype=np.float32)
    config = AudioConfig.for_block(sample_rate, frame_size)
    for frame_id, start in enumerate(range(0, len(data) - frame_size + 1, frame_size)):
        yield AudioFrame(
            data=data[start:start + frame_size],
            frame_id=frame_id,
            timestamp_ms=int(start * 1000 / sample_rate),
            config=config,
        )

"""
Audio stream abstractions.

Frame-based processing: the capture device delivers fixed-size chunks at a
fixed cadence and pushes them through a callback. Nothing here queues
frames; the device paces the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, runtime_checkable
import numpy as np
from numpy.typing import NDArray

from voxduplex.analyzers.energy import rms


@dataclass(frozen=True, slots=True)
class AudioConfig:
    """Audio stream configuration."""
    sample_rate: int = 16000
    channels: int = 1
    frame_duration_ms: int = 20
    dtype: str = "float32"

    @property
    def frame_size(self) -> int:
        """Samples per frame."""
        return int(self.sample_rate * self.frame_duration_ms / 1000)

    @property
    def bytes_per_frame(self) -> int:
        """Bytes per frame once encoded as 16-bit PCM."""
        return self.frame_size * self.channels * 2

    @classmethod
    def for_block(cls, sample_rate: int, block_size: int, channels: int = 1) -> AudioConfig:
        """Config for a device that delivers ``block_size`` samples per callback."""
        return cls(
            sample_rate=sample_rate,
            channels=channels,
            frame_duration_ms=max(1, round(block_size * 1000 / sample_rate)),
        )


@dataclass(frozen=True, slots=True)
class AudioFrame:
    """
    Single captured audio frame. Immutable once produced.

    Attributes:
        data: Mono samples as float32 numpy array, normalized to [-1.0, 1.0]
        frame_id: Monotonically increasing frame identifier
        timestamp_ms: Capture time in milliseconds from stream start
        config: Audio configuration of the capture stream
    """
    data: NDArray[np.float32]
    frame_id: int
    timestamp_ms: int
    config: AudioConfig

    @property
    def sample_rate(self) -> int:
        return self.config.sample_rate

    @property
    def duration_ms(self) -> float:
        """Actual duration of the samples in this frame."""
        return len(self.data) * 1000 / self.config.sample_rate

    @property
    def rms(self) -> float:
        """Root mean square energy."""
        return rms(self.data)

    @classmethod
    def from_bytes(
        cls,
        raw: bytes,
        frame_id: int,
        timestamp_ms: int,
        config: AudioConfig,
    ) -> AudioFrame:
        """Create frame from raw little-endian PCM16 bytes."""
        samples = np.frombuffer(raw, dtype="<i2").astype(np.float32)
        samples /= 32768.0
        return cls(data=samples, frame_id=frame_id, timestamp_ms=timestamp_ms, config=config)

    @classmethod
    def silence(cls, frame_id: int, timestamp_ms: int, config: AudioConfig) -> AudioFrame:
        """Create a silent frame."""
        return cls(
            data=np.zeros(config.frame_size, dtype=np.float32),
            frame_id=frame_id,
            timestamp_ms=timestamp_ms,
            config=config,
        )


FrameCallback = Callable[[AudioFrame], None]


@runtime_checkable
class CaptureDevice(Protocol):
    """
    Protocol for capture devices.

    ``acquire`` raises ``DeviceUnavailable`` when no device exists or
    permission is denied. Frames are pushed to the registered callback
    from the device's own cadence.
    """

    def acquire(self) -> Any:
        """Open the device and return an opaque stream handle."""
        ...

    def on_frame(self, callback: FrameCallback | None) -> None:
        """Register (or clear, with None) the frame callback."""
        ...

    def release(self, handle: Any) -> None:
        """Close the stream opened by ``acquire``."""
        ...

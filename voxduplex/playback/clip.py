"""
Synthesized-speech payloads.

Inbound speech arrives as a WAV container, usually base64 encoded (possibly
as a ``data:audio/wav;base64,`` URL). It is decoded exactly once, into an
AudioClip, when a playback session is created.
"""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.io import wavfile

from voxduplex.codec.pcm import float_to_pcm16, pcm16_to_float


@dataclass(frozen=True, slots=True)
class AudioClip:
    """Decoded audio: float32 samples in [-1, 1], shape (n,) or (n, channels)."""
    samples: NDArray[np.float32]
    sample_rate: int

    @property
    def channels(self) -> int:
        return 1 if self.samples.ndim == 1 else self.samples.shape[1]

    @property
    def frame_count(self) -> int:
        return self.samples.shape[0]

    @property
    def duration_ms(self) -> float:
        return self.frame_count * 1000 / self.sample_rate

    @classmethod
    def decode(cls, payload: AudioClip | str | bytes) -> AudioClip:
        """
        Decode any supported payload form.

        Raises ValueError for anything that is not a readable WAV.
        """
        if isinstance(payload, AudioClip):
            return payload
        if isinstance(payload, str):
            return cls.from_base64(payload)
        if isinstance(payload, (bytes, bytearray, memoryview)):
            return cls.from_wav_bytes(bytes(payload))
        raise ValueError(f"unsupported audio payload type: {type(payload).__name__}")

    @classmethod
    def from_base64(cls, text: str) -> AudioClip:
        if text.startswith("data:"):
            _, _, text = text.partition(",")
        raw = base64.b64decode(text, validate=True)
        return cls.from_wav_bytes(raw)

    @classmethod
    def from_wav_bytes(cls, raw: bytes) -> AudioClip:
        if not raw:
            raise ValueError("empty audio payload")
        sample_rate, data = wavfile.read(io.BytesIO(raw))
        return cls(samples=_normalize(data), sample_rate=int(sample_rate))

    @classmethod
    def from_pcm16(cls, samples: NDArray[np.int16], sample_rate: int) -> AudioClip:
        return cls(samples=pcm16_to_float(samples), sample_rate=sample_rate)

    def to_wav_bytes(self) -> bytes:
        """Encode as 16-bit PCM WAV."""
        buffer = io.BytesIO()
        wavfile.write(buffer, self.sample_rate, float_to_pcm16(self.samples))
        return buffer.getvalue()

    def to_base64(self) -> str:
        return base64.b64encode(self.to_wav_bytes()).decode("ascii")


def _normalize(data: np.ndarray) -> NDArray[np.float32]:
    """Map any wavfile sample type onto float32 in [-1, 1]."""
    if data.dtype == np.uint8:
        return ((data.astype(np.float32) - 128.0) / 128.0).astype(np.float32)
    if np.issubdtype(data.dtype, np.integer):
        scale = float(2 ** (8 * data.dtype.itemsize - 1))
        return (data.astype(np.float64) / scale).astype(np.float32)
    return np.clip(data.astype(np.float32), -1.0, 1.0)

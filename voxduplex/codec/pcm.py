"""
Fixed-point 16-bit PCM encoding.

Conversion is asymmetric so that both ends of [-1.0, 1.0] land exactly on
the int16 limits: negatives scale by 32768, everything else by 32767.
Out-of-range input is clamped, never rejected.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
from numpy.typing import ArrayLike, NDArray


def float_to_pcm16(samples: ArrayLike) -> NDArray[np.int16]:
    """Clamp normalized floats to [-1, 1] and convert to int16 (truncating)."""
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
    return np.trunc(scaled).astype(np.int16)


def merge_pcm16(chunks: Iterable[NDArray[np.int16]]) -> NDArray[np.int16]:
    """Concatenate chunks in order into one contiguous buffer."""
    chunks = list(chunks)
    if not chunks:
        return np.array([], dtype=np.int16)
    return np.concatenate(chunks).astype(np.int16, copy=False)


def pcm16_to_bytes(samples: ArrayLike) -> bytes:
    """Serialize as little-endian mono PCM, 2 bytes per sample."""
    return np.asarray(samples, dtype="<i2").tobytes()


def pcm16_to_float(data: bytes | ArrayLike) -> NDArray[np.float32]:
    """Inverse conversion: int16 samples (or their LE bytes) to [-1, 1) floats."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        samples = np.frombuffer(data, dtype="<i2")
    else:
        samples = np.asarray(data, dtype=np.int16)
    out = samples.astype(np.float32)
    out /= 32768.0
    return out

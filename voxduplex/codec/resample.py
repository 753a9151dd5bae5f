"""
Sample-rate conversion.

Linear decimation: every output sample is the mean of the input samples it
covers, which doubles as a crude anti-aliasing low-pass filter. Good enough
for speech headed to a recognizer, not for music.

Upsampling is not a supported case. Asking for it degenerates to picking
the single overlapping input sample per output index (a sample-and-hold),
which is accepted as-is.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray


def resample(samples: ArrayLike, src_rate: int, out_rate: int) -> NDArray[np.float32]:
    """
    Convert a frame from ``src_rate`` to ``out_rate``.

    Output sample ``i`` averages input indices
    ``[floor(i * ratio), floor((i + 1) * ratio))`` with ``ratio = src / out``.
    An empty range falls back to the sample at ``floor(i * ratio)``, or 0.0
    when that index is past the end of the input.

    Equal rates return an unmodified copy.
    """
    data = np.asarray(samples, dtype=np.float32)
    if src_rate == out_rate:
        return data.copy()

    n = len(data)
    ratio = src_rate / out_rate
    out_length = int(n / ratio)

    idx = np.arange(out_length)
    starts = np.floor(idx * ratio).astype(np.int64)
    ends = np.floor((idx + 1) * ratio).astype(np.int64)

    starts_c = np.minimum(starts, n)
    ends_c = np.clip(ends, starts_c, n)
    counts = ends_c - starts_c

    cumulative = np.concatenate(([0.0], np.cumsum(data, dtype=np.float64)))
    sums = cumulative[ends_c] - cumulative[starts_c]

    nearest = np.zeros(out_length, dtype=np.float64)
    in_bounds = starts < n
    nearest[in_bounds] = data[starts[in_bounds]]

    out = np.where(counts > 0, sums / np.maximum(counts, 1), nearest)
    return out.astype(np.float32)

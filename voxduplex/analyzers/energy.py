"""
Energy detector.

RMS loudness is the only voice-activity signal in this core. It is
deliberately coarse: it rises with background noise, scales with raw input
gain and knows nothing about pitch or harmonicity. In exchange it costs a
few multiplications per sample and needs no model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike

from voxduplex.analyzers.base import Analyzer, AnalysisResult

if TYPE_CHECKING:
    from voxduplex.core.stream import AudioFrame
    from voxduplex.core.pipeline import PipelineState


def rms(samples: ArrayLike) -> float:
    """Root mean square: ``sqrt(sum(x^2) / n)``. An empty frame is 0.0."""
    data = np.asarray(samples, dtype=np.float64)
    if data.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(data ** 2)))


@dataclass
class EnergyResult(AnalysisResult):
    """Energy-specific result."""
    rms: float = 0.0


class EnergyDetector(Analyzer):
    """Per-frame RMS on the captured (pre-resample) samples."""

    @property
    def name(self) -> str:
        return "energy"

    def analyze(self, frame: AudioFrame, state: PipelineState) -> EnergyResult:
        level = rms(frame.data)
        return EnergyResult(
            analyzer_name=self.name,
            frame_id=frame.frame_id,
            timestamp_ms=frame.timestamp_ms,
            rms=level,
            data={"rms": level},
        )

"""Audio analyzers for feature extraction."""

from voxduplex.analyzers.base import Analyzer, AnalysisResult
from voxduplex.analyzers.energy import EnergyDetector, EnergyResult, rms

__all__ = [
    "Analyzer",
    "AnalysisResult",
    "EnergyDetector",
    "EnergyResult",
    "rms",
]

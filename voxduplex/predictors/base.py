"""
Base predictor protocol.

Predictors consume analysis results and update pipeline state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from voxduplex.core.stream import AudioFrame
    from voxduplex.core.pipeline import PipelineState
    from voxduplex.analyzers.base import AnalysisResult


@dataclass
class PredictionContext:
    """
    Context passed to predictors.

    ``samples`` is the frame already converted to the pipeline's target
    rate; ``sample_rate`` is that target rate.
    """
    frame: AudioFrame
    samples: NDArray[np.float32]
    sample_rate: int
    analysis_results: dict[str, AnalysisResult]


class Predictor(ABC):
    """
    Abstract base for predictors.

    Unlike analyzers, predictors are allowed to modify state. They keep no
    mutable state of their own: everything lives in the PipelineState
    passed in, so a reset of that state resets the predictor too.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique predictor name."""
        ...

    @abstractmethod
    def predict(self, context: PredictionContext, state: PipelineState) -> None:
        """
        Make predictions and update state.

        Args:
            context: Current prediction context
            state: Pipeline state to update
        """
        ...

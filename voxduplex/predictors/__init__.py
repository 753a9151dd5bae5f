"""Predictors that turn per-frame signals into state transitions."""

from voxduplex.predictors.base import Predictor, PredictionContext
from voxduplex.predictors.segmenter import (
    Segmenter,
    SegmenterConfig,
    SegmenterState,
    SegmentEvent,
    SpeechSegment,
)

__all__ = [
    "Predictor",
    "PredictionContext",
    "Segmenter",
    "SegmenterConfig",
    "SegmenterState",
    "SegmentEvent",
    "SpeechSegment",
]

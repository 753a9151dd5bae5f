"""
Base analyzer protocol.

Analyzers extract features from audio frames.
They do not make decisions; they produce signals.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from voxduplex.core.stream import AudioFrame
    from voxduplex.core.pipeline import PipelineState


@dataclass
class AnalysisResult:
    """Base result from an analyzer."""
    analyzer_name: str
    frame_id: int
    timestamp_ms: int
    data: dict[str, Any] = field(default_factory=dict)


class Analyzer(ABC):
    """
    Abstract base for audio analyzers.

    Analyzers are stateless feature extractors. They run inside the
    capture callback, so they must finish well within one frame period
    and must never block.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique analyzer name."""
        ...

    @abstractmethod
    def analyze(self, frame: AudioFrame, state: PipelineState) -> AnalysisResult:
        """
        Analyze a single frame.

        Args:
            frame: Current audio frame
            state: Current pipeline state (read-only)

        Returns:
            AnalysisResult with extracted features
        """
        ...

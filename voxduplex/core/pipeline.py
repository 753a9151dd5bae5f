"""
Per-frame processing pipeline.

Every captured frame runs through the same chain, inline, inside the
capture callback:

    resample -> energy -> segmenter (encode + append) -> utterance?

Frames are never queued. If processing a frame takes longer than the frame
itself lasts, the device drops audio; the pipeline logs a warning
when that happens but nothing tries to catch up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from voxduplex.analyzers.base import Analyzer, AnalysisResult
from voxduplex.analyzers.energy import EnergyDetector
from voxduplex.benchmark.metrics import FRAME_TIMER, LatencyTracker
from voxduplex.codec.resample import resample
from voxduplex.core.messages import Utterance
from voxduplex.core.stream import AudioFrame
from voxduplex.predictors.base import PredictionContext
from voxduplex.predictors.segmenter import (
    Segmenter,
    SegmenterConfig,
    SegmenterState,
    SegmentEvent,
    SpeechSegment,
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """
    Pipeline configuration.

    - target_sample_rate: rate utterances are encoded at; None keeps the
      capture rate and skips resampling
    - segmenter: VAD threshold and hangover
    - latency_budget_ms: per-frame processing budget; None uses each
      frame's own duration
    """
    target_sample_rate: int | None = 16000
    segmenter: SegmenterConfig = field(default_factory=SegmenterConfig)
    latency_budget_ms: float | None = None

    @classmethod
    def responsive(cls, target_sample_rate: int = 16000) -> PipelineConfig:
        return cls(target_sample_rate=target_sample_rate, segmenter=SegmenterConfig.responsive())


class PipelineState:
    """
    All mutable pipeline state, owned in one place.

    At most one SpeechSegment exists at a time; ``begin_segment`` refuses
    to open a second one.
    """

    def __init__(self) -> None:
        self.phase: SegmenterState = SegmenterState.IDLE
        self.segment: SpeechSegment | None = None
        self.silence_start_ms: int | None = None
        self.last_event: SegmentEvent = SegmentEvent.NONE
        self.finalized: Utterance | None = None
        self.frames_processed: int = 0
        self.utterances_emitted: int = 0
        self.segments_discarded: int = 0
        self.analysis_results: dict[str, AnalysisResult] = {}

    def begin_segment(self, timestamp_ms: int) -> SpeechSegment:
        if self.segment is not None:
            raise RuntimeError("a speech segment is already active")
        self.segment = SpeechSegment(started_ms=timestamp_ms)
        self.silence_start_ms = None
        self.phase = SegmenterState.SPEAKING
        return self.segment

    def end_segment(self) -> SpeechSegment | None:
        """Detach the active segment and return to IDLE."""
        segment = self.segment
        self.segment = None
        self.silence_start_ms = None
        self.phase = SegmenterState.IDLE
        return segment

    def take_finalized(self) -> Utterance | None:
        utterance = self.finalized
        self.finalized = None
        return utterance


class Pipeline:
    """
    Frame-to-utterance pipeline.

    Usage:
        pipeline = Pipeline(PipelineConfig(target_sample_rate=16000))
        pipeline.on_utterance(send)
        pipeline.on_speech_start(playback.on_speech_detected)

        for frame in frames:
            pipeline.process_frame(frame)
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        tracker: LatencyTracker | None = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._energy: Analyzer = EnergyDetector()
        self._segmenter = Segmenter(self._config.segmenter)
        self._tracker = tracker or LatencyTracker()
        self._state = PipelineState()
        self._utterance_callbacks: list[Callable[[Utterance], None]] = []
        self._speech_start_callbacks: list[Callable[[], None]] = []

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def tracker(self) -> LatencyTracker:
        return self._tracker

    def on_utterance(self, callback: Callable[[Utterance], None]) -> Pipeline:
        """Register a callback for finalized utterances. Returns self for chaining."""
        self._utterance_callbacks.append(callback)
        return self

    def on_speech_start(self, callback: Callable[[], None]) -> Pipeline:
        """Register a callback for the IDLE -> SPEAKING transition. Returns self for chaining."""
        self._speech_start_callbacks.append(callback)
        return self

    def process_frame(self, frame: AudioFrame) -> Utterance | None:
        """
        Process a single frame synchronously.

        Returns the finalized Utterance when this frame closed one, None otherwise.
        """
        with self._tracker.measure(FRAME_TIMER):
            out_rate = self._config.target_sample_rate or frame.sample_rate
            samples = resample(frame.data, frame.sample_rate, out_rate)

            result = self._energy.analyze(frame, self._state)
            self._state.analysis_results[result.analyzer_name] = result

            context = PredictionContext(
                frame=frame,
                samples=samples,
                sample_rate=out_rate,
                analysis_results=self._state.analysis_results,
            )
            self._segmenter.predict(context, self._state)
            self._state.frames_processed += 1

        self._check_budget(frame)

        if self._state.last_event is SegmentEvent.SPEECH_STARTED:
            logger.debug(f"Speech started at {frame.timestamp_ms}ms")
            for callback in self._speech_start_callbacks:
                callback()

        utterance = self._state.take_finalized()
        if utterance is not None:
            logger.debug(
                f"Utterance {utterance.utterance_id} finalized: "
                f"{utterance.sample_count} samples, {utterance.duration_ms:.0f}ms"
            )
            for callback in self._utterance_callbacks:
                callback(utterance)

        return utterance

    def _check_budget(self, frame: AudioFrame) -> None:
        budget_ms = self._config.latency_budget_ms or frame.duration_ms
        last_ms = self._tracker.last(FRAME_TIMER)
        if 0 < budget_ms < last_ms:
            logger.warning(
                f"Frame {frame.frame_id} took {last_ms:.2f}ms, over the "
                f"{budget_ms:.2f}ms budget; capture audio may be dropped"
            )

    def discard(self) -> int:
        """
        Drop any partially accumulated segment without emitting it.

        Returns the number of samples thrown away.
        """
        segment = self._state.end_segment()
        self._state.finalized = None
        dropped = segment.sample_count if segment is not None else 0
        if dropped:
            logger.debug(f"Discarded partial segment of {dropped} samples")
        return dropped

    def reset(self) -> None:
        """Reset pipeline state."""
        self._state = PipelineState()
        self._tracker.reset()

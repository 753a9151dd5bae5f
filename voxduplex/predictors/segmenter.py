"""
Utterance segmenter.

Endpoint detection with a fixed energy threshold and a hangover timer.
Loud background noise produces false starts and soft speech can be missed;
the payoff is near-zero cost and no model to load.

States:

    IDLE      no utterance active
    SPEAKING  an utterance is being accumulated

Transitions per frame (energy E, threshold T, hangover H):

    IDLE     E >  T                         -> SPEAKING, new segment, frame appended
    SPEAKING E >  T                         -> append frame, silence timer reset
    SPEAKING E <= T, timer not started      -> start timer, frame dropped
    SPEAKING E <= T, elapsed <  H           -> no change
    SPEAKING E <= T, elapsed >= H           -> finalize, emit utterance, IDLE

Quiet frames are never part of the transmitted utterance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from voxduplex.codec.pcm import float_to_pcm16, merge_pcm16
from voxduplex.core.messages import Utterance
from voxduplex.errors import EmptySegmentDiscarded
from voxduplex.predictors.base import Predictor, PredictionContext

if TYPE_CHECKING:
    from voxduplex.core.pipeline import PipelineState

logger = logging.getLogger(__name__)


class SegmenterState(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"


class SegmentEvent(str, Enum):
    """What a single frame did to the segmenter."""
    NONE = "none"
    SPEECH_STARTED = "speech_started"
    SPEECH_CONTINUED = "speech_continued"
    SILENCE_STARTED = "silence_started"
    SILENCE_CONTINUED = "silence_continued"
    UTTERANCE_ENDED = "utterance_ended"
    SEGMENT_DISCARDED = "segment_discarded"


@dataclass(frozen=True, slots=True)
class SegmenterConfig:
    """
    Segmentation tunables.

    - energy_threshold: minimum frame RMS that counts as voice
    - hangover_ms: how long a quiet span may last inside an utterance
    """
    energy_threshold: float = 0.01
    hangover_ms: int = 800

    def __post_init__(self) -> None:
        if self.energy_threshold < 0:
            raise ValueError("energy_threshold must be non-negative")
        if self.hangover_ms < 0:
            raise ValueError("hangover_ms must be non-negative")

    @classmethod
    def responsive(cls) -> SegmenterConfig:
        """More sensitive, ends utterances faster."""
        return cls(energy_threshold=0.008, hangover_ms=400)


class SpeechSegment:
    """
    Growing list of int16 chunks for one candidate utterance.

    Chunks are kept separate until ``finalize`` merges them, so appending
    stays O(1) inside the capture callback.
    """

    def __init__(self, started_ms: int) -> None:
        self.started_ms = started_ms
        self._chunks: list[NDArray[np.int16]] = []
        self._sample_count = 0

    def append(self, chunk: NDArray[np.int16]) -> None:
        if len(chunk) == 0:
            return
        self._chunks.append(chunk)
        self._sample_count += len(chunk)

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    @property
    def sample_count(self) -> int:
        return self._sample_count

    @property
    def is_empty(self) -> bool:
        return self._sample_count == 0

    def finalize(self) -> NDArray[np.int16]:
        """Merge all chunks into one buffer. Raises EmptySegmentDiscarded if empty."""
        if self.is_empty:
            raise EmptySegmentDiscarded(f"segment started at {self.started_ms}ms holds no audio")
        return merge_pcm16(self._chunks)


class Segmenter(Predictor):
    """
    Energy + hangover VAD state machine.

    Reads the "energy" analysis result, encodes voiced frames and keeps all
    of its state in the PipelineState. A finalized utterance is left in
    ``state.finalized`` for the pipeline to collect.
    """

    def __init__(self, config: SegmenterConfig | None = None) -> None:
        self._config = config or SegmenterConfig()

    @property
    def name(self) -> str:
        return "segmenter"

    @property
    def config(self) -> SegmenterConfig:
        return self._config

    def predict(self, context: PredictionContext, state: PipelineState) -> None:
        energy = context.analysis_results["energy"].data["rms"]
        self.step(
            state,
            energy=energy,
            timestamp_ms=context.frame.timestamp_ms,
            samples=context.samples,
            sample_rate=context.sample_rate,
        )

    def step(
        self,
        state: PipelineState,
        energy: float,
        timestamp_ms: int,
        samples: ArrayLike,
        sample_rate: int,
    ) -> SegmentEvent:
        """Advance the state machine by one frame and record the event on ``state``."""
        event = self._transition(state, energy, timestamp_ms, samples, sample_rate)
        state.last_event = event
        return event

    def _transition(
        self,
        state: PipelineState,
        energy: float,
        timestamp_ms: int,
        samples: ArrayLike,
        sample_rate: int,
    ) -> SegmentEvent:
        voiced = energy > self._config.energy_threshold

        if state.phase is SegmenterState.IDLE:
            if not voiced:
                return SegmentEvent.NONE
            segment = state.begin_segment(timestamp_ms)
            segment.append(float_to_pcm16(samples))
            return SegmentEvent.SPEECH_STARTED

        if voiced:
            state.segment.append(float_to_pcm16(samples))
            state.silence_start_ms = None
            return SegmentEvent.SPEECH_CONTINUED

        if state.silence_start_ms is None:
            state.silence_start_ms = timestamp_ms
            return SegmentEvent.SILENCE_STARTED

        if timestamp_ms - state.silence_start_ms < self._config.hangover_ms:
            return SegmentEvent.SILENCE_CONTINUED

        silence_start_ms = state.silence_start_ms
        segment = state.end_segment()
        try:
            merged = segment.finalize()
        except EmptySegmentDiscarded as e:
            state.segments_discarded += 1
            logger.debug(f"Dropping empty segment: {e}")
            return SegmentEvent.SEGMENT_DISCARDED

        state.utterances_emitted += 1
        state.finalized = Utterance(
            samples=merged,
            sample_rate=sample_rate,
            utterance_id=state.utterances_emitted,
            started_ms=segment.started_ms,
            ended_ms=silence_start_ms,
        )
        return SegmentEvent.UTTERANCE_ENDED

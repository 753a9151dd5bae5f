"""
Latency measurement.

The capture device does not wait for the pipeline: every frame has to be
handled before the next one arrives. These tools measure how close the
pipeline runs to that limit.
"""

from __future__ import annotations

import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from voxduplex.core.pipeline import Pipeline
    from voxduplex.core.stream import AudioFrame

FRAME_TIMER = "frame_process"


class LatencyTracker:
    """
    Rolling history of named timings, in milliseconds.

    Usage:
        tracker = LatencyTracker()

        with tracker.measure(FRAME_TIMER):
            pipeline.process_frame(frame)

        if tracker.last(FRAME_TIMER) > frame.duration_ms:
            ...
    """

    def __init__(self, history_size: int = 1000) -> None:
        self._history_size = history_size
        self._history: dict[str, deque[float]] = {}

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        start_ns = time.perf_counter_ns()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
            history = self._history.setdefault(name, deque(maxlen=self._history_size))
            history.append(elapsed_ms)

    def last(self, name: str) -> float:
        """Most recent timing, 0.0 if nothing was measured yet."""
        history = self._history.get(name)
        return history[-1] if history else 0.0

    def get_stats(self, name: str) -> dict[str, float]:
        """Mean, p95 and max over the retained history; empty if unmeasured."""
        history = self._history.get(name)
        if not history:
            return {}
        data = np.fromiter(history, dtype=np.float64)
        return {
            "mean_ms": float(data.mean()),
            "p95_ms": float(np.percentile(data, 95)),
            "max_ms": float(data.max()),
            "sample_count": len(data),
        }

    def reset(self) -> None:
        self._history.clear()


@dataclass
class BenchmarkResult:
    """Result of an offline benchmark run."""
    name: str
    duration_seconds: float
    frames_processed: int
    utterances_emitted: int
    audio_seconds: float
    frame_latency: dict[str, float]
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def realtime_factor(self) -> float:
        """Seconds of audio handled per second of processing."""
        return self.audio_seconds / self.duration_seconds if self.duration_seconds > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "duration_seconds": self.duration_seconds,
            "frames_processed": self.frames_processed,
            "utterances_emitted": self.utterances_emitted,
            "audio_seconds": self.audio_seconds,
            "realtime_factor": self.realtime_factor,
            "frame_latency": self.frame_latency,
            "metadata": self.metadata,
        }

    def summary(self) -> str:
        lines = [
            f"Benchmark: {self.name}",
            f"  {self.frames_processed} frames, {self.audio_seconds:.2f}s of audio "
            f"in {self.duration_seconds:.3f}s ({self.realtime_factor:.1f}x realtime)",
            f"  Utterances: {self.utterances_emitted}",
        ]
        if self.frame_latency:
            lines.append(
                f"  Frame latency: mean {self.frame_latency['mean_ms']:.3f}ms, "
                f"p95 {self.frame_latency['p95_ms']:.3f}ms, max {self.frame_latency['max_ms']:.3f}ms"
            )
        return "\n".join(lines)


class BenchmarkSuite:
    """Replays frames through a pipeline as fast as possible and records the results."""

    def __init__(self) -> None:
        self._results: list[BenchmarkResult] = []

    def run(self, name: str, pipeline: Pipeline, frames: Iterable[AudioFrame]) -> BenchmarkResult:
        frames_processed = 0
        utterances = 0
        audio_ms = 0.0

        start_time = time.perf_counter()
        for frame in frames:
            if pipeline.process_frame(frame) is not None:
                utterances += 1
            frames_processed += 1
            audio_ms += frame.duration_ms
        duration = time.perf_counter() - start_time

        config = pipeline.config
        result = BenchmarkResult(
            name=name,
            duration_seconds=duration,
            frames_processed=frames_processed,
            utterances_emitted=utterances,
            audio_seconds=audio_ms / 1000,
            frame_latency=pipeline.tracker.get_stats(FRAME_TIMER),
            metadata={
                "target_sample_rate": config.target_sample_rate,
                "energy_threshold": config.segmenter.energy_threshold,
                "hangover_ms": config.segmenter.hangover_ms,
            },
        )
        self._results.append(result)
        return result

    @property
    def results(self) -> list[BenchmarkResult]:
        return list(self._results)

    def summary(self) -> str:
        return "\n\n".join(r.summary() for r in self._results)

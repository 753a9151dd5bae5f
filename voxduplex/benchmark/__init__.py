"""Latency measurement and offline benchmarking."""

from voxduplex.benchmark.metrics import (
    LatencyTracker,
    BenchmarkResult,
    BenchmarkSuite,
)

__all__ = [
    "LatencyTracker",
    "BenchmarkResult",
    "BenchmarkSuite",
]

"""Core data structures, pipeline and session lifecycle."""

from voxduplex.core.stream import AudioFrame, AudioConfig, CaptureDevice
from voxduplex.core.messages import (
    Utterance,
    Speaker,
    TranscriptEntry,
    TranscriptLog,
    CaptionState,
)
from voxduplex.core.pipeline import Pipeline, PipelineConfig, PipelineState
from voxduplex.core.session import SessionCoordinator, SessionConfig, ChannelNames

__all__ = [
    "AudioFrame",
    "AudioConfig",
    "CaptureDevice",
    "Utterance",
    "Speaker",
    "TranscriptEntry",
    "TranscriptLog",
    "CaptionState",
    "Pipeline",
    "PipelineConfig",
    "PipelineState",
    "SessionCoordinator",
    "SessionConfig",
    "ChannelNames",
]

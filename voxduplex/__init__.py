"""
voxduplex - Real-time speech segmentation and duplex audio streaming

voxduplex turns a continuous microphone signal into discrete utterances
and lets the user talk over synthesized replies. It does not recognize,
understand or synthesize speech. It only finds where speech starts and
stops, and gets out of the way when the user speaks.
"""

from voxduplex.core.stream import AudioFrame, AudioConfig, CaptureDevice
from voxduplex.core.messages import Utterance, Speaker, TranscriptEntry, TranscriptLog, CaptionState
from voxduplex.core.pipeline import Pipeline, PipelineConfig, PipelineState
from voxduplex.core.session import SessionCoordinator, SessionConfig, ChannelNames
from voxduplex.predictors.segmenter import Segmenter, SegmenterConfig, SegmenterState, SegmentEvent
from voxduplex.playback.controller import PlaybackController, PlaybackSession, PlaybackState, OutputDevice
from voxduplex.transport.base import Transport
from voxduplex.adapters.base import Adapter
from voxduplex.errors import DeviceUnavailable, PlaybackRejected, EmptySegmentDiscarded, VoxDuplexError

__version__ = "0.1.0"
__all__ = [
    # Core data structures
    "AudioFrame",
    "AudioConfig",
    "Utterance",
    "Speaker",
    "TranscriptEntry",
    "TranscriptLog",
    "CaptionState",
    # Pipeline and session
    "Pipeline",
    "PipelineConfig",
    "PipelineState",
    "Segmenter",
    "SegmenterConfig",
    "SegmenterState",
    "SegmentEvent",
    "SessionCoordinator",
    "SessionConfig",
    "ChannelNames",
    # Playback
    "PlaybackController",
    "PlaybackSession",
    "PlaybackState",
    # Collaborator protocols
    "CaptureDevice",
    "OutputDevice",
    "Transport",
    "Adapter",
    # Errors
    "VoxDuplexError",
    "DeviceUnavailable",
    "PlaybackRejected",
    "EmptySegmentDiscarded",
]

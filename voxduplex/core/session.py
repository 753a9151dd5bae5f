"""
Recording session lifecycle.

The SessionCoordinator wires capture, pipeline, transport and playback
into one start/stop unit:

    capture --frames--> pipeline --utterance--> adapter --> transport.emit
                           |
                           +--speech start--> playback (barge-in)

    transport --bot reply-------> transcript + playback
              --partial caption-> caption
              --user transcript-> transcript
              --status----------> connected

Transport subscriptions exist only between ``start()`` and ``stop()`` and
are released together when the session stops.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from voxduplex.adapters.base import Adapter, Base64PCMAdapter, DictAdapter, RawPCMAdapter
from voxduplex.core.messages import CaptionState, Speaker, TranscriptLog, Utterance
from voxduplex.core.pipeline import Pipeline, PipelineConfig, PipelineState
from voxduplex.core.stream import AudioFrame, CaptureDevice
from voxduplex.playback.controller import PlaybackController
from voxduplex.predictors.segmenter import SegmenterConfig
from voxduplex.transport.base import Subscriptions, Transport

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, Any], None]

_ADAPTERS: dict[str, type[Adapter]] = {
    "raw": RawPCMAdapter,
    "base64": Base64PCMAdapter,
    "dict": DictAdapter,
}


@dataclass(frozen=True)
class ChannelNames:
    """
    Transport event names.

    Outbound: ``utterance`` carries the encoded audio; ``end_of_utterance``,
    when set, is emitted right after it with no payload. Inbound names are
    tuples so that one logical message can arrive on several events.
    """
    utterance: str = "voice_chunk"
    end_of_utterance: str | None = "end_voice"
    bot_reply: tuple[str, ...] = ("bot_reply",)
    partial_caption: tuple[str, ...] = ("partial_text",)
    user_transcript: tuple[str, ...] = ("stt_text",)
    status: tuple[str, ...] = ("server_info",)

    @classmethod
    def legacy(cls) -> ChannelNames:
        """Event names of the older backend: separate text/audio replies, no end marker."""
        return cls(
            utterance="audio_chunk",
            end_of_utterance=None,
            bot_reply=("bot_text", "tts_audio"),
            partial_caption=(),
            user_transcript=("stt_text",),
            status=("info",),
        )


@dataclass
class SessionConfig:
    """
    Session configuration.

    - pipeline: resampling and segmentation tunables
    - channels: transport event names
    - encoding: outbound payload form, "raw", "base64" or "dict"
    - barge_in: whether user speech interrupts playback
    - interrupt_on_reply: used when a reply does not say whether to interrupt
    """
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    channels: ChannelNames = field(default_factory=ChannelNames)
    encoding: str = "raw"
    barge_in: bool = True
    interrupt_on_reply: bool = False

    def __post_init__(self) -> None:
        if self.encoding not in _ADAPTERS:
            raise ValueError(f"unknown encoding {self.encoding!r}, expected one of {sorted(_ADAPTERS)}")

    def make_adapter(self) -> Adapter:
        return _ADAPTERS[self.encoding]()

    @classmethod
    def responsive(cls) -> SessionConfig:
        return cls(pipeline=PipelineConfig.responsive())

    @classmethod
    def legacy(cls) -> SessionConfig:
        """Capture-rate base64 audio, one second of hangover, replies never interrupted."""
        return cls(
            pipeline=PipelineConfig(
                target_sample_rate=None,
                segmenter=SegmenterConfig(energy_threshold=0.01, hangover_ms=1000),
            ),
            channels=ChannelNames.legacy(),
            encoding="base64",
            barge_in=False,
            interrupt_on_reply=False,
        )


class SessionCoordinator:
    """
    Owns one recording session.

    Usage:
        session = SessionCoordinator(
            capture=MicrophoneCapture(),
            transport=transport,
            playback=PlaybackController(SoundDeviceOutput()),
        )
        session.on_event(lambda kind, value: print(kind, value))
        session.start()
        ...
        session.stop()

    ``start`` raises DeviceUnavailable when the microphone cannot be
    opened. Both ``start`` and ``stop`` are idempotent.
    """

    def __init__(
        self,
        capture: CaptureDevice,
        transport: Transport,
        playback: PlaybackController | None = None,
        config: SessionConfig | None = None,
        adapter: Adapter | None = None,
    ) -> None:
        self._capture = capture
        self._transport = transport
        self._playback = playback
        self._config = config or SessionConfig()
        self._adapter = adapter or self._config.make_adapter()

        self._pipeline = Pipeline(self._config.pipeline)
        self._pipeline.on_utterance(self._send_utterance)
        if self._config.barge_in and self._playback is not None:
            self._pipeline.on_speech_start(self._playback.on_speech_detected)

        self._handle: Any = None
        self._subscriptions: Subscriptions | None = None
        self._running = False
        self._listeners: list[EventCallback] = []

        self.caption = CaptionState()
        self.transcript = TranscriptLog()
        self.connected = False
        self.status: Any = None
        self.utterances_sent = 0
        self.send_failures = 0

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pipeline(self) -> Pipeline:
        return self._pipeline

    @property
    def state(self) -> PipelineState:
        return self._pipeline.state

    @property
    def playback(self) -> PlaybackController | None:
        return self._playback

    def on_event(self, callback: EventCallback) -> SessionCoordinator:
        """Register a UI listener for (kind, value) updates. Returns self for chaining."""
        self._listeners.append(callback)
        return self

    def start(self) -> None:
        if self._running:
            return

        handle = self._capture.acquire()
        try:
            self._pipeline.reset()
            self._subscriptions = self._subscribe()
            self._capture.on_frame(self._on_frame)
        except Exception:
            if self._subscriptions is not None:
                self._subscriptions.close()
                self._subscriptions = None
            self._capture.release(handle)
            raise

        self._handle = handle
        self._running = True
        logger.info("Session started")

    def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        self._capture.on_frame(None)
        try:
            self._capture.release(self._handle)
        finally:
            self._handle = None
            dropped = self._pipeline.discard()
            self._pipeline.reset()
            if self._subscriptions is not None:
                self._subscriptions.close()
                self._subscriptions = None
        logger.info(f"Session stopped ({dropped} unsent samples discarded)")

    def __enter__(self) -> SessionCoordinator:
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()

    def _subscribe(self) -> Subscriptions:
        channels = self._config.channels
        subscriptions = Subscriptions(self._transport)
        routes = [
            (channels.bot_reply, self._on_bot_reply),
            (channels.partial_caption, self._on_partial_caption),
            (channels.user_transcript, self._on_user_transcript),
            (channels.status, self._on_status),
        ]
        try:
            for events, handler in routes:
                for event in events:
                    subscriptions.subscribe(event, handler)
        except Exception:
            subscriptions.close()
            raise
        return subscriptions

    def _on_frame(self, frame: AudioFrame) -> None:
        if not self._running:
            return
        self._pipeline.process_frame(frame)

    def _send_utterance(self, utterance: Utterance) -> None:
        channels = self._config.channels
        payload = self._adapter.transform(utterance)
        try:
            self._transport.emit(channels.utterance, payload)
            if channels.end_of_utterance:
                self._transport.emit(channels.end_of_utterance)
        except Exception as e:
            self.send_failures += 1
            logger.warning(f"Failed to send utterance {utterance.utterance_id}: {e}")
            return

        self.utterances_sent += 1
        logger.info(
            f"Sent utterance {utterance.utterance_id} "
            f"({utterance.sample_count} samples at {utterance.sample_rate}Hz)"
        )
        self._notify("utterance", utterance)

    def _on_bot_reply(self, message: Any) -> None:
        if not isinstance(message, Mapping):
            logger.warning(f"Ignoring malformed bot reply: {message!r}")
            return

        text = message.get("bot_text") or message.get("text")
        if text:
            self.transcript.append(Speaker.BOT, text)
            self._notify("transcript", self.transcript.entries[-1])

        audio = message.get("bot_audio") or message.get("audio")
        if audio and self._playback is not None:
            interrupt = bool(message.get("interrupt", self._config.interrupt_on_reply))
            self._playback.start_playback(audio, interrupt_prior=interrupt)

    def _on_partial_caption(self, message: Any) -> None:
        if isinstance(message, Mapping):
            text = message.get("text") or ""
        else:
            text = "" if message is None else str(message)
        self.caption.update(text)
        self._notify("caption", text)

    def _on_user_transcript(self, message: Any) -> None:
        if isinstance(message, Mapping):
            text = message.get("user_text") or message.get("text")
        else:
            text = message
        if not text:
            return
        self.transcript.append(Speaker.USER, str(text))
        self._notify("transcript", self.transcript.entries[-1])

    def _on_status(self, message: Any) -> None:
        self.status = message
        if not self.connected:
            self.connected = True
            self._notify("connected", True)

    def _notify(self, kind: str, value: Any) -> None:
        for listener in self._listeners:
            listener(kind, value)

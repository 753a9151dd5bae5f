"""Tests for the session coordinator."""

import base64
import logging

import numpy as np
import pytest

from voxduplex.core.messages import Speaker
from voxduplex.core.session import ChannelNames, SessionConfig, SessionCoordinator
from voxduplex.errors import DeviceUnavailable
from voxduplex.playback import PlaybackController, PlaybackState
from voxduplex.predictors.segmenter import SegmenterState
from voxduplex.sources.synthetic import ArrayCapture, constant
from voxduplex.transport import InMemoryTransport


class FailingTransport(InMemoryTransport):
    """Drops the connection whenever audio is sent."""

    def emit(self, event, payload=None):
        if event in ("voice_chunk", "audio_chunk"):
            raise ConnectionError("socket closed")
        super().emit(event, payload)


@pytest.fixture
def capture():
    return ArrayCapture(sample_rate=16000, frame_size=320)


@pytest.fixture
def transport():
    return InMemoryTransport()


@pytest.fixture
def playback(output_device):
    return PlaybackController(output_device)


@pytest.fixture
def session(capture, transport, playback):
    return SessionCoordinator(capture, transport, playback)


def speak(capture, voiced_frames, quiet_frames, level=0.02):
    size = capture.frame_size
    capture.push(constant(level, voiced_frames * size))
    capture.push(constant(0.001, quiet_frames * size))


class TestSessionConfig:
    def test_defaults(self):
        config = SessionConfig()
        assert config.encoding == "raw"
        assert config.barge_in
        assert not config.interrupt_on_reply
        assert config.channels.utterance == "voice_chunk"
        assert config.channels.end_of_utterance == "end_voice"

    def test_unknown_encoding(self):
        with pytest.raises(ValueError):
            SessionConfig(encoding="opus")

    def test_legacy_preset(self):
        config = SessionConfig.legacy()
        assert not config.interrupt_on_reply
        assert config.pipeline.target_sample_rate is None
        assert config.pipeline.segmenter.hangover_ms == 1000
        assert config.channels == ChannelNames.legacy()
        assert not config.barge_in


class TestLifecycle:
    def test_start_subscribes_and_acquires(self, session, capture, transport):
        session.start()

        assert session.is_running
        assert capture.acquire_count == 1
        assert transport.handler_count() == 4
        assert transport.handler_count("partial_text") == 1

    def test_start_is_idempotent(self, session, capture, transport):
        session.start()
        session.start()

        assert capture.acquire_count == 1
        assert transport.handler_count() == 4

    def test_stop_releases_everything(self, session, capture, transport):
        session.start()
        session.stop()

        assert not session.is_running
        assert capture.release_count == 1
        assert not capture.is_open
        assert transport.handler_count() == 0

    def test_stop_is_idempotent(self, session, capture):
        session.stop()
        session.start()
        session.stop()
        session.stop()
        assert capture.release_count == 1

    def test_restart_subscribes_once(self, session, capture, transport):
        session.start()
        session.stop()
        session.start()

        assert capture.acquire_count == 2
        assert transport.handler_count() == 4

    def test_context_manager(self, session, capture, transport):
        with session:
            assert session.is_running
        assert capture.release_count == 1
        assert transport.handler_count() == 0

    def test_unavailable_device(self, transport):
        session = SessionCoordinator(ArrayCapture(available=False), transport)

        with pytest.raises(DeviceUnavailable):
            session.start()

        assert not session.is_running
        assert transport.handler_count() == 0


class TestOutbound:
    def test_utterance_then_end_marker(self, session, capture, transport):
        session.start()
        speak(capture, 5, 50)

        assert [event for event, _ in transport.sent] == ["voice_chunk", "end_voice"]
        chunk = transport.sent_on("voice_chunk")[0]
        assert isinstance(chunk, bytes)
        assert len(chunk) == 3200
        assert transport.sent_on("end_voice") == [None]
        assert session.utterances_sent == 1

    def test_quiet_input_sends_nothing(self, session, capture, transport):
        session.start()
        capture.push(constant(0.005, 320 * 100))
        assert transport.sent == []

    def test_two_utterances(self, session, capture, transport):
        session.start()
        speak(capture, 5, 50)
        speak(capture, 3, 50)

        sizes = [len(c) for c in transport.sent_on("voice_chunk")]
        assert sizes == [3200, 1920]

    def test_stop_mid_utterance_sends_nothing(self, session, capture, transport):
        session.start()
        capture.push(constant(0.05, 320 * 5))

        session.stop()

        assert transport.sent == []
        assert capture.release_count == 1
        assert session.state.phase is SegmenterState.IDLE
        assert session.state.segment is None

    def test_frames_after_stop_are_ignored(self, session, capture, transport):
        session.start()
        session.stop()
        speak(capture, 5, 50)
        assert transport.sent == []

    def test_dict_encoding(self, capture, transport):
        session = SessionCoordinator(capture, transport, config=SessionConfig(encoding="dict"))
        session.start()
        speak(capture, 5, 50)

        payload = transport.sent_on("voice_chunk")[0]
        assert payload["sample_rate"] == 16000
        assert payload["sample_count"] == 1600
        assert len(base64.b64decode(payload["pcm"])) == 3200

    def test_legacy_backend(self, transport):
        capture = ArrayCapture(sample_rate=48000, frame_size=2048)
        session = SessionCoordinator(capture, transport, config=SessionConfig.legacy())
        session.start()
        speak(capture, 3, 40)

        assert [event for event, _ in transport.sent] == ["audio_chunk"]
        raw = base64.b64decode(transport.sent_on("audio_chunk")[0])
        assert len(raw) == 3 * 2048 * 2

    def test_send_failure_is_logged_and_capture_continues(self, capture, caplog):
        transport = FailingTransport()
        session = SessionCoordinator(capture, transport)
        session.start()

        with caplog.at_level(logging.WARNING, logger="voxduplex.core.session"):
            speak(capture, 5, 50)
            speak(capture, 5, 50)

        assert session.send_failures == 2
        assert session.utterances_sent == 0
        assert session.is_running
        assert any("Failed to send" in r.message for r in caplog.records)

    def test_utterance_event_reaches_listeners(self, session, capture):
        events = []
        session.on_event(lambda kind, value: events.append(kind))
        session.start()
        speak(capture, 5, 50)
        assert events == ["utterance"]


class TestInbound:
    def test_partial_caption_overwrites(self, session, transport):
        session.start()
        transport.emit("partial_text", {"text": "hel"})
        transport.emit("partial_text", {"text": "hello wor"})

        assert session.caption.text == "hello wor"
        assert session.caption.updates == 2
        assert len(session.transcript) == 0

    def test_plain_string_caption(self, session, transport):
        session.start()
        transport.emit("partial_text", "hello")
        assert session.caption.text == "hello"

    def test_user_transcript(self, session, transport):
        session.start()
        transport.emit("stt_text", {"user_text": "what time is it"})

        entry = session.transcript.entries[-1]
        assert entry.speaker is Speaker.USER
        assert entry.text == "what time is it"

    def test_bot_reply_text_and_audio(self, session, transport, output_device, wav_payload):
        session.start()
        transport.emit("bot_reply", {"bot_text": "It is noon.", "bot_audio": wav_payload})

        assert session.transcript.entries[-1].speaker is Speaker.BOT
        assert session.transcript.entries[-1].text == "It is noon."
        assert session.playback.current.is_playing
        assert len(output_device.played) == 1

    def test_transcript_keeps_arrival_order(self, session, transport):
        session.start()
        transport.emit("stt_text", {"user_text": "hi"})
        transport.emit("bot_reply", {"bot_text": "hello"})
        transport.emit("stt_text", "bye")

        assert [(e.speaker, e.text) for e in session.transcript] == [
            (Speaker.USER, "hi"),
            (Speaker.BOT, "hello"),
            (Speaker.USER, "bye"),
        ]

    def test_reply_without_interrupt_flag_overlaps(self, session, transport, wav_payload):
        session.start()
        transport.emit("bot_reply", {"bot_audio": wav_payload})
        transport.emit("bot_reply", {"bot_audio": wav_payload})
        transport.emit("bot_reply", {"bot_audio": wav_payload, "interrupt": False})

        assert len(session.playback.active) == 3

    def test_reply_with_interrupt_flag_stops_previous(self, session, transport, wav_payload):
        session.start()
        transport.emit("bot_reply", {"bot_audio": wav_payload})
        first = session.playback.current
        transport.emit("bot_reply", {"bot_audio": wav_payload, "interrupt": True})

        assert first.state is PlaybackState.ENDED
        assert len(session.playback.active) == 1

    def test_malformed_reply_is_ignored(self, session, transport):
        session.start()
        transport.emit("bot_reply", "oops")
        assert len(session.transcript) == 0

    def test_status_marks_connected_once(self, session, transport):
        events = []
        session.on_event(lambda kind, value: events.append((kind, value)))
        session.start()

        transport.emit("server_info", {"server": "ok"})
        transport.emit("server_info", {"server": "still ok"})

        assert session.connected
        assert session.status == {"server": "still ok"}
        assert events == [("connected", True)]

    def test_no_routing_after_stop(self, session, transport):
        session.start()
        session.stop()
        transport.emit("partial_text", {"text": "late"})
        transport.emit("stt_text", {"user_text": "late"})

        assert session.caption.text == ""
        assert len(session.transcript) == 0

    def test_legacy_reply_events(self, transport, playback, wav_payload):
        session = SessionCoordinator(ArrayCapture(48000, 2048), transport, playback, SessionConfig.legacy())
        session.start()
        transport.emit("bot_text", {"text": "hello"})
        transport.emit("tts_audio", {"audio": wav_payload})

        assert session.transcript.entries[-1].text == "hello"
        assert playback.current.is_playing


class TestBargeIn:
    def test_user_speech_stops_reply(self, session, capture, transport, wav_payload):
        session.start()
        transport.emit("bot_reply", {"bot_audio": wav_payload})
        reply = session.playback.current

        capture.push(constant(0.05, 320))

        assert reply.state is PlaybackState.ENDED
        assert session.playback.current is None

    def test_stale_end_after_barge_in(self, session, capture, transport, output_device, wav_payload):
        session.start()
        transport.emit("bot_reply", {"bot_audio": wav_payload})
        capture.push(constant(0.05, 320))
        transport.emit("bot_reply", {"bot_audio": wav_payload})
        newer = session.playback.current

        output_device.finish(output_device.played[0])

        assert session.playback.current is newer
        assert newer.is_playing

    def test_disabled_barge_in(self, capture, transport, playback, wav_payload):
        config = SessionConfig(barge_in=False)
        session = SessionCoordinator(capture, transport, playback, config)
        session.start()
        transport.emit("bot_reply", {"bot_audio": wav_payload})

        capture.push(constant(0.05, 320))

        assert playback.current.is_playing

    def test_no_playback_controller(self, capture, transport, wav_payload):
        session = SessionCoordinator(capture, transport)
        session.start()
        transport.emit("bot_reply", {"bot_text": "hi", "bot_audio": wav_payload})
        capture.push(constant(0.05, 320))

        assert session.playback is None
        assert session.transcript.entries[-1].text == "hi"


class TestReplyInterrupt:
    def test_legacy_replies_play_side_by_side(self, transport, playback, wav_payload):
        session = SessionCoordinator(ArrayCapture(48000, 2048), transport, playback, SessionConfig.legacy())
        session.start()
        transport.emit("tts_audio", {"audio": wav_payload})
        transport.emit("tts_audio", {"audio": wav_payload})

        assert len(playback.active) == 2
        assert all(s.is_playing for s in playback.active)

    def test_reply_default_can_be_configured(self, capture, transport, playback, wav_payload):
        session = SessionCoordinator(capture, transport, playback, SessionConfig(interrupt_on_reply=True))
        session.start()
        transport.emit("bot_reply", {"bot_audio": wav_payload})
        transport.emit("bot_reply", {"bot_audio": wav_payload})

        assert len(playback.active) == 1

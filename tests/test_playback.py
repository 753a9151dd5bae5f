"""Tests for reply playback and barge-in."""

import base64

import numpy as np
import pytest

from voxduplex.playback import AudioClip, PlaybackController, PlaybackState



@pytest.fixture
def controller(output_device):
    return PlaybackController(output_device)


class TestAudioClip:
    def test_base64_wav_decodes(self, wav_payload):
        clip = AudioClip.decode(wav_payload)
        assert clip.sample_rate == 16000
        assert clip.frame_count == 3200
        assert clip.channels == 1
        assert clip.duration_ms == pytest.approx(200.0)
        assert np.abs(clip.samples).max() == pytest.approx(0.3, abs=1e-3)

    def test_data_url_prefix_is_stripped(self, wav_payload):
        clip = AudioClip.decode(f"data:audio/wav;base64,{wav_payload}")
        assert clip.frame_count == 3200

    def test_raw_wav_bytes(self, wav_payload):
        clip = AudioClip.decode(base64.b64decode(wav_payload))
        assert clip.sample_rate == 16000

    def test_clip_passes_through(self):
        clip = AudioClip(samples=np.zeros(10, dtype=np.float32), sample_rate=8000)
        assert AudioClip.decode(clip) is clip

    def test_from_pcm16(self):
        clip = AudioClip.from_pcm16(np.array([16384, -32768], dtype=np.int16), 16000)
        assert clip.samples.tolist() == [0.5, -1.0]

    @pytest.mark.parametrize("payload", ["not base64!!", base64.b64encode(b"garbage").decode(), b"", 42])
    def test_unreadable_payload_raises_value_error(self, payload):
        with pytest.raises(ValueError):
            AudioClip.decode(payload)


class TestStartPlayback:
    def test_starts_playing(self, controller, output_device, wav_payload):
        session = controller.start_playback(wav_payload)

        assert session.state is PlaybackState.PLAYING
        assert session.is_playing
        assert controller.current is session
        assert controller.is_playing
        assert len(output_device.played) == 1
        assert output_device.played[0].clip.frame_count == 3200

    def test_new_reply_interrupts_previous(self, controller, output_device, wav_payload):
        first = controller.start_playback(wav_payload)
        second = controller.start_playback(wav_payload)

        assert first.state is PlaybackState.ENDED
        assert first.handle is None
        assert output_device.stopped == [output_device.played[0]]
        assert controller.current is second
        assert controller.active == (second,)

    def test_without_interrupt_both_play(self, controller, output_device, wav_payload):
        first = controller.start_playback(wav_payload)
        second = controller.start_playback(wav_payload, interrupt_prior=False)

        assert first.is_playing and second.is_playing
        assert controller.active == (first, second)
        assert controller.current is second
        assert output_device.stopped == []

    def test_session_ids_are_unique(self, controller, wav_payload):
        first = controller.start_playback(wav_payload)
        second = controller.start_playback(wav_payload)
        assert first.session_id != second.session_id

    def test_rejected_by_device(self, rejecting_device, wav_payload):
        controller = PlaybackController(rejecting_device)

        assert controller.start_playback(wav_payload) is None
        assert controller.current is None
        assert controller.rejections == 1
        assert "autoplay" in str(controller.last_error)

    def test_bad_payload_is_rejected_without_touching_current(self, controller, output_device, wav_payload):
        playing = controller.start_playback(wav_payload)

        assert controller.start_playback("%%%") is None
        assert controller.current is playing
        assert playing.is_playing
        assert controller.rejections == 1
        assert len(output_device.played) == 1


class TestBargeIn:
    def test_speech_stops_playback(self, controller, output_device, wav_payload):
        session = controller.start_playback(wav_payload)

        controller.on_speech_detected()

        assert session.state is PlaybackState.ENDED
        assert controller.current is None
        assert not output_device.played[0].playing

    def test_speech_without_playback_is_noop(self, controller, output_device):
        controller.on_speech_detected()
        assert output_device.stopped == []

    def test_non_interruptible_keeps_playing(self, controller, output_device, wav_payload):
        session = controller.start_playback(wav_payload, interruptible=False)

        controller.on_speech_detected()
        controller.start_playback(wav_payload)

        assert session.is_playing
        assert len(controller.active) == 2

    def test_stop_all_ends_everything(self, controller, wav_payload):
        a = controller.start_playback(wav_payload, interruptible=False)
        b = controller.start_playback(wav_payload, interrupt_prior=False)

        controller.stop_all()

        assert a.state is PlaybackState.ENDED
        assert b.state is PlaybackState.ENDED
        assert not controller.is_playing


class TestNaturalEnd:
    def test_natural_end_clears_current(self, controller, output_device, wav_payload):
        session = controller.start_playback(wav_payload)

        output_device.finish(output_device.played[0])

        assert session.state is PlaybackState.ENDED
        assert controller.current is None
        assert output_device.stopped == []

    def test_stale_end_after_barge_in_does_not_touch_newer_session(self, controller, output_device, wav_payload):
        old = controller.start_playback(wav_payload)
        controller.on_speech_detected()
        new = controller.start_playback(wav_payload)

        # the old stream reports its end late
        controller.on_playback_natural_end(old)

        assert controller.current is new
        assert new.is_playing

    def test_stale_end_after_supersede(self, controller, output_device, wav_payload):
        controller.start_playback(wav_payload)
        new = controller.start_playback(wav_payload)

        output_device.finish(output_device.played[0])

        assert controller.current is new
        assert new.is_playing

    def test_end_of_one_overlapping_session(self, controller, output_device, wav_payload):
        first = controller.start_playback(wav_payload)
        second = controller.start_playback(wav_payload, interrupt_prior=False)

        output_device.finish(output_device.played[1])

        assert controller.active == (first,)
        assert controller.current is first
        assert second.state is PlaybackState.ENDED

"""
Real-time microphone capture.

Requires: pip install sounddevice

Frames are handed to the registered callback straight from the PortAudio
callback thread. Nothing is buffered in between: a handler that runs longer
than one block makes PortAudio drop input.
"""

from __future__ import annotations

import logging
from typing import Any

from voxduplex.core.stream import AudioConfig, AudioFrame, CaptureDevice, FrameCallback
from voxduplex.errors import DeviceUnavailable

logger = logging.getLogger(__name__)


def _import_sounddevice():
    try:
        import sounddevice as sd
    except ImportError:
        raise ImportError(
            "sounddevice is required for microphone input.\n"
            "Install with: pip install sounddevice"
        )
    return sd


class MicrophoneCapture(CaptureDevice):
    """
    CaptureDevice backed by a sounddevice InputStream.

    Usage:
        mic = MicrophoneCapture(block_size=2048)
        mic.on_frame(pipeline.process_frame)
        handle = mic.acquire()
        ...
        mic.release(handle)
    """

    def __init__(
        self,
        sample_rate: int | None = None,
        block_size: int = 2048,
        device: int | str | None = None,
    ) -> None:
        """
        Args:
            sample_rate: Capture rate; None uses the device's default rate
            block_size: Samples per delivered frame
            device: Audio device index or name (None = default)
        """
        self._sample_rate = sample_rate
        self._block_size = block_size
        self._device = device

        self._config: AudioConfig | None = None
        self._callback: FrameCallback | None = None
        self._stream = None
        self._frame_id = 0
        self._samples_seen = 0

    @property
    def config(self) -> AudioConfig | None:
        """Stream configuration, known once the device is acquired."""
        return self._config

    def on_frame(self, callback: FrameCallback | None) -> None:
        self._callback = callback

    def acquire(self) -> Any:
        if self._stream is not None:
            return self._stream

        sd = _import_sounddevice()
        try:
            rate = self._sample_rate or int(
                sd.query_devices(self._device, kind="input")["default_samplerate"]
            )
            stream = sd.InputStream(
                samplerate=rate,
                blocksize=self._block_size,
                channels=1,
                dtype="float32",
                device=self._device,
                callback=self._audio_callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            raise DeviceUnavailable(f"microphone unavailable: {e}") from e

        self._config = AudioConfig.for_block(rate, self._block_size)
        self._frame_id = 0
        self._samples_seen = 0
        self._stream = stream
        logger.info(f"Microphone opened at {rate}Hz, {self._block_size} samples per frame")
        return stream

    def _audio_callback(self, indata, frames, time_info, status) -> None:
        """Called by sounddevice for each audio block."""
        if status:
            logger.debug(f"Input status: {status}")

        callback = self._callback
        config = self._config
        if callback is None or config is None:
            return

        frame = AudioFrame(
            data=indata[:, 0].copy(),
            frame_id=self._frame_id,
            timestamp_ms=int(self._samples_seen * 1000 / config.sample_rate),
            config=config,
        )
        self._frame_id += 1
        self._samples_seen += frames

        try:
            callback(frame)
        except Exception:
            logger.exception(f"Frame handler failed on frame {frame.frame_id}")

    def release(self, handle: Any) -> None:
        if handle is None:
            return
        handle.stop()
        handle.close()
        if handle is self._stream:
            self._stream = None
        logger.info("Microphone released")


def list_audio_devices() -> Any:
    """Available audio devices, as reported by sounddevice."""
    sd = _import_sounddevice()
    return sd.query_devices()

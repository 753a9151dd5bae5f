#!/usr/bin/env python3
"""
voxduplex Basic Usage Example

Runs a full session against synthetic audio and an in-process "bot" that
echoes every utterance back as a spoken reply. No microphone needed.

Usage:
    python examples/basic_usage.py
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np

from voxduplex import Pipeline, PipelineConfig, SegmenterConfig, SessionConfig, SessionCoordinator
from voxduplex.adapters import DictAdapter
from voxduplex.benchmark import BenchmarkSuite
from voxduplex.codec import pcm16_to_float
from voxduplex.playback import AudioClip, PlaybackController
from voxduplex.sources import ArrayCapture, constant, frames_from, noise, silence
from voxduplex.transport import InMemoryTransport


class PrintingOutput:
    """OutputDevice that only reports what it would play."""

    def __init__(self):
        self.handles = []

    def play(self, clip):
        handle = {"clip": clip, "on_end": None}
        self.handles.append(handle)
        print(f"  [PLAY] {clip.duration_ms:.0f}ms of reply audio")
        return handle

    def stop(self, handle):
        print("  [STOP] reply interrupted")

    def on_natural_end(self, handle, callback):
        handle["on_end"] = callback


def echo_bot(transport: InMemoryTransport):
    """Answer every utterance with a caption, a transcript and the audio itself."""

    def on_utterance(payload):
        samples = np.frombuffer(payload, dtype="<i2")
        transport.emit("partial_text", {"text": "..."})
        transport.emit("stt_text", {"user_text": f"<{len(samples)} samples>"})
        reply = AudioClip(samples=pcm16_to_float(samples), sample_rate=16000)
        transport.emit("bot_reply", {"bot_text": "You said something.", "bot_audio": reply.to_base64()})

    transport.on("voice_chunk", on_utterance)


def speech(duration_ms: int, level: float = 0.05) -> np.ndarray:
    return constant(level, int(16000 * duration_ms / 1000))


def example_session():
    print("=" * 60)
    print("Session Example")
    print("=" * 60)

    transport = InMemoryTransport()
    echo_bot(transport)

    capture = ArrayCapture(sample_rate=16000, frame_size=320)
    playback = PlaybackController(PrintingOutput())
    session = SessionCoordinator(capture, transport, playback, SessionConfig.responsive())
    session.on_event(lambda kind, value: print(f"  [{kind.upper()}] {value}"))

    with session:
        transport.emit("server_info", {"server": "echo"})

        capture.push(speech(600))
        capture.push(silence(600))

        # talk over the reply
        capture.push(speech(300))
        capture.push(silence(600))

    print(f"\n  Sent {session.utterances_sent} utterances")
    for entry in session.transcript:
        print(f"  {entry.speaker.value:>4}: {entry.text}")


def example_adapters():
    print("\n" + "=" * 60)
    print("Adapter Example")
    print("=" * 60)

    pipeline = Pipeline(PipelineConfig.responsive())
    adapter = DictAdapter()
    pipeline.on_utterance(lambda u: print(f"  {adapter.transform(u)['sample_count']} samples, "
                                          f"{u.started_ms}ms -> {u.ended_ms}ms"))

    data = np.concatenate([silence(200), speech(400), silence(500), speech(200), silence(500)])
    for frame in frames_from(data):
        pipeline.process_frame(frame)


def example_benchmark():
    print("\n" + "=" * 60)
    print("Benchmark Example")
    print("=" * 60)

    suite = BenchmarkSuite()
    data = np.concatenate([noise(0.005, 2000, seed=0), speech(1000), silence(1000)] * 5)

    for rate, block in [(16000, 320), (48000, 2048)]:
        config = PipelineConfig(segmenter=SegmenterConfig(hangover_ms=800))
        capture_data = np.repeat(data, rate // 16000)
        suite.run(f"{rate}Hz/{block}", Pipeline(config), frames_from(capture_data, rate, block))

    print(suite.summary())


if __name__ == "__main__":
    example_session()
    example_adapters()
    example_benchmark()

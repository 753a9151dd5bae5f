#!/usr/bin/env python3
"""
voxduplex Microphone Demo

Talk into the microphone and watch utterances being cut. Every utterance
is played straight back through the speakers; start talking again while
it plays and the playback stops (barge-in).

Usage:
    python examples/microphone_demo.py

Requires:
    pip install sounddevice

Stop with Ctrl+C.
"""

import sys
import os
import logging
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np

from voxduplex import SessionConfig, SessionCoordinator, DeviceUnavailable
from voxduplex.playback import AudioClip, PlaybackController, SoundDeviceOutput
from voxduplex.transport import InMemoryTransport


def format_bar(value: float, width: int = 30) -> str:
    filled = min(width, int(value * width * 10))
    return "#" * filled + "." * (width - filled)


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("\n" + "=" * 60)
    print("  [MIC] voxduplex Microphone Demo")
    print("=" * 60)

    try:
        from voxduplex.sources.microphone import MicrophoneCapture, list_audio_devices
        devices = list_audio_devices()
    except ImportError as e:
        print(f"\n  [ERROR] {e}\n")
        return

    print("  Audio devices:")
    print("-" * 40)
    print(devices)
    print("-" * 40)

    transport = InMemoryTransport()

    def echo(payload):
        samples = np.frombuffer(payload, dtype="<i2")
        reply = AudioClip.from_pcm16(samples, sample_rate=16000)
        transport.emit("bot_reply", {"bot_text": f"echo ({reply.duration_ms:.0f}ms)", "bot_audio": reply.to_base64()})

    transport.on("voice_chunk", echo)

    session = SessionCoordinator(
        capture=MicrophoneCapture(block_size=2048),
        transport=transport,
        playback=PlaybackController(SoundDeviceOutput()),
        config=SessionConfig.responsive(),
    )
    session.on_event(lambda kind, value: print(f"\n  [{kind.upper()}] {value}"))

    try:
        session.start()
    except DeviceUnavailable as e:
        print(f"\n  [ERROR] {e}\n")
        return

    print("\n  [REC] Recording... (Ctrl+C to stop)\n")
    try:
        while True:
            energy = session.state.analysis_results.get("energy")
            level = energy.data["rms"] if energy else 0.0
            print(f"\r  {session.state.phase.value:>8} [{format_bar(level)}] {level:.4f}", end="", flush=True)
            time.sleep(0.05)
    except KeyboardInterrupt:
        print("\n\n  [STOP] Stopped.")
    finally:
        session.stop()
        session.playback.stop_all()

    print(f"  [INFO] {session.utterances_sent} utterances sent.\n")


if __name__ == "__main__":
    main()

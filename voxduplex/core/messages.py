"""
Utterances and conversation records.

An Utterance is the only thing this core sends downstream. The transcript
and caption are what it keeps of what comes back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

import numpy as np
from numpy.typing import NDArray

from voxduplex.codec.pcm import pcm16_to_bytes


@dataclass(frozen=True, slots=True)
class Utterance:
    """
    One finalized span of detected speech, voice onset to hangover expiry.

    Samples are mono int16 at ``sample_rate``. Never empty.
    """
    samples: NDArray[np.int16]
    sample_rate: int
    utterance_id: int = 0
    started_ms: int = 0
    ended_ms: int = 0

    def __post_init__(self) -> None:
        if len(self.samples) == 0:
            raise ValueError("an utterance must contain at least one sample")

    @property
    def sample_count(self) -> int:
        return len(self.samples)

    @property
    def duration_ms(self) -> float:
        """Duration of the transmitted audio (silence excluded)."""
        return self.sample_count * 1000 / self.sample_rate

    def to_bytes(self) -> bytes:
        """Raw wire form: little-endian mono PCM16, 2 bytes per sample."""
        return pcm16_to_bytes(self.samples)


class Speaker(str, Enum):
    """Who said a transcript line."""
    USER = "user"
    BOT = "bot"


@dataclass(frozen=True, slots=True)
class TranscriptEntry:
    speaker: Speaker
    text: str


class TranscriptLog:
    """
    Append-only conversation log.

    Entries are frozen and kept in arrival order for the lifetime of the
    session; nothing is ever edited, removed or reordered.
    """

    def __init__(self) -> None:
        self._entries: list[TranscriptEntry] = []

    def append(self, speaker: Speaker | str, text: str) -> TranscriptEntry:
        entry = TranscriptEntry(speaker=Speaker(speaker), text=text)
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TranscriptEntry]:
        return iter(tuple(self._entries))


@dataclass
class CaptionState:
    """Most recent partial transcript. Overwritten, never accumulated."""
    text: str = ""
    updates: int = field(default=0, compare=False)

    def update(self, text: str) -> None:
        self.text = text
        self.updates += 1

    def clear(self) -> None:
        self.text = ""

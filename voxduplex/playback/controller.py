"""
Playback controller.

Owns the synthesized-speech playbacks and their interruption policy:

- a new reply with ``interrupt`` set ends whatever is playing first
- user speech (barge-in) ends whatever is playing
- a natural-end notification only counts if it comes from a session the
  controller still tracks; late callbacks from superseded sessions are
  ignored (identity check, not "any playback ended")

Device refusals are recorded and logged, never retried.
"""

from __future__ import annotations

import itertools
import logging
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

from voxduplex.errors import PlaybackRejected
from voxduplex.playback.clip import AudioClip

logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    ENDED = "ended"


@runtime_checkable
class OutputDevice(Protocol):
    """Protocol for audio output devices."""

    def play(self, clip: AudioClip) -> Any:
        """Start playing and return a device handle. Raises PlaybackRejected."""
        ...

    def stop(self, handle: Any) -> None:
        """Stop output for the handle immediately."""
        ...

    def on_natural_end(self, handle: Any, callback: Callable[[], None]) -> None:
        """Invoke ``callback`` once when the handle finishes unassisted."""
        ...


class PlaybackSession:
    """One synthesized-speech playback. Payload is decoded once, up front."""

    _ids = itertools.count(1)

    def __init__(self, clip: AudioClip, interruptible: bool = True) -> None:
        self.session_id = next(self._ids)
        self.clip = clip
        self.interruptible = interruptible
        self.state = PlaybackState.IDLE
        self.handle: Any = None

    @property
    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    def __repr__(self) -> str:
        return f"PlaybackSession(id={self.session_id}, state={self.state.value})"


class PlaybackController:
    """
    Tracks playing sessions and enforces the interruption policy.

    Normally at most one session plays: replies interrupt their predecessor.
    A reply sent with ``interrupt_prior=False`` plays alongside the current
    one; both stay tracked and ``current`` is the newest.
    """

    def __init__(self, device: OutputDevice) -> None:
        self._device = device
        self._active: list[PlaybackSession] = []
        self.rejections: int = 0
        self.last_error: Exception | None = None

    @property
    def current(self) -> PlaybackSession | None:
        return self._active[-1] if self._active else None

    @property
    def active(self) -> tuple[PlaybackSession, ...]:
        return tuple(self._active)

    @property
    def is_playing(self) -> bool:
        return bool(self._active)

    def start_playback(
        self,
        payload: AudioClip | str | bytes,
        interrupt_prior: bool = True,
        interruptible: bool = True,
    ) -> PlaybackSession | None:
        """
        Start a new playback.

        Returns the PLAYING session, or None when the payload could not be
        decoded or the device refused it. Nothing is retried.
        """
        try:
            clip = AudioClip.decode(payload)
        except ValueError as e:
            self._reject(e)
            return None

        if interrupt_prior:
            self._end_interruptible("superseded")

        session = PlaybackSession(clip, interruptible=interruptible)
        try:
            session.handle = self._device.play(clip)
        except PlaybackRejected as e:
            self._reject(e)
            return None

        session.state = PlaybackState.PLAYING
        self._active.append(session)
        self._device.on_natural_end(session.handle, lambda: self.on_playback_natural_end(session))
        logger.debug(f"Playback {session.session_id} started ({clip.duration_ms:.0f}ms)")
        return session

    def on_speech_detected(self) -> None:
        """Barge-in: user speech ends interruptible playback."""
        self._end_interruptible("barge-in")

    def on_playback_natural_end(self, session: PlaybackSession) -> None:
        if not any(s is session for s in self._active):
            logger.debug(f"Ignoring stale end callback from playback {session.session_id}")
            return
        self._active = [s for s in self._active if s is not session]
        session.state = PlaybackState.ENDED
        session.handle = None
        logger.debug(f"Playback {session.session_id} finished")

    def stop_all(self) -> None:
        """End every tracked session regardless of its interruptible flag."""
        for session in list(self._active):
            self._end(session, "stopped")

    def _end_interruptible(self, reason: str) -> None:
        for session in list(self._active):
            if session.interruptible:
                self._end(session, reason)

    def _end(self, session: PlaybackSession, reason: str) -> None:
        self._active = [s for s in self._active if s is not session]
        session.state = PlaybackState.ENDED
        self._device.stop(session.handle)
        session.handle = None
        logger.debug(f"Playback {session.session_id} ended: {reason}")

    def _reject(self, error: Exception) -> None:
        self.rejections += 1
        self.last_error = error
        logger.warning(f"Playback rejected: {error}")

"""Timed cry capture with pause/resume and playback.

State machine::

    IDLE ──start──▶ RECORDING ──pause──▶ PAUSED
                      │  ▲                 │
                      │  └─────resume──────┘
                      └──stop / 30 s──▶ STOPPED ──start──▶ RECORDING

Elapsed time is derived from a monotonic clock and never exceeds
``MAX_RECORDING_SECONDS``. A single deadline timer enforces the limit; it is
cancelled on pause and rescheduled for the remaining budget on resume.
"""

import enum
import functools
import logging
import threading
import time
from typing import Callable, Optional

from . import config
from .devices import AudioInput, AudioPlayer, MicrophoneInput, SpeakerPlayer, encode_wav
from .errors import CaptureInterrupted, DeviceError, DeviceUnavailable, InvalidStateError
from .models import Clip

logger = logging.getLogger(__name__)


class CaptureState(enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"


# Only one clip plays at a time across the whole process
_playback_lock = threading.Lock()
_active_playback: Optional["AudioCaptureSession"] = None


def _claim_playback(session: "AudioCaptureSession") -> Optional["AudioCaptureSession"]:
    global _active_playback
    with _playback_lock:
        previous, _active_playback = _active_playback, session
    return previous if previous is not session else None


def _release_playback(session: "AudioCaptureSession") -> None:
    global _active_playback
    with _playback_lock:
        if _active_playback is session:
            _active_playback = None


class AudioCaptureSession:
    """Records one clip at a time from an :class:`AudioInput`.

    Parameters
    ----------
    input_factory : callable
        Returns a fresh, unopened audio input for each recording.
    player : AudioPlayer, optional
        Output used by :meth:`play`.
    clock : callable
        Monotonic time source in seconds.
    timer_factory : callable
        ``threading.Timer``-compatible factory used for the auto-stop deadline.
    auto_collect : bool
        Start a daemon thread that collects audio every ``tick_seconds``.
        When False the owner calls :meth:`tick` itself.
    """

    def __init__(
        self,
        input_factory: Callable[[], AudioInput] = MicrophoneInput,
        player: Optional[AudioPlayer] = None,
        clock: Callable[[], float] = time.monotonic,
        timer_factory=threading.Timer,
        max_seconds: float = config.MAX_RECORDING_SECONDS,
        tick_seconds: float = config.TICK_SECONDS,
        sample_rate: int = config.SAMPLE_RATE,
        auto_collect: bool = True,
        encoder: Callable[[bytes, int], bytes] = encode_wav,
    ):
        self._input_factory = input_factory
        self._player = player if player is not None else SpeakerPlayer()
        self._clock = clock
        self._timer_factory = timer_factory
        self._max_seconds = max_seconds
        self._tick_seconds = tick_seconds
        self._sample_rate = sample_rate
        self._auto_collect = auto_collect
        self._encoder = encoder

        self._lock = threading.RLock()
        self._state = CaptureState.IDLE
        self._input: Optional[AudioInput] = None
        self._chunks: list[bytes] = []
        self._clip: Optional[Clip] = None
        self._accumulated = 0.0
        self._segment_start = 0.0
        self._deadline = None
        self._deadline_generation = 0
        self._ticker_stop: Optional[threading.Event] = None
        self._playing = False
        self.error: Optional[Exception] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def clip(self) -> Optional[Clip]:
        return self._clip

    @property
    def elapsed(self) -> float:
        """Recorded seconds so far, frozen while paused, capped at the limit."""
        with self._lock:
            elapsed = self._accumulated
            if self._state is CaptureState.RECORDING:
                elapsed += self._clock() - self._segment_start
            return min(elapsed, self._max_seconds)

    @property
    def remaining(self) -> float:
        return max(0.0, self._max_seconds - self.elapsed)

    @property
    def is_playing(self) -> bool:
        return self._playing

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Acquire the input and begin a new recording.

        Raises
        ------
        DeviceUnavailable
            No device or permission denied; state and clip are unchanged.
        InvalidStateError
            Already recording or paused.
        """
        with self._lock:
            if self._state not in (CaptureState.IDLE, CaptureState.STOPPED):
                raise InvalidStateError(f"Cannot start while {self._state.value}")

            audio_input = self._input_factory()
            try:
                audio_input.open()
            except DeviceUnavailable:
                raise
            except DeviceError as e:
                raise DeviceUnavailable(str(e)) from e

            self.stop_playback()
            self._input = audio_input
            self._chunks = []
            self._clip = None
            self.error = None
            self._accumulated = 0.0
            self._segment_start = self._clock()
            self._state = CaptureState.RECORDING
            self._schedule_deadline(self._max_seconds)
            self._start_ticker()
            logger.info("Recording started (limit %.0fs)", self._max_seconds)

    def pause(self) -> None:
        with self._lock:
            if self._state is not CaptureState.RECORDING:
                raise InvalidStateError(f"Cannot pause while {self._state.value}")
            self._collect()
            self._accumulated = min(
                self._max_seconds, self._accumulated + self._clock() - self._segment_start,
            )
            self._cancel_deadline()
            self._state = CaptureState.PAUSED
            logger.debug("Recording paused at %.1fs", self._accumulated)

    def resume(self) -> None:
        with self._lock:
            if self._state is not CaptureState.PAUSED:
                raise InvalidStateError(f"Cannot resume while {self._state.value}")
            # Drop whatever the input buffered while paused
            try:
                self._input.read()
            except DeviceError as e:
                self._interrupt(e)
            self._segment_start = self._clock()
            self._state = CaptureState.RECORDING
            remaining = self._max_seconds - self._accumulated
            if remaining <= 0:
                self.stop()
                return
            self._schedule_deadline(remaining)
            logger.debug("Recording resumed, %.1fs left", remaining)

    def stop(self) -> Clip:
        """Finish the recording and return the clip."""
        with self._lock:
            if self._state not in (CaptureState.RECORDING, CaptureState.PAUSED):
                raise InvalidStateError(f"Cannot stop while {self._state.value}")
            self._cancel_deadline()
            self._stop_ticker()
            was_recording = self._state is CaptureState.RECORDING
            if was_recording:
                self._accumulated = min(
                    self._max_seconds, self._accumulated + self._clock() - self._segment_start,
                )
            try:
                if was_recording:
                    self._collect()
            finally:
                self._release_input()

            self._clip = Clip(
                data=self._encoder(b"".join(self._chunks), self._sample_rate),
                mime_type=config.CLIP_MIME_TYPE,
                duration_seconds=self._accumulated,
            )
            self._chunks = []
            self._state = CaptureState.STOPPED
            logger.info("Recording stopped: %.1fs, %d bytes", self._clip.duration_seconds, len(self._clip.data))
            return self._clip

    def tick(self) -> None:
        """Collect buffered audio; called once per tick while recording."""
        with self._lock:
            if self._state is CaptureState.RECORDING:
                self._collect()

    def discard(self) -> None:
        """Drop the clip (or the recording in progress) and return to IDLE."""
        self.stop_playback()
        with self._lock:
            self._cancel_deadline()
            self._stop_ticker()
            self._release_input()
            self._reset()
            self.error = None

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def play(self) -> None:
        with self._lock:
            if self._state is not CaptureState.STOPPED or self._clip is None:
                raise InvalidStateError("Nothing to play")
            clip = self._clip

        previous = _claim_playback(self)
        if previous is not None:
            previous.stop_playback()

        with self._lock:
            try:
                self._player.play(clip, on_finished=self._on_playback_finished)
            except DeviceError:
                _release_playback(self)
                raise
            self._playing = True

    def stop_playback(self) -> None:
        with self._lock:
            if self._playing:
                self._player.stop()
                self._playing = False
        _release_playback(self)

    def _on_playback_finished(self) -> None:
        with self._lock:
            self._playing = False
        _release_playback(self)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _collect(self) -> None:
        try:
            data = self._input.read()
        except DeviceError as e:
            self._interrupt(e)
            return
        if data:
            self._chunks.append(data)

    def _interrupt(self, exc: DeviceError) -> None:
        """Abandon the recording after a device failure and raise CaptureInterrupted."""
        logger.error("Microphone failed during recording: %s", exc)
        self._cancel_deadline()
        self._stop_ticker()
        self._release_input()
        self._reset()
        self.error = exc
        raise CaptureInterrupted(f"Recording interrupted: {exc}") from exc

    def _reset(self) -> None:
        self._chunks = []
        self._clip = None
        self._accumulated = 0.0
        self._state = CaptureState.IDLE

    def _release_input(self) -> None:
        audio_input, self._input = self._input, None
        if audio_input is None:
            return
        try:
            audio_input.close()
        except DeviceError:
            logger.exception("Error releasing audio input")

    def _schedule_deadline(self, seconds: float) -> None:
        self._cancel_deadline()
        self._deadline_generation += 1
        timer = self._timer_factory(seconds, functools.partial(self._on_deadline, self._deadline_generation))
        timer.daemon = True
        timer.start()
        self._deadline = timer

    def _cancel_deadline(self) -> None:
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None

    def _on_deadline(self, generation: int) -> None:
        with self._lock:
            if generation != self._deadline_generation or self._state is not CaptureState.RECORDING:
                return
            logger.info("Recording limit of %.0fs reached", self._max_seconds)
            try:
                self.stop()
            except CaptureInterrupted:
                logger.warning("Auto-stop found the microphone failed; recording discarded")

    def _start_ticker(self) -> None:
        if not self._auto_collect:
            return
        stop_event = threading.Event()
        self._ticker_stop = stop_event

        def run():
            while not stop_event.wait(self._tick_seconds):
                with self._lock:
                    if stop_event.is_set():
                        return
                    try:
                        self.tick()
                    except CaptureInterrupted:
                        return

        threading.Thread(target=run, name="letbabytalk-capture-tick", daemon=True).start()

    def _stop_ticker(self) -> None:
        if self._ticker_stop is not None:
            self._ticker_stop.set()
            self._ticker_stop = None

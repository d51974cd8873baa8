"""Audio hardware: microphone input, speaker output and WAV encoding.

PyAudio is only needed for real devices (``pip install letbabytalk[mic]``);
it is imported on first use so the rest of the client works without it.
"""

import importlib
import io
import logging
import threading
from typing import Callable, Optional, Protocol

import numpy as np
import soundfile as sf

from . import config
from .errors import DeviceError, DeviceUnavailable
from .models import Clip

logger = logging.getLogger(__name__)


class AudioInput(Protocol):
    """A source of raw PCM audio (mono int16)."""

    def open(self) -> None: ...

    def read(self) -> bytes:
        """Return and clear everything buffered since the last read."""
        ...

    def close(self) -> None: ...


class AudioPlayer(Protocol):
    def play(self, clip: Clip, on_finished: Optional[Callable[[], None]] = None) -> None: ...

    def stop(self) -> None: ...


def _load_pyaudio():
    try:
        return importlib.import_module("pyaudio")
    except ImportError as e:
        raise DeviceUnavailable("PyAudio is not installed (pip install letbabytalk[mic])") from e


def encode_wav(pcm: bytes, sample_rate: int = config.SAMPLE_RATE) -> bytes:
    """Wrap raw mono int16 PCM into a WAV container."""
    samples = np.frombuffer(pcm, dtype=np.int16)
    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def decode_wav(data: bytes) -> tuple[np.ndarray, int]:
    samples, sample_rate = sf.read(io.BytesIO(data), dtype="int16")
    return samples, sample_rate


class MicrophoneInput:
    """PyAudio input stream; the callback thread fills an in-memory buffer."""

    def __init__(
        self,
        rate: int = config.SAMPLE_RATE,
        channels: int = config.CHANNELS,
        frames_per_buffer: int = config.FRAMES_PER_BUFFER,
        device_index: Optional[int] = None,
    ):
        self._rate = rate
        self._channels = channels
        self._frames_per_buffer = frames_per_buffer
        self._device_index = device_index
        self._pa = None
        self._audio = None
        self._stream = None
        self._buffer: list[bytes] = []
        self._lock = threading.Lock()

    def open(self) -> None:
        self._pa = _load_pyaudio()
        try:
            self._audio = self._pa.PyAudio()
            self._stream = self._audio.open(
                format=self._pa.paInt16,
                channels=self._channels,
                rate=self._rate,
                input=True,
                frames_per_buffer=self._frames_per_buffer,
                input_device_index=self._device_index,
                stream_callback=self._callback,
            )
        except (OSError, ValueError) as e:
            self.close()
            raise DeviceUnavailable(f"Cannot open microphone: {e}") from e
        logger.info("Microphone opened (%d Hz, device=%s)", self._rate, self._device_index)

    def _callback(self, in_data, frame_count, time_info, status):
        if status:
            logger.debug("Input stream status flags: %s", status)
        with self._lock:
            self._buffer.append(in_data)
        return None, self._pa.paContinue

    def read(self) -> bytes:
        if self._stream is None:
            raise DeviceError("Microphone is not open")
        try:
            active = self._stream.is_active()
        except OSError as e:
            raise DeviceError(f"Microphone stream failed: {e}") from e
        with self._lock:
            data = b"".join(self._buffer)
            self._buffer.clear()
        if not active:
            raise DeviceError("Microphone stream stopped unexpectedly")
        return data

    def close(self) -> None:
        try:
            if self._stream is not None:
                self._stream.stop_stream()
                self._stream.close()
        except OSError:
            logger.exception("Error closing microphone stream")
        finally:
            self._stream = None
            if self._audio is not None:
                self._audio.terminate()
                self._audio = None
            with self._lock:
                self._buffer.clear()


class SpeakerPlayer:
    """Plays a clip on the default output device from a background thread."""

    def __init__(self, frames_per_buffer: int = config.FRAMES_PER_BUFFER):
        self._frames_per_buffer = frames_per_buffer
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def play(self, clip: Clip, on_finished: Optional[Callable[[], None]] = None) -> None:
        pa = _load_pyaudio()
        samples, sample_rate = decode_wav(clip.data)
        channels = 1 if samples.ndim == 1 else samples.shape[1]
        try:
            audio = pa.PyAudio()
        except (OSError, ValueError) as e:
            raise DeviceUnavailable(f"Cannot open speaker: {e}") from e
        try:
            stream = audio.open(format=pa.paInt16, channels=channels, rate=sample_rate, output=True)
        except (OSError, ValueError) as e:
            audio.terminate()
            raise DeviceUnavailable(f"Cannot open speaker: {e}") from e

        self.stop()
        self._stop_event = threading.Event()
        stop_event = self._stop_event
        pcm = samples.tobytes()
        step = self._frames_per_buffer * channels * 2

        def run():
            try:
                for offset in range(0, len(pcm), step):
                    if stop_event.is_set():
                        break
                    stream.write(pcm[offset:offset + step])
            except OSError:
                logger.exception("Playback failed")
            finally:
                stream.stop_stream()
                stream.close()
                audio.terminate()
                if on_finished is not None and not stop_event.is_set():
                    on_finished()

        self._thread = threading.Thread(target=run, name="letbabytalk-playback", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

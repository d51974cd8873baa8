"""Tests for the PyAudio-backed devices with a fake PyAudio module."""

import types

import pytest

from letbabytalk import devices
from letbabytalk.errors import DeviceUnavailable
from letbabytalk.models import Clip


class FakePyAudio:
    instances: list["FakePyAudio"] = []
    open_error: Exception | None = None

    def __init__(self):
        self.terminated = False
        FakePyAudio.instances.append(self)

    def open(self, **kwargs):
        if FakePyAudio.open_error is not None:
            raise FakePyAudio.open_error
        raise AssertionError("unexpected successful open")

    def terminate(self):
        self.terminated = True


@pytest.fixture
def fake_pyaudio(monkeypatch):
    FakePyAudio.instances = []
    FakePyAudio.open_error = OSError("Invalid output device")
    module = types.SimpleNamespace(PyAudio=FakePyAudio, paInt16=8, paContinue=0)
    monkeypatch.setattr(devices, "_load_pyaudio", lambda: module)
    return FakePyAudio


def _clip():
    pcm = b"\x01\x00" * 1600
    return Clip(data=devices.encode_wav(pcm, 16000), mime_type="audio/wav", duration_seconds=0.1)


class TestSpeakerPlayer:
    def test_failed_open_releases_pyaudio(self, fake_pyaudio):
        with pytest.raises(DeviceUnavailable, match="Invalid output device"):
            devices.SpeakerPlayer().play(_clip())
        [audio] = fake_pyaudio.instances
        assert audio.terminated


class TestMicrophoneInput:
    def test_failed_open_releases_pyaudio(self, fake_pyaudio):
        mic = devices.MicrophoneInput()
        with pytest.raises(DeviceUnavailable):
            mic.open()
        [audio] = fake_pyaudio.instances
        assert audio.terminated

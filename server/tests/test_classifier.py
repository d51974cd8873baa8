"""Tests for the classifier HTTP client."""

import json

import pytest
import requests

from server.app.errors import UpstreamServiceError
from server.app.services import classifier as classifier_module
from server.app.services.classifier import CryClassifierClient


class _FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self._text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "recording-1-1.wav"
    path.write_bytes(b"RIFF....WAVE")
    return path


@pytest.fixture
def posted(monkeypatch):
    """Patch requests.post; the test sets ``posted['response']`` or ``posted['raise']``."""
    state = {"response": None, "raise": None, "calls": []}

    def fake_post(url, files=None, data=None, timeout=None):
        state["calls"].append({"url": url, "files": files, "data": data, "timeout": timeout})
        if state["raise"] is not None:
            raise state["raise"]
        return state["response"]

    monkeypatch.setattr(classifier_module.requests, "post", fake_post)
    return state


class TestCryClassifierClient:
    def test_success(self, posted, audio_file):
        posted["response"] = _FakeResponse(payload={
            "data": {"result": {"class": "sleepiness", "probs": {"sleepiness": 0.7, "normal": 0.3}, "show": True}},
        })
        client = CryClassifierClient(url="http://classifier.test/process_audio", timeout=30)

        result = client.classify(audio_file, user_id="u1", pressing=True, filename="cry.wav")

        assert result.label == "sleepiness"
        assert result.confidence == 0.7
        call = posted["calls"][0]
        assert call["url"] == "http://classifier.test/process_audio"
        assert call["timeout"] == 30
        assert call["files"]["audio"][0] == "cry.wav"
        metadata = json.loads(call["data"]["metadata"])
        assert metadata["user_id"] == "u1"
        assert metadata["pressing"] is True
        assert metadata["audio_format"] == "audio/wav"

    def test_confidence_defaults_to_zero(self, posted, audio_file):
        posted["response"] = _FakeResponse(payload={"data": {"result": {"class": "normal", "probs": {}}}})
        result = CryClassifierClient().classify(audio_file, user_id="u1")
        assert result.confidence == 0.0

    def test_timeout(self, posted, audio_file):
        posted["raise"] = requests.Timeout("read timed out")
        with pytest.raises(UpstreamServiceError, match="timed out"):
            CryClassifierClient(timeout=30).classify(audio_file, user_id="u1")

    def test_connection_error(self, posted, audio_file):
        posted["raise"] = requests.ConnectionError("refused")
        with pytest.raises(UpstreamServiceError, match="unreachable"):
            CryClassifierClient().classify(audio_file, user_id="u1")

    def test_bad_status(self, posted, audio_file):
        posted["response"] = _FakeResponse(status_code=502)
        with pytest.raises(UpstreamServiceError, match="502"):
            CryClassifierClient().classify(audio_file, user_id="u1")

    def test_not_json(self, posted, audio_file):
        posted["response"] = _FakeResponse(text="<html>oops</html>")
        with pytest.raises(UpstreamServiceError, match="Invalid response format"):
            CryClassifierClient().classify(audio_file, user_id="u1")

    def test_missing_result(self, posted, audio_file):
        posted["response"] = _FakeResponse(payload={"data": {}})
        with pytest.raises(UpstreamServiceError, match="Invalid response format"):
            CryClassifierClient().classify(audio_file, user_id="u1")

    def test_missing_file(self, posted, tmp_path):
        with pytest.raises(UpstreamServiceError):
            CryClassifierClient().classify(tmp_path / "gone.wav", user_id="u1")
        assert posted["calls"] == []

"""Tests for the API client and the recording uploader (fake HTTP session)."""

import json
import threading

import pytest
import requests

from letbabytalk.errors import ApiError, AuthenticationRequired, UploadError, UploadInProgress
from letbabytalk.models import Clip
from letbabytalk.upload_client import ApiClient, RecordingUploadClient

_RECORDING = {
    "id": 7,
    "userId": "guest_1_abc",
    "babyProfileId": 3,
    "filename": "recording-1-1.wav",
    "duration": 12,
    "analysisResult": {
        "cryType": "hunger_milk",
        "confidence": 0.8,
        "recommendations": ["Try feeding if it's been more than 2 hours"],
        "rawResult": {"class": "hunger_milk", "probs": {"hunger_milk": 0.8, "normal": 0.2}, "show": True},
    },
    "predictClass": "hunger_milk",
    "rateState": None,
    "recordedAt": "2025-03-12T10:00:00Z",
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, reason="OK"):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason
        self.content = b"" if payload is None else json.dumps(payload).encode()

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class FakeSession:
    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


def _clip(seconds=12.7):
    return Clip(data=b"RIFF....WAVEdata", mime_type="audio/wav", duration_seconds=seconds)


class TestApiClient:
    def test_builds_api_url(self):
        session = FakeSession([FakeResponse(payload={"status": "ok"})])
        api = ApiClient("http://server:5000/", session=session)
        assert api.health() == {"status": "ok"}
        method, url, kwargs = session.calls[0]
        assert (method, url) == ("GET", "http://server:5000/api/health")
        assert kwargs["timeout"] == api.timeout

    def test_401_runs_hook_then_raises(self):
        hook_calls = []
        session = FakeSession([FakeResponse(401, {"status": "error", "message": "Not authenticated"})])
        api = ApiClient(session=session, on_unauthorized=lambda: hook_calls.append(1))
        with pytest.raises(AuthenticationRequired):
            api.recordings()
        assert hook_calls == [1]

    def test_other_errors_carry_status_and_message(self):
        session = FakeSession([FakeResponse(404, {"status": "error", "message": "Recording not found"})])
        with pytest.raises(ApiError) as exc_info:
            ApiClient(session=session).recording(99)
        assert exc_info.value.status == 404
        assert exc_info.value.message == "Recording not found"

    def test_connection_error(self):
        session = FakeSession(error=requests.ConnectionError("refused"))
        with pytest.raises(UploadError):
            ApiClient(session=session).health()


class TestRecordingUploadClient:
    def test_upload_sends_floored_duration(self):
        session = FakeSession([FakeResponse(201, _RECORDING)])
        uploader = RecordingUploadClient(ApiClient(session=session))

        result = uploader.upload(_clip(12.7), baby_profile_id=3)

        method, url, kwargs = session.calls[0]
        assert (method, url.endswith("/api/recordings")) == ("POST", True)
        assert kwargs["data"] == {"duration": "12", "babyProfileId": "3"}
        name, data, mime = kwargs["files"]["audio"]
        assert data == _clip().data and mime == "audio/wav"

        assert result.recording_id == 7
        assert result.cry_type == "hunger_milk"
        assert result.confidence == 0.8
        assert result.probabilities["normal"] == 0.2
        assert not result.failed

    def test_upload_without_baby(self):
        session = FakeSession([FakeResponse(201, _RECORDING)])
        RecordingUploadClient(ApiClient(session=session)).upload(_clip())
        assert "babyProfileId" not in session.calls[0][2]["data"]

    def test_fallback_result(self):
        payload = dict(_RECORDING, predictClass="unknown", analysisResult={
            "cryType": "unknown", "confidence": 0,
            "recommendations": ["AI analysis temporarily unavailable"],
            "error": "Classifier timed out after 30s",
        })
        session = FakeSession([FakeResponse(201, payload)])
        result = RecordingUploadClient(ApiClient(session=session)).upload(_clip())
        assert result.failed
        assert result.cry_type == "unknown"
        assert result.recommendations

    def test_failure_keeps_clip_and_allows_retry(self):
        session = FakeSession([FakeResponse(500, {"status": "error", "message": "boom"}), FakeResponse(201, _RECORDING)])
        uploader = RecordingUploadClient(ApiClient(session=session))
        clip = _clip()
        with pytest.raises(ApiError):
            uploader.upload(clip)
        assert not uploader.busy
        assert uploader.upload(clip).recording_id == 7

    def test_concurrent_upload_rejected(self):
        started, release = threading.Event(), threading.Event()

        class SlowSession(FakeSession):
            def request(self, method, url, **kwargs):
                started.set()
                release.wait(5)
                return FakeResponse(201, _RECORDING)

        uploader = RecordingUploadClient(ApiClient(session=SlowSession()))
        worker = threading.Thread(target=uploader.upload, args=(_clip(),))
        worker.start()
        try:
            assert started.wait(5)
            with pytest.raises(UploadInProgress):
                uploader.upload(_clip())
        finally:
            release.set()
            worker.join(5)
        assert not uploader.busy

"""Shared fixtures for the server tests.

The database and upload directory are pointed at a throw-away directory
before any ``server.app`` module is imported.
"""

import io
import os
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="letbabytalk-tests-"))
os.environ["LETBABYTALK_DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["LETBABYTALK_UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["LETBABYTALK_S3_BUCKET"] = ""

import numpy as np  # noqa: E402
import pytest  # noqa: E402
import soundfile as sf  # noqa: E402
from botocore.exceptions import ClientError  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from server.app import config  # noqa: E402
from server.app.database import Base, engine  # noqa: E402
from server.app.errors import UpstreamServiceError  # noqa: E402
from server.app.main import app  # noqa: E402
from server.app.services.auth import otp_store  # noqa: E402
from server.app.services.classifier import ClassifierResult, get_classifier  # noqa: E402
from server.app.services.object_storage import AudioStore, get_audio_store  # noqa: E402


class FakeClassifier:
    """Stands in for the external classifier; records every call."""

    def __init__(self):
        self.label = "hunger_milk"
        self.probs = {"hunger_milk": 0.8, "sleepiness": 0.15, "normal": 0.05}
        self.error: Exception | None = None
        self.calls: list[dict] = []

    def classify(self, audio_path, *, user_id, pressing=False, filename="recording.wav", timestamp=None):
        self.calls.append({
            "audio_path": Path(audio_path),
            "existed": Path(audio_path).exists(),
            "user_id": user_id,
            "pressing": pressing,
            "filename": filename,
        })
        if self.error is not None:
            raise self.error
        return ClassifierResult.model_validate({"class": self.label, "probs": self.probs, "show": True})

    def fail_with_timeout(self):
        self.error = UpstreamServiceError("Classifier timed out after 30s")


@pytest.fixture
def fake_classifier():
    return FakeClassifier()


@pytest.fixture
def client(fake_classifier):
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    otp_store.clear()
    app.dependency_overrides[get_classifier] = lambda: fake_classifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def issued_codes(monkeypatch):
    """Capture one-time codes as they are issued: {(purpose, identifier): code}."""
    codes = {}
    original = otp_store.issue

    def capture(purpose, identifier):
        code = original(purpose, identifier)
        codes[(purpose, identifier)] = code
        return code

    monkeypatch.setattr(otp_store, "issue", capture)
    return codes


@pytest.fixture
def guest(client):
    resp = client.post("/api/auth/guest")
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def upload_dir():
    return config.UPLOAD_DIR


def make_wav_bytes(duration_sec: float = 2.0, sr: int = 16000) -> bytes:
    """Generate a valid 16-bit PCM WAV file (220 Hz sine with a little noise)."""
    n_samples = int(sr * duration_sec)
    t = np.linspace(0, duration_sec, n_samples, dtype=np.float32)
    audio = (0.5 * np.sin(2 * np.pi * 220 * t) + 0.05 * np.random.randn(n_samples)).astype(np.float32)
    buf = io.BytesIO()
    sf.write(buf, audio, sr, format="WAV", subtype="PCM_16")
    return buf.getvalue()


@pytest.fixture
def make_wav():
    return make_wav_bytes


@pytest.fixture
def wav_bytes():
    return make_wav_bytes()


class FakeS3Client:
    """Records ``put_object`` calls; fails them when ``error`` is set."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.error: Exception | None = None

    def put_object(self, Bucket, Key, Body, ContentType=None):
        if self.error is not None:
            raise self.error
        self.objects[f"{Bucket}/{Key}"] = Body
        return {"ETag": '"fake"'}

    def fail(self):
        self.error = ClientError({"Error": {"Code": "503", "Message": "Slow Down"}}, "PutObject")


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def bucket_audio_store(client, fake_s3, tmp_path):
    """Route recording audio to a fake bucket; local copies land in tmp_path."""
    store = AudioStore(local_dir=tmp_path, client=fake_s3, bucket="cries")
    app.dependency_overrides[get_audio_store] = lambda: store
    return store

"""Client for the external cry classifier.

The classifier takes a multipart upload (``audio`` + JSON ``metadata``) and
answers ``{"data": {"result": {"class", "probs", "show"}}}``. Any transport
failure, non-2xx status or malformed body is reported as
:class:`UpstreamServiceError`; no retries are attempted.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import requests
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .. import config
from ..errors import UpstreamServiceError

logger = logging.getLogger(__name__)


class ClassifierResult(BaseModel):
    """``data.result`` of the classifier reply."""
    label: str = Field(..., alias="class", min_length=1)
    probs: dict[str, float] = Field(default_factory=dict)
    show: bool = True

    @property
    def confidence(self) -> float:
        return self.probs.get(self.label, 0.0)


class _ClassifierData(BaseModel):
    result: Optional[ClassifierResult] = None


class ClassifierResponse(BaseModel):
    data: Optional[_ClassifierData] = None


class CryClassifierClient:
    """Blocking HTTP client around the classifier endpoint."""

    def __init__(self, url: str = config.CLASSIFIER_URL, timeout: float = config.CLASSIFIER_TIMEOUT_SEC):
        self.url = url
        self.timeout = timeout

    def classify(
        self,
        audio_path: Path,
        *,
        user_id: str,
        pressing: bool = False,
        filename: str = "recording.wav",
        timestamp: Optional[datetime] = None,
    ) -> ClassifierResult:
        metadata = {
            "user_id": user_id,
            "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
            "audio_format": config.AUDIO_FORMAT,
            "pressing": pressing,
        }

        try:
            with open(audio_path, "rb") as fh:
                response = requests.post(
                    self.url,
                    files={"audio": (filename, fh, config.AUDIO_FORMAT)},
                    data={"metadata": json.dumps(metadata)},
                    timeout=self.timeout,
                )
        except requests.Timeout as e:
            raise UpstreamServiceError(f"Classifier timed out after {self.timeout:.0f}s") from e
        except (requests.RequestException, OSError) as e:
            raise UpstreamServiceError(f"Classifier unreachable: {e}") from e

        if not response.ok:
            raise UpstreamServiceError(f"AI API responded with status: {response.status_code}")

        try:
            parsed = ClassifierResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise UpstreamServiceError(f"Invalid response format from AI API: {e}") from e

        if parsed.data is None or parsed.data.result is None:
            raise UpstreamServiceError("Invalid response format from AI API")

        result = parsed.data.result
        logger.info("Classifier answered %s (p=%.2f) for user %s", result.label, result.confidence, user_id)
        return result


classifier = CryClassifierClient()


def get_classifier() -> CryClassifierClient:
    """Dependency: the shared classifier client (overridden in tests)."""
    return classifier

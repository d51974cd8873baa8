"""Caregiver feedback on a classification."""

import logging
from typing import Optional

from .errors import AlreadyRated
from .models import Recording
from .upload_client import ApiClient

logger = logging.getLogger(__name__)

GOOD = "good"
BAD = "bad"


def correction_reason(label: str) -> str:
    """Free-text rating reason naming the label the caregiver picked instead."""
    return f"Corrected cry reason: {label}"


class RatingController:
    """Rates a recording once; a rated recording cannot be rated again."""

    def __init__(self, api: ApiClient):
        self.api = api

    def rate(self, recording: Recording, rate_state: str, rate_reason: Optional[str] = None) -> Recording:
        if recording.rate_state:
            raise AlreadyRated(f"Recording {recording.id} is already rated {recording.rate_state!r}")
        updated = self.api.rate(recording.id, rate_state, rate_reason)
        logger.info("Recording %s rated %s", recording.id, rate_state)
        return updated

    def confirm(self, recording: Recording) -> Recording:
        return self.rate(recording, GOOD)

    def correct(self, recording: Recording, label: str) -> Recording:
        """Mark the classification wrong and record the caregiver's label."""
        return self.rate(recording, BAD, correction_reason(label))

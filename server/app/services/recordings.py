"""Recording persistence: classifier proxy, lookup, deletion and caregiver rating.

A recording row is only ever created together with its analysis result.
When the classifier fails the row still gets written, carrying a fallback
result with ``cryType == "unknown"``.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from .. import config
from ..errors import NotFound, UpstreamServiceError, ValidationError
from ..models import CryReasonDescription, Recording
from .audio_processor import remove_temp_upload, save_temp_upload
from .classifier import ClassifierResult, CryClassifierClient
from .object_storage import AudioStore

logger = logging.getLogger(__name__)

RATE_STATES = ("good", "bad")
UNKNOWN_LABEL = "unknown"


def build_analysis_result(result: ClassifierResult, recommendations: list[str]) -> dict:
    """Normalize a classifier answer into the stored analysis result."""
    return {
        "cryType": result.label,
        "confidence": result.confidence,
        "recommendations": recommendations,
        "rawResult": {
            "class": result.label,
            "probs": result.probs,
            "show": result.show,
        },
    }


def build_fallback_result(error: Exception) -> dict:
    return {
        "cryType": UNKNOWN_LABEL,
        "confidence": 0,
        "recommendations": list(config.FALLBACK_RECOMMENDATIONS),
        "error": str(error),
    }


def _recommendations_for(db: Session, label: str) -> list[str]:
    reason = db.query(CryReasonDescription).filter(CryReasonDescription.class_name == label).first()
    if reason is None:
        return []
    return list(reason.recommendations or [])


def create_recording(
    db: Session,
    user_id: str,
    *,
    audio_bytes: bytes,
    classifier: CryClassifierClient,
    original_filename: Optional[str] = None,
    duration: Optional[int] = None,
    baby_profile_id: Optional[int] = None,
    pressing: bool = False,
    audio_store: Optional[AudioStore] = None,
    upload_dir: Path = config.UPLOAD_DIR,
) -> Recording:
    """Keep a copy of the clip, classify it and persist it with its analysis result.

    A failure to keep the copy only leaves ``audio_url`` empty. The temporary
    upload is removed whether classification succeeded or not. Persistence
    and cleanup are not atomic.
    """
    temp_path = save_temp_upload(audio_bytes, upload_dir)
    try:
        audio_url = None
        if audio_store is not None:
            audio_url = audio_store.save(user_id, temp_path, original_filename)
            if audio_url is None:
                logger.warning("No playable copy kept for upload %s", temp_path.name)

        try:
            result = classifier.classify(
                temp_path,
                user_id=user_id,
                pressing=pressing,
                filename=original_filename or "recording.wav",
                timestamp=datetime.now(timezone.utc),
            )
            analysis = build_analysis_result(result, _recommendations_for(db, result.label))
        except UpstreamServiceError as e:
            logger.warning("AI API error for user %s, storing fallback result: %s", user_id, e)
            analysis = build_fallback_result(e)

        recording = Recording(
            user_id=user_id,
            baby_profile_id=baby_profile_id,
            filename=temp_path.name,
            audio_url=audio_url,
            duration=duration,
            analysis_result=analysis,
            predict_class=analysis["cryType"],
        )
        db.add(recording)
        db.commit()
        db.refresh(recording)
    finally:
        remove_temp_upload(temp_path)

    logger.info(
        "Recording %s stored: user=%s class=%s confidence=%.2f",
        recording.id, user_id, recording.predict_class, analysis["confidence"],
    )
    return recording


def get_recording(db: Session, recording_id: int, user_id: str) -> Recording:
    """Return the recording if *user_id* owns it; NotFound otherwise."""
    recording = (
        db.query(Recording)
        .filter(Recording.id == recording_id, Recording.user_id == user_id)
        .first()
    )
    if recording is None:
        raise NotFound("Recording not found")
    return recording


def list_recordings(db: Session, user_id: str) -> list[Recording]:
    return (
        db.query(Recording)
        .filter(Recording.user_id == user_id)
        .order_by(Recording.recorded_at.desc(), Recording.id.desc())
        .all()
    )


def rate_recording(
    db: Session,
    recording_id: int,
    user_id: str,
    rate_state: str,
    rate_reason: Optional[str] = None,
) -> Recording:
    """Store caregiver feedback. A later rating overwrites an earlier one."""
    if rate_state not in RATE_STATES:
        raise ValidationError("rateState must be 'good' or 'bad'")

    recording = get_recording(db, recording_id, user_id)
    recording.rate_state = rate_state
    recording.rate_reason = rate_reason
    recording.rate_time = datetime.now(timezone.utc)
    db.commit()
    db.refresh(recording)

    logger.info("Recording %s rated %s by %s", recording_id, rate_state, user_id)
    return recording


def delete_recording(
    db: Session,
    recording_id: int,
    user_id: str,
    audio_store: Optional[AudioStore] = None,
    upload_dir: Path = config.UPLOAD_DIR,
) -> None:
    """Delete an owned recording and any local audio left for it."""
    recording = get_recording(db, recording_id, user_id)
    filename = recording.filename
    db.delete(recording)
    db.commit()

    if filename:
        remove_temp_upload(Path(upload_dir) / Path(filename).name)
        if audio_store is not None:
            audio_store.remove_local(filename)

    logger.info("Recording %s deleted by %s", recording_id, user_id)

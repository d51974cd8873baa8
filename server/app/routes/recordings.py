"""Recording endpoints: upload with classification, listing, deletion and feedback."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import ValidationError
from ..models import User
from ..schemas import ErrorResponse, RateRequest, RecordingOut, SuccessResponse, VoteRequest
from ..services import recordings as store
from ..services.audio_processor import AudioValidationError, validate_upload
from ..services.auth import get_current_user
from ..services.classifier import CryClassifierClient, get_classifier
from ..services.object_storage import AudioStore, get_audio_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recordings")

# Thumbs up / down from older clients
_VOTE_ALIASES = {"up": "good", "down": "bad", "like": "good", "dislike": "bad"}


@router.get("", response_model=list[RecordingOut], summary="List recordings, newest first")
def list_recordings(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return store.list_recordings(db, user.id)


@router.post(
    "",
    response_model=RecordingOut,
    status_code=201,
    responses={400: {"model": ErrorResponse, "description": "Invalid audio"}},
    summary="Upload and classify a cry recording",
    description="Upload a WAV clip (max 50 MB). The stored recording always carries an analysis result.",
)
async def upload_recording(
    audio: UploadFile = File(..., description="Cry recording (WAV)"),
    duration: Optional[int] = Form(None, ge=0, description="Clip length in whole seconds"),
    baby_profile_id: Optional[int] = Form(None, alias="babyProfileId"),
    pressing: bool = Form(False),
    user: User = Depends(get_current_user),
    classifier: CryClassifierClient = Depends(get_classifier),
    audio_store: AudioStore = Depends(get_audio_store),
    db: Session = Depends(get_db),
):
    file_bytes = await audio.read()
    try:
        sha256 = validate_upload(file_bytes, audio.filename, audio.content_type)
    except AudioValidationError as e:
        raise ValidationError(str(e))

    logger.info(
        "Upload from %s: %d bytes, %ss, baby=%s, sha256=%s",
        user.id, len(file_bytes), duration, baby_profile_id, sha256[:12],
    )

    return await run_in_threadpool(
        store.create_recording,
        db,
        user.id,
        audio_bytes=file_bytes,
        classifier=classifier,
        original_filename=audio.filename,
        duration=duration,
        baby_profile_id=baby_profile_id,
        pressing=pressing,
        audio_store=audio_store,
    )


@router.get(
    "/{recording_id}",
    response_model=RecordingOut,
    responses={404: {"model": ErrorResponse}},
    summary="Get one recording",
)
def get_recording(recording_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return store.get_recording(db, recording_id, user.id)


@router.delete(
    "/{recording_id}",
    response_model=SuccessResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Delete a recording",
)
def delete_recording(
    recording_id: int,
    user: User = Depends(get_current_user),
    audio_store: AudioStore = Depends(get_audio_store),
    db: Session = Depends(get_db),
):
    store.delete_recording(db, recording_id, user.id, audio_store)
    return SuccessResponse()


@router.post(
    "/{recording_id}/rate",
    response_model=RecordingOut,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Rate a classification",
)
def rate_recording(
    recording_id: int,
    body: RateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return store.rate_recording(db, recording_id, user.id, body.rate_state, body.rate_reason)


@router.post(
    "/{recording_id}/vote",
    response_model=RecordingOut,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Vote on a classification",
)
def vote_recording(
    recording_id: int,
    body: VoteRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rate_state = _VOTE_ALIASES.get(body.vote.lower(), body.vote.lower())
    return store.rate_recording(db, recording_id, user.id, rate_state)

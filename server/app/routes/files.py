"""Static file access: owner-only audio, public profile images."""

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..errors import NotFound
from ..models import Recording, User
from ..services.auth import get_current_user

router = APIRouter()


def _safe_path(directory: Path, filename: str) -> Path:
    """Resolve *filename* inside *directory*; anything escaping it is a 404."""
    base = directory.resolve()
    path = (base / filename).resolve()
    if path.parent != base or not path.is_file():
        raise NotFound("File not found")
    return path


@router.get("/audio/{filename}", summary="Recording audio (owner only)")
def get_audio(filename: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    owned = (
        db.query(Recording)
        .filter(Recording.filename == filename, Recording.user_id == user.id)
        .first()
    )
    if owned is None:
        raise NotFound("File not found")
    return FileResponse(_safe_path(config.AUDIO_DIR, filename), media_type=config.AUDIO_FORMAT)


@router.get("/images/{filename}", summary="Profile image")
def get_image(filename: str):
    return FileResponse(_safe_path(config.IMAGE_DIR, filename))

"""Audio upload validation and temporary storage.

Responsibilities:
  - Validate uploaded files (WAV only, size limit, not empty)
  - Save to the upload directory under a unique name
  - Compute SHA-256 hash for log correlation
"""

import hashlib
import logging
import secrets
import time
from pathlib import Path
from typing import Optional

from .. import config

logger = logging.getLogger(__name__)


class AudioValidationError(Exception):
    """Raised when an uploaded audio file fails validation."""

    pass


def validate_upload(file_bytes: bytes, filename: Optional[str], content_type: Optional[str]) -> str:
    """Validate an uploaded recording and return its sha256 hash.

    Raises
    ------
    AudioValidationError
        If the file is empty, too large or not a WAV file.
    """
    if not file_bytes:
        raise AudioValidationError("No audio file provided")

    max_bytes = config.AUDIO_MAX_FILE_SIZE_MB * 1024 * 1024
    if len(file_bytes) > max_bytes:
        raise AudioValidationError(
            f"File too large: {len(file_bytes) / 1024 / 1024:.1f} MB "
            f"(maximum {config.AUDIO_MAX_FILE_SIZE_MB} MB)"
        )

    is_wav_type = (content_type or "").split(";")[0].strip().lower() in config.AUDIO_ALLOWED_TYPES
    is_wav_name = (filename or "").lower().endswith(".wav")
    if not (is_wav_type or is_wav_name):
        raise AudioValidationError("Only WAV files are allowed")

    return hashlib.sha256(file_bytes).hexdigest()


def save_temp_upload(file_bytes: bytes, upload_dir: Path = config.UPLOAD_DIR) -> Path:
    """Write the upload as ``recording-<ms>-<rand>.wav`` and return its path."""
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    path = Path(upload_dir) / f"recording-{unique_suffix}.wav"
    path.write_bytes(file_bytes)
    return path


def remove_temp_upload(path: Path) -> None:
    """Delete a temporary upload; a missing file is not an error."""
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.exception("Error cleaning up upload %s", path)

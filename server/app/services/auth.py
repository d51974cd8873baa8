"""Session, password and one-time-code handling.

Sessions are rows in the ``sessions`` table referenced by an HTTP-only
cookie. One-time codes (forgot-password and sign-up verification) live in a
process-local store and expire after ``OTP_TTL_MINUTES``.
"""

import hashlib
import hmac
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..errors import Unauthorized
from ..models import SessionRecord, User

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


# ------------------------------------------------------------------
# Passwords
# ------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt>$<hash>``."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), config.PASSWORD_HASH_ITERATIONS,
    )
    return f"pbkdf2_sha256${config.PASSWORD_HASH_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, encoded: Optional[str]) -> bool:
    if not encoded:
        return False
    try:
        algorithm, iterations, salt, expected = encoded.split("$")
    except ValueError:
        logger.warning("Malformed password hash encountered")
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), int(iterations),
    )
    return hmac.compare_digest(digest.hex(), expected)


# ------------------------------------------------------------------
# Sessions
# ------------------------------------------------------------------

def create_session(db: Session, user: User) -> str:
    """Persist a new session for *user* and return its id."""
    sid = secrets.token_urlsafe(32)
    record = SessionRecord(
        sid=sid,
        user_id=user.id,
        data={"is_guest": user.is_guest},
        expire=_utcnow() + timedelta(days=config.SESSION_TTL_DAYS),
    )
    db.add(record)
    db.commit()
    logger.info("Session opened for user %s (guest=%s)", user.id, user.is_guest)
    return sid


def destroy_session(db: Session, sid: Optional[str]) -> None:
    if not sid:
        return
    db.query(SessionRecord).filter(SessionRecord.sid == sid).delete()
    db.commit()


def resolve_session(db: Session, sid: Optional[str]) -> Optional[User]:
    """Return the user behind *sid*, or None if it is unknown or expired."""
    if not sid:
        return None
    record = db.get(SessionRecord, sid)
    if record is None:
        return None
    if _as_utc(record.expire) <= _utcnow():
        db.delete(record)
        db.commit()
        return None
    user = db.get(User, record.user_id)
    if user is None or user.deactivated:
        return None
    return user


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Dependency: the logged-in user, or None."""
    return resolve_session(db, request.cookies.get(config.SESSION_COOKIE))


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Dependency: the logged-in user; 401 otherwise."""
    if user is None:
        raise Unauthorized("Not authenticated")
    return user


# ------------------------------------------------------------------
# One-time codes
# ------------------------------------------------------------------

@dataclass
class OtpEntry:
    code: str
    expires_at: float
    verified: bool = False


class OtpStore:
    """Thread-safe store of pending one-time codes keyed by (purpose, identifier)."""

    def __init__(self, ttl_seconds: float, clock=time.monotonic):
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str], OtpEntry] = {}
        self._ttl = ttl_seconds
        self._clock = clock

    def issue(self, purpose: str, identifier: str) -> str:
        code = "".join(secrets.choice("0123456789") for _ in range(config.OTP_LENGTH))
        with self._lock:
            self._entries[(purpose, identifier)] = OtpEntry(code, self._clock() + self._ttl)
        if config.DEBUG:
            logger.debug("Issued %s code %s for %s", purpose, code, identifier)
        else:
            logger.info("Issued %s code for %s", purpose, identifier)
        return code

    def verify(self, purpose: str, identifier: str, code: str) -> bool:
        """Mark the code verified when it matches and has not expired."""
        with self._lock:
            entry = self._entries.get((purpose, identifier))
            if entry is None or entry.expires_at <= self._clock():
                return False
            if not hmac.compare_digest(entry.code, code.strip()):
                return False
            entry.verified = True
            return True

    def consume_verified(self, purpose: str, identifier: str) -> bool:
        """Remove and accept a verified, unexpired code; False otherwise."""
        with self._lock:
            entry = self._entries.get((purpose, identifier))
            if entry is None or not entry.verified or entry.expires_at <= self._clock():
                return False
            del self._entries[(purpose, identifier)]
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


otp_store = OtpStore(ttl_seconds=config.OTP_TTL_MINUTES * 60)

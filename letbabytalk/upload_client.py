"""HTTP access to the LetBabyTalk server.

:class:`ApiClient` keeps the session cookie in a ``requests.Session`` and
maps responses onto the client error taxonomy. :class:`RecordingUploadClient`
sends finished clips for classification, one at a time.
"""

import logging
import threading
from typing import Any, Callable, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from . import config
from .errors import ApiError, AuthenticationRequired, UploadError, UploadInProgress
from .models import AnalysisResult, BabyProfile, Clip, CryReason, Recording, User

logger = logging.getLogger(__name__)


class ApiClient:
    """Thin JSON client around the server's ``/api`` routes."""

    def __init__(
        self,
        base_url: str = config.DEFAULT_API_URL,
        session: Optional[requests.Session] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        timeout: float = config.REQUEST_TIMEOUT_SEC,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.on_unauthorized = on_unauthorized
        self.timeout = timeout

    def request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body.

        Raises
        ------
        AuthenticationRequired
            On 401, after the ``on_unauthorized`` hook ran.
        ApiError
            On any other non-2xx status.
        UploadError
            When the server cannot be reached.
        """
        url = f"{self.base_url}/api{path}"
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise UploadError(f"Cannot reach {self.base_url}: {e}") from e

        if response.status_code == 401:
            message = _error_message(response) or "Not authenticated"
            if self.on_unauthorized is not None:
                self.on_unauthorized()
            raise AuthenticationRequired(message)
        if not 200 <= response.status_code < 300:
            raise ApiError(response.status_code, _error_message(response) or response.reason or "Request failed")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(response.status_code, "Server returned invalid JSON") from e

    # --- Account ---

    def create_guest(self) -> User:
        return User.model_validate(self.request("POST", "/auth/guest"))

    def register(self, password: str, email: Optional[str] = None, phone: Optional[str] = None, **names) -> str:
        body = {"email": email, "phone": phone, "password": password, **names}
        return self.request("POST", "/auth/register", json=body)["userId"]

    def login(self, password: str, email: Optional[str] = None, phone: Optional[str] = None) -> User:
        data = self.request("POST", "/auth/login", json={"email": email, "phone": phone, "password": password})
        return User.model_validate(data["user"])

    def logout(self) -> None:
        self.request("POST", "/auth/logout")

    def current_user(self) -> User:
        return User.model_validate(self.request("GET", "/auth/user"))

    # --- Babies ---

    def baby_profiles(self) -> list[BabyProfile]:
        return [BabyProfile.model_validate(p) for p in self.request("GET", "/baby-profiles")]

    def create_baby_profile(self, name: str, date_of_birth: str, gender: str) -> BabyProfile:
        body = {"name": name, "dateOfBirth": date_of_birth, "gender": gender}
        return BabyProfile.model_validate(self.request("POST", "/baby-profiles", json=body))

    # --- Recordings ---

    def recordings(self) -> list[Recording]:
        return [Recording.model_validate(r) for r in self.request("GET", "/recordings")]

    def recording(self, recording_id: int) -> Recording:
        return Recording.model_validate(self.request("GET", f"/recordings/{recording_id}"))

    def rate(self, recording_id: int, rate_state: str, rate_reason: Optional[str] = None) -> Recording:
        body = {"rateState": rate_state, "rateReason": rate_reason}
        return Recording.model_validate(self.request("POST", f"/recordings/{recording_id}/rate", json=body))

    # --- Reference data ---

    def cry_reasons(self) -> list[CryReason]:
        return [CryReason.model_validate(r) for r in self.request("GET", "/cry-reasons")]

    def health(self) -> dict:
        return self.request("GET", "/health")


def _error_message(response: requests.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message") or body.get("detail")
    return None


class RecordingUploadClient:
    """Uploads finished clips; at most one upload runs at a time."""

    def __init__(self, api: ApiClient):
        self.api = api
        self._in_flight = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def upload(self, clip: Clip, baby_profile_id: Optional[int] = None, filename: str = "recording.wav") -> AnalysisResult:
        """Send *clip* and block until the server returns the stored recording.

        The clip is left untouched on failure so the caller may retry.
        """
        if not self._in_flight.acquire(blocking=False):
            raise UploadInProgress("An upload is already in progress")
        try:
            data = {"duration": str(clip.whole_seconds)}
            if baby_profile_id is not None:
                data["babyProfileId"] = str(baby_profile_id)

            logger.info("Uploading %d bytes (%ds, baby=%s)", len(clip.data), clip.whole_seconds, baby_profile_id)
            payload = self.api.request(
                "POST",
                "/recordings",
                files={"audio": (filename, clip.data, clip.mime_type)},
                data=data,
            )
            try:
                recording = Recording.model_validate(payload)
            except PydanticValidationError as e:
                raise ApiError(201, f"Unexpected recording payload: {e}") from e

            result = AnalysisResult.from_recording(recording)
            if result.failed:
                logger.warning("Server stored a fallback analysis: %s", result.error)
            return result
        finally:
            self._in_flight.release()

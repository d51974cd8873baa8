"""Client error taxonomy."""


class LetBabyTalkError(Exception):
    """Base class for all client errors."""

    pass


# --- Devices ---

class DeviceError(LetBabyTalkError):
    """Audio hardware failure."""

    pass


class DeviceUnavailable(DeviceError):
    """No microphone/speaker, permission denied or audio backend missing."""

    pass


class CaptureInterrupted(DeviceError):
    """The microphone failed while recording; the partial audio was dropped."""

    pass


class InvalidStateError(LetBabyTalkError):
    """Operation not allowed in the current capture state."""

    pass


# --- Server ---

class ApiError(LetBabyTalkError):
    """Non-2xx answer from the server."""

    def __init__(self, status: int, message: str):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


class AuthenticationRequired(ApiError):
    """The session is missing or expired (HTTP 401)."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(401, message)


class UploadError(LetBabyTalkError):
    """The server could not be reached."""

    pass


class UploadInProgress(LetBabyTalkError):
    """Another upload is still running on this client."""

    pass


class AlreadyRated(LetBabyTalkError):
    """The recording already carries a rating."""

    pass

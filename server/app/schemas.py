"""Pydantic models for API request/response validation.

JSON bodies use camelCase keys; Python attributes stay snake_case.
"""

from datetime import date, datetime, timezone
from typing import Annotated, Any, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from . import config


def _ensure_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ------------------------------------------------------------------
# Requests
# ------------------------------------------------------------------

class RegisterRequest(CamelModel):
    """Email or phone sign-up; converts the current guest when there is one."""
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    password: str = Field(..., min_length=config.PASSWORD_MIN_LENGTH, max_length=128)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class LoginRequest(CamelModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    password: str


class ForgotPasswordRequest(CamelModel):
    email: Optional[str] = None
    phone: Optional[str] = None


class VerifyOtpRequest(CamelModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    code: str = Field(..., min_length=1, max_length=12)
    type: Literal["forgot-password", "signup"] = "forgot-password"


class ResetPasswordRequest(CamelModel):
    email: str
    password: str = Field(..., min_length=config.PASSWORD_MIN_LENGTH, max_length=128)


class LanguageUpdate(CamelModel):
    language: str


class OnboardingUpdate(CamelModel):
    completed: bool = True


class BabyProfileCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date
    gender: Literal["male", "female"]
    photo_url: Optional[str] = Field(None, max_length=500)


class BabyProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[Literal["male", "female"]] = None
    photo_url: Optional[str] = Field(None, max_length=500)


class RateRequest(CamelModel):
    """Caregiver feedback: 'good' or 'bad', optionally with a corrected label."""
    rate_state: str
    rate_reason: Optional[str] = Field(None, max_length=1000)


class VoteRequest(CamelModel):
    vote: str


# ------------------------------------------------------------------
# Responses
# ------------------------------------------------------------------

class UserOut(CamelModel):
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    user_role: Optional[str] = None
    is_guest: bool = False
    is_verified: bool = False
    language: str = "en"
    has_completed_onboarding: bool = False
    created_at: Optional[UtcDatetime] = None


class MessageResponse(CamelModel):
    message: str


class SuccessResponse(CamelModel):
    success: bool = True


class RegisterResponse(CamelModel):
    message: str
    user_id: str


class LoginResponse(CamelModel):
    message: str
    user: UserOut


class BabyProfileOut(CamelModel):
    id: int
    user_id: str
    name: str
    date_of_birth: UtcDatetime
    gender: str
    photo_url: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class RecordingOut(CamelModel):
    """One persisted recording; analysis_result is never null."""
    id: int
    user_id: str
    baby_profile_id: Optional[int] = None
    filename: str
    audio_url: Optional[str] = None
    duration: Optional[int] = None
    analysis_result: dict[str, Any]
    predict_class: Optional[str] = None
    rate_state: Optional[str] = None
    rate_reason: Optional[str] = None
    rate_time: Optional[UtcDatetime] = None
    recorded_at: UtcDatetime


class CryReasonOut(CamelModel):
    class_name: str
    title: str
    description: str
    recommendations: list[str]


class LegalDocumentOut(CamelModel):
    id: str
    type: str
    locale: str
    title: str
    content: str
    version: str
    updated_at: UtcDatetime


class HealthResponse(CamelModel):
    """Response to GET /health."""
    status: str = "ok"
    database: str = "connected"
    classifier_url: str
    object_storage: bool


class ErrorResponse(BaseModel):
    """Standard error response."""
    status: str = "error"
    message: str

"""Data models shared by the client components.

Server payloads are decoded with pydantic at the boundary; missing or null
fields fall back to the defaults declared here.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from . import config


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


@dataclass(frozen=True)
class Clip:
    """A finished recording held in memory."""
    data: bytes
    mime_type: str
    duration_seconds: float

    @property
    def whole_seconds(self) -> int:
        """Duration floored to whole seconds, as sent to the server."""
        return int(self.duration_seconds)


class RawResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    label: Optional[str] = Field(None, alias="class")
    probs: dict[str, float] = Field(default_factory=dict)
    show: bool = True


class AnalysisPayload(CamelModel):
    """The ``analysisResult`` JSON stored with every recording."""
    cry_type: str = config.UNKNOWN_LABEL
    confidence: float = 0.0
    recommendations: list[str] = Field(default_factory=list)
    raw_result: Optional[RawResult] = None
    error: Optional[str] = None

    @field_validator("cry_type", mode="before")
    @classmethod
    def _blank_is_unknown(cls, value: Any) -> Any:
        return value or config.UNKNOWN_LABEL

    @field_validator("confidence", mode="before")
    @classmethod
    def _null_confidence(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("recommendations", mode="before")
    @classmethod
    def _null_recommendations(cls, value: Any) -> Any:
        return [] if value is None else value


class Recording(CamelModel):
    id: int
    user_id: Optional[str] = None
    baby_profile_id: Optional[int] = None
    filename: Optional[str] = None
    audio_url: Optional[str] = None
    duration: Optional[int] = None
    analysis_result: AnalysisPayload = Field(default_factory=AnalysisPayload)
    predict_class: Optional[str] = None
    rate_state: Optional[str] = None
    rate_reason: Optional[str] = None
    rate_time: Optional[datetime] = None
    recorded_at: datetime

    @field_validator("analysis_result", mode="before")
    @classmethod
    def _null_analysis(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def label(self) -> str:
        """Category used for history: predictClass, then cryType, then unknown."""
        return self.predict_class or self.analysis_result.cry_type or config.UNKNOWN_LABEL


class AnalysisResult(BaseModel):
    """Normalized outcome of one upload."""
    recording_id: int
    cry_type: str
    confidence: float
    recommendations: list[str]
    probabilities: dict[str, float] = Field(default_factory=dict)
    error: Optional[str] = None
    recording: Recording

    @property
    def failed(self) -> bool:
        """True when the classifier could not be reached and a fallback was stored."""
        return self.error is not None

    @classmethod
    def from_recording(cls, recording: Recording) -> "AnalysisResult":
        payload = recording.analysis_result
        return cls(
            recording_id=recording.id,
            cry_type=payload.cry_type,
            confidence=payload.confidence,
            recommendations=list(payload.recommendations),
            probabilities=dict(payload.raw_result.probs) if payload.raw_result else {},
            error=payload.error,
            recording=recording,
        )


class BabyProfile(CamelModel):
    id: int
    name: str
    date_of_birth: Optional[datetime] = None
    gender: Optional[str] = None
    photo_url: Optional[str] = None


class User(CamelModel):
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_guest: bool = False
    is_verified: bool = False
    language: str = config.DEFAULT_LANGUAGE
    has_completed_onboarding: bool = False


class CryReason(CamelModel):
    class_name: str
    title: str
    description: str = ""
    recommendations: list[str] = Field(default_factory=list)

"""Baby profile CRUD, scoped to the logged-in user."""

import logging
from datetime import date, datetime, time, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import NotFound
from ..models import BabyProfile, User
from ..schemas import BabyProfileCreate, BabyProfileOut, BabyProfileUpdate, ErrorResponse, MessageResponse
from ..services.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/baby-profiles")


def _birth_datetime(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _owned_profile(db: Session, profile_id: int, user: User) -> BabyProfile:
    profile = (
        db.query(BabyProfile)
        .filter(BabyProfile.id == profile_id, BabyProfile.user_id == user.id)
        .first()
    )
    if profile is None:
        raise NotFound("Baby profile not found")
    return profile


@router.get("", response_model=list[BabyProfileOut], summary="List baby profiles")
def list_profiles(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(BabyProfile)
        .filter(BabyProfile.user_id == user.id)
        .order_by(BabyProfile.created_at.asc(), BabyProfile.id.asc())
        .all()
    )


@router.post("", response_model=BabyProfileOut, status_code=201, summary="Create a baby profile")
def create_profile(body: BabyProfileCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = BabyProfile(
        user_id=user.id,
        name=body.name.strip(),
        date_of_birth=_birth_datetime(body.date_of_birth),
        gender=body.gender,
        photo_url=body.photo_url,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info("Baby profile %s created for user %s", profile.id, user.id)
    return profile


@router.get(
    "/{profile_id}",
    response_model=BabyProfileOut,
    responses={404: {"model": ErrorResponse}},
    summary="Get a baby profile",
)
def get_profile(profile_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _owned_profile(db, profile_id, user)


@router.put(
    "/{profile_id}",
    response_model=BabyProfileOut,
    responses={404: {"model": ErrorResponse}},
    summary="Update a baby profile",
)
def update_profile(
    profile_id: int,
    body: BabyProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    profile = _owned_profile(db, profile_id, user)
    changes = body.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is not None:
        profile.name = changes["name"].strip()
    if changes.get("date_of_birth") is not None:
        profile.date_of_birth = _birth_datetime(changes["date_of_birth"])
    if changes.get("gender") is not None:
        profile.gender = changes["gender"]
    if "photo_url" in changes:
        profile.photo_url = changes["photo_url"]
    db.commit()
    db.refresh(profile)
    return profile


@router.delete(
    "/{profile_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a baby profile",
)
def delete_profile(profile_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = _owned_profile(db, profile_id, user)
    # Recordings keep their baby_profile_id; the column has no FK
    db.delete(profile)
    db.commit()
    logger.info("Baby profile %s deleted by user %s", profile_id, user.id)
    return MessageResponse(message="Baby profile deleted")

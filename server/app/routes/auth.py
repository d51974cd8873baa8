"""Account endpoints: registration, login, guest sessions, OTP and profile."""

import logging
import secrets
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..errors import Unauthorized, ValidationError
from ..models import User
from ..schemas import (
    ErrorResponse,
    ForgotPasswordRequest,
    LanguageUpdate,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    OnboardingUpdate,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UserOut,
    VerifyOtpRequest,
)
from ..services.auth import (
    create_session,
    destroy_session,
    get_current_user,
    get_optional_user,
    hash_password,
    otp_store,
    verify_password,
)
from ..services.object_storage import ImageStore, ImageValidationError, get_image_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


def _normalize_email(email: Optional[str]) -> Optional[str]:
    email = (email or "").strip().lower()
    return email or None


def _normalize_phone(phone: Optional[str]) -> Optional[str]:
    phone = (phone or "").strip().replace(" ", "")
    return phone or None


def _identifier(email: Optional[str], phone: Optional[str]) -> str:
    ident = _normalize_email(email) or _normalize_phone(phone)
    if ident is None:
        raise ValidationError("Email or phone number is required")
    return ident


def _find_user(db: Session, email: Optional[str], phone: Optional[str]) -> Optional[User]:
    email = _normalize_email(email)
    if email:
        return db.query(User).filter(User.email == email).first()
    phone = _normalize_phone(phone)
    if phone:
        return db.query(User).filter(User.phone == phone).first()
    return None


def _set_session_cookie(response: Response, sid: str) -> None:
    response.set_cookie(
        key=config.SESSION_COOKIE,
        value=sid,
        max_age=config.SESSION_TTL_DAYS * 24 * 3600,
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def _start_session(db: Session, request: Request, response: Response, user: User) -> None:
    # A fresh login replaces whatever session the browser held
    destroy_session(db, request.cookies.get(config.SESSION_COOKIE))
    _set_session_cookie(response, create_session(db, user))


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    summary="Register with email or phone",
)
def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    current: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    identifier = _identifier(body.email, body.phone)
    email = _normalize_email(body.email)
    phone = None if email else _normalize_phone(body.phone)

    if _find_user(db, email, phone) is not None:
        raise ValidationError("An account with this email or phone already exists")

    if current is not None and current.is_guest:
        # Convert the guest in place so its recordings and babies carry over
        user = current
        user.is_guest = False
        logger.info("Converting guest %s into a registered account", user.id)
    else:
        user = User()
        db.add(user)

    user.email = email
    user.phone = phone
    user.password_hash = hash_password(body.password)
    user.first_name = body.first_name
    user.last_name = body.last_name
    user.is_verified = False
    db.commit()
    db.refresh(user)

    _start_session(db, request, response, user)
    otp_store.issue("signup", identifier)

    return RegisterResponse(message="Registration successful", user_id=user.id)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Log in with email or phone",
)
def login(body: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    _identifier(body.email, body.phone)
    user = _find_user(db, body.email, body.phone)
    if user is None or user.deactivated or not verify_password(body.password, user.password_hash):
        logger.info("Failed login attempt for %s", body.email or body.phone)
        raise Unauthorized("Invalid credentials")

    _start_session(db, request, response, user)
    return LoginResponse(message="Login successful", user=UserOut.model_validate(user))


@router.post("/logout", response_model=MessageResponse, summary="End the current session")
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    destroy_session(db, request.cookies.get(config.SESSION_COOKIE))
    response.delete_cookie(config.SESSION_COOKIE)
    return MessageResponse(message="Logged out successfully")


@router.post("/guest", response_model=UserOut, status_code=201, summary="Start a guest session")
def create_guest(request: Request, response: Response, db: Session = Depends(get_db)):
    user = User(
        id=f"guest_{int(time.time() * 1000)}_{secrets.token_hex(4)}",
        is_guest=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    _start_session(db, request, response, user)
    logger.info("Guest account %s created", user.id)
    return user


@router.post("/forgot-password", response_model=MessageResponse, summary="Send a reset code")
def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    identifier = _identifier(body.email, body.phone)
    # Same answer whether or not the account exists
    if _find_user(db, body.email, body.phone) is not None:
        otp_store.issue("forgot-password", identifier)
    return MessageResponse(message="If the account exists, a verification code has been sent")


@router.post(
    "/verify-otp",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Verify a one-time code",
)
def verify_otp(body: VerifyOtpRequest, db: Session = Depends(get_db)):
    identifier = _identifier(body.email, body.phone)
    if not otp_store.verify(body.type, identifier, body.code):
        raise ValidationError("Invalid or expired verification code")

    if body.type == "signup":
        user = _find_user(db, body.email, body.phone)
        if user is not None:
            user.is_verified = True
            db.commit()
        otp_store.consume_verified("signup", identifier)

    return MessageResponse(message="Code verified")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Set a new password after code verification",
)
def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    identifier = _identifier(body.email, None)
    user = _find_user(db, body.email, None)
    if user is None or not otp_store.consume_verified("forgot-password", identifier):
        raise ValidationError("Verification required before resetting the password")

    user.password_hash = hash_password(body.password)
    db.commit()
    logger.info("Password reset for user %s", user.id)
    return MessageResponse(message="Password reset successfully")


@router.get("/user", response_model=UserOut, summary="Current user")
def current_user(user: User = Depends(get_current_user)):
    return user


@router.put(
    "/profile",
    response_model=UserOut,
    responses={400: {"model": ErrorResponse}},
    summary="Update role and profile image",
)
async def update_profile(
    user_role: Optional[str] = Form(None, alias="userRole"),
    profile_image: Optional[UploadFile] = File(None, alias="profileImage"),
    user: User = Depends(get_current_user),
    images: ImageStore = Depends(get_image_store),
    db: Session = Depends(get_db),
):
    if user_role is not None:
        user.user_role = user_role.strip() or None

    if profile_image is not None and profile_image.filename:
        data = await profile_image.read()
        try:
            user.profile_image_url = images.save(user.id, data, profile_image.content_type)
        except ImageValidationError as e:
            raise ValidationError(str(e))

    db.commit()
    db.refresh(user)
    return user


@router.put("/language", response_model=UserOut, summary="Set interface language")
def update_language(body: LanguageUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if body.language not in config.SUPPORTED_LANGUAGES:
        raise ValidationError(f"Unsupported language: {body.language}")
    user.language = body.language
    db.commit()
    db.refresh(user)
    return user


@router.put("/onboarding", response_model=UserOut, summary="Mark onboarding complete")
def update_onboarding(body: OnboardingUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user.has_completed_onboarding = body.completed
    db.commit()
    db.refresh(user)
    return user


@router.delete("/account", response_model=MessageResponse, summary="Deactivate the account")
def delete_account(
    request: Request,
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user.deactivated = True
    db.commit()
    destroy_session(db, request.cookies.get(config.SESSION_COOKIE))
    response.delete_cookie(config.SESSION_COOKIE)
    logger.info("Account %s deactivated", user.id)
    return MessageResponse(message="Account deleted")

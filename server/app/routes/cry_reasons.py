"""Cry reason lookup data."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import NotFound
from ..models import CryReasonDescription
from ..schemas import CryReasonOut, ErrorResponse

router = APIRouter(prefix="/cry-reasons")


@router.get("", response_model=list[CryReasonOut], summary="All cry reason descriptions")
def list_cry_reasons(db: Session = Depends(get_db)):
    return db.query(CryReasonDescription).order_by(CryReasonDescription.class_name).all()


@router.get(
    "/{class_name}",
    response_model=CryReasonOut,
    responses={404: {"model": ErrorResponse}},
    summary="One cry reason by classifier label",
)
def get_cry_reason(class_name: str, db: Session = Depends(get_db)):
    reason = db.query(CryReasonDescription).filter(CryReasonDescription.class_name == class_name).first()
    if reason is None:
        raise NotFound("Cry reason not found")
    return reason

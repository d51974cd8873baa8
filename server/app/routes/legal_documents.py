"""Localized terms and privacy documents."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import NotFound
from ..models import LegalDocument
from ..schemas import ErrorResponse, LegalDocumentOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/legal-documents")

DEFAULT_LOCALE = "en"


def _active_document(db: Session, doc_type: str, locale: str):
    return (
        db.query(LegalDocument)
        .filter(
            LegalDocument.type == doc_type,
            LegalDocument.locale == locale,
            LegalDocument.is_active.is_(True),
        )
        .order_by(LegalDocument.updated_at.desc())
        .first()
    )


@router.get(
    "/{doc_type}/{locale}",
    response_model=LegalDocumentOut,
    responses={404: {"model": ErrorResponse}},
    summary="Active legal document, falling back to English",
)
def get_legal_document(doc_type: str, locale: str, db: Session = Depends(get_db)):
    document = _active_document(db, doc_type, locale)
    if document is None and locale != DEFAULT_LOCALE:
        logger.debug("No %s document for locale %s, using %s", doc_type, locale, DEFAULT_LOCALE)
        document = _active_document(db, doc_type, DEFAULT_LOCALE)
    if document is None:
        raise NotFound("Legal document not found")
    return document

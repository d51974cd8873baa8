"""Health endpoint."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..schemas import HealthResponse
from ..services.object_storage import ImageStore, get_image_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
def health_check(db: Session = Depends(get_db), images: ImageStore = Depends(get_image_store)):
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        database = "unavailable"

    return HealthResponse(
        status="ok" if database == "connected" else "degraded",
        database=database,
        classifier_url=config.CLASSIFIER_URL,
        object_storage=images.uses_object_storage,
    )

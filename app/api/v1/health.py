"""Health check endpoint with database connectivity and signing-configuration status."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core import message_keys
from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.common import ApiResponse, envelope
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=ApiResponse[HealthResponse])
def get_health(db: Session = Depends(get_db)) -> ApiResponse[HealthResponse]:
    """
    Service health for load balancers and monitoring.

    auth_configured is false when JWT_SECRET is missing; such a process cannot issue tokens.
    """
    report = HealthResponse(
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
        auth_configured=settings.JWT_SECRET is not None,
    )
    return envelope(status.HTTP_200_OK, "Service is healthy", message_keys.HEALTH_OK, report)

"""Health endpoint."""

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from api.src.dependencies import get_user_repository
from api.src.repositories.user_repo import UserRepository

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", summary="Health check")
async def health_check(repository: UserRepository = Depends(get_user_repository)) -> JSONResponse:
    """
    Report service health.

    MongoDB is pinged; the service is UP only when the ping succeeds.
    """
    try:
        await repository.ping()
    except Exception as e:
        logger.error("mongo_health_check_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "DOWN", "details": {"mongo": {"status": "DOWN"}}},
        )

    return JSONResponse(content={"status": "UP", "details": {"mongo": {"status": "UP"}}})

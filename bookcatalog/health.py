# bookcatalog/health.py
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .context import AppContext, get_context
from .models import HealthReport, HealthServices

logger = logging.getLogger(__name__)

HEALTH_CHECK_KEY = "health_check"

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthReport,
    response_model_exclude_none=True,
    responses={503: {"model": HealthReport}},
)
async def health(context: AppContext = Depends(get_context)):
    try:
        await context.store.ping()
        await context.cache.set(HEALTH_CHECK_KEY, "ok")
        await context.cache.get(HEALTH_CHECK_KEY)
    except Exception as exc:
        logger.error("Health check failed: %s", exc)
        report = HealthReport(status="unhealthy", error=str(exc))
        return JSONResponse(status_code=503, content=report.model_dump(exclude_none=True))

    return HealthReport(status="healthy", services=HealthServices())

# pranveda/routers/health.py
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from pranveda.core.errors import error_body
from pranveda.core.llm import LLMClient, get_optional_llm_client
from pranveda.database import get_session
from pranveda.repositories.stats_repo import StatsRepository
from pranveda.schemas.common import ApiResponse, ok
from pranveda.services.health_service import HealthService

router = APIRouter(prefix="/health", tags=["Health"])

health_service = HealthService(StatsRepository())


@router.get("", response_model=ApiResponse[dict[str, Any]])
def health(
    request: Request,
    session: Session = Depends(get_session),
    llm: LLMClient | None = Depends(get_optional_llm_client),
):
    identity_configured = getattr(request.app.state, "identity", None) is not None
    return ok(health_service.overall(session, llm, identity_configured))


@router.get("/db", response_model=ApiResponse[dict[str, Any]])
def database_health(session: Session = Depends(get_session)):
    """503 with the envelope when the database does not answer."""
    result = health_service.database(session)
    if result["status"] != "healthy":
        return JSONResponse(
            status_code=503,
            content=error_body("ServiceUnavailableError", "Database unavailable", result),
        )
    return ok(result)


@router.get("/ai", response_model=ApiResponse[dict[str, Any]])
def ai_health(llm: LLMClient | None = Depends(get_optional_llm_client)):
    return ok(health_service.ai(llm))


@router.get("/metrics", response_model=ApiResponse[dict[str, Any]])
def metrics(session: Session = Depends(get_session)):
    return ok(health_service.metrics(session))

"""Health check and rules endpoints."""

from fastapi import APIRouter, Depends

from fictioncord.api.dependencies.story_session import get_scheduler
from fictioncord.api.models.health import HealthResponse
from fictioncord.api.models.story_session import RulesResponse
from fictioncord.application.services.session_scheduler import SessionScheduler
from fictioncord.domain.services.story_formatting import rules_text

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    scheduler: SessionScheduler = Depends(get_scheduler),
) -> HealthResponse:
    """Return health status.

    Returns:
        Health status with 200 OK.
    """
    return HealthResponse(status="healthy", scheduler_running=scheduler.running)


@router.get("/rules", response_model=RulesResponse, tags=["story-session"])
async def get_rules() -> RulesResponse:
    """Return the rules and command reference (/rulesfictioncord)."""
    return RulesResponse(text=rules_text())

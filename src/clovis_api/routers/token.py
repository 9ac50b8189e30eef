"""Session token router."""

from __future__ import annotations

from fastapi import APIRouter

from clovis_api.dependencies import SearchServiceDep
from clovis_core.schemas import SearchOutcome, SessionTokens

router = APIRouter(prefix="/token", tags=["token"])


@router.get("", response_model=SearchOutcome[SessionTokens])
async def get_token(service: SearchServiceDep) -> SearchOutcome[SessionTokens]:
    """Scrape a fresh session; mainly useful for diagnosing blocked sessions."""
    return await service.get_tokens()

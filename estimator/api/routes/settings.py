"""
Estimator settings API routes.

Updating settings re-prices every stored project before responding.
"""
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends

from estimator.api.dependencies import get_repository
from estimator.schemas.estimator import SettingsResponse, SettingsUpdate, SettingsUpdateResponse
from estimator.services.repository import ProjectRepository

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/settings",
    response_model=SettingsResponse,
    summary="Get estimator settings",
)
async def get_estimator_settings(
    repository: ProjectRepository = Depends(get_repository),
) -> SettingsResponse:
    """Return the current settings. The API key itself is never returned."""
    return SettingsResponse.from_domain(repository.settings_store.get())


@router.post(
    "/settings",
    response_model=SettingsUpdateResponse,
    summary="Update estimator settings",
)
async def update_estimator_settings(
    request: SettingsUpdate,
    repository: ProjectRepository = Depends(get_repository),
) -> SettingsUpdateResponse:
    """Merge the supplied fields and recalculate all projects."""
    partial: Dict[str, Any] = request.model_dump(exclude_none=True)
    settings, summary = repository.update_settings(partial)
    return SettingsUpdateResponse(
        settings=SettingsResponse.from_domain(settings),
        recalculated=summary.recalculated,
        failed=summary.failed,
    )

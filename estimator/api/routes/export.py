"""
Export API route for downloading a project estimate as Excel.
"""
import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import Response

from estimator.api.dependencies import get_repository
from estimator.services.excel_export import estimate_filename, export_estimate
from estimator.services.repository import ProjectRepository

logger = structlog.get_logger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get(
    "/projects/{project_id}/export",
    summary="Export estimate",
    description="Download the project estimate as an .xlsx workbook.",
    response_class=Response,
)
async def export_project(
    project_id: str,
    repository: ProjectRepository = Depends(get_repository),
) -> Response:
    project = repository.get_project(project_id)
    content = export_estimate(project)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{estimate_filename(project)}"'},
    )

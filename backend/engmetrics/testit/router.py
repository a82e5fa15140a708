from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from engmetrics.database import get_db
from engmetrics.testit.schemas import (
    PathError,
    ProjectResponse,
    ProjectUpsert,
    StatsRequest,
    StatsResponse,
    SuiteListing,
)
from engmetrics.testit.service import compute_stats, get_project, list_project_suites, save_or_update_project

router = APIRouter(prefix="/testit", tags=["testit"])


@router.put("/projects", response_model=ProjectResponse)
async def upsert_project(
    data: ProjectUpsert,
    db: AsyncSession = Depends(get_db),
):
    project = await save_or_update_project(db, data)
    return ProjectResponse.model_validate(project)


@router.get("/projects/{project_id}", response_model=ProjectResponse)
async def read_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
):
    project = await get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return ProjectResponse.model_validate(project)


@router.get("/projects/{project_id}/suites", response_model=list[SuiteListing])
async def read_project_suites(
    project_id: str,
    db: AsyncSession = Depends(get_db),
):
    project = await get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return list_project_suites(project)


@router.post("/stats", response_model=StatsResponse)
async def stats_by_paths(
    data: StatsRequest,
    db: AsyncSession = Depends(get_db),
):
    """Sum counters of every addressed suite; bad paths are reported inline."""
    result = await compute_stats(db, data.paths)
    return StatsResponse(
        **result.counts.to_dict(),
        errors=[PathError(path=path, error=message) for path, message in result.errors],
    )

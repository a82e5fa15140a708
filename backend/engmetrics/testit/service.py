from collections.abc import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from engmetrics.exceptions import InvalidPathError, StoreUnavailableError
from engmetrics.testit.aggregator import AggregatedResult, aggregate
from engmetrics.testit.models import TestItProject
from engmetrics.testit.resolver import PATH_SEPARATOR, InMemoryProjectStore, split_path
from engmetrics.testit.schemas import ProjectUpsert
from engmetrics.testit.tree import iter_suites, project_from_document

logger = structlog.get_logger()


async def get_project(db: AsyncSession, project_id: str) -> TestItProject | None:
    result = await db.execute(select(TestItProject).where(TestItProject.project_id == project_id))
    return result.scalar_one_or_none()


async def save_or_update_project(db: AsyncSession, data: ProjectUpsert) -> TestItProject:
    """Insert the project document, or replace name, prefix and suites of an existing one."""
    suites = data.model_dump()["test_suites"]
    project = await get_project(db, data.project_id)
    if project is not None:
        project.name = data.name
        project.prefix = data.prefix
        project.test_suites = suites
        await db.commit()
        await db.refresh(project)
        logger.info("testit_project_updated", project_id=data.project_id)
        return project

    project = TestItProject(
        project_id=data.project_id,
        name=data.name,
        prefix=data.prefix,
        test_suites=suites,
    )
    db.add(project)
    await db.commit()
    await db.refresh(project)
    logger.info("testit_project_created", project_id=data.project_id)
    return project


def _to_document(row: TestItProject) -> dict:
    return {
        "project_id": row.project_id,
        "name": row.name,
        "prefix": row.prefix,
        "test_suites": row.test_suites or [],
    }


async def load_project_snapshot(db: AsyncSession, project_ids: Iterable[str]) -> InMemoryProjectStore:
    """Load every requested project in one query into a read-only store."""
    wanted = sorted(set(project_ids))
    if not wanted:
        return InMemoryProjectStore()
    try:
        result = await db.execute(select(TestItProject).where(TestItProject.project_id.in_(wanted)))
        rows = list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.error("testit_store_unavailable", error=str(e))
        raise StoreUnavailableError("TestIt project store is unavailable") from e
    return InMemoryProjectStore([project_from_document(_to_document(row)) for row in rows])


def _project_ids(paths: list[str]) -> set[str]:
    ids = set()
    for path in paths:
        try:
            ids.add(split_path(path)[0])
        except InvalidPathError:
            # reported per path by the aggregator
            continue
    return ids


async def compute_stats(db: AsyncSession, paths: list[str]) -> AggregatedResult:
    store = await load_project_snapshot(db, _project_ids(paths))
    result = aggregate(store, paths)
    logger.info(
        "testit_stats_aggregated",
        paths=len(paths),
        projects=len(store),
        errors=len(result.errors),
    )
    return result


def list_project_suites(row: TestItProject) -> list[dict]:
    """Flatten the suite forest in pre-order with depth and colon address."""
    project = project_from_document(_to_document(row))
    listing = []
    for ancestors, suite in iter_suites(project.test_suites):
        listing.append({
            "suite_id": suite.suite_id,
            "name": suite.name,
            "depth": len(ancestors),
            "path": PATH_SEPARATOR.join((project.project_id, *ancestors, suite.suite_id)),
            "total": suite.counts.total,
        })
    return listing

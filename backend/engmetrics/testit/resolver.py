"""Resolve ``projectId:...:suiteId`` addresses to suite nodes."""

from __future__ import annotations

from typing import Protocol

from engmetrics.exceptions import InvalidPathError, ProjectNotFoundError, SuiteNotFoundError
from engmetrics.testit.tree import Project, TestSuite

PATH_SEPARATOR = ":"


class ProjectStore(Protocol):
    def lookup_project(self, project_id: str) -> Project | None: ...


class InMemoryProjectStore:
    """Read-only snapshot of projects keyed by project id."""

    def __init__(self, projects: list[Project] | None = None):
        self._projects: dict[str, Project] = {}
        for project in projects or []:
            self._projects[project.project_id] = project

    def lookup_project(self, project_id: str) -> Project | None:
        return self._projects.get(project_id)

    def __len__(self) -> int:
        return len(self._projects)


def split_path(path: str) -> tuple[str, str]:
    """Return ``(project_id, target_suite_id)`` for a colon-delimited path.

    Intermediate segments are accepted but not used: the leaf id is looked
    up anywhere in the project's forest.
    """
    segments = path.split(PATH_SEPARATOR)
    if len(segments) < 2:
        raise InvalidPathError(path)
    return segments[0], segments[-1]


def resolve(store: ProjectStore, path: str) -> TestSuite:
    project_id, suite_id = split_path(path)

    project = store.lookup_project(project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)

    suite = project.find_suite(suite_id)
    if suite is None:
        raise SuiteNotFoundError(project_id, suite_id)
    return suite

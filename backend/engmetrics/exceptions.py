"""Error taxonomy shared by the test-suite and issue-timeline reducers.

Per-item errors (one path, one issue) are caught by the batch callers and
folded into diagnostics. ``StoreUnavailableError`` is the only one that is
meant to fail a whole call.
"""


class EngMetricsError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PathResolutionError(EngMetricsError):
    """A colon-delimited suite address could not be resolved."""


class InvalidPathError(PathResolutionError):
    def __init__(self, path: str):
        super().__init__(f"Invalid path: {path}")
        self.path = path


class ProjectNotFoundError(PathResolutionError):
    def __init__(self, project_id: str):
        super().__init__(f"No project found for projectId={project_id}")
        self.project_id = project_id


class SuiteNotFoundError(PathResolutionError):
    def __init__(self, project_id: str, suite_id: str):
        super().__init__(f"SuiteId={suite_id} not found under projectId={project_id}")
        self.project_id = project_id
        self.suite_id = suite_id


class ParseError(EngMetricsError):
    """A timestamp (or other issue field) could not be parsed."""


class StoreUnavailableError(EngMetricsError):
    """The backing store or remote tracker could not be reached."""

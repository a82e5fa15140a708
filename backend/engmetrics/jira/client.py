"""Fetch issues with their changelog from the Jira REST API using httpx."""

import base64

import httpx
import structlog

from engmetrics.config import settings
from engmetrics.exceptions import StoreUnavailableError

logger = structlog.get_logger()

# Fields needed for the metrics export
CORE_FIELDS = [
    "key", "status", "assignee", "created", "duedate", "updated",
    "resolutiondate", "priority", "customfield_10002", "project",
]
CHANGELOG_EXPAND = "changelog"


def _build_auth_header() -> str:
    """Build Basic Auth header from global Jira credentials."""
    credentials = f"{settings.JIRA_USER_EMAIL}:{settings.JIRA_API_TOKEN}"
    encoded = base64.b64encode(credentials.encode()).decode()
    return f"Basic {encoded}"


async def fetch_issues_with_changelog(
    jql: str,
    max_issues: int | None = None,
    page_size: int | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[dict]:
    """Page through ``/search`` with ``startAt``/``maxResults`` and return raw issues.

    Advances by the number of issues actually returned, since Jira may cap
    ``maxResults``. Stops on an empty page, once ``startAt`` reaches the
    reported total, or when *max_issues* have been collected. Network failures and
    error responses are raised as StoreUnavailableError.
    """
    if not settings.JIRA_SITE_URL:
        raise StoreUnavailableError("Jira is not configured (JIRA_SITE_URL is empty)")

    max_issues = max_issues or settings.JIRA_MAX_ISSUES
    page_size = page_size or settings.JIRA_PAGE_SIZE
    base_url = f"{settings.JIRA_SITE_URL.rstrip('/')}/rest/api/2"
    headers = {
        "Authorization": _build_auth_header(),
        "Accept": "application/json",
    }

    issues: list[dict] = []
    start_at = 0

    async with httpx.AsyncClient(timeout=settings.JIRA_TIMEOUT_SECONDS, transport=transport) as client:
        while len(issues) < max_issues:
            logger.info("jira_search_page", start_at=start_at, collected=len(issues))
            try:
                resp = await client.get(
                    f"{base_url}/search",
                    headers=headers,
                    params={
                        "jql": jql,
                        "startAt": start_at,
                        "maxResults": page_size,
                        "fields": ",".join(CORE_FIELDS),
                        "expand": CHANGELOG_EXPAND,
                    },
                )
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error("jira_search_failed", status=e.response.status_code, start_at=start_at)
                raise StoreUnavailableError(f"Jira search failed with HTTP {e.response.status_code}") from e
            except httpx.HTTPError as e:
                logger.error("jira_search_failed", error=str(e), start_at=start_at)
                raise StoreUnavailableError(f"Jira is unreachable: {e}") from e

            data = resp.json()
            page = data.get("issues") or []
            if not page:
                break

            issues.extend(page[: max_issues - len(issues)])

            start_at += len(page)
            if start_at >= data.get("total", 0):
                break

    logger.info("jira_search_complete", jql=jql, issues=len(issues))
    return issues

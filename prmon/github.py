"""
GitHub REST API client for prmon.

Fetches the pull requests assigned to, or created by, the authenticated
user. Uses GITHUB_TOKEN environment variable for authentication when no
token is given.

Gotcha: the "created" filter is not a subset of what the other filters
return, it's an entirely different set; that's why the monitor keeps
two collections and queries them separately.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Iterator

import requests

from . import __version__
from .models import PullRequestSummary

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
DEFAULT_PER_PAGE = 100
MAX_RETRIES = 3
RETRY_DELAY = 1.0

# Issue filters understood by GET /issues
ASSIGNED_FILTER = "assigned"
CREATED_FILTER = "created"


class GitHubAPIError(Exception):
    """Error from GitHub API."""
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(GitHubAPIError):
    """Rate limit exceeded."""
    def __init__(self, reset_time: int | None = None):
        super().__init__("GitHub API rate limit exceeded", 403)
        self.reset_time = reset_time


class GitHubClient:
    """GitHub REST API client with pagination and rate limit handling."""

    def __init__(self, token: str | None = None, api_base: str = GITHUB_API_BASE):
        self.token = token or os.environ.get("GITHUB_TOKEN")
        self.api_base = api_base.rstrip("/")
        self.session = requests.Session()

        if self.token:
            self.session.headers["Authorization"] = f"token {self.token}"

        self.session.headers["Accept"] = "application/vnd.github.v3+json"
        self.session.headers["User-Agent"] = f"prmon/{__version__}"

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Make an API request with retry and rate limit handling."""
        url = f"{self.api_base}{endpoint}"

        for attempt in range(MAX_RETRIES):
            try:
                response = self.session.request(method, url, params=params, **kwargs)

                # Check rate limit
                if response.status_code == 403:
                    remaining = response.headers.get("X-RateLimit-Remaining")
                    if remaining == "0":
                        reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
                        raise RateLimitError(reset_time)

                # Check for errors
                if response.status_code >= 400:
                    raise GitHubAPIError(
                        f"GitHub API error: {response.status_code} - {response.text}",
                        response.status_code
                    )

                return response

            except requests.RequestException as e:
                if attempt < MAX_RETRIES - 1:
                    logger.debug("Request to %s failed (%s), retrying", endpoint, e)
                    time.sleep(RETRY_DELAY * (attempt + 1))
                    continue
                raise GitHubAPIError(f"Request failed: {e}")

        raise GitHubAPIError("Max retries exceeded")

    def _get_json(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """GET `endpoint` and decode the body; a body that isn't JSON is an API error."""
        response = self._request("GET", endpoint, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(
                f"Invalid JSON from {endpoint}: {e}", response.status_code
            ) from e

    def _paginate(self, endpoint: str, params: dict[str, Any] | None = None) -> Iterator[dict[str, Any]]:
        """Walk `page` until a short or empty page comes back."""
        params = dict(params or {})
        params.setdefault("per_page", DEFAULT_PER_PAGE)
        page = 1

        while True:
            params["page"] = page
            items = self._get_json(endpoint, params)
            yield from items or []

            if not items or len(items) < params["per_page"]:
                return
            page += 1

    def get_authenticated_user(self) -> str:
        """Login of the user the token belongs to."""
        return self._get_json("/user").get("login", "")

    def list_issues(self, filter_kind: str, state: str = "open") -> list[dict[str, Any]]:
        """List issues (and pull requests) visible to the authenticated user."""
        return list(self._paginate("/issues", {"filter": filter_kind, "state": state}))

    def get_pull(self, repo: str, number: int) -> dict[str, Any]:
        """Get a specific pull request."""
        return self._get_json(f"/repos/{repo}/pulls/{number}")

    def list_pull_requests(self, filter_kind: str) -> list[PullRequestSummary]:
        """
        List open pull requests for the authenticated user.

        Args:
            filter_kind: ASSIGNED_FILTER or CREATED_FILTER

        Returns:
            List of PullRequestSummary objects, in API order

        A pull request whose detail lookup fails is left out; a failure of
        the listing itself is raised.
        """
        summaries = []
        for issue in self.list_issues(filter_kind):
            if "pull_request" not in issue:
                continue

            repo = (issue.get("repository") or {}).get("full_name", "")
            number = issue.get("number", 0)
            try:
                pull = self.get_pull(repo, number)
            except GitHubAPIError as e:
                logger.warning("Skipping %s#%s: %s", repo, number, e)
                continue

            summaries.append(PullRequestSummary.from_api(issue, pull))

        return summaries

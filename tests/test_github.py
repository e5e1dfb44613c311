from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
import requests

from prmon.github import (
    ASSIGNED_FILTER,
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
)
from prmon.models import PullRequestStatus


def make_issue(number: int, repo: str = "owner/repo", is_pull: bool = True) -> dict:
    issue = {
        "number": number,
        "state": "open",
        "title": f"PR {number}",
        "user": {"login": "alice"},
        "created_at": "2024-01-01T00:00:00Z",
        "repository": {"full_name": repo},
        "html_url": f"https://github.com/{repo}/issues/{number}",
    }
    if is_pull:
        issue["pull_request"] = {"url": f"https://api.github.com/repos/{repo}/pulls/{number}"}
    return issue


def make_pull(number: int, repo: str = "owner/repo", merged: bool = False, draft: bool = False) -> dict:
    return {
        "number": number,
        "draft": draft,
        "merged_at": "2024-01-02T00:00:00Z" if merged else None,
        "html_url": f"https://github.com/{repo}/pull/{number}",
        "requested_reviewers": [],
        "requested_teams": [],
    }


def test_client_sets_auth_headers():
    client = GitHubClient(token="test-token")
    assert client.session.headers["Authorization"] == "token test-token"
    assert client.session.headers["Accept"] == "application/vnd.github.v3+json"
    assert client.session.headers["User-Agent"].startswith("prmon/")


def test_list_pull_requests_skips_plain_issues():
    client = GitHubClient(token="test-token")
    issues = [make_issue(1), make_issue(2, is_pull=False), make_issue(3)]

    with patch.object(client, "_paginate", return_value=iter(issues)) as paginate, \
            patch.object(client, "get_pull", side_effect=lambda repo, n: make_pull(n, repo, merged=(n == 3))):
        prs = client.list_pull_requests(ASSIGNED_FILTER)

    paginate.assert_called_once_with("/issues", {"filter": "assigned", "state": "open"})
    assert [pr.id for pr in prs] == ["1", "3"]
    assert prs[0].status is PullRequestStatus.OPEN
    assert prs[1].status is PullRequestStatus.MERGED
    assert prs[0].url == "https://github.com/owner/repo/pull/1"


def test_list_pull_requests_skips_failed_detail_lookup():
    client = GitHubClient(token="test-token")

    def get_pull(repo, number):
        if number == 1:
            raise GitHubAPIError("Not Found", 404)
        return make_pull(number, repo)

    with patch.object(client, "_paginate", return_value=iter([make_issue(1), make_issue(2)])), \
            patch.object(client, "get_pull", side_effect=get_pull):
        prs = client.list_pull_requests(ASSIGNED_FILTER)

    assert [pr.id for pr in prs] == ["2"]


def test_list_pull_requests_propagates_listing_failure():
    client = GitHubClient(token="test-token")

    with patch.object(client, "_paginate", side_effect=GitHubAPIError("Bad credentials", 401)):
        with pytest.raises(GitHubAPIError):
            client.list_pull_requests(ASSIGNED_FILTER)


def test_request_raises_rate_limit_error():
    client = GitHubClient(token="test-token")
    response = Mock(status_code=403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "123"})

    with patch.object(client.session, "request", return_value=response):
        with pytest.raises(RateLimitError) as excinfo:
            client.get_authenticated_user()

    assert excinfo.value.reset_time == 123
    assert excinfo.value.status_code == 403


def test_request_raises_api_error_on_http_error():
    client = GitHubClient(token="test-token")
    response = Mock(status_code=401, headers={}, text="Bad credentials")

    with patch.object(client.session, "request", return_value=response):
        with pytest.raises(GitHubAPIError) as excinfo:
            client.get_authenticated_user()

    assert excinfo.value.status_code == 401


def test_request_retries_transport_errors():
    client = GitHubClient(token="test-token")
    ok = Mock(status_code=200, headers={})
    ok.json.return_value = {"login": "octocat"}

    with patch.object(client.session, "request", side_effect=[requests.ConnectionError("reset"), ok]), \
            patch("prmon.github.time.sleep") as sleep:
        assert client.get_authenticated_user() == "octocat"

    sleep.assert_called_once()


def test_request_gives_up_after_max_retries():
    client = GitHubClient(token="test-token")

    with patch.object(client.session, "request", side_effect=requests.ConnectionError("down")), \
            patch("prmon.github.time.sleep"):
        with pytest.raises(GitHubAPIError, match="Request failed"):
            client.get_authenticated_user()


def test_paginate_stops_on_short_page():
    client = GitHubClient(token="test-token")
    full_page = Mock(status_code=200, headers={})
    full_page.json.return_value = [{"n": i} for i in range(2)]
    short_page = Mock(status_code=200, headers={})
    short_page.json.return_value = [{"n": 2}]

    with patch.object(client, "_request", side_effect=[full_page, short_page]) as request:
        items = list(client._paginate("/issues", {"per_page": 2}))

    assert [item["n"] for item in items] == [0, 1, 2]
    assert request.call_count == 2


def not_json_response() -> Mock:
    response = Mock(status_code=200, headers={}, text="<html>Unicorn!</html>")
    response.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
    return response


def test_non_json_body_is_an_api_error():
    client = GitHubClient(token="test-token")

    with patch.object(client.session, "request", return_value=not_json_response()):
        with pytest.raises(GitHubAPIError, match="Invalid JSON from /user"):
            client.get_authenticated_user()


def test_list_pull_requests_skips_non_json_detail():
    client = GitHubClient(token="test-token")
    good_pull = Mock(status_code=200, headers={})
    good_pull.json.return_value = make_pull(2)

    def request(method, url, params=None, **kwargs):
        if url.endswith("/pulls/1"):
            return not_json_response()
        return good_pull

    with patch.object(client, "_paginate", return_value=iter([make_issue(1), make_issue(2)])), \
            patch.object(client.session, "request", side_effect=request):
        prs = client.list_pull_requests(ASSIGNED_FILTER)

    assert [pr.id for pr in prs] == ["2"]


def test_list_pull_requests_raises_on_non_json_listing():
    client = GitHubClient(token="test-token")

    with patch.object(client.session, "request", return_value=not_json_response()):
        with pytest.raises(GitHubAPIError):
            client.list_pull_requests(ASSIGNED_FILTER)

"""Tests for the GitHub issue tracker adapter."""

import json
import re
from collections.abc import Callable

import httpx
import pytest

from rootcause.adapters.ticketing.github_issues import GitHubIssueTracker
from rootcause.core.exceptions import IssueTrackerError
from rootcause.core.models import EndpointInfo, Incident


def make_tracker(
    handler: Callable[[httpx.Request], httpx.Response],
    requests: list[httpx.Request] | None = None,
) -> GitHubIssueTracker:
    def record(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    return GitHubIssueTracker(
        repo_owner="acme",
        repo_name="shop",
        github_token="ghp_test",
        transport=httpx.MockTransport(record),
    )


@pytest.fixture
def incident(make_incident: Callable[..., Incident]) -> Incident:
    return make_incident(
        id="session-9",
        service_name="orders-service",
        error_message="NullPointer at row 12",
        stack_trace="at Handler.process\nat Router.dispatch",
        throwing_functions=("Handler.process", "Router.dispatch"),
        root_cause_hash="f" * 64,
        s3_pointer="s3://payloads/e/9.json",
    )


class TestFormatting:
    def test_title_with_endpoint(self, incident: Incident) -> None:
        incident.apply_endpoint(EndpointInfo(id=incident.endpoint_id, path="/orders", methods=("POST",)))

        title = GitHubIssueTracker.format_issue_title(incident)

        assert title == "orders-service POST /orders: NullPointer at row 12"

    def test_title_without_endpoint(self, incident: Incident) -> None:
        assert (
            GitHubIssueTracker.format_issue_title(incident)
            == "orders-service: NullPointer at row 12"
        )

    def test_title_methods_default_to_any(self, incident: Incident) -> None:
        incident.apply_endpoint(EndpointInfo(id=incident.endpoint_id, path="/health"))

        assert GitHubIssueTracker.format_issue_title(incident).startswith(
            "orders-service ANY /health:"
        )

    def test_title_truncates_long_message(self, make_incident: Callable[..., Incident]) -> None:
        incident = make_incident(error_message="x" * 80)

        title = GitHubIssueTracker.format_issue_title(incident)

        assert title == "orders-service: " + "x" * 50 + "..."

    def test_body_sections(self, incident: Incident) -> None:
        body = GitHubIssueTracker.format_issue_body(incident)

        assert body.startswith("## Bug Report\n**Detected by:** rootcause")
        assert "**Endpoint:** Unknown endpoint" in body
        assert "## Implicated Functions\n- `Handler.process`\n- `Router.dispatch`" in body
        assert "```\nat Handler.process\nat Router.dispatch\n```" in body
        assert f"**Root Cause Hash:** `{'f' * 64}`" in body
        assert "**S3 Pointer:** s3://payloads/e/9.json" in body
        assert body.endswith("_This issue was automatically created by rootcause._")

    def test_body_omits_empty_sections(self, make_incident: Callable[..., Incident]) -> None:
        body = GitHubIssueTracker.format_issue_body(make_incident())

        assert "## Implicated Functions" not in body
        assert "## Stack Trace" not in body

    def test_body_endpoint_with_methods(self, incident: Incident) -> None:
        incident.apply_endpoint(
            EndpointInfo(id=incident.endpoint_id, path="/orders", methods=("GET", "POST"))
        )

        assert "**Endpoint:** GET, POST /orders" in GitHubIssueTracker.format_issue_body(incident)

    def test_issue_url(self) -> None:
        tracker = GitHubIssueTracker("acme", "shop", "ghp_test")
        assert tracker.issue_url(12) == "https://github.com/acme/shop/issues/12"


@pytest.mark.asyncio
class TestCreateIssue:
    async def test_created(self, incident: Incident) -> None:
        requests: list[httpx.Request] = []
        tracker = make_tracker(lambda r: httpx.Response(201, json={"number": 321}), requests)

        number = await tracker.create_issue(incident)
        await tracker.close()

        assert number == 321
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/repos/acme/shop/issues"
        assert request.headers["authorization"] == "token ghp_test"
        payload = json.loads(request.content)
        assert payload["title"] == "orders-service: NullPointer at row 12"
        assert payload["labels"] == ["bug", "production", "auto-created"]
        assert "Root Cause Hash" in payload["body"]

    @pytest.mark.parametrize(
        "status,fragment",
        [
            (404, "Repository acme/shop not found"),
            (403, "Permission denied"),
            (422, "GitHub API error (422)"),
        ],
    )
    async def test_error_statuses(self, incident: Incident, status: int, fragment: str) -> None:
        tracker = make_tracker(lambda r: httpx.Response(status, text="nope"))

        with pytest.raises(IssueTrackerError, match=re.escape(fragment)) as exc_info:
            await tracker.create_issue(incident)
        await tracker.close()

        assert exc_info.value.status_code == status

    async def test_network_error_wrapped(self, incident: Incident) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        tracker = make_tracker(fail)

        with pytest.raises(IssueTrackerError, match="connection refused"):
            await tracker.create_issue(incident)
        await tracker.close()


@pytest.mark.asyncio
class TestConnection:
    async def test_ok(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/user":
                return httpx.Response(200, json={"login": "bot"})
            return httpx.Response(200, json={"full_name": "acme/shop"})

        requests: list[httpx.Request] = []
        tracker = make_tracker(handler, requests)

        await tracker.test_connection()
        await tracker.close()

        assert [r.url.path for r in requests] == ["/user", "/repos/acme/shop"]

    async def test_bad_token(self) -> None:
        tracker = make_tracker(lambda r: httpx.Response(401, json={}))

        with pytest.raises(IssueTrackerError, match="GITHUB_TOKEN"):
            await tracker.test_connection()
        await tracker.close()

    async def test_missing_repository(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/user":
                return httpx.Response(200, json={"login": "bot"})
            return httpx.Response(404, json={})

        tracker = make_tracker(handler)

        with pytest.raises(IssueTrackerError, match="acme/shop not found") as exc_info:
            await tracker.test_connection()
        await tracker.close()

        assert exc_info.value.status_code == 404

    async def test_other_failure(self) -> None:
        tracker = make_tracker(lambda r: httpx.Response(502, text="bad gateway"))

        with pytest.raises(IssueTrackerError, match="HTTP 502"):
            await tracker.test_connection()
        await tracker.close()

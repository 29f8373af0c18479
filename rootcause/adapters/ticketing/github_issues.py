"""GitHub Issues tracker adapter.

Implements IssueTrackerPort by creating GitHub issues for incidents.
Formats a bug report that carries the root-cause fingerprint so the
issue can be traced back to the ledger entry.
"""

import logging

import httpx

from rootcause.core.exceptions import IssueTrackerError
from rootcause.core.models import Incident
from rootcause.core.ports import IssueTrackerPort

logger = logging.getLogger(__name__)

TITLE_MESSAGE_LIMIT = 50


class GitHubIssueTracker(IssueTrackerPort):
    """Creates GitHub issues for selected incidents."""

    def __init__(
        self,
        repo_owner: str,
        repo_name: str,
        github_token: str,
        api_base_url: str = "https://api.github.com",
        labels: list[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize GitHub issue tracker.

        Args:
            repo_owner: GitHub repository owner (username or organization).
            repo_name: GitHub repository name.
            github_token: GitHub personal access token for authentication.
            api_base_url: Base URL for GitHub API (default: https://api.github.com).
            labels: Labels to apply to created issues.
            transport: Optional httpx transport (used by tests).
        """
        self.repo_owner = repo_owner
        self.repo_name = repo_name
        self.github_token = github_token
        self.api_base_url = api_base_url
        self.labels = labels if labels is not None else ["bug", "production", "auto-created"]
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def repo(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client.

        Returns:
            httpx.AsyncClient configured with GitHub authentication.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_base_url,
                headers={
                    "Authorization": f"token {self.github_token}",
                    "Accept": "application/vnd.github.v3+json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def issue_url(self, issue_number: int) -> str:
        return f"https://github.com/{self.repo}/issues/{issue_number}"

    async def test_connection(self) -> None:
        """Check token validity and repository access."""
        client = await self._get_client()
        try:
            user_response = await client.get("/user")
            repo_response = await client.get(f"/repos/{self.repo}")
        except httpx.RequestError as e:
            raise IssueTrackerError(f"GitHub connection failed: {e}") from e

        if user_response.status_code == 401:
            raise IssueTrackerError(
                "GitHub token is invalid or expired. Please check your GITHUB_TOKEN.",
                status_code=401,
            )
        if repo_response.status_code == 404:
            raise IssueTrackerError(
                f"Repository {self.repo} not found or token lacks access.",
                status_code=404,
            )
        for response in (user_response, repo_response):
            if response.status_code >= 400:
                raise IssueTrackerError(
                    f"GitHub connection failed: HTTP {response.status_code}",
                    status_code=response.status_code,
                )

        logger.info(f"GitHub connected as: {user_response.json().get('login')}")
        logger.info(f"Repository access confirmed: {self.repo}")

    async def create_issue(self, incident: Incident) -> int:
        """Create an issue for an incident and return its number."""
        client = await self._get_client()
        try:
            response = await client.post(
                f"/repos/{self.repo}/issues",
                json={
                    "title": self.format_issue_title(incident),
                    "body": self.format_issue_body(incident),
                    "labels": self.labels,
                },
            )
        except httpx.RequestError as e:
            logger.error(
                f"Failed to create GitHub issue: {e}",
                extra={"incident_id": incident.id},
            )
            raise IssueTrackerError(f"GitHub request failed: {e}") from e

        if response.status_code == 201:
            issue_number = int(response.json()["number"])
            logger.info(
                f"Created GitHub issue #{issue_number}",
                extra={
                    "incident_id": incident.id,
                    "root_cause_hash": incident.root_cause_hash,
                    "issue_number": issue_number,
                },
            )
            return issue_number

        if response.status_code == 404:
            message = (
                f"Repository {self.repo} not found. "
                "Check repository name and token permissions."
            )
        elif response.status_code == 403:
            message = (
                "Permission denied. Check if your GitHub token has 'issues' "
                f"write permissions for {self.repo}."
            )
        else:
            message = f"GitHub API error ({response.status_code}): {response.text}"
        raise IssueTrackerError(message, status_code=response.status_code)

    @staticmethod
    def format_issue_title(incident: Incident) -> str:
        """Format issue title from incident.

        Args:
            incident: The incident being reported.

        Returns:
            Formatted issue title.
        """
        location = incident.service_name
        if incident.endpoint_path is not None:
            location = f"{incident.service_name} {incident.methods_display} {incident.endpoint_path}"

        message = incident.error_message
        if len(message) > TITLE_MESSAGE_LIMIT:
            message = message[:TITLE_MESSAGE_LIMIT] + "..."
        return f"{location}: {message}"

    @staticmethod
    def format_issue_body(incident: Incident) -> str:
        """Format issue body with incident details.

        Args:
            incident: The incident being reported.

        Returns:
            Formatted markdown issue body.
        """
        endpoint = "Unknown endpoint"
        if incident.endpoint_path is not None:
            methods = ", ".join(incident.endpoint_methods or ()) or "ANY"
            endpoint = f"{methods} {incident.endpoint_path}"

        lines = []

        lines.append("## Bug Report")
        lines.append("**Detected by:** rootcause")
        lines.append(f"**Timestamp:** {incident.timestamp.isoformat()}")
        lines.append("**Severity:** High")
        lines.append("")
        lines.append("Please:")
        lines.append("1. Gather production context on the functions and endpoints involved")
        lines.append("2. Identify the root cause")
        lines.append("3. Implement a proper fix")
        lines.append("4. Add tests if appropriate")
        lines.append("")

        lines.append("## Description")
        lines.append("")
        lines.append(f"**Service:** {incident.service_name}")
        lines.append(f"**Endpoint:** {endpoint}")
        lines.append(f"**Environment:** {incident.environment_name}")
        lines.append(f"**Error:** {incident.error_message}")
        lines.append("")

        if incident.throwing_functions:
            lines.append("## Implicated Functions")
            for name in incident.throwing_functions:
                lines.append(f"- `{name}`")
            lines.append("")

        if incident.stack_trace:
            lines.append("## Stack Trace")
            lines.append("```")
            lines.append(incident.stack_trace)
            lines.append("```")
            lines.append("")

        lines.append("## Additional Context")
        lines.append(f"- **Account ID:** {incident.account_id}")
        lines.append(f"- **Incident ID:** {incident.id}")
        lines.append(f"- **Root Cause Hash:** `{incident.root_cause_hash}`")
        lines.append(f"- **S3 Pointer:** {incident.s3_pointer}")
        lines.append("")
        lines.append("---")
        lines.append("_This issue was automatically created by rootcause._")

        return "\n".join(lines)

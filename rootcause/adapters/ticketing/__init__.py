"""Issue tracker adapters."""

from .github_issues import GitHubIssueTracker

__all__ = ["GitHubIssueTracker"]

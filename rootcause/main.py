"""Composition root for the rootcause incident pipeline.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Argument parsing and configuration loading
- Adapter instantiation
- Core service initialization
- Run: fetch investigations, build/dedupe/enrich, select, create issues
"""

import argparse
import asyncio
import logging
import sys

from rootcause.adapters.analytics.clickhouse import ClickHouseAnalyticsAdapter
from rootcause.adapters.cli.selection import TerminalSelector
from rootcause.adapters.ledger.sqlite import SQLiteSolvedIssueLedger
from rootcause.adapters.storage.s3 import S3ObjectStoreClient
from rootcause.adapters.ticketing.github_issues import GitHubIssueTracker
from rootcause.config import Settings, load_settings
from rootcause.core.deduplicator import Deduplicator
from rootcause.core.enricher import EndpointEnricher
from rootcause.core.exceptions import ConfigurationError
from rootcause.core.incident_builder import IncidentBuilder
from rootcause.core.issue_service import IssueCreationService
from rootcause.core.payload_fetcher import PayloadFetcher
from rootcause.core.pipeline import IncidentPipeline


def positive_int(value: str) -> int:
    """argparse type for a strictly positive integer."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number")
    if number <= 0:
        raise argparse.ArgumentTypeError("Invalid days value. Must be a positive number.")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="rootcause",
        description=(
            "Resolve recent production investigations to root causes and "
            "create GitHub issues for the new ones."
        ),
    )
    parser.add_argument(
        "-d",
        "--days",
        type=positive_int,
        default=None,
        help="Number of days back to look for incidents (default: DAYS_BACK or 3)",
    )
    return parser.parse_args(argv)


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


async def run(settings: Settings, days_back: int) -> int:
    """Wire adapters and services, then execute one run.

    Returns:
        Number of issues created.
    """
    logger = logging.getLogger(__name__)

    # Adapters
    analytics = ClickHouseAnalyticsAdapter(
        host=settings.clickhouse_host,
        port=settings.clickhouse_port,
        username=settings.clickhouse_username,
        password=settings.clickhouse_password,
        database=settings.clickhouse_database,
        secure=settings.clickhouse_secure,
    )
    fetcher = PayloadFetcher(
        client_factory=S3ObjectStoreClient,
        default_region=settings.aws_region,
        fallback_regions=settings.payload_fallback_regions,
    )
    ledger = SQLiteSolvedIssueLedger(db_path=settings.ledger_sqlite_path)
    tracker = GitHubIssueTracker(
        repo_owner=settings.github_repo_owner,
        repo_name=settings.github_repo_name,
        github_token=settings.github_token,
        labels=settings.github_labels,
    )
    selector = TerminalSelector(days_back=days_back)

    # Core services
    pipeline = IncidentPipeline(
        builder=IncidentBuilder(fetcher),
        deduplicator=Deduplicator(),
        enricher=EndpointEnricher(
            analytics, max_concurrency=settings.enrichment_concurrency
        ),
        fetch_concurrency=settings.fetch_concurrency,
        progress=selector.show_progress,
    )
    issue_service = IssueCreationService(
        ledger=ledger,
        tracker=tracker,
        selector=selector,
        creation_delay_seconds=settings.issue_creation_delay_seconds,
    )

    try:
        logger.info("Testing GitHub connection...")
        await tracker.test_connection()

        solved = await ledger.get_solved_issues()
        logger.info(f"Ledger holds {len(solved)} solved root causes")

        logger.info("Fetching recent investigations from ClickHouse...")
        investigations = await analytics.get_recent_investigations(
            days_back, limit=settings.investigation_limit
        )
        if not investigations:
            print(f"No incidents found in the last {days_back} day(s)!")
            return 0

        result = await pipeline.run(investigations)
        logger.info(
            f"Processed {result.investigations_processed} investigations: "
            f"{result.incidents_found} incidents found, "
            f"{len(result.incidents)} unique root causes, {result.errors} errors"
        )

        summary = await issue_service.run(list(result.incidents))
        print("━" * 80)
        print(
            f"Summary: {len(summary.created)} issues created, "
            f"{summary.skipped_solved} skipped (already solved)"
        )
        for incident, reason in summary.failed:
            print(f"Failed to create issue for {incident.service_name}: {reason}")
        return len(summary.created)
    finally:
        await analytics.close()
        await fetcher.close()
        await ledger.close()
        await tracker.close()


def main(argv: list[str] | None = None) -> None:
    """Application entry point.

    Exit codes:
        0: Successful run
        1: Fatal configuration or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    args = parse_args(argv)
    logger = logging.getLogger(__name__)
    try:
        settings = load_settings()
        configure_logging(settings.log_level, settings.log_format)
        settings.validate_required()
        days_back = args.days or settings.days_back
        logger.info(f"Looking back {days_back} day(s)...")
        asyncio.run(run(settings, days_back))
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

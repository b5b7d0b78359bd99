"""
Command line entry point.

Examples:
    repo-analyzer init-db
    repo-analyzer add-project 278964
    repo-analyzer sync
    repo-analyzer sync --full
    repo-analyzer check-connection
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from repo_analyzer.config.settings import settings
from repo_analyzer.core.database import dispose_engine, get_session_factory, init_models
from repo_analyzer.core.exceptions import AppExceptionBase, DuplicateResourceError
from repo_analyzer.core.log_sanitizer import configure_logging
from repo_analyzer.integrations.gitlab_client import GitLabClient
from repo_analyzer.services.project_registry import ProjectRegistry
from repo_analyzer.services.sync_commits_service import run_full_sync

logger = logging.getLogger(__name__)


async def cmd_init_db(args: argparse.Namespace) -> int:
    await init_models()
    logger.info("Database tables created")
    return 0


async def cmd_add_project(args: argparse.Namespace) -> int:
    async with GitLabClient.from_settings() as client:
        async with get_session_factory()() as session:
            try:
                async with session.begin():
                    project = await ProjectRegistry(client, session).register(args.project)
            except DuplicateResourceError as e:
                print(e.message)
                return 0
    print(f"Registered {project.name} (gitlab:{project.gitlab_id}) as project {project.id}")
    return 0


async def cmd_sync(args: argparse.Namespace) -> int:
    summary = await run_full_sync(full_resync=args.full)
    for result in summary.projects:
        line = f"{result.project_name}: {result.state}, {result.batches} batches, {result.commits_inserted} new commits"
        if result.error:
            line += f" ({result.error})"
        print(line)
    print(f"{summary.succeeded} succeeded, {summary.failed} failed, {summary.commits_inserted} commits inserted")
    return 0


async def cmd_check_connection(args: argparse.Namespace) -> int:
    async with GitLabClient.from_settings() as client:
        ok = await client.test_connection()
    print(f"GitLab at {settings.gitlab_url}: {'reachable' if ok else 'NOT reachable'}")
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="repo-analyzer", description="Synchronize GitLab commits and compute statistics")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level (default: from LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables").set_defaults(handler=cmd_init_db)

    add_project = subparsers.add_parser("add-project", help="Register a GitLab project for synchronization")
    add_project.add_argument("project", help="GitLab project id or full path (group/project)")
    add_project.set_defaults(handler=cmd_add_project)

    sync = subparsers.add_parser("sync", help="Synchronize commits of all registered projects")
    sync.add_argument("--full", action="store_true", help="Ignore checkpoints and re-read full history")
    sync.set_defaults(handler=cmd_sync)

    subparsers.add_parser("check-connection", help="Verify the GitLab URL and token").set_defaults(
        handler=cmd_check_connection
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    try:
        return await args.handler(args)
    finally:
        await dispose_engine()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return asyncio.run(run(args))
    except AppExceptionBase as e:
        logger.error(f"{args.command} failed: {e.message}")
        return 1
    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Mirror backup tool for every repository of a GitHub user or organization
"""

import argparse
import logging
import os
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from loguru import logger
from rich_argparse import ArgumentDefaultsRichHelpFormatter
from tqdm import tqdm

from .base import (
    BackupTarget,
    CloneFailure,
    Cloner,
    ListingError,
    Repository,
    RunConfiguration,
    RunContext,
)
from .github_manager import GitHubManager
from .local_backup import GitMirrorCloner
from .token_discovery import get_github_token, get_github_user


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records (library modules) to loguru"""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module so loguru reports it
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(verbose: bool = False, log_file: str = "mirror-backup.log"):
    """Setup console and file logging with loguru"""

    # Remove default loguru handler
    logger.remove()

    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)
    log_file_path = log_dir / log_file

    log_level = "DEBUG" if verbose else "INFO"

    # Route stdlib loggers (GitHubManager, GitMirrorCloner) through loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=log_level, force=True)

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<level>{message}</level>"
    )

    logger.add(sys.stdout, format=console_format, level=log_level, colorize=True)

    file_format = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"

    logger.add(
        log_file_path,
        format=file_format,
        level=log_level,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        encoding="utf-8",
    )

    logger.info("[CONFIG] Logging configured")
    logger.debug(f"Log file: {log_file_path}")

    return logger


# Configure basic loguru logging (will be reconfigured in main())
logger.remove()
logger.add(sys.stdout, level="INFO", colorize=True)


def get_env_default(env_var: str, fallback=None):
    """Get value from environment or .env file"""
    return os.getenv(env_var, fallback)


def default_backup_directory(
    script_dir: Optional[Path] = None, today: Optional[date] = None
) -> Path:
    """Return <script directory>/<YYYY-MM-DD> for the given (or current) day"""
    if script_dir is None:
        script_dir = Path(sys.argv[0]).resolve().parent
    today = today or date.today()
    return Path(script_dir) / today.strftime("%Y-%m-%d")


def total_size_mb(repos: List[Repository]) -> int:
    """Estimated size in MB; round() is half-to-even"""
    return round(sum(r.size_kb for r in repos) / 1024)


@dataclass
class BackupResult:
    repository_count: int
    total_size_mb: int
    attempted: int
    elapsed_seconds: int
    failed: List[str] = field(default_factory=list)


class MirrorBackupOrchestrator:
    def __init__(
        self,
        config: RunConfiguration,
        cloner: Optional[Cloner] = None,
        manager: Optional[GitHubManager] = None,
    ):
        self.config = config
        self.cloner = cloner or GitMirrorCloner()
        self.manager = manager or GitHubManager(config)
        self._lock = threading.Lock()

        logger.info(f"[CONFIG] Backup directory: {config.backup_directory}")
        if config.stop_on_error:
            logger.info("[CONFIG] Strict mode: stopping at the first failed clone")
        elif config.report_failures:
            logger.info("[CONFIG] Failed clones will be reported at the end")

    def backup_repository(self, repo: Repository, context: RunContext) -> bool:
        """Mirror a single repository into the backup directory"""
        target = BackupTarget.for_repository(repo, self.config.backup_directory)
        logger.info(
            f"[BACKUP] Backing up {self.config.web_url(repo)} to {target.destination_path}"
        )

        with self._lock:
            context.attempted += 1

        try:
            self.cloner.mirror_clone(
                self.config.remote_url(repo), target.destination_path
            )
        except CloneFailure as e:
            with self._lock:
                context.failed.append(repo.full_name)
            if self.config.stop_on_error or self.config.report_failures:
                logger.error(f"[FAIL] Mirror clone failed for {repo.full_name}: {e}")
                if e.stderr:
                    logger.debug(f"  git stderr: {e.stderr}")
            else:
                logger.debug(f"[SKIP] Ignoring failed clone of {repo.full_name}: {e}")
            if self.config.stop_on_error:
                raise
            return False

        return True

    def backup_repositories(
        self, repos: List[Repository], context: RunContext
    ) -> BackupResult:
        """Mirror every repository in listing order and report size and timing"""
        size_mb = total_size_mb(repos)

        if not repos:
            logger.warning("[WARN] No repositories found to backup")

        logger.info(
            f"[TOTAL] Found {len(repos)} repositories, estimated total size {size_mb}MB"
        )

        workers = max(1, self.config.workers)
        if workers > 1 and len(repos) > 1:
            logger.info(f"[PROCESS] Using parallel processing with {workers} workers...")
            self._run_parallel(repos, context, workers)
        else:
            with tqdm(repos, desc="Mirroring", unit="repo") as pbar:
                for repo in pbar:
                    pbar.set_description(f"[BACKUP] {repo.full_name}")
                    self.backup_repository(repo, context)

        if self.config.report_failures and context.failed:
            logger.error(
                f"[WARN] {len(context.failed)} repositories failed to backup:"
            )
            for full_name in context.failed:
                logger.error(f"  - {full_name}")

        elapsed = context.elapsed_seconds()
        logger.info(f"[COMPLETE] Backup completed in {elapsed} seconds")

        return BackupResult(
            repository_count=len(repos),
            total_size_mb=size_mb,
            attempted=context.attempted,
            elapsed_seconds=elapsed,
            failed=list(context.failed),
        )

    def _run_parallel(
        self, repos: List[Repository], context: RunContext, workers: int
    ):
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self.backup_repository, repo, context): repo
                for repo in repos
            }

            with tqdm(total=len(repos), desc="Mirroring", unit="repo") as pbar:
                for future in as_completed(futures):
                    try:
                        future.result()
                    except CloneFailure:
                        for pending in futures:
                            pending.cancel()
                        raise
                    pbar.update(1)

    def run_backup(self, context: Optional[RunContext] = None) -> BackupResult:
        """List the repositories once, then mirror each of them"""
        context = context or RunContext(config=self.config)

        logger.info("[START] Starting repository mirror backup...")
        repos = self.manager.get_repositories()
        return self.backup_repositories(repos, context)


def main():
    started_at = time.monotonic()

    load_dotenv()

    parser = argparse.ArgumentParser(
        description="[bold blue]GitHub Mirror Backup[/bold blue] - Mirror-clone every repository of a user or organization",
        epilog="""
[bold green]Examples:[/bold green]
  [dim]# Mirror your own repositories into ./<today>[/dim]
  [yellow]%(prog)s[/yellow] [cyan]--user[/cyan] alice [cyan]--token[/cyan] ghp_xxx

  [dim]# Mirror an organization into a fixed directory[/dim]
  [yellow]%(prog)s[/yellow] [cyan]--user[/cyan] alice [cyan]--org[/cyan] acme [cyan]--backup-dir[/cyan] [magenta]/backups/acme[/magenta]

  [dim]# Stop at the first failed clone[/dim]
  [yellow]%(prog)s[/yellow] [cyan]--user[/cyan] alice [cyan]--stop-on-error[/cyan]

[bold blue]Limitations:[/bold blue]
  • Only the first 100 repositories returned by the API are mirrored
        """,
        formatter_class=ArgumentDefaultsRichHelpFormatter,
        add_help=False,
    )

    parser.add_argument(
        "-h", "--help", action="help", help="Show this help message and exit"
    )

    auth_group = parser.add_argument_group("Account Options")
    auth_group.add_argument(
        "--user",
        default=get_env_default("GITHUB_USER"),
        metavar="USER",
        help="GitHub user name to authenticate as (env: GITHUB_USER)",
    )
    auth_group.add_argument(
        "--token",
        default=None,
        metavar="SECRET",
        help="Password or personal access token (env: GITHUB_TOKEN, GH_TOKEN, or gh CLI)",
    )
    auth_group.add_argument(
        "--org",
        default=get_env_default("GITHUB_ORG"),
        metavar="ORG",
        help="Organization to back up instead of the user's own repositories (env: GITHUB_ORG)",
    )
    auth_group.add_argument(
        "--host",
        default=get_env_default("GITHUB_HOST", "github.com"),
        metavar="HOST",
        help="Repository host (env: GITHUB_HOST)",
    )

    ops_group = parser.add_argument_group("Backup Operations")
    ops_group.add_argument(
        "--backup-dir",
        default=get_env_default("BACKUP_DIR"),
        metavar="DIR",
        help="Backup directory (env: BACKUP_DIR, default: <script dir>/<YYYY-MM-DD>)",
    )
    ops_group.add_argument(
        "--stop-on-error",
        action="store_true",
        help="Abort the run at the first failed clone",
    )
    ops_group.add_argument(
        "--report-failures",
        action="store_true",
        help="Keep going on failed clones and list them at the end",
    )

    perf_group = parser.add_argument_group("Performance Options")
    perf_group.add_argument(
        "--workers",
        type=int,
        default=int(get_env_default("PARALLEL_WORKERS", "1")),
        metavar="N",
        help="Number of concurrent clones (env: PARALLEL_WORKERS)",
    )

    log_group = parser.add_argument_group("Logging Options")
    log_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )
    log_group.add_argument(
        "--log-file",
        default=get_env_default("LOG_FILE", "mirror-backup.log"),
        metavar="FILE",
        help="Log file name (env: LOG_FILE)",
    )

    args = parser.parse_args()

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    user = args.user or get_github_user()
    token = args.token or get_github_token()
    if not user or not token:
        logger.error(
            "[ERROR] A GitHub user and token are required. Use --user/--token or set GITHUB_USER/GITHUB_TOKEN."
        )
        sys.exit(1)

    if args.workers < 1:
        logger.error("[ERROR] --workers must be at least 1")
        sys.exit(1)

    backup_dir = Path(args.backup_dir) if args.backup_dir else default_backup_directory()

    config = RunConfiguration(
        user_name=user,
        credential=token,
        backup_directory=backup_dir,
        organization_name=args.org or None,
        host=args.host,
        stop_on_error=args.stop_on_error,
        report_failures=args.report_failures,
        workers=args.workers,
    )
    context = RunContext(config=config, started_at=started_at)

    try:
        orchestrator = MirrorBackupOrchestrator(config)
        result = orchestrator.run_backup(context)
    except ListingError as e:
        logger.error(f"[ERROR] Could not list repositories: {e}")
        sys.exit(1)
    except CloneFailure as e:
        logger.error(f"[ERROR] Backup aborted: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("[WARN] Backup interrupted by user")
        sys.exit(130)

    if config.report_failures and result.failed:
        sys.exit(1)


if __name__ == "__main__":
    main()

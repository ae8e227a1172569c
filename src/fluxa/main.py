"""Application entry point — one-off ingestion runs or the cron scheduler."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from fluxa.config import Config, load_config
from fluxa.ingestion.runner import run_all_sources, run_ingestion
from fluxa.storage import init_db

logger = logging.getLogger("fluxa")


class _JsonFormatter(logging.Formatter):
    """One JSON object per line, tagged with the deployment environment."""

    def __init__(self, app_env: str) -> None:
        super().__init__()
        self._app_env = app_env

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "env": self._app_env,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _setup_logging(log_level: str, log_format: str, app_env: str = "production") -> None:
    """Configure the root logger for ingestion runs and the scheduler.

    Unknown level names fall back to INFO. APScheduler's per-job chatter is
    kept at WARNING unless running at DEBUG.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if log_format == "json":
        formatter: logging.Formatter = _JsonFormatter(app_env)
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)
    logging.getLogger("apscheduler").setLevel(
        logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    )


def _scheduled_ingestion(config: Config) -> None:
    try:
        run_all_sources(config)
    except Exception:
        logger.exception("Scheduled ingestion failed; scheduler will continue")


def _build_scheduler(config: Config) -> BlockingScheduler:
    """Create a BlockingScheduler that ingests all active sources on a cron."""
    scheduler = BlockingScheduler()

    cron_parts = config.ingestion_schedule_cron.split()
    scheduler.add_job(
        _scheduled_ingestion,
        trigger=CronTrigger(
            minute=cron_parts[0],
            hour=cron_parts[1],
            day=cron_parts[2],
            month=cron_parts[3],
            day_of_week=cron_parts[4],
            timezone="UTC",
        ),
        args=[config],
        id="ingestion",
        name="Content ingestion",
    )

    return scheduler


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fluxa", description="Fluxa content ingestion")
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Ingest a single source")
    run.add_argument("source_key")
    run.add_argument("--force", action="store_true", help="Ignore the refresh window")

    commands.add_parser("run-all", help="Ingest every active source once")
    commands.add_parser("serve", help="Run the ingestion scheduler")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Load config, set up logging, and dispatch the requested command."""
    args = _build_parser().parse_args(argv)
    config = load_config()

    _setup_logging(config.log_level, config.log_format, config.app_env)

    logger.info("Fluxa ingestion starting (env=%s, db=%s)", config.app_env, config.database_path)

    init_db(config.database_path)

    if args.command == "run":
        result = run_ingestion(args.source_key, config, force=args.force)
        print(json.dumps(asdict(result), indent=2))
        return 0 if result.success else 1

    if args.command == "run-all":
        results = run_all_sources(config)
        print(json.dumps({key: asdict(result) for key, result in results.items()}, indent=2))
        return 0 if all(result.success for result in results.values()) else 1

    scheduler = _build_scheduler(config)
    logger.info("Scheduler starting (cron: %s)", config.ingestion_schedule_cron)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())

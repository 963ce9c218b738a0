"""CLI entrypoint for the Ensinor backend core."""

import argparse
import json
import time
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from ensinor.api import (
    assignments_api,
    codes_api,
    courses_api,
    grading_api,
    quizzes_api,
    subscriptions_api,
    users_api,
)
from ensinor.api.handlers import handle_error
from ensinor.api.models import ApiResponse
from ensinor.config.loader import DEFAULT_CONFIG_PATH, default_config, get_setting, load_config
from ensinor.database.schema import create_all
from ensinor.database.sqlite_client import session_context
from ensinor.ops.maintenance import MAINTENANCE_JOBS, run_job
from ensinor.ops.scheduler import MaintenanceScheduler
from ensinor.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

# resource name -> fn(session, query=..., pagination=...) -> ApiResponse
LISTINGS: Dict[str, Callable[..., ApiResponse]] = {
    "users": users_api.get_users,
    "courses": courses_api.get_courses,
    "assignments": assignments_api.get_assignments,
    "promo-codes": partial(codes_api.get_codes, kind=codes_api.KIND_PROMO),
    "coupons": partial(codes_api.get_codes, kind=codes_api.KIND_COUPON),
    "grading-systems": grading_api.get_grading_systems,
    "quizzes": quizzes_api.get_quizzes,
    "packages": subscriptions_api.get_packages,
    "subscriptions": subscriptions_api.get_subscriptions,
}


def _load_runtime_config(path: Optional[Path]) -> Dict[str, Any]:
    """Explicit --config must exist; the default file is optional."""
    if path is not None:
        return load_config(path)
    try:
        return load_config(DEFAULT_CONFIG_PATH)
    except FileNotFoundError:
        return default_config()


def _print_envelope(response: ApiResponse) -> None:
    print(json.dumps(response.model_dump(mode="json", exclude_none=True), indent=2))


def _filter_pair(text: str) -> Tuple[str, str]:
    key, sep, value = text.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"Filter must look like key=value, got {text!r}")
    return key.strip(), value.strip()


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create all tables in the configured SQLite database."""
    sqlite_path = get_setting(args.config, "storage.sqlite_path")
    create_all(f"sqlite:///{sqlite_path}")
    logger.info(f"Database initialized at {sqlite_path}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Print one page of a resource listing as a JSON envelope."""
    query: Dict[str, Any] = dict(args.filter or [])
    for key, value in (
        ("page", args.page),
        ("limit", args.limit),
        ("sortBy", args.sort_by),
        ("sortOrder", args.sort_order),
        ("searchTerm", args.search),
    ):
        if value is not None:
            query[key] = value

    sqlite_path = get_setting(args.config, "storage.sqlite_path")
    try:
        with session_context(sqlite_path) as session:
            response = LISTINGS[args.resource](session, query=query, pagination=args.config.get("pagination"))
    except Exception as e:
        response, status = handle_error(e)
        _print_envelope(response)
        return 1 if status < 500 else 2

    _print_envelope(response)
    return 0


def cmd_maintenance_run(args: argparse.Namespace) -> int:
    """Run one maintenance job immediately."""
    sqlite_path = get_setting(args.config, "storage.sqlite_path")
    try:
        with session_context(sqlite_path) as session:
            result = run_job(args.job, session, args.config)
    except Exception as e:
        logger.error(f"Maintenance job {args.job} failed: {e}", exc_info=True)
        raise
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def cmd_scheduler(args: argparse.Namespace) -> int:
    """Run the maintenance scheduler in the foreground until interrupted."""
    scheduler = MaintenanceScheduler(args.config)
    scheduler.start()
    try:
        while scheduler.running:
            time.sleep(args.poll_seconds)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down scheduler")
    finally:
        scheduler.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ensinor",
        description="Learning platform backend core: listings and maintenance",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to config YAML (default: {DEFAULT_CONFIG_PATH} if present)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init-db command
    init_parser = subparsers.add_parser("init-db", help="Create database tables")
    init_parser.set_defaults(func=cmd_init_db)

    # list command
    list_parser = subparsers.add_parser("list", help="List a resource as a JSON envelope")
    list_parser.add_argument("resource", choices=sorted(LISTINGS), help="Resource to list")
    list_parser.add_argument("--page", type=str, help="Page number (default: 1)")
    list_parser.add_argument("--limit", type=str, help="Page size")
    list_parser.add_argument("--sort-by", type=str, help="Sort field (default: created_at)")
    list_parser.add_argument("--sort-order", type=str, help="asc or desc (default: desc)")
    list_parser.add_argument("--search", type=str, help="Free-text search term")
    list_parser.add_argument(
        "--filter",
        action="append",
        type=_filter_pair,
        metavar="KEY=VALUE",
        help="Exact-match filter; repeatable",
    )
    list_parser.set_defaults(func=cmd_list)

    # maintenance commands
    maintenance_parser = subparsers.add_parser("maintenance", help="Maintenance jobs")
    maintenance_subparsers = maintenance_parser.add_subparsers(
        dest="maintenance_subcommand",
        help="Maintenance subcommands",
        required=True,
    )
    run_parser = maintenance_subparsers.add_parser("run", help="Run one maintenance job now")
    run_parser.add_argument("job", choices=sorted(MAINTENANCE_JOBS), help="Job name")
    run_parser.set_defaults(func=cmd_maintenance_run)

    # scheduler command
    scheduler_parser = subparsers.add_parser("scheduler", help="Run the maintenance scheduler in the foreground")
    scheduler_parser.add_argument(
        "--poll-seconds",
        type=float,
        default=1.0,
        help="How often to check for shutdown (default: 1.0)",
    )
    scheduler_parser.set_defaults(func=cmd_scheduler)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    args.config = _load_runtime_config(args.config)
    configure_logging(get_setting(args.config, "logging.level", "INFO"))

    try:
        return args.func(args)
    except Exception as e:
        logger.error(f"Error running command '{args.command}': {e}", exc_info=True)
        raise


if __name__ == "__main__":
    raise SystemExit(main())

"""Main entry point for the Jira to OpenProject sync.

Commands:
    migrate        Sync the issues of a Jira project into an OpenProject project
    map-users      Generate the Jira to OpenProject user mapping
    list-projects  List the Jira projects visible to the configured user
"""

import argparse
import atexit
import os
import sys
from pathlib import Path

from src import config
from src.clients.exceptions import ClientError
from src.config import logger, update_from_cli_args

LOCK_FILE_NAME = "migrate.pid"


def _pid_is_running(pid: int) -> bool:
    """Return True if a process with PID is running (and accessible)."""
    if pid <= 0:
        return False
    try:
        # Signal 0 checks existence without sending anything
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but belongs to someone else
        return True
    return True


def _read_pid(lock_file: Path) -> int:
    try:
        return int(lock_file.read_text(encoding="utf-8").strip() or "0")
    except (OSError, ValueError):
        return 0


def _ensure_singleton_lock(lock_file: Path) -> None:
    """Ensure only one migration runs at a time using a PID lock file.

    If a lock exists and the PID is alive, exit. If the PID is stale, remove it.
    The lock is removed on process exit.
    """
    if os.environ.get("JOS_DISABLE_LOCK") in {"1", "true", "True"}:
        logger.warning("Singleton lock disabled via JOS_DISABLE_LOCK=1")
        return

    lock_file.parent.mkdir(parents=True, exist_ok=True)
    current_pid = os.getpid()

    if lock_file.exists():
        existing = _read_pid(lock_file)
        if existing and _pid_is_running(existing):
            logger.error(
                "Another migration instance is running (pid=%s). Lock: %s", existing, lock_file
            )
            sys.exit(1)
        logger.debug("Removing stale lock %s (pid=%s)", lock_file, existing)
        lock_file.unlink(missing_ok=True)

    try:
        with lock_file.open("x", encoding="utf-8") as f:
            f.write(str(current_pid))
    except FileExistsError:
        logger.error(
            "Concurrent migration detected (pid=%s). Lock: %s", _read_pid(lock_file), lock_file
        )
        sys.exit(1)

    def _cleanup_lock() -> None:
        # Only remove the lock if it is still ours
        if _read_pid(lock_file) == current_pid:
            lock_file.unlink(missing_ok=True)

    atexit.register(_cleanup_lock)


def _parse_issue_keys(value: str) -> list[str]:
    keys = [k.strip().upper() for k in value.split(",") if k.strip()]
    if not keys:
        msg = "expected a comma-separated list of issue keys"
        raise argparse.ArgumentTypeError(msg)
    return keys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jos",
        description="Sync Jira issues into OpenProject work packages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "NOTICE", "WARNING", "ERROR"],
        type=str.upper,
        help="Override the configured log level",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    migrate_parser = subparsers.add_parser(
        "migrate",
        help="Create or update OpenProject work packages from Jira issues",
    )
    migrate_parser.add_argument(
        "--jira-project",
        required=True,
        metavar="KEY",
        help="Key of the Jira project to read issues from",
    )
    migrate_parser.add_argument(
        "--op-project",
        required=True,
        metavar="ID",
        help="Id or identifier of the OpenProject project to write to",
    )
    migrate_parser.add_argument(
        "--issues",
        type=_parse_issue_keys,
        metavar="KEYS",
        help="Only migrate these issues (e.g. 'PROJ-1,PROJ-7')",
    )
    migrate_parser.add_argument(
        "--skip-updates",
        action="store_true",
        help="Leave issues that already have a work package untouched",
    )
    migrate_parser.add_argument(
        "--map-responsible",
        action="store_true",
        help="Set the work package accountable from the Jira issue creator",
    )
    migrate_parser.add_argument(
        "--refresh-user-mapping",
        action="store_true",
        help="Regenerate the user mapping before migrating",
    )
    migrate_parser.add_argument(
        "--timezone",
        help="IANA timezone used for comment timestamps (default: configured or UTC)",
    )

    users_parser = subparsers.add_parser(
        "map-users",
        help="Map Jira users to OpenProject users by e-mail address",
    )
    users_parser.add_argument(
        "--domain",
        help="Only include Jira users whose address ends with @DOMAIN",
    )
    users_parser.add_argument(
        "--create-users",
        action="store_true",
        help="Create OpenProject users for Jira users without a match",
    )
    users_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log what would be created and saved without doing it",
    )

    subparsers.add_parser("list-projects", help="List Jira projects")
    return parser


def _connect():
    """Create both clients, imported lazily so --help stays fast."""
    from src.clients.jira_client import JiraClient  # noqa: PLC0415
    from src.clients.openproject_client import OpenProjectClient  # noqa: PLC0415

    return JiraClient(), OpenProjectClient()


def run_migrate(args: argparse.Namespace) -> int:
    from src.mappings.mappings import IdentityMap  # noqa: PLC0415
    from src.mappings.user_mapping import generate_user_mapping  # noqa: PLC0415
    from src.migrations.issue_migration import IssueMigration  # noqa: PLC0415
    from src.type_definitions import MigrationOptions  # noqa: PLC0415

    _ensure_singleton_lock(config.get_path("run") / LOCK_FILE_NAME)
    jira_client, op_client = _connect()

    if args.refresh_user_mapping:
        identity_map = generate_user_mapping(jira_client, op_client)
    else:
        identity_map = IdentityMap.load()

    options = MigrationOptions(
        specific_issues=args.issues,
        skip_updates=args.skip_updates,
        map_responsible=args.map_responsible,
    )
    migration = IssueMigration(jira_client, op_client, identity_map)
    index = migration.migrate(args.jira_project, args.op_project, options)
    logger.success("Migration finished: %d issues mapped", len(index))
    return 0


def run_map_users(args: argparse.Namespace) -> int:
    from src.mappings.user_mapping import generate_user_mapping  # noqa: PLC0415

    jira_client, op_client = _connect()
    generate_user_mapping(
        jira_client,
        op_client,
        domain=args.domain,
        create_users=args.create_users,
        dry_run=args.dry_run,
    )
    return 0


def run_list_projects(_args: argparse.Namespace) -> int:
    from src.clients.jira_client import JiraClient  # noqa: PLC0415
    from src.display import console  # noqa: PLC0415

    for project in JiraClient().get_projects():
        console.print(f"[bold]{project['key']}[/]  {project['name']}")
    return 0


COMMANDS = {
    "migrate": run_migrate,
    "map-users": run_map_users,
    "list-projects": run_list_projects,
}


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and execute the appropriate command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    update_from_cli_args(args)
    if not config.validate_config():
        sys.exit(1)

    # Imported here so the client modules load only after CLI overrides apply
    from src.clients.jira_client import JiraError  # noqa: PLC0415

    try:
        sys.exit(COMMANDS[args.command](args))
    except ValueError as e:
        logger.error("Invalid configuration or argument: %s", e)
        sys.exit(1)
    except (JiraError, ClientError) as e:
        logger.error("Could not talk to the server: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Migration interrupted by user")
        sys.exit(1)

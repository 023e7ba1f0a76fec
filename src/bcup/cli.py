"""Command line interface for bcup.

USAGE:
    bcup serve [--host HOST] [--port PORT]
    bcup list [--project ID] [--format table|json]
    bcup backup [--project ID] [--collections a,b | --all] [--unified]
    bcup restore FILE [--project ID] [--collections a,b]
    bcup restore --latest COLLECTION [--project ID]
    bcup stats [--project ID] [--format table|json]

ENVIRONMENT:
    BCUP_BACKUP_DIR            Root backup directory (default: ./backups)
    BCUP_FIRESTORE_BACKEND     none, native, rest or memory
    BCUP_FIRESTORE_PROJECT_ID  Project id (also the default --project)
    BCUP_SERVICE_ACCOUNT_PATH  Service account key file (rest, native)
    BCUP_COLLECTIONS           Collections backed up by default
    BCUP_MAX_COUNT             Backups kept by the retention pass

Values may also come from a .env file (--env-file, default ./.env).
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from bcup.backup import BackupService, RestoreReport
from bcup.config import FIRESTORE_BACKENDS, EnvLoader, Settings
from bcup.exceptions import BcupError
from bcup.logger import create_logger


def _split(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


def print_report(report: RestoreReport) -> None:
    print(
        f"Restored {report.restored} document(s) from {report.file} "
        f"({report.failed} failed, {report.skipped} skipped)"
    )
    for failure in report.failures:
        print(f"  FAILED {failure.collection}/{failure.document_id}: {failure.error}")


# ============================================================================
# Commands
# ============================================================================


def cmd_list(service: BackupService, project: Optional[str], format: str = "table") -> int:
    """List a project's backups."""
    backups = service.list_backups(project)

    if format == "json":
        print(json.dumps([b.to_dict() for b in backups], indent=2))
        return 0

    if not backups:
        print("No backups found")
        return 0

    print(f"\n{'File':<45} {'Modified':<20} {'Docs':>8} {'Size':>10}  Collections")
    print("-" * 100)
    for b in backups:
        modified = datetime.fromtimestamp(b.timestamp).strftime("%Y-%m-%d %H:%M:%S")
        docs = "?" if b.documents is None else str(b.documents)
        print(
            f"{b.file:<45} {modified:<20} {docs:>8} {format_size(b.size):>10}  "
            f"{', '.join(b.collections)}"
        )
    print(f"\nTotal: {len(backups)} backups")
    return 0


def cmd_backup(
    service: BackupService,
    project: Optional[str],
    collections: Optional[List[str]] = None,
    unified: bool = False,
    all_collections: bool = False,
) -> int:
    """Back up collections from the configured database."""
    if all_collections:
        collections = service.database_collections()
        if not collections:
            print("No collections found in the database")
            return 0
    if unified:
        names = collections or service.config.default_collections
        result = service.create_backup(project, collection_names=names)
        for failure in result.failures:
            print(f"ERROR: {failure.collection}: {failure.error}", file=sys.stderr)
        if result.file is None:
            return 1
        print(f"Backup saved: {result.file} ({result.documents} documents)")
        return 0 if result.success else 1

    report = service.backup_collections_job(project, collections)
    for result in report.results:
        if result.error is None:
            print(f"Backup saved: {result.file} ({result.documents} documents)")
        else:
            print(f"ERROR: {result.collection}: {result.error}", file=sys.stderr)
    if report.removed:
        print(f"Deleted {report.removed} old backup(s)")
    return 0 if report.success else 1


def cmd_restore(
    service: BackupService,
    project: Optional[str],
    file: Optional[str],
    latest: Optional[str] = None,
    collections: Optional[List[str]] = None,
) -> int:
    """Restore a backup into the configured database."""
    if latest:
        report = service.restore_latest(project, latest)
    elif file:
        report = service.restore_backup(project, file, collections=collections)
    else:
        print("ERROR: Specify a backup FILE or --latest COLLECTION", file=sys.stderr)
        return 1

    print_report(report)
    return 0 if report.success else 1


def cmd_stats(service: BackupService, project: Optional[str], format: str = "table") -> int:
    """Show count and size statistics for a project's backups."""
    stats = service.stats(project)

    if format == "json":
        print(json.dumps(stats, indent=2))
        return 0

    print(f"Backups:  {stats['total_backups']}")
    print(f"Size:     {format_size(stats['total_size_bytes'])}")
    if stats["total_backups"]:
        print(f"Oldest:   {stats['oldest_backup']}")
        print(f"Newest:   {stats['newest_backup']}")
    return 0


def cmd_serve(settings: Settings, service: BackupService, host: str, port: int) -> int:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from bcup.web import create_app

    uvicorn.run(create_app(settings, service=service), host=host, port=port)
    return 0


# ============================================================================
# Main
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bcup",
        description="Backup and restore Firestore collections as gzip JSON files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES:
  Back up the default collections, one file each:
    %(prog)s --backend rest backup --project my-project

  Restore the newest backup of "parts":
    %(prog)s --backend rest restore --latest parts --project my-project

  List backups as JSON:
    %(prog)s list --project my-project --format json
        """,
    )

    # Global options
    parser.add_argument("--env-file", help="Path to a .env file (default: ./.env)")
    parser.add_argument(
        "--backend",
        choices=FIRESTORE_BACKENDS,
        help="Firestore backend (overrides BCUP_FIRESTORE_BACKEND)",
    )
    parser.add_argument("--backup-dir", help="Backup root directory (overrides BCUP_BACKUP_DIR)")
    parser.add_argument(
        "--project",
        help="Project id whose backup directory is used (default: BCUP_FIRESTORE_PROJECT_ID)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address (default: BCUP_HOST)")
    serve.add_argument("--port", type=int, help="Port (default: BCUP_PORT)")

    list_parser = subparsers.add_parser("list", help="List backups")
    list_parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format. Default: %(default)s",
    )

    backup = subparsers.add_parser(
        "backup",
        help="Back up collections",
        description="Back up each collection to its own file and apply retention, "
        "or write one multi-collection file with --unified",
    )
    backup.add_argument("--collections", help="Comma-separated collection names")
    backup.add_argument(
        "--unified",
        action="store_true",
        help="Write all collections to a single backup_<timestamp>.json.gz file",
    )
    backup.add_argument(
        "--all",
        dest="all_collections",
        action="store_true",
        help="Back up every collection the database lists instead of BCUP_COLLECTIONS",
    )

    restore = subparsers.add_parser("restore", help="Restore a backup into the database")
    restore.add_argument("file", nargs="?", help="Backup file name")
    restore.add_argument(
        "--latest", metavar="COLLECTION", help="Restore the newest backup of a collection"
    )
    restore.add_argument("--collections", help="Comma-separated subset of collections to restore")

    stats = subparsers.add_parser("stats", help="Show backup count and size")
    stats.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format. Default: %(default)s",
    )

    return parser


def load_settings(args: argparse.Namespace) -> tuple:
    """Build settings and the raw BCUP_* mapping from env, .env and flags."""
    overrides: Dict[str, str] = {}
    if args.backend:
        overrides["BCUP_FIRESTORE_BACKEND"] = args.backend
    if args.backup_dir:
        overrides["BCUP_BACKUP_DIR"] = args.backup_dir
    if args.verbose:
        overrides["BCUP_LOG_LEVEL"] = "DEBUG"

    loader = EnvLoader(args.env_file)
    env = loader.load_prefixed(overrides)
    return loader.settings(overrides), env


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    from bcup.web import create_backup_service

    try:
        settings, env = load_settings(args)
        logger = create_logger(
            "bcup",
            level=getattr(logging, settings.log.level, logging.INFO),
            json_format=settings.log.format == "json",
        )
        service = create_backup_service(settings, logger=logger, env=env)
        project = args.project or settings.firestore.project_id

        if args.command == "serve":
            return cmd_serve(
                settings,
                service,
                host=args.host or settings.server.host,
                port=args.port or settings.server.port,
            )
        if args.command == "list":
            return cmd_list(service, project, args.format)
        if args.command == "backup":
            return cmd_backup(
                service, project, _split(args.collections), args.unified, args.all_collections
            )
        if args.command == "restore":
            return cmd_restore(service, project, args.file, args.latest, _split(args.collections))
        if args.command == "stats":
            return cmd_stats(service, project, args.format)
    except BcupError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

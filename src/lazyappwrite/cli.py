"""Command-line interface for lazyappwrite."""

import argparse
import logging
import sys
from pathlib import Path

from lazyappwrite.client import create_admin_client
from lazyappwrite.config import Config
from lazyappwrite.exceptions import ConfigError, SyncStageError
from lazyappwrite.schema.loader import load_schema


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(
        prog="lazyappwrite",
        description="Declarative Appwrite table sync",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser(
        "validate", help="Validate table declaration files"
    )
    validate_parser.add_argument("--schema-path", type=Path, default=None)

    sync_parser = subparsers.add_parser(
        "sync", help="Create or repair every declared table"
    )
    sync_parser.add_argument("--schema-path", type=Path, default=None)
    sync_parser.add_argument("--endpoint", default=None)
    sync_parser.add_argument("--project-id", default=None)
    sync_parser.add_argument("--database-id", default=None)
    sync_parser.add_argument("--database-name", default=None)
    sync_parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Log every sync step",
    )

    args = parser.parse_args(argv)

    if args.command == "validate":
        return cmd_validate(args)
    elif args.command == "sync":
        return cmd_sync(args)
    else:
        print(f"Command '{args.command}' not yet implemented", file=sys.stderr)
        return 1


def _schema_path(args: argparse.Namespace) -> Path:
    if args.schema_path is not None:
        return args.schema_path
    return Path(Config.from_env().schema_dir)


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate declaration files."""
    try:
        schema = load_schema(_schema_path(args))
        print(f"Validated {len(schema.tables)} tables:")
        for table_id in sorted(schema.table_ids()):
            table = schema.get_table(table_id)
            print(
                f"  - {table_id} ({len(table.columns)} columns, "
                f"{len(table.indexes)} indexes)"
            )
        return 0
    except Exception as e:
        print(f"Validation error: {e}", file=sys.stderr)
        return 1


def cmd_sync(args: argparse.Namespace) -> int:
    """Sync every declared table against the backend."""
    try:
        config = Config.from_env(
            endpoint=getattr(args, "endpoint", None),
            project_id=getattr(args, "project_id", None),
            database_id=getattr(args, "database_id", None),
            database_name=getattr(args, "database_name", None),
            verbose=getattr(args, "verbose", None),
        )
        config.validate_for_sync()
        schema = load_schema(_schema_path(args))

        if not schema.tables:
            print("No tables declared")
            return 0

        context = create_admin_client(config)
        database = context.get_database(config.database_id, config.database_name)

        for table_id in sorted(schema.table_ids()):
            database.model(schema.get_table(table_id)).prepare()
            print(f"  ✓ {table_id}")

        print(f"\nSynced {len(schema.tables)} table(s)")
        return 0
    except SyncStageError as e:
        # Bad credentials or endpoint surface from the database stage.
        if isinstance(e.__cause__, ConfigError):
            print(f"Configuration error ({e.stage}): {e}", file=sys.stderr)
            return 2
        print(f"Sync error ({e.stage}): {e}", file=sys.stderr)
        return 1
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Sync error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Register caller-side records as QuickBooks companies.

Every QuickBooks connection is keyed by a generated company id bound to a
record in the calling application (for example an ``organization`` row). This
tool creates those bindings ahead of the OAuth flow and lists existing ones.

Example usages::

    # Bind two organizations of tenant "acme" and print their company ids.
    python -m scripts.register_companies register organization 17 18 --tenant acme

    # Show every company id known to the tenant.
    python -m scripts.register_companies list --tenant acme
"""

from __future__ import annotations

import argparse
import sys
from typing import Callable, Optional

from pydantic import ValidationError

from quickbooks_hub.clients.sqlite_store import SQLiteDatabase
from quickbooks_hub.core.config import QuickBooksSettings
from quickbooks_hub.core.logging import configure_logging
from quickbooks_hub.services.companies import SQLiteCompanyRepository

EXIT_OK = 0
EXIT_INVALID_INPUT = 2


def _register(
    repository: SQLiteCompanyRepository,
    settings: QuickBooksSettings,
    args: argparse.Namespace,
) -> int:
    source_type = args.source_type.strip()
    source_ids = [source_id.strip() for source_id in args.source_ids]
    if not source_type or not all(source_ids):
        print("Source type and source ids must be non-empty.", file=sys.stderr)
        return EXIT_INVALID_INPUT

    for source_id in source_ids:
        binding = repository.register_source(
            source_type,
            source_id,
            tenant_id=args.tenant,
            display_name=args.label,
            environment=settings.environment,
        )
        print(f"{source_type}#{source_id}\t{binding.company_id}")
    return EXIT_OK


def _list(repository: SQLiteCompanyRepository, args: argparse.Namespace) -> int:
    for company_id in repository.list_company_ids(tenant_id=args.tenant):
        print(company_id)
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Create and inspect QuickBooks company bindings."
    )
    parser.add_argument(
        "--database",
        default=None,
        help="SQLite database path (default: QUICKBOOKS_DATABASE_PATH).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_parser = subparsers.add_parser(
        "register",
        help="Bind one company per source record; existing bindings are reused.",
    )
    register_parser.add_argument("source_type", help="Kind of record, e.g. 'organization'.")
    register_parser.add_argument("source_ids", nargs="+", help="Record identifiers to bind.")
    register_parser.add_argument("--tenant", default=None, help="Owning tenant group id.")
    register_parser.add_argument("--label", default=None, help="Display name for the bindings.")

    list_parser = subparsers.add_parser("list", help="Print known company ids.")
    list_parser.add_argument("--tenant", default=None, help="Only companies of this tenant.")

    return parser


def main(argv: list[str] | None = None, settings: Optional[QuickBooksSettings] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if settings is None:
        try:
            settings = QuickBooksSettings()  # type: ignore[call-arg]
        except ValidationError as exc:
            print(
                "Settings validation failed. Missing or invalid values detected:\n"
                f"{exc.json(indent=2)}",
                file=sys.stderr,
            )
            return EXIT_INVALID_INPUT

    # stdout carries the command output.
    configure_logging(settings.log_level, stream=sys.stderr)
    database = SQLiteDatabase(args.database or settings.database_path)
    repository = SQLiteCompanyRepository(database)

    handlers: dict[str, Callable[[], int]] = {
        "register": lambda: _register(repository, settings, args),
        "list": lambda: _list(repository, args),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())

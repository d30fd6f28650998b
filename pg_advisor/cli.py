"""
Command line entry point.

    python -m pg_advisor --schemas commerce,civics            # dry run, text report
    python -m pg_advisor --schemas commerce --format sql      # corrective statements only
    python -m pg_advisor --schemas commerce --apply --category missing_fk_index

Connection settings come from the environment / .env (TARGET_DB_HOST, ...).

Exit codes:
    0  analysis completed (with or without findings, even if some statements failed)
    2  the target database could not be reached
    3  permission denied on every requested schema
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from dotenv import load_dotenv

from pg_advisor.config import Settings
from pg_advisor.core.errors import CatalogConnectionError, CatalogPermissionError
from pg_advisor.core.formatter import format_json_report, format_text_report, render_sql_script
from pg_advisor.core.runner import run_advisor_from_settings
from pg_advisor.models.finding import FindingCategory
from pg_advisor.models.options import RunOptions


EXIT_OK = 0
EXIT_CONNECTION = 2
EXIT_PERMISSION = 3


def _split_schemas(values: Optional[List[str]]) -> Optional[List[str]]:
    if not values:
        return None
    schemas: List[str] = []
    for value in values:
        schemas.extend(s.strip() for s in value.split(",") if s.strip())
    return schemas or None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pg-advisor",
        description="PostgreSQL index advisor: unused, redundant and missing foreign-key indexes",
    )
    parser.add_argument(
        "--schemas",
        action="append",
        help="Comma-separated schema names (repeatable). Defaults to ADVISOR_SCHEMAS.",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", dest="apply", action="store_false", help="Report only (default)")
    mode.add_argument("--apply", dest="apply", action="store_true", help="Execute corrective statements")
    parser.set_defaults(apply=None)
    parser.add_argument("--min-unused-size-bytes", type=int, default=None)
    parser.add_argument("--large-size-bytes", type=int, default=None)
    parser.add_argument("--rarely-used-max-scans", type=int, default=None)
    parser.add_argument("--reindex-high-size-bytes", type=int, default=None)
    parser.add_argument("--reindex-medium-size-bytes", type=int, default=None)
    parser.add_argument(
        "--category",
        action="append",
        choices=[c.value for c in FindingCategory],
        help="Restrict --apply to these finding categories (repeatable)",
    )
    parser.add_argument("--format", choices=["text", "json", "sql"], default="text")
    parser.add_argument("--env-file", default=".env", help="dotenv file with TARGET_DB_* settings")
    return parser


def build_options(args: argparse.Namespace, cfg: Settings) -> RunOptions:
    categories = frozenset(FindingCategory(c) for c in args.category) if args.category else None
    return RunOptions.from_settings(
        cfg,
        dry_run=None if args.apply is None else not args.apply,
        min_unused_size_bytes=args.min_unused_size_bytes,
        large_size_bytes=args.large_size_bytes,
        rarely_used_max_scans=args.rarely_used_max_scans,
        reindex_high_size_bytes=args.reindex_high_size_bytes,
        reindex_medium_size_bytes=args.reindex_medium_size_bytes,
        apply_categories=categories,
    )


async def _main_async(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv(args.env_file)
    cfg = Settings()
    options = build_options(args, cfg)

    try:
        report = await run_advisor_from_settings(
            cfg,
            _split_schemas(args.schemas),
            options,
            require_access=True,
        )
    except CatalogConnectionError as exc:
        print(f"[FAIL] {exc}", file=sys.stderr)
        return EXIT_CONNECTION
    except CatalogPermissionError as exc:
        print(f"[FAIL] {exc}", file=sys.stderr)
        return EXIT_PERMISSION

    if args.format == "json":
        sys.stdout.write(format_json_report(report) + "\n")
    elif args.format == "sql":
        sys.stdout.write(render_sql_script(report.findings))
    else:
        sys.stdout.write(format_text_report(report))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> None:
    try:
        code = asyncio.run(_main_async(argv))
    except KeyboardInterrupt:
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()

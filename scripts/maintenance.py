# scripts/maintenance.py
# python -m scripts.maintenance list
# python -m scripts.maintenance status
# python -m scripts.maintenance run reset_salaries --param month=2 --param year=2026
# Connection settings come from the environment (DATABASE_URL).
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from config.settings import settings
from core.errors import AppError
from core.log import configure_logging
from database.connection import SessionLocal, create_all_tables
from modules.maintenance import services

logger = logging.getLogger("javelin.maintenance")


def _parse_params(pairs: List[str]) -> Dict[str, str]:
    out = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"--param expects key=value, got {pair!r}")
        out[key.strip()] = value
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="maintenance", description="Run data corrections against the database")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="show available routines")
    sub.add_parser("status", help="show which routines have been applied")
    run = sub.add_parser("run", help="run one routine")
    run.add_argument("name")
    run.add_argument("--force", action="store_true", help="run again even if already applied")
    run.add_argument("--param", action="append", default=[], metavar="KEY=VALUE")
    return parser


def run(name: str, params: Optional[Dict[str, str]] = None, force: bool = False, session_factory=None) -> int:
    """Run one routine in its own session; returns the process exit code."""
    db = (session_factory or SessionLocal)()
    try:
        result = services.run_migration(db, name, params, force=force)
    except AppError as e:
        logger.error("%s failed: %s", name, e.message)
        return 1
    except Exception:
        logger.exception("%s failed", name)
        return 1
    finally:
        db.close()

    if result["skipped"]:
        print(f"{name}: already applied, nothing to do (use --force to run again)")
    else:
        print(f"{name}: " + json.dumps(result["summary"], default=str, indent=2))
    return 0


def main(argv: Optional[List[str]] = None, session_factory=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(settings.LOG_LEVEL)
    if session_factory is None:
        create_all_tables()

    if args.command == "run":
        try:
            params = _parse_params(args.param)
        except ValueError as e:
            logger.error("%s", e)
            return 1
        return run(args.name, params, force=args.force, session_factory=session_factory)

    db = (session_factory or SessionLocal)()
    try:
        rows = services.list_migrations(db)
    finally:
        db.close()
    for row in rows:
        if args.command == "list":
            flag = " (repeatable)" if row["repeatable"] else ""
            print(f"{row['name']:<32} {row['description']}{flag}")
        else:
            when = row["applied_at"].isoformat() if row["applied_at"] else "never"
            print(f"{row['name']:<32} runs={row['run_count']:<3} last={when}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

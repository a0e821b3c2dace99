# modules/maintenance/services.py
"""
Registry and runner for one-shot data corrections.

A routine receives the session and its parameters, changes rows, and
returns a summary dict. It never commits: the runner writes the
`applied_migrations` checkpoint and commits both together, so a failed
run leaves neither the data change nor the checkpoint behind.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from core.errors import BadRequestError, NotFoundError
from database.base import utcnow
from modules.maintenance.models import AppliedMigration

logger = logging.getLogger(__name__)

Routine = Callable[[Session, Dict[str, Any]], Dict[str, Any]]


@dataclass(frozen=True)
class DataMigration:
    name: str
    description: str
    fn: Routine
    # repeatable routines run every time; the rest are skipped once recorded
    repeatable: bool = False
    required_params: Tuple[str, ...] = ()
    # summary keys that are reported to the caller but never stored
    private_keys: Tuple[str, ...] = ()


REGISTRY: Dict[str, DataMigration] = {}


def data_migration(
    name: str,
    description: str,
    repeatable: bool = False,
    required_params: Tuple[str, ...] = (),
    private_keys: Tuple[str, ...] = (),
):
    def _wrap(fn: Routine) -> Routine:
        if name in REGISTRY:
            raise ValueError(f"duplicate data migration: {name}")
        REGISTRY[name] = DataMigration(name, description, fn, repeatable, required_params, private_keys)
        return fn
    return _wrap


def _load_routines() -> None:
    # routines register themselves on import
    from modules.maintenance import routines  # noqa: F401


def get_migration(name: str) -> DataMigration:
    _load_routines()
    m = REGISTRY.get(name)
    if m is None:
        raise NotFoundError(f"Unknown data migration: {name}")
    return m


def list_migrations(db: Session) -> List[dict]:
    _load_routines()
    applied = {a.name: a for a in db.query(AppliedMigration).all()}
    out = []
    for name in sorted(REGISTRY):
        m = REGISTRY[name]
        a = applied.get(name)
        out.append({
            "name": name,
            "description": m.description,
            "repeatable": m.repeatable,
            "required_params": list(m.required_params),
            "applied_at": a.applied_at if a else None,
            "run_count": a.run_count if a else 0,
            "last_summary": a.summary if a else None,
        })
    return out


def run_migration(db: Session, name: str, params: Optional[Dict[str, Any]] = None, force: bool = False) -> dict:
    """
    Run one routine. Returns {"name", "skipped", "summary"}.
    A non-repeatable routine that already has a checkpoint is skipped unless `force`.
    """
    m = get_migration(name)
    params = dict(params or {})
    missing = [p for p in m.required_params if params.get(p) in (None, "")]
    if missing:
        raise BadRequestError(f"{name} needs parameters: {', '.join(missing)}")

    checkpoint = db.query(AppliedMigration).filter(AppliedMigration.name == name).first()
    if checkpoint and not m.repeatable and not force:
        logger.info("Data migration %s already applied at %s; skipping", name, checkpoint.applied_at)
        return {"name": name, "skipped": True, "summary": {"modified": 0}}

    try:
        summary = m.fn(db, params) or {}
        stored = {k: v for k, v in summary.items() if k not in m.private_keys}
        if checkpoint is None:
            db.add(AppliedMigration(name=name, applied_at=utcnow(), run_count=1, summary=stored))
        else:
            checkpoint.applied_at = utcnow()
            checkpoint.run_count = (checkpoint.run_count or 0) + 1
            checkpoint.summary = stored
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Data migration %s failed; nothing was committed", name)
        raise

    logger.info("Data migration %s done: %s", name, {k: v for k, v in summary.items() if k not in m.private_keys})
    return {"name": name, "skipped": False, "summary": summary}

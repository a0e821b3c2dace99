# modules/maintenance/routes.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from database.connection import get_db
from modules.maintenance import services
from modules.security.deps import require_perm

api_router = APIRouter(dependencies=[Depends(require_perm("maintenance.run"))])


class MigrationInfo(BaseModel):
    name: str
    description: str
    repeatable: bool
    required_params: List[str] = []
    applied_at: Optional[datetime] = None
    run_count: int = 0
    last_summary: Optional[Dict[str, Any]] = None


class MigrationRun(BaseModel):
    params: Dict[str, Any] = Field(default_factory=dict)
    force: bool = False


class MigrationResult(BaseModel):
    name: str
    skipped: bool
    summary: Dict[str, Any]


@api_router.get("/migrations", response_model=List[MigrationInfo])
def read_migrations_route(db: Session = Depends(get_db)):
    return services.list_migrations(db)


@api_router.post("/migrations/{name}", response_model=MigrationResult)
def run_migration_route(name: str, payload: Optional[MigrationRun] = None, db: Session = Depends(get_db)):
    payload = payload or MigrationRun()
    return services.run_migration(db, name, payload.params, force=payload.force)

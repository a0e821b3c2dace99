# modules/audit/routes.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from database.connection import get_db
from modules.audit import services
from modules.security.deps import require_perm

api_router = APIRouter()


class AuditLogInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    details: Optional[dict[str, Any]] = None
    created_at: datetime


@api_router.get("/", response_model=List[AuditLogInDB], dependencies=[Depends(require_perm("users.manage"))])
def read_activity_route(
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    user_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return services.list_activity(db, entity_type=entity_type, entity_id=entity_id, user_id=user_id, skip=skip, limit=limit)

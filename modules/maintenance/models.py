# modules/maintenance/models.py
from sqlalchemy import JSON, Column, DateTime, Integer, String

from database.base import Base, utcnow


class AppliedMigration(Base):
    """Checkpoint row written in the same transaction as the data change it records."""
    __tablename__ = "applied_migrations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), unique=True, nullable=False, index=True)
    applied_at = Column(DateTime, nullable=False, default=utcnow)
    run_count = Column(Integer, nullable=False, default=1)
    summary = Column(JSON, nullable=True)

# database/connection.py
import logging
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import Session, sessionmaker

from config.settings import settings
from database.base import Base

logger = logging.getLogger(__name__)


def make_engine(url: str, **kwargs):
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, **kwargs)


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# ---------- small helpers ----------
def _cols(insp, table: str) -> set[str]:
    """return set of column names for a table"""
    return {c["name"] for c in insp.get_columns(table)}


def ensure_column(conn, table: str, column: str, ddl: str) -> bool:
    """ALTER TABLE ... ADD COLUMN ... if not exists"""
    insp = inspect(conn)
    if table not in insp.get_table_names():
        return False
    if column in _cols(insp, table):
        return False
    conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"))
    logger.info("Added column %s.%s", table, column)
    return True


# ---------- lightweight migrations ----------
# columns added after the first deployments; create_all() does not alter existing tables
_LATE_COLUMNS = [
    ("users", "employee_id", "VARCHAR(64)"),
    ("users", "account_name", "VARCHAR(200)"),
    ("users", "account_number", "VARCHAR(32)"),
    ("users", "bank_name", "VARCHAR(120)"),
    ("users", "monthly_salary", "FLOAT DEFAULT 0"),
    ("salaries", "rejection_reason", "TEXT"),
    ("supervisors", "general_supervisor_id", "INTEGER"),
]


def ensure_late_columns(bind) -> None:
    with bind.begin() as conn:
        for table, column, ddl in _LATE_COLUMNS:
            ensure_column(conn, table, column, ddl)


# ---------- session ----------
def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(factory=None) -> Iterator[Session]:
    """Session for scripts: commit on success, rollback on error."""
    db = (factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# ---------- bootstrap ----------
def import_models() -> None:
    # models must be imported before create_all
    from modules.users       import models as _u_models    # noqa: F401
    from modules.audit       import models as _a_models    # noqa: F401
    from modules.staff       import models as _s_models    # noqa: F401
    from modules.locations   import models as _l_models    # noqa: F401
    from modules.payroll     import models as _p_models    # noqa: F401
    from modules.incidents   import models as _i_models    # noqa: F401
    from modules.messaging   import models as _m_models    # noqa: F401
    from modules.maintenance import models as _mt_models   # noqa: F401


def create_all_tables(bind=None) -> None:
    bind = bind or engine
    import_models()
    Base.metadata.create_all(bind=bind)
    ensure_late_columns(bind)

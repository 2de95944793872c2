"""Database engine setup for SQLite with WAL mode.

SQLAlchemy Core (not ORM) is used because cmsctl is a short-lived CLI
process; snapshots are rebuilt into domain objects by the repositories.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, insert, select
from sqlalchemy.engine import Engine

from cmsctl.infrastructure.database.schema import actor_roles, metadata, roles

# Seeded administrator identity, assigned to the Admin role on init.
ADMIN_ACTOR_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


def create_db_engine(db_path: Path | None) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled.

    ``None`` gives a private in-memory database.
    """
    if db_path is None:
        engine = create_engine("sqlite://", echo=False)
    else:
        engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        if db_path is not None:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(db_path: Path | None, *, admin_role: str = "Admin") -> Engine:
    """Create the tables and seed the administrator role.

    Idempotent — safe to call on an existing store.
    """
    if db_path is not None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    _seed_admin(engine, admin_role)
    return engine


def _seed_admin(engine: Engine, admin_role: str) -> None:
    with engine.begin() as conn:
        role_id = conn.execute(select(roles.c.id).where(roles.c.name == admin_role)).scalar()
        if role_id is None:
            role_id = str(uuid.uuid4())
            conn.execute(insert(roles).values(id=role_id, name=admin_role))
        assigned = conn.execute(
            select(actor_roles.c.actor_id).where(
                actor_roles.c.actor_id == str(ADMIN_ACTOR_ID),
                actor_roles.c.role_id == role_id,
            )
        ).first()
        if assigned is None:
            conn.execute(insert(actor_roles).values(actor_id=str(ADMIN_ACTOR_ID), role_id=role_id))

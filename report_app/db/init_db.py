"""
Create every table of the report schema that does not exist yet.

Run once against a fresh database (and again after adding models):
  python -m report_app.db.init_db
"""
import asyncio
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

import report_app.auth.models  # noqa: F401  (registers users on Base.metadata)
import report_app.core.models  # noqa: F401
from report_app.db.session import Base, engine


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """create_all is idempotent; returns the tables that were missing before it ran."""
    async with db_engine.begin() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
        missing = [name for name in Base.metadata.tables if name not in existing]
        await conn.run_sync(Base.metadata.create_all)
    return missing


async def main() -> None:
    missing = await ensure_tables(engine)
    if missing:
        print("Created missing tables: " + ", ".join(missing))
    else:
        print("All tables already exist in the database.")


if __name__ == "__main__":
    asyncio.run(main())

"""One-time database initialization script.

Creates every table of the ORM models. Existing tables are left untouched.
Run via: python scripts/init_db.py
"""

import asyncio

from curriculopro.core.database import engine
from curriculopro.models.orm import Base


async def init() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print(f"Created {len(Base.metadata.tables)} tables: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    asyncio.run(init())

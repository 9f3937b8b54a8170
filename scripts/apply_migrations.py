from __future__ import annotations

import asyncio
import pathlib
import sys

import asyncpg

ROOT = pathlib.Path(__file__).resolve().parent.parent
sys.path.append(str(ROOT / "backend"))

from media_platform.settings import settings  # noqa: E402

MIGRATIONS_DIR = ROOT / "backend" / "migrations"


async def connect(retries: int = 30, delay: float = 2.0) -> asyncpg.Connection:
    for attempt in range(retries):
        try:
            return await asyncpg.connect(
                dsn=settings.postgres_url,
                ssl="require" if settings.postgres_ssl else "disable",
            )
        except (OSError, asyncpg.CannotConnectNowError):
            print(f"Database starting up... waiting {delay}s ({attempt + 1}/{retries})")
            await asyncio.sleep(delay)
    raise SystemExit("Could not connect to database after multiple retries")


async def main() -> None:
    paths = sorted(MIGRATIONS_DIR.glob("*.sql"))
    if not paths:
        raise SystemExit("no migration files found")

    conn = await connect()
    try:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version TEXT PRIMARY KEY,
                applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
            """
        )
        applied = {row["version"] for row in await conn.fetch("SELECT version FROM schema_migrations")}
        for path in paths:
            version = path.name.split("_", 1)[0]
            if version in applied:
                continue
            async with conn.transaction():
                await conn.execute(path.read_text())
                await conn.execute(
                    """
                    INSERT INTO schema_migrations (version)
                    VALUES ($1)
                    ON CONFLICT (version) DO UPDATE SET applied_at = NOW()
                    """,
                    version,
                )
            print(f"Applied {path.name}")
    finally:
        await conn.close()


if __name__ == "__main__":
    asyncio.run(main())

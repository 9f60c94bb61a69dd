"""Seed the database with the default escalation templates.

Usage:
    python scripts/run_seed.py                      # seed bundled templates
    python scripts/run_seed.py --file my.yaml       # seed from another file
    python scripts/run_seed.py --reset              # drop and recreate tables first
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.database import async_session, init_db, engine, Base
from src.seed import SEED_PATH, seed_templates


async def main(path: Path, reset: bool = False) -> None:
    if reset:
        print("Dropping all tables...")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    print("Initializing database...")
    await init_db()

    async with async_session() as db:
        added = await seed_templates(db, path)

    if added:
        print(f"Seeded {added} templates from {path}.")
    else:
        print("Templates already present, nothing to do.")
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed escalation templates")
    parser.add_argument("--file", type=Path, default=SEED_PATH, help="YAML file of templates")
    parser.add_argument(
        "--reset", action="store_true", help="Drop and recreate tables before seeding"
    )
    args = parser.parse_args()
    asyncio.run(main(args.file, reset=args.reset))

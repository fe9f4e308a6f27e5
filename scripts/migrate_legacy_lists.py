from __future__ import annotations

"""
One-off migration: rewrite the list columns of every convention
(province, partners, attachments, delegated_project_owner) into
canonical JSON arrays.

Use this on a database that was created by the application itself
(tables from create_all) but filled by an older client that wrote
JSON-encoded strings, comma separated strings or bare values. Databases
managed with Alembic get the same rewrite from revision 0002.

Rerunning is safe: rows that are already canonical are not touched.
"""

import asyncio
import logging
import sys
from pathlib import Path

# --- make sure the backend package is importable ---
BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from convention_registry.config import get_settings
from convention_registry.database import build_engine
from convention_registry.legacy import normalize_legacy_rows

logger = logging.getLogger("migrate_legacy_lists")


async def migrate() -> int:
    settings = get_settings()
    engine = build_engine(settings)
    try:
        async with engine.begin() as conn:
            changed = await conn.run_sync(normalize_legacy_rows, True)
    finally:
        await engine.dispose()
    return changed


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    count = asyncio.run(migrate())
    logger.info("Done: %d conventions rewritten", count)

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

ALEMBIC_SCRIPT_LOCATION = Path(__file__).resolve().parents[3] / "alembic"  # .../starosca_indexer/alembic


def alembic_config() -> Config:
    """Alembic config pointing at the bundled migrations (no alembic.ini needed)."""
    cfg = Config()
    cfg.set_main_option("script_location", str(ALEMBIC_SCRIPT_LOCATION))
    return cfg


def _upgrade_to_head(connection: Connection) -> str | None:
    cfg = alembic_config()
    cfg.attributes["connection"] = connection

    tables = set(inspect(connection).get_table_names())
    if "pools" in tables and "alembic_version" not in tables:
        # Created by an unversioned init; the layout matches the first revision.
        logger.warning("Unversioned store found; stamping it at the initial revision")
        command.stamp(cfg, "2026_10_19_120000")

    command.upgrade(cfg, "head")
    return MigrationContext.configure(connection).get_current_revision()


async def init_store(engine: AsyncEngine) -> None:
    """
    Open/migrate the store: run the Alembic migrations up to head.

    Safe to run on every startup; an up-to-date store is left untouched and
    the cursor row is seeded by the initial revision only.
    """
    async with engine.begin() as conn:
        revision = await conn.run_sync(_upgrade_to_head)

    logger.info(
        "Store initialized: url=%s, revision=%s",
        engine.url.render_as_string(hide_password=True),
        revision,
    )

# src/dob_auth/scripts/migrate.py
from __future__ import annotations

import os

from alembic import command
from alembic.config import Config

from dob_auth.core.settings import settings

MIGRATIONS_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")


def run_upgrade_head() -> None:
    cfg = Config()
    cfg.set_main_option("script_location", os.path.abspath(MIGRATIONS_DIR))
    # Alembic needs a sync driver URL
    cfg.set_main_option("sqlalchemy.url", settings.database_url.replace("+psycopg_async", "+psycopg"))
    command.upgrade(cfg, "head")


if __name__ == "__main__":
    run_upgrade_head()

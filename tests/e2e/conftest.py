import os
from pathlib import Path
from typing import Iterator

import pytest
from alembic.config import Config
from alembic import command


@pytest.fixture(scope="session")
def db_url() -> Iterator[str]:
    """Start a Postgres container, run migrations, and return the DB URL."""
    # Only needed when e2e tests are selected.
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer("postgres:16") as pg:
        raw_url = pg.get_connection_url()
        # Normalize to psycopg3-compatible URL if needed
        url = raw_url.replace("postgresql+psycopg2://", "postgresql://")
        original_url = os.environ.get("DATABASE_URL")
        os.environ["DATABASE_URL"] = url

        repo_dir = Path(__file__).resolve().parents[2]
        alembic_cfg = Config(str(repo_dir / "alembic.ini"))
        command.upgrade(alembic_cfg, "head")

        try:
            yield url
        finally:
            if original_url is not None:
                os.environ["DATABASE_URL"] = original_url

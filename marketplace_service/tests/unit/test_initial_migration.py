"""
Unit tests for the initial alembic revision against the ORM models.
"""

import importlib.util
from pathlib import Path

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from marketplace_service.app import models  # noqa: F401
from marketplace_service.app.models.base import MarketplaceBase

MIGRATION = (
    Path(__file__).resolve().parents[2]
    / "database"
    / "alembic"
    / "versions"
    / "001_initial_migration.py"
)


@pytest.fixture
def migration():
    module_spec = importlib.util.spec_from_file_location("initial_migration", MIGRATION)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture
def connection():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        yield conn
    engine.dispose()


def run(connection, step) -> None:
    with Operations.context(MigrationContext.configure(connection)):
        step()


class TestInitialMigration:
    def test_revision_is_the_root(self, migration):
        assert migration.revision == "001_initial"
        assert migration.down_revision is None

    def test_upgrade_creates_every_model_table(self, migration, connection):
        run(connection, migration.upgrade)

        inspector = inspect(connection)
        assert set(inspector.get_table_names()) == set(MarketplaceBase.metadata.tables)

        for name, table in MarketplaceBase.metadata.tables.items():
            created = {column["name"] for column in inspector.get_columns(name)}
            assert created == set(table.columns.keys()), name

    def test_upgrade_matches_model_indexes(self, migration, connection):
        run(connection, migration.upgrade)

        inspector = inspect(connection)
        for name, table in MarketplaceBase.metadata.tables.items():
            created = {index["name"] for index in inspector.get_indexes(name)}
            expected = {index.name for index in table.indexes}
            assert expected <= created, name

    def test_downgrade_drops_everything(self, migration, connection):
        run(connection, migration.upgrade)
        run(connection, migration.downgrade)

        assert inspect(connection).get_table_names() == []

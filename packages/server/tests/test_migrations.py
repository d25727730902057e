"""
Migration tests: the revision chain has one head and the initial schema
builds the same tables, columns and indexes as the SQLModel models.
"""

from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.config import Config
from alembic.migration import MigrationContext
from alembic.operations import Operations
from alembic.script import ScriptDirectory
from sqlmodel import SQLModel

import sideline.models  # noqa: F401  registers tables on the metadata

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


@pytest.fixture
def script() -> ScriptDirectory:
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    return ScriptDirectory.from_config(config)


def test_single_head(script):
    assert script.get_heads() == ["0001_initial_schema"]


def test_initial_schema_matches_models(script):
    migration = script.get_revision("0001_initial_schema").module
    engine = sa.create_engine("sqlite://")
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            migration.upgrade()
        inspector = sa.inspect(conn)

        assert set(inspector.get_table_names()) == set(SQLModel.metadata.tables)
        for name, table in SQLModel.metadata.tables.items():
            columns = {c["name"] for c in inspector.get_columns(name)}
            assert columns == set(table.columns.keys()), name
            indexes = {i["name"] for i in inspector.get_indexes(name)}
            assert indexes == {i.name for i in table.indexes}, name


def test_downgrade_drops_everything(script):
    migration = script.get_revision("0001_initial_schema").module
    engine = sa.create_engine("sqlite://")
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            migration.upgrade()
            migration.downgrade()
        assert sa.inspect(conn).get_table_names() == []

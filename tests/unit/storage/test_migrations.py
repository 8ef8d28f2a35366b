"""
The initial migration builds the same schema as the ORM models.
"""

import importlib.util
from pathlib import Path

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

import gallery.storage
from gallery.storage.models import Base

VERSIONS_DIR = Path(gallery.storage.__file__).parent / "alembic" / "versions"


def _load_revision(filename):
    spec = importlib.util.spec_from_file_location(filename[:-3], VERSIONS_DIR / filename)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def initial_schema():
    return _load_revision("4b1f6c2d9e07_initial_schema.py")


def _migrate(engine, step):
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            step()


def test_initial_schema_creates_every_model_table(initial_schema):
    assert initial_schema.down_revision is None
    engine = create_engine("sqlite://")

    _migrate(engine, initial_schema.upgrade)

    inspector = inspect(engine)
    assert set(inspector.get_table_names()) == set(Base.metadata.tables)
    for name, table in Base.metadata.tables.items():
        assert {c["name"] for c in inspector.get_columns(name)} == set(table.columns.keys())


def test_initial_schema_allows_one_job_per_theme(initial_schema):
    engine = create_engine("sqlite://")

    _migrate(engine, initial_schema.upgrade)

    indexes = {ix["name"]: ix for ix in inspect(engine).get_indexes("theme_job_queue")}
    assert indexes["ix_theme_job_queue_theme_id"]["unique"]
    assert indexes["ix_theme_job_queue_theme_id"]["column_names"] == ["theme_id"]


def test_downgrade_drops_everything(initial_schema):
    engine = create_engine("sqlite://")

    _migrate(engine, initial_schema.upgrade)
    _migrate(engine, initial_schema.downgrade)

    assert inspect(engine).get_table_names() == []

from __future__ import annotations

from importlib import util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from tasktrack.infra.db import Base

VERSIONS_DIR = Path(__file__).resolve().parents[1] / "migrations" / "versions"


def _load(path: Path):
    spec = util.spec_from_file_location(f"migration_{path.stem}", path)
    module = util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _chain() -> list:
    modules = [_load(path) for path in sorted(VERSIONS_DIR.glob("*.py"))]
    by_parent = {module.down_revision: module for module in modules}
    ordered = []
    current = None
    while current in by_parent:
        module = by_parent[current]
        ordered.append(module)
        current = module.revision
    assert len(ordered) == len(modules), "revisions do not form a single linear chain"
    return ordered


def test_revisions_form_linear_chain() -> None:
    chain = _chain()

    assert chain[0].down_revision is None
    assert [module.revision for module in chain] == sorted(module.revision for module in chain)


def test_upgrade_matches_models(tmp_path: Path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'migrated.sqlite3'}")
    with engine.begin() as connection:
        context = MigrationContext.configure(connection)
        with Operations.context(context):
            for module in _chain():
                module.upgrade()

    inspector = inspect(engine)
    assert set(inspector.get_table_names()) == set(Base.metadata.tables)
    for table in Base.metadata.tables.values():
        migrated = {column["name"] for column in inspector.get_columns(table.name)}
        assert migrated == {column.name for column in table.columns}, table.name
    engine.dispose()

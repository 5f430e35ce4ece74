import os
import tempfile
from pathlib import Path
import pytest

# Point the app at a throwaway SQLite file before `webquiz` is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="webquiz-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ.pop("ADMIN_EMAIL", None)


@pytest.fixture(autouse=True)
def reset_db():
    """Give every test empty tables."""
    from sqlmodel import SQLModel
    from webquiz import models  # noqa: F401
    from webquiz.database import engine, create_db_and_tables
    SQLModel.metadata.drop_all(engine)
    create_db_and_tables()
    yield

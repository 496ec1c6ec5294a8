import os
import tempfile
from pathlib import Path

import pytest

# keep the import-time init_db() of forum.app away from the home directory
os.environ.setdefault("FORUM_DB_PATH", str(Path(tempfile.mkdtemp(prefix="forum_test_")) / "import.db"))

from forum.db import init_db, reset_engine
from forum.services import create_category, create_user


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setenv("FORUM_DB_PATH", str(tmp_path / "forum.sqlite"))
    reset_engine()
    init_db()
    yield
    reset_engine()


@pytest.fixture
def alice(db):
    return create_user("alice")


@pytest.fixture
def bob(db):
    return create_user("bob")


@pytest.fixture
def moderator(db):
    return create_user("mod", is_moderator=True)


@pytest.fixture
def category(db):
    return create_category("general")

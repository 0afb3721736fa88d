from datetime import datetime, timezone

import pytest

from tech_flashcards.db import init_db


@pytest.fixture
def tmp_db(tmp_path):
    """Provide an initialized temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_flashcards.db")
    init_db(db_path)
    return db_path


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

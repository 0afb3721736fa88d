"""Tests for database initialization and connection management."""
from tech_flashcards.db import init_db, get_connection


def test_init_db_creates_tables(tmp_db):
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    assert {"flashcards", "flashcard_results"}.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_init_db_creates_parent_dir(tmp_path):
    db_path = str(tmp_path / "nested" / "dir" / "cards.db")
    init_db(db_path)
    assert (tmp_path / "nested" / "dir" / "cards.db").exists()


def test_get_connection_returns_row_factory(tmp_db):
    conn = get_connection(tmp_db)
    conn.execute(
        "INSERT INTO flashcards (user_id, front, back, next_review_date) VALUES ('u1', 'Q?', 'A', '2026-01-01T00:00:00+00:00')"
    )
    row = conn.execute("SELECT user_id, ease_factor, interval_days FROM flashcards").fetchone()
    assert row["user_id"] == "u1"
    assert row["ease_factor"] == 2.5
    assert row["interval_days"] == 0
    conn.close()

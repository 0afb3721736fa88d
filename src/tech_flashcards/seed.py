"""Seed a learner's card store with the bundled automotive flashcards."""
import json
from pathlib import Path

from tech_flashcards.db import get_connection
from tech_flashcards.flashcards import create_card

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str, user_id: str) -> bool:
    """Check whether the learner already has any flashcards."""
    conn = get_connection(db_path)
    count = conn.execute(
        "SELECT COUNT(*) FROM flashcards WHERE user_id = ?", (user_id,)
    ).fetchone()[0]
    conn.close()
    return count > 0


def seed_flashcards(db_path: str, user_id: str) -> int:
    """Insert flashcards from flashcards.json. Returns the number inserted."""
    data = json.loads((CONTENT_DIR / "flashcards.json").read_text(encoding="utf-8"))
    for card in data["flashcards"]:
        create_card(db_path, user_id, card["front"], card["back"], card["deck"], source="seeded")
    return len(data["flashcards"])


def seed_all(db_path: str, user_id: str) -> int:
    if is_seeded(db_path, user_id):
        return 0
    return seed_flashcards(db_path, user_id)

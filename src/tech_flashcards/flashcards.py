"""SQLite card store: loading, saving and deck maintenance."""
import logging
from datetime import datetime, timezone
from typing import Optional

from tech_flashcards.config import MAX_DECK_NAME, MIN_CARD_TEXT, SESSION_DECK_ALL
from tech_flashcards.db import get_connection
from tech_flashcards.models import (
    DEFAULT_EASE, CardNotFoundError, CardState, utcnow,
)

logger = logging.getLogger(__name__)

SCHEDULING_COLUMNS = ("ease_factor", "interval_days", "repetitions", "next_review_date")


def to_iso(value: datetime) -> str:
    """Serialize a timestamp as second-precision UTC ISO text, so stored values sort as strings."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def row_to_card(row) -> CardState:
    return CardState(
        id=row["id"],
        front=row["front"],
        back=row["back"],
        deck_name=row["deck_name"],
        ease_factor=row["ease_factor"],
        interval_days=row["interval_days"],
        repetitions=row["repetitions"],
        next_review_date=from_iso(row["next_review_date"]),
    )


def _deck_clause(deck: Optional[str]) -> tuple[str, tuple]:
    if deck is None or deck == SESSION_DECK_ALL:
        return "", ()
    return " AND deck_name = ?", (deck,)


def load_cards(db_path: str, user_id: str, deck: Optional[str] = None) -> list[CardState]:
    clause, params = _deck_clause(deck)
    conn = get_connection(db_path)
    rows = conn.execute(
        f"SELECT * FROM flashcards WHERE user_id = ?{clause} ORDER BY created_at DESC, id DESC",
        (user_id, *params),
    ).fetchall()
    conn.close()
    return [row_to_card(r) for r in rows]


def get_card(db_path: str, card_id: int) -> CardState:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,)).fetchone()
    conn.close()
    if row is None:
        raise CardNotFoundError(f"No flashcard with id {card_id}")
    return row_to_card(row)


def save_card(db_path: str, card_id: int, fields: dict) -> None:
    """Write the scheduler fields of one card and log the review."""
    values = {k: fields[k] for k in SCHEDULING_COLUMNS if k in fields}
    if "next_review_date" in values:
        values["next_review_date"] = to_iso(values["next_review_date"])
    if not values:
        raise ValueError("No scheduling fields to save")
    assignments = ", ".join(f"{column} = ?" for column in values)
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            f"UPDATE flashcards SET {assignments} WHERE id = ?",
            (*values.values(), card_id),
        )
        if cursor.rowcount == 0:
            raise CardNotFoundError(f"No flashcard with id {card_id}")
        if len(values) == len(SCHEDULING_COLUMNS):
            conn.execute(
                """INSERT INTO flashcard_results
                (flashcard_id, ease_factor, interval_days, repetitions, reviewed_at)
                VALUES (?, ?, ?, ?, ?)""",
                (card_id, values["ease_factor"], values["interval_days"],
                 values["repetitions"], to_iso(utcnow())),
            )
        conn.commit()
    finally:
        conn.close()


def create_card(
    db_path: str,
    user_id: str,
    front: str,
    back: str,
    deck: str,
    source: str = "user",
    now: Optional[datetime] = None,
) -> CardState:
    """Insert a new, immediately due card after validating its text."""
    front = (front or "").strip()
    back = (back or "").strip()
    deck = (deck or "").strip()[:MAX_DECK_NAME]
    if not front or not back or not deck:
        raise ValueError("Front, back and deck are all required.")
    if len(front) < MIN_CARD_TEXT or len(back) < MIN_CARD_TEXT:
        raise ValueError(f"Question and answer must be at least {MIN_CARD_TEXT} characters.")
    now = to_iso(now or utcnow())
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO flashcards
        (user_id, deck_name, front, back, source, ease_factor, interval_days, repetitions,
         next_review_date, created_at)
        VALUES (?, ?, ?, ?, ?, ?, 0, 0, ?, ?)""",
        (user_id, deck, front, back, source, DEFAULT_EASE, now, now),
    )
    conn.commit()
    card_id = cursor.lastrowid
    conn.close()
    return get_card(db_path, card_id)


def list_decks(db_path: str, user_id: str) -> list[str]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT DISTINCT deck_name FROM flashcards
        WHERE user_id = ? AND deck_name != ''
        ORDER BY deck_name""",
        (user_id,),
    ).fetchall()
    conn.close()
    return [r["deck_name"] for r in rows]


def count_due(
    db_path: str, user_id: str, deck: Optional[str] = None, now: Optional[datetime] = None,
) -> int:
    clause, params = _deck_clause(deck)
    conn = get_connection(db_path)
    count = conn.execute(
        f"SELECT COUNT(*) FROM flashcards WHERE user_id = ? AND next_review_date <= ?{clause}",
        (user_id, to_iso(now or utcnow()), *params),
    ).fetchone()[0]
    conn.close()
    return count


def reset_deck(
    db_path: str, user_id: str, deck: Optional[str] = None, now: Optional[datetime] = None,
) -> int:
    """Restore default scheduling for every card in the deck. Returns the number of cards reset."""
    clause, params = _deck_clause(deck)
    conn = get_connection(db_path)
    cursor = conn.execute(
        f"""UPDATE flashcards
        SET ease_factor = ?, interval_days = 0, repetitions = 0, next_review_date = ?
        WHERE user_id = ?{clause}""",
        (DEFAULT_EASE, to_iso(now or utcnow()), user_id, *params),
    )
    conn.commit()
    conn.close()
    logger.info("Reset %d cards in deck %s", cursor.rowcount, deck or SESSION_DECK_ALL)
    return cursor.rowcount


def get_deck_summary(db_path: str, user_id: str, now: Optional[datetime] = None) -> list[dict]:
    """Per-deck totals: cards, due now, in learning, graduated."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT deck_name,
            COUNT(*) as total,
            SUM(CASE WHEN next_review_date <= ? THEN 1 ELSE 0 END) as due,
            SUM(CASE WHEN interval_days = 0 THEN 1 ELSE 0 END) as learning,
            SUM(CASE WHEN interval_days >= 1 THEN 1 ELSE 0 END) as graduated
        FROM flashcards
        WHERE user_id = ?
        GROUP BY deck_name
        ORDER BY deck_name""",
        (to_iso(now or utcnow()), user_id),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_review_count(db_path: str, card_id: Optional[int] = None) -> int:
    conn = get_connection(db_path)
    if card_id is None:
        count = conn.execute("SELECT COUNT(*) FROM flashcard_results").fetchone()[0]
    else:
        count = conn.execute(
            "SELECT COUNT(*) FROM flashcard_results WHERE flashcard_id = ?", (card_id,)
        ).fetchone()[0]
    conn.close()
    return count


def delete_card(db_path: str, user_id: str, card_id: int) -> None:
    """Delete one of the learner's cards; its review log goes with it."""
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            "DELETE FROM flashcards WHERE id = ? AND user_id = ?", (card_id, user_id)
        )
        if cursor.rowcount == 0:
            raise CardNotFoundError(f"No flashcard with id {card_id}")
        conn.commit()
    finally:
        conn.close()
    logger.info("Deleted card %s", card_id)

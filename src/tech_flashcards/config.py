"""Paths and defaults, overridable through environment variables."""
import os
from pathlib import Path

DEFAULT_DB_PATH = os.environ.get(
    "TECH_FLASHCARDS_DB", str(Path.home() / ".tech_flashcards" / "flashcards.db")
)
DEFAULT_USER_ID = os.environ.get("TECH_FLASHCARDS_USER", "local")
LOG_LEVEL = os.environ.get("TECH_FLASHCARDS_LOG_LEVEL", "WARNING").upper()

SESSION_DECK_ALL = "All"
MAX_DECK_NAME = 100
MIN_CARD_TEXT = 3

"""Data classes for flashcard scheduling state."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional

DEFAULT_EASE = 2.5
MIN_EASE = 1.3


class FlashcardError(Exception):
    """Base class for flashcard errors."""


class InvalidRatingError(FlashcardError, ValueError):
    """Raised when a rating is not one of the four Rating values."""


class SessionCompleteError(FlashcardError):
    """Raised when a finished review session is asked to rate or skip."""


class CardNotFoundError(FlashcardError, LookupError):
    """Raised when the store has no card with the given id."""


class Rating(IntEnum):
    AGAIN = 1  # blackout, back to learning
    HARD = 2
    GOOD = 3
    EASY = 4

    @property
    def key(self) -> str:
        return self.name.lower()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CardState:
    front: str
    back: str
    next_review_date: datetime
    ease_factor: float = DEFAULT_EASE
    interval_days: int = 0
    repetitions: int = 0
    deck_name: str = ""
    id: Optional[int] = field(default=None, compare=False)

    @property
    def is_graduated(self) -> bool:
        return self.interval_days >= 1

    def is_due(self, now: Optional[datetime] = None) -> bool:
        return self.next_review_date <= (now or utcnow())

    def scheduling_fields(self) -> dict:
        """The four fields the scheduler produces, as passed to the store."""
        return {
            "ease_factor": self.ease_factor,
            "interval_days": self.interval_days,
            "repetitions": self.repetitions,
            "next_review_date": self.next_review_date,
        }


def new_card(
    front: str,
    back: str,
    deck_name: str = "",
    now: Optional[datetime] = None,
    card_id: Optional[int] = None,
) -> CardState:
    """Create a never-reviewed card that is due immediately."""
    return CardState(
        id=card_id,
        front=front,
        back=back,
        deck_name=deck_name,
        ease_factor=DEFAULT_EASE,
        interval_days=0,
        repetitions=0,
        next_review_date=now or utcnow(),
    )

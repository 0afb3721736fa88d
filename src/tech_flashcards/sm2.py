"""SM-2 spaced repetition algorithm with a four-button rating scale."""
import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from tech_flashcards.intervals import format_interval, round_half_up
from tech_flashcards.models import (
    MIN_EASE, CardState, InvalidRatingError, Rating, utcnow,
)

logger = logging.getLogger(__name__)

LEARNING_STEP = timedelta(minutes=10)
# 100 years
MAX_INTERVAL_DAYS = 36500


def to_rating(value) -> Rating:
    """Coerce an int or Rating to a Rating, rejecting everything else."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRatingError(f"Rating must be an integer 1-4, got {value!r}")
    try:
        return Rating(value)
    except ValueError:
        raise InvalidRatingError(f"Rating must be an integer 1-4, got {value!r}") from None


def _sanitize(card: CardState) -> tuple[float, int, int]:
    ease = card.ease_factor
    interval = card.interval_days
    reps = card.repetitions
    if not isinstance(ease, (int, float)) or not math.isfinite(ease) or ease < MIN_EASE:
        logger.warning("Card %s has invalid ease_factor %r, clamping to %s", card.id, ease, MIN_EASE)
        ease = MIN_EASE
    if not isinstance(interval, (int, float)) or not math.isfinite(interval) or interval < 0:
        logger.warning("Card %s has invalid interval_days %r, resetting to 0", card.id, interval)
        interval = 0
    if not isinstance(reps, int) or reps < 0:
        logger.warning("Card %s has invalid repetitions %r, resetting to 0", card.id, reps)
        reps = 0
    return float(ease), int(round_half_up(interval)), reps


def calculate_next_review(
    card: CardState,
    rating: int,
    now: Optional[datetime] = None,
) -> CardState:
    """Calculate the card's next review using SM-2.

    Args:
        card: Current card state (not modified)
        rating: Rating 1-4 (1=again, 2=hard, 3=good, 4=easy)
        now: Reference time; defaults to the current UTC time

    Returns:
        A new CardState with updated ease_factor, interval_days,
        repetitions and next_review_date.
    """
    rating = to_rating(rating)
    ease, interval, reps = _sanitize(card)
    new_ease = ease

    if rating is Rating.AGAIN:
        # Failed, back to learning
        new_interval = 0
        new_ease = max(MIN_EASE, ease - 0.2)
        new_reps = 0
    elif rating is Rating.HARD:
        if reps == 0:
            new_interval = 1
        else:
            new_interval = max(1, int(round_half_up(interval * 1.2)))
        new_ease = max(MIN_EASE, ease - 0.15)
        new_reps = reps + 1
    elif rating is Rating.GOOD:
        if reps == 0:
            new_interval = 1
        elif reps == 1:
            new_interval = 6
        else:
            new_interval = int(round_half_up(interval * ease))
        new_reps = reps + 1
    else:
        if reps == 0:
            new_interval = 4
        else:
            new_interval = int(round_half_up(interval * ease * 1.3))
        # No ceiling on ease
        new_ease = ease + 0.15
        new_reps = reps + 1

    if new_interval > MAX_INTERVAL_DAYS:
        logger.warning("Card %s interval %s exceeds %s days, capping", card.id, new_interval, MAX_INTERVAL_DAYS)
        new_interval = MAX_INTERVAL_DAYS

    now = now or utcnow()
    if new_interval == 0:
        next_review = now + LEARNING_STEP
    else:
        next_review = now + timedelta(days=new_interval)

    return replace(
        card,
        ease_factor=round_half_up(new_ease, 2),
        interval_days=new_interval,
        repetitions=new_reps,
        next_review_date=next_review,
    )


def get_interval_previews(card: CardState) -> dict[str, str]:
    """Return the formatted interval each rating would produce, keyed by rating name."""
    return {
        rating.key: format_interval(calculate_next_review(card, rating).interval_days)
        for rating in Rating
    }

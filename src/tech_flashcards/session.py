"""Review session queue: sequences due cards and re-queues failed ones."""
import logging
import random
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, Iterator, Optional

from tech_flashcards.config import SESSION_DECK_ALL
from tech_flashcards.models import CardState, SessionCompleteError, Rating, utcnow
from tech_flashcards.sm2 import calculate_next_review, get_interval_previews, to_rating

logger = logging.getLogger(__name__)

SaveFn = Callable[[int, dict], None]


class StudyQueue:
    """Ordered cards for one study run. The front card is the current one."""

    def __init__(self, cards: Iterable[CardState] = ()):
        self._cards: deque[CardState] = deque(cards)

    @property
    def current(self) -> Optional[CardState]:
        return self._cards[0] if self._cards else None

    def replace_current(self, card: CardState) -> None:
        self._cards[0] = card

    def requeue(self) -> None:
        """Move the current card to the back of the queue."""
        self._cards.rotate(-1)

    def graduate(self) -> CardState:
        """Remove the current card for the rest of the run."""
        return self._cards.popleft()

    def clear(self) -> None:
        self._cards.clear()

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[CardState]:
        return iter(self._cards)


class BackgroundSaver:
    """Runs save calls on a worker thread without blocking the caller.

    Failures are logged and handed to ``on_error``; they are not retried.
    """

    def __init__(self, save: SaveFn, on_error: Callable[[int, Exception], None]):
        self._save = save
        self._on_error = on_error
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="card-save")

    def submit(self, card_id: int, fields: dict) -> Future:
        future = self._executor.submit(self._save, card_id, fields)
        future.add_done_callback(lambda f: self._check(card_id, f))
        return future

    def _check(self, card_id: int, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.warning("Failed to save card %s: %s", card_id, exc)
            self._on_error(card_id, exc)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class ReviewSession:
    """One in-memory study run over a set of due cards.

    Each rating either graduates the current card (interval of a day or
    more) or sends it to the back of the queue. The run is complete when
    the queue is empty.
    """

    def __init__(self, cards: Iterable[CardState], save: Optional[SaveFn] = None):
        self.queue = StudyQueue(cards)
        self.initial_count = len(self.queue)
        self.counts = {rating.key: 0 for rating in Rating}
        self.skipped: list[CardState] = []
        self.updated_cards: dict[int, CardState] = {}
        self.warnings: list[str] = []
        self._saver = BackgroundSaver(save, self._record_save_failure) if save else None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def current(self) -> Optional[CardState]:
        return self.queue.current

    @property
    def remaining(self) -> int:
        return len(self.queue)

    @property
    def is_complete(self) -> bool:
        return len(self.queue) == 0

    @property
    def stats(self) -> dict[str, int]:
        return dict(self.counts)

    @property
    def total_reviewed(self) -> int:
        return sum(self.counts.values())

    def previews(self) -> dict[str, str]:
        return get_interval_previews(self._require_current())

    def rate(self, rating: int, now: Optional[datetime] = None) -> CardState:
        """Apply a rating to the current card and advance the queue."""
        rating = to_rating(rating)
        card = self._require_current()
        updated = calculate_next_review(card, rating, now=now)
        self.counts[rating.key] += 1

        if updated.id is not None:
            self.updated_cards[updated.id] = updated
            if self._saver:
                self._saver.submit(updated.id, updated.scheduling_fields())

        if updated.is_graduated:
            self.queue.graduate()
            logger.debug("Card %s graduated with interval %s", updated.id, updated.interval_days)
        else:
            self.queue.replace_current(updated)
            self.queue.requeue()
            logger.debug("Card %s requeued, %d left", updated.id, len(self.queue))
        return updated

    def skip(self) -> CardState:
        """Drop the current card from this run without rating it."""
        self._require_current()
        card = self.queue.graduate()
        self.skipped.append(card)
        return card

    def abandon(self) -> None:
        self.queue.clear()

    def close(self, wait: bool = True) -> None:
        if self._saver:
            self._saver.shutdown(wait=wait)

    def _require_current(self) -> CardState:
        card = self.queue.current
        if card is None:
            raise SessionCompleteError("Review session is complete")
        return card

    def _record_save_failure(self, card_id: int, exc: Exception) -> None:
        self.warnings.append(f"Could not save card {card_id}: {exc}")


def select_due(
    cards: Iterable[CardState],
    deck: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[CardState]:
    now = now or utcnow()
    return [
        c for c in cards
        if (deck in (None, SESSION_DECK_ALL) or c.deck_name == deck) and c.is_due(now)
    ]


def start_session(
    cards: Iterable[CardState],
    deck: Optional[str] = None,
    now: Optional[datetime] = None,
    save: Optional[SaveFn] = None,
    shuffle: bool = True,
    rng: Optional[random.Random] = None,
) -> Optional[ReviewSession]:
    """Build a session from the due cards in ``deck``, or None if nothing is due."""
    due = select_due(cards, deck, now)
    if not due:
        logger.info("No cards due in deck %s", deck or SESSION_DECK_ALL)
        return None
    if shuffle:
        (rng or random).shuffle(due)
    logger.info("Starting review session with %d cards", len(due))
    return ReviewSession(due, save=save)

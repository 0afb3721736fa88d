# tests/test_sm2.py
from datetime import timedelta

import pytest

from tech_flashcards.intervals import format_interval
from tech_flashcards.models import MIN_EASE, InvalidRatingError, Rating, new_card
from tech_flashcards.sm2 import MAX_INTERVAL_DAYS, calculate_next_review, get_interval_previews


def card_with(now, **fields):
    card = new_card("P0300", "Random misfire", now=now)
    for key, value in fields.items():
        setattr(card, key, value)
    return card


def test_again_resets_learning(now):
    result = calculate_next_review(card_with(now), Rating.AGAIN, now=now)
    assert result.ease_factor == 2.3
    assert result.interval_days == 0
    assert result.repetitions == 0
    assert result.next_review_date == now + timedelta(minutes=10)


def test_again_after_long_streak(now):
    card = card_with(now, interval_days=40, repetitions=5)
    result = calculate_next_review(card, Rating.AGAIN, now=now)
    assert result.interval_days == 0
    assert result.repetitions == 0


def test_hard_new_card(now):
    result = calculate_next_review(card_with(now), Rating.HARD, now=now)
    assert result.ease_factor == 2.35
    assert result.interval_days == 1
    assert result.repetitions == 1
    assert result.next_review_date == now + timedelta(days=1)


def test_hard_reviewed_card_grows_by_1_2(now):
    result = calculate_next_review(card_with(now, interval_days=10, repetitions=2), Rating.HARD, now=now)
    assert result.interval_days == 12


def test_hard_never_below_one_day(now):
    # a corrupted card with reps but no interval still graduates
    result = calculate_next_review(card_with(now, interval_days=0, repetitions=3), Rating.HARD, now=now)
    assert result.interval_days == 1


def test_good_new_card(now):
    result = calculate_next_review(card_with(now), Rating.GOOD, now=now)
    assert result.ease_factor == 2.5
    assert result.interval_days == 1
    assert result.repetitions == 1


def test_good_sequence_graduates_monotonically(now):
    card = card_with(now)
    first = calculate_next_review(card, Rating.GOOD, now=now)
    second = calculate_next_review(first, Rating.GOOD, now=now)
    third = calculate_next_review(second, Rating.GOOD, now=now)
    assert [first.interval_days, second.interval_days, third.interval_days] == [1, 6, 15]
    assert third.repetitions == 3


def test_good_multiplies_by_ease(now):
    result = calculate_next_review(card_with(now, interval_days=6, repetitions=2), Rating.GOOD, now=now)
    assert result.interval_days == 15


def test_easy_new_card(now):
    result = calculate_next_review(card_with(now), Rating.EASY, now=now)
    assert result.ease_factor == 2.65
    assert result.interval_days == 4
    assert result.repetitions == 1
    assert result.next_review_date == now + timedelta(days=4)


def test_easy_rounds_half_up(now):
    """10 * 2.5 * 1.3 = 32.5 rounds to 33, not to even."""
    result = calculate_next_review(card_with(now, interval_days=10, repetitions=2), Rating.EASY, now=now)
    assert result.interval_days == 33


def test_easy_has_no_ease_ceiling(now):
    result = calculate_next_review(card_with(now, ease_factor=4.0), Rating.EASY, now=now)
    assert result.ease_factor == 4.15


def test_ease_clamps_at_minimum(now):
    result = calculate_next_review(card_with(now, ease_factor=1.4), Rating.AGAIN, now=now)
    assert result.ease_factor == MIN_EASE


def test_ease_floor_holds_over_many_failures(now):
    card = card_with(now)
    for rating in [Rating.AGAIN, Rating.HARD] * 10:
        card = calculate_next_review(card, rating, now=now)
        assert card.ease_factor >= MIN_EASE
    assert card.ease_factor == MIN_EASE


def test_input_card_is_not_mutated(now):
    card = card_with(now)
    calculate_next_review(card, Rating.EASY, now=now)
    assert card.interval_days == 0
    assert card.repetitions == 0
    assert card.ease_factor == 2.5


def test_accepts_plain_ints(now):
    result = calculate_next_review(card_with(now), 3, now=now)
    assert result.interval_days == 1


@pytest.mark.parametrize("rating", [0, 5, -1, 2.0, "3", None, True])
def test_invalid_rating_rejected(now, rating):
    with pytest.raises(InvalidRatingError):
        calculate_next_review(card_with(now), rating, now=now)


def test_invalid_rating_is_value_error(now):
    with pytest.raises(ValueError):
        calculate_next_review(card_with(now), 9, now=now)


def test_corrupted_ease_is_clamped(now):
    card = card_with(now, ease_factor=float("nan"), interval_days=6, repetitions=2)
    result = calculate_next_review(card, Rating.GOOD, now=now)
    assert result.ease_factor == MIN_EASE
    assert result.interval_days == 8  # round(6 * 1.3)


def test_negative_interval_is_reset(now):
    card = card_with(now, interval_days=-5, repetitions=-2)
    result = calculate_next_review(card, Rating.GOOD, now=now)
    assert result.interval_days == 1
    assert result.repetitions == 1


def test_infinite_interval_is_reset(now):
    card = card_with(now, interval_days=float("inf"), repetitions=1)
    result = calculate_next_review(card, Rating.HARD, now=now)
    assert result.interval_days == 1


def test_previews_new_card(now):
    previews = get_interval_previews(card_with(now))
    assert previews == {"again": "10 min", "hard": "1 day", "good": "1 day", "easy": "4 days"}


def test_previews_agree_with_scheduler(now):
    cards = [
        card_with(now),
        card_with(now, interval_days=1, repetitions=1),
        card_with(now, interval_days=10, repetitions=2),
        card_with(now, ease_factor=1.3, interval_days=200, repetitions=7),
    ]
    for card in cards:
        previews = get_interval_previews(card)
        for rating in Rating:
            expected = format_interval(calculate_next_review(card, rating).interval_days)
            assert previews[rating.key] == expected


def test_previews_do_not_mutate(now):
    card = card_with(now, interval_days=6, repetitions=2)
    get_interval_previews(card)
    assert card.interval_days == 6
    assert card.next_review_date == now


def test_huge_interval_is_capped(now):
    card = card_with(now, interval_days=1_639_203, repetitions=10)
    previews = get_interval_previews(card)
    assert previews["easy"] == "100 yr"
    result = calculate_next_review(card, Rating.EASY, now=now)
    assert result.interval_days == MAX_INTERVAL_DAYS
    assert result.next_review_date == now + timedelta(days=MAX_INTERVAL_DAYS)


def test_repeated_easy_stays_schedulable(now):
    card = card_with(now)
    for _ in range(15):
        get_interval_previews(card)
        card = calculate_next_review(card, Rating.EASY, now=now)
    assert card.interval_days == MAX_INTERVAL_DAYS


def test_fractional_interval_rounds_half_up(now):
    card = card_with(now, interval_days=2.7, repetitions=2)
    result = calculate_next_review(card, Rating.HARD, now=now)
    assert result.interval_days == 4  # round(3 * 1.2)

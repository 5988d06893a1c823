from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import InvalidArgumentError, NotFoundError
from app.services import srs_service
from app.services.srs_service import (
    MIN_EASE_FACTOR,
    calculate_next_review,
    format_interval,
    get_quality_label,
    reset_card,
    schedule_card,
    validate_quality,
)

NOW = datetime(2024, 1, 1, 10, 0, 0)


def review(state, quality, now=NOW):
    """Feed a (interval, ease_factor, repetitions) tuple through one review."""
    interval, ease_factor, repetitions = state
    result = calculate_next_review(interval, ease_factor, repetitions, quality, now=now)
    return result, (result.interval, result.ease_factor, result.repetitions)


def test_fresh_card_perfect_recall():
    result, _ = review((0, 2.5, 0), 5)

    assert result.interval == 1
    assert result.repetitions == 1
    assert result.ease_factor == pytest.approx(2.6)
    assert result.next_review_at == NOW + timedelta(days=1)


def test_second_success_moves_to_six_days_with_unchanged_ease():
    _, state = review((0, 2.5, 0), 5)
    result, _ = review(state, 4)

    assert result.interval == 6
    assert result.repetitions == 2
    assert result.ease_factor == pytest.approx(2.6)


def test_third_success_grows_interval_by_ease_factor():
    _, state = review((0, 2.5, 0), 5)
    _, state = review(state, 4)
    result, _ = review(state, 5)

    assert result.interval == 16  # round(6 * 2.6)
    assert result.repetitions == 3
    assert result.ease_factor == pytest.approx(2.7)


def test_blackout_resets_card_and_lowers_ease():
    _, state = review((0, 2.5, 0), 5)
    _, state = review(state, 4)
    result, _ = review(state, 0)

    assert result.interval == 0
    assert result.repetitions == 0
    assert result.ease_factor == pytest.approx(1.8)
    assert result.ease_factor < state[1]
    assert result.next_review_at == NOW


@pytest.mark.parametrize("quality", [0, 1, 2])
def test_failed_review_always_resets(quality):
    result, _ = review((16, 2.7, 3), quality)

    assert result.interval == 0
    assert result.repetitions == 0


@pytest.mark.parametrize("quality", [3, 4, 5])
@pytest.mark.parametrize("repetitions, interval", [(0, 0), (1, 1), (2, 6), (7, 40)])
def test_successful_review_increments_repetitions(quality, repetitions, interval):
    result, _ = review((interval, 2.5, repetitions), quality)

    assert result.repetitions == repetitions + 1


def test_ease_factor_never_drops_below_floor():
    state = (0, 2.5, 0)
    for quality in [0, 1, 0, 2, 0, 0, 1, 0, 3, 0]:
        result, state = review(state, quality)
        assert result.ease_factor >= MIN_EASE_FACTOR

    assert state[1] == MIN_EASE_FACTOR


def test_rounding_uses_half_up():
    # 2 * 1.75 = 3.5 rounds up, unlike Python's round-half-even
    result, _ = review((2, 1.75, 2), 4)

    assert result.interval == 4


def test_same_inputs_give_same_outputs():
    first = calculate_next_review(6, 2.6, 2, 4, now=NOW)
    second = calculate_next_review(6, 2.6, 2, 4, now=NOW)

    assert first == second


def test_due_date_counts_from_review_time_not_previous_due_date():
    late = NOW + timedelta(days=10)
    result = calculate_next_review(6, 2.5, 2, 4, now=late)

    assert result.next_review_at == late + timedelta(days=15)


def test_aware_review_time_is_stored_as_naive_utc():
    aware = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    result = calculate_next_review(0, 2.5, 0, 5, now=aware)

    assert result.next_review_at == datetime(2024, 1, 2, 10, 0, 0)
    assert result.next_review_at.tzinfo is None


@pytest.mark.parametrize("quality", [-1, 6, 2.5, True, "3", None])
def test_invalid_quality_is_rejected(quality):
    with pytest.raises(InvalidArgumentError):
        validate_quality(quality)
    with pytest.raises(InvalidArgumentError):
        calculate_next_review(0, 2.5, 0, quality, now=NOW)


@pytest.mark.parametrize(
    "interval, ease_factor, repetitions",
    [(-1, 2.5, 0), (1, 2.5, -1), (1, 1.2, 1), (0, 2.5, 3)],
)
def test_malformed_card_state_is_rejected(interval, ease_factor, repetitions):
    with pytest.raises(InvalidArgumentError):
        calculate_next_review(interval, ease_factor, repetitions, 4, now=NOW)


def test_schedule_card_persists_new_state(repository, make_card):
    card = make_card()
    later = NOW + timedelta(hours=3)

    updated = schedule_card(repository, card.id, 5, now=later)

    stored = repository.get_card(card.id)
    assert stored.interval == 1
    assert stored.repetitions == 1
    assert stored.ease_factor == pytest.approx(2.6)
    assert stored.next_review_at == later + timedelta(days=1)
    assert stored.last_review_time == later
    assert stored.version == 1
    assert updated.id == card.id


def test_schedule_card_runs_a_full_review_sequence(repository, make_card):
    card = make_card()

    schedule_card(repository, card.id, 5, now=NOW)
    schedule_card(repository, card.id, 4, now=NOW + timedelta(days=1))
    updated = schedule_card(repository, card.id, 5, now=NOW + timedelta(days=7))

    assert updated.interval == 16
    assert updated.repetitions == 3
    assert updated.next_review_at == NOW + timedelta(days=7 + 16)


def test_schedule_unknown_card_raises_not_found(repository):
    with pytest.raises(NotFoundError):
        schedule_card(repository, 999, 4, now=NOW)


def test_schedule_with_invalid_quality_leaves_card_untouched(repository, make_card):
    card = make_card()

    with pytest.raises(InvalidArgumentError):
        schedule_card(repository, card.id, 9, now=NOW)

    stored = repository.get_card(card.id)
    assert stored.version == 0
    assert stored.last_review_time is None


def test_reset_card_restores_fresh_state(repository, make_card):
    card = make_card(interval=16, ease_factor=1.9, repetitions=3, next_review_at=NOW + timedelta(days=16))
    later = NOW + timedelta(days=2)

    updated = reset_card(repository, card.id, now=later)

    assert updated.interval == 0
    assert updated.ease_factor == 2.5
    assert updated.repetitions == 0
    assert updated.next_review_at == later
    assert updated.last_review_time == later


def test_reset_unknown_card_raises_not_found(repository):
    with pytest.raises(NotFoundError):
        reset_card(repository, 42)


@pytest.mark.parametrize(
    "days, expected",
    [
        (0, "today"),
        (1, "tomorrow"),
        (6, "in 6 days"),
        (7, "in 1 week"),
        (16, "in 2 weeks"),
        (45, "in 2 months"),
        (400, "in 1 year"),
    ],
)
def test_format_interval(days, expected):
    assert format_interval(days) == expected


def test_quality_labels_cover_every_rating():
    labels = [get_quality_label(q)["label"] for q in range(6)]

    assert labels == ["Again", "Poor", "Hard", "Okay", "Good", "Easy"]
    with pytest.raises(InvalidArgumentError):
        get_quality_label(6)


def test_quality_label_is_a_copy():
    label = get_quality_label(5)
    label["label"] = "changed"

    assert srs_service.get_quality_label(5)["label"] == "Easy"


@pytest.mark.parametrize("correct, quality", [(True, 4), (False, 0)])
def test_quality_from_answer(correct, quality):
    assert srs_service.quality_from_answer(correct) == quality


def test_schedule_card_auto_correct_answer(repository, make_card):
    card = make_card()

    updated = srs_service.schedule_card_auto(repository, card.id, True, now=NOW)

    assert updated.interval == 1
    assert updated.repetitions == 1
    assert updated.ease_factor == pytest.approx(2.5)
    assert updated.next_review_at == NOW + timedelta(days=1)


def test_schedule_card_auto_wrong_answer(repository, make_card):
    card = make_card(interval=6, repetitions=2, ease_factor=2.5)

    updated = srs_service.schedule_card_auto(repository, card.id, False, now=NOW)

    assert updated.interval == 0
    assert updated.repetitions == 0
    assert updated.ease_factor == pytest.approx(1.7)

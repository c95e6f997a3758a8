from dataclasses import replace

import pytest

from choreloop.dates import Weekday
from choreloop.exceptions import NotFoundError
from choreloop.models import Schedule, State, default_state
from choreloop.reducer import add_chore, add_kid, adjust_points
from choreloop.streaks import full_day_run, streak_bonus_for, toggle_completion

DAYS = [f"2024-03-{day:02d}" for day in range(1, 21)]


def _kid_with_daily_chore(points: int = 3) -> State:
    state = add_kid(default_state(), "Ava", kid_id="ava")
    return add_chore(state, "Dishes", points, Schedule.daily(), ["ava"], chore_id="dishes")


def _complete(state: State, days, chore_id: str = "dishes") -> State:
    for day in days:
        state = toggle_completion(state, "ava", chore_id, day)
    return state


def test_completing_a_chore_adds_points_and_record() -> None:
    state = toggle_completion(_kid_with_daily_chore(), "ava", "dishes", "2024-03-01")

    assert state.get_kid("ava").points == 3
    assert [completion.key for completion in state.completions] == [("ava", "dishes", "2024-03-01")]
    assert state.get_chore("dishes").streak_for("ava") == 1


def test_unchecking_removes_record_and_points() -> None:
    state = _complete(_kid_with_daily_chore(), ["2024-03-01", "2024-03-01"])

    assert state.completions == ()
    assert state.get_kid("ava").points == 0
    assert state.get_chore("dishes").streak_for("ava") == 0


def test_ten_full_days_award_one_bonus() -> None:
    state = _complete(_kid_with_daily_chore(), DAYS[:10])

    assert state.get_kid("ava").points == 35
    assert len(state.streak_bonuses) == 1
    bonus = state.streak_bonuses[0]
    assert bonus.streak_length == 10
    assert bonus.date_iso == "2024-03-10"
    assert bonus.points == 5
    assert state.get_chore("dishes").streak_for("ava") == 10


def test_unchecking_milestone_day_revokes_bonus() -> None:
    state = _complete(_kid_with_daily_chore(), DAYS[:10])

    state = toggle_completion(state, "ava", "dishes", "2024-03-10")

    assert state.get_kid("ava").points == 27
    assert state.streak_bonuses == ()
    assert state.get_chore("dishes").streak_for("ava") == 0


def test_double_toggle_restores_points_completions_and_streaks() -> None:
    before = _complete(_kid_with_daily_chore(), DAYS[:10])

    after = toggle_completion(toggle_completion(before, "ava", "dishes", "2024-03-10"), "ava", "dishes", "2024-03-10")

    assert after.get_kid("ava").points == before.get_kid("ava").points == 35
    assert after.completion_keys() == before.completion_keys()
    assert after.get_chore("dishes").streak_by_kid == before.get_chore("dishes").streak_by_kid
    assert [(b.kid_id, b.date_iso, b.streak_length) for b in after.streak_bonuses] == [("ava", "2024-03-10", 10)]


def test_double_toggle_on_open_day_nets_zero() -> None:
    before = _complete(_kid_with_daily_chore(), DAYS[:3])

    after = _complete(before, ["2024-03-07", "2024-03-07"])

    assert after.get_kid("ava").points == before.get_kid("ava").points == 9
    assert after.completion_keys() == before.completion_keys()
    assert after.streak_bonuses == before.streak_bonuses


def test_repeated_toggling_keeps_a_single_bonus() -> None:
    state = _complete(_kid_with_daily_chore(), DAYS[:10])

    for _ in range(5):
        state = _complete(state, ["2024-03-10"])

    # odd number of extra toggles: day 10 is unchecked
    assert state.streak_bonuses == ()
    assert state.get_kid("ava").points == 27

    state = _complete(state, ["2024-03-10"])
    assert len(state.streak_bonuses) == 1
    assert state.get_kid("ava").points == 35


def test_twenty_days_award_two_milestones() -> None:
    state = _complete(_kid_with_daily_chore(), DAYS)

    assert sorted(bonus.streak_length for bonus in state.streak_bonuses) == [10, 20]
    assert state.get_kid("ava").points == 20 * 3 + 2 * 5


def test_breaking_an_earlier_day_does_not_revisit_later_bonus() -> None:
    state = _complete(_kid_with_daily_chore(), DAYS[:10])

    state = toggle_completion(state, "ava", "dishes", "2024-03-05")

    assert streak_bonus_for(state, "ava", "2024-03-10") is not None
    assert state.get_kid("ava").points == 32
    assert full_day_run(state, "ava", "2024-03-10") == 5


def test_every_due_chore_must_be_done_for_a_full_day() -> None:
    state = _kid_with_daily_chore()
    state = add_chore(state, "Feed cat", 2, Schedule.daily(), ["ava"], chore_id="cat")
    for day in DAYS[:9]:
        state = toggle_completion(state, "ava", "dishes", day)
        state = toggle_completion(state, "ava", "cat", day)

    state = toggle_completion(state, "ava", "dishes", "2024-03-10")
    assert state.streak_bonuses == ()
    assert state.get_kid("ava").points == 9 * 5 + 3

    state = toggle_completion(state, "ava", "cat", "2024-03-10")
    assert len(state.streak_bonuses) == 1
    assert state.get_kid("ava").points == 55

    state = toggle_completion(state, "ava", "dishes", "2024-03-10")
    assert state.streak_bonuses == ()
    assert state.get_kid("ava").points == 47


def test_days_without_due_chores_break_the_run() -> None:
    state = add_kid(default_state(), "Ava", kid_id="ava")
    state = add_chore(state, "Trash", 4, Schedule.weekly([Weekday.MONDAY]), ["ava"], chore_id="trash")
    mondays = [
        "2024-01-01", "2024-01-08", "2024-01-15", "2024-01-22", "2024-01-29",
        "2024-02-05", "2024-02-12", "2024-02-19", "2024-02-26", "2024-03-04",
    ]

    state = _complete(state, mondays, chore_id="trash")

    assert state.streak_bonuses == ()
    assert state.get_kid("ava").points == 40
    assert full_day_run(state, "ava", "2024-03-04") == 1


def test_chore_streak_counts_consecutive_days() -> None:
    state = _complete(_kid_with_daily_chore(), ["2024-03-01", "2024-03-03"])
    assert state.get_chore("dishes").streak_for("ava") == 1

    state = _complete(state, ["2024-03-02"])
    assert state.get_chore("dishes").streak_for("ava") == 2


def test_unchecking_clamps_balance_at_zero() -> None:
    state = _complete(_kid_with_daily_chore(), ["2024-03-01"])
    state = adjust_points(state, "ava", -10, "Broke a window")
    assert state.get_kid("ava").points == 0

    state = _complete(state, ["2024-03-01"])
    assert state.get_kid("ava").points == 0


def test_revoking_bonus_clamps_balance_at_zero() -> None:
    state = _complete(_kid_with_daily_chore(), DAYS[:10])
    state = adjust_points(state, "ava", -34)
    assert state.get_kid("ava").points == 1

    state = _complete(state, ["2024-03-10"])
    assert state.get_kid("ava").points == 0
    assert state.streak_bonuses == ()


def test_unknown_chore_or_kid_raises_and_leaves_state() -> None:
    state = _kid_with_daily_chore()
    snapshot = replace(state)

    with pytest.raises(NotFoundError):
        toggle_completion(state, "ava", "missing", "2024-03-01")
    with pytest.raises(NotFoundError):
        toggle_completion(state, "ghost", "dishes", "2024-03-01")

    assert state == snapshot
    assert state.completions == ()


def test_toggle_never_mutates_its_input() -> None:
    state = _complete(_kid_with_daily_chore(), DAYS[:9])
    kids, chores, bonuses = state.kids, state.chores, state.streak_bonuses

    toggle_completion(state, "ava", "dishes", "2024-03-10")

    assert state.kids is kids and state.chores is chores and state.streak_bonuses is bonuses
    assert state.get_kid("ava").points == 27
    assert state.get_chore("dishes").streak_for("ava") == 9

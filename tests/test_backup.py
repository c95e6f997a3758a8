from datetime import date

import pytest

from choreloop.backup import backup_filename, export_backup, import_backup, parse_backup
from choreloop.exceptions import BackupImportError, ConfirmationRequiredError
from choreloop.models import Schedule, default_state
from choreloop.reducer import add_chore, add_kid, adjust_points
from choreloop.streaks import toggle_completion


def _state():
    state = add_kid(default_state(), "Ava", kid_id="ava")
    state = add_chore(state, "Dishes", 3, Schedule.daily(), ["ava"], chore_id="dishes")
    state = toggle_completion(state, "ava", "dishes", "2024-03-01")
    return adjust_points(state, "ava", 2, "Kind words")


def test_export_is_pretty_printed_json() -> None:
    payload = export_backup(_state())

    assert payload.startswith(b"{\n  ")
    assert b'"dollarsPerPoint": 0.1' in payload
    assert b'"streakBonuses": []' in payload


def test_backup_round_trip_preserves_state() -> None:
    state = _state()

    assert import_backup(export_backup(state), confirmed=True) == state
    assert parse_backup(export_backup(state).decode("utf-8")) == state


def test_import_requires_confirmation() -> None:
    with pytest.raises(ConfirmationRequiredError):
        import_backup(export_backup(_state()), confirmed=False)


@pytest.mark.parametrize(
    "payload",
    [
        b"{not json",
        b"\xff\xfe",
        b'"just a string"',
        b'{"kids": [{"name": "No id"}]}',
        b'{"chores": [{"id": "c", "title": "x", "points": 1, "schedule": {"type": "hourly"}}]}',
    ],
)
def test_malformed_backup_raises_import_error(payload: bytes) -> None:
    with pytest.raises(BackupImportError):
        import_backup(payload, confirmed=True)


def test_backup_filename_uses_date() -> None:
    assert backup_filename(date(2024, 3, 5)) == "choreloop-backup-2024-03-05.json"


@pytest.mark.parametrize(
    "payload",
    [
        b'{"kids": [{"id": "ava", "name": "Ava"}], "chores": [{"id": "dishes", "title": "Dishes",'
        b' "points": -3, "schedule": {"type": "daily"}, "assignedKidIds": ["ava"]}]}',
        b'{"chores": [{"id": "dishes", "title": "Dishes", "points": 0, "schedule": {"type": "daily"}}]}',
        b'{"rewards": [{"id": "r", "title": "Movie night", "cost": 0}]}',
        b'{"rewards": [{"id": "r", "title": "Movie night", "cost": -10}]}',
    ],
)
def test_backup_with_non_positive_values_is_rejected(payload: bytes) -> None:
    with pytest.raises(BackupImportError):
        import_backup(payload, confirmed=True)

"""Human-readable backup files of the full state."""

from __future__ import annotations

import json
from datetime import date
from typing import Optional

from .dates import to_iso
from .exceptions import BackupImportError, ConfirmationRequiredError, ValidationError
from .models import State
from .serialization import state_from_dict, state_to_dict


def backup_filename(today: Optional[date] = None) -> str:
    return f"choreloop-backup-{to_iso(today or date.today())}.json"


def export_backup(state: State) -> bytes:
    """Serialise ``state`` as pretty-printed UTF-8 JSON."""

    text = json.dumps(state_to_dict(state), indent=2, sort_keys=True, ensure_ascii=False)
    return (text + "\n").encode("utf-8")


def parse_backup(payload: bytes | str) -> State:
    """Decode a backup without applying it.

    Raises :class:`BackupImportError` when the payload is not a readable backup.
    """

    try:
        text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        data = json.loads(text)
    except (UnicodeDecodeError, ValueError) as exc:
        raise BackupImportError(f"Backup is not valid JSON: {exc}") from exc
    try:
        return state_from_dict(data)
    except ValidationError as exc:
        raise BackupImportError(f"Backup does not contain a valid state: {exc}") from exc


def import_backup(payload: bytes | str, *, confirmed: bool) -> State:
    """Decode a backup that will overwrite all current data.

    ``confirmed`` must be true: restoring is destructive and callers have to
    say so explicitly.
    """

    if not confirmed:
        raise ConfirmationRequiredError("Restoring a backup replaces all existing data; pass confirmed=True.")
    return parse_backup(payload)


__all__ = ["backup_filename", "export_backup", "import_backup", "parse_backup"]

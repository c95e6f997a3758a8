"""Persistence of the whole state blob in a SQLModel key-value table."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, Session, SQLModel, create_engine

from .config import STATE_KEY, database_url
from .exceptions import StorageDecodeError, ValidationError
from .models import State, default_state
from .ops import StructuredLogger
from .serialization import state_from_dict, state_to_dict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StateKV(SQLModel, table=True):
    k: str = Field(primary_key=True)
    v: str
    updated_at: datetime = Field(default_factory=_utcnow, sa_type=DateTime(timezone=True))


class StateDAO:
    @staticmethod
    def get(session: Session, key: str) -> Optional[str]:
        row = session.get(StateKV, key)
        return row.v if row else None

    @staticmethod
    def set(session: Session, key: str, value: str) -> None:
        row = session.get(StateKV, key)
        if row:
            row.v = value
            row.updated_at = _utcnow()
            session.add(row)
        else:
            session.add(StateKV(k=key, v=value))

    @staticmethod
    def delete(session: Session, key: str) -> None:
        row = session.get(StateKV, key)
        if row:
            session.delete(row)


def encode_state(state: State) -> str:
    return json.dumps(state_to_dict(state), separators=(",", ":"))


def decode_state(raw: str) -> State:
    """Decode a stored blob, raising :class:`StorageDecodeError` when unreadable."""

    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise StorageDecodeError(f"Stored state is not valid JSON: {exc}") from exc
    try:
        return state_from_dict(payload)
    except ValidationError as exc:
        raise StorageDecodeError(str(exc)) from exc


class StateStore:
    """Load and save the application state under a single fixed key.

    :meth:`load` never raises: a missing or unreadable blob yields the default
    state. :meth:`save` lets database errors propagate so the caller can decide
    how loudly to fail.
    """

    def __init__(
        self,
        engine: Engine | None = None,
        *,
        key: str = STATE_KEY,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.engine = engine or create_engine(
            database_url(),
            echo=False,
            connect_args={"check_same_thread": False},
        )
        self.key = key
        self.logger = logger or StructuredLogger()
        self._tables_ready = False

    def _ensure_tables(self) -> None:
        if not self._tables_ready:
            SQLModel.metadata.create_all(self.engine)
            self._tables_ready = True

    def read_raw(self) -> Optional[str]:
        self._ensure_tables()
        with Session(self.engine) as session:
            return StateDAO.get(session, self.key)

    def load(self) -> State:
        try:
            raw = self.read_raw()
        except SQLAlchemyError as exc:
            self.logger.error("state_load_failed", key=self.key, error=str(exc))
            return default_state()
        if raw is None:
            return default_state()
        try:
            return decode_state(raw)
        except StorageDecodeError as exc:
            self.logger.warning("state_decode_failed", key=self.key, error=str(exc))
            return default_state()

    def save(self, state: State) -> None:
        self._ensure_tables()
        with Session(self.engine) as session:
            StateDAO.set(session, self.key, encode_state(state))
            session.commit()

    def clear(self) -> None:
        self._ensure_tables()
        with Session(self.engine) as session:
            StateDAO.delete(session, self.key)
            session.commit()


__all__ = ["StateDAO", "StateKV", "StateStore", "decode_state", "encode_state"]

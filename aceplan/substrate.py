"""
Key-value stores the repository persists its tables into.

Keys and values are plain strings. Reads are synchronous; writes either
succeed as a whole or raise `WriteRejected`. `compare_and_set` lets a
read-modify-write detect a second writer that touched the same slot.
"""

from typing import Dict, Optional, Protocol

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .database import DATABASE_URL, init_db, make_engine, make_session_factory
from .models import Slot


class WriteRejected(Exception):
    """The store refused a write; nothing was changed."""


class QuotaExceededError(WriteRejected):
    pass


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def compare_and_set(self, key: str, expected: Optional[str], value: str) -> bool: ...


class MemoryStore:
    """In-process store with an optional size quota, counted in characters like a browser's localStorage."""

    def __init__(self, quota: Optional[int] = None, items: Optional[Dict[str, str]] = None):
        self.quota = quota
        self._items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota is not None:
            used = sum(len(k) + len(v) for k, v in self._items.items() if k != key)
            if used + len(key) + len(value) > self.quota:
                raise QuotaExceededError(f"Setting '{key}' exceeds the quota of {self.quota}")
        self._items[key] = value

    def compare_and_set(self, key: str, expected: Optional[str], value: str) -> bool:
        if self._items.get(key) != expected:
            return False
        self.set_item(key, value)
        return True


class SqlStore:
    """Store backed by the `slots` table, one row per key."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, url: str = DATABASE_URL) -> "SqlStore":
        engine = make_engine(url)
        init_db(engine)
        return cls(make_session_factory(engine))

    def get_item(self, key: str) -> Optional[str]:
        with self.session_factory() as session:
            slot = session.get(Slot, key)
            return slot.value if slot else None

    def set_item(self, key: str, value: str) -> None:
        with self.session_factory() as session:
            try:
                session.merge(Slot(key=key, value=value))
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise WriteRejected(str(e)) from e

    def compare_and_set(self, key: str, expected: Optional[str], value: str) -> bool:
        with self.session_factory() as session:
            try:
                if expected is None:
                    session.add(Slot(key=key, value=value))
                    session.commit()
                    return True
                result = session.execute(
                    update(Slot).where(Slot.key == key, Slot.value == expected).values(value=value)
                )
                session.commit()
                return result.rowcount == 1
            except IntegrityError:
                # Another writer created the slot first
                session.rollback()
                return False
            except SQLAlchemyError as e:
                session.rollback()
                raise WriteRejected(str(e)) from e

"""Key-value storage with compare-and-swap semantics.

The rankings engine only ever talks to a store through ``get`` and
``conditional_put``. Backends without native CAS emulate it with a version
counter stored next to the value.
"""
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import StoreUnavailable, VersionConflict


@dataclass(frozen=True)
class VersionToken:
    """Opaque version identifier returned by reads and consumed by conditional writes."""

    value: Any

    def __str__(self) -> str:
        return str(self.value)


class KeyValueStore(ABC):

    @abstractmethod
    def get(self, key: str) -> Optional[Tuple[bytes, VersionToken]]:
        """Return ``(value, version)`` or ``None`` when the key has never been written."""

    @abstractmethod
    def conditional_put(self, key: str, value: bytes, expected_version: Optional[VersionToken]) -> VersionToken:
        """Write ``value`` only if the stored version still equals ``expected_version``.

        ``expected_version=None`` means the key must not exist yet. Raises
        ``VersionConflict`` on mismatch and returns the new version otherwise.
        """

    @abstractmethod
    def put(self, key: str, value: bytes) -> VersionToken:
        """Unconditional last-write-wins write."""


class MemoryStore(KeyValueStore):
    """Process-local store. Each call is atomic under a single lock."""

    def __init__(self):
        self._data: Dict[str, Tuple[bytes, int]] = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            record = self._data.get(key)
        if record is None:
            return None
        value, version = record
        return value, VersionToken(version)

    def conditional_put(self, key, value, expected_version):
        with self._lock:
            record = self._data.get(key)
            current = record[1] if record else None
            expected = expected_version.value if expected_version is not None else None
            if current != expected:
                raise VersionConflict(f"key={key} expected={expected} found={current}")
            new_version = (current or 0) + 1
            self._data[key] = (bytes(value), new_version)
        return VersionToken(new_version)

    def put(self, key, value):
        with self._lock:
            record = self._data.get(key)
            new_version = (record[1] if record else 0) + 1
            self._data[key] = (bytes(value), new_version)
        return VersionToken(new_version)


class SQLAlchemyStore(KeyValueStore):
    """Store backed by the ``kv_record`` table.

    The CAS is an ``UPDATE ... WHERE key = :key AND version = :expected`` whose
    rowcount tells us whether we won. First writes rely on the primary key to
    reject a concurrent insert.
    """

    def __init__(self, db, model):
        self._db = db
        self._model = model

    @property
    def _session(self):
        return self._db.session

    def get(self, key):
        try:
            row = self._session.execute(
                sa.select(self._model.value, self._model.version).where(self._model.key == key)
            ).first()
            # End the read transaction so the next read sees newer commits
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreUnavailable(f"read failed for key={key}: {exc}") from exc
        if row is None:
            return None
        return row.value.encode('utf-8'), VersionToken(row.version)

    def conditional_put(self, key, value, expected_version):
        text = value.decode('utf-8')
        try:
            if expected_version is None:
                self._session.execute(
                    sa.insert(self._model).values(key=key, value=text, version=1)
                )
                self._session.commit()
                return VersionToken(1)
            result = self._session.execute(
                sa.update(self._model)
                .where(self._model.key == key, self._model.version == expected_version.value)
                .values(value=text, version=self._model.version + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self._session.rollback()
                raise VersionConflict(f"key={key} expected={expected_version}")
            self._session.commit()
            return VersionToken(expected_version.value + 1)
        except IntegrityError as exc:
            self._session.rollback()
            raise VersionConflict(f"key={key} already exists") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreUnavailable(f"write failed for key={key}: {exc}") from exc

    def put(self, key, value):
        text = value.decode('utf-8')
        try:
            record = self._session.get(self._model, key)
            if record is None:
                record = self._model(key=key, value=text, version=1)
            else:
                record.value = text
                record.version = (record.version or 0) + 1
            new_version = record.version
            self._session.add(record)
            self._session.commit()
            return VersionToken(new_version)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreUnavailable(f"write failed for key={key}: {exc}") from exc

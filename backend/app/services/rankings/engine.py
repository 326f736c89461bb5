import logging
import math
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .collection import DEFAULT_CAPACITY, Entry, apply, decode_entries, encode_entries, resolve_rank
from .errors import Contention, InvalidInput, StoreUnavailable, VersionConflict
from .store import KeyValueStore


@dataclass(frozen=True)
class SubmitResult:
    # None only if the submitted id vanished from its own ordering
    rank: Optional[int]
    entries: List[Entry]


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int beyond float range
        return False


def _is_integral(value) -> bool:
    if isinstance(value, float):
        return math.isfinite(value) and value.is_integer()
    return isinstance(value, int) and not isinstance(value, bool)


def validate_submission(id, name, score, depth=None) -> None:
    """Reject a submission before it reaches storage."""
    missing = [field for field, value in (('id', id), ('name', name), ('score', score)) if value in (None, '')]
    if missing:
        raise InvalidInput('Missing fields', fields=missing)
    malformed = []
    if not isinstance(id, str):
        malformed.append('id')
    if not isinstance(name, str):
        malformed.append('name')
    if not _is_number(score):
        malformed.append('score')
    if depth is not None and not _is_integral(depth):
        malformed.append('depth')
    if malformed:
        raise InvalidInput(f"Malformed fields: {', '.join(malformed)}", fields=malformed)


class RankingsEngine:
    """Optimistic read-modify-write cycle over a single leaderboard key.

    Each ``submit`` reads the stored board, merges the new entry, and commits
    with a conditional write against the version it read. A lost race means
    another submission committed first, so we re-read and try again. Nothing
    is cached between calls.
    """

    def __init__(self, store: KeyValueStore, key: str = 'rankings', capacity: int = DEFAULT_CAPACITY,
                 max_attempts: int = 5, backoff_base: float = 0.01, backoff_max: float = 0.1,
                 logger: Optional[logging.Logger] = None,
                 clock: Callable[[], str] = _utcnow_iso,
                 sleep: Callable[[float], None] = time.sleep):
        if capacity < 1:
            raise ValueError('capacity must be at least 1')
        if max_attempts < 1:
            raise ValueError('max_attempts must be at least 1')
        self.store = store
        self.key = key
        self.capacity = capacity
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._sleep = sleep

    def _read(self):
        record = self.store.get(self.key)
        if record is None:
            return [], None
        raw, version = record
        return decode_entries(raw), version

    def _backoff(self, attempt: int) -> float:
        ceiling = min(self.backoff_max, self.backoff_base * (2 ** attempt))
        return random.uniform(0, ceiling)

    def submit(self, id, name, score, depth=None) -> SubmitResult:
        validate_submission(id, name, score, depth)
        if isinstance(depth, float):
            depth = int(depth)
        incoming = Entry.create(id=id, name=name, score=score, depth=depth, submitted_at=self._clock())

        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                current, version = self._read()
                ordering, retained = apply(current, incoming, self.capacity)
                self.store.conditional_put(self.key, encode_entries(retained), version)
            except VersionConflict as exc:
                last_error = exc
                self.logger.info(f"[rankings-conflict] key={self.key} id={id} attempt={attempt}/{self.max_attempts}")
            except StoreUnavailable as exc:
                last_error = exc
                self.logger.warning(f"[rankings-store-error] key={self.key} id={id} attempt={attempt}/{self.max_attempts} error={exc}")
            else:
                rank = resolve_rank(ordering, incoming.id)
                self.logger.info(
                    f"[rankings-commit] key={self.key} id={id} score={score} rank={rank} attempt={attempt} size={len(retained)}"
                )
                return SubmitResult(rank=rank, entries=retained)

            if attempt < self.max_attempts:
                self._sleep(self._backoff(attempt))

        if isinstance(last_error, StoreUnavailable):
            self.logger.error(f"[rankings-abort] key={self.key} id={id} store unavailable after {self.max_attempts} attempts")
            raise last_error
        self.logger.error(f"[rankings-abort] key={self.key} id={id} contention after {self.max_attempts} attempts")
        raise Contention(self.key, self.max_attempts) from last_error

    def list(self) -> List[Entry]:
        """Retained entries from a single read. May lag a concurrent commit."""
        entries, _ = self._read()
        return entries

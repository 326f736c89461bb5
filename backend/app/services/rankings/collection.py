"""Bounded, deduplicated, score-ordered collection of leaderboard entries.

Everything here is pure: no storage, no clock. The engine stamps
``submitted_at`` before calling ``apply``.
"""
import json
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

NAME_MAX_LENGTH = 12
DEFAULT_CAPACITY = 100

Score = Union[int, float]


@dataclass(frozen=True)
class Entry:
    id: str
    name: str
    score: Score
    depth: Optional[int] = None
    submitted_at: Optional[str] = None

    @classmethod
    def create(cls, id: str, name: str, score: Score, depth: Optional[int] = None,
               submitted_at: Optional[str] = None) -> 'Entry':
        # Long names are shortened, never rejected
        return cls(id=id, name=name[:NAME_MAX_LENGTH], score=score, depth=depth, submitted_at=submitted_at)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'depth': self.depth,
            'date': self.submitted_at,
        }

    @classmethod
    def from_dict(cls, data) -> 'Entry':
        return cls(
            id=data['id'],
            name=data['name'],
            score=data['score'],
            depth=data.get('depth'),
            submitted_at=data.get('date'),
        )


def apply(current: Sequence[Entry], incoming: Entry, capacity: int = DEFAULT_CAPACITY) -> Tuple[List[Entry], List[Entry]]:
    """Merge ``incoming`` into ``current``.

    Returns ``(ordering, retained)``: the full descending ordering before
    truncation (used for rank resolution) and its first ``capacity`` entries
    (what gets stored). An existing entry with the same id is replaced even
    when the new score is lower. Ties keep insertion order, so the incoming
    entry ranks below everyone already holding the same score.
    """
    ordering = [e for e in current if e.id != incoming.id]
    ordering.append(incoming)
    # list.sort is stable
    ordering.sort(key=lambda e: e.score, reverse=True)
    return ordering, ordering[:capacity]


def resolve_rank(ordering: Sequence[Entry], entry_id: str) -> Optional[int]:
    """1-based position of ``entry_id`` in ``ordering``, or None when absent."""
    for index, entry in enumerate(ordering):
        if entry.id == entry_id:
            return index + 1
    return None


def encode_entries(entries: Sequence[Entry]) -> bytes:
    return json.dumps([e.to_dict() for e in entries], ensure_ascii=False).encode('utf-8')


def decode_entries(raw: Optional[bytes]) -> List[Entry]:
    if not raw:
        return []
    return [Entry.from_dict(item) for item in json.loads(raw.decode('utf-8'))]

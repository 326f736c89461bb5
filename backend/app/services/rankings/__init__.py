"""Leaderboard maintenance: bounded ranked collection, CAS store and update protocol.

Kept free of Flask so the engine can be driven by HTTP routes, socket
handlers or tests alike.
"""
from .collection import Entry, apply, resolve_rank
from .engine import RankingsEngine, SubmitResult
from .errors import Contention, InvalidInput, RankingsError, StoreUnavailable, VersionConflict
from .store import KeyValueStore, MemoryStore, SQLAlchemyStore, VersionToken

import random
import threading

import pytest

from app.services.rankings import (
    Contention,
    InvalidInput,
    MemoryStore,
    RankingsEngine,
    StoreUnavailable,
    VersionConflict,
)


def make_engine(store=None, **kwargs):
    kwargs.setdefault('sleep', lambda seconds: None)
    kwargs.setdefault('clock', lambda: '2026-10-19T12:00:00.000Z')
    return RankingsEngine(store or MemoryStore(), **kwargs)


class InterleavingStore(MemoryStore):
    """Runs ``before_first_write`` once, between a reader's get and its conditional put."""

    def __init__(self, before_first_write):
        super().__init__()
        self._hook = before_first_write
        self.write_attempts = 0

    def conditional_put(self, key, value, expected_version):
        self.write_attempts += 1
        hook, self._hook = self._hook, None
        if hook:
            hook()
        return super().conditional_put(key, value, expected_version)


class FlakyStore(MemoryStore):
    def __init__(self, failures):
        super().__init__()
        self.failures = failures
        self.reads = 0

    def get(self, key):
        self.reads += 1
        if self.failures > 0:
            self.failures -= 1
            raise StoreUnavailable('connection reset')
        return super().get(key)


def test_scenario_capacity_three():
    engine = make_engine(capacity=3)
    engine.submit('a', 'A', 50)
    engine.submit('b', 'B', 80)
    engine.submit('c', 'C', 60)
    result = engine.submit('d', 'D', 70)
    assert result.rank == 2
    assert [(x.id, x.score) for x in engine.list()] == [('b', 80), ('d', 70), ('c', 60)]


def test_rank_reported_for_player_below_window():
    engine = make_engine(capacity=2)
    engine.submit('a', 'A', 50)
    engine.submit('b', 'B', 40)
    result = engine.submit('c', 'C', 10)
    assert result.rank == 3
    assert [x.id for x in result.entries] == ['a', 'b']
    assert [x.id for x in engine.list()] == ['a', 'b']


def test_replace_semantics():
    engine = make_engine()
    engine.submit('a', 'A', 50)
    result = engine.submit('a', 'A', 30)
    assert result.rank == 1
    assert [(x.id, x.score) for x in engine.list()] == [('a', 30)]


def test_identical_resubmission_keeps_rank():
    engine = make_engine()
    engine.submit('b', 'B', 80)
    engine.submit('c', 'C', 50)
    first = engine.submit('a', 'A', 50)
    second = engine.submit('a', 'A', 50)
    assert first.rank == second.rank == 3


def test_submission_stamps_time_and_keeps_depth():
    engine = make_engine()
    result = engine.submit('a', 'A', 1, depth=9)
    entry = result.entries[0]
    assert entry.submitted_at == '2026-10-19T12:00:00.000Z'
    assert entry.depth == 9


@pytest.mark.parametrize('args,fields', [
    ((None, 'A', 1), ['id']),
    (('a', '', 1), ['name']),
    (('a', 'A', None), ['score']),
    ((None, None, None), ['id', 'name', 'score']),
    (('a', 'A', True), ['score']),
    (('a', 'A', float('nan')), ['score']),
    (('a', 'A', '10'), ['score']),
    ((7, 'A', 1), ['id']),
    (('a', 'A', 10 ** 400), ['score']),
    (('a', 'A', float('inf')), ['score']),
])
def test_invalid_input_rejected_before_storage(args, fields):
    store = InterleavingStore(None)
    engine = make_engine(store)
    with pytest.raises(InvalidInput) as info:
        engine.submit(*args)
    assert info.value.fields == fields
    assert store.write_attempts == 0
    assert store.get('rankings') is None


def test_malformed_depth_rejected():
    engine = make_engine()
    with pytest.raises(InvalidInput):
        engine.submit('a', 'A', 1, depth='deep')
    with pytest.raises(InvalidInput):
        engine.submit('a', 'A', 1, depth=3.5)


def test_integral_float_depth_is_kept_as_int():
    engine = make_engine()
    entry = engine.submit('a', 'A', 1, depth=3.0).entries[0]
    assert entry.depth == 3
    assert isinstance(entry.depth, int)


def test_interleaved_writer_is_not_lost():
    engine = None

    def rival_commits():
        # Rival reads and commits after our read but before our write
        engine.submit('rival', 'R', 90)

    store = InterleavingStore(rival_commits)
    engine = make_engine(store)
    result = engine.submit('me', 'M', 70)

    assert result.rank == 2
    assert [(x.id, x.score) for x in engine.list()] == [('rival', 90), ('me', 70)]
    # Ours conflicted once, rival wrote once, ours retried once
    assert store.write_attempts == 3


def test_contention_after_exhausted_retries():
    class ConflictingStore(MemoryStore):
        def conditional_put(self, key, value, expected_version):
            raise VersionConflict(key)

    sleeps = []
    engine = make_engine(ConflictingStore(), max_attempts=5, sleep=sleeps.append)
    with pytest.raises(Contention) as info:
        engine.submit('a', 'A', 1)
    assert info.value.attempts == 5
    assert len(sleeps) == 4
    assert engine.list() == []


def test_backoff_is_bounded():
    engine = make_engine(backoff_base=0.01, backoff_max=0.05)
    for attempt in range(1, 10):
        delay = engine._backoff(attempt)
        assert 0 <= delay <= 0.05


def test_transient_store_failure_is_retried():
    store = FlakyStore(failures=2)
    engine = make_engine(store)
    result = engine.submit('a', 'A', 1)
    assert result.rank == 1
    assert store.reads == 3


def test_store_failure_surfaces_after_retries():
    store = FlakyStore(failures=100)
    engine = make_engine(store, max_attempts=3)
    with pytest.raises(StoreUnavailable):
        engine.submit('a', 'A', 1)
    assert store.reads == 3


def test_list_propagates_store_failure():
    engine = make_engine(FlakyStore(failures=1))
    with pytest.raises(StoreUnavailable):
        engine.list()


def test_concurrent_distinct_submitters_all_land():
    store = MemoryStore()
    engine = RankingsEngine(store, max_attempts=100, backoff_base=0.0005, backoff_max=0.002)
    barrier = threading.Barrier(8)
    errors = []

    def worker(n):
        barrier.wait()
        try:
            engine.submit(f"p{n}", f"P{n}", n * 10)
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    board = engine.list()
    assert sorted(x.id for x in board) == sorted(f"p{n}" for n in range(8))
    assert [x.score for x in board] == sorted((n * 10 for n in range(8)), reverse=True)


def test_constructor_rejects_bad_bounds():
    with pytest.raises(ValueError):
        RankingsEngine(MemoryStore(), capacity=0)
    with pytest.raises(ValueError):
        RankingsEngine(MemoryStore(), max_attempts=0)


def test_random_submission_sequences_keep_board_invariants():
    rng = random.Random(20261019)
    for capacity in (1, 3, 7):
        engine = make_engine(capacity=capacity)
        accepted = set()
        for _ in range(300):
            player = f"p{rng.randrange(15)}"
            score = rng.choice([rng.randint(-50, 50), round(rng.uniform(-50, 50), 2)])
            result = engine.submit(player, player.upper(), score)
            accepted.add(player)

            board = engine.list()
            assert board == result.entries
            assert len(board) <= capacity
            assert len({x.id for x in board}) == len(board)
            assert all(board[i].score >= board[i + 1].score for i in range(len(board) - 1))
            assert {x.id for x in board} <= accepted
            # The submitter's latest score is what counts
            if player in {x.id for x in board}:
                assert next(x for x in board if x.id == player).score == score
                assert board[result.rank - 1].id == player
            else:
                assert result.rank > capacity

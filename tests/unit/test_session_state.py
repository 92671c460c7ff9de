"""Unit tests for the session state store."""

from concurrent.futures import ThreadPoolExecutor

from smartmem.memory.types import MemoryItem
from smartmem.session.state import InjectionRecord, SessionStateStore

MEMORIES = [MemoryItem(id="a", memory="Uses uv"), MemoryItem(id="b", memory="Prefers pytest")]


class TestLifecycle:
    """Tests for initialize and clear."""

    def test_starts_empty(self):
        state = SessionStateStore()
        assert state.shared_memories == ()
        assert state.generation == 0
        assert state.injected_count == 0

    def test_initialize_does_not_bump_generation(self):
        state = SessionStateStore()
        state.initialize(MEMORIES)
        assert state.shared_memories == tuple(MEMORIES)
        assert state.generation == 0

    def test_clear(self):
        state = SessionStateStore()
        state.initialize(MEMORIES)
        state.claim("s1", MEMORIES)
        state.replace_shared([])

        state.clear()

        assert state.shared_memories == ()
        assert state.injected_count == 0
        assert state.generation == 0
        assert state.record("s1") is None


class TestClaim:
    """Tests for the atomic check-and-mark."""

    def test_first_claim_creates_record(self):
        state = SessionStateStore()

        record = state.claim("s1", MEMORIES)

        assert isinstance(record, InjectionRecord)
        assert record.session_id == "s1"
        assert record.memories == tuple(MEMORIES)
        assert record.generation == 0
        assert state.record("s1") is record

    def test_second_claim_rejected(self):
        state = SessionStateStore()
        state.claim("s1", MEMORIES)

        assert state.claim("s1", []) is None
        assert state.record("s1").memories == tuple(MEMORIES)

    def test_sessions_independent(self):
        state = SessionStateStore()
        assert state.claim("s1", MEMORIES) is not None
        assert state.claim("s2", MEMORIES) is not None
        assert state.injected_count == 2

    def test_empty_claim_still_marks(self):
        state = SessionStateStore()
        assert state.claim("s1", []) is not None
        assert state.needs_injection("s1") is False

    def test_refresh_allows_one_more_claim(self):
        state = SessionStateStore()
        state.claim("s1", MEMORIES)

        state.replace_shared(MEMORIES[:1])

        assert state.needs_injection("s1") is True
        record = state.claim("s1", MEMORIES[:1])
        assert record is not None
        assert record.generation == 1
        assert state.claim("s1", MEMORIES[:1]) is None

    def test_concurrent_claims_single_winner(self):
        """Test only one of many threads claiming the same session succeeds."""
        state = SessionStateStore()

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: state.claim("shared", MEMORIES), range(64)))

        assert sum(r is not None for r in results) == 1
        assert state.injected_count == 1


class TestSharedCache:
    """Tests for populate_shared and replace_shared."""

    def test_populate_when_empty(self):
        state = SessionStateStore()
        assert state.populate_shared(MEMORIES) is True
        assert state.shared_memories == tuple(MEMORIES)
        assert state.generation == 0

    def test_populate_does_not_overwrite(self):
        state = SessionStateStore()
        state.initialize(MEMORIES[:1])
        assert state.populate_shared(MEMORIES) is False
        assert state.shared_memories == tuple(MEMORIES[:1])

    def test_populate_ignores_empty(self):
        state = SessionStateStore()
        assert state.populate_shared([]) is False

    def test_replace_bumps_generation(self):
        state = SessionStateStore()
        state.initialize(MEMORIES)

        assert state.replace_shared([]) == 1
        assert state.replace_shared(MEMORIES) == 2
        assert state.shared_memories == tuple(MEMORIES)


class TestLastInjectedAt:
    """Tests for the last injection timestamp."""

    def test_none_before_any_injection(self):
        assert SessionStateStore().last_injected_at is None

    def test_tracks_latest_record(self):
        state = SessionStateStore()
        first = state.claim("s1", MEMORIES)
        second = state.claim("s2", MEMORIES)

        assert state.last_injected_at == max(first.injected_at, second.injected_at)

    def test_reset_by_clear(self):
        state = SessionStateStore()
        state.claim("s1", MEMORIES)
        state.clear()
        assert state.last_injected_at is None

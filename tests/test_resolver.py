"""
Tests for the hierarchy resolver / pager
"""
import pytest

from fake_store import FakeGameStore, StuckGameStore, aggregate_row, row
from gamecatalog.exceptions import HierarchyIntegrityError, QuerySpecificationError
from gamecatalog.queries import HierarchyResolver, MergeAccumulator, query_games
from gamecatalog.queries.assembler import create_game_query
from gamecatalog.queries.spec import SortSpec


def _resolver(store, **kwargs):
    return HierarchyResolver(store, create_game_query(SortSpec(), {}, {}), **kwargs)


def _families():
    """Five standalone leaves and two aggregates with two children each"""
    rows = [row(f"SLES-0000{i}") for i in range(1, 4)]
    rows += [aggregate_row("SLUS-00001_agg"), row("SLUS-00001", parent_id="SLUS-00001_agg")]
    rows += [row("SLUS-00002", parent_id="SLUS-00001_agg")]
    rows += [row("SLES-00004"), aggregate_row("SCES-00001_agg"), row("SLES-00005")]
    rows += [row("SCES-00001", parent_id="SCES-00001_agg"), row("SCUS-00001", parent_id="SCES-00001_agg")]
    return rows


class TestPaging:
    """Tests for the accumulate-and-advance loop"""

    def test_exhaustion_returns_everything(self):
        """37 top-level rows with take=100 returns 37 and stops"""
        store = FakeGameStore([row(f"SLES-{i:05d}") for i in range(37)])
        entries = _resolver(store).resolve(0, 100)

        assert len(entries) == 37
        assert store.parent_calls == [(100, 0), (63, 37)]

    def test_take_is_satisfied_in_one_round(self):
        store = FakeGameStore([row(f"SLES-{i:05d}") for i in range(10)])
        entries = _resolver(store).resolve(2, 3)

        assert [e.id for e in entries] == ["SLES-00002", "SLES-00003", "SLES-00004"]
        assert len(store.parent_calls) == 1

    def test_capped_store_is_paged_through(self):
        """A store returning at most 10 rows per call still yields all 37"""
        store = FakeGameStore([row(f"SLES-{i:05d}") for i in range(37)], page_cap=10)
        entries = _resolver(store).resolve(0, 100)

        assert len(entries) == 37
        assert [offset for _, offset in store.parent_calls] == [0, 10, 20, 30, 37]

    def test_round_limit_stops_paging(self):
        store = FakeGameStore([row(f"SLES-{i:05d}") for i in range(37)], page_cap=10)
        entries = _resolver(store, max_rounds=2).resolve(0, 100)

        assert len(entries) == 20
        assert len(store.parent_calls) == 2

    def test_round_without_new_rows_terminates(self):
        """A store that never advances cannot loop forever"""
        store = StuckGameStore([row("SLES-00001"), row("SLES-00002"), row("SLES-00003")])
        entries = _resolver(store).resolve(0, 5)

        assert [e.id for e in entries] == ["SLES-00001", "SLES-00002", "SLES-00003"]
        assert store.parent_calls == [(5, 0), (2, 3)]

    def test_take_zero(self):
        store = FakeGameStore([row("SLES-00001")])
        assert _resolver(store).resolve(0, 0) == []
        assert store.parent_calls == []

    def test_negative_skip_or_take(self):
        store = FakeGameStore([row("SLES-00001")])
        with pytest.raises(QuerySpecificationError):
            _resolver(store).resolve(-1, 10)
        with pytest.raises(QuerySpecificationError):
            _resolver(store).resolve(0, -10)

    def test_families_are_never_split(self):
        """Every page keeps each aggregate with all of its children"""
        store = FakeGameStore(_families())
        seen = []
        for skip in range(0, 10, 2):
            page = _resolver(store).resolve(skip, 2)
            assert len(page) <= 2
            seen.extend(page)

        assert [e.id for e in seen] == [
            "SLES-00001",
            "SLES-00002",
            "SLES-00003",
            "SLUS-00001_agg",
            "SLES-00004",
            "SCES-00001_agg",
            "SLES-00005",
        ]
        by_id = {e.id: e for e in seen}
        assert [s.id for s in by_id["SLUS-00001_agg"].subgames] == ["SLUS-00001", "SLUS-00002"]
        assert [s.id for s in by_id["SCES-00001_agg"].subgames] == ["SCES-00001", "SCUS-00001"]
        assert all(not e.subgames for e in seen if not e.id.endswith("_agg"))

    def test_storage_errors_propagate(self):
        class BrokenStore(FakeGameStore):
            def run_child_query(self, queries, parent_ids, user_id=None):
                raise RuntimeError("connection lost")

        with pytest.raises(RuntimeError, match="connection lost"):
            _resolver(BrokenStore([row("SLES-00001")])).resolve(0, 10)


class TestOrphans:
    """Tests for children whose parent is missing from the page"""

    def test_missing_parent_is_looked_up(self):
        store = FakeGameStore(
            [row("SLES-00001"), aggregate_row("SLUS-00001_agg")],
            hidden=["SLUS-00001_agg"],
            extra_children=[row("SLUS-00001", parent_id="SLUS-00001_agg")],
        )
        entries = _resolver(store).resolve(0, 10)

        assert store.lookup_calls == [["SLUS-00001_agg"]]
        assert [e.id for e in entries] == ["SLES-00001", "SLUS-00001_agg"]
        assert [s.id for s in entries[1].subgames] == ["SLUS-00001"]

    def test_unresolvable_child_is_dropped(self):
        store = FakeGameStore(
            [row("SLES-00001")],
            extra_children=[row("SLUS-00009", parent_id="GHOST-00001_agg")],
        )
        entries = _resolver(store).resolve(0, 10)

        assert [e.id for e in entries] == ["SLES-00001"]
        assert entries[0].subgames == []

    def test_unresolvable_child_raises_in_strict_mode(self):
        store = FakeGameStore(
            [row("SLES-00001")],
            extra_children=[row("SLUS-00009", parent_id="GHOST-00001_agg")],
        )
        with pytest.raises(HierarchyIntegrityError) as excinfo:
            _resolver(store, strict=True).resolve(0, 10)

        assert excinfo.value.child_id == "SLUS-00009"
        assert excinfo.value.parent_id == "GHOST-00001_agg"


class TestMergeAccumulator:
    """Tests for deduplication across rounds"""

    def test_merge_is_idempotent(self):
        parents = [row("SLES-00001"), aggregate_row("SLUS-00001_agg")]
        children = [row("SLUS-00001", parent_id="SLUS-00001_agg"), row("SLUS-00002", parent_id="SLUS-00001_agg")]

        accumulator = MergeAccumulator()
        assert accumulator.merge(parents, children) == 2
        first = [e.to_dict() for e in accumulator.entries]

        assert accumulator.merge(parents, children) == 0
        assert [e.to_dict() for e in accumulator.entries] == first

    def test_first_occurrence_wins(self):
        accumulator = MergeAccumulator()
        accumulator.merge([row("SLES-00001", title="First")], [])
        accumulator.merge([row("SLES-00001", title="Second")], [])

        assert [e.title for e in accumulator.entries] == ["First"]

    def test_child_rows_are_never_top_level(self):
        accumulator = MergeAccumulator()
        accumulator.merge(
            [aggregate_row("SLUS-00001_agg"), row("SLUS-00001", parent_id="SLUS-00001_agg")],
            [row("SLUS-00001", parent_id="SLUS-00001_agg")],
        )

        assert [e.id for e in accumulator.entries] == ["SLUS-00001_agg"]
        assert [s.id for s in accumulator.entries[0].subgames] == ["SLUS-00001"]
        assert "SLUS-00001" not in accumulator


class TestQueryGames:
    """Tests for the caller entry point"""

    def test_defaults(self):
        store = FakeGameStore(_families())
        entries = query_games(store)

        assert len(entries) == 7
        assert store.parent_calls[0] == (100, 0)

    def test_owned_flags_are_carried(self):
        store = FakeGameStore([row("SLES-00001", owned=True), row("SLES-00002")])
        entries = query_games(store, user_id="alice")

        assert [e.owned for e in entries] == [True, False]
        assert entries[0].to_dict()["owned"] is True

    def test_bad_search_fails_before_any_query(self):
        store = FakeGameStore([row("SLES-00001")])
        with pytest.raises(QuerySpecificationError):
            query_games(store, search={"console": "N64"})
        with pytest.raises(QuerySpecificationError):
            query_games(store, sort={"publisher": {"priority": 1, "sort": "asc"}})

        assert store.parent_calls == []


class TestResolvePage:
    """Tests for has_more on a resolved page"""

    def test_full_page_with_rows_left(self):
        store = FakeGameStore([row(f"SLES-{i:05d}") for i in range(5)])
        page = _resolver(store).resolve_page(0, 3)

        assert len(page.entries) == 3
        assert page.has_more is True
        assert store.parent_calls == [(3, 0), (1, 3)]

    def test_page_ending_on_last_row(self):
        store = FakeGameStore([row(f"SLES-{i:05d}") for i in range(5)])
        page = _resolver(store).resolve_page(2, 3)

        assert [e.id for e in page.entries] == ["SLES-00002", "SLES-00003", "SLES-00004"]
        assert page.has_more is False

    def test_short_page(self):
        store = FakeGameStore([row(f"SLES-{i:05d}") for i in range(5)])
        page = _resolver(store).resolve_page(4, 3)

        assert len(page.entries) == 1
        assert page.has_more is False
        assert store.parent_calls == [(3, 4), (2, 5)]

    def test_take_zero_has_nothing_more(self):
        store = FakeGameStore([row("SLES-00001")])
        page = _resolver(store).resolve_page(0, 0)

        assert page.entries == []
        assert page.has_more is False
        assert store.parent_calls == []

    def test_round_limit_leaves_more(self):
        store = FakeGameStore([row(f"SLES-{i:05d}") for i in range(37)], page_cap=10)
        page = _resolver(store, max_rounds=2).resolve_page(0, 100)

        assert len(page.entries) == 20
        assert page.has_more is True

    def test_families_count_once(self):
        store = FakeGameStore(_families())
        assert _resolver(store).resolve_page(5, 2).has_more is False
        assert _resolver(store).resolve_page(4, 2).has_more is True

"""
Hierarchy resolver / pager.

Pages over top-level catalog entries (standalone leaves and aggregates) while
fetching each aggregate's full child set, so a family is never split across a
page boundary. One call runs sequential rounds of::

    fetch parents -> fetch children -> repair orphans -> merge/dedupe -> check

until ``take`` top-level entries are accumulated or the source is exhausted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Set, Tuple, Union

import structlog

from gamecatalog.exceptions import HierarchyIntegrityError, QuerySpecificationError
from gamecatalog.queries.assembler import GameQuerySet, create_game_query, describe
from gamecatalog.queries.spec import (
    SearchTerms,
    SortSpec,
    build_filter_spec,
    parse_search_terms,
    parse_sort_spec,
)

logger = structlog.get_logger("queries")

DEFAULT_SKIP_TAKE = (0, 100)
DEFAULT_MAX_ROUNDS = 50

Row = Mapping[str, Any]


class GameStore(Protocol):
    """Storage contract the resolver runs against."""

    def run_parent_query(self, queries: GameQuerySet, limit: int, offset: int, user_id: Optional[str] = None) -> List[Row]:
        ...

    def run_child_query(self, queries: GameQuerySet, parent_ids: Sequence[str], user_id: Optional[str] = None) -> List[Row]:
        ...

    def lookup_rows_by_id(self, ids: Sequence[str], user_id: Optional[str] = None) -> List[Row]:
        ...


def _value(v):
    return getattr(v, "value", v)


@dataclass
class LeafGame:
    id: str
    title: str
    console: str
    region: str
    parent_id: Optional[str]
    additional_info: Optional[str] = None
    owned: bool = False

    @classmethod
    def from_row(cls, row: Row) -> "LeafGame":
        return cls(
            id=row["id"],
            title=row["title"],
            console=_value(row["console"]),
            region=_value(row["region"]),
            parent_id=row.get("parent_id"),
            additional_info=row.get("additional_info"),
            owned=bool(row.get("owned", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "console": self.console,
            "region": self.region,
            "parent_id": self.parent_id,
            "additional_info": self.additional_info,
            "owned": self.owned,
        }


@dataclass
class ParentWithChildren:
    id: str
    title: str
    console: str
    region: str
    additional_info: Optional[str] = None
    kind: Optional[str] = None
    owned: bool = False
    subgames: List[LeafGame] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Row) -> "ParentWithChildren":
        return cls(
            id=row["id"],
            title=row["title"],
            console=_value(row["console"]),
            region=_value(row["region"]),
            additional_info=row.get("additional_info"),
            kind=_value(row.get("kind")),
            owned=bool(row.get("owned", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "console": self.console,
            "region": self.region,
            "additional_info": self.additional_info,
            "kind": self.kind,
            "owned": self.owned,
            "subgames": [s.to_dict() for s in self.subgames],
        }


@dataclass
class GamePage:
    entries: List[ParentWithChildren]
    has_more: bool


class MergeAccumulator:
    """Running, deduplicated result across fetch rounds.

    First occurrence of an id wins. A row known as a child is never kept as a
    sibling top-level entry.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self._entries: Dict[str, ParentWithChildren] = {}
        self._child_ids: Set[str] = set()

    def __len__(self):
        return len(self._entries)

    def __contains__(self, game_id):
        return game_id in self._entries

    @property
    def entries(self) -> List[ParentWithChildren]:
        return list(self._entries.values())

    def merge(self, parents: Iterable[Row], children: Iterable[Row]) -> int:
        """Fold one round in; returns how many new top-level entries it added."""
        before = len(self._entries)
        children = list(children)

        for row in parents:
            if row.get("parent_id") is not None:
                children.append(row)
                continue
            if row["id"] in self._entries or row["id"] in self._child_ids:
                continue
            self._entries[row["id"]] = ParentWithChildren.from_row(row)

        for row in children:
            if row["id"] in self._child_ids:
                continue
            parent = self._entries.get(row["parent_id"])
            if parent is None:
                self._unresolved(row)
                continue
            parent.subgames.append(LeafGame.from_row(row))
            self._child_ids.add(row["id"])
            # The nested entry is authoritative
            self._entries.pop(row["id"], None)

        return len(self._entries) - before

    def _unresolved(self, row: Row):
        if self.strict:
            raise HierarchyIntegrityError(row["id"], row["parent_id"])
        logger.warning(
            "Dropping child with unresolvable parent",
            game_id=row["id"],
            parent_id=row["parent_id"],
        )


class HierarchyResolver:
    """Accumulator + cursor loop over a :class:`GameStore`.

    ``skip`` advances by the number of raw top-level rows consumed, so every
    round moves strictly forward; the loop stops when the store returns no
    rows, when a round adds nothing new, or after ``max_rounds``.
    """

    def __init__(
        self,
        store: GameStore,
        queries: GameQuerySet,
        user_id: Optional[str] = None,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        strict: bool = False,
    ):
        self.store = store
        self.queries = queries
        self.user_id = user_id
        self.max_rounds = max_rounds
        self.strict = strict
        self._cursor = 0
        self._overflow = False
        self._round_limit_hit = False

    def resolve(self, skip: int = 0, take: int = 100) -> List[ParentWithChildren]:
        if skip < 0 or take < 0:
            raise QuerySpecificationError("skip and take must not be negative")

        accumulator = MergeAccumulator(strict=self.strict)
        cursor = skip
        rounds = 0
        self._round_limit_hit = False

        while len(accumulator) < take:
            if rounds >= self.max_rounds:
                logger.warning("Paging stopped at round limit", rounds=rounds, returned=len(accumulator), take=take)
                self._round_limit_hit = True
                break
            rounds += 1
            wanted = take - len(accumulator)

            parents = self.store.run_parent_query(self.queries, wanted, cursor, self.user_id)
            if not parents:
                break
            cursor += len(parents)

            children = self.store.run_child_query(self.queries, [row["id"] for row in parents], self.user_id)
            repaired = self._repair_orphans(accumulator, parents, children)

            added = accumulator.merge(list(parents) + repaired, children)
            logger.debug(
                "Query round merged",
                round=rounds,
                parents=len(parents),
                children=len(children),
                repaired=len(repaired),
                added=added,
                cursor=cursor,
            )
            if added == 0:
                break

        self._cursor = cursor
        self._overflow = len(accumulator) > take
        return accumulator.entries[:take]

    def resolve_page(self, skip: int = 0, take: int = 100) -> GamePage:
        """Like :meth:`resolve`, also telling whether entries remain past the page.

        A page that came back full is confirmed by fetching one more top-level
        row at the cursor.
        """
        entries = self.resolve(skip, take)
        if take == 0 or len(entries) < take:
            has_more = self._round_limit_hit
        elif self._overflow:
            has_more = True
        else:
            has_more = bool(self.store.run_parent_query(self.queries, 1, self._cursor, self.user_id))
        return GamePage(entries, has_more)

    def _repair_orphans(self, accumulator: MergeAccumulator, parents: Sequence[Row], children: Sequence[Row]) -> List[Row]:
        known = {row["id"] for row in parents}
        missing = []
        for row in children:
            parent_id = row["parent_id"]
            if parent_id in known or parent_id in accumulator or parent_id in missing:
                continue
            missing.append(parent_id)
        if not missing:
            return []

        logger.info("Repairing orphaned children", parent_ids=missing)
        return list(self.store.lookup_rows_by_id(missing, self.user_id))


def _build_resolver(store, user_id, sort, search, max_rounds, strict, skip_take) -> HierarchyResolver:
    sort_spec = parse_sort_spec(sort)
    terms: SearchTerms = parse_search_terms({_value(k): v for k, v in (search or {}).items()})
    skip, take = skip_take

    filter_spec = build_filter_spec(terms)
    queries = create_game_query(sort_spec, filter_spec, terms)
    logger.debug("Catalog query", user=bool(user_id), skip=skip, take=take, vars=describe(queries, terms))

    return HierarchyResolver(store, queries, user_id=user_id, max_rounds=max_rounds, strict=strict)


def query_games(
    store: GameStore,
    user_id: Optional[str] = None,
    sort: Union[SortSpec, Mapping[str, Any], None] = None,
    search: Optional[Mapping[Any, str]] = None,
    skip_take: Tuple[int, int] = DEFAULT_SKIP_TAKE,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
    strict: bool = False,
) -> List[ParentWithChildren]:
    """List top-level catalog entries, each with its children nested.

    Specification errors are raised before any statement runs; storage errors
    propagate unchanged.
    """
    resolver = _build_resolver(store, user_id, sort, search, max_rounds, strict, skip_take)
    return resolver.resolve(*skip_take)


def query_games_page(
    store: GameStore,
    user_id: Optional[str] = None,
    sort: Union[SortSpec, Mapping[str, Any], None] = None,
    search: Optional[Mapping[Any, str]] = None,
    skip_take: Tuple[int, int] = DEFAULT_SKIP_TAKE,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
    strict: bool = False,
) -> GamePage:
    """:func:`query_games` plus whether a following page has entries"""
    resolver = _build_resolver(store, user_id, sort, search, max_rounds, strict, skip_take)
    return resolver.resolve_page(*skip_take)

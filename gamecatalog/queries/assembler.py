"""
Query assembler: predicate + sort fragments -> the four catalog statements.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import bindparam, text

from gamecatalog.queries.predicates import compile_predicate, get_ordered_search_values, get_var_order, placeholder
from gamecatalog.queries.sorting import child_owned_expression, order_by, owned_column, parent_owned_expression
from gamecatalog.queries.spec import (
    LIMIT_SLOT,
    OFFSET_SLOT,
    PARENT_IDS_SLOT,
    USER_SLOT,
    FilterSpec,
    GameColumn,
    SearchTerms,
    SortSpec,
)

GAME_COLUMNS_SQL = "g.id, g.title, g.console, g.region, g.parent_id, g.additional_info, g.kind"

PARENT_QUERY = """SELECT {columns}
FROM game AS g
WHERE {where}
ORDER BY {order}
LIMIT {limit} OFFSET {offset}"""

CHILD_QUERY = """SELECT {columns}
FROM game AS g
WHERE {where}
ORDER BY {order}"""

LOOKUP_QUERY = """SELECT {columns}
FROM game AS g
WHERE g.id IN {ids}"""


@dataclass(frozen=True)
class BoundQuery:
    """A statement template with its values, in slot order."""

    sql: str
    values: List[Tuple[int, Any]]
    expanding: FrozenSet[int] = frozenset()

    @property
    def params(self) -> Dict[str, Any]:
        return {placeholder(slot)[1:]: value for slot, value in self.values}

    def statement(self):
        stmt = text(self.sql)
        if self.expanding:
            stmt = stmt.bindparams(*[bindparam(placeholder(slot)[1:], expanding=True) for slot in self.expanding])
        return stmt


@dataclass(frozen=True)
class GameQuerySet:
    parent_query: str
    parent_query_user: str
    child_query: str
    child_query_user: str
    var_order: Dict[int, GameColumn]
    search_values: List[Tuple[int, Any]] = field(default_factory=list)

    def bind_parents(self, limit: int, offset: int, user_id: Optional[str] = None) -> BoundQuery:
        structural = [(LIMIT_SLOT, limit), (OFFSET_SLOT, offset)]
        if user_id is not None:
            return BoundQuery(self.parent_query_user, [(USER_SLOT, user_id)] + structural + self.search_values)
        return BoundQuery(self.parent_query, structural + self.search_values)

    def bind_children(self, parent_ids: Sequence[str], user_id: Optional[str] = None) -> BoundQuery:
        structural = [(PARENT_IDS_SLOT, list(parent_ids))]
        expanding = frozenset([PARENT_IDS_SLOT])
        if user_id is not None:
            return BoundQuery(self.child_query_user, [(USER_SLOT, user_id)] + structural, expanding)
        return BoundQuery(self.child_query, structural, expanding)


def _select_columns(owned_expression: Optional[str]) -> str:
    if owned_expression is None:
        return GAME_COLUMNS_SQL
    return f"{GAME_COLUMNS_SQL}, {owned_column(owned_expression)} AS owned"


def create_game_query(sort_spec: SortSpec, filter_spec: FilterSpec, terms: Mapping[GameColumn, str]) -> GameQuerySet:
    """Build all four statements from one predicate and one sort specification.

    Only the parent statements carry the search predicate. Child statements
    select by parent id alone and are unbounded, so a family is always
    fetched whole whichever of its members matched.
    """
    top = compile_predicate(filter_spec, terms, top_level=True)
    child_where = f"g.parent_id IN {placeholder(PARENT_IDS_SLOT)}"

    parent_owned = parent_owned_expression()
    child_owned = child_owned_expression()
    limit, offset = placeholder(LIMIT_SLOT), placeholder(OFFSET_SLOT)

    return GameQuerySet(
        parent_query=PARENT_QUERY.format(
            columns=_select_columns(None), where=top.sql, order=order_by(sort_spec), limit=limit, offset=offset
        ),
        parent_query_user=PARENT_QUERY.format(
            columns=_select_columns(parent_owned),
            where=top.sql,
            order=order_by(sort_spec, parent_owned),
            limit=limit,
            offset=offset,
        ),
        child_query=CHILD_QUERY.format(columns=_select_columns(None), where=child_where, order=order_by(sort_spec)),
        child_query_user=CHILD_QUERY.format(
            columns=_select_columns(child_owned), where=child_where, order=order_by(sort_spec, child_owned)
        ),
        var_order=get_var_order(filter_spec),
        search_values=top.values,
    )


def create_lookup_query(ids: Sequence[str], user_id: Optional[str] = None) -> BoundQuery:
    """Fetch rows by id; used to repair parents missing from a page."""
    ids_slot = PARENT_IDS_SLOT
    values = [(ids_slot, list(ids))]
    owned = None
    if user_id is not None:
        owned = parent_owned_expression()
        values = [(USER_SLOT, user_id)] + values
    sql = LOOKUP_QUERY.format(columns=_select_columns(owned), ids=placeholder(ids_slot))
    return BoundQuery(sql, values, frozenset([ids_slot]))


def describe(queries: GameQuerySet, terms: SearchTerms) -> List[Tuple[int, str]]:
    """Slot/value pairs for logging, matching ``var_order``."""
    values = get_ordered_search_values(queries.var_order, terms)
    return list(zip(sorted(queries.var_order), values))

"""
Sort compiler and the two ownership expressions used for the owned-first tie-break.
"""

from typing import List

from gamecatalog.queries.predicates import placeholder
from gamecatalog.queries.spec import COLUMN_SQL, USER_SLOT, GameColumn, SortSpec

# This specific row is in the user's library
DIRECT_OWNED_SQL = (
    "EXISTS (SELECT 1 FROM library AS l WHERE l.game_id = g.id AND l.user_id = {user})"
)

# Completeness: owned directly, or it has children and none of them is unowned
COMPLETE_OWNED_SQL = (
    "(" + DIRECT_OWNED_SQL + " OR ("
    "EXISTS (SELECT 1 FROM game AS c WHERE c.parent_id = g.id)"
    " AND NOT EXISTS (SELECT 1 FROM game AS c WHERE c.parent_id = g.id"
    " AND NOT EXISTS (SELECT 1 FROM library AS lc WHERE lc.game_id = c.id AND lc.user_id = {user}))))"
)

TIEBREAK_SQL = "g.id ASC"


def parent_owned_expression() -> str:
    return COMPLETE_OWNED_SQL.format(user=placeholder(USER_SLOT))


def child_owned_expression() -> str:
    return DIRECT_OWNED_SQL.format(user=placeholder(USER_SLOT))


def owned_column(expression: str) -> str:
    return f"CASE WHEN {expression} THEN 1 ELSE 0 END"


def compile_sort(sort_spec: SortSpec) -> str:
    """``"g.col DIR, ..."`` with the lowest priority number first.

    Equal priorities keep their input order.
    """
    entries = sorted(sort_spec.columns.items(), key=lambda item: item[1].priority)
    return ", ".join(f"{COLUMN_SQL[column]} {sort.direction.sql}" for column, sort in entries)


def order_by(sort_spec: SortSpec, owned_expression: str = None) -> str:
    """Full ORDER BY body: optional ownership prefix, column sorts, id tiebreak."""
    parts: List[str] = []
    if owned_expression and sort_spec.owned_first:
        parts.append(f"{owned_column(owned_expression)} DESC")
    column_sort = compile_sort(sort_spec)
    if column_sort:
        parts.append(column_sort)
    if GameColumn.ID not in sort_spec.columns:
        parts.append(TIEBREAK_SQL)
    return ", ".join(parts)

"""
Catalog query engine

- spec.py: filter/sort specification types and payload validation
- predicates.py: WHERE fragment compiler with stable positional slots
- sorting.py: ORDER BY compiler and ownership tie-break expressions
- assembler.py: the four parent/child statements, with and without a user
- resolver.py: paging loop that keeps parent/child families together

Usage:
    from gamecatalog.queries import query_games
    entries = query_games(store, user_id, sort, search, (skip, take))
"""

from .assembler import BoundQuery, GameQuerySet, create_game_query, create_lookup_query
from .predicates import compile_predicate, get_ordered_search_values, get_var_order
from .resolver import (
    GamePage,
    HierarchyResolver,
    LeafGame,
    MergeAccumulator,
    ParentWithChildren,
    query_games,
    query_games_page,
)
from .sorting import compile_sort
from .spec import (
    CastType,
    ColumnFilter,
    ColumnSort,
    Comparison,
    GameColumn,
    SortDirection,
    SortSpec,
    build_filter_spec,
    parse_search_terms,
    parse_sort_spec,
)

__all__ = [
    "BoundQuery",
    "GameQuerySet",
    "create_game_query",
    "create_lookup_query",
    "compile_predicate",
    "get_ordered_search_values",
    "get_var_order",
    "GamePage",
    "HierarchyResolver",
    "LeafGame",
    "MergeAccumulator",
    "ParentWithChildren",
    "query_games",
    "query_games_page",
    "compile_sort",
    "CastType",
    "ColumnFilter",
    "ColumnSort",
    "Comparison",
    "GameColumn",
    "SortDirection",
    "SortSpec",
    "build_filter_spec",
    "parse_search_terms",
    "parse_sort_spec",
]

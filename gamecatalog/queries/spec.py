"""
Filter and sort specifications for catalog queries.

These are plain data: which columns may be filtered or sorted, how a column
compares against a search term, and which positional slot a term is bound to.
Column names never travel from the caller into SQL; every column is looked up
in ``COLUMN_SQL``.

Slot layout shared by every statement the assembler emits::

    1  user identity          (user variants only)
    2  limit / parent id set  (parent statements / child statements)
    3  offset                 (parent statements only)
    4+ search terms, one per enabled filter, in ``COLUMN_ORDER``
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from gamecatalog.constants import CONSOLES, REGIONS
from gamecatalog.exceptions import QuerySpecificationError


class GameColumn(str, enum.Enum):
    ID = "id"
    TITLE = "title"
    CONSOLE = "console"
    REGION = "region"


COLUMN_SQL = {
    GameColumn.ID: "g.id",
    GameColumn.TITLE: "g.title",
    GameColumn.CONSOLE: "g.console",
    GameColumn.REGION: "g.region",
}

# Slot assignment order; also the order predicates are emitted in
COLUMN_ORDER = (GameColumn.ID, GameColumn.TITLE, GameColumn.CONSOLE, GameColumn.REGION)

# The "search box" columns, OR-ed together
TEXT_COLUMNS = (GameColumn.ID, GameColumn.TITLE)
# Leaf-level attribute columns, AND-ed and tolerant of the NA sentinel
ENUM_COLUMNS = (GameColumn.CONSOLE, GameColumn.REGION)

ALLOWED_VALUES = {
    GameColumn.CONSOLE: CONSOLES,
    GameColumn.REGION: REGIONS,
}

USER_SLOT = 1
LIMIT_SLOT = 2
PARENT_IDS_SLOT = 2
OFFSET_SLOT = 3
FIRST_SEARCH_SLOT = 4


class Comparison(str, enum.Enum):
    LIKE = "LIKE"
    EQ = "="


class CastType(str, enum.Enum):
    VARCHAR = "VARCHAR"
    TEXT = "TEXT"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"

    @property
    def sql(self):
        return self.value.upper()


@dataclass(frozen=True)
class ColumnFilter:
    on: bool
    var_num: int
    comparison: Optional[Comparison] = None
    cast_to: Optional[CastType] = None


FilterSpec = Dict[GameColumn, ColumnFilter]
SearchTerms = Dict[GameColumn, str]


@dataclass(frozen=True)
class ColumnSort:
    priority: int
    direction: SortDirection = SortDirection.ASC


@dataclass
class SortSpec:
    columns: Dict[GameColumn, ColumnSort] = field(default_factory=dict)
    owned_first: bool = False


def default_comparison(column: GameColumn) -> Comparison:
    return Comparison.LIKE if column in TEXT_COLUMNS else Comparison.EQ


def default_cast(column: GameColumn) -> Optional[CastType]:
    return CastType.VARCHAR if column in ENUM_COLUMNS else None


def _column(name: Any) -> GameColumn:
    if isinstance(name, GameColumn):
        return name
    try:
        return GameColumn(name)
    except ValueError:
        raise QuerySpecificationError(f"Unknown column: {name!r}")


def build_filter_spec(terms: Mapping[GameColumn, str]) -> FilterSpec:
    """Enable a filter for every supplied term and give each one a slot."""
    spec: FilterSpec = {}
    slot = FIRST_SEARCH_SLOT
    for column in COLUMN_ORDER:
        if column in terms:
            spec[column] = ColumnFilter(on=True, var_num=slot)
            slot += 1
    return spec


def parse_search_terms(raw: Optional[Mapping[str, Any]]) -> SearchTerms:
    """Validate a transport-level search payload.

    Empty strings and ``None`` mean "filter off". Console and region values
    must be one of the physical values; the ``NA`` sentinel is not searchable.
    """
    terms: SearchTerms = {}
    if not raw:
        return terms
    if not isinstance(raw, Mapping):
        raise QuerySpecificationError("search must be an object")

    for name, value in raw.items():
        column = _column(name)
        if value is None or value == "":
            continue
        if not isinstance(value, str):
            raise QuerySpecificationError(f"Search term for {column.value} must be a string")
        allowed = ALLOWED_VALUES.get(column)
        if allowed is not None and value not in allowed:
            raise QuerySpecificationError(f"Invalid {column.value}: {value!r}")
        terms[column] = value
    return terms


def parse_sort_spec(raw: Optional[Mapping[str, Any]], owned_first: bool = False) -> SortSpec:
    """Validate a sort payload into a SortSpec.

    Accepts either ``{column: {priority, sort}}`` or the wrapped form
    ``{"columns": {...}, "ownedFirst": bool}``.
    """
    if isinstance(raw, SortSpec):
        return raw
    if raw is not None and not isinstance(raw, Mapping):
        raise QuerySpecificationError("sort must be an object")
    if raw and "columns" in raw:
        owned_first = raw.get("ownedFirst", raw.get("owned_first", owned_first))
        raw = raw["columns"]
        if raw is not None and not isinstance(raw, Mapping):
            raise QuerySpecificationError("sort.columns must be an object")

    spec = SortSpec(owned_first=bool(owned_first))
    if not raw:
        return spec

    for name, entry in raw.items():
        column = _column(name)
        if not isinstance(entry, Mapping):
            raise QuerySpecificationError(f"Sort entry for {column.value} must be an object")
        priority = entry.get("priority")
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise QuerySpecificationError(f"Sort priority for {column.value} must be an integer")
        try:
            direction = SortDirection(str(entry.get("sort", "asc")).lower())
        except ValueError:
            raise QuerySpecificationError(f"Sort direction for {column.value} must be 'asc' or 'desc'")
        spec.columns[column] = ColumnSort(priority=priority, direction=direction)
    return spec

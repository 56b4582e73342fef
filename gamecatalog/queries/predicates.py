"""
Predicate compiler: filter specification + search terms -> WHERE fragment.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from gamecatalog.constants import SENTINEL_NA
from gamecatalog.exceptions import QuerySpecificationError
from gamecatalog.queries.spec import (
    COLUMN_SQL,
    ENUM_COLUMNS,
    TEXT_COLUMNS,
    Comparison,
    FilterSpec,
    GameColumn,
    default_cast,
    default_comparison,
)

LIKE_ESCAPE = "\\"
TOP_LEVEL_PREDICATE = "g.parent_id IS NULL"


def placeholder(slot: int) -> str:
    return f":p{slot}"


def escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


@dataclass
class _Clause:
    template: str
    slot: Optional[int] = None
    value: Any = None


@dataclass
class PredicateBuilder:
    """Collects clauses and renders placeholders only when emitting SQL.

    Each entry of ``groups`` is AND-ed with the others; clauses inside one
    group are OR-ed. A clause without a slot is structural and binds nothing.
    """

    groups: List[List[_Clause]] = field(default_factory=list)

    def add(self, template: str, slot: Optional[int] = None, value: Any = None):
        self.groups.append([_Clause(template, slot, value)])
        return self

    def add_any(self, clauses: List[Tuple[str, Optional[int], Any]]):
        if clauses:
            self.groups.append([_Clause(t, s, v) for t, s, v in clauses])
        return self

    def render(self) -> Tuple[str, List[Tuple[int, Any]]]:
        parts = []
        values = []
        for group in self.groups:
            rendered = []
            for clause in group:
                if clause.slot is None:
                    rendered.append(clause.template)
                else:
                    rendered.append(clause.template.format(param=placeholder(clause.slot)))
                    values.append((clause.slot, clause.value))
            if len(rendered) == 1:
                parts.append(rendered[0])
            else:
                parts.append("(" + " OR ".join(rendered) + ")")
        values.sort(key=lambda pair: pair[0])
        return " AND ".join(parts), values


@dataclass(frozen=True)
class CompiledPredicate:
    sql: str
    values: List[Tuple[int, Any]]

    @property
    def slots(self) -> List[int]:
        return [slot for slot, _ in self.values]


def _text_clause(column: GameColumn, comparison: Comparison, slot: int, term: str):
    column_sql = COLUMN_SQL[column]
    if comparison == Comparison.LIKE:
        template = f"lower({column_sql}) LIKE lower({{param}}) ESCAPE '{LIKE_ESCAPE}'"
        return template, slot, f"%{escape_like(term)}%"
    return f"{column_sql} = {{param}}", slot, term


def _enum_clause(column: GameColumn, filter_, term: str):
    column_sql = COLUMN_SQL[column]
    cast = filter_.cast_to or default_cast(column)
    comparison = filter_.comparison or default_comparison(column)
    if comparison == Comparison.LIKE:
        value_sql, value = "lower({param})", f"%{escape_like(term)}%"
        matched = f"lower({column_sql}) LIKE {value_sql} ESCAPE '{LIKE_ESCAPE}'"
    else:
        value_sql = f"CAST({{param}} AS {cast.value})" if cast else "{param}"
        value = term
        matched = f"{column_sql} = {value_sql}"
    # Aggregates carry the NA sentinel and must survive leaf-level filters
    return [(matched, filter_.var_num, value), (f"{column_sql} = '{SENTINEL_NA}'", None, None)]


def _require_term(column: GameColumn, terms: Mapping[GameColumn, str]) -> str:
    term = terms.get(column)
    if term is None:
        raise QuerySpecificationError(f"Filter on {column.value} is enabled but no search term was supplied")
    return term


def compile_predicate(
    filter_spec: FilterSpec, terms: Mapping[GameColumn, str], top_level: bool = False
) -> CompiledPredicate:
    """Combine every enabled filter into one parameterized boolean fragment.

    ``id`` and ``title`` form a single OR group, ``console`` and ``region``
    are AND-ed with everything else. ``top_level`` appends the structural
    ``parent_id IS NULL`` predicate, which consumes no slot.
    """
    builder = PredicateBuilder()

    search_box = []
    for column in TEXT_COLUMNS:
        filter_ = filter_spec.get(column)
        if filter_ is None or not filter_.on:
            continue
        term = _require_term(column, terms)
        search_box.append(_text_clause(column, filter_.comparison or default_comparison(column), filter_.var_num, term))
    builder.add_any(search_box)

    for column in ENUM_COLUMNS:
        filter_ = filter_spec.get(column)
        if filter_ is None or not filter_.on:
            continue
        builder.add_any(_enum_clause(column, filter_, _require_term(column, terms)))

    if top_level:
        builder.add(TOP_LEVEL_PREDICATE)

    sql, values = builder.render()
    return CompiledPredicate(sql=sql, values=values)


def get_var_order(filter_spec: FilterSpec) -> Dict[int, GameColumn]:
    """Slot number -> column, for every enabled filter."""
    return {f.var_num: column for column, f in filter_spec.items() if f.on}


def get_ordered_search_values(var_order: Mapping[int, GameColumn], terms: Mapping[GameColumn, str]) -> List[str]:
    """The raw search terms in slot order; slot N's value belongs to ``var_order[N]``."""
    values = []
    for slot in sorted(var_order):
        column = var_order[slot]
        values.append(_require_term(column, terms))
    return values


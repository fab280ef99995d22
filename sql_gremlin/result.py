"""
Translation results
Column-ordering contract and the row materializer built on it
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Tuple

from .sql.ast_nodes import SqlTypeName
from .traversal import Traversal

# Stands in for SQL NULL inside projected traversal results
NULL_SENTINEL = '$%#NULL#%$'


@dataclass(frozen=True)
class ColumnDescriptor:
    """Output column name and declared type"""
    name: str
    type_name: SqlTypeName


@dataclass
class SqlGremlinQuery:
    """A translated query: the traversal plus its ordered output columns"""
    traversal: Traversal
    columns: List[ColumnDescriptor] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def to_gremlin(self) -> str:
        return self.traversal.to_gremlin()

    def materialize(self, results: Iterable[Mapping[str, Any]]) -> List[Tuple[Any, ...]]:
        return materialize_rows(self.columns, results)


def materialize_rows(columns: List[ColumnDescriptor],
                     results: Iterable[Mapping[str, Any]]) -> List[Tuple[Any, ...]]:
    """
    Build relational rows from projected traversal results

    Args:
        columns: Column-ordering contract of the translated query
        results: One mapping per traverser, keyed by output column name

    Returns:
        One tuple per result, values in column order, NULL_SENTINEL mapped to None
    """
    rows = []
    for result in results:
        row = []
        for column in columns:
            value = result.get(column.name)
            row.append(None if value == NULL_SENTINEL else value)
        rows.append(tuple(row))
    return rows

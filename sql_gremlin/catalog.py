"""
Schema catalog
Maps relational tables and columns onto graph labels and properties
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import ErrorKind, SqlGremlinError
from .sql.ast_nodes import SqlTypeName

logger = logging.getLogger(__name__)


class TableKind(Enum):
    """Graph element a table is backed by"""
    VERTEX = "vertex"
    EDGE = "edge"


class Direction(Enum):
    """Edge direction walked by a join"""
    OUT = "out"
    IN = "in"


@dataclass(frozen=True)
class ColumnMapping:
    """Relational column backed by a graph property"""
    name: str
    property: str
    type_name: SqlTypeName = SqlTypeName.VARCHAR


@dataclass(frozen=True)
class TableMapping:
    """Relational table backed by a vertex or edge label"""
    name: str
    label: str
    columns: Tuple[ColumnMapping, ...] = ()
    kind: TableKind = TableKind.VERTEX

    def find_column(self, name: str) -> Optional[ColumnMapping]:
        lower = name.lower()
        for column in self.columns:
            if column.name.lower() == lower:
                return column
        return None

    @property
    def is_vertex(self) -> bool:
        return self.kind == TableKind.VERTEX


@dataclass(frozen=True)
class JoinEdge:
    """Edge label joining two vertex tables, optionally tied to key columns"""
    label: str
    out_table: str
    in_table: str
    out_column: Optional[str] = None
    in_column: Optional[str] = None


@dataclass(frozen=True)
class JoinPath:
    """Resolved edge walk from one table to another"""
    edge: JoinEdge
    direction: Direction

    @property
    def label(self) -> str:
        return self.edge.label


def _same(left: Optional[str], right: Optional[str]) -> bool:
    return left is not None and right is not None and left.lower() == right.lower()


class SchemaCatalog:
    """Read-only table, column and join-edge lookups"""

    def __init__(self, tables: List[TableMapping], edges: Optional[List[JoinEdge]] = None):
        by_name: Dict[str, TableMapping] = {}
        for table in tables:
            by_name[table.name.lower()] = table
        self._tables: Mapping[str, TableMapping] = MappingProxyType(by_name)
        self._edges: Tuple[JoinEdge, ...] = tuple(edges or [])

    @property
    def tables(self) -> List[TableMapping]:
        return list(self._tables.values())

    @property
    def edges(self) -> List[JoinEdge]:
        return list(self._edges)

    def resolve_table(self, name: str) -> TableMapping:
        table = self._tables.get(name.lower())
        if table is None:
            raise SqlGremlinError.create(ErrorKind.UNKNOWN_TABLE, name)
        return table

    def resolve_table_label(self, name: str) -> str:
        return self.resolve_table(name).label

    def resolve_column(self, table: str, column: str) -> ColumnMapping:
        mapping = self.resolve_table(table).find_column(column)
        if mapping is None:
            raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, f"{table}.{column}")
        return mapping

    def resolve_column_property(self, table: str, column: str) -> str:
        return self.resolve_column(table, column).property

    def resolve_join_edge(self, table_a: str, table_b: str,
                          column_a: Optional[str] = None,
                          column_b: Optional[str] = None) -> JoinPath:
        """
        Find the edge walk from table_a to table_b

        Args:
            table_a: Table already joined into the traversal
            table_b: Table being joined
            column_a: Join key on table_a, if the ON condition names one
            column_b: Join key on table_b, if the ON condition names one

        Returns:
            JoinPath with the edge and the direction to walk it
        """
        for edge in self._edges:
            if _same(edge.out_table, table_a) and _same(edge.in_table, table_b):
                if self._keys_match(edge.out_column, edge.in_column, column_a, column_b):
                    return JoinPath(edge=edge, direction=Direction.OUT)
            if _same(edge.in_table, table_a) and _same(edge.out_table, table_b):
                if self._keys_match(edge.in_column, edge.out_column, column_a, column_b):
                    return JoinPath(edge=edge, direction=Direction.IN)
        raise SqlGremlinError.create(
            ErrorKind.JOIN_NOT_SUPPORTED,
            f"no edge joins '{table_a}' to '{table_b}'"
        )

    @staticmethod
    def _keys_match(edge_a: Optional[str], edge_b: Optional[str],
                    column_a: Optional[str], column_b: Optional[str]) -> bool:
        if edge_a is None and edge_b is None:
            return True
        return _same(edge_a, column_a) and _same(edge_b, column_b)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SchemaCatalog':
        """Build a catalog from its plain-data description"""
        tables = []
        for table in data.get('tables', []):
            columns = []
            for column in table.get('columns', []):
                type_name = SqlTypeName.lookup(column.get('type', 'VARCHAR'))
                if type_name is None:
                    raise ValueError(f"Unknown column type '{column.get('type')}' in table '{table['name']}'")
                columns.append(ColumnMapping(
                    name=column['name'],
                    property=column.get('property', column['name']),
                    type_name=type_name,
                ))
            tables.append(TableMapping(
                name=table['name'],
                label=table.get('label', table['name']),
                columns=tuple(columns),
                kind=TableKind(table.get('kind', 'vertex')),
            ))

        edges = [
            JoinEdge(
                label=edge['label'],
                out_table=edge['out'],
                in_table=edge['in'],
                out_column=edge.get('out_column'),
                in_column=edge.get('in_column'),
            )
            for edge in data.get('edges', [])
        ]
        logger.debug(f"Loaded schema catalog with {len(tables)} tables and {len(edges)} edges")
        return cls(tables, edges)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> 'SchemaCatalog':
        with open(path, 'r', encoding='utf-8') as f:
            return cls.from_dict(json.load(f))

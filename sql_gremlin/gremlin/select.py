"""
SELECT translator
Assembles the full traversal for one SELECT statement, clause by clause
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from itertools import count
from typing import Dict, Iterator, List, Optional, Tuple

from ..catalog import Direction
from ..errors import ErrorKind, SqlGremlinError
from ..result import NULL_SENTINEL
from ..sql.ast_nodes import (
    JoinType,
    SqlBasicCall,
    SqlIdentifier,
    SqlJoin,
    SqlKind,
    SqlLiteral,
    SqlNode,
    SqlSelect,
    SqlTableRef,
    SqlTypeName,
    contains_aggregate,
)
from ..traversal import Order, Traversal, anonymous
from .metadata import SqlMetadata
from .operands import GremlinSqlBasicCall, GremlinSqlIdentifier, GremlinSqlNode
from .operators import get_operand_name, wrap_operand

logger = logging.getLogger(__name__)


@dataclass
class SelectItem:
    """One entry of the SELECT list after wrapping"""
    name: str
    operand: GremlinSqlNode
    type_name: SqlTypeName
    source: SqlNode
    alias: Optional[str] = None


@contextmanager
def _clause(name: str) -> Iterator[None]:
    """Tag errors raised while compiling a clause with the clause name"""
    try:
        yield
    except SqlGremlinError as e:
        e.with_clause(name)
        raise


class GremlinSqlSelect:
    """
    Translates a validated SqlSelect into a Gremlin traversal

    Steps are appended in the order FROM/JOIN, WHERE, grouping, HAVING,
    ORDER BY, LIMIT and finally the projection of the SELECT list. With
    DISTINCT the projection and dedup() come before LIMIT. The projected
    column order is recorded in the metadata state.
    """

    def __init__(self, sql_select: SqlSelect, metadata: SqlMetadata,
                 traversal_source: str = 'g', max_rows: Optional[int] = None):
        self.sql_select = sql_select
        self.metadata = metadata
        self.traversal_source = traversal_source
        self.max_rows = max_rows

    def generate_traversal(self) -> Traversal:
        select = self.sql_select
        if select.offset is not None:
            raise SqlGremlinError.create(ErrorKind.OFFSET_NOT_SUPPORTED)
        if select.from_ is None:
            raise SqlGremlinError.create(ErrorKind.UNSUPPORTED_LITERAL_EXPRESSION)

        traversal = Traversal(self.traversal_source)

        with _clause('FROM'):
            self._append_from(traversal, select.from_)

        if select.where is not None:
            with _clause('WHERE'):
                wrap_operand(select.where, self.metadata).append_filter(traversal)

        with _clause('SELECT'):
            select_items = self._wrap_select_list(select.select_list)

        if self._needs_grouping():
            with _clause('GROUP BY'):
                self._append_grouping(traversal, select.group_by)

        if select.having is not None:
            with _clause('HAVING'):
                wrap_operand(select.having, self.metadata).append_filter(traversal)

        if select.order_by:
            with _clause('ORDER BY'):
                self._append_order_by(traversal, select_items)

        # DISTINCT applies to projected rows and before LIMIT
        if select.distinct:
            with _clause('SELECT'):
                self._append_projection(traversal, select_items)
            traversal.dedup()
            self._append_limit(traversal)
        else:
            self._append_limit(traversal)
            with _clause('SELECT'):
                self._append_projection(traversal, select_items)

        logger.debug(f"Generated traversal with {len(traversal)} steps for {len(select_items)} columns")
        return traversal

    # FROM and JOIN
    def _append_from(self, traversal: Traversal, node: SqlNode):
        if isinstance(node, SqlTableRef):
            self._append_table(traversal, node)
        elif isinstance(node, SqlJoin):
            self._append_join(traversal, node)
        else:
            raise SqlGremlinError.create(ErrorKind.UNSUPPORTED_OPERAND_TYPE, type(node).__name__)

    def _append_table(self, traversal: Traversal, table_ref: SqlTableRef):
        table = self.metadata.catalog.resolve_table(table_ref.name)
        binding = self.metadata.add_table(table_ref.alias_or_name, table)
        if table.is_vertex:
            traversal.V()
        else:
            traversal.E()
        traversal.has_label(table.label).as_(binding.step_label)

    def _append_join(self, traversal: Traversal, join: SqlJoin):
        if join.join_type != JoinType.INNER:
            raise SqlGremlinError.create(ErrorKind.JOIN_NOT_SUPPORTED, f"{join.join_type.value} join")
        if not isinstance(join.right, SqlTableRef):
            raise SqlGremlinError.create(ErrorKind.JOIN_NOT_SUPPORTED, "the joined item must be a table")

        self._append_from(traversal, join.left)

        alias = join.right.alias_or_name
        table = self.metadata.catalog.resolve_table(join.right.name)
        joined_column, new_column = self._join_columns(join.condition, alias)
        joined = self.metadata.get_binding(joined_column.names[0])
        if not joined.table.is_vertex or not table.is_vertex:
            raise SqlGremlinError.create(ErrorKind.JOIN_NOT_SUPPORTED, "only vertex tables can be joined")

        path = self.metadata.catalog.resolve_join_edge(
            joined.table.name, table.name, joined_column.simple, new_column.simple
        )
        logger.debug(f"Joining '{alias}' to '{joined.alias}' over edge '{path.label}' ({path.direction.value})")

        walk_from_joined = self.metadata.current_label != joined.step_label
        binding = self.metadata.add_table(alias, table)
        if walk_from_joined:
            traversal.select(joined.step_label)
        if path.direction == Direction.OUT:
            traversal.out(path.label)
        else:
            traversal.in_(path.label)
        traversal.has_label(table.label).as_(binding.step_label)

    @staticmethod
    def _join_columns(condition: Optional[SqlNode], alias: str) -> Tuple[SqlIdentifier, SqlIdentifier]:
        """Split an ON equality into (column of a joined table, column of the new table)"""
        if not (isinstance(condition, SqlBasicCall) and condition.kind == SqlKind.EQUALS
                and len(condition.operands) == 2
                and all(isinstance(o, SqlIdentifier) and len(o.names) == 2 for o in condition.operands)):
            raise SqlGremlinError.create(ErrorKind.JOIN_NOT_SUPPORTED,
                                         "the ON clause must equate two qualified columns")

        left, right = condition.operands
        if right.names[0] == alias and left.names[0] != alias:
            return left, right
        if left.names[0] == alias and right.names[0] != alias:
            return right, left
        raise SqlGremlinError.create(ErrorKind.JOIN_NOT_SUPPORTED,
                                     f"the ON clause must relate '{alias}' to a joined table")

    # SELECT list
    def _wrap_select_list(self, select_list: List[SqlNode]) -> List[SelectItem]:
        items = []
        used_names = set()
        for node in select_list:
            alias = None
            expression = node
            if isinstance(node, SqlBasicCall) and node.kind == SqlKind.AS:
                expression, alias_node = node.operands
                alias = alias_node.simple

            operand = wrap_operand(expression, self.metadata)
            name = _unique_name(alias or get_operand_name(operand), used_names)
            used_names.add(name)
            if isinstance(operand, GremlinSqlBasicCall):
                operand.rename = name

            type_name = getattr(expression, 'type_name', None) or operand.type_name
            items.append(SelectItem(name=name, operand=operand, type_name=type_name,
                                    source=expression, alias=alias))
        return items

    def _append_projection(self, traversal: Traversal, select_items: List[SelectItem]):
        by_traversals = [
            anonymous().coalesce(item.operand.value_traversal(), anonymous().constant(NULL_SENTINEL))
            for item in select_items
        ]
        traversal.project(*[item.name for item in select_items])
        for by_traversal in by_traversals:
            traversal.by(by_traversal)
        for item in select_items:
            self.metadata.add_output_column(item.name, item.type_name, item.source)

    # GROUP BY and aggregates
    def _needs_grouping(self) -> bool:
        select = self.sql_select
        if select.group_by or select.having is not None:
            return True
        if any(contains_aggregate(node) for node in select.select_list):
            return True
        return any(contains_aggregate(item.expression) for item in select.order_by)

    def _append_grouping(self, traversal: Traversal, group_by: List[SqlNode]):
        keys: Dict[str, Traversal] = {}
        for node in group_by:
            operand = wrap_operand(node, self.metadata)
            if isinstance(operand, GremlinSqlIdentifier):
                step_label, property_name = operand.resolve()
                key = self.metadata.group_key_name(step_label, property_name)
            else:
                key = node.to_sql()
            if key not in keys:
                keys[key] = operand.value_traversal()

        if not self.metadata.is_single_table:
            traversal.select(*self.metadata.step_labels)

        if keys:
            key_traversal = anonymous().project(*keys)
            for value in keys.values():
                key_traversal.by(anonymous().coalesce(value, anonymous().constant(NULL_SENTINEL)))
            traversal.group().by(key_traversal).by(anonymous().fold()).unfold()
        else:
            traversal.fold()

        self.metadata.start_grouping(list(keys))

    # ORDER BY and LIMIT
    def _append_order_by(self, traversal: Traversal, select_items: List[SelectItem]):
        aliases = {item.alias: item for item in select_items if item.alias is not None}
        modulators = []
        for order_item in self.sql_select.order_by:
            expression = order_item.expression
            if isinstance(expression, SqlIdentifier) and expression.is_simple and expression.simple in aliases:
                operand = aliases[expression.simple].operand
            elif isinstance(expression, SqlLiteral) and expression.type_name == SqlTypeName.INTEGER:
                position = expression.get_value()
                if not 1 <= position <= len(select_items):
                    raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, expression.to_sql())
                operand = select_items[position - 1].operand
            else:
                operand = wrap_operand(expression, self.metadata)
            direction = Order.desc if order_item.descending else Order.asc
            # A missing sort key would drop the row, so NULL is sorted as null
            value = anonymous().coalesce(operand.value_traversal(), anonymous().constant(None))
            modulators.append((value, direction))

        traversal.order()
        for value, direction in modulators:
            traversal.by(value, direction)

    def _append_limit(self, traversal: Traversal):
        fetch = self.sql_select.fetch
        limit = fetch.get_value() if fetch is not None else None
        if self.max_rows is not None:
            limit = self.max_rows if limit is None else min(limit, self.max_rows)
        if limit is not None:
            traversal.limit(limit)


def _unique_name(name: str, used_names) -> str:
    """Disambiguate a duplicate output name by appending 0, 1, ..."""
    if name not in used_names:
        return name
    for suffix in count():
        candidate = f"{name}{suffix}"
        if candidate not in used_names:
            return candidate

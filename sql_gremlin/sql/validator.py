"""
SQL Validator
Resolves names against the schema catalog and derives node types
"""

from typing import TYPE_CHECKING, Dict, List

from ..errors import ErrorKind, SqlGremlinError
from .ast_nodes import *

if TYPE_CHECKING:
    from ..catalog import SchemaCatalog, TableMapping


class SqlValidator:
    """Qualifies identifiers, expands '*' and assigns a SqlTypeName to every expression"""

    def __init__(self, catalog: 'SchemaCatalog'):
        self.catalog = catalog
        self.scope: Dict[str, 'TableMapping'] = {}

    def validate(self, select: SqlSelect) -> SqlSelect:
        """
        Validate a parsed SELECT in place

        Args:
            select: SqlSelect AST node from the parser

        Returns:
            The same SqlSelect, with qualified identifiers and types
        """
        self.scope = {}
        if select.from_ is not None:
            self._validate_from(select.from_)

        select.select_list = self._expand_select_list(select.select_list)
        for item in select.select_list:
            self._validate_expression(item)

        if select.where is not None:
            self._validate_expression(select.where)
        for node in select.group_by:
            self._validate_expression(node)
        if select.having is not None:
            self._validate_expression(select.having)

        output_names = self._output_names(select.select_list)
        for item in select.order_by:
            self._validate_order_item(item, select.select_list, output_names)

        return select

    # FROM clause
    def _validate_from(self, node: SqlNode):
        if isinstance(node, SqlTableRef):
            table = self.catalog.resolve_table(node.name)
            alias = node.alias_or_name
            if alias in self.scope:
                raise SqlGremlinError.create(ErrorKind.AMBIGUOUS_IDENTIFIER, alias)
            self.scope[alias] = table
        elif isinstance(node, SqlJoin):
            self._validate_from(node.left)
            self._validate_from(node.right)
            if node.condition is not None:
                self._validate_expression(node.condition)
        else:
            raise SqlGremlinError.create(ErrorKind.UNSUPPORTED_OPERAND_TYPE, type(node).__name__)

    def _expand_select_list(self, select_list: List[SqlNode]) -> List[SqlNode]:
        expanded = []
        for item in select_list:
            if isinstance(item, SqlIdentifier) and item.is_star:
                if item.is_simple:
                    aliases = list(self.scope)
                else:
                    aliases = [item.names[0]]
                    if aliases[0] not in self.scope:
                        raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, item.to_sql())
                if not aliases:
                    raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, item.to_sql())
                for alias in aliases:
                    for column in self.scope[alias].columns:
                        expanded.append(SqlIdentifier([alias, column.name], type_name=column.type_name))
            else:
                expanded.append(item)
        return expanded

    # Expressions
    def _validate_expression(self, node: SqlNode) -> SqlTypeName:
        if isinstance(node, SqlIdentifier):
            return self._validate_identifier(node)
        if isinstance(node, SqlLiteral):
            return node.type_name
        if isinstance(node, SqlDataTypeSpec):
            return node.type_name
        if isinstance(node, SqlNodeList):
            for child in node.nodes:
                self._validate_expression(child)
            return SqlTypeName.ANY
        if isinstance(node, SqlBasicCall):
            node.type_name = self._validate_call(node)
            return node.type_name
        return SqlTypeName.ANY

    def _validate_identifier(self, identifier: SqlIdentifier) -> SqlTypeName:
        if identifier.is_star:
            identifier.type_name = SqlTypeName.ANY
            return identifier.type_name

        if identifier.is_simple:
            column_name = identifier.simple
            matches = [
                (alias, table.find_column(column_name))
                for alias, table in self.scope.items()
                if table.find_column(column_name) is not None
            ]
            if not matches:
                raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, identifier.to_sql())
            if len(matches) > 1:
                raise SqlGremlinError.create(ErrorKind.AMBIGUOUS_IDENTIFIER, identifier.to_sql())
            alias, column = matches[0]
        elif len(identifier.names) == 2:
            alias = identifier.names[0]
            table = self.scope.get(alias)
            column = table.find_column(identifier.simple) if table is not None else None
            if column is None:
                raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, identifier.to_sql())
        else:
            raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, identifier.to_sql())

        identifier.names = [alias, column.name]
        identifier.type_name = column.type_name
        return identifier.type_name

    def _validate_call(self, call: SqlBasicCall) -> SqlTypeName:
        kind = call.kind

        if kind == SqlKind.SCALAR_QUERY:
            inner = SqlValidator(self.catalog).validate(call.operands[0])
            return _type_of(inner.select_list[0]) if inner.select_list else SqlTypeName.ANY

        if kind == SqlKind.AS:
            return self._validate_expression(call.operands[0])

        operand_types = [self._validate_expression(operand) for operand in call.operands]
        return derive_type(call, operand_types)

    def _validate_order_item(self, item: SqlOrderItem, select_list: List[SqlNode],
                             output_names: Dict[str, SqlNode]):
        expression = item.expression
        if isinstance(expression, SqlIdentifier) and expression.is_simple and expression.simple in output_names:
            expression.type_name = _type_of(output_names[expression.simple])
            return
        if isinstance(expression, SqlLiteral) and expression.type_name == SqlTypeName.INTEGER:
            if not 1 <= expression.value <= len(select_list):
                raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, expression.to_sql())
            return
        self._validate_expression(expression)

    @staticmethod
    def _output_names(select_list: List[SqlNode]) -> Dict[str, SqlNode]:
        """Names ORDER BY may use to refer to select items"""
        names = {}
        for item in select_list:
            if isinstance(item, SqlBasicCall) and item.kind == SqlKind.AS:
                names[item.operands[1].simple] = item
        return names


def _type_of(node: SqlNode) -> SqlTypeName:
    return getattr(node, 'type_name', None) or SqlTypeName.ANY


def derive_type(call: SqlBasicCall, operand_types: List[SqlTypeName]) -> SqlTypeName:
    """Result type of a call given its operand types"""
    kind = call.kind
    if kind in COMPARISON_KINDS or kind in (SqlKind.AND, SqlKind.OR, SqlKind.NOT,
                                            SqlKind.IS_NULL, SqlKind.IS_NOT_NULL,
                                            SqlKind.LIKE, SqlKind.IN):
        return SqlTypeName.BOOLEAN
    if kind == SqlKind.CAST:
        return operand_types[1] if len(operand_types) > 1 else SqlTypeName.ANY
    if kind == SqlKind.COUNT:
        return SqlTypeName.BIGINT
    if kind == SqlKind.AVG:
        return SqlTypeName.DOUBLE
    if kind in (SqlKind.SUM, SqlKind.MIN, SqlKind.MAX, SqlKind.MINUS_PREFIX):
        return operand_types[0] if operand_types else SqlTypeName.ANY
    if kind in (SqlKind.PLUS, SqlKind.MINUS, SqlKind.TIMES, SqlKind.DIVIDE, SqlKind.MOD):
        return widest_numeric(operand_types)
    return SqlTypeName.ANY


def widest_numeric(types: List[SqlTypeName]) -> SqlTypeName:
    numeric = [t for t in types if t.is_numeric]
    if not numeric:
        return SqlTypeName.ANY
    return max(numeric, key=NUMERIC_TYPES.index)

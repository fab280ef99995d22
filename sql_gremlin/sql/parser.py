"""
SQL Parser using Lark
Transforms SELECT queries into the relational AST
"""

from pathlib import Path
from lark import Lark, Transformer
from lark.exceptions import LarkError

from ..errors import SqlParseError
from .ast_nodes import *


class SqlTransformer(Transformer):
    """Transforms Lark parse tree into AST nodes"""

    # Query structure
    def start(self, items):
        return items[0]

    def select_stmt(self, items):
        distinct, select_list, from_, where, group_by, having, order_by, fetch, offset = items
        return SqlSelect(
            select_list=select_list,
            from_=from_,
            where=where,
            group_by=group_by or [],
            having=having,
            order_by=order_by or [],
            fetch=fetch,
            offset=offset,
            distinct=distinct is True,
        )

    def distinct_marker(self, items):
        return True

    def select_list(self, items):
        return items

    def select_star(self, items):
        return SqlIdentifier(['*'])

    def select_table_star(self, items):
        return SqlIdentifier([items[0], '*'])

    def select_expression(self, items):
        expression, alias = items
        if alias is None:
            return expression
        return create_alias(expression, alias)

    def alias(self, items):
        return items[0]

    # FROM and JOIN
    def from_clause(self, items):
        return items[0]

    def table_ref(self, items):
        name, alias = items
        return SqlTableRef(name=name, alias=alias)

    def join(self, items):
        left, join_type, right, condition = items
        return SqlJoin(left=left, join_type=join_type, right=right, condition=condition)

    def comma_join(self, items):
        return SqlJoin(left=items[0], join_type=JoinType.COMMA, right=items[1])

    def inner_join(self, items):
        return JoinType.INNER

    def left_join(self, items):
        return JoinType.LEFT

    def right_join(self, items):
        return JoinType.RIGHT

    def full_join(self, items):
        return JoinType.FULL

    def cross_join(self, items):
        return JoinType.CROSS

    # Clauses
    def where_clause(self, items):
        return items[0]

    def group_clause(self, items):
        return list(items)

    def having_clause(self, items):
        return items[0]

    def order_clause(self, items):
        return list(items)

    def order_item(self, items):
        expression, descending = items
        return SqlOrderItem(expression=expression, descending=descending is True)

    def asc(self, items):
        return False

    def desc(self, items):
        return True

    def limit_clause(self, items):
        return SqlLiteral.create_exact_numeric(str(items[0]))

    def offset_clause(self, items):
        return SqlLiteral.create_exact_numeric(str(items[0]))

    # Expressions
    def or_op(self, items):
        return create_call(SqlStdOperatorTable.OR, items[0], items[1])

    def and_op(self, items):
        return create_call(SqlStdOperatorTable.AND, items[0], items[1])

    def not_op(self, items):
        return create_call(SqlStdOperatorTable.NOT, items[0])

    def comparison(self, items):
        left, operator, right = items
        return create_call(_COMPARISON_OPERATORS[operator], left, right)

    def comp_op(self, items):
        return str(items[0])

    def is_null(self, items):
        return create_call(SqlStdOperatorTable.IS_NULL, items[0])

    def is_not_null(self, items):
        return create_call(SqlStdOperatorTable.IS_NOT_NULL, items[0])

    def like(self, items):
        return create_call(SqlStdOperatorTable.LIKE, items[0], items[1])

    def in_list(self, items):
        return create_call(SqlStdOperatorTable.IN, items[0], SqlNodeList(list(items[1:])))

    def plus(self, items):
        return create_call(SqlStdOperatorTable.PLUS, items[0], items[1])

    def minus(self, items):
        return create_call(SqlStdOperatorTable.MINUS, items[0], items[1])

    def times(self, items):
        return create_call(SqlStdOperatorTable.MULTIPLY, items[0], items[1])

    def divide(self, items):
        return create_call(SqlStdOperatorTable.DIVIDE, items[0], items[1])

    def mod(self, items):
        return create_call(SqlStdOperatorTable.MOD, items[0], items[1])

    def negate(self, items):
        operand = items[0]
        # Fold the sign into numeric literals
        if isinstance(operand, SqlLiteral) and operand.type_name.is_numeric:
            return operand.negate()
        return create_call(SqlStdOperatorTable.UNARY_MINUS, operand)

    def scalar_query(self, items):
        return create_call(SqlStdOperatorTable.SCALAR_QUERY, items[0])

    def column_ref(self, items):
        return SqlIdentifier(list(items))

    def function_invocation(self, items):
        name, distinct, arguments = items
        return SqlBasicCall(
            operator=SqlStdOperatorTable.function(name),
            operands=arguments or [],
            distinct=distinct is True,
        )

    def star_argument(self, items):
        return [SqlIdentifier(['*'])]

    def expression_arguments(self, items):
        return list(items)

    def cast_expression(self, items):
        return create_call(SqlStdOperatorTable.CAST, items[0], items[1])

    def type_spec(self, items):
        type_name = SqlTypeName.lookup(str(items[0]))
        if type_name is None:
            raise SqlParseError(f"Unknown data type: {items[0]}")
        sizes = [int(item) for item in items[1:] if item is not None]
        precision = sizes[0] if sizes else None
        scale = sizes[1] if len(sizes) > 1 else None
        return SqlDataTypeSpec(type_name=type_name, precision=precision, scale=scale)

    # Literals
    def exact_numeric(self, items):
        return SqlLiteral.create_exact_numeric(str(items[0]))

    def approx_numeric(self, items):
        return SqlLiteral.create_approx_numeric(str(items[0]))

    def char_string(self, items):
        # Remove quotes and collapse doubled quotes
        return SqlLiteral.create_char(str(items[0])[1:-1].replace("''", "'"))

    def true_literal(self, items):
        return SqlLiteral.create_boolean(True)

    def false_literal(self, items):
        return SqlLiteral.create_boolean(False)

    def null_literal(self, items):
        return SqlLiteral.create_null()

    def name(self, items):
        token = items[0]
        if token.type == 'QUOTED_NAME':
            return str(token)[1:-1].replace('""', '"')
        return str(token)


_COMPARISON_OPERATORS = {
    '=': SqlStdOperatorTable.EQUALS,
    '<>': SqlStdOperatorTable.NOT_EQUALS,
    '!=': SqlStdOperatorTable.NOT_EQUALS,
    '<': SqlStdOperatorTable.LESS_THAN,
    '>': SqlStdOperatorTable.GREATER_THAN,
    '<=': SqlStdOperatorTable.LESS_THAN_OR_EQUAL,
    '>=': SqlStdOperatorTable.GREATER_THAN_OR_EQUAL,
}


class SqlParser:
    """Main SQL parser class"""

    def __init__(self):
        grammar_path = Path(__file__).parent / "grammar.lark"
        with open(grammar_path, 'r') as f:
            grammar = f.read()

        self.parser = Lark(
            grammar,
            parser='lalr',
            transformer=SqlTransformer(),
            start='start'
        )

    def parse(self, sql_query: str) -> SqlSelect:
        """
        Parse a SQL query into an AST

        Args:
            sql_query: SQL query string

        Returns:
            SqlSelect AST node
        """
        try:
            return self.parser.parse(sql_query)
        except LarkError as e:
            raise SqlParseError(f"Failed to parse SQL query: {e}\nQuery: {sql_query}") from e

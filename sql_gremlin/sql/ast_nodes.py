"""
AST Node Classes for validated SQL queries
Mirrors the relational query tree a SQL validator hands to the translator
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Any, Iterator


class SqlTypeName(Enum):
    """SQL type names"""
    BOOLEAN = "BOOLEAN"
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    DECIMAL = "DECIMAL"
    REAL = "REAL"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    CHAR = "CHAR"
    VARCHAR = "VARCHAR"
    DATE = "DATE"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"
    NULL = "NULL"
    ANY = "ANY"

    @classmethod
    def lookup(cls, name: str) -> Optional['SqlTypeName']:
        """Find a type by name, accepting the usual SQL spellings"""
        upper = name.upper()
        upper = _TYPE_ALIASES.get(upper, upper)
        try:
            return cls(upper)
        except ValueError:
            return None

    @property
    def is_numeric(self) -> bool:
        return self in NUMERIC_TYPES

    @property
    def is_character(self) -> bool:
        return self in (SqlTypeName.CHAR, SqlTypeName.VARCHAR)


_TYPE_ALIASES = {
    'INT': 'INTEGER',
    'BOOL': 'BOOLEAN',
    'NUMERIC': 'DECIMAL',
    'DEC': 'DECIMAL',
    'CHARACTER': 'CHAR',
    'STRING': 'VARCHAR',
    'TEXT': 'VARCHAR',
}

# Ordered narrowest to widest, used for arithmetic result types
NUMERIC_TYPES = [
    SqlTypeName.TINYINT,
    SqlTypeName.SMALLINT,
    SqlTypeName.INTEGER,
    SqlTypeName.BIGINT,
    SqlTypeName.DECIMAL,
    SqlTypeName.REAL,
    SqlTypeName.FLOAT,
    SqlTypeName.DOUBLE,
]


class SqlKind(Enum):
    """Operator kinds"""
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    LESS_THAN = "LESS_THAN"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN_OR_EQUAL = "LESS_THAN_OR_EQUAL"
    GREATER_THAN_OR_EQUAL = "GREATER_THAN_OR_EQUAL"
    AND = "AND"
    OR = "OR"
    NOT = "NOT"
    IS_NULL = "IS_NULL"
    IS_NOT_NULL = "IS_NOT_NULL"
    PLUS = "PLUS"
    MINUS = "MINUS"
    TIMES = "TIMES"
    DIVIDE = "DIVIDE"
    MOD = "MOD"
    MINUS_PREFIX = "MINUS_PREFIX"
    CAST = "CAST"
    COUNT = "COUNT"
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"
    AS = "AS"
    SCALAR_QUERY = "SCALAR_QUERY"
    LIKE = "LIKE"
    IN = "IN"
    OTHER_FUNCTION = "OTHER_FUNCTION"


COMPARISON_KINDS = {
    SqlKind.EQUALS,
    SqlKind.NOT_EQUALS,
    SqlKind.LESS_THAN,
    SqlKind.GREATER_THAN,
    SqlKind.LESS_THAN_OR_EQUAL,
    SqlKind.GREATER_THAN_OR_EQUAL,
}

AGGREGATE_KINDS = {SqlKind.COUNT, SqlKind.SUM, SqlKind.AVG, SqlKind.MIN, SqlKind.MAX}


class SqlSyntax(Enum):
    """How an operator call is written"""
    BINARY = "BINARY"
    PREFIX = "PREFIX"
    POSTFIX = "POSTFIX"
    FUNCTION = "FUNCTION"
    SPECIAL = "SPECIAL"


class JoinType(Enum):
    """Join types"""
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL = "FULL"
    CROSS = "CROSS"
    COMMA = "COMMA"


@dataclass(frozen=True)
class SqlOperator:
    """An operator or function, identified by its kind"""
    name: str
    kind: SqlKind
    syntax: SqlSyntax = SqlSyntax.BINARY

    @property
    def is_aggregate(self) -> bool:
        return self.kind in AGGREGATE_KINDS


class SqlStdOperatorTable:
    """Standard operator instances"""
    EQUALS = SqlOperator('=', SqlKind.EQUALS)
    NOT_EQUALS = SqlOperator('<>', SqlKind.NOT_EQUALS)
    LESS_THAN = SqlOperator('<', SqlKind.LESS_THAN)
    GREATER_THAN = SqlOperator('>', SqlKind.GREATER_THAN)
    LESS_THAN_OR_EQUAL = SqlOperator('<=', SqlKind.LESS_THAN_OR_EQUAL)
    GREATER_THAN_OR_EQUAL = SqlOperator('>=', SqlKind.GREATER_THAN_OR_EQUAL)
    AND = SqlOperator('AND', SqlKind.AND)
    OR = SqlOperator('OR', SqlKind.OR)
    NOT = SqlOperator('NOT', SqlKind.NOT, SqlSyntax.PREFIX)
    IS_NULL = SqlOperator('IS NULL', SqlKind.IS_NULL, SqlSyntax.POSTFIX)
    IS_NOT_NULL = SqlOperator('IS NOT NULL', SqlKind.IS_NOT_NULL, SqlSyntax.POSTFIX)
    PLUS = SqlOperator('+', SqlKind.PLUS)
    MINUS = SqlOperator('-', SqlKind.MINUS)
    MULTIPLY = SqlOperator('*', SqlKind.TIMES)
    DIVIDE = SqlOperator('/', SqlKind.DIVIDE)
    MOD = SqlOperator('%', SqlKind.MOD)
    UNARY_MINUS = SqlOperator('-', SqlKind.MINUS_PREFIX, SqlSyntax.PREFIX)
    CAST = SqlOperator('CAST', SqlKind.CAST, SqlSyntax.SPECIAL)
    COUNT = SqlOperator('COUNT', SqlKind.COUNT, SqlSyntax.FUNCTION)
    SUM = SqlOperator('SUM', SqlKind.SUM, SqlSyntax.FUNCTION)
    AVG = SqlOperator('AVG', SqlKind.AVG, SqlSyntax.FUNCTION)
    MIN = SqlOperator('MIN', SqlKind.MIN, SqlSyntax.FUNCTION)
    MAX = SqlOperator('MAX', SqlKind.MAX, SqlSyntax.FUNCTION)
    AS = SqlOperator('AS', SqlKind.AS)
    SCALAR_QUERY = SqlOperator('SCALAR_QUERY', SqlKind.SCALAR_QUERY, SqlSyntax.SPECIAL)
    LIKE = SqlOperator('LIKE', SqlKind.LIKE)
    IN = SqlOperator('IN', SqlKind.IN)

    @classmethod
    def function(cls, name: str) -> SqlOperator:
        """Operator for a function call by name"""
        upper = name.upper()
        for aggregate in (cls.COUNT, cls.SUM, cls.AVG, cls.MIN, cls.MAX):
            if aggregate.name == upper:
                return aggregate
        return SqlOperator(upper, SqlKind.OTHER_FUNCTION, SqlSyntax.FUNCTION)


# Base AST Node
@dataclass
class SqlNode:
    """Base class for all SQL AST nodes"""

    def to_sql(self) -> str:
        raise NotImplementedError()

    def __str__(self):
        return self.to_sql()


@dataclass
class SqlIdentifier(SqlNode):
    """Column or table reference, possibly qualified, possibly '*'"""
    names: List[str]
    type_name: Optional[SqlTypeName] = None

    @property
    def is_star(self) -> bool:
        return self.names[-1] == '*'

    @property
    def is_simple(self) -> bool:
        return len(self.names) == 1

    @property
    def simple(self) -> str:
        return self.names[-1]

    def to_sql(self) -> str:
        return '.'.join(self.names)


@dataclass(frozen=True)
class CharString:
    """Character constant as held by a CHAR literal"""
    value: str

    def __str__(self):
        return "'" + self.value.replace("'", "''") + "'"


@dataclass
class SqlLiteral(SqlNode):
    """Typed constant value"""
    value: Any
    type_name: SqlTypeName

    @classmethod
    def create_char(cls, value: str) -> 'SqlLiteral':
        return cls(CharString(value), SqlTypeName.CHAR)

    @classmethod
    def create_exact_numeric(cls, text: str) -> 'SqlLiteral':
        if '.' in text:
            return cls(Decimal(text), SqlTypeName.DECIMAL)
        number = int(text)
        type_name = SqlTypeName.INTEGER if -2 ** 31 <= number < 2 ** 31 else SqlTypeName.BIGINT
        return cls(number, type_name)

    @classmethod
    def create_approx_numeric(cls, text: str) -> 'SqlLiteral':
        return cls(float(text), SqlTypeName.DOUBLE)

    @classmethod
    def create_boolean(cls, value: bool) -> 'SqlLiteral':
        return cls(value, SqlTypeName.BOOLEAN)

    @classmethod
    def create_null(cls) -> 'SqlLiteral':
        return cls(None, SqlTypeName.NULL)

    def get_value(self) -> Any:
        """Native constant representation"""
        return self.value

    def to_value(self) -> Optional[str]:
        """String form of the constant, unquoted for character literals"""
        if self.value is None:
            return None
        if isinstance(self.value, CharString):
            return self.value.value
        return str(self.value)

    def negate(self) -> 'SqlLiteral':
        return SqlLiteral(-self.value, self.type_name)

    def to_sql(self) -> str:
        if self.value is None:
            return 'NULL'
        if isinstance(self.value, bool):
            return 'TRUE' if self.value else 'FALSE'
        return str(self.value)


@dataclass
class SqlDataTypeSpec(SqlNode):
    """Target type of a CAST"""
    type_name: SqlTypeName
    precision: Optional[int] = None
    scale: Optional[int] = None

    def to_sql(self) -> str:
        if self.precision is None:
            return self.type_name.value
        if self.scale is None:
            return f"{self.type_name.value}({self.precision})"
        return f"{self.type_name.value}({self.precision}, {self.scale})"


@dataclass
class SqlNodeList(SqlNode):
    """Parenthesized expression list (IN lists)"""
    nodes: List[SqlNode]

    def to_sql(self) -> str:
        return '(' + ', '.join(node.to_sql() for node in self.nodes) + ')'


@dataclass
class SqlBasicCall(SqlNode):
    """Operator or function invocation"""
    operator: SqlOperator
    operands: List[SqlNode]
    distinct: bool = False
    type_name: Optional[SqlTypeName] = None

    @property
    def kind(self) -> SqlKind:
        return self.operator.kind

    def to_sql(self) -> str:
        syntax = self.operator.syntax
        if self.kind == SqlKind.CAST:
            return f"CAST({_operand_sql(self.operands[0])} AS {self.operands[1].to_sql()})"
        if self.kind == SqlKind.SCALAR_QUERY:
            return f"({self.operands[0].to_sql()})"
        if syntax == SqlSyntax.FUNCTION:
            args = ', '.join(operand.to_sql() for operand in self.operands)
            prefix = 'DISTINCT ' if self.distinct else ''
            return f"{self.operator.name}({prefix}{args})"
        if syntax == SqlSyntax.PREFIX and len(self.operands) == 1:
            separator = ' ' if self.operator.name.isalpha() else ''
            return f"{self.operator.name}{separator}{_operand_sql(self.operands[0])}"
        if syntax == SqlSyntax.POSTFIX and len(self.operands) == 1:
            return f"{_operand_sql(self.operands[0])} {self.operator.name}"
        if len(self.operands) == 2:
            return f"{_operand_sql(self.operands[0])} {self.operator.name} {_operand_sql(self.operands[1])}"
        args = ', '.join(operand.to_sql() for operand in self.operands)
        return f"{self.operator.name}({args})"


def _operand_sql(node: SqlNode) -> str:
    """Render a nested operand, bracketing infix sub-expressions"""
    text = node.to_sql()
    if isinstance(node, SqlBasicCall) and node.operator.syntax in (SqlSyntax.BINARY, SqlSyntax.POSTFIX):
        if node.kind != SqlKind.AS:
            return f"({text})"
    return text


# FROM clause
@dataclass
class SqlTableRef(SqlNode):
    """Table in a FROM clause"""
    name: str
    alias: Optional[str] = None

    @property
    def alias_or_name(self) -> str:
        return self.alias or self.name

    def to_sql(self) -> str:
        return f"{self.name} AS {self.alias}" if self.alias else self.name


@dataclass
class SqlJoin(SqlNode):
    """Join of two FROM items"""
    left: SqlNode
    join_type: JoinType
    right: SqlNode
    condition: Optional[SqlNode] = None

    def to_sql(self) -> str:
        if self.join_type == JoinType.COMMA:
            return f"{self.left.to_sql()}, {self.right.to_sql()}"
        text = f"{self.left.to_sql()} {self.join_type.value} JOIN {self.right.to_sql()}"
        if self.condition is not None:
            text += f" ON {self.condition.to_sql()}"
        return text


@dataclass
class SqlOrderItem(SqlNode):
    """Item in ORDER BY clause"""
    expression: SqlNode
    descending: bool = False

    def to_sql(self) -> str:
        return f"{self.expression.to_sql()} {'DESC' if self.descending else 'ASC'}"


@dataclass
class SqlSelect(SqlNode):
    """SELECT statement"""
    select_list: List[SqlNode]
    from_: Optional[SqlNode] = None
    where: Optional[SqlNode] = None
    group_by: List[SqlNode] = field(default_factory=list)
    having: Optional[SqlNode] = None
    order_by: List[SqlOrderItem] = field(default_factory=list)
    fetch: Optional[SqlLiteral] = None
    offset: Optional[SqlLiteral] = None
    distinct: bool = False

    def to_sql(self) -> str:
        parts = ['SELECT']
        if self.distinct:
            parts.append('DISTINCT')
        parts.append(', '.join(item.to_sql() for item in self.select_list))
        if self.from_ is not None:
            parts.append(f"FROM {self.from_.to_sql()}")
        if self.where is not None:
            parts.append(f"WHERE {self.where.to_sql()}")
        if self.group_by:
            parts.append('GROUP BY ' + ', '.join(node.to_sql() for node in self.group_by))
        if self.having is not None:
            parts.append(f"HAVING {self.having.to_sql()}")
        if self.order_by:
            parts.append('ORDER BY ' + ', '.join(item.to_sql() for item in self.order_by))
        if self.fetch is not None:
            parts.append(f"LIMIT {self.fetch.to_sql()}")
        if self.offset is not None:
            parts.append(f"OFFSET {self.offset.to_sql()}")
        return ' '.join(parts)


# Helper functions for tree inspection
def iter_expression(node: SqlNode) -> Iterator[SqlNode]:
    """Yield a node and its sub-expressions, not descending into sub-queries"""
    yield node
    if isinstance(node, SqlBasicCall) and node.kind != SqlKind.SCALAR_QUERY:
        for operand in node.operands:
            yield from iter_expression(operand)
    elif isinstance(node, SqlNodeList):
        for child in node.nodes:
            yield from iter_expression(child)


def contains_aggregate(node: Optional[SqlNode]) -> bool:
    """Whether an expression calls an aggregate function"""
    if node is None:
        return False
    return any(
        isinstance(child, SqlBasicCall) and child.operator.is_aggregate
        for child in iter_expression(node)
    )


def create_call(operator: SqlOperator, *operands: SqlNode) -> SqlBasicCall:
    """Helper to create a call node"""
    return SqlBasicCall(operator=operator, operands=list(operands))


def create_alias(expression: SqlNode, alias: str) -> SqlBasicCall:
    """Helper to wrap an expression in an AS call"""
    return SqlBasicCall(operator=SqlStdOperatorTable.AS, operands=[expression, SqlIdentifier([alias])])

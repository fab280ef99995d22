"""
Translation error taxonomy
Every SQL to Gremlin failure surfaces as exactly one ErrorKind
"""

from enum import Enum, auto
from typing import Any, Optional


class ErrorKind(Enum):
    """Closed set of translation failure kinds"""
    OPERANDS_EMPTY = auto()
    OPERANDS_MORE_THAN_TWO = auto()
    OPERAND_COUNT_MISMATCH = auto()
    UNSUPPORTED_OPERAND_TYPE = auto()
    UNSUPPORTED_LITERAL_EXPRESSION = auto()
    UNKNOWN_OPERATOR = auto()
    UNKNOWN_IDENTIFIER = auto()
    UNKNOWN_TABLE = auto()
    AMBIGUOUS_IDENTIFIER = auto()
    OFFSET_NOT_SUPPORTED = auto()
    COLUMN_NOT_GROUPED = auto()
    JOIN_NOT_SUPPORTED = auto()


_MESSAGES = {
    ErrorKind.OPERANDS_EMPTY: "Operator has no operands, one or two are required.",
    ErrorKind.OPERANDS_MORE_THAN_TWO: "Operator has more than two operands, which is not supported.",
    ErrorKind.OPERAND_COUNT_MISMATCH: "Operator '{0}' expects {1} operand(s) but received {2}.",
    ErrorKind.UNSUPPORTED_OPERAND_TYPE: "Operand type '{0}' is not supported.",
    ErrorKind.UNSUPPORTED_LITERAL_EXPRESSION: "Selecting literal expressions without a FROM clause is not supported.",
    ErrorKind.UNKNOWN_OPERATOR: "Unknown operator '{0}', it has no traversal translation.",
    ErrorKind.UNKNOWN_IDENTIFIER: "Unknown identifier '{0}'.",
    ErrorKind.UNKNOWN_TABLE: "Unknown table '{0}'.",
    ErrorKind.AMBIGUOUS_IDENTIFIER: "Identifier '{0}' is ambiguous.",
    ErrorKind.OFFSET_NOT_SUPPORTED: "OFFSET is not supported.",
    ErrorKind.COLUMN_NOT_GROUPED: "Column '{0}' must appear in the GROUP BY clause or be used in an aggregate function.",
    ErrorKind.JOIN_NOT_SUPPORTED: "Join is not supported: {0}.",
}

# Kinds that describe a SQL feature this translator deliberately does not cover
_NOT_SUPPORTED = {
    ErrorKind.UNSUPPORTED_OPERAND_TYPE,
    ErrorKind.UNSUPPORTED_LITERAL_EXPRESSION,
    ErrorKind.OFFSET_NOT_SUPPORTED,
    ErrorKind.JOIN_NOT_SUPPORTED,
}


def format_message(kind: ErrorKind, *args: Any) -> str:
    """Render the fixed message template for an error kind"""
    return _MESSAGES[kind].format(*args)


class SqlGremlinError(Exception):
    """A SQL to Gremlin translation failure"""

    def __init__(self, kind: ErrorKind, *args: Any):
        self.kind = kind
        self.arguments = args
        self.clause: Optional[str] = None
        super().__init__(format_message(kind, *args))

    @staticmethod
    def create(kind: ErrorKind, *args: Any) -> 'SqlGremlinError':
        """Build the error for a kind, picking the not-supported subclass where it applies"""
        if kind in _NOT_SUPPORTED:
            return SqlGremlinNotSupportedError(kind, *args)
        return SqlGremlinError(kind, *args)

    def with_clause(self, clause: str) -> 'SqlGremlinError':
        """Attach the enclosing clause, keeping the innermost one"""
        if self.clause is None:
            self.clause = clause
        return self

    def __str__(self):
        message = super().__str__()
        if self.clause:
            return f"{message} (in {self.clause} clause)"
        return message


class SqlGremlinNotSupportedError(SqlGremlinError):
    """Raised when the query uses a SQL feature with no Gremlin translation"""


class SqlParseError(ValueError):
    """Raised when SQL text does not match the supported grammar"""

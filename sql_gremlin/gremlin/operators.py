"""
Operator nodes
Each operator appends its Gremlin rendering onto the traversal under construction
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Type

from ..errors import ErrorKind, SqlGremlinError
from ..sql.ast_nodes import (
    SqlBasicCall,
    SqlDataTypeSpec,
    SqlIdentifier,
    SqlKind,
    SqlLiteral,
    SqlNode,
    SqlTypeName,
)
from ..traversal import P, Traversal, anonymous
from .metadata import SqlMetadata
from .operands import (
    GremlinSqlBasicCall,
    GremlinSqlDataType,
    GremlinSqlIdentifier,
    GremlinSqlLiteral,
    GremlinSqlNode,
)

logger = logging.getLogger(__name__)


class GremlinSqlOperator(ABC):
    """
    Base class for operator nodes

    Subclasses implement append_traversal. Callers always go through
    append_operator_traversal, which checks the operand count and only
    touches the caller's traversal once the whole operator compiled.
    """

    # Predicates are compiled as filters; everything else produces a value
    IS_PREDICATE = False

    def __init__(self, sql_call: SqlBasicCall, operands: List[GremlinSqlNode], metadata: SqlMetadata):
        self.sql_call = sql_call
        self.operands = operands
        self.metadata = metadata

    @property
    def name(self) -> str:
        return self.sql_call.operator.name

    @property
    def kind(self) -> SqlKind:
        return self.sql_call.kind

    def append_operator_traversal(self, traversal: Traversal):
        if len(self.operands) > 2:
            raise SqlGremlinError.create(ErrorKind.OPERANDS_MORE_THAN_TWO)
        if not self.operands:
            raise SqlGremlinError.create(ErrorKind.OPERANDS_EMPTY)

        steps = anonymous()
        self.append_traversal(steps)
        traversal.extend(steps)

    @abstractmethod
    def append_traversal(self, traversal: Traversal):
        """Append the operator-specific steps"""

    def get_operand_name(self, operand: GremlinSqlNode) -> str:
        return get_operand_name(operand)

    def _expect_operands(self, count: int):
        if len(self.operands) != count:
            raise SqlGremlinError.create(ErrorKind.OPERAND_COUNT_MISMATCH, self.name, count, len(self.operands))


class GremlinSqlComparisonOperator(GremlinSqlOperator):
    """=, <>, <, >, <=, >="""

    IS_PREDICATE = True

    PREDICATES = {
        SqlKind.EQUALS: P.eq,
        SqlKind.NOT_EQUALS: P.neq,
        SqlKind.LESS_THAN: P.lt,
        SqlKind.GREATER_THAN: P.gt,
        SqlKind.LESS_THAN_OR_EQUAL: P.lte,
        SqlKind.GREATER_THAN_OR_EQUAL: P.gte,
    }

    # Same comparison with the operands swapped
    FLIPPED = {
        SqlKind.EQUALS: SqlKind.EQUALS,
        SqlKind.NOT_EQUALS: SqlKind.NOT_EQUALS,
        SqlKind.LESS_THAN: SqlKind.GREATER_THAN,
        SqlKind.GREATER_THAN: SqlKind.LESS_THAN,
        SqlKind.LESS_THAN_OR_EQUAL: SqlKind.GREATER_THAN_OR_EQUAL,
        SqlKind.GREATER_THAN_OR_EQUAL: SqlKind.LESS_THAN_OR_EQUAL,
    }

    def append_traversal(self, traversal: Traversal):
        self._expect_operands(2)
        left, right = self.operands
        kind = self.kind
        if isinstance(left, GremlinSqlLiteral) and not isinstance(right, GremlinSqlLiteral):
            left, right = right, left
            kind = self.FLIPPED[kind]
        predicate = self.PREDICATES[kind]

        if isinstance(right, GremlinSqlLiteral):
            if (isinstance(left, GremlinSqlIdentifier) and self.metadata.is_row_context
                    and right.value() is not None):
                step_label, property_name = left.resolve()
                element_filter = anonymous().has(property_name, predicate(right.value()))
                self.metadata.append_element_filter(traversal, step_label, element_filter)
            else:
                traversal.where(left.value_traversal().is_(predicate(right.value())))
            return

        traversal.where(
            anonymous().project('lhs', 'rhs')
            .by(left.value_traversal())
            .by(right.value_traversal())
            .where('lhs', predicate('rhs'))
        )


class GremlinSqlNullCheckOperator(GremlinSqlOperator):
    """IS NULL, IS NOT NULL"""

    IS_PREDICATE = True

    def append_traversal(self, traversal: Traversal):
        self._expect_operands(1)
        operand = self.operands[0]
        is_null = self.kind == SqlKind.IS_NULL

        if not is_null:
            append_not_null(traversal, operand, self.metadata)
        elif isinstance(operand, GremlinSqlIdentifier) and self.metadata.is_row_context:
            step_label, property_name = operand.resolve()
            element_filter = anonymous().has_not(property_name)
            self.metadata.append_element_filter(traversal, step_label, element_filter)
        else:
            traversal.not_(operand.value_traversal())


class GremlinSqlBooleanOperator(GremlinSqlOperator):
    """AND, OR, NOT"""

    IS_PREDICATE = True

    def append_traversal(self, traversal: Traversal):
        if self.kind == SqlKind.NOT:
            self._expect_operands(1)
            operand = self.operands[0]
            # NOT of a NULL condition is not TRUE either
            for value in self._nullable_inputs(operand):
                append_not_null(traversal, value, self.metadata)
            traversal.not_(self._child_filter(operand))
            return

        self._expect_operands(2)
        children = [self._child_filter(operand) for operand in self.operands]
        if self.kind == SqlKind.AND:
            traversal.and_(*children)
        else:
            traversal.or_(*children)

    @staticmethod
    def _nullable_inputs(operand: GremlinSqlNode) -> List[GremlinSqlNode]:
        """Operands whose NULL makes this condition NULL"""
        if isinstance(operand, GremlinSqlIdentifier):
            return [operand]
        if isinstance(operand, GremlinSqlBasicCall) and isinstance(operand.operator, GremlinSqlComparisonOperator):
            return [value for value in operand.operator.operands if not isinstance(value, GremlinSqlLiteral)]
        return []

    @staticmethod
    def _child_filter(operand: GremlinSqlNode) -> Traversal:
        child = anonymous()
        operand.append_filter(child)
        return child


class GremlinSqlArithmeticOperator(GremlinSqlOperator):
    """+, -, *, /, % and unary minus, evaluated with the math() step"""

    SYMBOLS = {
        SqlKind.PLUS: '+',
        SqlKind.MINUS: '-',
        SqlKind.TIMES: '*',
        SqlKind.DIVIDE: '/',
        SqlKind.MOD: '%',
    }

    def append_traversal(self, traversal: Traversal):
        if self.kind == SqlKind.MINUS_PREFIX:
            self._expect_operands(1)
            self.operands[0].append_traversal(traversal)
            traversal.math('-_')
            return

        self._expect_operands(2)
        left, right = self.operands
        traversal.project('lhs', 'rhs') \
            .by(left.value_traversal()) \
            .by(right.value_traversal()) \
            .math(f"lhs {self.SYMBOLS[self.kind]} rhs")


class GremlinSqlCastOperator(GremlinSqlOperator):
    """CAST(expr AS type)"""

    def append_traversal(self, traversal: Traversal):
        self._expect_operands(2)
        operand, target = self.operands
        if not isinstance(target, GremlinSqlDataType):
            raise SqlGremlinError.create(ErrorKind.UNSUPPORTED_OPERAND_TYPE, type(target).__name__)

        target_type = target.type_name
        source_type = operand.type_name
        if target_type == SqlTypeName.VARCHAR:
            operand.append_traversal(traversal)
            if source_type != SqlTypeName.VARCHAR:
                traversal.as_string()
        elif target_type == source_type:
            operand.append_traversal(traversal)
        else:
            logger.debug(f"No traversal for CAST from {source_type.value} to {target_type.value}")
            raise SqlGremlinError.create(ErrorKind.UNKNOWN_OPERATOR, self.name)


class GremlinSqlAggregateOperator(GremlinSqlOperator):
    """COUNT, SUM, AVG, MIN, MAX over the rows of the current group"""

    def append_traversal(self, traversal: Traversal):
        self._expect_operands(1)
        if not self.metadata.is_grouped or self.metadata.in_aggregate:
            raise SqlGremlinError.create(ErrorKind.UNKNOWN_OPERATOR, self.name)

        operand = self.operands[0]
        self.metadata.append_group_rows(traversal)
        if isinstance(operand, GremlinSqlIdentifier) and operand.is_star():
            if self.kind != SqlKind.COUNT:
                raise SqlGremlinError.create(ErrorKind.UNSUPPORTED_OPERAND_TYPE, operand.column_name())
        else:
            with self.metadata.aggregate_scope():
                operand.append_traversal(traversal)
            if self.sql_call.distinct:
                traversal.dedup()

        if self.kind == SqlKind.COUNT:
            traversal.count()
        elif self.kind == SqlKind.SUM:
            traversal.sum_()
        elif self.kind == SqlKind.AVG:
            traversal.mean()
        elif self.kind == SqlKind.MIN:
            traversal.min_()
        else:
            traversal.max_()


class GremlinSqlUnsupportedOperator(GremlinSqlOperator):
    """Any operator without a traversal translation"""

    def append_traversal(self, traversal: Traversal):
        raise SqlGremlinError.create(ErrorKind.UNKNOWN_OPERATOR, self.name)


_OPERATOR_CLASSES: Dict[SqlKind, Type[GremlinSqlOperator]] = {
    SqlKind.EQUALS: GremlinSqlComparisonOperator,
    SqlKind.NOT_EQUALS: GremlinSqlComparisonOperator,
    SqlKind.LESS_THAN: GremlinSqlComparisonOperator,
    SqlKind.GREATER_THAN: GremlinSqlComparisonOperator,
    SqlKind.LESS_THAN_OR_EQUAL: GremlinSqlComparisonOperator,
    SqlKind.GREATER_THAN_OR_EQUAL: GremlinSqlComparisonOperator,
    SqlKind.IS_NULL: GremlinSqlNullCheckOperator,
    SqlKind.IS_NOT_NULL: GremlinSqlNullCheckOperator,
    SqlKind.AND: GremlinSqlBooleanOperator,
    SqlKind.OR: GremlinSqlBooleanOperator,
    SqlKind.NOT: GremlinSqlBooleanOperator,
    SqlKind.PLUS: GremlinSqlArithmeticOperator,
    SqlKind.MINUS: GremlinSqlArithmeticOperator,
    SqlKind.TIMES: GremlinSqlArithmeticOperator,
    SqlKind.DIVIDE: GremlinSqlArithmeticOperator,
    SqlKind.MOD: GremlinSqlArithmeticOperator,
    SqlKind.MINUS_PREFIX: GremlinSqlArithmeticOperator,
    SqlKind.CAST: GremlinSqlCastOperator,
    SqlKind.COUNT: GremlinSqlAggregateOperator,
    SqlKind.SUM: GremlinSqlAggregateOperator,
    SqlKind.AVG: GremlinSqlAggregateOperator,
    SqlKind.MIN: GremlinSqlAggregateOperator,
    SqlKind.MAX: GremlinSqlAggregateOperator,
}


def append_not_null(traversal: Traversal, operand: GremlinSqlNode, metadata: SqlMetadata):
    """Append a filter keeping rows where the operand has a value"""
    if isinstance(operand, GremlinSqlIdentifier) and metadata.is_row_context:
        step_label, property_name = operand.resolve()
        metadata.append_element_filter(traversal, step_label, anonymous().has(property_name))
    else:
        traversal.where(operand.value_traversal())


def create_operator(sql_call: SqlBasicCall, metadata: SqlMetadata) -> GremlinSqlOperator:
    """Build the operator node for a call, wrapping its operands"""
    operator_class = _OPERATOR_CLASSES.get(sql_call.kind, GremlinSqlUnsupportedOperator)
    if operator_class is GremlinSqlUnsupportedOperator:
        # Operands of untranslatable calls (sub-queries, IN lists) are never compiled
        return GremlinSqlUnsupportedOperator(sql_call, list(sql_call.operands), metadata)
    operands = [wrap_operand(operand, metadata) for operand in sql_call.operands]
    return operator_class(sql_call, operands, metadata)


def wrap_operand(node: SqlNode, metadata: SqlMetadata) -> GremlinSqlNode:
    """Wrap one AST node as an operand node"""
    if isinstance(node, SqlIdentifier):
        return GremlinSqlIdentifier(node, metadata)
    if isinstance(node, SqlLiteral):
        return GremlinSqlLiteral(node, metadata)
    if isinstance(node, SqlBasicCall):
        return GremlinSqlBasicCall(node, create_operator(node, metadata), metadata)
    if isinstance(node, SqlDataTypeSpec):
        return GremlinSqlDataType(node, metadata)
    raise SqlGremlinError.create(ErrorKind.UNSUPPORTED_OPERAND_TYPE, type(node).__name__)


def get_operand_name(operand) -> str:
    """
    Display name of an operand

    Returns '*' for a wildcard identifier and the column name for any other
    identifier, the string form of a literal's value, and the rename of a
    nested call. Any other operand kind is rejected.
    """
    if isinstance(operand, GremlinSqlIdentifier):
        return '*' if operand.is_star() else operand.column_name()
    if isinstance(operand, GremlinSqlLiteral):
        value = operand.value()
        if value is None:
            return 'NULL'
        if isinstance(value, bool):
            return 'TRUE' if value else 'FALSE'
        return str(value)
    if isinstance(operand, GremlinSqlBasicCall):
        return operand.rename
    raise SqlGremlinError.create(ErrorKind.UNSUPPORTED_OPERAND_TYPE, type(operand).__name__)

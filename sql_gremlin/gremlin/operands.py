"""
Operand nodes
Wrappers over AST leaves and nested calls that render themselves into traversals
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple, TYPE_CHECKING

from ..errors import ErrorKind, SqlGremlinError
from ..sql.ast_nodes import (
    SqlBasicCall,
    SqlDataTypeSpec,
    SqlIdentifier,
    SqlLiteral,
    SqlNode,
    SqlTypeName,
)
from ..traversal import P, Traversal, anonymous
from .metadata import SqlMetadata

if TYPE_CHECKING:
    from .operators import GremlinSqlOperator


class GremlinSqlNode(ABC):
    """Base class for operand nodes"""

    def __init__(self, sql_node: SqlNode, metadata: SqlMetadata):
        self.sql_node = sql_node
        self.metadata = metadata

    @abstractmethod
    def append_traversal(self, traversal: Traversal):
        """Append the steps producing this operand's value"""

    def value_traversal(self) -> Traversal:
        traversal = anonymous()
        self.append_traversal(traversal)
        return traversal

    def append_filter(self, traversal: Traversal):
        """Append a filter keeping rows where this operand is TRUE"""
        traversal.where(self.value_traversal().is_(P.eq(True)))

    @property
    def type_name(self) -> SqlTypeName:
        return getattr(self.sql_node, 'type_name', None) or SqlTypeName.ANY


class GremlinSqlIdentifier(GremlinSqlNode):
    """Column reference, or the '*' placeholder of COUNT(*)"""

    def __init__(self, sql_identifier: SqlIdentifier, metadata: SqlMetadata):
        super().__init__(sql_identifier, metadata)
        self.sql_identifier = sql_identifier

    def is_star(self) -> bool:
        return self.sql_identifier.is_star

    def column_name(self) -> str:
        return self.sql_identifier.simple

    def resolve(self) -> Tuple[str, str]:
        """Return (step label, property name) for this column"""
        binding, property_name = self.metadata.resolve_identifier(self.sql_identifier)
        return binding.step_label, property_name

    def append_traversal(self, traversal: Traversal):
        self.metadata.append_column(traversal, self.sql_identifier)

    @property
    def type_name(self) -> SqlTypeName:
        if self.sql_identifier.type_name is not None:
            return self.sql_identifier.type_name
        return self.metadata.resolve_type(self.sql_identifier)


class GremlinSqlLiteral(GremlinSqlNode):
    """Typed constant"""

    def __init__(self, sql_literal: SqlLiteral, metadata: SqlMetadata):
        super().__init__(sql_literal, metadata)
        self.sql_literal = sql_literal

    def value(self) -> Any:
        # Character constants are held wrapped, everything else natively
        if self.sql_literal.type_name == SqlTypeName.CHAR:
            return self.sql_literal.to_value()
        return self.sql_literal.get_value()

    def append_traversal(self, traversal: Traversal):
        traversal.constant(self.value())

    @property
    def type_name(self) -> SqlTypeName:
        return self.sql_literal.type_name


class GremlinSqlBasicCall(GremlinSqlNode):
    """Nested expression: an operator applied to operand nodes"""

    def __init__(self, sql_call: SqlBasicCall, operator: 'GremlinSqlOperator',
                 metadata: SqlMetadata, rename: Optional[str] = None):
        super().__init__(sql_call, metadata)
        self.sql_call = sql_call
        self.operator = operator
        self.rename = rename or sql_call.to_sql()

    @property
    def source_text(self) -> str:
        return self.sql_call.to_sql()

    @property
    def is_aggregate(self) -> bool:
        return self.sql_call.operator.is_aggregate

    def append_traversal(self, traversal: Traversal):
        if self.metadata.is_group_key(self.source_text):
            self.metadata.append_group_key(traversal, self.source_text)
        elif self.operator.IS_PREDICATE:
            condition = anonymous()
            self.operator.append_operator_traversal(condition)
            traversal.choose(condition, anonymous().constant(True), anonymous().constant(False))
        else:
            self.operator.append_operator_traversal(traversal)

    def append_filter(self, traversal: Traversal):
        if self.operator.IS_PREDICATE:
            self.operator.append_operator_traversal(traversal)
        else:
            super().append_filter(traversal)


class GremlinSqlDataType(GremlinSqlNode):
    """Target type operand of CAST"""

    def __init__(self, sql_type: SqlDataTypeSpec, metadata: SqlMetadata):
        super().__init__(sql_type, metadata)
        self.sql_type = sql_type

    def append_traversal(self, traversal: Traversal):
        raise SqlGremlinError.create(ErrorKind.UNSUPPORTED_OPERAND_TYPE, type(self).__name__)

    @property
    def type_name(self) -> SqlTypeName:
        return self.sql_type.type_name

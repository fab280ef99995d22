"""
SQL to Gremlin translator core
Operand and operator nodes, the per-query metadata state and the SELECT translator
"""

from .metadata import SqlMetadata
from .operands import (
    GremlinSqlNode,
    GremlinSqlIdentifier,
    GremlinSqlLiteral,
    GremlinSqlBasicCall,
    GremlinSqlDataType,
)
from .operators import (
    GremlinSqlOperator,
    create_operator,
    get_operand_name,
    wrap_operand,
)
from .select import GremlinSqlSelect

__all__ = [
    'SqlMetadata',
    'GremlinSqlNode',
    'GremlinSqlIdentifier',
    'GremlinSqlLiteral',
    'GremlinSqlBasicCall',
    'GremlinSqlDataType',
    'GremlinSqlOperator',
    'GremlinSqlSelect',
    'create_operator',
    'get_operand_name',
    'wrap_operand',
]

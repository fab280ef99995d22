"""
SQL to Gremlin

Translates relational SELECT queries into Gremlin traversals over a property graph.
"""

from .catalog import (
    ColumnMapping,
    Direction,
    JoinEdge,
    JoinPath,
    SchemaCatalog,
    TableKind,
    TableMapping,
)
from .converter import SqlConverter
from .errors import (
    ErrorKind,
    SqlGremlinError,
    SqlGremlinNotSupportedError,
    SqlParseError,
)
from .result import (
    NULL_SENTINEL,
    ColumnDescriptor,
    SqlGremlinQuery,
    materialize_rows,
)
from .traversal import Traversal

__version__ = "0.1.0"

__all__ = [
    "SqlConverter",
    "SchemaCatalog",
    "TableMapping",
    "ColumnMapping",
    "JoinEdge",
    "JoinPath",
    "TableKind",
    "Direction",
    "ErrorKind",
    "SqlGremlinError",
    "SqlGremlinNotSupportedError",
    "SqlParseError",
    "SqlGremlinQuery",
    "ColumnDescriptor",
    "NULL_SENTINEL",
    "materialize_rows",
    "Traversal",
]

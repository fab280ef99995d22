"""
SQL to Gremlin converter
Parses, validates and translates SELECT queries against a schema catalog
"""

import logging
from typing import Optional

from .catalog import SchemaCatalog
from .errors import SqlGremlinError
from .gremlin import GremlinSqlSelect, SqlMetadata
from .result import SqlGremlinQuery
from .sql import SqlParser, SqlValidator
from .sql.ast_nodes import SqlSelect

logger = logging.getLogger(__name__)


class SqlConverter:
    """
    Full SQL to Gremlin translator

    The catalog is the only state shared between conversions; every call
    compiles against its own SqlMetadata.
    """

    def __init__(self, catalog: SchemaCatalog, traversal_source: str = 'g',
                 max_rows: Optional[int] = None):
        self.catalog = catalog
        self.traversal_source = traversal_source
        self.max_rows = max_rows
        self.parser = SqlParser()

    def convert(self, sql_query: str) -> SqlGremlinQuery:
        """
        Translate a SQL query into a Gremlin traversal

        Args:
            sql_query: SELECT statement text

        Returns:
            SqlGremlinQuery with the traversal and its output columns
        """
        select = self.parser.parse(sql_query)
        try:
            SqlValidator(self.catalog).validate(select)
            query = self.convert_select(select)
        except SqlGremlinError as e:
            logger.warning(f"Failed to translate SQL query: {e}\nQuery: {sql_query}")
            raise

        logger.debug(f"Translated SQL to Gremlin:\n{sql_query}\n->\n{query.to_gremlin()}")
        return query

    def convert_select(self, select: SqlSelect) -> SqlGremlinQuery:
        """Translate an already validated SELECT tree"""
        metadata = SqlMetadata(self.catalog)
        traversal = GremlinSqlSelect(
            select,
            metadata,
            traversal_source=self.traversal_source,
            max_rows=self.max_rows,
        ).generate_traversal()
        return SqlGremlinQuery(traversal=traversal, columns=metadata.column_descriptors())

    def explain(self, sql_query: str) -> str:
        """Gremlin-Groovy text of the translated query"""
        return self.convert(sql_query).to_gremlin()

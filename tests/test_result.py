"""
Test suite for the column-ordering contract and row materializer
"""

import sys
import unittest
from pathlib import Path

# Add parent directory to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from graphs import space_catalog
from sql_gremlin import NULL_SENTINEL, ColumnDescriptor, SqlConverter, materialize_rows
from sql_gremlin.sql.ast_nodes import SqlTypeName


class TestMaterializeRows(unittest.TestCase):
    """Test building relational rows from traversal results"""

    def setUp(self):
        self.columns = [
            ColumnDescriptor('name', SqlTypeName.VARCHAR),
            ColumnDescriptor('age', SqlTypeName.INTEGER),
        ]

    def test_column_order(self):
        """Test values follow column order, not result key order"""
        rows = materialize_rows(self.columns, [{'age': 29, 'name': 'marko'}])

        self.assertEqual(rows, [('marko', 29)])

    def test_null_sentinel(self):
        """Test the null sentinel and missing keys become None"""
        rows = materialize_rows(self.columns, [
            {'name': 'vadas', 'age': NULL_SENTINEL},
            {'name': 'josh'},
        ])

        self.assertEqual(rows, [('vadas', None), ('josh', None)])

    def test_empty_results(self):
        self.assertEqual(materialize_rows(self.columns, []), [])

    def test_query_materialize(self):
        """Test a translated query materializes with its own columns"""
        query = SqlConverter(space_catalog()).convert("SELECT age AS years, name FROM person")

        rows = query.materialize([{'name': 'peter', 'years': 35}])

        self.assertEqual(rows, [(35, 'peter')])


if __name__ == '__main__':
    unittest.main()

"""
Test suite for the SQL validator
"""

import sys
import unittest
from pathlib import Path

# Add parent directory to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from graphs import space_catalog
from sql_gremlin import ErrorKind, SqlGremlinError
from sql_gremlin.sql import SqlParser, SqlValidator
from sql_gremlin.sql.ast_nodes import *


class TestSqlValidator(unittest.TestCase):
    """Test name resolution and type derivation"""

    def setUp(self):
        self.parser = SqlParser()
        self.catalog = space_catalog()

    def validate(self, sql: str) -> SqlSelect:
        return SqlValidator(self.catalog).validate(self.parser.parse(sql))

    def assertErrorKind(self, sql: str, kind: ErrorKind) -> SqlGremlinError:
        with self.assertRaises(SqlGremlinError) as context:
            self.validate(sql)
        self.assertEqual(context.exception.kind, kind)
        return context.exception

    def test_qualifies_identifiers(self):
        """Test bare columns are qualified with their table alias"""
        select = self.validate("SELECT name FROM person WHERE age > 3")

        self.assertEqual(select.select_list[0].names, ['person', 'name'])
        self.assertEqual(select.where.operands[0].names, ['person', 'age'])

    def test_column_names_case_insensitive(self):
        """Test column lookup ignores case and keeps the catalog spelling"""
        select = self.validate("SELECT WENTTOSPACE FROM Person")

        self.assertEqual(select.select_list[0].names, ['Person', 'wentToSpace'])

    def test_identifier_types(self):
        """Test identifier types come from the catalog"""
        select = self.validate("SELECT name, age, wentToSpace FROM person")

        types = [item.type_name for item in select.select_list]
        self.assertEqual(types, [SqlTypeName.VARCHAR, SqlTypeName.INTEGER, SqlTypeName.BOOLEAN])

    def test_expand_star(self):
        """Test SELECT * expands to every column"""
        select = self.validate("SELECT * FROM spaceship")

        names = [item.to_sql() for item in select.select_list]
        self.assertEqual(names, ['spaceship.model', 'spaceship.manufacturer', 'spaceship.capacity'])

    def test_expand_table_star(self):
        """Test SELECT t.* expands only that table"""
        select = self.validate(
            "SELECT s.* FROM person p JOIN spaceship s ON p.name = s.model"
        )

        self.assertEqual(len(select.select_list), 3)
        self.assertTrue(all(item.names[0] == 's' for item in select.select_list))

    def test_unknown_table(self):
        """Test unknown table names"""
        error = self.assertErrorKind("SELECT name FROM starship", ErrorKind.UNKNOWN_TABLE)
        self.assertEqual(error.arguments, ('starship',))

    def test_unknown_column(self):
        """Test unknown column names"""
        self.assertErrorKind("SELECT height FROM person", ErrorKind.UNKNOWN_IDENTIFIER)

    def test_unknown_alias(self):
        """Test column qualified with an unknown alias"""
        self.assertErrorKind("SELECT x.name FROM person p", ErrorKind.UNKNOWN_IDENTIFIER)

    def test_ambiguous_column(self):
        """Test a bare column present in two joined tables"""
        self.assertErrorKind(
            "SELECT name FROM person p JOIN planet pl ON p.name = pl.name",
            ErrorKind.AMBIGUOUS_IDENTIFIER
        )

    def test_duplicate_alias(self):
        """Test the same alias bound twice"""
        self.assertErrorKind(
            "SELECT p.name FROM person p JOIN person p ON p.name = p.name",
            ErrorKind.AMBIGUOUS_IDENTIFIER
        )

    def test_derived_types(self):
        """Test call result types"""
        select = self.validate(
            "SELECT COUNT(*), AVG(age), SUM(age), age + 1, age * 1.5, age > 3, "
            "CAST(age AS VARCHAR) FROM person GROUP BY age"
        )

        types = [item.type_name for item in select.select_list]
        self.assertEqual(types, [
            SqlTypeName.BIGINT,
            SqlTypeName.DOUBLE,
            SqlTypeName.INTEGER,
            SqlTypeName.INTEGER,
            SqlTypeName.DECIMAL,
            SqlTypeName.BOOLEAN,
            SqlTypeName.VARCHAR,
        ])

    def test_alias_takes_expression_type(self):
        """Test AS keeps the aliased expression's type"""
        select = self.validate("SELECT age AS years FROM person")

        self.assertEqual(select.select_list[0].type_name, SqlTypeName.INTEGER)

    def test_order_by_alias(self):
        """Test ORDER BY may name a select alias"""
        select = self.validate("SELECT age AS years FROM person ORDER BY years")

        expression = select.order_by[0].expression
        self.assertEqual(expression.names, ['years'])
        self.assertEqual(expression.type_name, SqlTypeName.INTEGER)

    def test_order_by_ordinal(self):
        """Test ORDER BY ordinals within range"""
        self.validate("SELECT name, age FROM person ORDER BY 2")
        self.assertErrorKind("SELECT name, age FROM person ORDER BY 3", ErrorKind.UNKNOWN_IDENTIFIER)

    def test_scalar_sub_query_scope(self):
        """Test sub-queries are validated in their own scope"""
        select = self.validate(
            "SELECT name FROM person WHERE age = (SELECT moons FROM planet WHERE name = 'Mars')"
        )

        sub_query = select.where.operands[1]
        self.assertEqual(sub_query.type_name, SqlTypeName.INTEGER)
        self.assertEqual(sub_query.operands[0].select_list[0].names, ['planet', 'moons'])

    def test_literal_select_without_from(self):
        """Test SELECT without FROM validates literals only"""
        select = self.validate("SELECT CAST(17 AS varchar)")

        self.assertEqual(select.select_list[0].type_name, SqlTypeName.VARCHAR)


if __name__ == '__main__':
    unittest.main()

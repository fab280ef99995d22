"""
Test suite for the SELECT translator
"""

import sys
import unittest
from pathlib import Path

# Add parent directory to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from graphs import space_catalog
from sql_gremlin import ColumnDescriptor, ErrorKind, SqlConverter, SqlGremlinError
from sql_gremlin.sql.ast_nodes import SqlTypeName


def by(value: str) -> str:
    """Projection modulator for one output column"""
    return f".by(__.coalesce({value}, __.constant('$%#NULL#%$')))"


def sort_key(value: str, direction: str) -> str:
    """ORDER BY modulator for one sort key"""
    return f".by(__.coalesce({value}, __.constant(null)), {direction})"


def group_key(name: str) -> str:
    """Group key read back in group context"""
    return f"__.select(keys).select('{name}').is(neq('$%#NULL#%$'))"


class TranslatorTestCase(unittest.TestCase):

    def setUp(self):
        self.catalog = space_catalog()
        self.converter = SqlConverter(self.catalog)

    def assertGremlin(self, sql: str, expected: str):
        self.assertEqual(self.converter.explain(sql), expected)

    def assertErrorKind(self, sql: str, kind: ErrorKind) -> SqlGremlinError:
        with self.assertRaises(SqlGremlinError) as context:
            self.converter.convert(sql)
        self.assertEqual(context.exception.kind, kind)
        return context.exception


class TestSingleTable(TranslatorTestCase):
    """Test FROM, WHERE and projection over one table"""

    def test_select_where(self):
        """Test filter and projection"""
        self.assertGremlin(
            "SELECT name, age FROM person WHERE age > 30",
            "g.V().hasLabel('person').as('person').has('age', gt(30))"
            ".project('name', 'age')" + by("__.values('name')") + by("__.values('age')")
        )

    def test_output_columns(self):
        """Test the column-ordering contract"""
        query = self.converter.convert("SELECT age, name AS who, wentToSpace FROM person")

        self.assertEqual(query.columns, [
            ColumnDescriptor('age', SqlTypeName.INTEGER),
            ColumnDescriptor('who', SqlTypeName.VARCHAR),
            ColumnDescriptor('wentToSpace', SqlTypeName.BOOLEAN),
        ])
        self.assertEqual(query.column_names, ['age', 'who', 'wentToSpace'])

    def test_select_star(self):
        """Test SELECT * projects every catalog column in order"""
        query = self.converter.convert("SELECT * FROM planet")

        self.assertEqual(query.column_names, ['name', 'moons', 'gravity'])

    def test_mapped_property(self):
        """Test columns read their mapped graph property"""
        self.assertGremlin(
            "SELECT email FROM person WHERE email = 'a@b.c'",
            "g.V().hasLabel('person').as('person').has('emailAddress', eq('a@b.c'))"
            ".project('email')" + by("__.values('emailAddress')")
        )

    def test_table_alias(self):
        """Test the step label follows the table alias"""
        self.assertGremlin(
            "SELECT p.name FROM person p",
            "g.V().hasLabel('person').as('p').project('name')" + by("__.values('name')")
        )

    def test_edge_table(self):
        """Test edge tables start from E()"""
        self.assertGremlin(
            "SELECT since FROM pilots",
            "g.E().hasLabel('pilots').as('pilots').project('since')" + by("__.values('since')")
        )

    def test_compound_where(self):
        """Test boolean combinations and null checks"""
        self.assertGremlin(
            "SELECT name FROM person WHERE (age >= 18 OR wentToSpace = TRUE) AND email IS NOT NULL",
            "g.V().hasLabel('person').as('person')"
            ".and(__.or(__.has('age', gte(18)), __.has('wentToSpace', eq(true))), __.has('emailAddress'))"
            ".project('name')" + by("__.values('name')")
        )

    def test_literal_on_left(self):
        """Test comparisons written literal first"""
        self.assertGremlin(
            "SELECT name FROM person WHERE 18 <= age",
            "g.V().hasLabel('person').as('person').has('age', gte(18))"
            ".project('name')" + by("__.values('name')")
        )

    def test_expression_columns(self):
        """Test arithmetic, CAST and predicates as projected values"""
        query = self.converter.convert(
            "SELECT age * 2 AS double_age, CAST(age AS VARCHAR), age > 30 FROM person"
        )

        self.assertEqual(
            query.to_gremlin(),
            "g.V().hasLabel('person').as('person')"
            ".project('double_age', 'CAST(person.age AS VARCHAR)', 'person.age > 30')"
            + by("__.project('lhs', 'rhs').by(__.values('age')).by(__.constant(2)).math('lhs * rhs')")
            + by("__.values('age').asString()")
            + by("__.choose(__.has('age', gt(30)), __.constant(true), __.constant(false))")
        )
        self.assertEqual(
            [column.type_name for column in query.columns],
            [SqlTypeName.INTEGER, SqlTypeName.VARCHAR, SqlTypeName.BOOLEAN]
        )

    def test_duplicate_names(self):
        """Test duplicate output names get numeric suffixes"""
        query = self.converter.convert("SELECT name, name, age AS name FROM person")

        self.assertEqual(query.column_names, ['name', 'name0', 'name1'])

    def test_distinct(self):
        """Test SELECT DISTINCT"""
        self.assertGremlin(
            "SELECT DISTINCT name FROM person",
            "g.V().hasLabel('person').as('person').project('name')" + by("__.values('name')") + ".dedup()"
        )

    def test_distinct_limit(self):
        """Test LIMIT counts distinct rows"""
        self.assertGremlin(
            "SELECT DISTINCT name FROM person ORDER BY name LIMIT 2",
            "g.V().hasLabel('person').as('person').order()" + sort_key("__.values('name')", 'asc')
            + ".project('name')" + by("__.values('name')") + ".dedup().limit(2)"
        )

    def test_distinct_max_rows(self):
        """Test max_rows caps distinct rows"""
        converter = SqlConverter(self.catalog, max_rows=3)

        self.assertTrue(converter.explain("SELECT DISTINCT name FROM person").endswith(".dedup().limit(3)"))

    def test_not_comparison(self):
        """Test NOT drops rows where the compared column is NULL"""
        self.assertGremlin(
            "SELECT name FROM person WHERE NOT (age = 5)",
            "g.V().hasLabel('person').as('person').has('age').not(__.has('age', eq(5)))"
            ".project('name')" + by("__.values('name')")
        )

    def test_traversal_source(self):
        """Test a custom traversal source name"""
        converter = SqlConverter(self.catalog, traversal_source='graph')

        self.assertTrue(converter.explain("SELECT name FROM person").startswith("graph.V()"))


class TestOrderAndLimit(TranslatorTestCase):
    """Test ORDER BY and LIMIT"""

    def test_order_by_limit(self):
        self.assertGremlin(
            "SELECT name FROM person ORDER BY age DESC, name LIMIT 3",
            "g.V().hasLabel('person').as('person')"
            ".order()" + sort_key("__.values('age')", 'desc') + sort_key("__.values('name')", 'asc')
            + ".limit(3).project('name')" + by("__.values('name')")
        )

    def test_order_by_alias(self):
        self.assertGremlin(
            "SELECT age AS years FROM person ORDER BY years",
            "g.V().hasLabel('person').as('person').order()" + sort_key("__.values('age')", 'asc')
            + ".project('years')" + by("__.values('age')")
        )

    def test_order_by_ordinal(self):
        self.assertGremlin(
            "SELECT name, age FROM person ORDER BY 2 DESC",
            "g.V().hasLabel('person').as('person').order()" + sort_key("__.values('age')", 'desc')
            + ".project('name', 'age')" + by("__.values('name')") + by("__.values('age')")
        )

    def test_null_sort_key(self):
        """Test rows without the sort key are ordered, not dropped"""
        self.assertGremlin(
            "SELECT name FROM person ORDER BY age",
            "g.V().hasLabel('person').as('person').order()" + sort_key("__.values('age')", 'asc')
            + ".project('name')" + by("__.values('name')")
        )

    def test_max_rows(self):
        """Test max_rows caps LIMIT"""
        converter = SqlConverter(self.catalog, max_rows=2)

        self.assertIn(".limit(2).", converter.explain("SELECT name FROM person LIMIT 5"))
        self.assertIn(".limit(1).", converter.explain("SELECT name FROM person LIMIT 1"))
        self.assertIn(".limit(2).", converter.explain("SELECT name FROM person"))


class TestJoins(TranslatorTestCase):
    """Test JOIN translation into edge walks"""

    def test_inner_join(self):
        self.assertGremlin(
            "SELECT p.name, s.model FROM person p INNER JOIN spaceship s ON p.name = s.model",
            "g.V().hasLabel('person').as('p').out('pilots').hasLabel('spaceship').as('s')"
            ".project('name', 'model')" + by("__.select('p').values('name')") + by("__.select('s').values('model')")
        )

    def test_join_against_edge_direction(self):
        self.assertGremlin(
            "SELECT s.model FROM spaceship s JOIN person p ON p.name = s.model",
            "g.V().hasLabel('spaceship').as('s').in('pilots').hasLabel('person').as('p')"
            ".project('model')" + by("__.select('s').values('model')")
        )

    def test_join_chain(self):
        query = self.converter.convert(
            "SELECT p.name, pl.name FROM person p JOIN spaceship s ON p.name = s.model "
            "JOIN planet pl ON s.model = pl.name"
        )

        self.assertTrue(query.to_gremlin().startswith(
            "g.V().hasLabel('person').as('p').out('pilots').hasLabel('spaceship').as('s')"
            ".out('visits').hasLabel('planet').as('pl').project('name', 'name0')"
        ))

    def test_join_from_earlier_table(self):
        """Test the walk restarts from an earlier step label"""
        gremlin = self.converter.explain(
            "SELECT p.name, f.name FROM person p JOIN spaceship s ON p.name = s.model "
            "JOIN person f ON p.name = f.name"
        )

        self.assertIn(".as('s').select('p').out('knows').hasLabel('person').as('f')", gremlin)

    def test_where_over_join(self):
        self.assertGremlin(
            "SELECT p.name FROM person p JOIN spaceship s ON p.name = s.model WHERE s.capacity > 2",
            "g.V().hasLabel('person').as('p').out('pilots').hasLabel('spaceship').as('s')"
            ".where(__.select('s').has('capacity', gt(2)))"
            ".project('name')" + by("__.select('p').values('name')")
        )

    def test_compare_columns_of_two_tables(self):
        gremlin = self.converter.explain(
            "SELECT p.name FROM person p JOIN spaceship s ON p.name = s.model WHERE p.age < s.capacity"
        )

        self.assertIn(
            ".where(__.project('lhs', 'rhs').by(__.select('p').values('age'))"
            ".by(__.select('s').values('capacity')).where('lhs', lt('rhs')))",
            gremlin
        )

    def test_outer_join_not_supported(self):
        error = self.assertErrorKind(
            "SELECT p.name FROM person p LEFT JOIN spaceship s ON p.name = s.model",
            ErrorKind.JOIN_NOT_SUPPORTED
        )
        self.assertEqual(error.clause, 'FROM')
        self.assertIn('LEFT join', str(error))

    def test_comma_join_not_supported(self):
        self.assertErrorKind("SELECT p.name FROM person p, spaceship s", ErrorKind.JOIN_NOT_SUPPORTED)

    def test_join_without_edge(self):
        self.assertErrorKind(
            "SELECT p.name FROM person p JOIN planet pl ON p.name = pl.name",
            ErrorKind.JOIN_NOT_SUPPORTED
        )

    def test_join_key_mismatch(self):
        self.assertErrorKind(
            "SELECT s.model FROM spaceship s JOIN planet pl ON s.manufacturer = pl.name",
            ErrorKind.JOIN_NOT_SUPPORTED
        )

    def test_join_edge_table(self):
        self.assertErrorKind(
            "SELECT p.name FROM person p JOIN pilots e ON p.age = e.since",
            ErrorKind.JOIN_NOT_SUPPORTED
        )

    def test_join_condition_not_equality(self):
        self.assertErrorKind(
            "SELECT p.name FROM person p JOIN spaceship s ON p.name <> s.model",
            ErrorKind.JOIN_NOT_SUPPORTED
        )


class TestGrouping(TranslatorTestCase):
    """Test GROUP BY, aggregates and HAVING"""

    GROUP_BY_AGE = (
        ".group().by(__.project('person.age')"
        ".by(__.coalesce(__.values('age'), __.constant('$%#NULL#%$')))).by(__.fold()).unfold()"
    )

    def test_group_by(self):
        query = self.converter.convert("SELECT age, COUNT(*) FROM person GROUP BY age")

        self.assertEqual(
            query.to_gremlin(),
            "g.V().hasLabel('person').as('person')" + self.GROUP_BY_AGE
            + ".project('age', 'COUNT(*)')"
            + by(group_key('person.age'))
            + by("__.select(values).unfold().count()")
        )
        self.assertEqual(query.columns[1], ColumnDescriptor('COUNT(*)', SqlTypeName.BIGINT))

    def test_aggregate_without_group_by(self):
        self.assertGremlin(
            "SELECT COUNT(*) AS total, MAX(age) FROM person",
            "g.V().hasLabel('person').as('person').fold()"
            ".project('total', 'MAX(person.age)')"
            + by("__.unfold().count()") + by("__.unfold().values('age').max()")
        )

    def test_group_by_over_join(self):
        self.assertGremlin(
            "SELECT s.model, AVG(p.age) AS average FROM person p JOIN spaceship s ON p.name = s.model "
            "GROUP BY s.model",
            "g.V().hasLabel('person').as('p').out('pilots').hasLabel('spaceship').as('s')"
            ".select('p', 's')"
            ".group().by(__.project('s.model')"
            ".by(__.coalesce(__.select('s').values('model'), __.constant('$%#NULL#%$')))).by(__.fold()).unfold()"
            ".project('model', 'average')"
            + by(group_key('s.model'))
            + by("__.select(values).unfold().select('p').values('age').mean()")
        )

    def test_having(self):
        self.assertGremlin(
            "SELECT age FROM person GROUP BY age HAVING COUNT(*) > 1",
            "g.V().hasLabel('person').as('person')" + self.GROUP_BY_AGE
            + ".where(__.select(values).unfold().count().is(gt(1)))"
            + ".project('age')" + by(group_key('person.age'))
        )

    def test_having_on_group_key(self):
        gremlin = self.converter.explain("SELECT age FROM person GROUP BY age HAVING age > 20")

        self.assertIn(".unfold().where(" + group_key('person.age') + ".is(gt(20)))", gremlin)

    def test_having_is_null_on_group_key(self):
        """Test the NULL group is found by IS NULL"""
        self.assertGremlin(
            "SELECT age FROM person GROUP BY age HAVING age IS NULL",
            "g.V().hasLabel('person').as('person')" + self.GROUP_BY_AGE
            + ".not(" + group_key('person.age') + ")"
            + ".project('age')" + by(group_key('person.age'))
        )

    def test_having_is_not_null_on_group_key(self):
        """Test the NULL group is dropped by IS NOT NULL"""
        self.assertGremlin(
            "SELECT age FROM person GROUP BY age HAVING age IS NOT NULL",
            "g.V().hasLabel('person').as('person')" + self.GROUP_BY_AGE
            + ".where(" + group_key('person.age') + ")"
            + ".project('age')" + by(group_key('person.age'))
        )

    def test_having_not_equal_on_group_key(self):
        """Test a comparison on a group key never matches the NULL group"""
        gremlin = self.converter.explain("SELECT age FROM person GROUP BY age HAVING NOT (age = 30)")

        self.assertIn(
            ".unfold().where(" + group_key('person.age') + ")"
            ".not(__.where(" + group_key('person.age') + ".is(eq(30))))",
            gremlin
        )

    def test_order_by_aggregate(self):
        gremlin = self.converter.explain(
            "SELECT age, COUNT(*) AS c FROM person GROUP BY age ORDER BY c DESC LIMIT 5"
        )

        self.assertIn(
            ".order()" + sort_key("__.select(values).unfold().count()", 'desc') + ".limit(5).project('age', 'c')",
            gremlin
        )

    def test_group_by_expression(self):
        query = self.converter.convert("SELECT age + 1, COUNT(*) FROM person GROUP BY age + 1")

        self.assertIn(by(group_key('person.age + 1')), query.to_gremlin())

    def test_count_distinct(self):
        gremlin = self.converter.explain("SELECT COUNT(DISTINCT age) FROM person")

        self.assertIn(by("__.unfold().values('age').dedup().count()"), gremlin)

    def test_column_not_grouped(self):
        error = self.assertErrorKind(
            "SELECT name, COUNT(*) FROM person GROUP BY age",
            ErrorKind.COLUMN_NOT_GROUPED
        )
        self.assertEqual(error.arguments, ('person.name',))
        self.assertEqual(error.clause, 'SELECT')

    def test_column_not_grouped_without_group_by(self):
        self.assertErrorKind("SELECT name, COUNT(*) FROM person", ErrorKind.COLUMN_NOT_GROUPED)

    def test_column_not_grouped_in_having(self):
        error = self.assertErrorKind(
            "SELECT age FROM person GROUP BY age HAVING name = 'Tom'",
            ErrorKind.COLUMN_NOT_GROUPED
        )
        self.assertEqual(error.clause, 'HAVING')


class TestDeterminism(TranslatorTestCase):
    """Compiling the same query twice gives the same result"""

    QUERIES = [
        "SELECT name, age FROM person WHERE age > 30 ORDER BY name",
        "SELECT s.model, COUNT(*) FROM person p JOIN spaceship s ON p.name = s.model GROUP BY s.model",
        "SELECT age, MAX(age) FROM person GROUP BY age HAVING COUNT(*) > 1 LIMIT 2",
    ]

    def test_repeated_compilation(self):
        for sql in self.QUERIES:
            with self.subTest(sql=sql):
                first = self.converter.convert(sql)
                second = self.converter.convert(sql)

                self.assertEqual(first.traversal, second.traversal)
                self.assertEqual(first.columns, second.columns)

    def test_fresh_converters(self):
        for sql in self.QUERIES:
            with self.subTest(sql=sql):
                other = SqlConverter(space_catalog())
                self.assertEqual(self.converter.explain(sql), other.explain(sql))


if __name__ == '__main__':
    unittest.main()

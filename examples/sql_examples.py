"""
Examples demonstrating the SQL to Gremlin translator
Run these to see how SQL queries are translated to Gremlin traversals
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import sql_gremlin module
sys.path.insert(0, str(Path(__file__).parent.parent))

from sql_gremlin import SchemaCatalog, SqlConverter, SqlGremlinError, SqlParseError

CATALOG = SchemaCatalog.from_dict({
    "tables": [
        {"name": "person", "columns": [
            {"name": "name", "type": "VARCHAR"},
            {"name": "age", "type": "INTEGER"},
            {"name": "wentToSpace", "type": "BOOLEAN"},
        ]},
        {"name": "spaceship", "columns": [
            {"name": "model", "type": "VARCHAR"},
            {"name": "manufacturer", "type": "VARCHAR"},
        ]},
        {"name": "planet", "columns": [
            {"name": "name", "type": "VARCHAR"},
            {"name": "moons", "type": "INTEGER"},
        ]},
    ],
    "edges": [
        {"label": "knows", "out": "person", "in": "person"},
        {"label": "pilots", "out": "person", "in": "spaceship"},
        {"label": "visits", "out": "spaceship", "in": "planet"},
    ],
})


def print_translation(title: str, sql: str):
    """Helper to show SQL to Gremlin translation"""
    print(f"\n{'='*80}")
    print(f"Example: {title}")
    print(f"{'='*80}")
    print(f"\nSQL Query:")
    print(sql)

    converter = SqlConverter(CATALOG)

    try:
        query = converter.convert(sql)

        print(f"\nGenerated Gremlin:")
        print(query.to_gremlin())
        print(f"\nColumns: {[(c.name, c.type_name.value) for c in query.columns]}")
    except (SqlGremlinError, SqlParseError) as e:
        print(f"\nError: {e}")


def main():
    """Run all examples"""

    # Example 1: Simple filter
    print_translation(
        "Simple Filter",
        "SELECT name, age FROM person WHERE age > 30"
    )

    # Example 2: Boolean logic
    print_translation(
        "Boolean Logic",
        """
        SELECT name FROM person
        WHERE (age >= 18 OR wentToSpace = TRUE) AND name IS NOT NULL
        """
    )

    # Example 3: Join over an edge
    print_translation(
        "Join Over Edge",
        """
        SELECT p.name, s.model
        FROM person p
        INNER JOIN spaceship s ON p.name = s.model
        """
    )

    # Example 4: Multi-hop join
    print_translation(
        "Multi-hop Join",
        """
        SELECT p.name, pl.name AS planet
        FROM person p
        JOIN spaceship s ON p.name = s.model
        JOIN planet pl ON s.model = pl.name
        """
    )

    # Example 5: Aggregation
    print_translation(
        "Group By With Having",
        """
        SELECT age, COUNT(*) AS people
        FROM person
        GROUP BY age
        HAVING COUNT(*) > 1
        ORDER BY people DESC
        LIMIT 10
        """
    )

    # Example 6: Expressions
    print_translation(
        "Computed Columns",
        "SELECT age * 2 AS double_age, CAST(age AS VARCHAR) FROM person"
    )

    # Example 7: Unsupported features
    print_translation(
        "OFFSET",
        "SELECT name FROM person OFFSET 1"
    )

    print_translation(
        "Scalar Sub-query",
        "SELECT name FROM person WHERE age = (SELECT age FROM person WHERE name = 'Tom')"
    )

    print_translation(
        "Non-grouped Column",
        "SELECT name, COUNT(*) FROM person GROUP BY age"
    )


if __name__ == '__main__':
    main()

"""
Query metadata state
Per-compilation symbol table threaded through the whole translation
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple

from ..catalog import SchemaCatalog, TableMapping
from ..errors import ErrorKind, SqlGremlinError
from ..result import NULL_SENTINEL, ColumnDescriptor
from ..sql.ast_nodes import SqlIdentifier, SqlNode, SqlTypeName
from ..traversal import Column, P, Traversal, anonymous


@dataclass(frozen=True)
class TableBinding:
    """Table alias bound to the traversal step label marking its position"""
    alias: str
    table: TableMapping
    step_label: str


@dataclass(frozen=True)
class OutputColumn:
    """Projected column and the expression it came from"""
    name: str
    type_name: SqlTypeName
    source: SqlNode


class SqlMetadata:
    """
    Mutable state of one SQL to Gremlin compilation

    Holds alias bindings, the grouping state and the projected columns. A
    fresh instance is created for every query and never shared; the catalog
    is the only collaborator shared between compilations.
    """

    def __init__(self, catalog: SchemaCatalog):
        self.catalog = catalog
        self.alias_bindings: Dict[str, TableBinding] = {}
        self.joined_labels: Set[str] = set()
        self.current_label: Optional[str] = None
        self.is_grouped = False
        self.has_group_keys = False
        self.group_keys: List[str] = []
        self.in_aggregate = False
        self.output_columns: List[OutputColumn] = []

    # FROM / JOIN bindings
    def add_table(self, alias: str, table: TableMapping) -> TableBinding:
        if alias in self.alias_bindings:
            raise SqlGremlinError.create(ErrorKind.AMBIGUOUS_IDENTIFIER, alias)
        binding = TableBinding(alias=alias, table=table, step_label=alias)
        self.alias_bindings[alias] = binding
        self.joined_labels.add(table.label)
        self.current_label = binding.step_label
        return binding

    def get_binding(self, alias: str) -> TableBinding:
        binding = self.alias_bindings.get(alias)
        if binding is None:
            raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, alias)
        return binding

    @property
    def is_single_table(self) -> bool:
        return len(self.alias_bindings) == 1

    @property
    def step_labels(self) -> List[str]:
        return [binding.step_label for binding in self.alias_bindings.values()]

    @property
    def is_row_context(self) -> bool:
        """Whether expressions currently see individual rows rather than groups"""
        return not self.is_grouped or self.in_aggregate

    # Identifier resolution
    def resolve_identifier(self, identifier: SqlIdentifier) -> Tuple[TableBinding, str]:
        """
        Resolve a column reference

        Args:
            identifier: Qualified [alias, column] or bare [column] reference

        Returns:
            (table binding, graph property name)
        """
        if identifier.is_star:
            raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, identifier.to_sql())

        if len(identifier.names) == 2:
            binding = self.alias_bindings.get(identifier.names[0])
            if binding is None:
                raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, identifier.to_sql())
        elif identifier.is_simple:
            candidates = [
                binding for binding in self.alias_bindings.values()
                if binding.table.find_column(identifier.simple) is not None
            ]
            if len(candidates) != 1:
                raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, identifier.to_sql())
            binding = candidates[0]
        else:
            raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, identifier.to_sql())

        column = binding.table.find_column(identifier.simple)
        if column is None:
            raise SqlGremlinError.create(ErrorKind.UNKNOWN_IDENTIFIER, identifier.to_sql())
        return binding, column.property

    def resolve_type(self, identifier: SqlIdentifier) -> SqlTypeName:
        binding, _ = self.resolve_identifier(identifier)
        return binding.table.find_column(identifier.simple).type_name

    # Value access
    def append_property(self, traversal: Traversal, step_label: str, property_name: str):
        """Append the steps reading one property of a row"""
        if self.is_single_table:
            traversal.values(property_name)
        else:
            traversal.select(step_label).values(property_name)

    def append_element_filter(self, traversal: Traversal, step_label: str, element_filter: Traversal):
        """Append a filter written against the element bound to step_label"""
        if self.is_single_table:
            traversal.extend(element_filter)
        else:
            traversal.where(anonymous().select(step_label).extend(element_filter))

    def append_column(self, traversal: Traversal, identifier: SqlIdentifier):
        """Append the steps reading a column in the current row or group context"""
        binding, property_name = self.resolve_identifier(identifier)
        if self.is_row_context:
            self.append_property(traversal, binding.step_label, property_name)
            return

        key = self.group_key_name(binding.step_label, property_name)
        if not self.is_group_key(key):
            raise SqlGremlinError.create(ErrorKind.COLUMN_NOT_GROUPED, identifier.to_sql())
        self.append_group_key(traversal, key)

    # Grouping
    def start_grouping(self, keys: List[str]):
        """Switch to group context; an empty key list means one implicit group"""
        self.is_grouped = True
        self.has_group_keys = bool(keys)
        self.group_keys = list(keys)

    @staticmethod
    def group_key_name(step_label: str, property_name: str) -> str:
        return f"{step_label}.{property_name}"

    def is_group_key(self, name: str) -> bool:
        return self.is_grouped and not self.in_aggregate and name in self.group_keys

    def append_group_key(self, traversal: Traversal, name: str):
        """Append the steps reading a group key; a NULL key yields no value"""
        traversal.select(Column.keys).select(name).is_(P.neq(NULL_SENTINEL))

    def append_group_rows(self, traversal: Traversal):
        """Append the steps expanding the current group into its rows"""
        if self.has_group_keys:
            traversal.select(Column.values).unfold()
        else:
            traversal.unfold()

    @contextmanager
    def aggregate_scope(self) -> Iterator[None]:
        """Compile aggregate arguments against the rows of the group"""
        self.in_aggregate = True
        try:
            yield
        finally:
            self.in_aggregate = False

    # Output columns
    def add_output_column(self, name: str, type_name: SqlTypeName, source: SqlNode):
        self.output_columns.append(OutputColumn(name=name, type_name=type_name, source=source))

    @property
    def output_names(self) -> List[str]:
        return [column.name for column in self.output_columns]

    def column_descriptors(self) -> List[ColumnDescriptor]:
        return [ColumnDescriptor(column.name, column.type_name) for column in self.output_columns]

"""
Gremlin traversal object model
Step sequences assembled by the translator and rendered as Gremlin-Groovy text
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple


class Order(Enum):
    """Sort order for order().by()"""
    asc = "asc"
    desc = "desc"


class Column(Enum):
    """Map.Entry column selectors"""
    keys = "keys"
    values = "values"


@dataclass(frozen=True)
class P:
    """Comparison predicate"""
    operator: str
    value: Any

    @classmethod
    def eq(cls, value: Any) -> 'P':
        return cls('eq', value)

    @classmethod
    def neq(cls, value: Any) -> 'P':
        return cls('neq', value)

    @classmethod
    def lt(cls, value: Any) -> 'P':
        return cls('lt', value)

    @classmethod
    def gt(cls, value: Any) -> 'P':
        return cls('gt', value)

    @classmethod
    def lte(cls, value: Any) -> 'P':
        return cls('lte', value)

    @classmethod
    def gte(cls, value: Any) -> 'P':
        return cls('gte', value)

    def to_gremlin(self) -> str:
        return f"{self.operator}({render_argument(self.value)})"


@dataclass(frozen=True)
class Step:
    """Single traversal step: Gremlin step name plus arguments"""
    name: str
    args: Tuple[Any, ...] = ()

    def to_gremlin(self) -> str:
        return f"{self.name}({', '.join(render_argument(arg) for arg in self.args)})"


class Traversal:
    """
    Mutable step sequence

    A traversal with a source renders as 'g.V()...'; one without is an
    anonymous child traversal and renders as '__.step()...'
    """

    def __init__(self, source: Optional[str] = None):
        self.source = source
        self.steps: List[Step] = []

    def add_step(self, name: str, *args: Any) -> 'Traversal':
        self.steps.append(Step(name, tuple(args)))
        return self

    def extend(self, other: 'Traversal') -> 'Traversal':
        """Append every step of another traversal"""
        self.steps.extend(other.steps)
        return self

    def clone(self) -> 'Traversal':
        copy = Traversal(self.source)
        copy.steps = list(self.steps)
        return copy

    def __len__(self):
        return len(self.steps)

    def __eq__(self, other):
        if not isinstance(other, Traversal):
            return NotImplemented
        return self.source == other.source and self.steps == other.steps

    def __hash__(self):
        return hash((self.source, tuple(self.steps)))

    def __repr__(self):
        return f"Traversal({self.to_gremlin()})"

    def to_gremlin(self) -> str:
        prefix = self.source if self.source is not None else '__'
        if not self.steps:
            return f"{prefix}.identity()" if self.source is None else prefix
        return prefix + ''.join(f".{step.to_gremlin()}" for step in self.steps)

    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self.steps]

    # Start steps
    def V(self, *ids: Any) -> 'Traversal':
        return self.add_step('V', *ids)

    def E(self, *ids: Any) -> 'Traversal':
        return self.add_step('E', *ids)

    # Filter steps
    def has_label(self, label: str) -> 'Traversal':
        return self.add_step('hasLabel', label)

    def has(self, key: str, predicate: Optional[P] = None) -> 'Traversal':
        if predicate is None:
            return self.add_step('has', key)
        return self.add_step('has', key, predicate)

    def has_not(self, key: str) -> 'Traversal':
        return self.add_step('hasNot', key)

    def is_(self, predicate: P) -> 'Traversal':
        return self.add_step('is', predicate)

    def where(self, *args: Any) -> 'Traversal':
        return self.add_step('where', *args)

    def and_(self, *traversals: 'Traversal') -> 'Traversal':
        return self.add_step('and', *traversals)

    def or_(self, *traversals: 'Traversal') -> 'Traversal':
        return self.add_step('or', *traversals)

    def not_(self, traversal: 'Traversal') -> 'Traversal':
        return self.add_step('not', traversal)

    def dedup(self) -> 'Traversal':
        return self.add_step('dedup')

    def limit(self, count: int) -> 'Traversal':
        return self.add_step('limit', count)

    # Navigation steps
    def as_(self, label: str) -> 'Traversal':
        return self.add_step('as', label)

    def out(self, label: str) -> 'Traversal':
        return self.add_step('out', label)

    def in_(self, label: str) -> 'Traversal':
        return self.add_step('in', label)

    def select(self, *keys: Any) -> 'Traversal':
        return self.add_step('select', *keys)

    # Map steps
    def values(self, key: str) -> 'Traversal':
        return self.add_step('values', key)

    def constant(self, value: Any) -> 'Traversal':
        return self.add_step('constant', value)

    def coalesce(self, *traversals: 'Traversal') -> 'Traversal':
        return self.add_step('coalesce', *traversals)

    def choose(self, predicate: 'Traversal', true_choice: 'Traversal', false_choice: 'Traversal') -> 'Traversal':
        return self.add_step('choose', predicate, true_choice, false_choice)

    def project(self, *keys: str) -> 'Traversal':
        return self.add_step('project', *keys)

    def by(self, *args: Any) -> 'Traversal':
        return self.add_step('by', *args)

    def math(self, expression: str) -> 'Traversal':
        return self.add_step('math', expression)

    def as_string(self) -> 'Traversal':
        return self.add_step('asString')

    def group(self) -> 'Traversal':
        return self.add_step('group')

    def fold(self) -> 'Traversal':
        return self.add_step('fold')

    def unfold(self) -> 'Traversal':
        return self.add_step('unfold')

    def order(self) -> 'Traversal':
        return self.add_step('order')

    # Reducing steps
    def count(self) -> 'Traversal':
        return self.add_step('count')

    def sum_(self) -> 'Traversal':
        return self.add_step('sum')

    def mean(self) -> 'Traversal':
        return self.add_step('mean')

    def min_(self) -> 'Traversal':
        return self.add_step('min')

    def max_(self) -> 'Traversal':
        return self.add_step('max')


def anonymous() -> Traversal:
    """Start an anonymous child traversal"""
    return Traversal()


def render_argument(value: Any) -> str:
    """Gremlin-Groovy literal for a step argument"""
    if isinstance(value, Traversal):
        return value.to_gremlin()
    if isinstance(value, P):
        return value.to_gremlin()
    if isinstance(value, (Order, Column)):
        return value.value
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, Decimal):
        return f"{value}G"
    if isinstance(value, float):
        return f"{value!r}d"
    if isinstance(value, int):
        return repr(value)
    text = str(value).replace('\\', '\\\\').replace("'", "\\'")
    return f"'{text}'"

"""
Boolean condition fragments.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tablekit.query.expression import Junction, Node, RawSql, SqlRenderer

if TYPE_CHECKING:
    from tablekit.processing import Encryptor

__all__ = ['Condition']


@dataclass(frozen=True)
class Condition:
    """Immutable boolean expression.

    `and_` / `or_` wrap both operands in parentheses:

    >>> a, b = Condition.text('a = 1'), Condition.text('b = 2')
    >>> a.and_(b).render()
    '(a = 1) AND (b = 2)'
    >>> (a | b).render()
    '(a = 1) OR (b = 2)'
    """
    node: Node

    @classmethod
    def text(cls, sql: str) -> 'Condition':
        """Wrap an already rendered fragment."""
        return cls(RawSql(sql))

    def and_(self, other: 'Condition') -> 'Condition':
        return Condition(Junction('AND', self.node, other.node))

    def or_(self, other: 'Condition') -> 'Condition':
        return Condition(Junction('OR', self.node, other.node))

    __and__ = and_
    __or__ = or_

    def render(self, dialect: str = 'mysql', encryptor: 'Encryptor | None' = None,
               renderer: SqlRenderer | None = None) -> str:
        """Render to SQL text.

        Args:
            dialect: Dialect used when no renderer is given
            encryptor: Needed when the condition compares encrypted columns
            renderer: Renderer to use instead of building one
        """
        renderer = renderer or SqlRenderer(dialect, encryptor)
        return renderer.render(self.node)

    def __str__(self):
        return self.render()

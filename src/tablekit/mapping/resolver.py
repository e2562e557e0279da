"""
Resolution of raw column definitions to semantic types.
"""
import logging

from tablekit.codegen.enums import EnumerationGenerator
from tablekit.exceptions import UnsupportedColumnTypeError
from tablekit.mapping.types import UNSIGNED_WIDENING, ResolvedType, SemanticType
from tablekit.mapping.types import TypeFamily, lookup_family

logger = logging.getLogger(__name__)

__all__ = ['SemanticTypeResolver', 'split_definition']

_BOOLEAN = TypeFamily(SemanticType.BOOLEAN, 'Boolean')


def split_definition(definition: str) -> tuple[str, list[str]]:
    """Split a definition into its type token and modifiers.

    The token is everything before the first `(`, lower-cased; modifiers
    are the remaining words outside the parentheses.

    >>> split_definition('bigint(20) unsigned')
    ('bigint', ['unsigned'])
    >>> split_definition("enum('a','b')")
    ('enum', [])
    >>> split_definition('BIGINT UNSIGNED')
    ('bigint', ['unsigned'])
    """
    prefix, _, rest = definition.partition('(')
    words = prefix.strip().lower().split()
    token = words[0] if words else ''
    modifiers = words[1:]
    if rest:
        tail = rest.rsplit(')', 1)[-1] if ')' in rest else ''
        modifiers.extend(tail.strip().lower().split())
    return token, modifiers


class SemanticTypeResolver:
    """Map a raw column definition to a `ResolvedType`.

    The outcome depends only on the definition text, the boolean table
    registrations and the capability bindings; never on stored data.
    Enumeration and set columns are materialized through the shared
    `EnumerationGenerator`, which returns the same definition on repeated
    calls for a column.
    """

    def __init__(self, boolean_tables=None, enumerations: EnumerationGenerator | None = None):
        self.boolean_tables = frozenset(boolean_tables or ())
        self.enumerations = enumerations if enumerations is not None else EnumerationGenerator()

    def family(self, definition: str, table: str, column: str) -> TypeFamily:
        """Select the type family for a definition; unknown tokens are fatal.
        """
        token, modifiers = split_definition(definition)
        family = lookup_family(token)
        if family is None:
            logger.error(f'{table}.{column} {definition} is not supported')
            raise UnsupportedColumnTypeError(table, column, definition)
        if family.semantic == SemanticType.INTEGER8 and table in self.boolean_tables:
            return _BOOLEAN
        if 'unsigned' in modifiers and family.semantic in UNSIGNED_WIDENING:
            return UNSIGNED_WIDENING[family.semantic]
        return family

    def resolve(self, definition: str, table: str, column: str) -> ResolvedType:
        """Resolve one column.

        Args:
            definition: Raw type text, e.g. `varchar(255)`
            table: Owning table
            column: Owning column

        Returns
            ResolvedType with a nullable annotation

        Raises
            UnsupportedColumnTypeError: the type token is not modelled
        """
        family = self.family(definition, table, column)

        match family.semantic:
            case SemanticType.ENUMERATION:
                enumeration = self.enumerations.generate(definition, table, column)
                annotation = f'{enumeration.name} | None'
            case SemanticType.MULTI_VALUE_SET:
                enumeration = self.enumerations.generate(definition, table, column,
                                                         multi_value=True)
                annotation = f'list[{enumeration.name}] | None'
            case _:
                enumeration = None
                annotation = f'{family.semantic.annotation} | None'

        return ResolvedType(
            semantic=family.semantic,
            column_class=family.column_class,
            annotation=annotation,
            conditional=family.conditional,
            container=family.container,
            enumeration=enumeration,
        )

    def semantic_type(self, definition: str, table: str, column: str) -> SemanticType:
        return self.family(definition, table, column).semantic

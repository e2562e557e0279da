"""
Enumeration generation for `enum(...)` and `set(...)` columns.

One `EnumerationDefinition` exists per (table, column) pair. Labels keep
their declared order, which the generated `values()` accessor relies on.
"""
import keyword
import logging
import re
from dataclasses import dataclass, field

from tablekit.naming import to_pascal, to_snake

logger = logging.getLogger(__name__)

__all__ = [
    'EnumMember',
    'EnumerationDefinition',
    'CapabilityBindings',
    'EnumerationGenerator',
    'parse_labels',
    'canonical_identifier',
]

_QUOTED_LABEL = re.compile(r"'((?:[^']|'')*)'")
_WRAPPER = re.compile(r'^\s*(?:enum|set)\s*\(', re.IGNORECASE)


def parse_labels(definition: str) -> list[str]:
    """Extract the ordered labels of an `enum('a','b')` / `set('a','b')` definition.

    Quoted labels may contain commas and doubled quotes. Unquoted lists
    (`a,b`) are split on commas.

    >>> parse_labels("enum('Cover','Image')")
    ['Cover', 'Image']
    >>> parse_labels("set('a,b','it''s')")
    ['a,b', "it's"]
    """
    body = _WRAPPER.sub('', definition, count=1)
    if body.rstrip().endswith(')'):
        body = body.rstrip()[:-1]
    if "'" in body:
        labels = [m.replace("''", "'") for m in _QUOTED_LABEL.findall(body)]
    else:
        labels = [p.strip() for p in body.split(',') if p.strip()]
    seen = set()
    ordered = []
    for label in labels:
        if label not in seen:
            seen.add(label)
            ordered.append(label)
    return ordered


def canonical_identifier(label: str) -> str:
    """Identifier for a label: the label itself, `_`-prefixed when it starts with a digit.
    """
    if label[:1].isdigit():
        return f'_{label}'
    return label


@dataclass(frozen=True)
class EnumMember:
    label: str
    identifier: str

    @property
    def is_valid_identifier(self) -> bool:
        return self.identifier.isidentifier() and not keyword.iskeyword(self.identifier)


@dataclass(frozen=True)
class EnumerationDefinition:
    """Named enumeration derived from one column.

    Args:
        name: Type name, `Pascal(table) + Pascal(column)`
        module: Module key the type is written under
        source_table: Owning table
        source_column: Owning column
        members: Ordered members
        capability: Capability the type additionally declares, if any
        multi_value: True for `set(...)` columns
    """
    name: str
    module: str
    source_table: str
    source_column: str
    members: tuple[EnumMember, ...]
    capability: str | None = None
    multi_value: bool = False

    @property
    def labels(self) -> list[str]:
        return [m.label for m in self.members]

    def values(self) -> list[str]:
        """Every label in declared order."""
        return self.labels

    def identifier_for(self, label: str) -> str:
        for member in self.members:
            if member.label == label:
                return member.identifier
        raise KeyError(label)

    def label_for(self, identifier: str) -> str:
        for member in self.members:
            if member.identifier == identifier:
                return member.label
        raise KeyError(identifier)

    @property
    def valid_identifiers(self) -> bool:
        """Whether every member identifier is a usable Python name."""
        return all(m.is_valid_identifier for m in self.members)


@dataclass
class CapabilityBindings:
    """Pattern -> capability table.

    Patterns are `table_column` (exact) or `table*` (every column of the
    table). The exact pattern wins over the wildcard.
    """
    patterns: dict[str, str] = field(default_factory=dict)

    def resolve(self, table: str, column: str) -> str | None:
        exact = f'{table}_{column}'
        if exact in self.patterns:
            return self.patterns[exact]
        return self.patterns.get(f'{table}*')

    def capabilities(self) -> list[str]:
        """Distinct capability names, in first-declared order."""
        return list(dict.fromkeys(self.patterns.values()))


class EnumerationGenerator:
    """Get-or-create registry of enumeration definitions.
    """

    def __init__(self, bindings: CapabilityBindings | dict[str, str] | None = None):
        if not isinstance(bindings, CapabilityBindings):
            bindings = CapabilityBindings(dict(bindings or {}))
        self.bindings = bindings
        self._definitions: dict[tuple[str, str], EnumerationDefinition] = {}

    @staticmethod
    def type_name(table: str, column: str) -> str:
        return f'{to_pascal(table)}{to_pascal(column)}'

    @staticmethod
    def module_key(table: str, column: str) -> str:
        return f'{to_snake(table)}_{to_snake(column)}'

    def generate(self, definition: str, table: str, column: str,
                 multi_value: bool = False) -> EnumerationDefinition:
        """Materialize the enumeration for a column, once.

        Args:
            definition: Raw column definition, e.g. `enum('a','b')`
            table: Owning table
            column: Owning column
            multi_value: True for `set(...)` columns

        Returns
            The definition registered for (table, column)
        """
        key = (table, column)
        if key in self._definitions:
            return self._definitions[key]

        labels = parse_labels(definition)
        members = tuple(EnumMember(label, canonical_identifier(label)) for label in labels)
        for member in members:
            if not member.is_valid_identifier:
                logger.warning(f'Enumeration label {member.label!r} of {table}.{column} '
                               'is not a valid identifier')

        enumeration = EnumerationDefinition(
            name=self.type_name(table, column),
            module=self.module_key(table, column),
            source_table=table,
            source_column=column,
            members=members,
            capability=self.bindings.resolve(table, column),
            multi_value=multi_value,
        )
        self._definitions[key] = enumeration
        logger.debug(f'Registered enumeration {enumeration.name} with {len(members)} members')
        return enumeration

    def definitions(self) -> list[EnumerationDefinition]:
        """All registered definitions in registration order."""
        return list(self._definitions.values())

    def __len__(self):
        return len(self._definitions)

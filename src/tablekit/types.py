"""
Schema facts read from the store.
"""
from dataclasses import dataclass

__all__ = ['ColumnSchema']


@dataclass(frozen=True)
class ColumnSchema:
    """One column as reported by schema introspection.

    `raw_type` is the declared type text, e.g. `varchar(255)`,
    `enum('a','b')` or `bigint unsigned`.
    """
    name: str
    raw_type: str
    nullable: bool = True
    is_primary_key: bool = False

    @property
    def type_token(self) -> str:
        """Lower-cased type prefix before the first `(`.
        """
        return self.raw_type.split('(', 1)[0].strip().lower()

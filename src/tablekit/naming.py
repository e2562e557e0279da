"""
Identifier case transforms shared by the generator and the query layer.
"""
import keyword
import re

__all__ = [
    'to_snake',
    'to_camel',
    'to_pascal',
    'is_reserved',
    'safe_field_name',
    'RESERVED_WORDS',
]

RESERVED_WORDS = frozenset(keyword.kwlist) | frozenset(keyword.softkwlist) | {
    'type',
    }

_SEPARATORS = re.compile(r'[_\-\s]+')
_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])')


def to_snake(name: str) -> str:
    """Convert `createdOn`, `CreatedOn` or `created-on` to `created_on`.
    """
    name = _CAMEL_BOUNDARY.sub('_', name)
    return '_'.join(p for p in _SEPARATORS.split(name) if p).lower()


def to_camel(name: str) -> str:
    """Convert `created_on` to `createdOn`.

    A separator capitalizes the character that follows it; every other
    character is lowered, so `user_ID` becomes `userId`.
    """
    out = []
    upper = False
    for ch in name:
        if ch in '_- ':
            upper = bool(out)
            continue
        out.append(ch.upper() if upper else ch.lower())
        upper = False
    return ''.join(out)


def to_pascal(name: str) -> str:
    """Convert `product_sku` to `ProductSku`.
    """
    camel = to_camel(name)
    return camel[:1].upper() + camel[1:]


def is_reserved(name: str) -> bool:
    return name in RESERVED_WORDS


def safe_field_name(name: str) -> tuple[str, bool]:
    """Return the in-memory field name for a column and whether it was renamed.

    Reserved names get a trailing underscore (`type` -> `type_`); the wire
    name is kept by the caller.
    """
    field = to_snake(name)
    if is_reserved(field):
        return f'{field}_', True
    return field, False

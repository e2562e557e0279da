"""
Field-level encryption and value processors.

The encryption algorithm is supplied by the caller through `Encryptor`.
Processors transform a single field's value before it is saved and after
it is fetched; several may be registered for one field and run in
registration order.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from tablekit.exceptions import ProcessorError

logger = logging.getLogger(__name__)

__all__ = [
    'Encryptor',
    'Processor',
    'FieldKey',
    'ProcessorSettings',
    'ProcessorRegistry',
    'EncryptionProcessor',
]


@runtime_checkable
class Encryptor(Protocol):
    """Encryption collaborator.

    `decrypt_field` receives a rendered column reference and returns the
    SQL expression that yields its plaintext, used in select lists.
    """

    def encrypt(self, plain_text: str) -> str: ...

    def decrypt(self, cipher_text: str) -> str: ...

    def decrypt_field(self, field_ref: str) -> str: ...


@runtime_checkable
class Processor(Protocol):

    def before_save(self, value: Any) -> Any: ...

    def after_fetch(self, value: Any) -> Any: ...


@dataclass(frozen=True)
class FieldKey:
    table: str
    name: str


@dataclass
class ProcessorSettings:
    """One processor and the fields it applies to."""
    processor: Processor
    columns: list[FieldKey] = field(default_factory=list)


class EncryptionProcessor:
    """Processor that encrypts on save and decrypts on fetch.
    """

    def __init__(self, encryptor: Encryptor):
        self.encryptor = encryptor

    def before_save(self, value: Any) -> Any:
        if value is None:
            return None
        return self.encryptor.encrypt(str(value))

    def after_fetch(self, value: Any) -> Any:
        if value is None:
            return None
        return self.encryptor.decrypt(str(value))


class ProcessorRegistry:
    """Read-only mapping of field key -> ordered processors.
    """

    def __init__(self, settings: list[ProcessorSettings] | tuple = ()):
        table: dict[FieldKey, list[Processor]] = {}
        for setting in settings:
            for key in setting.columns:
                table.setdefault(key, []).append(setting.processor)
        self._processors = {k: tuple(v) for k, v in table.items()}

    def processors_for(self, table: str, column: str) -> tuple[Processor, ...]:
        return self._processors.get(FieldKey(table, column), ())

    def __contains__(self, key: FieldKey) -> bool:
        return key in self._processors

    def __len__(self):
        return len(self._processors)

    def _apply(self, stage: str, table: str, column: str, value: Any) -> Any:
        for processor in self.processors_for(table, column):
            try:
                value = getattr(processor, stage)(value)
            except Exception as exc:
                raise ProcessorError(table, column, stage, str(exc)) from exc
        return value

    def before_save(self, table: str, column: str, value: Any) -> Any:
        """Run every processor of a field over a value about to be written."""
        return self._apply('before_save', table, column, value)

    def after_fetch(self, table: str, column: str, value: Any) -> Any:
        """Run every processor of a field over a fetched value."""
        return self._apply('after_fetch', table, column, value)

    def after_fetch_row(self, table: str, row: dict[str, Any],
                        skip: frozenset[str] | set[str] = frozenset()) -> dict[str, Any]:
        """Apply `after_fetch` to every processed column of a row.

        Columns in `skip` were already decrypted by the select list and
        pass through unchanged.
        """
        if not self._processors:
            return row
        return {k: v if k in skip else self.after_fetch(table, k, v) for k, v in row.items()}

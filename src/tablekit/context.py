"""
Shared runtime state for query execution.

A `QueryContext` is built once at startup and passed to `execute`,
`fetch` and friends. Its driver, encryptor and processors are each set
exactly once; a second set raises `ConfigurationError`. After startup the
context is only read, so concurrent queries may share it.
"""
import logging
import threading
from typing import Any

from tablekit.connection import Driver, connect
from tablekit.exceptions import ConfigurationError
from tablekit.processing import Encryptor, ProcessorRegistry, ProcessorSettings
from tablekit.query.expression import SqlRenderer
from tablekit.strategy import is_supported_dialect

logger = logging.getLogger(__name__)

__all__ = ['QueryContext']


class QueryContext:
    """Init-once holder of the driver, encryptor and processor registry.

    Args:
        dialect: Dialect used to render statements before a driver is set;
            once a driver is set its dialect wins
    """

    def __init__(self, dialect: str = 'mysql'):
        if not is_supported_dialect(dialect):
            raise ConfigurationError(f'Unsupported dialect: {dialect}')
        self._dialect = dialect
        self._driver: Driver | None = None
        self._encryptor: Encryptor | None = None
        self._processors: ProcessorRegistry | None = None
        self._lock = threading.Lock()

    def _set_once(self, attr: str, value: Any, label: str) -> None:
        with self._lock:
            if getattr(self, attr) is not None:
                raise ConfigurationError(f'{label} already initialized')
            setattr(self, attr, value)
        logger.debug(f'{label} initialized')

    def init_pool(self, options: Any, **kw: Any) -> Driver:
        """Connect using `options` (see `connect`) and keep the driver."""
        driver = connect(options, **kw)
        self.set_driver(driver)
        return driver

    def set_driver(self, driver: Driver) -> None:
        self._set_once('_driver', driver, 'Driver')

    def set_encryptor(self, encryptor: Encryptor) -> None:
        if not isinstance(encryptor, Encryptor):
            raise ConfigurationError(f'{type(encryptor).__name__} does not implement Encryptor')
        self._set_once('_encryptor', encryptor, 'Encryptor')

    def set_processors(self, *settings: ProcessorSettings) -> None:
        """Register processors; several may target the same field."""
        self._set_once('_processors', ProcessorRegistry(list(settings)), 'Processors')

    @property
    def driver(self) -> Driver:
        if self._driver is None:
            raise ConfigurationError('Driver not initialized; call init_pool or set_driver')
        return self._driver

    @property
    def encryptor(self) -> Encryptor:
        if self._encryptor is None:
            raise ConfigurationError('Encryptor not initialized; call set_encryptor')
        return self._encryptor

    @property
    def encryptor_or_none(self) -> Encryptor | None:
        return self._encryptor

    @property
    def processors(self) -> ProcessorRegistry:
        """Registered processors; empty when none were set."""
        return self._processors if self._processors is not None else ProcessorRegistry()

    @property
    def dialect(self) -> str:
        if self._driver is not None:
            return self._driver.dialect
        return self._dialect

    def renderer(self) -> SqlRenderer:
        return SqlRenderer(self.dialect, self._encryptor)

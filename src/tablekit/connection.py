"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function returning a `Driver` over a pooled engine
2. Engine creation and management through a thread-safe registry
3. The `Driver` methods the query layer relies on: `execute`, `fetch`
   and `fetch_frame`, each a single round trip on a pooled connection

Statements arrive as finished SQL text; no parameters are bound.
"""
import atexit
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import fields
from typing import Any

import pandas as pd
import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from tablekit.options import DatabaseOptions
from tablekit.strategy import DialectStrategy, get_strategy

from libb import load_options

__all__ = [
    'Driver',
    'connect',
    'create_url_from_options',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def create_url_from_options(options: DatabaseOptions) -> sa.URL:
    """Convert DatabaseOptions to SQLAlchemy URL.
    """
    return get_strategy(options.drivername).build_connection_url(options)


def _engine_key(options: DatabaseOptions) -> str:
    return ':'.join(f'{f.name}={getattr(options, f.name)!r}' for f in fields(options))


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Pool sizing follows the `pool_*` options; `pool_wait_timeout` bounds
    how long an execution waits to acquire a connection.
    """
    key = _engine_key(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        strategy = get_strategy(options.drivername)
        url = strategy.build_connection_url(options)

        engine_kwargs: dict[str, Any] = {'echo': False}
        engine_kwargs.update(strategy.get_engine_kwargs(options))

        if 'poolclass' not in engine_kwargs and not options.use_pool:
            engine_kwargs['poolclass'] = NullPool
        elif 'poolclass' not in engine_kwargs:
            engine_kwargs['pool_size'] = options.pool_max_connections
            engine_kwargs['pool_recycle'] = options.pool_max_idle_time
            engine_kwargs['pool_timeout'] = options.pool_wait_timeout
            engine_kwargs['max_overflow'] = 0
            engine_kwargs['pool_pre_ping'] = True

        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)
        sa.event.listen(engine, 'connect',
                        lambda dbapi_conn, record: strategy.configure_connection(dbapi_conn, options))

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class Driver:
    """Executes SQL text on pooled connections.

    Each call checks a connection out of the engine pool, runs one
    statement and returns the connection. Transactions spanning several
    statements are left to the caller via `connection()`.
    """

    def __init__(self, engine: Engine, options: DatabaseOptions | None = None):
        self.engine = engine
        self.options = options

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @property
    def strategy(self) -> DialectStrategy:
        return get_strategy(self.dialect)

    @contextmanager
    def connection(self) -> Iterator[sa.Connection]:
        """Check out a connection inside a transaction that commits on exit."""
        with self.engine.begin() as conn:
            yield conn

    def _run(self, conn: sa.Connection, sql: str) -> sa.CursorResult:
        logger.debug(f'Executing: {sql}')
        return conn.execution_options(no_parameters=True).exec_driver_sql(sql)

    def execute(self, sql: str) -> int:
        """Execute a statement and return the affected row count.
        """
        with self.connection() as conn:
            return self._run(conn, sql).rowcount

    def fetch(self, sql: str) -> list[dict[str, Any]]:
        """Execute a query and return rows as dicts keyed by column name.
        """
        with self.connection() as conn:
            result = self._run(conn, sql)
            return [dict(row) for row in result.mappings().all()]

    def fetch_frame(self, sql: str) -> pd.DataFrame:
        """Execute a query and return a DataFrame, keeping columns for empty results.
        """
        with self.connection() as conn:
            result = self._run(conn, sql)
            columns = list(result.keys())
            return pd.DataFrame.from_records(result.all(), columns=columns)

    def dispose(self) -> None:
        self.engine.dispose()


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> Driver:
    """Create a driver for a database.

    Args:
        options: Can be:
                - DatabaseOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        Driver bound to a pooled engine
    """
    engine = get_engine_for_options(options)
    return Driver(engine, options)

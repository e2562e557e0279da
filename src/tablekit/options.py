from dataclasses import dataclass, field

from tablekit.strategy import get_available_dialects, get_strategy_class
from tablekit.strategy import is_supported_dialect

from libb import ConfigOptions, scriptname

__all__ = [
    'DatabaseOptions',
    'GeneratorOptions',
]


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `mysql`, `postgresql`, `sqlite`

    Connection pooling options:
    - use_pool: Whether to use connection pooling (default: True)
    - pool_max_connections: Maximum connections in pool (default: 5)
    - pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
    - pool_wait_timeout: Maximum seconds to wait for a connection (default: 20)

    `timezone` is a signed hour offset applied to each new session.
    """
    drivername: str = 'mysql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    timezone: int | None = None
    # Connection pooling parameters
    use_pool: bool = True
    pool_max_connections: int = 5
    pool_max_idle_time: int = 300
    pool_wait_timeout: int = 20

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        self.appname = self.appname or scriptname() or 'python_console'
        if self.timezone is not None and not -12 <= self.timezone <= 14:
            raise ValueError(f'timezone offset out of range: {self.timezone}')
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)


@dataclass
class GeneratorOptions(ConfigOptions):
    """Options for a generation run.

    - output_dir: directory the generated package is written to
    - boolean_tables: tables whose `tinyint` columns map to bool
    - capability_bindings: `table_column` or `table*` -> capability name
    - encrypted_columns: table -> columns flagged as encrypted in mappings
    - tables: restrict generation to these tables (all when empty)
    - runtime_package: import path of this library in generated code
    """
    output_dir: str = 'generated'
    boolean_tables: set[str] = field(default_factory=set)
    capability_bindings: dict[str, str] = field(default_factory=dict)
    encrypted_columns: dict[str, set[str]] = field(default_factory=dict)
    tables: list[str] = field(default_factory=list)
    runtime_package: str = 'tablekit'

    def __post_init__(self):
        self.boolean_tables = set(self.boolean_tables)
        self.encrypted_columns = {k: set(v) for k, v in self.encrypted_columns.items()}
        for pattern in self.capability_bindings:
            if pattern.count('*') > 1 or ('*' in pattern and not pattern.endswith('*')):
                raise ValueError(f'capability pattern must be table_column or table*: {pattern}')

    def is_encrypted(self, table: str, column: str) -> bool:
        return column in self.encrypted_columns.get(table, ())

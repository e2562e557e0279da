"""
Schema introspection over a live connection.
"""
import logging

import sqlalchemy as sa
from tablekit.connection import Driver
from tablekit.exceptions import IntrospectionError
from tablekit.types import ColumnSchema

logger = logging.getLogger(__name__)

__all__ = ['SchemaIntrospector']


class SchemaIntrospector:
    """Read table names and column descriptors through the dialect strategy.

    Any object with `list_tables()` and `describe_table(table)` can stand
    in for this class when generating records.
    """

    def __init__(self, driver: Driver, bypass_cache: bool = True):
        self.driver = driver
        self.bypass_cache = bypass_cache

    def list_tables(self) -> list[str]:
        """Return every table name in the connected schema.

        Raises
            IntrospectionError: the table list could not be read
        """
        try:
            with self.driver.connection() as cn:
                tables = self.driver.strategy.list_tables(cn)
        except sa.exc.SQLAlchemyError as exc:
            raise IntrospectionError(f'Unable to list tables: {exc}') from exc
        logger.debug(f'Found {len(tables)} tables')
        return tables

    def describe_table(self, table: str) -> list[ColumnSchema]:
        """Return ordered column descriptors for `table`.

        Raises
            IntrospectionError: the table could not be described
        """
        try:
            with self.driver.connection() as cn:
                columns = self.driver.strategy.describe_table(
                    cn, table, bypass_cache=self.bypass_cache)
        except sa.exc.SQLAlchemyError as exc:
            raise IntrospectionError(f'Unable to describe table {table}: {exc}') from exc
        if not columns:
            raise IntrospectionError(f'Table {table} has no columns')
        return columns

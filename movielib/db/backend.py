""" Database backends: SQL dialect details that the SELECT builder has to know about """

from __future__ import annotations

import logging
from typing import ClassVar, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncConnection

from movielib.typing import RowDict, SQLParams


logger = logging.getLogger(__name__)


class Backend:
    """ SQL dialect quirks: placeholders, identifiers, limits, execution """
    # Name for this backend. Used in settings.
    name: ClassVar[str]

    def placeholder(self, index: int) -> str:
        """ Get the placeholder text for the parameter number `index` (0-based) """
        raise NotImplementedError

    def quote(self, name: str) -> str:
        """ Quote an identifier, if necessary """
        raise NotImplementedError

    def qualified(self, table: str, column: str) -> str:
        """ Get a "table.column" reference """
        return f'{self.quote(table)}.{self.quote(column)}'

    def limit_clause(self, limit: Optional[int], offset: Optional[int]) -> str:
        """ Get the LIMIT/OFFSET clause. Empty string when there's no limit. """
        raise NotImplementedError

    async def fetch_rows(self, connection: AsyncConnection, sql: str, params: SQLParams) -> list[RowDict]:
        """ Execute a SELECT with positional parameters, get rows as dicts """
        raise NotImplementedError


class SqliteBackend(Backend):
    """ Embedded file store: SQLite via aiosqlite

    SQLite binds parameters with "?" and does not care about the identifier case.
    """
    name = 'sqlite'

    def placeholder(self, index: int) -> str:
        return '?'

    def quote(self, name: str) -> str:
        return name

    def limit_clause(self, limit: Optional[int], offset: Optional[int]) -> str:
        # SQLite has no OFFSET without a LIMIT; -1 means "no limit"
        if limit is not None and offset:
            return f' LIMIT {int(limit)} OFFSET {int(offset)}'
        elif limit is not None:
            return f' LIMIT {int(limit)}'
        elif offset:
            return f' LIMIT -1 OFFSET {int(offset)}'
        else:
            return ''

    async def fetch_rows(self, connection: AsyncConnection, sql: str, params: SQLParams) -> list[RowDict]:
        logger.debug('SQL: %s; params=%r', sql, params)
        result = await connection.exec_driver_sql(sql, tuple(params))
        return [dict(row) for row in result.mappings()]


class PostgresBackend(Backend):
    """ Server store: PostgreSQL via asyncpg

    Placeholders are numbered, ":p0", ":p1", etc, and bound by name.
    Mixed-case identifiers are quoted: otherwise Postgres folds them to lower case.
    """
    name = 'postgres'

    def placeholder(self, index: int) -> str:
        return f':p{index}'

    def quote(self, name: str) -> str:
        if name.islower() or name == '*':
            return name
        else:
            return f'"{name}"'

    def limit_clause(self, limit: Optional[int], offset: Optional[int]) -> str:
        clause = ''
        if limit is not None:
            clause += f' LIMIT {int(limit)}'
        if offset:
            clause += f' OFFSET {int(offset)}'
        return clause

    async def fetch_rows(self, connection: AsyncConnection, sql: str, params: SQLParams) -> list[RowDict]:
        logger.debug('SQL: %s; params=%r', sql, params)
        result = await connection.execute(
            sa.text(sql),
            {f'p{i}': value for i, value in enumerate(params)}
        )
        return [dict(row) for row in result.mappings()]


# Backends, by name
BACKENDS: dict[str, type[Backend]] = {
    SqliteBackend.name: SqliteBackend,
    PostgresBackend.name: PostgresBackend,
}


def get_backend(name: str) -> Backend:
    """ Get a backend by name

    Raises:
        KeyError: unknown backend
    """
    return BACKENDS[name]()


def backend_for_url(url: str) -> Backend:
    """ Pick a backend for the database URL """
    drivername = sa.engine.make_url(url).get_backend_name()
    if drivername == 'postgresql':
        return PostgresBackend()
    else:
        return SqliteBackend()

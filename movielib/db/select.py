""" SELECT statement builder

Builds SQL text with positional parameters, in the form both backends understand:

    SELECT <columns>, COUNT(*) OVER() AS total_count
    FROM <table> [JOIN <table> ON <cond>]...
    WHERE <cond> AND <cond> ...
    ORDER BY <columns>
    LIMIT <n> OFFSET <n>

Parameters are numbered in the order they are added: conditions first, then keyset boundaries.
"""

from __future__ import annotations

from collections import abc
from typing import Any, Optional

from movielib.typing import SQLParams
from movielib.pagination import PageWindow, SearchParams, resolve_window

from .backend import Backend


class SelectBuilder:
    """ Build a SELECT statement step by step

    Example:
        q = SelectBuilder(backend, 'MediaInfo')
        q.add_columns('MediaInfo', ['_id', 'title'])
        q.where_equals(backend.qualified('MediaInfo', '_id'), ['MOVIE_a', 'MOVIE_b'])
        rows = await backend.fetch_rows(connection, q.sql(), q.params)
    """
    # Name of the window column that counts the rows
    COUNT_NAME = 'total_count'

    def __init__(self, backend: Backend, table: str):
        self.backend = backend

        self.from_clause = backend.quote(table)
        self.columns: list[str] = []
        self.conditions: list[str] = []
        self.params: SQLParams = []
        self.order_by: list[str] = []
        self.limit: Optional[int] = None
        self.offset: Optional[int] = None

        # Add COUNT(*) OVER() ?
        self.with_count = True

    __slots__ = 'backend', 'from_clause', 'columns', 'conditions', 'params', 'order_by', 'limit', 'offset', 'with_count'

    def add_columns(self, table: str, names: abc.Iterable[str]):
        """ Select columns from a table. Duplicates are skipped. """
        for name in names:
            column = self.backend.qualified(table, name)
            if column not in self.columns:
                self.columns.append(column)
        return self

    def add_column_expression(self, expression: str, label: str):
        """ Select an SQL expression """
        self.columns.append(f'{expression} AS {self.backend.quote(label)}')
        return self

    def join(self, table: str, on: str, kind: str = 'JOIN'):
        """ Join a table """
        self.from_clause += f' {kind} {self.backend.quote(table)} ON {on}'
        return self

    def where(self, condition: str, params: abc.Iterable = ()):
        """ Add a raw condition. Its placeholders must have been numbered starting at `self.param_count` """
        self.conditions.append(condition)
        self.params.extend(params)
        return self

    def where_equals(self, column: str, value: Any):
        """ Add a condition on a column

        * scalar: `column = ?`
        * None: `column IS NULL`
        * list: `column IN (?, ?)`. If the list has a None, `OR column IS NULL` is added.
        """
        if value is None:
            return self.where(f'{column} IS NULL')

        if not isinstance(value, (list, tuple, set, frozenset)):
            return self.where(f'{column} = {self._next_placeholder()}', [value])

        values = [v for v in value if v is not None]
        has_none = len(values) < len(value)

        # Nothing to match
        if not values and not has_none:
            return self.where('1 = 0')
        # Only NULLs
        elif not values:
            return self.where(f'{column} IS NULL')

        placeholders = ', '.join(self.backend.placeholder(self.param_count + i) for i in range(len(values)))
        condition = f'{column} IN ({placeholders})'
        if has_none:
            condition = f'({condition} OR {column} IS NULL)'
        return self.where(condition, values)

    def paginate(self, ordering_keys: abc.Sequence[str], page: PageWindow) -> SearchParams:
        """ Apply a page window: keyset conditions, ORDER BY, LIMIT, OFFSET

        Call it after all other conditions have been added: keyset placeholders are numbered after them.

        Args:
            ordering_keys: Columns to sort by, as SQL expressions. The last one must be unique.
            page: The window
        """
        search = resolve_window(ordering_keys, page, self.param_count, self.backend.placeholder)

        for condition in search.where_conds:
            self.conditions.append(condition)
        self.params.extend(search.where_params)

        self.order_by = search.order_by
        self.limit = search.limit
        self.offset = search.offset
        return search

    @property
    def param_count(self) -> int:
        return len(self.params)

    def _next_placeholder(self) -> str:
        return self.backend.placeholder(self.param_count)

    def sql(self) -> str:
        """ Get the SQL text """
        columns = ', '.join(self.columns)
        if self.with_count:
            columns += f', COUNT(*) OVER() AS {self.COUNT_NAME}'

        sql = f'SELECT {columns} FROM {self.from_clause}'
        if self.conditions:
            sql += ' WHERE ' + ' AND '.join(self.conditions)
        if self.order_by:
            sql += ' ORDER BY ' + ', '.join(self.order_by)
        sql += self.backend.limit_clause(self.limit, self.offset)
        return sql

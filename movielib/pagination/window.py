""" Page window: turn first/after/last/before/offset into a bounded query and back """

from __future__ import annotations

from collections import abc
from dataclasses import dataclass, field
from typing import Optional, NamedTuple

from movielib import exc
from movielib.typing import BoundaryDict, RowDict, SQLParams

from .cursor import decode_cursor
from .keyset import (
    KeysetDirection, PlaceholderFunc, qmark_placeholder,
    build_keyset_where, boundary_is_inside,
)


@dataclass(frozen=True)
class PageRequest:
    """ Connection arguments, as given by the User

    Cursors are still encoded here. Use `window()` to decode them.
    """
    first: Optional[int] = None
    after: Optional[str] = None
    last: Optional[int] = None
    before: Optional[str] = None
    offset: Optional[int] = None

    @classmethod
    def from_args(cls, args: abc.Mapping) -> PageRequest:
        """ Pick connection arguments from GraphQL field arguments """
        return cls(
            first=args.get('first'),
            after=args.get('after'),
            last=args.get('last'),
            before=args.get('before'),
            offset=args.get('offset'),
        )

    @property
    def is_empty(self) -> bool:
        """ Is no argument given at all? """
        return self == PageRequest()

    def validate(self):
        """ Check the arguments

        Raises:
            exc.ConnectionArgumentError: negative `first`, `last`, or `offset`
        """
        for name in ('first', 'last', 'offset'):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise exc.ConnectionArgumentError(name, value)

    def window(self) -> PageWindow:
        """ Validate the arguments, decode the cursors

        Raises:
            exc.ConnectionArgumentError: invalid numbers
            exc.MalformedCursorError: invalid cursors
        """
        self.validate()
        return PageWindow(
            first=self.first,
            after=decode_cursor(self.after) if self.after is not None else None,
            last=self.last,
            before=decode_cursor(self.before) if self.before is not None else None,
            offset=self.offset,
        )


@dataclass(frozen=True)
class PageWindow:
    """ Connection arguments with decoded boundaries: what the data layer receives """
    first: Optional[int] = None
    after: Optional[BoundaryDict] = None
    last: Optional[int] = None
    before: Optional[BoundaryDict] = None
    offset: Optional[int] = None


# No pagination: all rows
FULL_WINDOW = PageWindow()


class SearchParams(NamedTuple):
    """ How to query a page: conditions, ordering, limits """
    # Columns the rows are sorted by
    ordering_keys: tuple[str, ...]

    # Keyset conditions for the "after" and "before" boundaries
    where_conds: list[str]

    # Parameters for `where_conds`
    where_params: SQLParams

    # ORDER BY columns, with DESC when reversed
    order_by: list[str]

    # Is the physical scan running backwards?
    reversed_order: bool

    # LIMIT
    limit: Optional[int]

    # OFFSET
    offset: Optional[int]


def resolve_window(ordering_keys: abc.Sequence[str],
                   page: PageWindow,
                   param_start_index: int = 0,
                   placeholder: PlaceholderFunc = qmark_placeholder) -> SearchParams:
    """ Decide how to query the page

    * "after" is a FORWARD keyset condition
    * "before" is a BACKWARD keyset condition, applied only if it sorts after "after"
    * When only `last` is given, the scan runs backwards: ORDER BY ... DESC LIMIT last.
      This is the only way to get the last N rows without counting them first.
    * When both `first` and `last` are given, `first` limits the query. `last` is applied by `adjust_rows()`.

    Args:
        ordering_keys: Columns the rows are sorted by; the final one must be unique
        page: The window
        param_start_index: Index of the first placeholder: the number of parameters already in the query
        placeholder: Function to generate placeholder text
    """
    ordering_keys = tuple(ordering_keys)
    where_conds: list[str] = []
    where_params: SQLParams = []

    if page.after is not None:
        cond, params = build_keyset_where(ordering_keys, page.after, KeysetDirection.FORWARD,
                                          param_start_index, placeholder)
        where_conds.append(cond)
        where_params.extend(params)

    # A "before" that does not come after "after" would produce an empty window. It's ignored.
    before_is_inside = page.after is None or page.before is None or boundary_is_inside(ordering_keys, page.after, page.before)

    if page.before is not None and before_is_inside:
        cond, params = build_keyset_where(ordering_keys, page.before, KeysetDirection.BACKWARD,
                                          param_start_index + len(where_params), placeholder)
        where_conds.append(cond)
        where_params.extend(params)

    reversed_order = page.first is None and page.last is not None

    return SearchParams(
        ordering_keys=ordering_keys,
        where_conds=where_conds,
        where_params=where_params,
        order_by=[f'{key} DESC' for key in ordering_keys] if reversed_order else list(ordering_keys),
        reversed_order=reversed_order,
        limit=page.last if reversed_order else page.first,
        offset=page.offset,
    )


def adjust_rows(rows: list[RowDict], reversed_order: bool, last: Optional[int], offset: Optional[int]) -> tuple[list[RowDict], Optional[int]]:
    """ Bring the fetched rows into display order and apply `last`

    Returns:
        rows: rows in ascending order
        offset: rows skipped from the head of the window: `offset`, plus those truncated by `last`
    """
    if reversed_order:
        rows = rows[::-1]

    if last is not None and last < len(rows):
        truncated = len(rows) - last
        rows = rows[truncated:]
        offset = (offset or 0) + truncated

    return rows, offset


@dataclass
class PageResult:
    """ One page of rows, with the bookkeeping needed to build a connection """
    # Rows, in display order
    rows: list[RowDict]

    # Number of rows that matched the query before LIMIT/OFFSET
    total_count: int = 0

    # Rows skipped at the head of the window
    offset: Optional[int] = None

    # Was the physical scan reversed?
    reversed_order: bool = False

    # Primary key columns of the rows
    id_col_names: list[str] = field(default_factory=list)

    # Column that links rows to the parent entity, if any
    foreign_id_name: Optional[str] = None

    # Columns to make cursors from: the ordering keys, unqualified
    cursor_fields: list[str] = field(default_factory=list)

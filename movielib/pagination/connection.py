""" Relay connections: edges and page info

See: https://relay.dev/graphql/connections.htm
"""

from __future__ import annotations

from collections import abc
from typing import TypedDict, Optional, NamedTuple

from movielib.typing import RowDict

from .cursor import encode_cursor
from .window import PageResult


def build_connection(result: PageResult, after: Optional[str], before: Optional[str], cursor_fields: abc.Sequence[str], *,
                     node_factory: Optional[abc.Callable[[RowDict], object]] = None) -> ConnectionDict:
    """ Convert a page of rows into a Relay connection

    Args:
        result: The page, as fetched by the data layer
        after: The "after" cursor the User has provided, if any
        before: The "before" cursor the User has provided, if any
        cursor_fields: Columns to put into every cursor. Must be the ordering keys the page was fetched with.
        node_factory: Wrap every row into an object, e.g. an entity with relation accessors
    """
    edges: list[EdgeDict] = [
        {'node': node_factory(row) if node_factory else row, 'cursor': row_cursor(row, cursor_fields)}
        for row in result.rows
    ]

    flags = page_flags(
        reversed_order=result.reversed_order,
        has_prev_input=after is not None,
        has_next_input=before is not None,
        total_count=result.total_count,
        edge_count=len(edges),
        offset=result.offset or 0,
    )

    return {
        'edges': edges,
        'nodes': [edge['node'] for edge in edges],
        'totalRowsCount': result.total_count,
        'pageInfo': {
            'hasPreviousPage': flags.has_previous_page,
            'hasNextPage': flags.has_next_page,
            'startCursor': edges[0]['cursor'] if edges else '',
            'endCursor': edges[-1]['cursor'] if edges else '',
        },
    }


def row_cursor(row: RowDict, cursor_fields: abc.Sequence[str]) -> str:
    """ Make a cursor that points to this row """
    return encode_cursor({name: row[name] for name in cursor_fields})


class PageFlags(NamedTuple):
    has_previous_page: bool
    has_next_page: bool


def page_flags(reversed_order: bool, has_prev_input: bool, has_next_input: bool, total_count: int, edge_count: int, offset: int) -> PageFlags:
    """ Tell whether there are rows before and after the page

    `total_count` is the number of rows the query has matched before LIMIT/OFFSET.
    Rows beyond the page are only known on the side the scan grew towards:

    * Forward scan: rows [offset ... offset + edge_count) of `total_count`. The tail is known.
      Whether there's something before the page is only known from the "after" cursor, or an offset.
    * Reversed scan: the same, mirrored. The head is known;
      whether there's something after the page is only known from the "before" cursor, or an offset.

    An empty page has no neighbours.
    """
    if edge_count == 0:
        return PageFlags(has_previous_page=False, has_next_page=False)

    more_rows_beyond = total_count > edge_count + offset

    if reversed_order:
        return PageFlags(
            has_previous_page=more_rows_beyond,
            has_next_page=has_next_input or offset > 0,
        )
    else:
        return PageFlags(
            has_previous_page=has_prev_input or offset > 0,
            has_next_page=more_rows_beyond,
        )


class ConnectionDict(TypedDict):
    """ Relay Connection type: paginated list """
    edges: Optional[list[EdgeDict]]
    # Shortcut: nodes without edges
    nodes: Optional[list[object]]
    # Number of rows that matched, on all pages
    totalRowsCount: int
    pageInfo: PageInfoDict


class EdgeDict(TypedDict):
    """ Relay Edge type: paginated item """
    node: object
    cursor: str


class PageInfoDict(TypedDict):
    """ Relay Page Info """
    hasPreviousPage: bool
    hasNextPage: bool
    startCursor: str
    endCursor: str

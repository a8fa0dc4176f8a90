""" Cursor-based pagination

Keyset pagination over ordered result sets, with opaque cursors and Relay connections.
"""

from .cursor import encode_cursor, decode_cursor
from .keyset import KeysetDirection, KeysetWhere, build_keyset_where, boundary_is_inside, qmark_placeholder
from .window import PageRequest, PageWindow, PageResult, SearchParams, FULL_WINDOW, resolve_window, adjust_rows
from .connection import build_connection, page_flags, PageFlags, ConnectionDict, EdgeDict, PageInfoDict

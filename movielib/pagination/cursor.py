""" Opaque cursors: a boundary snapshot, serialized """

from __future__ import annotations

import base64
import binascii
import json

from movielib import exc
from movielib.typing import BoundaryDict


def encode_cursor(snapshot: BoundaryDict) -> str:
    """ Encode a dict of column values as an opaque cursor

    Example:
        encode_cursor({'title': 'Alien', '_id': 'MOVIE_C_Alien'})
    """
    return base64.b64encode(json.dumps(snapshot).encode()).decode()


def decode_cursor(cursor: str) -> BoundaryDict:
    """ Decode an opaque cursor into a boundary snapshot

    Raises:
        exc.MalformedCursorError: not base64, not JSON, not a JSON object, or non-scalar values
    """
    try:
        data = json.loads(base64.b64decode(cursor.encode(), validate=True))
    except (binascii.Error, UnicodeError, ValueError) as e:  # json.JSONDecodeError is a ValueError
        raise exc.MalformedCursorError(cursor, str(e)) from e

    if not isinstance(data, dict):
        raise exc.MalformedCursorError(cursor, f'expected an object, got {type(data).__name__}')

    if not all(value is None or isinstance(value, (str, int, float, bool)) for value in data.values()):
        raise exc.MalformedCursorError(cursor, 'expected scalar values')

    return data

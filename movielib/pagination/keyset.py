""" Keyset pagination: the WHERE condition that selects rows after/before a boundary row

Keyset pagination requires the rows to be sorted by a list of columns where the final one is unique.
To pick rows that come after the row (title='B', _id=7) in ORDER BY title, _id, we compare tuples lexicographically:

    title > 'B' OR title = 'B' AND _id > 7

This is what `(title, _id) > ('B', 7)` means, but not every database can compare tuples,
so we always expand the comparison into clauses.
"""

from __future__ import annotations

import enum
import numbers
from collections import abc
from typing import NamedTuple

from movielib import exc
from movielib.typing import BoundaryDict, SQLParams


# Placeholder function: gets the parameter index, returns its SQL text
PlaceholderFunc = abc.Callable[[int], str]


def qmark_placeholder(index: int) -> str:
    """ Placeholder for backends that bind parameters positionally with "?" """
    return '?'


class KeysetDirection(enum.Enum):
    """ Which side of the boundary row to take """
    # Rows strictly after the boundary: "after" cursor
    FORWARD = '>'

    # Rows strictly before the boundary: "before" cursor
    BACKWARD = '<'


class KeysetWhere(NamedTuple):
    """ A WHERE condition with its parameters """
    # The condition. Parenthesized.
    where_cond: str

    # Values for the placeholders, in the order they appear in `where_cond`
    params: SQLParams


def build_keyset_where(ordering_keys: abc.Sequence[str],
                       boundary: BoundaryDict,
                       direction: KeysetDirection,
                       param_start_index: int = 0,
                       placeholder: PlaceholderFunc = qmark_placeholder) -> KeysetWhere:
    """ Build a condition that selects rows strictly after/before the `boundary` row

    For keys (title, _id, path), FORWARD:

        (title > ? OR title = ? AND _id > ? OR title = ? AND _id = ? AND path > ?)

    Args:
        ordering_keys: Columns the rows are sorted by. Can be table-qualified: "PlayListInfo.name"
        boundary: { column name => value } of the boundary row. Keyed by unqualified column names.
        direction: FORWARD for "after", BACKWARD for "before"
        param_start_index: The index of the first placeholder. Used by backends that number their placeholders.
        placeholder: Function to generate placeholder text

    Raises:
        exc.InvalidBoundaryError: no ordering keys, or the boundary lacks some of them
    """
    if not ordering_keys:
        raise exc.InvalidBoundaryError('at least one ordering key is required')

    values = boundary_values(ordering_keys, boundary)
    op = direction.value

    clauses: list[str] = []
    params: SQLParams = []
    param_index = param_start_index

    for i, key in enumerate(ordering_keys):
        conds = []

        # All preceding keys are equal ...
        for eq_key, eq_value in zip(ordering_keys[:i], values[:i]):
            conds.append(f'{eq_key} = {placeholder(param_index)}')
            params.append(eq_value)
            param_index += 1

        # ... and this one is greater (or less)
        conds.append(f'{key} {op} {placeholder(param_index)}')
        params.append(values[i])
        param_index += 1

        clauses.append(' AND '.join(conds))

    return KeysetWhere(
        where_cond='(' + ' OR '.join(clauses) + ')',
        params=params,
    )


def boundary_is_inside(ordering_keys: abc.Sequence[str], after: BoundaryDict, before: BoundaryDict) -> bool:
    """ Check that the `before` boundary sorts strictly after the `after` boundary

    When it does not, the window between them would be empty, and the "before" condition is not applied.
    """
    after_values = boundary_values(ordering_keys, after)
    before_values = boundary_values(ordering_keys, before)

    for after_value, before_value in zip(after_values, before_values):
        # Values of different types, or NULLs, cannot be ordered: move on to the next key
        if after_value is None or before_value is None or not _comparable(after_value, before_value):
            continue

        if before_value > after_value:
            return True
        elif before_value < after_value:
            return False

    return False


def _comparable(a, b) -> bool:
    """ Can the two values be ordered? Any two numbers can: int and float alike """
    if isinstance(a, numbers.Real) and isinstance(b, numbers.Real):
        return True
    return isinstance(b, type(a))


def boundary_values(ordering_keys: abc.Sequence[str], boundary: BoundaryDict) -> list:
    """ Get values from the `boundary` for every ordering key

    Raises:
        exc.InvalidBoundaryError: a key is missing
    """
    try:
        return [boundary[column_key(key)] for key in ordering_keys]
    except KeyError as e:
        raise exc.InvalidBoundaryError(f'boundary has no value for {e.args[0]!r}') from e


def column_key(name: str) -> str:
    """ Get the bare column name: drop the table prefix and identifier quotes

    Example:
        'PlayListInfo.name' -> 'name'
        '"MediaInfo"."mediaFullPath"' -> 'mediaFullPath'
    """
    return name.rsplit('.', 1)[-1].strip('"')

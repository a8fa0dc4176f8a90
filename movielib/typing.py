from typing import Union, Any


# A scalar that can be stored in a cursor
CursorScalar = Union[str, int, float, bool, None]

# Boundary snapshot: { ordering column name => value }, decoded from a cursor
BoundaryDict = dict[str, CursorScalar]

# Annotation for dict rows (result rows returned as dicts)
RowDict = dict[str, Any]

# Parameter values to be bound to an SQL statement, positionally
SQLParams = list[Any]

class BaseMovielibError(Exception):
    pass


# ### Pagination errors

class MalformedCursorError(BaseMovielibError):
    """ The cursor string could not be decoded

    Reported when a client sends an `after`/`before` value that was not produced by us
    """

    def __init__(self, cursor: str, reason: str):
        self.cursor = cursor
        self.reason = reason

        super().__init__(f'Malformed cursor {cursor!r}: {reason}')


class InvalidBoundaryError(BaseMovielibError):
    """ Keyset condition cannot be built from the given ordering keys and boundary row """

    def __init__(self, err: str):
        super().__init__(f'Invalid keyset boundary: {err}')


class ConnectionArgumentError(BaseMovielibError):
    """ Invalid pagination arguments provided by the User: first, last, offset """

    def __init__(self, argument: str, value: object):
        self.argument = argument
        self.value = value

        super().__init__(f'Connection argument "{argument}" must be a non-negative integer, got {value!r}')


# ### Data layer errors

class InvalidColumnError(BaseMovielibError):
    """ An invalid column name was mentioned

    Reported when a column requested by name is not found in the table
    """

    def __init__(self, table: str, column_name: str, where: str):
        self.table = table
        self.column_name = column_name
        self.where = where

        super().__init__(f'Invalid column "{column_name}" for "{table}" specified in {where}')


class DatabaseNotReadyError(BaseMovielibError):
    """ The data layer has not been initialized yet """

    def __init__(self):
        super().__init__('Database is not ready')


class MissingGroupTypeError(BaseMovielibError):
    """ A movie group type is referenced that does not exist """


class MissingGroupError(BaseMovielibError):
    """ A movie group is referenced that does not exist """


class MissingMovieError(BaseMovielibError):
    """ A movie is referenced that does not exist """


class CannotDeleteUsedTypeError(BaseMovielibError):
    """ A group type cannot be deleted while some groups still use it """


class MissingLastIdError(BaseMovielibError):
    """ INSERT did not report the id of the new row """


class NonEmptyGroupError(BaseMovielibError):
    """ A movie group cannot be deleted while some movies are still in it """

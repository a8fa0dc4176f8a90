""" Data layer: tables, SQL backends, the movie manager """

from .backend import Backend, SqliteBackend, PostgresBackend, get_backend, backend_for_url
from .select import SelectBuilder
from .manager import MovieManager, MOVIE_ID_PREFIX, NO_TYPE
from . import tables

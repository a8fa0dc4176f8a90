from __future__ import annotations

from dataclasses import dataclass

from movielib.db.manager import MovieManager
from movielib.loaders import MoviesLoaders, create_movies_loaders


@dataclass
class Context:
    """ GraphQL execution context: one per request """
    manager: MovieManager
    loaders: MoviesLoaders

    @classmethod
    def for_request(cls, manager: MovieManager) -> Context:
        """ Make a context with fresh loaders """
        return cls(manager=manager, loaders=create_movies_loaders(manager))

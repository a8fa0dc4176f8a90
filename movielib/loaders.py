""" Batched loaders for nested relations

Every `load()` made within one event loop tick is coalesced into a single query with `IN (...)`,
and the result is split back into per-key pages.

Each GraphQL request gets its own loaders: the cache lives as long as the request.

Usage in a resolver:
    result = await info.context.loaders.movies_in_group.load(LoadParam(gid, LoadParams(ex_column_names=['genre'])))
"""

from __future__ import annotations

import logging
from collections import abc
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from strawberry.dataloader import DataLoader

from movielib.db.manager import MovieManager
from movielib.pagination import PageResult


logger = logging.getLogger(__name__)

KeyT = TypeVar('KeyT')


@dataclass(frozen=True)
class LoadParams:
    """ Query parameters shared by all keys of a batch """
    # Additional columns to select
    ex_column_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class LoadParam(Generic[KeyT]):
    """ Load request: a key, and query parameters """
    key: KeyT
    params: LoadParams = field(default_factory=LoadParams)


def extract_keys(load_params: abc.Sequence[LoadParam[KeyT]]) -> tuple[list[KeyT], LoadParams]:
    """ Split a batch into keys and query parameters

    The batch is fetched with one query, so all requests must agree on parameters.
    The parameters of the first request are used.
    """
    keys = [p.key for p in load_params]
    params = load_params[0].params if load_params else LoadParams()

    if any(p.params != params for p in load_params[1:]):
        logger.warning('Loader batch with different parameters: using %r for keys %r', params, keys)

    return keys, params


def split_result(id_name: str,
                 load_params: abc.Sequence[LoadParam[KeyT]],
                 result: PageResult,
                 transform_key: Optional[abc.Callable[[KeyT], Any]] = None) -> list[PageResult]:
    """ Split the result of a batch query into pages, one per key

    Args:
        id_name: The column to split the rows by. Matched case-insensitively.
        load_params: Requests, in the order the results should come in
        result: Rows for all keys
        transform_key: Convert a key into the value of the `id_name` column

    Returns:
        A page for every request. Its `total_count` is the number of rows for this key.
    """
    column_name = _find_column(id_name, result.rows[0]) if result.rows else id_name

    pages = []
    for p in load_params:
        key = transform_key(p.key) if transform_key else p.key
        rows = [row for row in result.rows if row[column_name] == key]
        pages.append(PageResult(
            rows=rows,
            total_count=len(rows),
            offset=None,
            reversed_order=False,
            id_col_names=result.id_col_names,
            foreign_id_name=result.foreign_id_name,
            cursor_fields=result.cursor_fields,
        ))
    return pages


def _find_column(name: str, row: abc.Mapping[str, Any]) -> str:
    """ Find the actual column name. Some databases change the case of unquoted names. """
    lower_name = name.lower()
    for column_name in row:
        if column_name.lower() == lower_name:
            return column_name
    raise KeyError(name)


def _cache_key(load_param: LoadParam) -> Any:
    return load_param.key


def _no_type(tid: int) -> Optional[int]:
    """ Type `0` is "no type": groups have NULL there """
    return None if tid == 0 else tid


@dataclass
class MoviesLoaders:
    """ Loaders for every nested relation """
    # Group id => movies in it
    movies_in_group: DataLoader[LoadParam[int], PageResult]

    # Movie id => groups it belongs to
    groups_of_movie: DataLoader[LoadParam[str], PageResult]

    # Type id => the type. Used to get the type of a group.
    type_of_group: DataLoader[LoadParam[int], PageResult]

    # Type id => groups of this type. `0` gets groups without a type.
    groups_in_type: DataLoader[LoadParam[int], PageResult]


def create_movies_loaders(manager: MovieManager) -> MoviesLoaders:
    """ Create loaders for one request """

    async def load_movies_in_group(load_params: list[LoadParam[int]]) -> list[PageResult]:
        keys, params = extract_keys(load_params)
        logger.debug('Loading movies of %d groups', len(keys))
        result = await manager.get_movies(gid=keys, ex_column_names=params.ex_column_names)
        return split_result('playlistID', load_params, result)

    async def load_groups_of_movie(load_params: list[LoadParam[str]]) -> list[PageResult]:
        keys, params = extract_keys(load_params)
        logger.debug('Loading groups of %d movies', len(keys))
        result = await manager.get_groups_of_movie(mid=keys, ex_column_names=params.ex_column_names)
        return split_result('mid', load_params, result)

    async def load_type_of_group(load_params: list[LoadParam[int]]) -> list[PageResult]:
        keys, params = extract_keys(load_params)
        logger.debug('Loading %d group types', len(keys))
        result = await manager.get_movie_group_types(tid=keys, ex_column_names=params.ex_column_names)
        return split_result('_id', load_params, result)

    async def load_groups_in_type(load_params: list[LoadParam[int]]) -> list[PageResult]:
        keys, params = extract_keys(load_params)
        logger.debug('Loading groups of %d types', len(keys))
        result = await manager.get_movie_groups(tid=keys, ex_column_names=params.ex_column_names)
        return split_result('gendid', load_params, result, transform_key=_no_type)

    return MoviesLoaders(
        movies_in_group=DataLoader(load_fn=load_movies_in_group, cache_key_fn=_cache_key),
        groups_of_movie=DataLoader(load_fn=load_groups_of_movie, cache_key_fn=_cache_key),
        type_of_group=DataLoader(load_fn=load_type_of_group, cache_key_fn=_cache_key),
        groups_in_type=DataLoader(load_fn=load_groups_in_type, cache_key_fn=_cache_key),
    )

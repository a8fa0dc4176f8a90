import asyncio
import logging

import pytest

from movielib.loaders import LoadParam, LoadParams, create_movies_loaders, extract_keys, split_result
from movielib.pagination import PageResult


async def test_movies_in_group():
    """ Test: loads made together are fetched with one query """
    manager = FakeMovieManager()
    loaders = create_movies_loaders(manager)

    # Load 3 groups at once
    params = LoadParams(ex_column_names=('genre',))
    g1, g2, g3 = await asyncio.gather(
        loaders.movies_in_group.load(LoadParam(1, params)),
        loaders.movies_in_group.load(LoadParam(2, params)),
        loaders.movies_in_group.load(LoadParam(3, params)),
    )

    # One query
    assert manager.calls == [('get_movies', [1, 2, 3], ('genre',))]

    # Split by group, in order
    assert [row['title'] for row in g1.rows] == ['A', 'B']
    assert [row['title'] for row in g2.rows] == ['C']
    assert g3.rows == []
    assert (g1.total_count, g2.total_count, g3.total_count) == (2, 1, 0)
    assert g1.cursor_fields == ['listOrder']
    assert g1.foreign_id_name == 'playlistID'

    # Cached: no new query
    again = await loaders.movies_in_group.load(LoadParam(2, params))
    assert again is g2
    assert len(manager.calls) == 1


async def test_groups_in_type():
    """ Test: type 0 gets groups without a type """
    manager = FakeMovieManager()
    loaders = create_movies_loaders(manager)

    no_type, scifi = await asyncio.gather(
        loaders.groups_in_type.load(LoadParam(0)),
        loaders.groups_in_type.load(LoadParam(7)),
    )

    assert manager.calls == [('get_movie_groups', [0, 7], ())]
    assert [row['name'] for row in no_type.rows] == ['Misc']
    assert [row['name'] for row in scifi.rows] == ['Star Trek', 'Star Wars']


async def test_groups_of_movie():
    """ Test: groups of movies """
    manager = FakeMovieManager()
    loaders = create_movies_loaders(manager)

    a, b = await asyncio.gather(
        loaders.groups_of_movie.load(LoadParam('MOVIE_a')),
        loaders.groups_of_movie.load(LoadParam('MOVIE_b')),
    )
    assert manager.calls == [('get_groups_of_movie', ['MOVIE_a', 'MOVIE_b'], ())]
    assert [row['name'] for row in a.rows] == ['Misc', 'Star Wars']
    assert b.rows == []


async def test_loader_error():
    """ Test: a failed query fails every load of the batch """
    manager = FakeMovieManager(fail=True)
    loaders = create_movies_loaders(manager)

    results = await asyncio.gather(
        loaders.type_of_group.load(LoadParam(1)),
        loaders.type_of_group.load(LoadParam(2)),
        return_exceptions=True,
    )
    assert [type(r) for r in results] == [RuntimeError, RuntimeError]
    assert len(manager.calls) == 1


def test_extract_keys(caplog):
    """ Test: keys and parameters of a batch """
    # Same parameters
    keys, params = extract_keys([LoadParam(1, LoadParams(('genre',))), LoadParam(2, LoadParams(('genre',)))])
    assert keys == [1, 2]
    assert params == LoadParams(('genre',))
    assert not caplog.records

    # Different parameters: the first one wins
    with caplog.at_level(logging.WARNING, logger='movielib.loaders'):
        keys, params = extract_keys([LoadParam(1, LoadParams(('genre',))), LoadParam(2, LoadParams(('studio',)))])
    assert keys == [1, 2]
    assert params == LoadParams(('genre',))
    assert 'different parameters' in caplog.text

    # Empty
    assert extract_keys([]) == ([], LoadParams())


def test_split_result():
    """ Test: split rows by a column, ignoring its case """
    result = PageResult(
        rows=[
            {'_id': 'MOVIE_a', 'PLAYLISTID': 1},
            {'_id': 'MOVIE_b', 'PLAYLISTID': 2},
            {'_id': 'MOVIE_c', 'PLAYLISTID': 1},
        ],
        total_count=3,
        id_col_names=['_id'],
        foreign_id_name='playlistID',
    )

    pages = split_result('playlistID', [LoadParam(2), LoadParam(1), LoadParam(5)], result)
    assert [[row['_id'] for row in page.rows] for page in pages] == [['MOVIE_b'], ['MOVIE_a', 'MOVIE_c'], []]
    assert [page.total_count for page in pages] == [1, 2, 0]
    assert all(page.id_col_names == ['_id'] for page in pages)

    # No rows at all
    pages = split_result('playlistID', [LoadParam(1)], PageResult(rows=[]))
    assert pages[0].rows == []

    # Unknown column
    with pytest.raises(KeyError):
        split_result('nope', [LoadParam(1)], result)


class FakeMovieManager:
    """ Movie manager that serves fixed rows and remembers every call """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    async def get_movies(self, gid=None, mid=None, ex_column_names=(), page=None):
        self._called('get_movies', gid, ex_column_names)
        rows = [
            {'_id': 'MOVIE_a', 'title': 'A', 'playlistID': 1, 'listOrder': 1},
            {'_id': 'MOVIE_b', 'title': 'B', 'playlistID': 1, 'listOrder': 2},
            {'_id': 'MOVIE_c', 'title': 'C', 'playlistID': 2, 'listOrder': 1},
        ]
        return PageResult(rows=[row for row in rows if row['playlistID'] in gid], total_count=3,
                          id_col_names=['_id'], foreign_id_name='playlistID', cursor_fields=['listOrder'])

    async def get_movie_groups(self, tid=None, gid=None, ex_column_names=(), page=None):
        self._called('get_movie_groups', tid, ex_column_names)
        rows = [
            {'_id': 1, 'name': 'Misc', 'gendid': None},
            {'_id': 2, 'name': 'Star Trek', 'gendid': 7},
            {'_id': 3, 'name': 'Star Wars', 'gendid': 7},
        ]
        return PageResult(rows=rows, total_count=3, id_col_names=['_id'], foreign_id_name='gendid', cursor_fields=['name', '_id'])

    async def get_movie_group_types(self, tid=None, ex_column_names=(), page=None):
        self._called('get_movie_group_types', tid, ex_column_names)
        return PageResult(rows=[{'_id': 7, 'name': 'Sci-Fi'}], total_count=1, id_col_names=['_id'], cursor_fields=['name', '_id'])

    async def get_groups_of_movie(self, mid, ex_column_names=(), page=None):
        self._called('get_groups_of_movie', mid, ex_column_names)
        rows = [
            {'_id': 1, 'name': 'Misc', 'mid': 'MOVIE_a', 'gendid': None},
            {'_id': 3, 'name': 'Star Wars', 'mid': 'MOVIE_a', 'gendid': 7},
        ]
        return PageResult(rows=rows, total_count=2, id_col_names=['_id'], foreign_id_name='mid', cursor_fields=['name', '_id'])

    def _called(self, name, keys, ex_column_names):
        self.calls.append((name, list(keys), tuple(ex_column_names)))
        if self.fail:
            raise RuntimeError('Database is on fire')

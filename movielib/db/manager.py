""" Movie manager: reads and writes the movie library

Reads are paginated: they take a `PageWindow` and return a `PageResult`.
Every read also accepts a list of keys instead of a single key: this is what the batched loaders use.
"""

from __future__ import annotations

import logging
from collections import abc
from typing import Any, Optional, Union

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncConnection

from movielib import exc
from movielib.pagination import PageWindow, PageResult, FULL_WINDOW, adjust_rows
from movielib.pagination.keyset import column_key

from . import tables
from .backend import Backend
from .select import SelectBuilder


logger = logging.getLogger(__name__)


# Movie ids are made of this prefix and the path of the media file
MOVIE_ID_PREFIX = 'MOVIE_'

# Group type id that means "no type"
NO_TYPE = 0

# Key arguments: one key, or a list of keys for batched loading
MovieKey = Union[str, abc.Sequence[str]]
IntKey = Union[int, abc.Sequence[int]]


class MovieManager:
    """ The movie library: movies, movie groups, group types

    Example:
        manager = MovieManager(create_async_engine('sqlite+aiosqlite:///movies.db'), SqliteBackend())
        await manager.init()

        result = await manager.get_movies(page=PageWindow(first=10))
    """

    def __init__(self, engine: AsyncEngine, backend: Backend):
        self.engine = engine
        self.backend = backend
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    async def init(self):
        """ Create missing tables and get ready """
        async with self.engine.begin() as connection:
            await connection.run_sync(tables.metadata.create_all)
        self._ready = True
        logger.info('Movie library ready: backend=%s', self.backend.name)

    async def dispose(self):
        """ Close all connections """
        self._ready = False
        await self.engine.dispose()

    def _throw_if_not_ready(self):
        if not self._ready:
            raise exc.DatabaseNotReadyError()

    # region Reads

    async def get_movies(self,
                         gid: Optional[IntKey] = None,
                         mid: Optional[MovieKey] = None,
                         ex_column_names: abc.Iterable[str] = (),
                         page: PageWindow = FULL_WINDOW) -> PageResult:
        """ Get movies: all of them, those in group(s) `gid`, or movie(s) `mid`

        Movies are ordered by (title, _id). Movies in a group are ordered by their position in the group.

        Args:
            gid: Group id, or a list of them. Rows will have the "playlistID" and "listOrder" columns.
            mid: Movie id, or a list of them. A single id disables pagination.
            ex_column_names: Additional columns to select
            page: The window
        """
        self._throw_if_not_ready()
        backend = self.backend

        if isinstance(mid, str):
            page = FULL_WINDOW

        q = SelectBuilder(backend, 'MediaInfo')
        q.add_columns('MediaInfo', ['_id', 'title', 'mediaFullPath'])
        q.add_columns('MediaInfo', _ex_columns('MediaInfo', ex_column_names, tables.MOVIE_EX_COLUMN_NAMES))

        if gid is not None:
            q.join('PlayItemInfo', f"{backend.qualified('PlayItemInfo', 'mediaID')} = {backend.qualified('MediaInfo', '_id')}")
            q.add_columns('PlayItemInfo', ['playlistID', 'listOrder'])
            q.where_equals(backend.qualified('PlayItemInfo', 'playlistID'), _key_list(gid))

        if mid is not None:
            q.where_equals(backend.qualified('MediaInfo', '_id'), _key_list(mid))

        if gid is not None and mid is None:
            ordering_keys = [backend.qualified('PlayItemInfo', 'listOrder')]
        else:
            ordering_keys = [backend.qualified('MediaInfo', 'title'), backend.qualified('MediaInfo', '_id')]

        return await self._fetch_page(
            q, ordering_keys, page,
            id_col_names=['_id'],
            foreign_id_name='playlistID' if gid is not None else None,
        )

    async def get_movie_groups(self,
                               tid: Optional[IntKey] = None,
                               gid: Optional[IntKey] = None,
                               ex_column_names: abc.Iterable[str] = (),
                               page: PageWindow = FULL_WINDOW) -> PageResult:
        """ Get movie groups: all of them, those of type(s) `tid`, or group(s) `gid`

        Groups are ordered by (name, _id). Rows have the "gendid" column: the type of the group, or None.

        Args:
            tid: Type id, or a list of them. `0` means "groups without a type".
            gid: Group id, or a list of them. A single id disables pagination.
            ex_column_names: Additional columns to select
            page: The window

        Raises:
            exc.MissingGroupTypeError: `tid` refers to types that do not exist
            exc.MissingGroupError: a single `gid` is given, but there's no such group
        """
        self._throw_if_not_ready()
        backend = self.backend

        single_group = gid is not None and isinstance(gid, int)
        if single_group:
            page = FULL_WINDOW

        if tid is not None:
            await self._check_types_exist([t for t in _as_list(tid) if t != NO_TYPE])

        q = SelectBuilder(backend, 'PlayListInfo')
        q.join('MovieGroupTypeMovieGroups',
               f"{backend.qualified('PlayListInfo', '_id')} = {backend.qualified('MovieGroupTypeMovieGroups', 'mgid')}",
               kind='LEFT JOIN')
        q.add_columns('PlayListInfo', ['_id', 'name'])
        q.add_columns('PlayListInfo', _ex_columns('PlayListInfo', ex_column_names, tables.MOVIE_GROUP_EX_COLUMN_NAMES))
        q.add_columns('MovieGroupTypeMovieGroups', ['gendid'])

        if gid is not None:
            q.where_equals(backend.qualified('PlayListInfo', '_id'), _key_list(gid))
        if tid is not None:
            q.where_equals(backend.qualified('MovieGroupTypeMovieGroups', 'gendid'), _type_key_list(tid))

        result = await self._fetch_page(
            q, [backend.qualified('PlayListInfo', 'name'), backend.qualified('PlayListInfo', '_id')], page,
            id_col_names=['_id'],
            foreign_id_name='gendid',
        )

        if single_group and len(result.rows) != 1:
            raise exc.MissingGroupError(f'Missing group: {gid}')
        return result

    async def get_movie_group_types(self,
                                    tid: Optional[IntKey] = None,
                                    ex_column_names: abc.Iterable[str] = (),
                                    page: PageWindow = FULL_WINDOW) -> PageResult:
        """ Get group types: all of them, or type(s) `tid`

        Types are ordered by (name, _id).

        Raises:
            exc.MissingGroupTypeError: a single `tid` is given, but there's no such type
        """
        self._throw_if_not_ready()
        backend = self.backend

        single_type = tid is not None and isinstance(tid, int)
        if single_type:
            page = FULL_WINDOW

        q = SelectBuilder(backend, 'MovieGroupTypes')
        q.add_columns('MovieGroupTypes', ['_id', 'name'])
        q.add_columns('MovieGroupTypes', _ex_columns('MovieGroupTypes', ex_column_names, tables.MOVIE_GROUP_TYPE_EX_COLUMN_NAMES))

        if tid is not None:
            q.where_equals(backend.qualified('MovieGroupTypes', '_id'), _key_list(tid))

        result = await self._fetch_page(
            q, [backend.qualified('MovieGroupTypes', 'name'), backend.qualified('MovieGroupTypes', '_id')], page,
            id_col_names=['_id'],
        )

        if single_type and len(result.rows) != 1:
            raise exc.MissingGroupTypeError(f'Missing group type: {tid}')
        return result

    async def get_groups_of_movie(self,
                                  mid: MovieKey,
                                  ex_column_names: abc.Iterable[str] = (),
                                  page: PageWindow = FULL_WINDOW) -> PageResult:
        """ Get groups that movie(s) `mid` belong to

        Groups are ordered by (name, _id). Rows have the "mid" column: the movie, and "gendid": the type of the group.
        """
        self._throw_if_not_ready()
        backend = self.backend

        q = SelectBuilder(backend, 'PlayListInfo')
        q.join('PlayItemInfo', f"{backend.qualified('PlayListInfo', '_id')} = {backend.qualified('PlayItemInfo', 'playlistID')}")
        q.join('MovieGroupTypeMovieGroups',
               f"{backend.qualified('PlayListInfo', '_id')} = {backend.qualified('MovieGroupTypeMovieGroups', 'mgid')}",
               kind='LEFT JOIN')
        q.add_columns('PlayListInfo', ['_id', 'name'])
        q.add_columns('PlayListInfo', _ex_columns('PlayListInfo', ex_column_names, tables.MOVIE_GROUP_EX_COLUMN_NAMES))
        q.add_column_expression(backend.qualified('PlayItemInfo', 'mediaID'), 'mid')
        q.add_columns('MovieGroupTypeMovieGroups', ['gendid'])
        q.where_equals(backend.qualified('PlayItemInfo', 'mediaID'), _key_list(mid))

        return await self._fetch_page(
            q, [backend.qualified('PlayListInfo', 'name'), backend.qualified('PlayListInfo', '_id')], page,
            id_col_names=['_id'],
            foreign_id_name='mid',
        )

    async def _fetch_page(self, q: SelectBuilder, ordering_keys: list[str], page: PageWindow, *,
                          id_col_names: list[str], foreign_id_name: Optional[str] = None) -> PageResult:
        """ Paginate the query, run it, bring the rows into display order """
        search = q.paginate(ordering_keys, page)

        async with self.engine.connect() as connection:
            rows = await self.backend.fetch_rows(connection, q.sql(), q.params)

        # The window column is the same in every row
        total_count = rows[0][SelectBuilder.COUNT_NAME] if rows else 0
        for row in rows:
            del row[SelectBuilder.COUNT_NAME]

        rows, offset = adjust_rows(rows, search.reversed_order, page.last, page.offset)

        return PageResult(
            rows=rows,
            total_count=total_count,
            offset=offset,
            reversed_order=search.reversed_order,
            id_col_names=id_col_names,
            foreign_id_name=foreign_id_name,
            cursor_fields=[column_key(key) for key in ordering_keys],
        )

    async def _check_types_exist(self, tids: list[int]):
        """ Make sure that every group type exists

        Raises:
            exc.MissingGroupTypeError
        """
        if not tids:
            return

        q = SelectBuilder(self.backend, 'MovieGroupTypes')
        q.with_count = False
        q.add_columns('MovieGroupTypes', ['_id'])
        q.where_equals(self.backend.qualified('MovieGroupTypes', '_id'), tids)

        async with self.engine.connect() as connection:
            rows = await self.backend.fetch_rows(connection, q.sql(), q.params)

        missing = set(tids) - {row['_id'] for row in rows}
        if missing:
            raise exc.MissingGroupTypeError(f'Missing group type: {", ".join(map(str, sorted(missing)))}')

    # endregion

    # region Movies

    async def add_movie(self, media_full_path: str, values: Optional[dict[str, Any]] = None, *,
                        gid: Optional[int] = None, list_order: Optional[int] = None) -> str:
        """ Add a movie, optionally into a group

        Args:
            media_full_path: Path to the media file. Gives the movie its id.
            values: Other columns
            gid: Put the movie into this group
            list_order: Position in the group, 1-based. Appended when not given.

        Returns:
            The id of the new movie
        """
        self._throw_if_not_ready()
        values = _check_values(tables.MediaInfo, values or {}, 'add_movie()')
        mid = MOVIE_ID_PREFIX + media_full_path

        async with self.engine.begin() as connection:
            await connection.execute(
                tables.MediaInfo.insert().values({**values, '_id': mid, 'mediaFullPath': media_full_path})
            )

            if gid is not None and gid != 0:
                await self._require_group(connection, gid)
                await self._insert_group_member(connection, gid, mid, values.get('title', ''), list_order)

        logger.info('Added movie %s', mid)
        return mid

    async def update_movie(self, mid: str, values: dict[str, Any]):
        """ Change columns of a movie

        Raises:
            exc.MissingMovieError
        """
        self._throw_if_not_ready()
        values = _check_values(tables.MediaInfo, values, 'update_movie()')

        async with self.engine.begin() as connection:
            # Nothing to change
            if not values:
                await self._require_movie(connection, mid)
                return

            res = await connection.execute(
                tables.MediaInfo.update().where(tables.MediaInfo.c._id == mid).values(**values)
            )
            if res.rowcount == 0:
                raise exc.MissingMovieError(f'Missing movie: {mid}')

            # Groups keep a copy of the title
            if 'title' in values:
                await connection.execute(
                    tables.PlayItemInfo.update()
                    .where(tables.PlayItemInfo.c.mediaID == mid)
                    .values(mediaTitle=values['title'])
                )

    async def delete_movie(self, mid: str):
        """ Delete a movie and remove it from its groups

        Raises:
            exc.MissingMovieError
        """
        self._throw_if_not_ready()

        async with self.engine.begin() as connection:
            res = await connection.execute(tables.MediaInfo.delete().where(tables.MediaInfo.c._id == mid))
            if res.rowcount == 0:
                raise exc.MissingMovieError(f'Missing movie: {mid}')

            gids = (await connection.execute(
                sa.select(tables.PlayItemInfo.c.playlistID).where(tables.PlayItemInfo.c.mediaID == mid)
            )).scalars().all()
            await connection.execute(tables.PlayItemInfo.delete().where(tables.PlayItemInfo.c.mediaID == mid))
            for gid in gids:
                await self._renumber_group(connection, gid)

        logger.info('Deleted movie %s', mid)

    # endregion

    # region Movie groups

    async def add_movie_group(self, name: str, values: Optional[dict[str, Any]] = None, *, tid: Optional[int] = None) -> int:
        """ Add a movie group, optionally of type `tid`

        Returns:
            The id of the new group

        Raises:
            exc.MissingGroupTypeError
            exc.MissingLastIdError
        """
        self._throw_if_not_ready()
        values = _check_values(tables.PlayListInfo, values or {}, 'add_movie_group()')

        async with self.engine.begin() as connection:
            if tid is not None and tid != NO_TYPE:
                await self._require_type(connection, tid)

            res = await connection.execute(tables.PlayListInfo.insert().values({**values, 'name': name}))
            gid = _inserted_id(res)

            if tid is not None and tid != NO_TYPE:
                await connection.execute(tables.MovieGroupTypeMovieGroups.insert().values(mgid=gid, gendid=tid))

        logger.info('Added movie group %s: %r', gid, name)
        return gid

    async def update_movie_group(self, gid: int, values: dict[str, Any]):
        """ Change columns of a movie group

        Raises:
            exc.MissingGroupError
        """
        self._throw_if_not_ready()
        values = _check_values(tables.PlayListInfo, values, 'update_movie_group()')

        async with self.engine.begin() as connection:
            if not values:
                await self._require_group(connection, gid)
                return

            res = await connection.execute(
                tables.PlayListInfo.update().where(tables.PlayListInfo.c._id == gid).values(**values)
            )
            if res.rowcount == 0:
                raise exc.MissingGroupError(f'Missing group: {gid}')

    async def delete_movie_group(self, gid: int):
        """ Delete an empty movie group

        Raises:
            exc.NonEmptyGroupError: there are movies in the group
            exc.MissingGroupError
        """
        self._throw_if_not_ready()

        async with self.engine.begin() as connection:
            members = (await connection.execute(
                sa.select(sa.func.count()).select_from(tables.PlayItemInfo).where(tables.PlayItemInfo.c.playlistID == gid)
            )).scalar_one()
            if members:
                raise exc.NonEmptyGroupError(f'There are {members} movies in group {gid}')

            res = await connection.execute(tables.PlayListInfo.delete().where(tables.PlayListInfo.c._id == gid))
            if res.rowcount == 0:
                raise exc.MissingGroupError(f'Missing group: {gid}')

            await connection.execute(
                tables.MovieGroupTypeMovieGroups.delete().where(tables.MovieGroupTypeMovieGroups.c.mgid == gid)
            )

        logger.info('Deleted movie group %s', gid)

    async def move_movie_group_to_type(self, gid: int, tid: int):
        """ Change the type of a group. `tid=0` leaves the group without a type.

        Raises:
            exc.MissingGroupError
            exc.MissingGroupTypeError
        """
        self._throw_if_not_ready()
        link = tables.MovieGroupTypeMovieGroups

        async with self.engine.begin() as connection:
            await self._require_group(connection, gid)
            await connection.execute(link.delete().where(link.c.mgid == gid))

            if tid != NO_TYPE:
                await self._require_type(connection, tid)
                await connection.execute(link.insert().values(mgid=gid, gendid=tid))

    async def mark_movie_group_member(self, gid: int, mid: str, list_order: Optional[int] = None):
        """ Put a movie into a group

        Args:
            gid: The group
            mid: The movie
            list_order: Position in the group, 1-based. Appended when not given.

        Raises:
            exc.MissingGroupError
            exc.MissingMovieError
        """
        self._throw_if_not_ready()

        async with self.engine.begin() as connection:
            await self._require_group(connection, gid)
            title = (await connection.execute(
                sa.select(tables.MediaInfo.c.title).where(tables.MediaInfo.c._id == mid)
            )).scalar_one_or_none()
            if title is None:
                raise exc.MissingMovieError(f'Missing movie: {mid}')

            await connection.execute(
                tables.PlayItemInfo.delete()
                .where(tables.PlayItemInfo.c.playlistID == gid)
                .where(tables.PlayItemInfo.c.mediaID == mid)
            )
            await self._insert_group_member(connection, gid, mid, title, list_order)

    async def unmark_movie_group_member(self, gid: int, mid: str):
        """ Take a movie out of a group

        Raises:
            exc.MissingMovieError: the movie is not in the group
        """
        self._throw_if_not_ready()

        async with self.engine.begin() as connection:
            res = await connection.execute(
                tables.PlayItemInfo.delete()
                .where(tables.PlayItemInfo.c.playlistID == gid)
                .where(tables.PlayItemInfo.c.mediaID == mid)
            )
            if res.rowcount == 0:
                raise exc.MissingMovieError(f'Missing movie {mid} in group {gid}')

            await self._renumber_group(connection, gid)

    async def _insert_group_member(self, connection: AsyncConnection, gid: int, mid: str, title: str, list_order: Optional[int]):
        list_order = await self._renumber_group(connection, gid, list_order)
        await connection.execute(
            tables.PlayItemInfo.insert().values(type=1, playlistID=gid, mediaID=mid, mediaTitle=title, listOrder=list_order)
        )

    async def _renumber_group(self, connection: AsyncConnection, gid: int, new_list_order: Optional[int] = None) -> int:
        """ Number group members 1, 2, 3, ... and make a free slot at `new_list_order`

        Returns:
            The free slot. Clamped to [1, count + 1]; appended when not given.
        """
        item = tables.PlayItemInfo
        ids = (await connection.execute(
            sa.select(item.c._id).where(item.c.playlistID == gid).order_by(item.c.listOrder, item.c._id)
        )).scalars().all()

        if new_list_order is None or new_list_order > len(ids):
            new_list_order = len(ids) + 1
        elif new_list_order < 1:
            new_list_order = 1

        for n, item_id in enumerate(ids, 1):
            list_order = n if n < new_list_order else n + 1
            await connection.execute(item.update().where(item.c._id == item_id).values(listOrder=list_order))

        return new_list_order

    # endregion

    # region Group types

    async def add_movie_group_type(self, name: str, values: Optional[dict[str, Any]] = None) -> int:
        """ Add a group type

        Returns:
            The id of the new type
        """
        self._throw_if_not_ready()
        values = _check_values(tables.MovieGroupTypes, values or {}, 'add_movie_group_type()')

        async with self.engine.begin() as connection:
            res = await connection.execute(tables.MovieGroupTypes.insert().values({**values, 'name': name}))
            tid = _inserted_id(res)

        logger.info('Added group type %s: %r', tid, name)
        return tid

    async def update_movie_group_type(self, tid: int, values: dict[str, Any]):
        """ Change columns of a group type

        Raises:
            exc.MissingGroupTypeError
        """
        self._throw_if_not_ready()
        values = _check_values(tables.MovieGroupTypes, values, 'update_movie_group_type()')

        async with self.engine.begin() as connection:
            if not values:
                await self._require_type(connection, tid)
                return

            res = await connection.execute(
                tables.MovieGroupTypes.update().where(tables.MovieGroupTypes.c._id == tid).values(**values)
            )
            if res.rowcount == 0:
                raise exc.MissingGroupTypeError(f'Missing group type: {tid}')

    async def delete_movie_group_type(self, tid: int):
        """ Delete a group type that no group uses

        Raises:
            exc.CannotDeleteUsedTypeError
            exc.MissingGroupTypeError
        """
        self._throw_if_not_ready()
        link = tables.MovieGroupTypeMovieGroups

        async with self.engine.begin() as connection:
            used = (await connection.execute(
                sa.select(sa.func.count()).select_from(link).where(link.c.gendid == tid)
            )).scalar_one()
            if used:
                raise exc.CannotDeleteUsedTypeError(f'Group type {tid} is used by {used} groups')

            res = await connection.execute(tables.MovieGroupTypes.delete().where(tables.MovieGroupTypes.c._id == tid))
            if res.rowcount == 0:
                raise exc.MissingGroupTypeError(f'Missing group type: {tid}')

        logger.info('Deleted group type %s', tid)

    # endregion

    async def _require_movie(self, connection: AsyncConnection, mid: str):
        found = (await connection.execute(
            sa.select(tables.MediaInfo.c._id).where(tables.MediaInfo.c._id == mid)
        )).first()
        if found is None:
            raise exc.MissingMovieError(f'Missing movie: {mid}')

    async def _require_group(self, connection: AsyncConnection, gid: int):
        found = (await connection.execute(
            sa.select(tables.PlayListInfo.c._id).where(tables.PlayListInfo.c._id == gid)
        )).first()
        if found is None:
            raise exc.MissingGroupError(f'Missing group: {gid}')

    async def _require_type(self, connection: AsyncConnection, tid: int):
        found = (await connection.execute(
            sa.select(tables.MovieGroupTypes.c._id).where(tables.MovieGroupTypes.c._id == tid)
        )).first()
        if found is None:
            raise exc.MissingGroupTypeError(f'Missing group type: {tid}')


def _key_list(key: Any) -> Any:
    """ Make a list out of a sequence of keys. A single key stays as is. """
    if isinstance(key, (str, int)):
        return key
    else:
        return list(key)


def _as_list(key: Any) -> list:
    if isinstance(key, (str, int)):
        return [key]
    else:
        return list(key)


def _type_key_list(tid: IntKey) -> Any:
    """ Type keys: `0` means "no type", that is, NULL """
    if isinstance(tid, int):
        return None if tid == NO_TYPE else tid
    else:
        return [None if t == NO_TYPE else t for t in tid]


def _ex_columns(table: str, names: abc.Iterable[str], allowed: abc.Set[str]) -> list[str]:
    """ Check additional column names

    Raises:
        exc.InvalidColumnError
    """
    names = list(names)
    for name in names:
        if name not in allowed:
            raise exc.InvalidColumnError(table, name, where='ex_column_names')
    return names


def _check_values(table: sa.Table, values: dict[str, Any], where: str) -> dict[str, Any]:
    """ Check column names of values to write

    Raises:
        exc.InvalidColumnError
    """
    for name in values:
        if name not in table.c or name == '_id':
            raise exc.InvalidColumnError(table.name, name, where=where)
    return values


def _inserted_id(res: sa.CursorResult) -> int:
    """ Get the primary key of the inserted row

    Raises:
        exc.MissingLastIdError
    """
    pk = res.inserted_primary_key
    if pk is None or pk[0] is None:
        raise exc.MissingLastIdError('INSERT did not return the id of the new row')
    return pk[0]

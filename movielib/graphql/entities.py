""" Resolvable entities: rows that can load their relations

An entity wraps a row. Columns are available as attributes, and relations are async methods.
The default GraphQL resolver does the rest: it reads attributes and calls methods with `info` and field arguments.

Nested relations without page arguments are loaded in batches by the loaders.
With page arguments, the relation is queried directly for this one key.
"""

from __future__ import annotations

from typing import Optional

import graphql

from movielib.db import tables
from movielib.loaders import LoadParam, LoadParams
from movielib.pagination import PageRequest, PageResult, ConnectionDict, build_connection
from movielib.typing import RowDict

from .context import Context
from .selection import selected_node_field_names, selected_field_names_from_info, ex_column_names_for


class Entity:
    """ A row with relations """
    __slots__ = 'row',

    def __init__(self, row: RowDict):
        self.row = row

    def __getattr__(self, name: str):
        try:
            return self.row[name]
        except KeyError:
            raise AttributeError(name)

    def __eq__(self, other):
        return type(self) is type(other) and self.row == other.row

    def __repr__(self):
        return f'{type(self).__name__}({self.row!r})'


class MovieEntity(Entity):
    """ Movie """

    async def groups(self, info: graphql.GraphQLResolveInfo, **args) -> ConnectionDict:
        """ Groups this movie belongs to """
        context: Context = info.context
        page = PageRequest.from_args(args)
        ex_column_names = ex_column_names_for(selected_node_field_names(info), tables.MOVIE_GROUP_EX_COLUMN_NAMES)

        result: PageResult
        if page.is_empty:
            result = await context.loaders.groups_of_movie.load(LoadParam(self.row['_id'], LoadParams(ex_column_names)))
        else:
            result = await context.manager.get_groups_of_movie(self.row['_id'], ex_column_names, page.window())

        return build_connection(result, page.after, page.before, result.cursor_fields, node_factory=MovieGroupEntity)


class MovieGroupEntity(Entity):
    """ Movie group """

    async def movies(self, info: graphql.GraphQLResolveInfo, **args) -> ConnectionDict:
        """ Movies in this group, in their order """
        context: Context = info.context
        page = PageRequest.from_args(args)
        ex_column_names = ex_column_names_for(selected_node_field_names(info), tables.MOVIE_EX_COLUMN_NAMES)

        result: PageResult
        if page.is_empty:
            result = await context.loaders.movies_in_group.load(LoadParam(self.row['_id'], LoadParams(ex_column_names)))
        else:
            result = await context.manager.get_movies(gid=self.row['_id'], ex_column_names=ex_column_names, page=page.window())

        return build_connection(result, page.after, page.before, result.cursor_fields, node_factory=MovieEntity)

    async def groupType(self, info: graphql.GraphQLResolveInfo) -> Optional[GroupTypeEntity]:
        """ The type of this group """
        tid = self.row.get('gendid')
        if tid is None:
            return None

        context: Context = info.context
        ex_column_names = ex_column_names_for(selected_field_names_from_info(info), tables.MOVIE_GROUP_TYPE_EX_COLUMN_NAMES)
        result = await context.loaders.type_of_group.load(LoadParam(tid, LoadParams(ex_column_names)))
        return GroupTypeEntity(result.rows[0]) if result.rows else None


class GroupTypeEntity(Entity):
    """ Movie group type """

    async def groups(self, info: graphql.GraphQLResolveInfo, **args) -> ConnectionDict:
        """ Groups of this type """
        context: Context = info.context
        page = PageRequest.from_args(args)
        ex_column_names = ex_column_names_for(selected_node_field_names(info), tables.MOVIE_GROUP_EX_COLUMN_NAMES)
        tid = self.row['_id']

        result: PageResult
        if page.is_empty:
            result = await context.loaders.groups_in_type.load(LoadParam(tid, LoadParams(ex_column_names)))
        else:
            result = await context.manager.get_movie_groups(tid=tid, ex_column_names=ex_column_names, page=page.window())

        return build_connection(result, page.after, page.before, result.cursor_fields, node_factory=MovieGroupEntity)


""" Resolvers for queries and mutations

Nested fields are resolved by entities: see `entities.py`
"""

from __future__ import annotations

from typing import Optional

import graphql

from movielib import exc
from movielib.db import tables
from movielib.pagination import PageRequest, ConnectionDict, build_connection

from .context import Context
from .entities import MovieEntity, MovieGroupEntity, GroupTypeEntity
from .schema import schema, resolves
from .selection import selected_field_names_from_info, selected_node_field_names, ex_column_names_for


# region Query

@resolves(schema, 'Query', 'movies')
async def resolve_movies(root, info: graphql.GraphQLResolveInfo, **args) -> ConnectionDict:
    context: Context = info.context
    page = PageRequest.from_args(args)
    ex_column_names = ex_column_names_for(selected_node_field_names(info), tables.MOVIE_EX_COLUMN_NAMES)

    result = await context.manager.get_movies(ex_column_names=ex_column_names, page=page.window())
    return build_connection(result, page.after, page.before, result.cursor_fields, node_factory=MovieEntity)


@resolves(schema, 'Query', 'movie')
async def resolve_movie(root, info: graphql.GraphQLResolveInfo, _id: str) -> Optional[MovieEntity]:
    context: Context = info.context
    ex_column_names = ex_column_names_for(selected_field_names_from_info(info), tables.MOVIE_EX_COLUMN_NAMES)

    result = await context.manager.get_movies(mid=_id, ex_column_names=ex_column_names)
    return MovieEntity(result.rows[0]) if result.rows else None


@resolves(schema, 'Query', 'movieGroups')
async def resolve_movie_groups(root, info: graphql.GraphQLResolveInfo, tid: int = None, **args) -> ConnectionDict:
    context: Context = info.context
    page = PageRequest.from_args(args)
    ex_column_names = ex_column_names_for(selected_node_field_names(info), tables.MOVIE_GROUP_EX_COLUMN_NAMES)

    result = await context.manager.get_movie_groups(tid=tid, ex_column_names=ex_column_names, page=page.window())
    return build_connection(result, page.after, page.before, result.cursor_fields, node_factory=MovieGroupEntity)


@resolves(schema, 'Query', 'movieGroup')
async def resolve_movie_group(root, info: graphql.GraphQLResolveInfo, _id: str) -> Optional[MovieGroupEntity]:
    context: Context = info.context
    ex_column_names = ex_column_names_for(selected_field_names_from_info(info), tables.MOVIE_GROUP_EX_COLUMN_NAMES)

    try:
        result = await context.manager.get_movie_groups(gid=int_id(_id), ex_column_names=ex_column_names)
    except exc.MissingGroupError:
        return None
    return MovieGroupEntity(result.rows[0])


@resolves(schema, 'Query', 'groupTypes')
async def resolve_group_types(root, info: graphql.GraphQLResolveInfo, **args) -> ConnectionDict:
    context: Context = info.context
    page = PageRequest.from_args(args)
    ex_column_names = ex_column_names_for(selected_node_field_names(info), tables.MOVIE_GROUP_TYPE_EX_COLUMN_NAMES)

    result = await context.manager.get_movie_group_types(ex_column_names=ex_column_names, page=page.window())
    return build_connection(result, page.after, page.before, result.cursor_fields, node_factory=GroupTypeEntity)


@resolves(schema, 'Query', 'groupType')
async def resolve_group_type(root, info: graphql.GraphQLResolveInfo, _id: str) -> Optional[GroupTypeEntity]:
    context: Context = info.context
    ex_column_names = ex_column_names_for(selected_field_names_from_info(info), tables.MOVIE_GROUP_TYPE_EX_COLUMN_NAMES)

    try:
        result = await context.manager.get_movie_group_types(tid=int_id(_id), ex_column_names=ex_column_names)
    except exc.MissingGroupTypeError:
        return None
    return GroupTypeEntity(result.rows[0])

# endregion


# region Mutation

@resolves(schema, 'Mutation', 'addMovie')
async def resolve_add_movie(root, info: graphql.GraphQLResolveInfo, mediaFullPath: str, movieInfo: dict = None,
                            gid: str = None, listOrder: int = None) -> str:
    context: Context = info.context
    return await context.manager.add_movie(
        mediaFullPath, movieInfo,
        gid=int_id(gid) if gid is not None else None,
        list_order=listOrder,
    )


@resolves(schema, 'Mutation', 'updateMovie')
async def resolve_update_movie(root, info: graphql.GraphQLResolveInfo, _id: str, movieInfo: dict) -> bool:
    context: Context = info.context
    await context.manager.update_movie(_id, non_null(movieInfo))
    return True


@resolves(schema, 'Mutation', 'deleteMovie')
async def resolve_delete_movie(root, info: graphql.GraphQLResolveInfo, _id: str) -> bool:
    context: Context = info.context
    await context.manager.delete_movie(_id)
    return True


@resolves(schema, 'Mutation', 'addMovieGroup')
async def resolve_add_movie_group(root, info: graphql.GraphQLResolveInfo, movieGroupInfo: dict, tid: int = None) -> int:
    context: Context = info.context
    values = dict(movieGroupInfo)
    name = values.pop('name', None)
    if not name:
        raise graphql.GraphQLError('A movie group needs a name')

    return await context.manager.add_movie_group(name, values, tid=tid)


@resolves(schema, 'Mutation', 'updateMovieGroup')
async def resolve_update_movie_group(root, info: graphql.GraphQLResolveInfo, _id: str, movieGroupInfo: dict) -> bool:
    context: Context = info.context
    await context.manager.update_movie_group(int_id(_id), non_null(movieGroupInfo))
    return True


@resolves(schema, 'Mutation', 'deleteMovieGroup')
async def resolve_delete_movie_group(root, info: graphql.GraphQLResolveInfo, _id: str) -> bool:
    context: Context = info.context
    await context.manager.delete_movie_group(int_id(_id))
    return True


@resolves(schema, 'Mutation', 'moveMovieGroupToType')
async def resolve_move_movie_group_to_type(root, info: graphql.GraphQLResolveInfo, gid: str, tid: int) -> bool:
    context: Context = info.context
    await context.manager.move_movie_group_to_type(int_id(gid), tid)
    return True


@resolves(schema, 'Mutation', 'addGroupType')
async def resolve_add_group_type(root, info: graphql.GraphQLResolveInfo, name: str, description: str = None) -> int:
    context: Context = info.context
    values = {'description': description} if description is not None else {}
    return await context.manager.add_movie_group_type(name, values)


@resolves(schema, 'Mutation', 'updateGroupType')
async def resolve_update_group_type(root, info: graphql.GraphQLResolveInfo, _id: str, **values) -> bool:
    context: Context = info.context
    await context.manager.update_movie_group_type(int_id(_id), non_null(values))
    return True


@resolves(schema, 'Mutation', 'deleteGroupType')
async def resolve_delete_group_type(root, info: graphql.GraphQLResolveInfo, _id: str) -> bool:
    context: Context = info.context
    await context.manager.delete_movie_group_type(int_id(_id))
    return True


@resolves(schema, 'Mutation', 'markMovieGroupMember')
async def resolve_mark_movie_group_member(root, info: graphql.GraphQLResolveInfo, gid: str, mid: str, listOrder: int = None) -> bool:
    context: Context = info.context
    await context.manager.mark_movie_group_member(int_id(gid), mid, listOrder)
    return True


@resolves(schema, 'Mutation', 'unmarkMovieGroupMember')
async def resolve_unmark_movie_group_member(root, info: graphql.GraphQLResolveInfo, gid: str, mid: str) -> bool:
    context: Context = info.context
    await context.manager.unmark_movie_group_member(int_id(gid), mid)
    return True

# endregion


def non_null(values: dict) -> dict:
    """ Drop input fields that are null: nothing to change there """
    return {name: value for name, value in values.items() if value is not None}


def int_id(value: str) -> int:
    """ Convert an `ID` argument into an integer id

    Raises:
        graphql.GraphQLError: not a number
    """
    try:
        return int(value)
    except ValueError as e:
        raise graphql.GraphQLError(f'Invalid id: {value!r}') from e

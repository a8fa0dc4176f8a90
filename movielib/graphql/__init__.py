""" GraphQL API for the movie library """

from typing import Any, Optional

import graphql

from movielib.db.manager import MovieManager

from .schema import schema, resolves, graphql_movielib_schema
from .context import Context
from .entities import MovieEntity, MovieGroupEntity, GroupTypeEntity
from .selection import selected_field_names_from_info, selected_node_field_names, ex_column_names_for
from . import resolvers  # noqa: binds resolvers to the schema


async def execute(manager: MovieManager, query: str, variables: Optional[dict[str, Any]] = None,
                  operation_name: Optional[str] = None) -> graphql.ExecutionResult:
    """ Execute a GraphQL operation with a fresh context """
    return await graphql.graphql(
        schema,
        query,
        variable_values=variables,
        operation_name=operation_name,
        context_value=Context.for_request(manager),
    )

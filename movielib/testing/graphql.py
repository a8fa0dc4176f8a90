""" Making queries with GraphQL """

from __future__ import annotations

import graphql

from movielib.db.manager import MovieManager
from movielib.graphql import execute


async def graphql_query(manager: MovieManager, query: str, **variable_values) -> dict:
    """ Make a GraphQL query, quick. Fail on errors. """
    res = await graphql_query_result(manager, query, **variable_values)

    # Raise errors as exceptions. Useful in unit-tests.
    if res.errors:
        # On error? raise it as it is
        if len(res.errors) == 1:
            raise res.errors[0]
        # Many errors? Raise as a list
        else:
            raise RuntimeError(res.errors)

    assert res.data is not None
    return res.data


async def graphql_query_result(manager: MovieManager, query: str, **variable_values) -> graphql.ExecutionResult:
    """ Make a GraphQL query, get the result with its errors """
    return await execute(manager, query, variable_values)

import os.path

import graphql


# Load GraphQL definitions from the file
pwd = os.path.dirname(__file__)

with open(os.path.join(pwd, './schema.graphql'), 'rt') as f:
    graphql_movielib_schema = f.read()


# The schema. Resolvers are bound to it in `resolvers.py`
schema = graphql.build_schema(graphql_movielib_schema)


def resolves(schema: graphql.GraphQLSchema, type_name: str, field_name: str):
    """ Quickly bind a resolver to a field

    Example:
        @resolves(schema, 'Query', 'movie')
        async def resolve_movie(root, info: graphql.GraphQLResolveInfo, _id: str):
            ...
    """
    type: graphql.GraphQLObjectType = schema.type_map[type_name]  # type: ignore[assignment]
    field = type.fields[field_name]

    # Bind the resolver
    def decorator(func):
        field.resolve = func
        return func
    return decorator

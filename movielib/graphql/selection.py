""" Get the list of fields selected with a GraphQL query

Used to find out which additional columns to load from the database.
"""

from collections import abc
from typing import Any, Union

import graphql
from graphql.execution.collect_fields import collect_fields


# Paths where nodes are found in a connection
CONNECTION_NODE_PATHS = (('edges', 'node'), ('nodes',))


def selected_field_names_from_info(info: graphql.GraphQLResolveInfo, nested_path: abc.Iterable[str] = ()) -> set[str]:
    """ Get the names of fields selected at the current level, or at `nested_path` below it

    Supports fields, aliases, fragment spreads and inline fragments, and skip/include directives.

    Example:
        def resolve_movies(obj, info):
            names = selected_field_names_from_info(info, ('edges', 'node'))

        With a query like this:
            query {
                movies {
                    edges { node { _id title groups { ... } } }
                }
            }
        this function would give:
            {'_id', 'title', 'groups'}
    """
    field_type = graphql.get_named_type(info.return_type)
    field_nodes = list(info.field_nodes)

    # Descend into sub-fields
    for name in nested_path:
        fields_map = collect_selected_fields(info.schema, info.fragments, info.variable_values, field_type, field_nodes)

        # NOTE: the map is keyed by response name: aliases. Look up by the actual field name.
        field_nodes = [field for fields in fields_map.values() for field in fields if field.name.value == name]
        if not field_nodes:
            return set()

        field_type = graphql.get_named_type(field_type.fields[name].type)  # type: ignore[union-attr]

    fields_map = collect_selected_fields(info.schema, info.fragments, info.variable_values, field_type, field_nodes)
    return {
        field.name.value  # NOTE: the original field name, even if it's aliased
        for fields in fields_map.values()
        for field in fields
    }


def selected_node_field_names(info: graphql.GraphQLResolveInfo) -> set[str]:
    """ Get the names of fields selected for the nodes of a connection: under `edges.node`, and `nodes` """
    names: set[str] = set()
    for path in CONNECTION_NODE_PATHS:
        names |= selected_field_names_from_info(info, path)
    return names


def ex_column_names_for(names: abc.Iterable[str], ex_column_names: abc.Set[str]) -> tuple[str, ...]:
    """ Pick the additional columns that have been selected """
    return tuple(sorted(name for name in names if name in ex_column_names))


def collect_selected_fields(
        schema: graphql.GraphQLSchema,
        fragments: dict[str, graphql.FragmentDefinitionNode],
        variable_values: dict[str, Any],
        runtime_type: Union[graphql.GraphQLNamedType, graphql.GraphQLObjectType],
        field_nodes: abc.Iterable[graphql.FieldNode]) -> dict[str, list[graphql.FieldNode]]:
    """ Collect fields selected in every field node, the way the GraphQL executor does

    Returns:
        Mapping { response name => [FieldNode] }
    """
    fields_map: dict[str, list[graphql.FieldNode]] = {}
    for field_node in field_nodes:
        if not field_node.selection_set:
            continue

        for response_name, fields in collect_fields(schema, fragments, variable_values, runtime_type, field_node.selection_set).items():  # type: ignore[arg-type]
            fields_map.setdefault(response_name, []).extend(fields)
    return fields_map

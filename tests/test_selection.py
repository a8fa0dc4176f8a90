from typing import Optional

import graphql
import pytest

from movielib.graphql.selection import selected_field_names_from_info, selected_node_field_names, ex_column_names_for


@pytest.mark.parametrize(('query', 'variables', 'expected_fields'), [
    # Field selection
    ('{ object { id } }', None, {'id'}),
    ('{ object { id name value } }', None, {'id', 'name', 'value'}),
    # Nested selection
    ('{ object { id object { value } } }', None, {'id', 'object'}),
    # Alias
    # NOTE: every field is named as in the schema, not as the alias says!
    ('{ object { a: name b: name value } }', None, {'name', 'value'}),
    # Fragment spread
    ('''{ object { ...fragmentName } }
        fragment fragmentName on Object { id value }
     ''', None, {'id', 'value'}),
    # Inline fragment
    ('{ object { id ... on Object { name } } }', None, {'id', 'name'}),
    # Directives
    ('query ($skip: Boolean!) { object { id name @skip(if: $skip) } }', {'skip': True}, {'id'}),
    ('query ($skip: Boolean!) { object { id name @skip(if: $skip) } }', {'skip': False}, {'id', 'name'}),
    ('query ($inc: Boolean!) { object { id value @include(if: $inc) } }', {'inc': False}, {'id'}),
])
def test_selection_in_resolver(query: str, variables: Optional[dict], expected_fields: set[str]):
    """ Test selected_field_names_from_info() when used in a resolver function """
    captured = {}

    # GraphQL resolver
    def resolve_object(obj, info: graphql.GraphQLResolveInfo):
        captured.setdefault('names', selected_field_names_from_info(info))
        return {'id': 1}

    # Prepare our schema, bind resolver
    schema = graphql.build_schema(GQL_SCHEMA)
    schema.type_map['Query'].fields['object'].resolve = resolve_object

    # Execute
    res = graphql.graphql_sync(schema, query, variable_values=variables)
    assert not res.errors
    assert captured['names'] == expected_fields


@pytest.mark.parametrize(('query', 'expected_fields'), [
    # Edges
    ('{ objects { edges { node { id name } } } }', {'id', 'name'}),
    # Nodes
    ('{ objects { nodes { value } } }', {'value'}),
    # Both: merged
    ('{ objects { edges { cursor node { id } } nodes { value } } }', {'id', 'value'}),
    # No nodes
    ('{ objects { edges { cursor } } }', set()),
    ('{ objects { totalRowsCount } }', set()),
    # Aliases
    ('{ objects { e: edges { n: node { value } } } }', {'value'}),
    # Fragment on the connection
    ('''{ objects { ...page } }
        fragment page on ObjectConnection { nodes { id } edges { node { ...obj } } }
        fragment obj on Object { name }
     ''', {'id', 'name'}),
])
def test_node_selection(query: str, expected_fields: set[str]):
    """ Test selected_node_field_names() with connections """
    captured = {}

    def resolve_objects(obj, info: graphql.GraphQLResolveInfo):
        captured['names'] = selected_node_field_names(info)
        return {'edges': [], 'nodes': [], 'totalRowsCount': 0}

    schema = graphql.build_schema(GQL_SCHEMA)
    schema.type_map['Query'].fields['objects'].resolve = resolve_objects

    res = graphql.graphql_sync(schema, query)
    assert not res.errors
    assert captured['names'] == expected_fields


def test_ex_column_names_for():
    assert ex_column_names_for({'_id', 'title', 'genre', 'studio', 'groups'}, frozenset({'genre', 'studio', 'length'})) == ('genre', 'studio')
    assert ex_column_names_for(set(), frozenset({'genre'})) == ()


# language=graphql
GQL_SCHEMA = '''
    type Query {
        object: Object
        objects: ObjectConnection
    }

    type Object {
        id: ID
        name: String
        value: String
        object: Object  # nested object
    }

    type ObjectEdge {
        node: Object
        cursor: String
    }

    type ObjectConnection {
        edges: [ObjectEdge]
        nodes: [Object]
        totalRowsCount: Int
    }
'''

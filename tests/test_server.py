import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from movielib.server import create_app
from movielib.settings import Settings


def test_graphql_endpoint(client: TestClient):
    """ Test: GraphQL over HTTP """
    # Mutation
    res = client.post('/graphql', json={'query': 'mutation { addGroupType(name: "Drama") }'})
    assert res.status_code == 200
    assert res.json() == {'data': {'addGroupType': '1'}}

    # Query, with variables and an operation name
    res = client.post('/graphql', json={
        'query': '''
            query Types($first: Int) { groupTypes(first: $first) { nodes { _id name } totalRowsCount } }
            query Other { movies { totalRowsCount } }
        ''',
        'variables': {'first': 10},
        'operationName': 'Types',
    })
    assert res.json() == {'data': {'groupTypes': {'nodes': [{'_id': '1', 'name': 'Drama'}], 'totalRowsCount': 1}}}

    # Errors are reported along with data
    res = client.post('/graphql', json={'query': '{ movieGroup(_id: "abc") { name } }'})
    assert res.status_code == 200
    body = res.json()
    assert body['data'] == {'movieGroup': None}
    assert body['errors'][0]['message'] == "Invalid id: 'abc'"
    assert body['errors'][0]['path'] == ['movieGroup']

    # Invalid query
    res = client.post('/graphql', json={'query': '{ nope }'})
    body = res.json()
    assert body['data'] is None
    assert "Cannot query field 'nope'" in body['errors'][0]['message']

    # No query at all
    res = client.post('/graphql', json={})
    assert res.status_code == 422


def test_graphql_path(tmp_path):
    """ Test: the endpoint can be moved """
    app = create_app(Settings(database_url=f'sqlite+aiosqlite:///{tmp_path / "movies.db"}', graphql_path='/api/gql'))
    with TestClient(app) as client:
        res = client.post('/api/gql', json={'query': '{ movies { totalRowsCount } }'})
        assert res.json() == {'data': {'movies': {'totalRowsCount': 0}}}

        res = client.post('/graphql', json={'query': '{ movies { totalRowsCount } }'})
        assert res.status_code == 404


@pytest.fixture()
def app(tmp_path) -> FastAPI:
    return create_app(Settings(database_url=f'sqlite+aiosqlite:///{tmp_path / "movies.db"}'))


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    with TestClient(app) as c:
        yield c

import pytest

from movielib.pagination import PageResult, build_connection, page_flags, encode_cursor, decode_cursor


@pytest.mark.parametrize(('reversed_order', 'has_prev_input', 'has_next_input', 'total_count', 'edge_count', 'offset', 'expected'), [
    # Forward: the tail is known from the count
    (False, False, False, 5, 5, 0, (False, False)),
    (False, False, False, 5, 2, 0, (False, True)),
    (False, True, False, 4, 2, 0, (True, True)),
    (False, True, False, 2, 2, 0, (True, False)),
    (False, False, False, 5, 2, 3, (True, False)),
    (False, False, False, 5, 2, 1, (True, True)),
    # Forward: the "before" input does not matter
    (False, False, True, 5, 2, 0, (False, True)),
    # Reversed: the head is known from the count
    (True, False, False, 5, 2, 0, (True, False)),
    (True, False, True, 4, 2, 0, (True, True)),
    (True, False, True, 2, 2, 0, (False, True)),
    (True, False, False, 5, 2, 1, (True, True)),
    (True, False, False, 5, 2, 3, (False, True)),
    # Reversed: the "after" input does not matter
    (True, True, False, 2, 2, 0, (False, False)),
    # Empty page: no neighbours, whatever the input
    (False, True, True, 0, 0, 0, (False, False)),
    (False, False, False, 5, 0, 5, (False, False)),
    (True, False, True, 3, 0, 2, (False, False)),
])
def test_page_flags(reversed_order, has_prev_input, has_next_input, total_count, edge_count, offset, expected):
    """ Test: hasPreviousPage, hasNextPage """
    flags = page_flags(reversed_order, has_prev_input, has_next_input, total_count, edge_count, offset)
    assert (flags.has_previous_page, flags.has_next_page) == expected


ROWS = [
    {'_id': 'MOVIE_b', 'title': 'B', 'mediaFullPath': 'b'},
    {'_id': 'MOVIE_c', 'title': 'C', 'mediaFullPath': 'c'},
]


def test_build_connection():
    """ Test: edges, cursors, page info """
    after = encode_cursor({'title': 'A', '_id': 'MOVIE_a'})
    result = PageResult(rows=ROWS, total_count=4)
    connection = build_connection(result, after, None, ['title', '_id'])

    assert connection['edges'] == [
        {'node': ROWS[0], 'cursor': encode_cursor({'title': 'B', '_id': 'MOVIE_b'})},
        {'node': ROWS[1], 'cursor': encode_cursor({'title': 'C', '_id': 'MOVIE_c'})},
    ]
    assert connection['nodes'] == ROWS
    assert connection['totalRowsCount'] == 4
    assert connection['pageInfo'] == {
        'hasPreviousPage': True,
        'hasNextPage': True,
        'startCursor': connection['edges'][0]['cursor'],
        'endCursor': connection['edges'][1]['cursor'],
    }

    # Cursors only have the ordering keys
    assert decode_cursor(connection['pageInfo']['endCursor']) == {'title': 'C', '_id': 'MOVIE_c'}

    # Idempotent
    assert build_connection(result, after, None, ['title', '_id']) == connection


def test_build_connection_empty():
    """ Test: empty page """
    connection = build_connection(PageResult(rows=[], total_count=0, offset=5), None, None, ['title', '_id'])
    assert connection == {
        'edges': [],
        'nodes': [],
        'totalRowsCount': 0,
        'pageInfo': {
            'hasPreviousPage': False,
            'hasNextPage': False,
            'startCursor': '',
            'endCursor': '',
        },
    }


def test_build_connection_node_factory():
    """ Test: wrap rows into objects """
    connection = build_connection(PageResult(rows=ROWS, total_count=2), None, None, ['_id'], node_factory=lambda row: row['_id'])
    assert [edge['node'] for edge in connection['edges']] == ['MOVIE_b', 'MOVIE_c']
    assert connection['nodes'] == ['MOVIE_b', 'MOVIE_c']

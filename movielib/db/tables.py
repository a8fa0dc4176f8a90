""" Tables of the movie library """

import sqlalchemy as sa


metadata = sa.MetaData()


# Movies
MediaInfo = sa.Table(
    'MediaInfo', metadata,
    # "MOVIE_" + mediaFullPath
    sa.Column('_id', sa.String, primary_key=True),
    sa.Column('title', sa.String, nullable=False, server_default=''),
    sa.Column('mediaFullPath', sa.String, nullable=False),
    sa.Column('description', sa.String, server_default=''),
    sa.Column('genre', sa.String, server_default=''),
    sa.Column('length', sa.BigInteger, server_default='0'),
    sa.Column('mediaRating', sa.Integer, server_default='0'),
    sa.Column('playCount', sa.Integer, server_default='0'),
    sa.Column('releaseDate', sa.String, server_default=''),
    sa.Column('addDate', sa.String, server_default=''),
    sa.Column('studio', sa.String, server_default=''),
    sa.Column('visible', sa.Integer, server_default='1'),
    sa.Index('MEDIAINFO_TITLE_INDEX', 'title', '_id'),
)

# Movie groups
PlayListInfo = sa.Table(
    'PlayListInfo', metadata,
    sa.Column('_id', sa.Integer, primary_key=True, autoincrement=True),
    sa.Column('type', sa.Integer, nullable=False, server_default='0'),
    sa.Column('name', sa.String, nullable=False),
    sa.Column('addDate', sa.String, server_default=''),
    sa.Column('place', sa.String, server_default=''),
    sa.Column('description', sa.String, server_default=''),
    sa.Column('visible', sa.Integer, server_default='1'),
    sa.Index('PLAYLISTINFO_NAME_INDEX', 'type', 'name'),
)

# Movies in groups
PlayItemInfo = sa.Table(
    'PlayItemInfo', metadata,
    sa.Column('_id', sa.Integer, primary_key=True, autoincrement=True),
    sa.Column('type', sa.Integer, nullable=False, server_default='0'),
    sa.Column('playlistID', sa.Integer, nullable=False),
    sa.Column('mediaTitle', sa.String, nullable=False, server_default=''),
    sa.Column('mediaID', sa.String, nullable=False),
    sa.Column('listOrder', sa.Integer, nullable=False),
)

# Types of movie groups
MovieGroupTypes = sa.Table(
    'MovieGroupTypes', metadata,
    sa.Column('_id', sa.Integer, primary_key=True, autoincrement=True),
    sa.Column('name', sa.String, nullable=False),
    sa.Column('description', sa.String, server_default=''),
)

# Group => type. Groups without a row here have no type.
MovieGroupTypeMovieGroups = sa.Table(
    'MovieGroupTypeMovieGroups', metadata,
    sa.Column('mgid', sa.Integer, primary_key=True, autoincrement=False),
    sa.Column('gendid', sa.Integer, nullable=False),
)


# Columns that can be requested in addition to the default ones
MOVIE_EX_COLUMN_NAMES = frozenset(c.name for c in MediaInfo.columns) - {'_id', 'title', 'mediaFullPath'}
MOVIE_GROUP_EX_COLUMN_NAMES = frozenset(c.name for c in PlayListInfo.columns) - {'_id', 'name'}
MOVIE_GROUP_TYPE_EX_COLUMN_NAMES = frozenset(c.name for c in MovieGroupTypes.columns) - {'_id', 'name'}

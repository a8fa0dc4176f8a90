""" HTTP server: GraphQL over FastAPI

Run:
    uvicorn --factory movielib.server:create_app
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import fastapi
import pydantic
from sqlalchemy.ext.asyncio import create_async_engine

from movielib.db.manager import MovieManager
from movielib.graphql import execute
from movielib.settings import Settings, get_settings


logger = logging.getLogger(__name__)


class GraphQLRequest(pydantic.BaseModel):
    """ GraphQL request body """
    query: str
    variables: Optional[dict[str, Any]] = None
    operationName: Optional[str] = None


def create_app(settings: Settings = None) -> fastapi.FastAPI:
    """ Create the application

    The movie manager is created on startup and disposed of on shutdown.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: fastapi.FastAPI):
        engine = create_async_engine(settings.database_url, echo=settings.echo)
        manager = MovieManager(engine, settings.get_backend())
        await manager.init()
        app.state.manager = manager
        try:
            yield
        finally:
            await manager.dispose()
            logger.info('Movie library closed')

    app = fastapi.FastAPI(title='movielib', lifespan=lifespan)

    @app.post(settings.graphql_path)
    async def graphql_endpoint(body: GraphQLRequest, manager: MovieManager = fastapi.Depends(get_manager)):
        """ Execute a GraphQL operation """
        result = await execute(manager, body.query, body.variables, body.operationName)

        response: dict[str, Any] = {'data': result.data}
        if result.errors:
            for error in result.errors:
                logger.warning('GraphQL error: %s', error.message, exc_info=error.original_error)
            response['errors'] = [error.formatted for error in result.errors]
        return response

    return app


def get_manager(request: fastapi.Request) -> MovieManager:
    """ Dependency: the movie manager """
    return request.app.state.manager

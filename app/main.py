import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from contextlib import asynccontextmanager

from app.core.config import Settings, load_settings
from app.core.database import connect, ensure_indexes
from app.core.movie_service import MovieService
from app.core.user_service import UserService
from app.api.routes import auth, movies
from app.api.errors import api_error_handler, request_validation_handler, unexpected_error_handler
from app.core.exceptions import APIError

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database=None) -> FastAPI:
    """
    Build the API. `database` is any object that hands out collections by name;
    when omitted a MongoDB client is opened for the app's lifetime.
    """
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        db = database
        if db is None:
            client = connect(settings)
            db = client[settings.mongo_db]

        users_collection = db[settings.users_collection]
        await ensure_indexes(users_collection)

        app.state.settings = settings
        app.state.movie_service = MovieService(
            db[settings.movies_collection],
            require_title=settings.require_title,
        )
        app.state.user_service = UserService(
            users_collection,
            jwt_secret=settings.jwt_secret,
            jwt_expires_seconds=settings.jwt_expires_seconds,
        )
        logger.info("API ready (require_title=%s)", settings.require_title)
        yield

        if client is not None:
            await client.close()

    app = FastAPI(
        title="Digitalflix Movies API",
        lifespan=lifespan,
    )
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.get("/", response_class=PlainTextResponse)
    def health():
        return "API de Filmes rodando..."

    app.include_router(auth.router, tags=["auth"])
    app.include_router(movies.router, prefix="/movies", tags=["movies"])

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=load_settings().port)

"""
FastAPI Application - Movie Ratings Service
"""

# Load environment variables from .env file FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from movie_ratings.core.config import config
from movie_ratings.core.errors import (
    ErrorResponse,
    error_response_handler,
    http_exception_handler,
)
from movie_ratings.core.indexes import create_indexes
from movie_ratings.core.logger import logger
from movie_ratings.db.mongodb import MongoStore
from movie_ratings.middlewares import CorrelationIdMiddleware
from movie_ratings.routers import admin_router, health_router, movie_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store for the lifetime of the application"""
    logger.info("Starting Movie Ratings Service...")
    store = MongoStore(config)
    await store.connect()
    await create_indexes(store.database)
    app.state.store = store

    logger.info(
        "Movie Ratings Service started successfully",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port
        }
    )

    yield

    logger.info("Shutting down Movie Ratings Service...")
    await store.close()
    app.state.store = None


def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(
        "Request validation failed",
        metadata={"event": "validation_error", "errors": jsonable_encoder(exc.errors())}
    )
    return JSONResponse(
        status_code=422,
        content={"error": "Validation error", "details": jsonable_encoder(exc.errors())}
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Movie Ratings Service",
        description="Rating submission and duplicate movie merging",
        version=config.service_version,
        lifespan=lifespan,
    )

    app.add_middleware(CorrelationIdMiddleware)

    app.add_exception_handler(ErrorResponse, error_response_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(health_router, tags=["health"])
    app.include_router(movie_router, prefix="/api/movies", tags=["movies"])
    app.include_router(admin_router, prefix="/api/admin", tags=["admin"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info(
        f"Starting {config.service_name} on port {config.port}",
        metadata={"environment": config.environment, "port": config.port}
    )
    uvicorn.run(
        "movie_ratings.main:app",
        host=config.host,
        port=config.port,
        reload=config.is_development,
    )

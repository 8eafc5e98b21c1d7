from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from movie_ratings.core.config import config
from movie_ratings.core.errors import StoreUnavailableError
from movie_ratings.core.logger import logger
from movie_ratings.db.mongodb import MongoStore
from movie_ratings.dependencies.services import get_store

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness probe"""
    return {"status": "healthy", "service": config.service_name, "version": config.service_version}


@router.get("/health/ready")
async def readiness(store: MongoStore = Depends(get_store)):
    """Readiness probe: the store must answer a ping"""
    try:
        await store.ping()
    except StoreUnavailableError as e:
        logger.warning(
            "Readiness check failed",
            metadata={"event": "readiness_failed", "reason": e.message}
        )
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "checks": {"database": "unavailable"}},
        )
    return {"status": "ready", "checks": {"database": "ok"}}

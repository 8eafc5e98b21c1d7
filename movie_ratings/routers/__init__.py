from .admin_router import router as admin_router
from .health_router import router as health_router
from .movie_router import router as movie_router

__all__ = ["admin_router", "health_router", "movie_router"]

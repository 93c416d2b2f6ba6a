from watchdesk.routes.health import router as health_router
from watchdesk.routes.watchlist import router as watchlist_router

__all__ = ["health_router", "watchlist_router"]

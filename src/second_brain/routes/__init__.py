from second_brain.routes.auth import router as auth_router
from second_brain.routes.brains import router as brains_router
from second_brain.routes.health import router as health_router
from second_brain.routes.items import router as items_router

__all__ = ["auth_router", "brains_router", "health_router", "items_router"]

from pokestore.api.health import router as health_router
from pokestore.api.regenerate import router as regenerate_router

__all__ = [
    "health_router",
    "regenerate_router",
]

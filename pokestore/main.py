from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI

from pokestore.api import health_router, regenerate_router
from pokestore.config import settings
from pokestore.db.database import init_db


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("pokestore"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(regenerate_router)

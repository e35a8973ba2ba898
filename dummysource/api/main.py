from fastapi import FastAPI
from contextlib import asynccontextmanager

from .routes import router
from ..core.registry import PluginRegistry


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Discover and register all available plugins
    PluginRegistry.discover_plugins()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="dummysource",
        description="Reference event source plugin with field extraction",
        version="0.1.0",
        lifespan=lifespan
    )

    app.include_router(router)

    return app


app = create_app()

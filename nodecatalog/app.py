from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nodecatalog.api.v1 import router as api_router
from nodecatalog.core.config import settings
from nodecatalog.core.errors import ConfigLoadError
from nodecatalog.core.logging_config import configure_logging, get_logger
from nodecatalog.services.nodes.catalog import NodeCatalog

logger = get_logger("nodecatalog.app")


async def load_startup_document(catalog: NodeCatalog) -> None:
    """Load the configured document; a failure leaves the catalog empty but the API up."""
    try:
        if settings.NODE_CONFIG_URL:
            await catalog.loader.load_from_url(settings.NODE_CONFIG_URL)
        elif settings.NODE_CONFIG_PATH:
            await catalog.loader.load_from_file(settings.NODE_CONFIG_PATH)
        else:
            logger.info("No startup node type document configured")
    except ConfigLoadError as e:
        logger.error(f"Startup node type document not loaded: {e}")


def create_app(catalog: Optional[NodeCatalog] = None, load_on_startup: bool = True) -> FastAPI:
    catalog = catalog or NodeCatalog(url_timeout=settings.URL_FETCH_TIMEOUT)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        # Startup
        configure_logging()
        if load_on_startup:
            await load_startup_document(catalog)

        yield

        # Shutdown
        logger.info("Node catalog shutting down")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Runtime-configurable node type catalog for the workflow editor",
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.catalog = catalog

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app


app = create_app()

# pokedex/main.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .catalog.router import ROUTES, router as catalog_router
from .catalog.store import PokedexService
from .config import Settings, get_settings
from .errors import PokedexError


logger = logging.getLogger(__name__)


async def _warm_up(service: PokedexService) -> None:
    try:
        dataset = await service.get_dataset()
    except Exception as exc:
        logger.error("Initial dataset load failed: %s", exc)
        return
    logger.info("Dataset ready: %s Pokemon", dataset.total_pokemon)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[PokedexService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    service = service or PokedexService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        warm_up = asyncio.create_task(_warm_up(service)) if settings.warm_cache else None
        yield
        if warm_up is not None and not warm_up.done():
            warm_up.cancel()
        await service.aclose()

    app = FastAPI(
        title="Pokedex API",
        description=(
            "Read-only catalogue of Pokemon built from PokeAPI, cached on "
            "disk and served with filters, sorting and pagination."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.pokedex = service
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and wrong methods both answer with the route list.
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content={"error": "Route not found.", "routes": ROUTES},
            )
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(PokedexError)
    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal error while processing the request.",
                "details": str(exc) or type(exc).__name__,
            },
        )

    app.include_router(catalog_router)
    return app


# For uvicorn, expose `app` at module level
app = create_app()

"""
Route definitions for the catalogue API.

Endpoints under /api:
- GET  /health             : service status and dataset summary
- GET  /types              : type counts
- GET  /regions            : region counts
- GET  /pokemon            : filtered, sorted, paginated listing
- GET  /pokemon/{id_or_name}: one Pokemon by name or national number
- POST /refresh            : force a rebuild from PokeAPI
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from .schemas import (
    HealthResponse,
    PokemonItem,
    PokemonPage,
    QueryParams,
    RefreshResponse,
    RegionList,
    TypeList,
)
from .store import PokedexService


ROUTES = [
    "GET /api/health",
    "GET /api/types",
    "GET /api/regions",
    "GET /api/pokemon",
    "GET /api/pokemon/:idOrName",
    "POST /api/refresh",
]

router = APIRouter(prefix="/api", tags=["pokedex"])


def get_service(request: Request) -> PokedexService:
    return request.app.state.pokedex


@router.get("/health", response_model=HealthResponse)
async def health(service: PokedexService = Depends(get_service)) -> HealthResponse:
    return await service.get_summary()


@router.get("/types", response_model=TypeList)
async def list_types(service: PokedexService = Depends(get_service)) -> TypeList:
    items = await service.get_types()
    return TypeList(items=items, total=len(items))


@router.get("/regions", response_model=RegionList)
async def list_regions(service: PokedexService = Depends(get_service)) -> RegionList:
    items = await service.get_regions()
    return RegionList(items=items, total=len(items))


@router.get("/pokemon", response_model=PokemonPage)
async def list_pokemon(
    request: Request, service: PokedexService = Depends(get_service)
) -> PokemonPage:
    """
    Returns one page of Pokemon.

    The raw query string goes through ``QueryParams.from_query`` rather
    than FastAPI's ``Query`` validation: malformed values fall back to
    defaults instead of producing a 422.
    """
    params = QueryParams.from_query(request.query_params)
    return await service.query(params)


@router.get("/pokemon/{identifier}", response_model=PokemonItem)
async def get_pokemon(identifier: str, service: PokedexService = Depends(get_service)):
    pokemon = await service.find_pokemon(identifier)
    if pokemon is None:
        return JSONResponse(status_code=404, content={"error": "Pokemon not found."})
    return PokemonItem(item=pokemon)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(service: PokedexService = Depends(get_service)) -> RefreshResponse:
    dataset = await service.get_dataset(force_refresh=True)
    return RefreshResponse(total_pokemon=dataset.total_pokemon, fetched_at=dataset.fetched_at)

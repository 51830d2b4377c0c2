import pytest
from fastapi.testclient import TestClient

from pokedex.catalog.pokeapi_service import PokeApiClient
from pokedex.catalog.store import PokedexService
from pokedex.config import Settings
from pokedex.main import create_app
from tests.helpers import BASE_URL, FakePokeApi


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        POKEAPI_BASE_URL=BASE_URL,
        POKEDEX_CACHE_FILE=str(tmp_path / "cache" / "pokedex-cache.json"),
        POKEDEX_FETCH_CONCURRENCY="5",
        POKEDEX_CACHE_TTL_HOURS="24",
        POKEDEX_WARM_CACHE="false",
    )


@pytest.fixture()
def fake_api():
    return FakePokeApi()


def make_service(settings, fake_api, **kwargs):
    def client_factory():
        return PokeApiClient(
            base_url=settings.pokeapi_base_url,
            list_limit=settings.list_limit,
            retry_delay=0,
            transport=fake_api.transport(),
        )

    return PokedexService(settings, client_factory=client_factory, **kwargs)


@pytest.fixture()
def service(settings, fake_api):
    return make_service(settings, fake_api)


@pytest.fixture()
def client(settings, service):
    app = create_app(settings=settings, service=service)
    with TestClient(app) as test_client:
        yield test_client

"""
Catalog package for the Pokedex API.

The pieces, leaves first: ``normalize`` flattens raw PokeAPI documents,
``pokeapi_service`` fetches them, ``store`` builds and caches the
``Dataset``, ``query`` slices it and ``router`` exposes it over HTTP.
``schemas`` holds the pydantic models shared by all of them.
"""

"""Pokedex catalogue API: PokeAPI data, cached on disk, served over HTTP."""

__version__ = "1.0.0"

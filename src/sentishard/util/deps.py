"""Lazy imports for the optional ``dataframe`` extra (polars, duckdb)."""

from __future__ import annotations

from functools import lru_cache
from importlib import import_module

EXTRA_FOR_MODULE = {"polars": "dataframe", "duckdb": "dataframe"}


@lru_cache(maxsize=None)
def optional_module(module_name: str):
    try:
        return import_module(module_name)
    except ImportError:
        return None


def require_module(module_name: str, api_name: str):
    module = optional_module(module_name)
    if module is None:
        extra = EXTRA_FOR_MODULE.get(module_name, "dataframe")
        raise ImportError(f"{module_name} is required for {api_name}. Install with: pip install 'sentishard[{extra}]'")
    return module


def require_polars(api_name: str):
    return require_module("polars", api_name)


def require_duckdb(api_name: str):
    return require_module("duckdb", api_name)

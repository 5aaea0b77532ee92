"""
Explicit, opt-in memoization for pure engine functions.

Nothing in the engine caches implicitly. A caller that re-runs the same
projection (e.g. a dashboard refresh over an unchanged snapshot) can wrap the
entrypoint with ``memoize`` and get a ``functools.lru_cache`` keyed by a
canonical, hashable freeze of the call arguments.
"""

from __future__ import annotations

import functools
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Callable

from .logging_setup import get_logger

_logger = get_logger("hearth.core.cache")


def freeze(value: Any) -> Any:
    """Turn nested inputs into a hashable canonical form."""
    if value is None or isinstance(value, (str, bytes, bool, int, float, Enum)):
        return value
    if is_dataclass(value) and not isinstance(value, type):
        return (type(value).__name__,) + tuple(freeze(getattr(value, f.name)) for f in fields(value))
    if isinstance(value, dict):
        return tuple(sorted(((freeze(k), freeze(v)) for k, v in value.items()), key=repr))
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return tuple(sorted((freeze(v) for v in value), key=repr))
    hash(value)  # raises TypeError for anything we cannot key on
    return value


class _CallKey:
    """Hashes and compares on the frozen arguments; carries the originals for the call."""

    __slots__ = ("frozen", "args", "kwargs")

    def __init__(self, frozen, args, kwargs):
        self.frozen = frozen
        self.args = args
        self.kwargs = kwargs

    def __hash__(self):
        return hash(self.frozen)

    def __eq__(self, other):
        return isinstance(other, _CallKey) and self.frozen == other.frozen


def memoize(maxsize: int = 32) -> Callable:
    """
    ``functools.lru_cache`` for functions whose arguments are dataclasses,
    lists or dicts.

    Arguments that cannot be frozen (e.g. DataFrames) bypass the cache for that
    call. List results are shallow-copied on the way out so callers cannot
    mutate a cached value. ``cache_info`` and ``cache_clear`` are the
    ``lru_cache`` ones.
    """

    def decorator(func: Callable) -> Callable:
        @functools.lru_cache(maxsize=maxsize)
        def cached(key: _CallKey):
            return func(*key.args, **key.kwargs)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                frozen = (freeze(args), freeze(kwargs))
                hash(frozen)
            except TypeError:
                _logger.debug("%s: unhashable arguments, bypassing cache", func.__name__)
                return func(*args, **kwargs)

            result = cached(_CallKey(frozen, args, kwargs))
            return list(result) if isinstance(result, list) else result

        wrapper.cache_info = cached.cache_info
        wrapper.cache_clear = cached.cache_clear
        return wrapper

    return decorator

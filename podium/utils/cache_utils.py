"""
Cache utilities for Podium
Provides caching decorators and helper functions for leaderboard and catalog reads
"""

import functools

from flask import current_app

from podium import cache


def cached_query(model_name, timeout=300):
    """
    Decorator for caching query results

    Args:
        model_name: Name of the model for cache key generation
        timeout: Cache timeout in seconds
    """

    def decorator(f):
        @functools.wraps(f)
        def wrapped(*args, **kwargs):
            args_str = "_".join(str(arg) for arg in args)
            kwargs_str = "_".join(f"{k}_{v}" for k, v in sorted(kwargs.items()))
            cache_key = f"query_{model_name}_{f.__name__}_{args_str}_{kwargs_str}"

            result = cache.get(cache_key)
            if result is not None:
                current_app.logger.debug(f"Query cache hit: {cache_key}")
                return result

            result = f(*args, **kwargs)
            cache.set(cache_key, result, timeout=timeout)
            current_app.logger.debug(f"Query cache set: {cache_key}")

            return result

        return wrapped

    return decorator


def invalidate_cache_pattern(pattern):
    """
    Invalidate cache keys matching a pattern

    SimpleCache and RedisCache cannot delete by pattern through Flask-Caching,
    so the whole cache is cleared.
    """
    cache.clear()
    current_app.logger.info(f"Cache cleared for pattern: {pattern}")


def invalidate_leaderboards():
    """Drop cached standings after points change"""
    invalidate_cache_pattern("*leaderboard*")


def get_cache_stats():
    return {
        "type": current_app.config.get("CACHE_TYPE", "Unknown"),
        "timeout": current_app.config.get("CACHE_DEFAULT_TIMEOUT", 300),
    }

"""
Application managed cache bookkeeping on top of Django's cache framework.

The cache store offers no pattern deletion, so every key written through
``QueryCache`` is recorded in a per-namespace index (``CacheRegistry``). A
namespace can then be invalidated as a whole without touching the keys of
other namespaces.

The cache is an accelerator only. Every failure of the store is logged as a
warning and the caller falls back to computing the value directly.

Concurrent misses on the same key are not coalesced: both callers compute
and the last write wins. The registry itself is updated with a
read-modify-write, so a key tracked concurrently with an invalidation can be
lost from the index; it then simply expires on its own TTL.
"""

import hashlib
import json
import logging

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

_MISSING = object()


def make_cache_key(namespace, params):
    """Deterministic key for ``params``, independent of argument order."""
    canonical = json.dumps(params or {}, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{namespace}:{digest}"


class CacheRegistry:
    """Index of live cache keys, one registry entry per namespace."""

    prefix = "cache_registry"

    def __init__(self, ttl=None):
        self.ttl = ttl or settings.CACHE_REGISTRY_TTL

    def registry_key(self, namespace):
        return f"{self.prefix}:{namespace}"

    def keys(self, namespace):
        try:
            return set(cache.get(self.registry_key(namespace)) or ())
        except Exception as e:
            logger.warning(f"Cache registry read failed for {namespace}: {e}")
            return set()

    def track(self, namespace, key):
        try:
            tracked = set(cache.get(self.registry_key(namespace)) or ())
            if key in tracked:
                return
            tracked.add(key)
            cache.set(self.registry_key(namespace), tracked, self.ttl)
        except Exception as e:
            logger.warning(f"Cache registry tracking failed for {key}: {e}")

    def untrack(self, namespace, key):
        try:
            tracked = set(cache.get(self.registry_key(namespace)) or ())
            if key not in tracked:
                return
            tracked.discard(key)
            cache.set(self.registry_key(namespace), tracked, self.ttl)
        except Exception as e:
            logger.warning(f"Cache registry update failed for {key}: {e}")

    def invalidate(self, namespace):
        """Delete every tracked key of ``namespace``; returns how many were dropped."""
        tracked = self.keys(namespace)
        try:
            if tracked:
                cache.delete_many(list(tracked))
            cache.delete(self.registry_key(namespace))
        except Exception as e:
            logger.warning(f"Cache invalidation failed for {namespace}: {e}")
            return 0
        logger.info(f"Invalidated {len(tracked)} cached entries in {namespace}")
        return len(tracked)


class QueryCache:
    """Get-or-compute cache whose writes are tracked in a ``CacheRegistry``."""

    def __init__(self, registry=None):
        self.registry = registry or CacheRegistry()

    def get(self, key, default=None):
        try:
            value = cache.get(key, _MISSING)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return default
        return default if value is _MISSING else value

    def put(self, namespace, key, value, ttl):
        try:
            cache.set(key, value, ttl)
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False
        self.registry.track(namespace, key)
        return True

    def forget(self, namespace, key):
        try:
            cache.delete(key)
        except Exception as e:
            logger.warning(f"Cache delete failed for {key}: {e}")
            return False
        self.registry.untrack(namespace, key)
        return True

    def remember(self, namespace, key, ttl, compute):
        """Return the cached value for ``key`` or compute, store and return it.

        ``None`` results are returned but never stored.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value

        value = compute()
        if value is not None:
            self.put(namespace, key, value, ttl)
        return value

    def invalidate(self, namespace):
        return self.registry.invalidate(namespace)

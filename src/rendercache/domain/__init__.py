"""Domain layer for render inputs and cache keys.

This package contains pure business logic with zero external dependencies.
All domain code uses only Python stdlib (typing, dataclasses, hashlib) and
internal rendercache.domain imports.

Modules:
    value_objects: Immutable value objects (InputBundle, CacheKey, CacheStats)
    entities: Cache entries stored by the memoization cache
    services: Domain services (KeyDeriver)
    errors: Domain exception hierarchy
"""

# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Admin API for memoization cache management.

Provides HTTP endpoints for:
- Listing caches and their counters
- Querying and changing capacity
- Clearing a cache or evicting a single entry

Authentication: Requires X-Admin-Key header matching RENDERCACHE_ADMIN_KEY.
"""

import logging
import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, Field

from rendercache.application.memo_cache import MemoizationCache
from rendercache.application.registry import ComponentRegistry
from rendercache.domain.errors import CapacityViolationError, ComponentNotFoundError
from rendercache.domain.value_objects import CacheStats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# --- Request/Response Models ---


class CacheStatsResponse(BaseModel):
    """Counters for one cache."""

    name: str = Field(..., description="Cache name")
    size: int = Field(..., description="Entries currently stored")
    capacity: int = Field(..., description="Maximum entries")
    hits: int = Field(..., description="Lookups answered from the cache")
    misses: int = Field(..., description="Lookups that rendered")
    evictions: int = Field(..., description="Entries evicted by the LRU policy")
    computes: int = Field(..., description="Successful renders on the memoized path")
    failures: int = Field(..., description="Failed renders on the memoized path")
    hit_rate: float = Field(..., description="hits / (hits + misses)")

    @classmethod
    def from_stats(cls, stats: CacheStats) -> "CacheStatsResponse":
        return cls(
            name=stats.name,
            size=stats.size,
            capacity=stats.capacity,
            hits=stats.hits,
            misses=stats.misses,
            evictions=stats.evictions,
            computes=stats.computes,
            failures=stats.failures,
            hit_rate=stats.hit_rate,
        )


class CacheListResponse(BaseModel):
    """All caches known to the registry."""

    caches: list[CacheStatsResponse]


class CacheEntryInfo(BaseModel):
    """One stored entry, addressed by key digest."""

    digest: str = Field(..., description="SHA-256 digest of the cache key")
    age_seconds: float = Field(..., description="Seconds since the entry was stored")


class CacheEntriesResponse(BaseModel):
    name: str
    entries: list[CacheEntryInfo] = Field(..., description="Least to most recently used")


class ResizeCacheRequest(BaseModel):
    """Request to change a cache's capacity."""

    capacity: int = Field(..., description="New maximum number of entries", examples=[128])


class ResizeCacheResponse(BaseModel):
    name: str
    old_capacity: int
    capacity: int
    evicted: int = Field(..., description="Entries evicted to satisfy the new bound")


class ClearCacheResponse(BaseModel):
    name: str
    cleared: int = Field(..., description="Number of entries removed")


class EvictEntryResponse(BaseModel):
    name: str
    digest: str
    evicted: bool


# --- Authentication ---


def verify_admin_key(
    request: Request,
    x_admin_key: str | None = Header(None, alias="X-Admin-Key"),
) -> None:
    """Verify admin authentication key.

    Raises:
        HTTPException: 500 if no key configured, 401 if key missing or invalid
    """
    expected_key = request.app.state.rendercache.settings.secrets.admin_key.get_secret_value()

    if not expected_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin authentication not configured (RENDERCACHE_ADMIN_KEY missing)",
        )

    if x_admin_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin authentication required (X-Admin-Key header missing)",
        )

    if not secrets.compare_digest(x_admin_key, expected_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key",
        )


# --- Dependencies ---


def get_registry(request: Request) -> ComponentRegistry:
    """Dependency returning the application's component registry."""
    return request.app.state.rendercache.registry


def _lookup_cache(registry: ComponentRegistry, name: str) -> MemoizationCache:
    try:
        return registry.cache(name)
    except ComponentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


# --- Endpoints ---


@router.get("/caches", response_model=CacheListResponse)
async def list_caches(
    registry: ComponentRegistry = Depends(get_registry),  # noqa: B008
    _auth: None = Depends(verify_admin_key),
) -> CacheListResponse:
    """List all caches with their counters."""
    caches = registry.caches()
    return CacheListResponse(
        caches=[CacheStatsResponse.from_stats(caches[name].stats()) for name in sorted(caches)]
    )


@router.get("/caches/{name}", response_model=CacheStatsResponse)
async def get_cache(
    name: str,
    registry: ComponentRegistry = Depends(get_registry),  # noqa: B008
    _auth: None = Depends(verify_admin_key),
) -> CacheStatsResponse:
    """Size, capacity and counters of one cache."""
    return CacheStatsResponse.from_stats(_lookup_cache(registry, name).stats())


@router.get("/caches/{name}/entries", response_model=CacheEntriesResponse)
async def list_entries(
    name: str,
    registry: ComponentRegistry = Depends(get_registry),  # noqa: B008
    _auth: None = Depends(verify_admin_key),
) -> CacheEntriesResponse:
    """Stored entries from least to most recently used."""
    cache = _lookup_cache(registry, name)
    return CacheEntriesResponse(
        name=name,
        entries=[
            CacheEntryInfo(digest=entry.key.digest, age_seconds=entry.age())
            for entry in cache.entries()
        ],
    )


@router.put("/caches/{name}/capacity", response_model=ResizeCacheResponse)
async def resize_cache(
    name: str,
    resize_request: ResizeCacheRequest,
    registry: ComponentRegistry = Depends(get_registry),  # noqa: B008
    _auth: None = Depends(verify_admin_key),
) -> ResizeCacheResponse:
    """Change capacity; LRU entries above the new bound are evicted.

    Raises:
        HTTPException: 400 if the capacity is invalid (cache unchanged)
    """
    cache = _lookup_cache(registry, name)
    old_capacity = cache.capacity
    try:
        evicted = cache.resize(resize_request.capacity)
    except CapacityViolationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    logger.info(f"Admin API: resized cache {name} {old_capacity} -> {resize_request.capacity}")
    return ResizeCacheResponse(
        name=name,
        old_capacity=old_capacity,
        capacity=cache.capacity,
        evicted=evicted,
    )


@router.delete("/caches/{name}", response_model=ClearCacheResponse)
async def clear_cache(
    name: str,
    registry: ComponentRegistry = Depends(get_registry),  # noqa: B008
    _auth: None = Depends(verify_admin_key),
) -> ClearCacheResponse:
    """Remove all entries from a cache."""
    cleared = _lookup_cache(registry, name).clear()
    logger.info(f"Admin API: cleared {cleared} entries from cache {name}")
    return ClearCacheResponse(name=name, cleared=cleared)


@router.delete("/caches/{name}/entries/{digest}", response_model=EvictEntryResponse)
async def evict_entry(
    name: str,
    digest: str,
    registry: ComponentRegistry = Depends(get_registry),  # noqa: B008
    _auth: None = Depends(verify_admin_key),
) -> EvictEntryResponse:
    """Evict one entry by key digest.

    Raises:
        HTTPException: 404 if no entry has that digest
    """
    cache = _lookup_cache(registry, name)
    if not cache.evict_digest(digest):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"no entry with digest {digest} in cache {name}",
        )
    return EvictEntryResponse(name=name, digest=digest, evicted=True)

"""
Admin Routes for Public Listing Cache Management

Features:
- Cache hit/miss statistics
- Manual invalidation of cached public listings

All endpoints require the Admin role
"""

from fastapi import APIRouter, Depends, status
from app.models.user import Role
from app.schemas.auth import Identity
from app.utils.cache import CacheStore, get_cache
from app.utils.dependencies import require_role
from app.utils.exceptions import ValidationError
from datetime import datetime, timezone

router = APIRouter(prefix="/api/admin", tags=["Admin - Cache"])


@router.get("/cache/stats", status_code=status.HTTP_200_OK)
def get_cache_statistics(
    current_user: Identity = Depends(require_role(Role.ADMIN)),
    cache: CacheStore = Depends(get_cache)
):
    """
    Get public listing cache statistics

    - Whether Redis caching is enabled and reachable
    - Hits, misses and hit rate since startup

    **Requires Admin role**
    """
    stats = cache.get_stats()
    stats["connected"] = cache.ping()
    stats["ttl_seconds"] = cache.ttl
    return stats


@router.delete("/cache", status_code=status.HTTP_200_OK)
def clear_public_cache(
    confirm: bool = False,
    current_user: Identity = Depends(require_role(Role.ADMIN)),
    cache: CacheStore = Depends(get_cache)
):
    """
    Clear every cached public listing

    Query Parameters:
    - confirm: Must be true to execute

    **Requires Admin role**
    """
    if not confirm:
        raise ValidationError("Must set confirm=true to clear cache")

    deleted = cache.clear_public_movies()
    return {
        "message": "Cache cleared successfully",
        "deleted_count": deleted,
        "cleared_at": datetime.now(timezone.utc).isoformat(),
        "cleared_by": current_user.username
    }

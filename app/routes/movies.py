from fastapi import APIRouter, Depends, Query, Path, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.models.user import Role
from app.schemas.auth import Identity, MessageResponse
from app.schemas.movie import MovieCreate, MovieUpdate, MovieResponse, MovieSort, PublicMovieFilters
from app.services.movie_service import MovieService
from app.utils.cache import CacheStore, get_cache
from app.utils.dependencies import get_current_user, get_optional_user, require_role

router = APIRouter(prefix="/api/movies", tags=["Movies"])


# ============================================
# Public listing (cached)
# ============================================

@router.get("/public", response_model=List[MovieResponse])
def get_public_movies(
    response: Response,
    genre: Optional[str] = Query(None, max_length=100, description="Genre (case-insensitive)"),
    year: Optional[int] = Query(None, description="Release year"),
    min_rating: Optional[float] = Query(None, alias="minRating", ge=0, le=10, description="Minimum rating"),
    max_rating: Optional[float] = Query(None, alias="maxRating", ge=0, le=10, description="Maximum rating"),
    sort_by: Optional[MovieSort] = Query(None, alias="sortBy", description="title | year | rating | id"),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    """
    List public movies

    No authentication required. Results are cached for 15 minutes per
    filter combination; the X-Cache header reports HIT or MISS.
    """
    filters = PublicMovieFilters(
        genre=genre,
        year=year,
        min_rating=min_rating,
        max_rating=max_rating,
        sort_by=sort_by
    )
    movies, cache_hit = MovieService.list_public(db, cache, filters)
    response.headers["X-Cache"] = "HIT" if cache_hit else "MISS"
    return movies


@router.post("/top", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
def add_top_rated_movie(
    movie_data: MovieCreate,
    current_user: Identity = Depends(require_role(Role.ADMIN)),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    """
    Add a public top-rated movie

    **Requires Admin role.** Clears every cached public listing.
    """
    return MovieService.create_top_rated(db, cache, current_user, movie_data)


# ============================================
# Private movies
# ============================================

@router.get("/private", response_model=List[MovieResponse])
def get_private_movies(
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Movies owned by the current user"""
    return MovieService.list_private(db, current_user)


@router.post("", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
def add_movie(
    movie_data: MovieCreate,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a private movie owned by the current user (409 on duplicate title)"""
    return MovieService.create_private(db, current_user, movie_data)


# ============================================
# Single movie (MUST be last - dynamic route)
# ============================================

@router.get("/{movie_id}", response_model=MovieResponse)
def get_movie(
    movie_id: int = Path(..., description="Movie ID"),
    current_user: Optional[Identity] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Public movies are visible to everyone, private ones to their owner only"""
    return MovieService.get_movie(db, current_user, movie_id)


@router.put("/{movie_id}", response_model=MovieResponse)
def update_movie(
    movie_data: MovieUpdate,
    movie_id: int = Path(..., description="Movie ID"),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update one of your private movies"""
    return MovieService.update_movie(db, current_user, movie_id, movie_data)


@router.delete("/{movie_id}", response_model=MessageResponse)
def delete_movie(
    movie_id: int = Path(..., description="Movie ID"),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete one of your private movies and its reviews"""
    MovieService.delete_movie(db, current_user, movie_id)
    return {"message": f"Movie with Id = {movie_id} has been deleted."}

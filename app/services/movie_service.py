"""
Movie Service - movie records, visibility rules and the public listing cache
"""

from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional, Tuple
from datetime import datetime
import logging
import math

from app.models.movie import Movie
from app.schemas.auth import Identity
from app.schemas.movie import MovieCreate, MovieUpdate, MovieResponse, MovieSort, PublicMovieFilters
from app.services import access_policy
from app.utils.cache import CacheStore
from app.utils.exceptions import ValidationError, Conflict, StorageError

logger = logging.getLogger(__name__)

MIN_YEAR = 1800  # exclusive
MIN_RATING = 0.0
MAX_RATING = 10.0


def validate_movie_fields(data: MovieCreate) -> None:
    """
    Check a movie payload before anything touches the database.

    Raises:
        ValidationError: On the first rule the payload breaks
    """
    if not data.title or not data.title.strip():
        logger.warning("Rejected movie without a title")
        raise ValidationError("Title is a required field.")

    if not data.genre or not data.genre.strip():
        logger.warning("Rejected movie without a genre")
        raise ValidationError("Genre is a required field.")

    if data.year <= MIN_YEAR or data.year > datetime.now().year:
        logger.warning(f"Rejected movie with invalid year: {data.year}")
        raise ValidationError("Year must be between 1800 and the current year.")

    if not math.isfinite(data.rating) or data.rating < MIN_RATING or data.rating > MAX_RATING:
        logger.warning(f"Rejected movie with invalid rating: {data.rating}")
        raise ValidationError("Rating must be between 0 and 10.")


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Database error while {action}", exc_info=True)
        raise StorageError()


class MovieService:
    """Service for movie operations"""

    @staticmethod
    def _query_public(db: Session, filters: PublicMovieFilters) -> List[Movie]:
        query = db.query(Movie).filter(Movie.is_public.is_(True))

        if filters.genre:
            query = query.filter(func.lower(Movie.genre) == filters.genre.lower())
        if filters.year is not None:
            query = query.filter(Movie.year == filters.year)
        if filters.min_rating is not None:
            query = query.filter(Movie.rating >= filters.min_rating)
        if filters.max_rating is not None:
            query = query.filter(Movie.rating <= filters.max_rating)

        if filters.sort_by == MovieSort.TITLE:
            query = query.order_by(Movie.title, Movie.id)
        elif filters.sort_by == MovieSort.YEAR:
            query = query.order_by(Movie.year, Movie.id)
        elif filters.sort_by == MovieSort.RATING:
            query = query.order_by(Movie.rating.desc(), Movie.id)
        else:
            query = query.order_by(Movie.id)

        return query.all()

    @staticmethod
    def list_public(
        db: Session,
        cache: CacheStore,
        filters: PublicMovieFilters
    ) -> Tuple[List[MovieResponse], bool]:
        """
        Public listing, served from cache when possible

        Returns:
            (movies, cache_hit)
        """
        cache_key = cache.key_for(
            filters.genre,
            filters.year,
            filters.min_rating,
            filters.max_rating,
            filters.sort_by,
        )

        cached = cache.get_movies(cache_key)
        if cached is not None:
            return cached, True

        logger.info("Public movies not cached, loading from database")
        movies = [MovieResponse.model_validate(m) for m in MovieService._query_public(db, filters)]
        cache.set_movies(cache_key, movies)
        return movies, False

    @staticmethod
    def create_top_rated(
        db: Session,
        cache: CacheStore,
        identity: Identity,
        data: MovieCreate
    ) -> Movie:
        """Admin-only: add a public top-rated movie and invalidate cached listings"""
        access_policy.enforce(
            access_policy.can_create_movie(identity, public=True),
            "Only administrators can add top-rated movies."
        )
        validate_movie_fields(data)

        movie = Movie(
            title=data.title.strip(),
            genre=data.genre.strip(),
            year=data.year,
            rating=data.rating,
            is_public=True,
            is_top_rated=True,
            user_id=None
        )
        db.add(movie)
        _commit(db, "adding a top-rated movie")
        db.refresh(movie)
        logger.info(f"Added top-rated movie {movie.title} with ID {movie.id}")

        cache.clear_public_movies()
        return movie

    @staticmethod
    def list_private(db: Session, identity: Identity) -> List[Movie]:
        logger.info(f"Loading private movies for user {identity.id}")
        return db.query(Movie).filter(
            Movie.user_id == identity.id
        ).order_by(Movie.id).all()

    @staticmethod
    def get_movie(db: Session, identity: Optional[Identity], movie_id: int) -> Movie:
        movie = db.get(Movie, movie_id)
        access_policy.enforce(
            access_policy.can_read_movie(identity, movie),
            _movie_detail(movie, movie_id, "Access to this movie is denied.")
        )
        return movie

    @staticmethod
    def _find_duplicate(db: Session, owner_id: int, title: str, exclude_id: Optional[int] = None) -> Optional[Movie]:
        query = db.query(Movie).filter(
            Movie.user_id == owner_id,
            func.lower(Movie.title) == title.strip().lower()
        )
        if exclude_id is not None:
            query = query.filter(Movie.id != exclude_id)
        return query.first()

    @staticmethod
    def create_private(db: Session, identity: Identity, data: MovieCreate) -> Movie:
        """Add a private movie owned by the caller"""
        access_policy.enforce(access_policy.can_create_movie(identity, public=False))
        validate_movie_fields(data)

        if MovieService._find_duplicate(db, identity.id, data.title):
            logger.warning(f"Duplicate movie {data.title} for user {identity.id}")
            raise Conflict("A movie with the same title already exists for this user.")

        movie = Movie(
            title=data.title.strip(),
            genre=data.genre.strip(),
            year=data.year,
            rating=data.rating,
            is_public=False,
            is_top_rated=False,
            user_id=identity.id
        )
        db.add(movie)
        _commit(db, "adding a movie")
        db.refresh(movie)
        logger.info(f"Added movie {movie.title} with ID {movie.id} for user {identity.id}")
        return movie

    @staticmethod
    def update_movie(db: Session, identity: Identity, movie_id: int, data: MovieUpdate) -> Movie:
        movie = db.get(Movie, movie_id)
        access_policy.enforce(
            access_policy.can_modify_movie(identity, movie),
            _movie_detail(movie, movie_id, "You can only update your own private movies.")
        )
        validate_movie_fields(data)

        if MovieService._find_duplicate(db, identity.id, data.title, exclude_id=movie.id):
            raise Conflict("A movie with the same title already exists for this user.")

        movie.title = data.title.strip()
        movie.genre = data.genre.strip()
        movie.year = data.year
        movie.rating = data.rating
        _commit(db, f"updating movie {movie_id}")
        db.refresh(movie)
        logger.info(f"Updated movie {movie.id}: {movie.title}")
        return movie

    @staticmethod
    def delete_movie(db: Session, identity: Identity, movie_id: int) -> None:
        """Delete a private movie together with its reviews"""
        movie = db.get(Movie, movie_id)
        access_policy.enforce(
            access_policy.can_modify_movie(identity, movie),
            _movie_detail(movie, movie_id, "You can only delete your own private movies.")
        )
        db.delete(movie)
        _commit(db, f"deleting movie {movie_id}")
        logger.info(f"Deleted movie {movie_id}")


def _movie_detail(movie: Optional[Movie], movie_id: int, denied: str) -> str:
    if movie is None:
        return f"Movie with Id = {movie_id} not found."
    return denied

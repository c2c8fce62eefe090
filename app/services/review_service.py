"""
Review Service - Handle all review-related business logic
Follows the same pattern as MovieService for consistency
"""

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import func
from typing import List
import logging

from app.models.movie import Movie
from app.models.review import Review
from app.schemas.auth import Identity
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.services import access_policy
from app.utils.exceptions import ValidationError, StorageError

logger = logging.getLogger(__name__)

MIN_REVIEW_RATING = 1
MAX_REVIEW_RATING = 10


def validate_review_rating(rating: int) -> None:
    if rating < MIN_REVIEW_RATING or rating > MAX_REVIEW_RATING:
        logger.warning(f"Rejected review with invalid rating: {rating}")
        raise ValidationError("Rating must be between 1 and 10.")


class ReviewService:
    """Service for movie review operations"""

    @staticmethod
    def _load(db: Session, review_id: int) -> Review:
        return db.query(Review).options(
            joinedload(Review.movie),
            joinedload(Review.user)
        ).filter(Review.id == review_id).first()

    @staticmethod
    def _commit(db: Session, action: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Database error while {action}", exc_info=True)
            raise StorageError()

    @staticmethod
    def create_review(db: Session, identity: Identity, review_data: ReviewCreate) -> Review:
        """
        Add a review authored by the caller

        Raises:
            NotFound: If the movie does not exist
            ValidationError: If rating is outside 1-10
        """
        movie = db.get(Movie, review_data.movie_id)
        access_policy.enforce(
            access_policy.can_create_review(identity, movie),
            f"Movie with Id = {review_data.movie_id} not found."
        )
        validate_review_rating(review_data.rating)

        review = Review(
            rating=review_data.rating,
            comment=review_data.comment,
            user_id=identity.id,
            movie_id=movie.id
        )
        db.add(review)
        ReviewService._commit(db, "adding a review")
        logger.info(f"User {identity.id} reviewed movie {movie.id}")
        return ReviewService._load(db, review.id)

    @staticmethod
    def list_for_movie(db: Session, identity: Identity, movie_id: int) -> List[Review]:
        movie = db.get(Movie, movie_id)
        access_policy.enforce(
            access_policy.can_list_reviews(identity, movie),
            f"Movie with Id = {movie_id} not found."
        )
        return db.query(Review).options(
            joinedload(Review.user)
        ).filter(
            Review.movie_id == movie_id
        ).order_by(Review.id).all()

    @staticmethod
    def get_review(db: Session, identity: Identity, review_id: int) -> Review:
        review = ReviewService._load(db, review_id)
        access_policy.enforce(
            access_policy.can_read_review(identity, review),
            "Review not found." if review is None else "Access to this review is denied."
        )
        return review

    @staticmethod
    def update_review(db: Session, identity: Identity, review_id: int, review_data: ReviewUpdate) -> Review:
        """Author-only update; refreshes created_at"""
        validate_review_rating(review_data.rating)
        review = ReviewService._load(db, review_id)
        access_policy.enforce(
            access_policy.can_modify_review(identity, review),
            "Review not found." if review is None else "You can only update your own reviews."
        )

        review.rating = review_data.rating
        review.comment = review_data.comment
        review.created_at = func.now()
        ReviewService._commit(db, f"updating review {review_id}")
        db.refresh(review)
        logger.info(f"Updated review {review_id}")
        return review

    @staticmethod
    def delete_review(db: Session, identity: Identity, review_id: int) -> None:
        review = db.get(Review, review_id)
        access_policy.enforce(
            access_policy.can_modify_review(identity, review),
            "Review not found." if review is None else "You can only delete your own reviews."
        )
        db.delete(review)
        ReviewService._commit(db, f"deleting review {review_id}")
        logger.info(f"Deleted review {review_id}")

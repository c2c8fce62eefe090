"""
Review Routes - API endpoints for movie reviews
All endpoints require authentication
"""

from fastapi import APIRouter, Depends, status, Path
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.utils.dependencies import get_current_user
from app.schemas.auth import Identity, MessageResponse
from app.schemas.review import (
    ReviewCreate,
    ReviewUpdate,
    ReviewResponse,
    ReviewDetailResponse
)
from app.services.review_service import ReviewService

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


@router.post("", response_model=ReviewDetailResponse, status_code=status.HTTP_201_CREATED)
def add_review(
    review_data: ReviewCreate,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Review a movie

    - **movie_id**: reviewed movie (404 if it does not exist)
    - **rating**: 1 to 10
    - **comment**: optional, up to 1000 characters
    """
    review = ReviewService.create_review(db, current_user, review_data)
    return ReviewDetailResponse.from_review(review)


@router.get("/movie/{movie_id}", response_model=List[ReviewDetailResponse])
def get_reviews_for_movie(
    movie_id: int = Path(..., description="Movie ID"),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """All reviews of a movie, oldest first"""
    reviews = ReviewService.list_for_movie(db, current_user, movie_id)
    return [ReviewDetailResponse.from_review(r) for r in reviews]


@router.get("/{review_id}", response_model=ReviewDetailResponse)
def get_review(
    review_id: int = Path(..., description="Review ID"),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    review = ReviewService.get_review(db, current_user, review_id)
    return ReviewDetailResponse.from_review(review)


@router.put("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_data: ReviewUpdate,
    review_id: int = Path(..., description="Review ID"),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Only the author can update a review"""
    return ReviewService.update_review(db, current_user, review_id, review_data)


@router.delete("/{review_id}", response_model=MessageResponse)
def delete_review(
    review_id: int = Path(..., description="Review ID"),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Only the author can delete a review"""
    ReviewService.delete_review(db, current_user, review_id)
    return {"message": "Review deleted."}

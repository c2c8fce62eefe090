"""
Review Schemas - Pydantic models for review request/response validation
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional
import re
import bleach

# Markup a comment may keep; everything else is stripped
COMMENT_TAGS = ['b', 'i', 'u', 'em', 'strong', 'p', 'br']

_SCRIPT_PATTERN = re.compile(r'<script[^>]*>|javascript:|on\w+\s*=|<iframe', re.IGNORECASE)


def clean_comment_text(value: Optional[str]) -> Optional[str]:
    """Reject script injection, then strip disallowed markup from a review comment"""
    if not value:
        return value
    if _SCRIPT_PATTERN.search(value):
        raise ValueError("Comment contains script content")
    return bleach.clean(value, tags=COMMENT_TAGS, strip=True)


class ReviewUpdate(BaseModel):
    """Schema for updating an existing review"""
    rating: int = Field(..., description="Rating value (1-10)")
    comment: Optional[str] = Field(None, max_length=1000)

    @field_validator('comment')
    @classmethod
    def clean_comment(cls, v):
        return clean_comment_text(v)


class ReviewCreate(ReviewUpdate):
    """Schema for creating a review; the author is always the caller"""
    movie_id: int = Field(..., description="Reviewed movie ID")


class ReviewResponse(BaseModel):
    id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    user_id: int
    movie_id: int

    model_config = ConfigDict(from_attributes=True)


class ReviewDetailResponse(ReviewResponse):
    """Review with the titles the client shows next to it"""
    movie_title: str = Field("Unknown", description="Reviewed movie title")
    movie_genre: str = Field("Unknown", description="Reviewed movie genre")
    username: str = Field("Unknown", description="Author username")

    @classmethod
    def from_review(cls, review) -> "ReviewDetailResponse":
        data = ReviewResponse.model_validate(review).model_dump()
        if review.movie is not None:
            data["movie_title"] = review.movie.title
            data["movie_genre"] = review.movie.genre
        if review.user is not None:
            data["username"] = review.user.username
        return cls(**data)

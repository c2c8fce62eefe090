"""
Movie schemas - request/response validation and public listing filters
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from enum import Enum


class MovieSort(str, Enum):
    """Sort options for the public movie listing"""
    ID = "id"
    TITLE = "title"
    YEAR = "year"
    RATING = "rating"  # highest rating first

    @classmethod
    def _missing_(cls, value):
        # Accept "Title", "RATING", ...
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        return None


class PublicMovieFilters(BaseModel):
    """Filters accepted by GET /api/movies/public"""
    genre: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = None
    min_rating: Optional[float] = Field(None, ge=0, le=10)
    max_rating: Optional[float] = Field(None, ge=0, le=10)
    sort_by: Optional[MovieSort] = None

    @field_validator('genre')
    @classmethod
    def blank_genre_is_absent(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()


class MovieCreate(BaseModel):
    """
    Payload for creating a movie (private or top-rated)

    Visibility and ownership are decided by the endpoint, never by the payload.
    Range checks live in MovieService so both create paths share them.
    """
    title: str = Field(..., max_length=200)
    genre: str = Field(..., max_length=100)
    year: int
    rating: float = Field(0.0, allow_inf_nan=False)


class MovieUpdate(MovieCreate):
    """Payload for PUT /api/movies/{id}"""


class MovieResponse(BaseModel):
    id: int
    title: str
    genre: str
    year: int
    rating: float
    is_public: bool
    is_top_rated: bool
    user_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

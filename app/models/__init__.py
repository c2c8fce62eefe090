"""
Import all models to ensure they are registered with SQLAlchemy
"""
from app.models.user import User, Role
from app.models.movie import Movie
from app.models.review import Review

__all__ = [
    "User",
    "Role",
    "Movie",
    "Review"
]

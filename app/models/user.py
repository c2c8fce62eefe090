from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Role(str, Enum):
    """Closed set of account roles"""
    USER = "User"
    ADMIN = "Admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.USER.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    movies = relationship("Movie", back_populates="owner")
    reviews = relationship("Review", back_populates="user")

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from app.models.user import Role


def ensure_not_blank(value: str) -> str:
    """Reject empty or whitespace-only values."""
    if not value or not value.strip():
        raise ValueError('Field cannot be empty')
    return value


# Schema for user registration
class UserRegister(BaseModel):
    username: str = Field(..., max_length=100)
    password: str
    role: Optional[Role] = None

    @field_validator('username', 'password')
    @classmethod
    def validate_not_blank(cls, v):
        return ensure_not_blank(v)

# Schema for user login
class UserLogin(BaseModel):
    username: str
    password: str

    @field_validator('username', 'password')
    @classmethod
    def validate_not_blank(cls, v):
        return ensure_not_blank(v)


class Identity(BaseModel):
    """Identity asserted by a verified access token"""
    id: int
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int


class MessageResponse(BaseModel):
    message: str

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.auth import (
    UserRegister,
    UserLogin,
    Identity,
    TokenResponse,
    MessageResponse,
)
from app.services.auth_service import AuthService
from app.utils.dependencies import get_current_user

# Define router
router = APIRouter(prefix="/api/auth", tags=["Authentication"])

# Register a new user
@router.post("/register", response_model=MessageResponse)
def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """Register a new user (role defaults to User)"""
    AuthService.register_user(db, user_data)
    return {"message": "Registration successful."}

# Login endpoint
@router.post("/login", response_model=TokenResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login with username and password"""
    return AuthService.login_user(db, credentials)

# Get current authenticated user
@router.get("/me", response_model=Identity)
def get_me(current_user: Identity = Depends(get_current_user)):
    """Get the identity carried by the current token"""
    return current_user

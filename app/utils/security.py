from passlib.context import CryptContext
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from dotenv import load_dotenv
from app.utils.exceptions import ConfigurationError
import os
import logging

# Load environment variables
load_dotenv()
logger = logging.getLogger(__name__)

# Security settings
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
JWT_ISSUER = os.getenv("JWT_ISSUER", "MovieRecommendationAPI")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "MovieRecommendationAPIUsers")

# HMAC keys shorter than 256 bits are refused
MIN_SECRET_KEY_BYTES = 32

# Bcrypt only reads the first 72 bytes of a secret
BCRYPT_MAX_BYTES = 72


def _bcrypt_secret(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]

# Password hashing and verification
def hash_password(password: str) -> str:
    """Hash a password, truncated to bcrypt's 72-byte limit"""
    return pwd_context.hash(_bcrypt_secret(password))

# Password verification
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(_bcrypt_secret(plain_password), hashed_password)


def ensure_signing_key() -> bytes:
    """
    Return the configured signing key as bytes.

    Raises:
        ConfigurationError: If SECRET_KEY is missing or shorter than 256 bits
    """
    if not SECRET_KEY:
        raise ConfigurationError("SECRET_KEY is missing in configuration")
    key_bytes = SECRET_KEY.encode("utf-8")
    if len(key_bytes) < MIN_SECRET_KEY_BYTES:
        logger.error(
            f"SECRET_KEY is too short: {len(key_bytes)} bytes, "
            f"at least {MIN_SECRET_KEY_BYTES} bytes (256 bits) required"
        )
        raise ConfigurationError("SECRET_KEY must be at least 256 bits (32 bytes)")
    return key_bytes

# JWT token creation and decoding
def create_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed access token for a verified user.

    Args:
        user: Object exposing id, username and role
        expires_delta: Override for the default lifetime

    Returns:
        Encoded JWT carrying sub (user id), name, role, iss, aud, iat and exp
    """
    ensure_signing_key()
    now = datetime.now(timezone.utc)
    role = getattr(user.role, "value", user.role)
    to_encode = {
        "sub": str(user.id),
        "name": user.username,
        "role": role,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)),
    }
    token = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    logger.info(f"Access token issued for user {user.username}")
    return token

# JWT token decoding
def decode_token(token: str) -> Optional[dict]:
    """Return the verified claims, or None for a bad signature, expiry, issuer or audience"""
    if not SECRET_KEY:
        return None
    try:
        return jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except JWTError as e:
        logger.debug(f"Token rejected: {str(e)}")
        return None

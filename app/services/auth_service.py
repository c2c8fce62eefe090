from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from app.models.user import User, Role
from app.schemas.auth import UserRegister, UserLogin
from app.utils.security import hash_password, verify_password, create_access_token
from app.utils import security
from app.utils.exceptions import ValidationError, Unauthorized, StorageError
import logging

logger = logging.getLogger(__name__)

class AuthService:
    @staticmethod
    def register_user(db: Session, user_data: UserRegister) -> User:
        # Check existing username
        existing_user = db.query(User).filter(User.username == user_data.username).first()
        if existing_user:
            logger.warning(f"Registration failed: username {user_data.username} already exists")
            raise ValidationError("A user with this username already exists.")

        # Create user
        new_user = User(
            username=user_data.username,
            password_hash=hash_password(user_data.password),
            role=(user_data.role or Role.USER).value
        )
        db.add(new_user)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            db.rollback()
            logger.warning(f"Registration failed: username {user_data.username} already exists")
            raise ValidationError("A user with this username already exists.")
        except SQLAlchemyError:
            db.rollback()
            logger.error("Database error while registering user", exc_info=True)
            raise StorageError()
        db.refresh(new_user)
        logger.info(f"User {new_user.username} registered with role {new_user.role}")
        return new_user


    @staticmethod
    def login_user(db: Session, credentials: UserLogin) -> dict:
        # Find user
        user = db.query(User).filter(User.username == credentials.username).first()

        if not user:
            logger.warning(f"Login failed: User not found with username {credentials.username}")
            raise Unauthorized("Incorrect username or password")

        if not verify_password(credentials.password, str(user.password_hash)):
            logger.warning(f"Login failed: Incorrect password for username {credentials.username}")
            raise Unauthorized("Incorrect username or password")

        # Create token
        token = create_access_token(user)
        logger.info(f"User {user.username} logged in")

        return {
            "token": token,
            "token_type": "bearer",
            "expires_in": security.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }

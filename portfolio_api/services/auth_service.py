"""
Auth service: login with lockout, profile and password management.
"""

import logging
from datetime import timedelta

from fastapi import HTTPException, status

from ..auth import create_access_token, hash_password, verify_password
from ..config import config
from ..database import Database, DBUser
from ..database.converters import utcnow

logger = logging.getLogger(__name__)

MAX_LOGIN_ATTEMPTS = 5
LOCK_TIME = timedelta(hours=2)


class AuthService:
    """Service for authentication business logic."""

    def __init__(self, db: Database):
        self.db = db

    def login(self, username: str, password: str, client_ip: str | None = None) -> tuple[DBUser, str]:
        """
        Verify credentials and issue a token.

        Returns:
            The refreshed user and a signed access token

        Raises:
            HTTPException: 401 on bad credentials or a deactivated account,
                423 while the account is locked
        """
        user = self.db.users.get_by_username(username)
        if not user:
            logger.warning(f"Failed login attempt for unknown user: {username} from IP: {client_ip}")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        now = utcnow()
        if user.is_locked(now):
            raise HTTPException(
                status_code=status.HTTP_423_LOCKED,
                detail="Account temporarily locked due to too many failed login attempts. "
                       "Please try again later.",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=401,
                detail="Account is deactivated. Please contact administrator.",
            )

        if not verify_password(password, user.password_hash):
            user = self.db.users.record_failed_login(user, MAX_LOGIN_ATTEMPTS, LOCK_TIME, now)
            logger.warning(f"Failed login attempt for user: {username} from IP: {client_ip}")
            if user.is_locked(now):
                logger.warning(f"Account {username} locked after {user.login_attempts} failed attempts")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        self.db.users.record_successful_login(user.id)
        user = self.db.users.get_by_id(user.id)
        token = create_access_token(user)
        logger.info(f"User {username} logged in successfully from IP: {client_ip}")
        return user, token

    def update_profile(self, user: DBUser, email: str | None) -> DBUser:
        self.db.users.update_email(user.id, email)
        logger.info(f"User profile updated: {user.username}")
        return self.db.users.get_by_id(user.id)

    def change_password(self, user: DBUser, current_password: str, new_password: str):
        """
        Replace the password after checking the current one.

        Raises:
            HTTPException: 401 if the current password is wrong
        """
        if not verify_password(current_password, user.password_hash):
            raise HTTPException(status_code=401, detail="Current password is incorrect")
        self.db.users.update_password(user.id, hash_password(new_password))
        logger.info(f"Password changed for user: {user.username}")


def ensure_admin_user(db: Database) -> DBUser | None:
    """
    Create the configured admin account if it does not exist yet.

    Returns:
        The newly created user, or None if it already existed or bootstrap is off
    """
    if not config.BOOTSTRAP_ADMIN:
        return None
    if db.users.get_by_username(config.ADMIN_USERNAME):
        return None

    user_id = db.users.create(
        username=config.ADMIN_USERNAME,
        password_hash=hash_password(config.ADMIN_PASSWORD),
        email=config.ADMIN_EMAIL or None,
        role="admin",
    )
    logger.info(f"Admin user created: {config.ADMIN_USERNAME}")
    if config.ADMIN_PASSWORD == "admin123":
        logger.warning("Admin account uses the default password; change it after first login")
    return db.users.get_by_id(user_id)

from typing import Optional, Tuple
from datetime import datetime, timezone
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_ledger.config import settings
from hotel_ledger.core.security import verify_password, get_password_hash, create_access_token
from hotel_ledger.models.user import User, UserRole


logger = logging.getLogger(__name__)


class AuthService:
    """Authentication and user bootstrap."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password.

        Returns:
            User object if authentication successful, None otherwise
        """
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            return None

        if not user.is_active:
            logger.warning(f"Login attempt on deactivated account {email}")
            return None

        return user

    async def create_token(self, user: User) -> Tuple[str, int]:
        """
        Create an access token for a user.

        Returns:
            Tuple of (access_token, expires_in_seconds)
        """
        access_token = create_access_token(user.id, role=user.role, email=user.email)
        expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

        user.last_login_at = datetime.now(timezone.utc)
        await self.db.flush()

        return access_token, expires_in

    async def create_user(
        self,
        email: str,
        password: str,
        name: str,
        role: str = UserRole.STAFF.value,
    ) -> User:
        user = User(
            email=email.lower(),
            password_hash=get_password_hash(password),
            name=name,
            role=role,
        )
        self.db.add(user)
        await self.db.flush()
        return user

    async def ensure_superadmin(self) -> Optional[User]:
        """Create the configured superadmin if it does not exist yet."""
        if not settings.SUPERADMIN_EMAIL or not settings.SUPERADMIN_PASSWORD:
            return None

        result = await self.db.execute(
            select(User).where(User.email == settings.SUPERADMIN_EMAIL.lower())
        )
        user = result.scalar_one_or_none()
        if user:
            return user

        user = await self.create_user(
            email=settings.SUPERADMIN_EMAIL,
            password=settings.SUPERADMIN_PASSWORD,
            name="Super Admin",
            role=UserRole.SUPERADMIN.value,
        )
        logger.info(f"Seeded superadmin {user.email}")
        return user

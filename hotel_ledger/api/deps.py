from typing import Annotated
import uuid
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_ledger.database import get_db
from hotel_ledger.core.exceptions import LedgerError, http_status_for
from hotel_ledger.core.security import verify_access_token
from hotel_ledger.core.permissions import PermissionChecker
from hotel_ledger.models.user import User


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Dependency to get the current authenticated user.
    Validates the JWT token and returns the user object.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = verify_access_token(credentials.credentials)
    if user_id is None:
        logger.warning("Token verification failed - invalid or expired token")
        raise credentials_exception

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        logger.warning(f"Invalid user_id in token: {user_id}")
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if user is None:
        logger.warning(f"User {user_id} not found")
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated"
        )

    return user


async def get_permission_checker(
    user: Annotated[User, Depends(get_current_user)],
) -> PermissionChecker:
    return PermissionChecker(user)


async def require_view(
    checker: Annotated[PermissionChecker, Depends(get_permission_checker)],
) -> User:
    """Admin, accountant or manager (or superadmin)."""
    if not checker.can_view():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Permission denied. Accounts view access required"
        )
    return checker.user


async def require_edit(
    checker: Annotated[PermissionChecker, Depends(get_permission_checker)],
) -> User:
    """Admin or accountant (or superadmin)."""
    if not checker.can_edit():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Permission denied. Accounts edit access required"
        )
    return checker.user


# Type aliases for cleaner endpoint signatures
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Viewer = Annotated[User, Depends(require_view)]
Editor = Annotated[User, Depends(require_edit)]
Permissions = Annotated[PermissionChecker, Depends(get_permission_checker)]


def ledger_http_exception(error: LedgerError) -> HTTPException:
    """Translate a service error into the HTTP error the API answers with."""
    return HTTPException(status_code=http_status_for(error), detail=error.message)

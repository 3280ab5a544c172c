from fastapi import APIRouter, HTTPException, status

from hotel_ledger.api.deps import DB, CurrentUser
from hotel_ledger.schemas.auth import LoginRequest, TokenResponse, UserResponse
from hotel_ledger.services.auth_service import AuthService


router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: DB):
    """Authenticate user and return an access token."""
    auth_service = AuthService(db)

    user = await auth_service.authenticate_user(data.email, data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token, expires_in = await auth_service.create_token(user)
    return TokenResponse(access_token=access_token, token_type="bearer", expires_in=expires_in)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser):
    """Get the current user."""
    return current_user

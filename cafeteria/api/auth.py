"""
Cafeteria — Login and staff account routes
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cafeteria.api.errors import to_http
from cafeteria.core.config import get_settings
from cafeteria.core.errors import CafeteriaError
from cafeteria.core.security import create_access_token
from cafeteria.db.database import get_db
from cafeteria.db.user_ops import authenticate, create_user, delete_user, list_users
from cafeteria.schemas.auth import LoginRequest, TokenResponse, UserCreateRequest, UserResponse

settings = get_settings()
router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Validate staff credentials and issue a JWT carrying the role."""
    user = await authenticate(db, payload.username, payload.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = create_access_token({"sub": str(user.id), "username": user.username, "role": user.role.value})
    return TokenResponse(
        access_token=token,
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user),
    )


@router.get("/users", response_model=list[UserResponse])
async def get_users(db: AsyncSession = Depends(get_db)):
    return await list_users(db)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def add_user(payload: UserCreateRequest, db: AsyncSession = Depends(get_db)):
    try:
        return await create_user(db, payload.username, payload.password, payload.role)
    except CafeteriaError as exc:
        raise to_http(exc)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user(user_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await delete_user(db, user_id)
    except CafeteriaError as exc:
        raise to_http(exc)

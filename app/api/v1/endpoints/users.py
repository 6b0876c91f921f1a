"""
User directory endpoints and login.

Login returns the user record and sets an HttpOnly session cookie.
"""

from fastapi import APIRouter, Depends, Query, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.api.v1.deps import get_current_user, get_user_service
from app.core.config import settings
from app.core.security import create_access_token
from app.models.user import User
from app.schemas.user import UserCreate, UserRead, UserUpdate
from app.services.user_service import UserService

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserRead])
async def list_users(users: UserService = Depends(get_user_service)) -> list[User]:
    return await users.list_all()


@router.get("/active", response_model=list[UserRead])
async def list_active_users(users: UserService = Depends(get_user_service)) -> list[User]:
    return await users.list_active()


@router.get("/me", response_model=UserRead)
async def read_current_user(current_user: User = Depends(get_current_user)) -> User:
    """Return the user owning the session cookie."""
    return current_user


@router.get("/role/{role}", response_model=list[UserRead])
async def list_users_by_role(
    role: str,
    users: UserService = Depends(get_user_service),
) -> list[User]:
    """Role is case-insensitive; unknown roles are a 400."""
    return await users.list_by_role(role)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: int, users: UserService = Depends(get_user_service)) -> User:
    return await users.get(user_id)


@router.post("", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    users: UserService = Depends(get_user_service),
) -> User:
    return await users.create(body)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    body: UserUpdate,
    users: UserService = Depends(get_user_service),
) -> User:
    return await users.update(user_id, body)


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: int, users: UserService = Depends(get_user_service)) -> Response:
    await users.delete(user_id)
    return Response(status_code=204)


@router.put("/{user_id}/toggle-active", response_model=UserRead)
async def toggle_user_active(
    user_id: int,
    users: UserService = Depends(get_user_service),
) -> User:
    return await users.toggle_active(user_id)


@router.post("/login", response_model=UserRead)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    username: str = Query(...),
    password: str = Query(...),
    users: UserService = Depends(get_user_service),
) -> User:
    """Check credentials; any failure is a plain 401."""
    user = await users.authenticate(username, password)

    response.set_cookie(
        key="access_token",
        value=f"Bearer {create_access_token(user.id)}",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return user


@router.post("/logout", status_code=204)
async def logout() -> Response:
    """Clear the session cookie."""
    response = Response(status_code=204)
    response.delete_cookie("access_token")
    return response

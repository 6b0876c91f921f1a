"""
FastAPI dependencies: database session, services and the session cookie.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.core.security import decode_access_token
from app.db.session import async_session_factory
from app.models.user import User
from app.services.inspection_form_service import InspectionFormService
from app.services.pdf_service import InspectionFormPdfService
from app.services.user_service import UserService


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Services ────────────────────────────────────────────────────────
def get_form_service(db: AsyncSession = Depends(get_db)) -> InspectionFormService:
    return InspectionFormService(db)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def get_pdf_service() -> InspectionFormPdfService:
    return InspectionFormPdfService(settings.ASSET_DIR)


# ── Session cookie ──────────────────────────────────────────────────
async def get_current_user(
    access_token: Optional[str] = Cookie(default=None),  # HttpOnly cookie set at login
    users: UserService = Depends(get_user_service),
) -> User:
    """Resolve the logged-in user from the session cookie."""
    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not logged in",
    )
    if not access_token:
        raise credentials_exc

    token = access_token.removeprefix("Bearer ")
    payload = decode_access_token(token)
    if payload is None or payload.get("sub") is None:
        raise credentials_exc

    try:
        user = await users.get(int(payload["sub"]))
    except NotFoundError:
        raise credentials_exc from None
    if not user.active:
        raise credentials_exc
    return user

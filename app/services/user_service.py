"""
User directory: account CRUD, activation toggle and login.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import AuthError, ConflictError, NotFoundError
from app.core.security import CredentialVerifier, get_credential_verifier
from app.models.enums import Role
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession, verifier: CredentialVerifier | None = None):
        self.db = db
        self.verifier = verifier or get_credential_verifier()

    async def _all(self, *criteria) -> list[User]:
        result = await self.db.execute(select(User).where(*criteria).order_by(User.id))
        return list(result.scalars().all())

    async def list_all(self) -> list[User]:
        return await self._all()

    async def list_by_role(self, role: Role | str) -> list[User]:
        if not isinstance(role, Role):
            role = Role.parse(role)
        return await self._all(User.role == role)

    async def list_active(self) -> list[User]:
        return await self._all(User.active.is_(True))

    async def get(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User not found with id: {user_id}")
        return user

    async def _find_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User:
        user = await self._find_by_username(username)
        if user is None:
            raise NotFoundError(f"User not found with username: {username}")
        return user

    async def create(self, payload: UserCreate) -> User:
        if await self._find_by_username(payload.username) is not None:
            raise ConflictError(f"Username already registered: {payload.username}")

        user = User(
            username=payload.username,
            password=self.verifier.hash(payload.password),
            name=payload.name,
            role=payload.role,
            active=payload.active,
        )
        self.db.add(user)
        await self._commit(user)
        logger.info("User %s created (id=%s, role=%s)", user.username, user.id, user.role.value)
        return user

    async def update(self, user_id: int, payload: UserUpdate) -> User:
        """Apply the fields present in *payload*; an empty password keeps the old one."""
        user = await self.get(user_id)
        changes = payload.model_dump(exclude_unset=True)

        password = changes.pop("password", None)
        if password:
            user.password = self.verifier.hash(password)
        for field, value in changes.items():
            if value is not None:
                setattr(user, field, value)

        await self._commit(user)
        logger.info("User %s updated (id=%s)", user.username, user.id)
        return user

    async def delete(self, user_id: int) -> None:
        user = await self.get(user_id)
        await self.db.delete(user)
        await self.db.commit()
        logger.info("User %s deleted (id=%s)", user.username, user_id)

    async def toggle_active(self, user_id: int) -> User:
        user = await self.get(user_id)
        user.active = not user.active
        await self._commit(user)
        logger.info("User %s is now %s", user.username, "active" if user.active else "inactive")
        return user

    async def authenticate(self, username: str, password: str) -> User:
        """Return the user for valid credentials.

        Unknown username, wrong password and inactive account all raise the
        same ``AuthError``; only the log records which check failed.
        """
        user = await self._find_by_username(username)
        if user is None:
            logger.warning("Login failed for %r: unknown username", username)
            raise AuthError()
        if not self.verifier.verify(password, user.password):
            logger.warning("Login failed for %r: wrong password", username)
            raise AuthError()
        if not user.active:
            logger.warning("Login failed for %r: account deactivated", username)
            raise AuthError()
        return user

    async def _commit(self, user: User) -> None:
        # rollback expires the instance, read what the messages need first
        user_id, username = user.id, user.username
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError(f"Username already registered: {username}") from exc
        except StaleDataError as exc:
            await self.db.rollback()
            raise ConflictError(f"User {user_id} was modified concurrently") from exc
        await self.db.refresh(user)

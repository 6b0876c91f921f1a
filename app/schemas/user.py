"""Pydantic schemas for User CRUD."""

from __future__ import annotations

from datetime import datetime

from pydantic import field_validator

from app.models.enums import Role
from app.schemas.base import CamelModel, RoleField


class UserCreate(CamelModel):
    username: str
    password: str
    name: str
    role: RoleField
    active: bool = True

    @field_validator("username")
    @classmethod
    def _normalise_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username must not be empty")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password must not be empty")
        return v


class UserUpdate(CamelModel):
    name: str | None = None
    password: str | None = None
    role: RoleField | None = None
    active: bool | None = None


class UserRead(CamelModel):
    id: int
    username: str
    name: str
    role: Role
    active: bool
    created_at: datetime | None
    version: int

"""Closed enumerations shared by models, schemas and services."""

from __future__ import annotations

import enum

from app.core.exceptions import ValidationError


class _ParsableEnum(str, enum.Enum):
    @classmethod
    def parse(cls, value: str):
        """Case-insensitive lookup; unknown text raises ``ValidationError``."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValidationError(
                f"Invalid {cls.__name__} '{value}'. Must be one of: {allowed}"
            ) from None


class Role(_ParsableEnum):
    OPERATOR = "OPERATOR"
    QA = "QA"
    AVP = "AVP"
    MASTER = "MASTER"


class FormStatus(_ParsableEnum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

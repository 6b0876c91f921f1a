"""Pydantic schemas for inspection forms and their embedded line items."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import Field, field_validator

from app.models.enums import FormStatus
from app.schemas.base import CamelModel, StatusField


# ── Line items ──────────────────────────────────────────────────────
class Lacquer(CamelModel):
    id: int | None = None  # sequence number within the form
    name: str | None = None
    weight: str | None = None
    batch_no: str | None = None
    expiry_date: date | None = None


class Characteristic(CamelModel):
    id: int | None = None  # sequence number within the form
    name: str | None = None
    observation: str | None = None
    body_thickness: str | None = None
    bottom_thickness: str | None = None
    comments: str | None = None

    @property
    def is_dual_point(self) -> bool:
        """Body/bottom thickness pair instead of a free-text observation."""
        return self.body_thickness is not None or self.bottom_thickness is not None


# ── Form ────────────────────────────────────────────────────────────
class FormFields(CamelModel):
    """Fields a caller may edit at any point of the workflow."""

    document_no: str | None = None
    issuance_no: str | None = None
    issue_date: date | None = None
    reviewed_date: date | None = None
    page: str | None = None
    prepared_by: str | None = None
    approved_by: str | None = None
    issued: str | None = None

    inspection_date: date | None = None
    product: str | None = None
    size_no: str | None = None
    shift: str | None = None
    variant: str | None = None
    line_no: str | None = None
    customer: str | None = None
    sample_size: str | None = None

    lacquers: list[Lacquer] = Field(default_factory=list)
    characteristics: list[Characteristic] = Field(default_factory=list)

    qa_executive: str | None = None
    qa_signature: str | None = None
    production_operator: str | None = None
    operator_signature: str | None = None
    final_approval_time: str | None = None
    comments: str | None = None


class FormCreate(FormFields):
    status: StatusField | None = None
    submitted_by: str | None = None
    submitted_at: datetime | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None

    @field_validator("document_no")
    @classmethod
    def _document_no(cls, v: str | None) -> str | None:
        # blank means "generate one"
        if v is None:
            return None
        return v.strip() or None


class FormUpdate(FormFields):
    document_no: str
    # optimistic lock: when given, must match the stored version
    version: int | None = None

    @field_validator("document_no")
    @classmethod
    def _document_no(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Document number must not be empty")
        return v


class FormRead(FormFields):
    id: int
    document_no: str
    lacquers: list[Lacquer] | None = None
    characteristics: list[Characteristic] | None = None
    status: FormStatus
    submitted_by: str | None = None
    submitted_at: datetime | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    version: int

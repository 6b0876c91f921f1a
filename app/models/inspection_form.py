"""
Inspection form model: one first-article inspection report for a coating batch.

Lacquer and characteristic line items have no identity of their own and are
stored as JSON lists on the form row.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, JSONType
from app.models.enums import FormStatus


class InspectionForm(Base):
    __tablename__ = "inspection_forms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    document_no: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)

    # Issuance metadata
    issuance_no: Mapped[str | None] = mapped_column(String(20))
    issue_date: Mapped[date | None] = mapped_column(Date)
    reviewed_date: Mapped[date | None] = mapped_column(Date)
    page: Mapped[str | None] = mapped_column(String(50))
    prepared_by: Mapped[str | None] = mapped_column(String(200))
    approved_by: Mapped[str | None] = mapped_column(String(200))
    issued: Mapped[str | None] = mapped_column(String(200))

    # Inspection metadata
    inspection_date: Mapped[date | None] = mapped_column(Date, index=True)
    product: Mapped[str | None] = mapped_column(String(200))
    size_no: Mapped[str | None] = mapped_column(String(50))
    shift: Mapped[str | None] = mapped_column(String(20))
    variant: Mapped[str | None] = mapped_column(String(200))
    line_no: Mapped[str | None] = mapped_column(String(50))
    customer: Mapped[str | None] = mapped_column(String(200))
    sample_size: Mapped[str | None] = mapped_column(String(50))

    lacquers: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONType)
    characteristics: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONType)

    # Signatures
    qa_executive: Mapped[str | None] = mapped_column(String(200))
    qa_signature: Mapped[str | None] = mapped_column(Text)
    production_operator: Mapped[str | None] = mapped_column(String(200))
    operator_signature: Mapped[str | None] = mapped_column(Text)
    final_approval_time: Mapped[str | None] = mapped_column(String(50))

    # Workflow
    status: Mapped[FormStatus] = mapped_column(
        Enum(FormStatus, native_enum=False, length=20),
        nullable=False,
        default=FormStatus.DRAFT,
        index=True,
    )
    submitted_by: Mapped[str | None] = mapped_column(String(200), index=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reviewed_by: Mapped[str | None] = mapped_column(String(200), index=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    comments: Mapped[str | None] = mapped_column(Text)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

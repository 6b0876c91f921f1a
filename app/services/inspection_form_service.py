"""
Inspection form workflow: creation defaults, edits, status transitions and
queries.

Lifecycle::

    DRAFT ──submit──▶ SUBMITTED ──approve──▶ APPROVED
                                 └─reject───▶ REJECTED

Transitions are not guarded unless ``ENFORCE_STATUS_TRANSITIONS`` is set;
without the guard any form can be (re)submitted, approved or rejected.
Edits are accepted in every status.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.exceptions import (ConflictError, InvalidTransitionError,
                                 NotFoundError, ValidationError)
from app.models.enums import FormStatus
from app.models.inspection_form import InspectionForm
from app.schemas.inspection_form import FormCreate, FormFields, FormUpdate
from app.services.numbering import next_document_number, year_prefix

logger = logging.getLogger(__name__)

DEFAULT_ISSUANCE_NO = "00"

# Overwritten wholesale by update(); workflow metadata is never in here.
EDITABLE_FIELDS = (
    "document_no",
    "issuance_no",
    "issue_date",
    "reviewed_date",
    "page",
    "prepared_by",
    "approved_by",
    "issued",
    "inspection_date",
    "product",
    "size_no",
    "shift",
    "variant",
    "line_no",
    "customer",
    "sample_size",
    "qa_executive",
    "qa_signature",
    "production_operator",
    "operator_signature",
    "final_approval_time",
    "comments",
)

_ALLOWED_SOURCES: dict[FormStatus, set[FormStatus]] = {
    FormStatus.SUBMITTED: {FormStatus.DRAFT},
    FormStatus.APPROVED: {FormStatus.SUBMITTED},
    FormStatus.REJECTED: {FormStatus.SUBMITTED},
}

_REVIEWED = (FormStatus.APPROVED, FormStatus.REJECTED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _line_items(payload: FormFields) -> dict[str, list[dict]]:
    return {
        "lacquers": [item.model_dump(mode="json") for item in payload.lacquers],
        "characteristics": [item.model_dump(mode="json") for item in payload.characteristics],
    }


class InspectionFormService:
    """Read-modify-write operations on inspection forms, one commit each."""

    def __init__(self, db: AsyncSession, enforce_transitions: bool | None = None):
        self.db = db
        self.enforce_transitions = (
            settings.ENFORCE_STATUS_TRANSITIONS
            if enforce_transitions is None
            else enforce_transitions
        )

    # ── Queries ─────────────────────────────────────────────────────
    async def _all(self, *criteria) -> list[InspectionForm]:
        result = await self.db.execute(
            select(InspectionForm).where(*criteria).order_by(InspectionForm.id)
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[InspectionForm]:
        return await self._all()

    async def get(self, form_id: int) -> InspectionForm:
        form = await self.db.get(InspectionForm, form_id)
        if form is None:
            raise NotFoundError(f"Inspection form not found with id: {form_id}")
        return form

    async def get_by_document_no(self, document_no: str) -> InspectionForm:
        result = await self.db.execute(
            select(InspectionForm).where(InspectionForm.document_no == document_no)
        )
        form = result.scalar_one_or_none()
        if form is None:
            raise NotFoundError(f"Inspection form not found with document number: {document_no}")
        return form

    async def list_by_status(self, status: FormStatus | str) -> list[InspectionForm]:
        if not isinstance(status, FormStatus):
            status = FormStatus.parse(status)
        return await self._all(InspectionForm.status == status)

    async def list_by_submitter(self, submitted_by: str) -> list[InspectionForm]:
        return await self._all(InspectionForm.submitted_by == submitted_by)

    async def list_by_reviewer(self, reviewed_by: str) -> list[InspectionForm]:
        return await self._all(InspectionForm.reviewed_by == reviewed_by)

    async def list_by_date_range(self, start: date, end: date) -> list[InspectionForm]:
        """Forms whose inspection date lies in ``[start, end]``."""
        if start > end:
            raise ValidationError("startDate must not be after endDate")
        return await self._all(InspectionForm.inspection_date.between(start, end))

    async def list_by_document_prefix(self, prefix: str) -> list[InspectionForm]:
        return await self._all(InspectionForm.document_no.startswith(prefix, autoescape=True))

    async def search(
        self,
        product: str | None = None,
        variant: str | None = None,
    ) -> list[InspectionForm]:
        criteria = []
        if product:
            criteria.append(InspectionForm.product.icontains(product, autoescape=True))
        if variant:
            criteria.append(InspectionForm.variant == variant)
        return await self._all(*criteria)

    # ── Creation ────────────────────────────────────────────────────
    async def generate_document_number(self, today: date | None = None) -> str:
        today = today or date.today()
        prefix = settings.DOCUMENT_NUMBER_PREFIX
        forms = await self.list_by_document_prefix(year_prefix(prefix, today))
        return next_document_number((f.document_no for f in forms), today, prefix)

    async def create(self, payload: FormCreate) -> InspectionForm:
        data = payload.model_dump(exclude={"lacquers", "characteristics"})
        form = InspectionForm(**data, **_line_items(payload))

        today = date.today()
        if form.issue_date is None:
            form.issue_date = today
        if form.inspection_date is None:
            form.inspection_date = today
        if not form.issuance_no:
            form.issuance_no = DEFAULT_ISSUANCE_NO
        self._normalise_workflow_fields(form)

        explicit_number = bool(form.document_no)
        attempts = 1 if explicit_number else max(1, settings.DOCUMENT_NUMBER_MAX_RETRIES)

        for attempt in range(1, attempts + 1):
            if not explicit_number:
                form.document_no = await self.generate_document_number(today)
            self.db.add(form)
            try:
                await self.db.commit()
            except IntegrityError as exc:
                await self.db.rollback()
                if explicit_number or attempt == attempts:
                    raise ConflictError(
                        f"Document number already exists: {form.document_no}"
                    ) from exc
                logger.warning(
                    "Document number %s taken concurrently, retrying (%d/%d)",
                    form.document_no,
                    attempt,
                    attempts,
                )
                continue
            break

        await self.db.refresh(form)
        logger.info(
            "Inspection form %s created (id=%s, status=%s)",
            form.document_no,
            form.id,
            form.status.value,
        )
        return form

    @staticmethod
    def _normalise_workflow_fields(form: InspectionForm) -> None:
        """Make submission/review metadata agree with the initial status."""
        if form.status is None:
            form.status = FormStatus.DRAFT

        if form.status == FormStatus.DRAFT:
            form.submitted_by = form.submitted_at = None
        elif form.submitted_at is None:
            form.submitted_at = _utcnow()

        if form.status in _REVIEWED:
            if form.reviewed_at is None:
                form.reviewed_at = _utcnow()
        else:
            form.reviewed_by = form.reviewed_at = None

    # ── Edits ───────────────────────────────────────────────────────
    async def update(self, form_id: int, payload: FormUpdate) -> InspectionForm:
        form = await self.get(form_id)
        if payload.version is not None and payload.version != form.version:
            raise ConflictError(
                f"Inspection form {form_id} was modified (version {form.version}, "
                f"expected {payload.version})"
            )

        for field in EDITABLE_FIELDS:
            setattr(form, field, getattr(payload, field))
        for field, items in _line_items(payload).items():
            setattr(form, field, items)

        await self._commit(form)
        logger.info("Inspection form %s updated (id=%s)", form.document_no, form.id)
        return form

    async def delete(self, form_id: int) -> None:
        form = await self.get(form_id)
        await self.db.delete(form)
        await self.db.commit()
        logger.info("Inspection form %s deleted (id=%s)", form.document_no, form_id)

    # ── Transitions ─────────────────────────────────────────────────
    async def submit(self, form_id: int, submitted_by: str) -> InspectionForm:
        form = await self._begin_transition(form_id, FormStatus.SUBMITTED)
        form.status = FormStatus.SUBMITTED
        form.submitted_by = submitted_by
        form.submitted_at = _utcnow()
        return await self._finish_transition(form, submitted_by)

    async def approve(
        self,
        form_id: int,
        reviewed_by: str,
        comments: str | None = None,
    ) -> InspectionForm:
        form = await self._begin_transition(form_id, FormStatus.APPROVED)
        form.status = FormStatus.APPROVED
        form.reviewed_by = reviewed_by
        form.reviewed_at = _utcnow()
        form.comments = comments
        return await self._finish_transition(form, reviewed_by)

    async def reject(self, form_id: int, reviewed_by: str, comments: str) -> InspectionForm:
        if not comments or not comments.strip():
            raise ValidationError("A comment is required to reject a form")
        form = await self._begin_transition(form_id, FormStatus.REJECTED)
        form.status = FormStatus.REJECTED
        form.reviewed_by = reviewed_by
        form.reviewed_at = _utcnow()
        form.comments = comments
        return await self._finish_transition(form, reviewed_by)

    async def _begin_transition(self, form_id: int, target: FormStatus) -> InspectionForm:
        form = await self.get(form_id)
        if self.enforce_transitions and form.status not in _ALLOWED_SOURCES[target]:
            raise InvalidTransitionError(
                f"Cannot move inspection form {form_id} from {form.status.value} to {target.value}"
            )
        return form

    async def _finish_transition(self, form: InspectionForm, actor: str) -> InspectionForm:
        await self._commit(form)
        logger.info(
            "Inspection form %s -> %s by %s (id=%s)",
            form.document_no,
            form.status.value,
            actor,
            form.id,
        )
        return form

    async def _commit(self, form: InspectionForm) -> None:
        # rollback expires the instance, read what the messages need first
        form_id, document_no = form.id, form.document_no
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError(f"Document number already exists: {document_no}") from exc
        except StaleDataError as exc:
            await self.db.rollback()
            raise ConflictError(f"Inspection form {form_id} was modified concurrently") from exc
        await self.db.refresh(form)


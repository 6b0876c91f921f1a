"""
Inspection form endpoints: CRUD, workflow transitions and the PDF report.
"""

from __future__ import annotations

import io
import re
from datetime import date
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse

from app.api.v1.deps import get_form_service, get_pdf_service
from app.models.inspection_form import InspectionForm
from app.schemas.inspection_form import FormCreate, FormRead, FormUpdate
from app.services.inspection_form_service import InspectionFormService
from app.services.pdf_service import InspectionFormPdfService

router = APIRouter(prefix="/forms", tags=["forms"])

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _attachment(filename: str) -> str:
    """Content-Disposition with an ASCII fallback and the RFC 5987 UTF-8 name."""
    fallback = _UNSAFE_FILENAME_CHARS.sub("_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


# ── Queries ─────────────────────────────────────────────────────────
@router.get("", response_model=list[FormRead])
async def list_forms(
    forms: InspectionFormService = Depends(get_form_service),
) -> list[InspectionForm]:
    return await forms.list_all()


@router.get("/status/{status}", response_model=list[FormRead])
async def list_forms_by_status(
    status: str,
    forms: InspectionFormService = Depends(get_form_service),
) -> list[InspectionForm]:
    """Status is case-insensitive; unknown values are a 400."""
    return await forms.list_by_status(status)


@router.get("/submitter/{submitter}", response_model=list[FormRead])
async def list_forms_by_submitter(
    submitter: str,
    forms: InspectionFormService = Depends(get_form_service),
) -> list[InspectionForm]:
    return await forms.list_by_submitter(submitter)


@router.get("/reviewer/{reviewer}", response_model=list[FormRead])
async def list_forms_by_reviewer(
    reviewer: str,
    forms: InspectionFormService = Depends(get_form_service),
) -> list[InspectionForm]:
    return await forms.list_by_reviewer(reviewer)


@router.get("/date-range", response_model=list[FormRead])
async def list_forms_by_date_range(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    forms: InspectionFormService = Depends(get_form_service),
) -> list[InspectionForm]:
    """Forms inspected between the two ISO dates, both inclusive."""
    return await forms.list_by_date_range(start_date, end_date)


@router.get("/search", response_model=list[FormRead])
async def search_forms(
    product: str | None = Query(default=None),
    variant: str | None = Query(default=None),
    forms: InspectionFormService = Depends(get_form_service),
) -> list[InspectionForm]:
    """Product matches case-insensitively on a substring, variant exactly."""
    return await forms.search(product=product, variant=variant)


@router.get("/document/{document_no}", response_model=FormRead)
async def get_form_by_document_no(
    document_no: str,
    forms: InspectionFormService = Depends(get_form_service),
) -> InspectionForm:
    return await forms.get_by_document_no(document_no)


@router.get("/{form_id}", response_model=FormRead)
async def get_form(
    form_id: int,
    forms: InspectionFormService = Depends(get_form_service),
) -> InspectionForm:
    return await forms.get(form_id)


# ── CRUD ────────────────────────────────────────────────────────────
@router.post("", response_model=FormRead, status_code=201)
async def create_form(
    body: FormCreate,
    forms: InspectionFormService = Depends(get_form_service),
) -> InspectionForm:
    """Create a form; document number, dates and issuance number are defaulted."""
    return await forms.create(body)


@router.put("/{form_id}", response_model=FormRead)
async def update_form(
    form_id: int,
    body: FormUpdate,
    forms: InspectionFormService = Depends(get_form_service),
) -> InspectionForm:
    return await forms.update(form_id, body)


@router.delete("/{form_id}", status_code=204)
async def delete_form(
    form_id: int,
    forms: InspectionFormService = Depends(get_form_service),
) -> Response:
    await forms.delete(form_id)
    return Response(status_code=204)


# ── Workflow ────────────────────────────────────────────────────────
@router.post("/{form_id}/submit", response_model=FormRead)
async def submit_form(
    form_id: int,
    submitted_by: str = Query(..., alias="submittedBy"),
    forms: InspectionFormService = Depends(get_form_service),
) -> InspectionForm:
    return await forms.submit(form_id, submitted_by)


@router.post("/{form_id}/approve", response_model=FormRead)
async def approve_form(
    form_id: int,
    reviewed_by: str = Query(..., alias="reviewedBy"),
    comments: str | None = Query(default=None),
    forms: InspectionFormService = Depends(get_form_service),
) -> InspectionForm:
    return await forms.approve(form_id, reviewed_by, comments)


@router.post("/{form_id}/reject", response_model=FormRead)
async def reject_form(
    form_id: int,
    reviewed_by: str = Query(..., alias="reviewedBy"),
    comments: str = Query(...),
    forms: InspectionFormService = Depends(get_form_service),
) -> InspectionForm:
    """Rejection needs a non-empty comment."""
    return await forms.reject(form_id, reviewed_by, comments)


# ── Report ──────────────────────────────────────────────────────────
@router.get("/{form_id}/pdf")
async def download_form_pdf(
    form_id: int,
    forms: InspectionFormService = Depends(get_form_service),
    renderer: InspectionFormPdfService = Depends(get_pdf_service),
) -> StreamingResponse:
    """Render the form as a PDF attachment."""
    form = FormRead.model_validate(await forms.get(form_id))
    pdf_bytes = await run_in_threadpool(renderer.render, form)

    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={
            "Content-Disposition": _attachment(f"inspection_form_{form.document_no}.pdf"),
            "Cache-Control": "must-revalidate, post-check=0, pre-check=0",
        },
    )

"""Tests for the inspection form PDF report."""

from datetime import date, datetime

import pytest
from httpx import AsyncClient
from reportlab.platypus import Paragraph

from app.api.v1.deps import get_pdf_service
from app.core.exceptions import RenderError
from app.main import app
from app.models.enums import FormStatus
from app.schemas.inspection_form import Characteristic, FormRead, Lacquer
from app.services.pdf_service import InspectionFormPdfService, _text
from conftest import form_payload

FORMS = "/api/v1/forms"


def _form(**overrides) -> FormRead:
    fields = {
        "id": 1,
        "document_no": "AGI-DEC-14-04",
        "issuance_no": "00",
        "issue_date": date(2024, 8, 1),
        "inspection_date": date(2024, 11, 29),
        "product": "100 mL Bag Pke. <fragile> & co",
        "lacquers": [
            Lacquer(id=1, name="Clear Extn", weight="11.74", batch_no="2634"),
            Lacquer(id=2, name="Red Dye", weight="121g"),
            Lacquer(id=3, name=""),
        ],
        "characteristics": [
            Characteristic(id=1, name="Colour Shade", observation="Shade 2 : OK"),
            Characteristic(id=6, name="Coating Thickness", body_thickness="20 mic",
                           bottom_thickness="10.2 mic"),
            Characteristic(id=9, name="Batch Composition", observation="Clear Extn 11.74\nRed Dye"),
        ],
        "qa_executive": "Mike QA",
        "qa_signature": "signed_by_mike_qa",
        "production_operator": "John Operator",
        "status": FormStatus.APPROVED,
        "submitted_by": "alice",
        "submitted_at": datetime(2024, 11, 29, 14, 30),
        "reviewed_by": "bob",
        "reviewed_at": datetime(2024, 11, 29, 17, 45),
        "comments": "ok",
        "version": 1,
    }
    fields.update(overrides)
    return FormRead(**fields)


# ── Renderer ────────────────────────────────────────────────────────
def test_render_without_assets():
    pdf = InspectionFormPdfService(asset_dir=None).render(_form())
    assert pdf.startswith(b"%PDF")


def test_render_draft_with_empty_line_items():
    form = _form(status=FormStatus.DRAFT, lacquers=None, characteristics=[],
                 submitted_by=None, submitted_at=None, reviewed_by=None, reviewed_at=None)
    pdf = InspectionFormPdfService().render(form)
    assert pdf.startswith(b"%PDF")


def test_unreadable_assets_are_ignored(tmp_path):
    (tmp_path / "agilogo.png").write_bytes(b"not an image")
    (tmp_path / "QASign.png").write_bytes(b"not an image either")
    renderer = InspectionFormPdfService(tmp_path)

    assert renderer._image("agilogo.png", 100) is None
    assert renderer._image("missing.png", 100) is None
    assert renderer.render(_form()).startswith(b"%PDF")


def test_signature_falls_back_to_text(tmp_path):
    renderer = InspectionFormPdfService(tmp_path)

    signed = renderer._signature("data:image/png;base64,???", "QASign.png", "Mike QA")
    assert isinstance(signed, Paragraph)
    assert "Mike QA (signed)" in signed.getPlainText()

    blank = renderer._signature(None, "QASign.png", "Mike QA")
    assert "(signed)" not in blank.getPlainText()


def test_text_formats_dates_and_escapes_markup():
    assert _text(date(2024, 11, 29)) == "29-11-2024"
    assert _text(datetime(2024, 11, 29, 17, 45, 3)) == "29/11/2024, 17:45:03"
    assert _text("a < b & c") == "a &lt; b &amp; c"
    assert _text("line 1\nline 2") == "line 1<br/>line 2"
    assert _text(None) == ""


# ── Endpoint ────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_download_pdf(async_client: AsyncClient):
    created = await async_client.post(FORMS, json=form_payload(documentNo="AGI-DEC-14-04"))
    form_id = created.json()["id"]

    resp = await async_client.get(f"{FORMS}/{form_id}/pdf")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.headers["content-disposition"] == (
        'attachment; filename="inspection_form_AGI-DEC-14-04.pdf"; '
        "filename*=UTF-8''inspection_form_AGI-DEC-14-04.pdf"
    )
    assert resp.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_download_pdf_with_non_ascii_document_number(async_client: AsyncClient):
    created = await async_client.post(FORMS, json=form_payload(documentNo='AGI–APR-25-1 "b"'))
    assert created.status_code == 201

    resp = await async_client.get(f"{FORMS}/{created.json()['id']}/pdf")
    assert resp.status_code == 200
    assert resp.headers["content-disposition"] == (
        'attachment; filename="inspection_form_AGI_APR-25-1__b_.pdf"; '
        "filename*=UTF-8''inspection_form_AGI%E2%80%93APR-25-1%20%22b%22.pdf"
    )
    assert resp.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_download_pdf_missing_form(async_client: AsyncClient):
    resp = await async_client.get(f"{FORMS}/9999/pdf")
    assert resp.status_code == 404


class _BrokenRenderer:
    def render(self, form: FormRead) -> bytes:
        raise RenderError(f"Could not render inspection form {form.document_no}")


@pytest.mark.asyncio
async def test_render_failure_is_a_server_error(async_client: AsyncClient):
    created = await async_client.post(FORMS, json=form_payload())
    app.dependency_overrides[get_pdf_service] = _BrokenRenderer
    try:
        resp = await async_client.get(f"{FORMS}/{created.json()['id']}/pdf")
    finally:
        app.dependency_overrides.pop(get_pdf_service, None)

    assert resp.status_code == 500
    assert resp.json()["success"] is False

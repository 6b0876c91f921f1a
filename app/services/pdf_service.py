"""
First Article Inspection Report (coating) as an A4 PDF.

Layout, top to bottom: document header, inspection details, lacquer table,
characteristics table, signatures, review information. Missing logo or
signature images never fail a render; they are replaced by text.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
from datetime import date, datetime
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (Flowable, Image, Paragraph, SimpleDocTemplate,
                                Spacer, Table, TableStyle)

from app.core.exceptions import RenderError
from app.models.enums import FormStatus
from app.schemas.inspection_form import FormRead

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d-%m-%Y"
DATETIME_FORMAT = "%d/%m/%Y, %H:%M:%S"

MARGIN = 20
PAGE_WIDTH, _ = A4
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN

COMPANY_NAME = "AGI Greenpac Limited"
UNIT_NAME = "Unit :- AGI Speciality Glas Division"
SCOPE = "AGI / DEC / COATING"
TITLE = "FIRST ARTICLE INSPECTION REPORT - COATING"
REFERENCE_SAMPLE = "X-211"

LOGO_FILE = "agilogo.png"
QA_SIGNATURE_FILE = "QASign.png"
OPERATOR_SIGNATURE_FILE = "OperatorSign.png"

# Clear extender is weighed in kilograms, dyes and additives in grams
KG_LACQUERS = {"Clear Extn"}

BORDER = colors.black
HEADER_BG = colors.Color(230 / 255, 230 / 255, 230 / 255)
BLANK_SIGNATURE = "_" * 22
# left + right padding of a platypus table cell
CELL_PADDING = 12

_BASE = ParagraphStyle("Body", fontName="Helvetica", fontSize=9, leading=11)
_BOLD = ParagraphStyle("Bold", parent=_BASE, fontName="Helvetica-Bold")
_CENTER = ParagraphStyle("Center", parent=_BASE, alignment=TA_CENTER)
_BOLD_CENTER = ParagraphStyle("BoldCenter", parent=_BOLD, alignment=TA_CENTER)
_COMPANY = ParagraphStyle(
    "Company", parent=_BOLD_CENTER, fontSize=16, leading=20, spaceAfter=2
)
_TITLE = ParagraphStyle("Title", parent=_BOLD_CENTER, fontSize=10, leading=13)


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    return escape(str(value)).replace("\n", "<br/>")


def _para(value: object, style: ParagraphStyle = _BASE) -> Paragraph:
    return Paragraph(_text(value), style)


def _labelled(label: str, value: object, style: ParagraphStyle = _BASE) -> Paragraph:
    return Paragraph(f"<b>{escape(label)}</b> {_text(value)}", style)


class InspectionFormPdfService:
    """Builds the PDF for one inspection form.

    ``asset_dir`` holds the optional logo and signature images.
    """

    def __init__(self, asset_dir: Path | str | None = None):
        self.asset_dir = Path(asset_dir) if asset_dir else None

    def render(self, form: FormRead) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=MARGIN,
            rightMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN,
            title=f"Inspection Form {form.document_no}",
            author=COMPANY_NAME,
        )
        story: list[Flowable] = [
            self._header(form),
            self._inspection_details(form),
            Spacer(1, 10),
            self._lacquer_table(form),
            Spacer(1, 10),
            self._characteristics_table(form),
            Spacer(1, 10),
            self._signatures(form),
        ]
        review = self._review_info(form)
        if review is not None:
            story += [Spacer(1, 10), review]

        try:
            doc.build(story)
        except Exception as exc:
            raise RenderError(
                f"Could not render inspection form {form.document_no}: {exc}"
            ) from exc

        logger.info("Rendered PDF for inspection form %s", form.document_no)
        return buffer.getvalue()

    # ── Assets ──────────────────────────────────────────────────────
    def _image(self, source: str | bytes, width: float, height: float | None = None) -> Image | None:
        """Load an image from an asset file name or raw bytes, ``None`` if unusable."""
        try:
            if isinstance(source, bytes):
                data = io.BytesIO(source)
            else:
                if self.asset_dir is None:
                    return None
                path = self.asset_dir / source
                if not path.is_file():
                    return None
                data = io.BytesIO(path.read_bytes())
            reader = ImageReader(data)
            img_w, img_h = reader.getSize()
        except Exception as exc:  # unreadable image is an optional-asset miss
            logger.warning("Ignoring unreadable image asset: %s", exc)
            return None

        if height is None:
            height = width * img_h / img_w
        data.seek(0)
        return Image(data, width=width, height=height)

    def _signature(self, reference: str | None, fallback_file: str, signer: str | None) -> Flowable:
        if not reference:
            return _para(BLANK_SIGNATURE)

        image = None
        if reference.startswith("data:image/"):
            try:
                image = self._image(base64.b64decode(reference.split(",", 1)[1]), 60, 30)
            except (IndexError, binascii.Error):
                image = None
        if image is None:
            image = self._image(fallback_file, 60, 30)
        if image is None:
            logger.debug("No signature image for %s, using text", signer)
            return _para(f"{signer or ''} (signed)")
        image.hAlign = "LEFT"
        return image

    # ── Sections ────────────────────────────────────────────────────
    def _header(self, form: FormRead) -> Table:
        col_widths = [CONTENT_WIDTH * 0.3, CONTENT_WIDTH * 0.4, CONTENT_WIDTH * 0.3]

        rows = [
            ("Document No. :", form.document_no),
            ("Issuance No. :", form.issuance_no),
            ("Date of Issue :", form.issue_date),
            ("Reviewed by :", form.reviewed_date),
            ("Page :", form.page),
            ("Prepared By :", form.prepared_by),
            ("Approved by :", form.approved_by),
            ("Issued :", form.issued),
        ]
        doc_info = Table(
            [[_para(label, _BOLD), _para(value)] for label, value in rows],
            colWidths=[(col_widths[0] - CELL_PADDING) * 0.5] * 2,
        )
        doc_info.setStyle(
            TableStyle(
                [
                    ("LINEAFTER", (0, 0), (0, -1), 0.5, BORDER),
                    ("LINEBELOW", (0, 0), (-1, -1), 0.5, BORDER),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )

        title = [
            _para(COMPANY_NAME, _COMPANY),
            _para(UNIT_NAME, _CENTER),
            Spacer(1, 24),
            Paragraph(f"SCOPE : <font color='#404040'>{SCOPE}</font>", _TITLE),
            Paragraph(f"TITLE : <font color='#404040'>{TITLE}</font>", _TITLE),
        ]

        logo: Flowable | None = self._image(LOGO_FILE, 100)
        if logo is None:
            logo = _para("AGI", _COMPANY)

        header = Table([[doc_info, title, logo]], colWidths=col_widths)
        header.setStyle(
            TableStyle(
                [
                    ("BOX", (0, 0), (-1, -1), 1, BORDER),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("ALIGN", (2, 0), (2, 0), "CENTER"),
                ]
            )
        )
        return header

    def _inspection_details(self, form: FormRead) -> Table:
        columns = [
            [("Date:", form.inspection_date), ("Product:", form.product), ("Size No.:", form.size_no)],
            [("Shift:", form.shift), ("Variant:", form.variant)],
            [("Line No.:", form.line_no), ("Customer:", form.customer), ("Sample Size:", form.sample_size)],
        ]
        width = CONTENT_WIDTH / 3
        cells = [
            Table(
                [[_para(label, _BOLD), _para(value)] for label, value in column],
                colWidths=[(width - CELL_PADDING) * 0.4, (width - CELL_PADDING) * 0.6],
            )
            for column in columns
        ]
        table = Table([cells], colWidths=[width] * 3)
        table.setStyle(
            TableStyle(
                [
                    ("BOX", (0, 0), (-1, -1), 1, BORDER),
                    ("LINEAFTER", (0, 0), (1, 0), 1, BORDER),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ]
            )
        )
        return table

    def _lacquer_table(self, form: FormRead) -> Table:
        data = [[_para(h, _BOLD) for h in ("S.No.", "Lacquer / Dye", "wt.", "Batch No.", "Expiry Date")]]
        for lacquer in form.lacquers or []:
            if not lacquer.name:
                continue
            unit = "kg" if lacquer.name in KG_LACQUERS else "gm"
            weight = f"{lacquer.weight} {unit}" if lacquer.weight else ""
            data.append(
                [
                    _para(lacquer.id, _CENTER),
                    _para(lacquer.name),
                    _para(weight, _CENTER),
                    _para(lacquer.batch_no, _CENTER),
                    _para(lacquer.expiry_date, _CENTER),
                ]
            )
        widths = [CONTENT_WIDTH * p for p in (0.08, 0.30, 0.15, 0.25, 0.22)]
        return self._grid(data, widths)

    def _characteristics_table(self, form: FormRead) -> Table:
        observations_header = Paragraph(
            f"As per Reference sample no. {REFERENCE_SAMPLE}<br/>Observations", _BOLD
        )
        data = [
            [
                _para("S.No.", _BOLD),
                _para("Characteristic", _BOLD),
                observations_header,
                _para("Comments", _BOLD),
            ]
        ]
        widths = [CONTENT_WIDTH * p for p in (0.08, 0.25, 0.42, 0.25)]

        for characteristic in form.characteristics or []:
            if not characteristic.name:
                continue
            if characteristic.is_dual_point:
                observation: Flowable = Table(
                    [
                        [_para("Body", _BOLD_CENTER), _para(characteristic.body_thickness, _CENTER)],
                        [_para("Bottom", _BOLD_CENTER), _para(characteristic.bottom_thickness, _CENTER)],
                    ],
                    colWidths=[widths[2] * 0.45] * 2,
                    style=TableStyle(
                        [
                            ("LINEAFTER", (0, 0), (0, -1), 0.5, BORDER),
                            ("LINEBELOW", (0, 0), (-1, 0), 0.5, BORDER),
                        ]
                    ),
                )
            else:
                observation = _para(characteristic.observation)
            data.append(
                [
                    _para(characteristic.id, _CENTER),
                    _para(characteristic.name),
                    observation,
                    _para(characteristic.comments),
                ]
            )
        return self._grid(data, widths)

    def _signatures(self, form: FormRead) -> Table:
        qa = [
            _para("QA Exe.:", _BOLD),
            self._signature(form.qa_signature, QA_SIGNATURE_FILE, form.qa_executive),
        ]
        operator = [
            _para("Production Sup. / Operator:", _BOLD),
            self._signature(form.operator_signature, OPERATOR_SIGNATURE_FILE, form.production_operator),
        ]
        final_approval = _labelled("Time (Final Approval) :", form.final_approval_time)

        table = Table(
            [[qa, operator], [final_approval, ""]],
            colWidths=[CONTENT_WIDTH / 2] * 2,
        )
        table.setStyle(
            TableStyle(
                [
                    ("BOX", (0, 0), (-1, -1), 1, BORDER),
                    ("LINEAFTER", (0, 0), (0, 0), 0.5, BORDER),
                    ("LINEABOVE", (0, 1), (-1, 1), 1, BORDER),
                    ("SPAN", (0, 1), (1, 1)),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ]
            )
        )
        return table

    def _review_info(self, form: FormRead) -> Table | None:
        if form.status == FormStatus.DRAFT:
            return None

        rows: list[list[Flowable]] = [[_para("Review Information", _BOLD)]]
        if form.submitted_by:
            when = f" on {_text(form.submitted_at)}" if form.submitted_at else ""
            rows.append([_labelled("Submitted by:", f"{form.submitted_by}{when}")])
        if form.reviewed_by:
            when = f" on {_text(form.reviewed_at)}" if form.reviewed_at else ""
            rows.append([_labelled("Reviewed by:", f"{form.reviewed_by}{when}")])
        if form.comments:
            rows.append([[_para("Comments:", _BOLD), _para(form.comments)]])

        table = Table(rows, colWidths=[CONTENT_WIDTH])
        table.setStyle(
            TableStyle(
                [
                    ("BOX", (0, 0), (-1, -1), 1, BORDER),
                    ("INNERGRID", (0, 0), (-1, -1), 0.5, BORDER),
                    ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
                ]
            )
        )
        return table

    @staticmethod
    def _grid(data: list[list], widths: list[float]) -> Table:
        table = Table(data, colWidths=widths, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("GRID", (0, 0), (-1, -1), 1, BORDER),
                    ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("TOPPADDING", (0, 0), (-1, 0), 5),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 5),
                ]
            )
        )
        return table

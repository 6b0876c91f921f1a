"""
Sample users and inspection forms for non-production databases.

Runs at startup when ``SEED_SAMPLE_DATA`` is enabled and the user table is
empty; an already populated database is left untouched.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import get_credential_verifier
from app.models.enums import FormStatus, Role
from app.models.inspection_form import InspectionForm
from app.models.user import User

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    ("operator", "operator123", "John Operator", Role.OPERATOR),
    ("qa", "qa123", "Mike QA", Role.QA),
    ("avp", "avp123", "Sarah AVP", Role.AVP),
    ("master", "master123", "Admin Master", Role.MASTER),
]

_COMMON = {
    "issuance_no": "00",
    "issue_date": date(2024, 8, 1),
    "reviewed_date": date(2027, 3, 1),
    "page": "1 of 1",
    "prepared_by": "QQM QC",
    "approved_by": "AVP-QA & SYS",
    "issued": "AVP-QA & SYS",
    "size_no": "",
    "customer": "",
    "sample_size": "08 Nos.",
    "qa_executive": "Mike QA",
    "qa_signature": "signed_by_mike_qa",
    "production_operator": "John Operator",
    "operator_signature": "signed_by_john_operator",
    "submitted_by": "John Operator",
}


def _lacquer(seq: int, name: str, weight: str, batch_no: str, expiry: date | None) -> dict:
    return {
        "id": seq,
        "name": name,
        "weight": weight,
        "batch_no": batch_no,
        "expiry_date": expiry.isoformat() if expiry else None,
    }


def _characteristic(
    seq: int,
    name: str,
    observation: str | None = None,
    body: str | None = None,
    bottom: str | None = None,
) -> dict:
    return {
        "id": seq,
        "name": name,
        "observation": observation,
        "body_thickness": body,
        "bottom_thickness": bottom,
        "comments": "",
    }


def _characteristics(shade: str, body: str, bottom: str, temperature: str,
                     viscosity: str, composition: str) -> list[dict]:
    return [
        _characteristic(1, "Colour Shade", shade),
        _characteristic(2, "(Colour Height)", "Full"),
        _characteristic(3, "Any Visual defect", "No"),
        _characteristic(4, "MEK Test", "OK"),
        _characteristic(5, "Cross Cut Test (Tape Test)", "OK"),
        _characteristic(6, "Coating Thickness", body=body, bottom=bottom),
        _characteristic(7, "Temperature", temperature),
        _characteristic(8, "Viscosity", viscosity),
        _characteristic(9, "Batch Composition", composition),
    ]


def sample_forms() -> list[InspectionForm]:
    approved = InspectionForm(
        **_COMMON,
        document_no="AGI-DEC-14-04",
        inspection_date=date(2024, 11, 29),
        product="100 mL Bag Pke.",
        shift="C",
        variant="Pink matt",
        line_no="02",
        lacquers=[
            _lacquer(1, "Clear Extn", "11.74", "2634", date(2025, 10, 24)),
            _lacquer(2, "Red Dye", "121g", "2137", date(2025, 10, 20)),
            _lacquer(3, "Black Dye", "46.7g", "1453", date(2025, 10, 21)),
            _lacquer(4, "Pink Dye", "26.5g", "1140", date(2025, 7, 10)),
            _lacquer(5, "Violet Dye", "18.7g", "1160", date(2025, 7, 11)),
            _lacquer(6, "Matt Bath", "300g", "1156", date(2025, 9, 12)),
            _lacquer(7, "Hardener", "60g", "114", date(2025, 11, 20)),
            _lacquer(8, "", "", "", None),
        ],
        characteristics=_characteristics(
            "Shade 2 : OK",
            "20 mic",
            "10.2 mic",
            "117°c",
            "25.1s",
            "Clear Extn 11.74 Red Dye 121g Black Dye 46.7g\n"
            "Pink Dye 26.5g Violet Dye 18.7g\n"
            "Matt Bath H-Agent 60g",
        ),
        final_approval_time="21:30 hrs",
        status=FormStatus.APPROVED,
        submitted_at=datetime(2024, 11, 29, 14, 30, tzinfo=timezone.utc),
        reviewed_by="Sarah AVP",
        reviewed_at=datetime(2024, 11, 29, 17, 45, tzinfo=timezone.utc),
        comments="",
    )

    submitted = InspectionForm(
        **_COMMON,
        document_no="AGI-DEC-14-05",
        inspection_date=date(2024, 11, 30),
        product="200 mL Bottle",
        shift="B",
        variant="Blue matt",
        line_no="01",
        lacquers=[
            _lacquer(1, "Clear Extn", "12.5", "2635", date(2025, 10, 30)),
            _lacquer(2, "Blue Dye", "95g", "2140", date(2025, 11, 15)),
            _lacquer(3, "Black Dye", "38.3g", "1455", date(2025, 10, 25)),
            _lacquer(4, "Matt Bath", "320g", "1157", date(2025, 9, 20)),
            _lacquer(5, "Hardener", "64g", "115", date(2025, 11, 25)),
        ],
        characteristics=_characteristics(
            "Shade 1 : OK",
            "18 mic",
            "9.8 mic",
            "115°c",
            "24.5s",
            "Clear Extn 12.5 Blue Dye 95g Black Dye 38.3g\n"
            "Matt Bath 320g Hardener 64g",
        ),
        final_approval_time="18:45 hrs",
        status=FormStatus.SUBMITTED,
        submitted_at=datetime(2024, 11, 30, 15, 20, tzinfo=timezone.utc),
    )
    return [approved, submitted]


async def seed_sample_data(session: AsyncSession) -> bool:
    """Insert the sample data into an empty database. Returns True if seeded."""
    user_count = await session.scalar(select(func.count()).select_from(User))
    if user_count:
        logger.info("Database already has data, skipping sample data")
        return False

    verifier = get_credential_verifier()
    session.add_all(
        User(username=username, password=verifier.hash(password), name=name, role=role)
        for username, password, name, role in SAMPLE_USERS
    )
    session.add_all(sample_forms())
    await session.commit()
    logger.info("Seeded %d sample users and 2 sample inspection forms", len(SAMPLE_USERS))
    return True

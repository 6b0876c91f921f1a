"""Tests for the startup sample data."""

import pytest

from app.db.init_data import seed_sample_data
from app.models.enums import FormStatus
from app.services.inspection_form_service import InspectionFormService
from app.services.user_service import UserService


@pytest.mark.asyncio
async def test_seed_populates_empty_database(db_session):
    assert await seed_sample_data(db_session) is True

    users = UserService(db_session)
    assert [u.username for u in await users.list_all()] == ["operator", "qa", "avp", "master"]
    assert (await users.authenticate("operator", "operator123")).name == "John Operator"

    forms = InspectionFormService(db_session)
    approved = await forms.get_by_document_no("AGI-DEC-14-04")
    assert approved.status == FormStatus.APPROVED
    assert approved.reviewed_by == "Sarah AVP"
    assert len(approved.lacquers) == 8
    submitted = await forms.list_by_status(FormStatus.SUBMITTED)
    assert [f.document_no for f in submitted] == ["AGI-DEC-14-05"]


@pytest.mark.asyncio
async def test_seed_skips_populated_database(db_session):
    await seed_sample_data(db_session)
    assert await seed_sample_data(db_session) is False
    assert len(await InspectionFormService(db_session).list_all()) == 2


@pytest.mark.asyncio
async def test_seeded_forms_served_over_api(async_client, session_factory):
    async with session_factory() as session:
        await seed_sample_data(session)

    resp = await async_client.get("/api/v1/forms/document/AGI-DEC-14-04")
    assert resp.status_code == 200
    data = resp.json()
    assert data["characteristics"][5]["bodyThickness"] == "20 mic"
    assert data["lacquers"][0]["expiryDate"] == "2025-10-24"

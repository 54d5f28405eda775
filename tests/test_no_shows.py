"""
Tests for no-show tracking
"""

import pytest

from app.core.exceptions import NotFoundError
from app.schemas.no_show import NoShowBulkImport, NoShowCandidate, NoShowCreate, NoShowUpdate
from app.services.no_show_service import BULK_IMPORT_NOTE, no_show_service
from app.services.registration_service import registration_service
from app.services.payment_service import payment_service


def _create_data(event, email="anna@example.com", first_name="Anna", last_name="Novak"):
    return NoShowCreate(
        email=email,
        event_id=event.id,
        event_title=event.title,
        event_date=event.from_time,
        first_name=first_name,
        last_name=last_name,
    )


@pytest.mark.asyncio
async def test_fee_paid_sets_paid_at_and_registration_payment(db_session, make_event, add_registration):
    event = await make_event()
    registration = await add_registration(event, "Anna")
    await registration_service.set_payment_status(db_session, registration.id, False)
    no_show = await no_show_service.create_no_show(db_session, _create_data(event))

    updated = await no_show_service.update_no_show(db_session, no_show.id, NoShowUpdate(fee_paid=True))

    assert updated.fee_paid is True
    assert updated.paid_at is not None
    payment = await payment_service.get_for_registration(db_session, registration.id)
    assert payment.paid is True


@pytest.mark.asyncio
async def test_fee_unpaid_clears_paid_at(db_session, make_event):
    event = await make_event()
    no_show = await no_show_service.create_no_show(db_session, _create_data(event))
    await no_show_service.update_no_show(db_session, no_show.id, NoShowUpdate(fee_paid=True))

    updated = await no_show_service.update_no_show(db_session, no_show.id, NoShowUpdate(fee_paid=False))

    assert updated.fee_paid is False
    assert updated.paid_at is None


@pytest.mark.asyncio
async def test_notes_only_update(db_session, make_event):
    event = await make_event()
    no_show = await no_show_service.create_no_show(db_session, _create_data(event))

    updated = await no_show_service.update_no_show(db_session, no_show.id, NoShowUpdate(notes="Called, will pay"))

    assert updated.notes == "Called, will pay"
    assert updated.fee_paid is False


@pytest.mark.asyncio
async def test_list_filters(db_session, make_event):
    event = await make_event()
    first = await no_show_service.create_no_show(db_session, _create_data(event, "anna@example.com"))
    await no_show_service.create_no_show(db_session, _create_data(event, "bara@example.com", "Bara"))
    await no_show_service.update_no_show(db_session, first.id, NoShowUpdate(fee_paid=True))

    assert len(await no_show_service.list_no_shows(db_session)) == 2
    unpaid = await no_show_service.list_no_shows(db_session, fee_paid=False)
    assert [n.email for n in unpaid] == ["bara@example.com"]
    by_email = await no_show_service.list_no_shows(db_session, email="ANNA")
    assert [n.email for n in by_email] == ["anna@example.com"]


@pytest.mark.asyncio
async def test_potential_no_shows(db_session, make_event, add_registration):
    event = await make_event()
    await add_registration(event, "Attended", attended=True)
    paid = await add_registration(event, "Paid")
    await registration_service.set_payment_status(db_session, paid.id, True)
    await add_registration(event, "Recorded")
    await no_show_service.create_no_show(db_session, _create_data(event, "recorded@example.com", "Recorded"))
    await add_registration(event, "Missing")

    candidates = await no_show_service.potential_no_shows(db_session, event.id)

    assert [c.first_name for c in candidates] == ["Missing"]


@pytest.mark.asyncio
async def test_bulk_import_skips_existing(db_session, make_event):
    event = await make_event()
    await no_show_service.create_no_show(db_session, _create_data(event, "anna@example.com"))

    result = await no_show_service.bulk_import(db_session, NoShowBulkImport(
        event_id=event.id,
        event_title=event.title,
        event_date=event.from_time,
        candidates=[
            NoShowCandidate(email="ANNA@example.com", first_name="Anna"),
            NoShowCandidate(email="bara@example.com", first_name="Bara"),
            NoShowCandidate(email="bara@example.com", first_name="Bara"),
        ]
    ))

    assert result.created == 1
    assert result.skipped == 2
    imported = await no_show_service.list_no_shows(db_session, email="bara")
    assert imported[0].notes == BULK_IMPORT_NOTE


@pytest.mark.asyncio
async def test_delete_missing(db_session):
    from uuid import uuid4

    with pytest.raises(NotFoundError):
        await no_show_service.delete_no_show(db_session, uuid4())

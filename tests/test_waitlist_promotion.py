"""
Tests for waiting list ordering and promotion into registrations
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from app.core.exceptions import DuplicateRegistrationError, NotFoundError, ValidationError
from app.models import Registration, RegistrationAction, RegistrationHistory, WaitingList
from app.schemas.event import EventUpdate
from app.services.email_service import email_service
from app.services.event_service import event_service
from app.services.registration_service import registration_service
from app.services.waitlist_service import count_registrations, count_waiting, waitlist_service


async def _registered_emails(session, event):
    result = await session.execute(
        select(Registration.email).where(Registration.event_id == event.id)
    )
    return set(result.scalars().all())


@pytest.mark.asyncio
async def test_promotion_never_exceeds_free_spots(db_session, redis_client, make_event, add_registration, add_waiting):
    event = await make_event(capacity=2, auto_promote=True)
    await add_registration(event, "Anna")
    for name in ["Bara", "Cyril", "David"]:
        await add_waiting(event, name)

    promoted = await waitlist_service.promote_waiting_list(db_session, event)

    assert len(promoted) == 1
    assert await count_registrations(db_session, event.id) == 2
    assert await count_waiting(db_session, event.id) == 2


@pytest.mark.asyncio
async def test_promotion_is_oldest_first(db_session, redis_client, make_event, add_waiting):
    event = await make_event(capacity=2, auto_promote=True)
    await add_waiting(event, "Third")
    await add_waiting(event, "Fourth")
    # Explicitly older than the two above
    first = await add_waiting(event, "First", created_at=event.created_at - timedelta(hours=5))
    second = await add_waiting(event, "Second", created_at=event.created_at - timedelta(hours=4))

    promoted = await waitlist_service.promote_waiting_list(db_session, event)

    assert [r.first_name for r in promoted] == ["First", "Second"]
    remaining = await waitlist_service.list_entries(db_session, event.id)
    assert [e.first_name for e in remaining] == ["Third", "Fourth"]
    assert first.id not in {e.id for e in remaining}
    assert second.id not in {e.id for e in remaining}


@pytest.mark.asyncio
async def test_promotion_copies_person_and_records_history(db_session, redis_client, make_event, add_waiting):
    event = await make_event(capacity=1, auto_promote=True)
    entry = await add_waiting(event, "Jana", email="Jana@Example.com")

    [registration] = await waitlist_service.promote_waiting_list(db_session, event)

    assert registration.email == "jana@example.com"
    assert registration.last_name == entry.last_name
    assert registration.attended is False

    history = (await db_session.execute(select(RegistrationHistory))).scalars().all()
    assert [h.action_type for h in history] == [RegistrationAction.MOVED_FROM_WAITLIST]
    assert history[0].registration_id == registration.id
    assert history[0].waiting_list_id == entry.id


@pytest.mark.asyncio
async def test_no_promotion_without_auto_promote(db_session, redis_client, make_event, add_waiting):
    event = await make_event(capacity=5, auto_promote=False)
    await add_waiting(event, "Jana")

    promoted = await waitlist_service.promote_waiting_list(db_session, event)

    assert promoted == []
    assert await count_waiting(db_session, event.id) == 1


@pytest.mark.asyncio
async def test_no_promotion_when_full(db_session, redis_client, make_event, add_registration, add_waiting):
    event = await make_event(capacity=1, auto_promote=True)
    await add_registration(event, "Anna")
    await add_waiting(event, "Bara")

    assert await waitlist_service.promote_waiting_list(db_session, event) == []
    assert await count_waiting(db_session, event.id) == 1


@pytest.mark.asyncio
async def test_deleting_registration_promotes_next(db_session, redis_client, make_event, add_registration, add_waiting):
    event = await make_event(capacity=1, auto_promote=True)
    registration = await add_registration(event, "Anna")
    await add_waiting(event, "Bara")
    await add_waiting(event, "Cyril")

    promoted = await registration_service.delete_registration(db_session, registration.id)

    assert [r.first_name for r in promoted] == ["Bara"]
    assert await _registered_emails(db_session, event) == {"bara@example.com"}
    assert await count_waiting(db_session, event.id) == 1


@pytest.mark.asyncio
async def test_email_failure_keeps_promotion(db_session, redis_client, make_event, add_waiting, monkeypatch):
    monkeypatch.setattr(
        email_service, "send_waiting_list_promotion",
        AsyncMock(side_effect=RuntimeError("smtp down"))
    )
    event = await make_event(capacity=3, auto_promote=True)
    await add_waiting(event, "Anna")
    await add_waiting(event, "Bara")

    promoted = await waitlist_service.promote_waiting_list(db_session, event)

    assert len(promoted) == 2
    assert email_service.send_waiting_list_promotion.await_count == 2
    assert await count_registrations(db_session, event.id) == 2
    assert await count_waiting(db_session, event.id) == 0


@pytest.mark.asyncio
async def test_manual_promotion_ignores_capacity(db_session, redis_client, make_event, add_registration, add_waiting, test_admin):
    event = await make_event(capacity=1, auto_promote=False)
    await add_registration(event, "Anna")
    entry = await add_waiting(event, "Bara")

    registration = await waitlist_service.promote_entry(db_session, event.id, entry.id, actor_id=test_admin.id)

    assert registration.first_name == "Bara"
    assert await count_registrations(db_session, event.id) == 2
    assert await count_waiting(db_session, event.id) == 0


@pytest.mark.asyncio
async def test_manual_promotion_of_other_events_entry(db_session, redis_client, make_event, add_waiting):
    event = await make_event()
    other = await make_event(title="Other")
    entry = await add_waiting(other, "Bara")

    with pytest.raises(NotFoundError):
        await waitlist_service.promote_entry(db_session, event.id, entry.id)


@pytest.mark.asyncio
async def test_capacity_increase_promotes(db_session, redis_client, make_event, add_registration, add_waiting):
    event = await make_event(capacity=1, auto_promote=True)
    await add_registration(event, "Anna")
    await add_waiting(event, "Bara")
    await add_waiting(event, "Cyril")

    await event_service.update_event(db_session, event.id, EventUpdate(capacity=3))

    assert await count_registrations(db_session, event.id) == 3
    assert await count_waiting(db_session, event.id) == 0


@pytest.mark.asyncio
async def test_join_and_position(db_session, redis_client, make_event):
    event = await make_event(capacity=0)
    await waitlist_service.join(db_session, event.id, "Anna", "A", "anna@example.com")
    await waitlist_service.join(db_session, event.id, "Bara", "B", "bara@example.com")

    status = await waitlist_service.status(db_session, event.id, "BARA@example.com", "bara", "b")

    assert status.on_waiting_list is True
    assert status.position == 2
    assert status.total == 2


@pytest.mark.asyncio
async def test_join_twice_is_rejected(db_session, redis_client, make_event):
    event = await make_event(capacity=0)
    await waitlist_service.join(db_session, event.id, "Anna", "A", "anna@example.com")

    with pytest.raises(DuplicateRegistrationError):
        await waitlist_service.join(db_session, event.id, "anna", "a", "ANNA@example.com")


@pytest.mark.asyncio
async def test_join_past_event(db_session, redis_client, make_event):
    event = await make_event(starts_in=timedelta(days=-2))

    with pytest.raises(ValidationError):
        await waitlist_service.join(db_session, event.id, "Anna", "A", "anna@example.com")


@pytest.mark.asyncio
async def test_leave_records_unregistered(db_session, redis_client, make_event):
    event = await make_event(capacity=0)
    await waitlist_service.join(db_session, event.id, "Anna", "A", "anna@example.com")

    await waitlist_service.leave(db_session, event.id, "anna@example.com", "Anna", "A")

    assert await count_waiting(db_session, event.id) == 0
    actions = (await db_session.execute(
        select(RegistrationHistory.action_type).order_by(RegistrationHistory.timestamp)
    )).scalars().all()
    assert actions == [RegistrationAction.ADDED_TO_WAITLIST, RegistrationAction.UNREGISTERED]


@pytest.mark.asyncio
async def test_delete_entry(db_session, redis_client, make_event, add_waiting):
    event = await make_event()
    entry = await add_waiting(event, "Anna")

    await waitlist_service.delete_entry(db_session, event.id, entry.id)

    assert (await db_session.get(WaitingList, entry.id)) is None


@pytest.mark.asyncio
async def test_delete_without_waiting_or_auto_promote(db_session, redis_client, make_event, add_registration):
    event = await make_event(capacity=2, auto_promote=False)
    registration = await add_registration(event, "Anna")

    promoted = await registration_service.delete_registration(db_session, registration.id)

    assert promoted == []
    assert await count_registrations(db_session, event.id) == 0


@pytest.mark.asyncio
async def test_history_entries_unchanged_by_later_actions(db_session, redis_client, make_event, add_waiting):
    event = await make_event(capacity=1, auto_promote=True)
    await waitlist_service.join(db_session, event.id, "Anna", "A", "anna@example.com")
    before = (await db_session.execute(select(RegistrationHistory))).scalars().one()
    snapshot = (before.id, before.action_type, before.waiting_list_id, before.timestamp)

    await waitlist_service.promote_waiting_list(db_session, event)

    after = await db_session.get(RegistrationHistory, snapshot[0])
    assert (after.id, after.action_type, after.waiting_list_id, after.timestamp) == snapshot

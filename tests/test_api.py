"""
HTTP level tests: response envelope, authentication and the public flows
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from app.api.v1.endpoints.registrations import registration_rate_limit
from app.config import settings
from app.models import PaymentType

API = settings.API_PREFIX


def _registration_body(event, **overrides):
    body = {
        "event_id": str(event.id),
        "first_name": "Jana",
        "last_name": "Novakova",
        "email": "jana@example.com",
        "phone_number": "+420777123456",
        "payment_type": "CASH",
    }
    body.update(overrides)
    return body


class TestHealth:

    @pytest.mark.asyncio
    async def test_live(self, client):
        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    @pytest.mark.asyncio
    async def test_ready(self, client):
        response = await client.get("/health/ready")

        data = response.json()
        assert data["checks"]["database"] is True
        assert data["checks"]["redis"] is True
        assert data["history_table"] is True

    @pytest.mark.asyncio
    async def test_request_id_header(self, client):
        response = await client.get("/health/live", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"


class TestPublicEvents:

    @pytest.mark.asyncio
    async def test_upcoming_excludes_hidden_and_past(self, client, make_event):
        await make_event(title="Visible")
        await make_event(title="Hidden", visible=False)
        await make_event(title="Finished", starts_in=timedelta(days=-5))

        response = await client.get(f"{API}/events")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [e["title"] for e in body["data"]] == ["Visible"]

    @pytest.mark.asyncio
    async def test_past(self, client, make_event):
        await make_event(title="Upcoming")
        await make_event(title="Finished", starts_in=timedelta(days=-5))

        response = await client.get(f"{API}/events/past")

        assert [e["title"] for e in response.json()["data"]] == ["Finished"]

    @pytest.mark.asyncio
    async def test_latest_is_next_upcoming(self, client, make_event):
        await make_event(title="Later", starts_in=timedelta(days=14))
        await make_event(title="Sooner", starts_in=timedelta(days=2))

        response = await client.get(f"{API}/events/latest")

        assert response.json()["data"]["title"] == "Sooner"

    @pytest.mark.asyncio
    async def test_latest_without_events(self, client):
        response = await client.get(f"{API}/events/latest")

        assert response.status_code == 404
        assert response.json()["code"] == "1000"

    @pytest.mark.asyncio
    async def test_detail_counts(self, client, make_event, add_registration, add_waiting):
        event = await make_event(capacity=3)
        await add_registration(event, "Anna")
        await add_waiting(event, "Bara")

        response = await client.get(f"{API}/events/{event.id}")

        data = response.json()["data"]
        assert data["registration_count"] == 1
        assert data["waiting_list_count"] == 1
        assert data["available_spots"] == 2

    @pytest.mark.asyncio
    async def test_hidden_detail_not_found(self, client, make_event):
        event = await make_event(visible=False)

        response = await client.get(f"{API}/events/{event.id}")

        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_participants(self, client, make_event, add_registration):
        event = await make_event()
        await add_registration(event, "Anna")
        await add_registration(event, "Bara")

        response = await client.get(f"{API}/events/{event.id}/participants")

        data = response.json()["data"]
        assert [p["first_name"] for p in data] == ["Anna", "Bara"]
        assert "email" not in data[0]


class TestRegistrationFlow:

    @pytest.mark.asyncio
    async def test_guest_registration(self, client, make_event):
        event = await make_event()

        response = await client.post(f"{API}/registrations", json=_registration_body(event))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Registration successful"
        assert body["data"]["is_waitlisted"] is False

    @pytest.mark.asyncio
    async def test_duplicate_returns_conflict(self, client, make_event):
        event = await make_event()
        await client.post(f"{API}/registrations", json=_registration_body(event))

        response = await client.post(
            f"{API}/registrations",
            json=_registration_body(event, email="JANA@EXAMPLE.COM", first_name="jana")
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "2003"

    @pytest.mark.asyncio
    async def test_full_event_waitlists(self, client, make_event, add_registration):
        event = await make_event(capacity=1)
        await add_registration(event, "Anna")

        response = await client.post(f"{API}/registrations", json=_registration_body(event))

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Added to waiting list"
        assert body["data"]["is_waitlisted"] is True

    @pytest.mark.asyncio
    async def test_qr_registration(self, client, make_event):
        event = await make_event()

        response = await client.post(
            f"{API}/registrations", json=_registration_body(event, payment_type="QR")
        )

        data = response.json()["data"]
        assert data["qr_code_data"].startswith("data:image/png;base64,")
        assert len(data["variable_symbol"]) == 10

    @pytest.mark.asyncio
    async def test_logged_in_user_uses_profile(self, client, make_event, test_user, user_headers):
        event = await make_event()

        response = await client.post(
            f"{API}/registrations", json={"event_id": str(event.id)}, headers=user_headers
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == test_user.email
        assert data["first_name"] == test_user.first_name

        status = await client.get(f"{API}/events/{event.id}/registration-status", headers=user_headers)
        assert status.json()["data"]["registered"] is True

    @pytest.mark.asyncio
    async def test_guest_needs_email(self, client, make_event):
        event = await make_event()

        response = await client.post(
            f"{API}/registrations", json={"event_id": str(event.id), "first_name": "Jana"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_schema_validation_envelope(self, client):
        response = await client.post(f"{API}/registrations", json={"first_name": "Jana"})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"
        assert any(e["field"] == "event_id" for e in body["details"]["errors"])

    @pytest.mark.asyncio
    async def test_unknown_event(self, client):
        response = await client.post(
            f"{API}/registrations",
            json={"event_id": str(uuid4()), "first_name": "Jana", "email": "jana@example.com"}
        )

        assert response.status_code == 404
        assert response.json()["code"] == "2002"

    @pytest.mark.asyncio
    async def test_unregister(self, client, make_event, test_user, user_headers):
        event = await make_event()
        await client.post(f"{API}/registrations", json={"event_id": str(event.id)}, headers=user_headers)

        response = await client.post(f"{API}/events/{event.id}/unregister", headers=user_headers)

        assert response.status_code == 200
        status = await client.get(f"{API}/events/{event.id}/registration-status", headers=user_headers)
        assert status.json()["data"]["registered"] is False

    @pytest.mark.asyncio
    async def test_unregister_requires_login(self, client, make_event):
        event = await make_event()

        response = await client.post(f"{API}/events/{event.id}/unregister")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_rate_limit(self, client, make_event, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        monkeypatch.setattr(registration_rate_limit, "max_requests", 2)
        monkeypatch.setattr(registration_rate_limit, "window", 3600)
        event = await make_event()

        statuses = []
        for i in range(3):
            response = await client.post(
                f"{API}/registrations",
                json=_registration_body(event, first_name=f"Person{i}", email=f"p{i}@example.com")
            )
            statuses.append(response.status_code)

        assert statuses == [201, 201, 429]


class TestWaitingList:

    @pytest.mark.asyncio
    async def test_user_join_and_status(self, client, make_event, user_headers):
        event = await make_event(capacity=0)

        response = await client.post(
            f"{API}/waitinglist", json={"event_id": str(event.id)}, headers=user_headers
        )
        assert response.status_code == 201

        status = await client.get(f"{API}/events/{event.id}/waitinglist-status", headers=user_headers)
        data = status.json()["data"]
        assert data["on_waiting_list"] is True
        assert data["position"] == 1

        leave = await client.post(f"{API}/events/{event.id}/leave-waitinglist", headers=user_headers)
        assert leave.status_code == 200

    @pytest.mark.asyncio
    async def test_guest_join(self, client, make_event):
        event = await make_event(capacity=0)

        response = await client.post(
            f"{API}/waitinglist/guest",
            json={
                "event_id": str(event.id),
                "first_name": "Jana",
                "email": "jana@example.com",
                "payment_type": "QR",
            }
        )

        assert response.status_code == 201
        assert response.json()["data"]["payment_type"] == PaymentType.QR.value


class TestAuth:

    @pytest.mark.asyncio
    async def test_register_and_login(self, client):
        response = await client.post(f"{API}/auth/register", json={
            "email": "Nova@Example.com",
            "password": "Secret123",
            "first_name": "Nova",
            "last_name": "Uzivatelka",
        })
        assert response.status_code == 201
        assert response.json()["user"]["email"] == "nova@example.com"

        login = await client.post(
            f"{API}/auth/login",
            data={"username": "nova@example.com", "password": "Secret123"}
        )
        assert login.status_code == 200
        token = login.json()["access_token"]

        profile = await client.get(f"{API}/users/profile", headers={"Authorization": f"Bearer {token}"})
        assert profile.json()["data"]["first_name"] == "Nova"

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client, test_user):
        response = await client.post(f"{API}/auth/register", json={
            "email": test_user.email,
            "password": "Secret123",
            "first_name": "Copy",
        })

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, test_user):
        response = await client.post(
            f"{API}/auth/login", data={"username": test_user.email, "password": "nope12345"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_ERROR"

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get(f"{API}/users/profile", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_payment_preference(self, client, user_headers):
        response = await client.put(
            f"{API}/users/payment-preference", json={"payment_preference": "QR"}, headers=user_headers
        )
        assert response.status_code == 200

        current = await client.get(f"{API}/users/payment-preference", headers=user_headers)
        assert current.json()["data"]["payment_preference"] == "QR"

from uuid import uuid4

import pytest
from fastapi import status

from src.backend.domain.models.user import UserRole
from src.backend.infra.storage.sessions import InMemorySessionStorageBackend, session_key
from src.backend.services.users.service import (
    InMemoryUserService,
    display_name_from_email,
    role_for_email,
)


def test_role_is_derived_from_email_marker():
    assert role_for_email("lena.fischer@med-uni.example.com") == UserRole.MEDICAL_STUDENT
    assert role_for_email("maria.schmidt@example.com") == UserRole.PATIENT


def test_display_name_from_email():
    assert display_name_from_email("maria.schmidt@example.com") == "Maria Schmidt"
    assert display_name_from_email("bob@example.com") == "Bob"


def test_login_requires_password():
    service = InMemoryUserService(storage=InMemorySessionStorageBackend())
    with pytest.raises(ValueError):
        service.login(email="someone@example.com", password="")


def test_returning_user_keeps_id_and_name():
    service = InMemoryUserService(storage=InMemorySessionStorageBackend())
    _, registered = service.register(
        name="Jane Roe", email="jane.roe@example.com", password="pw", role=UserRole.PATIENT
    )
    _, user = service.login(email="jane.roe@example.com", password="other")
    assert user.id == registered.id
    assert user.name == "Jane Roe"


def test_unreadable_stored_session_is_discarded():
    storage = InMemorySessionStorageBackend()
    service = InMemoryUserService(storage=storage)
    storage.set_item(session_key("broken"), "{not json")

    assert service.get_session_user("broken") is None
    assert storage.get_item(session_key("broken")) is None


async def test_login_seeded_patient(client):
    resp = await client.post(
        "/api/v1/auth/login",
        json={"email": "maria.schmidt@example.com", "password": "anything"},
    )
    assert resp.status_code == status.HTTP_200_OK
    body = resp.json()
    assert body["token"]
    assert body["user"]["id"] == "p1"
    assert body["user"]["name"] == "Maria Schmidt"
    assert body["user"]["role"] == "PATIENT"


async def test_login_med_uni_email_is_medical_student(client):
    resp = await client.post(
        "/api/v1/auth/login",
        json={"email": f"new.student{uuid4().hex[:6]}@med-uni.example.com", "password": "pw"},
    )
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json()["user"]["role"] == "MEDICAL_STUDENT"


async def test_login_rejects_empty_password(client):
    resp = await client.post("/api/v1/auth/login", json={"email": "a@example.com", "password": ""})
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_register_uses_given_name_and_role(client):
    email = f"register.{uuid4().hex[:8]}@example.com"
    resp = await client.post(
        "/api/v1/auth/register",
        json={"name": "Sam Student", "email": email, "password": "pw", "role": "MEDICAL_STUDENT"},
    )
    assert resp.status_code == status.HTTP_201_CREATED
    user = resp.json()["user"]
    assert user["name"] == "Sam Student"
    assert user["role"] == "MEDICAL_STUDENT"


async def test_me_requires_session(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED

    resp = await client.get("/api/v1/auth/me", headers={"X-Session-Token": "not-a-token"})
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED


async def test_logout_ends_session(client, login):
    headers, user = await login()

    me = await client.get("/api/v1/auth/me", headers=headers)
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["id"] == user["id"]

    out = await client.post("/api/v1/auth/logout", headers=headers)
    assert out.status_code == status.HTTP_204_NO_CONTENT

    me = await client.get("/api/v1/auth/me", headers=headers)
    assert me.status_code == status.HTTP_401_UNAUTHORIZED

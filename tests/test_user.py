import pytest
from sqlalchemy import select

from app.models.user import User
from app.repositories.user_repo import UserRepository
from app.services.password_service import PasswordService

pytestmark = pytest.mark.anyio


async def test_register_returns_public_view(client):
    res = await client.post("/users/register", json={"username": "alice", "password": "pw1"})
    assert res.status_code == 200
    data = res.json()
    assert data["username"] == "alice"
    assert isinstance(data["id"], int)
    assert set(data) == {"id", "username"}


async def test_register_duplicate_username(client):
    await client.post("/users/register", json={"username": "alice", "password": "pw1"})
    res = await client.post("/users/register", json={"username": "alice", "password": "pw2"})
    assert res.status_code == 400
    assert res.json() == {"error": "Username is already taken"}


async def test_register_race_is_caught_by_unique_constraint(client, fetch, monkeypatch):
    await client.post("/users/register", json={"username": "alice", "password": "pw1"})

    # both racers pass the read check before either commits
    async def never_exists(self, db, username):
        return False

    monkeypatch.setattr(UserRepository, "username_exists", never_exists)
    res = await client.post("/users/register", json={"username": "alice", "password": "pw2"})
    assert res.status_code == 400
    assert res.json() == {"error": "Username is already taken"}

    rows = await fetch(select(User.id).where(User.username == "alice"))
    assert len(rows) == 1


async def test_password_is_stored_hashed(client, fetch):
    await client.post("/users/register", json={"username": "alice", "password": "pw1"})
    [(password_hash,)] = await fetch(select(User.password_hash).where(User.username == "alice"))
    assert password_hash != "pw1"
    assert password_hash.startswith("$argon2")


async def test_login_token_round_trips_to_user_id(client, initialized_app):
    reg = await client.post("/users/register", json={"username": "alice", "password": "pw1"})
    res = await client.post("/users/login", json={"username": "alice", "password": "pw1"})
    assert res.status_code == 200
    token = res.json()["token"]
    assert initialized_app.state.context.tokens.verify(token) == reg.json()["id"]


async def test_login_failures_are_indistinguishable(client):
    await client.post("/users/register", json={"username": "alice", "password": "pw1"})
    wrong_password = await client.post("/users/login", json={"username": "alice", "password": "nope"})
    unknown_user = await client.post("/users/login", json={"username": "mallory", "password": "pw1"})
    assert wrong_password.status_code == unknown_user.status_code == 404
    assert wrong_password.json() == unknown_user.json()


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "", "password": "pw"},
        {"username": "   ", "password": "pw"},
        {"username": "alice", "password": ""},
        {"username": "alice"},
    ],
)
async def test_register_rejects_invalid_body(client, payload):
    res = await client.post("/users/register", json=payload)
    assert res.status_code == 422
    assert res.json()["error"] == "Invalid request body"


async def test_unknown_user_still_pays_for_password_verify(client, monkeypatch):
    await client.post("/users/register", json={"username": "alice", "password": "pw1"})
    calls = []
    original_verify = PasswordService.verify

    def counting_verify(self, plaintext, hash_string):
        calls.append(hash_string)
        return original_verify(self, plaintext, hash_string)

    monkeypatch.setattr(PasswordService, "verify", counting_verify)

    res = await client.post("/users/login", json={"username": "mallory", "password": "pw1"})
    assert res.status_code == 404
    assert len(calls) == 1
    assert calls[0].startswith("$argon2")

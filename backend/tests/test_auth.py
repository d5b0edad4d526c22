import hashlib
import re
from datetime import timedelta

from sqlalchemy import select, update

from cliqstr.shared.models import User
from cliqstr.shared.models.base import utc_now
from tests.factories import CHILD_BIRTHDATE, PASSWORD, db_execute, db_scalars, sign_in, sign_up

RESET_CODE_PATTERN = re.compile(r"code=([\w\-]+)")


async def test_sign_up_creates_adult_and_sets_cookie(client):
    response = await client.post(
        "/api/auth/sign-up",
        json={
            "first_name": "Avery",
            "last_name": "Stone",
            "email": "Avery@Family.io",
            "password": PASSWORD,
            "birthdate": "1990-01-15",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "avery@family.io"
    assert body["account"]["role"] == "Adult"
    assert body["redirect_url"] == "/choose-plan"
    assert "cliqstr-session" in response.cookies


async def test_sign_up_rejects_minor(client):
    response = await client.post(
        "/api/auth/sign-up",
        json={
            "first_name": "Sam",
            "last_name": "Stone",
            "email": "sam@family.io",
            "password": PASSWORD,
            "birthdate": CHILD_BIRTHDATE,
        },
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "UNDERAGE"


async def test_sign_up_duplicate_email(client):
    await sign_up(client, "dup@family.io")

    response = await client.post(
        "/api/auth/sign-up",
        json={
            "first_name": "Dup",
            "last_name": "Again",
            "email": "DUP@family.io",
            "password": PASSWORD,
            "birthdate": "1980-02-02",
        },
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


async def test_validation_errors_use_error_envelope(client):
    response = await client.post("/api/auth/sign-up", json={"email": "not-an-email"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_sign_in_and_status(client):
    await sign_up(client, "casey@family.io", first_name="Casey")

    member = await sign_in(client, "Casey@Family.io")
    response = await client.get("/api/auth/status", headers=member.headers)

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "casey@family.io"
    assert body["account"]["first_name"] == "Casey"
    assert body["username"] is None


async def test_sign_in_wrong_password(client):
    await sign_up(client, "lee@family.io")

    response = await client.post("/api/auth/sign-in", json={"email": "lee@family.io", "password": "nope-nope"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"


async def test_session_cookie_authenticates(client):
    response = await client.post(
        "/api/auth/sign-up",
        json={
            "first_name": "Quinn",
            "last_name": "Ray",
            "email": "quinn@family.io",
            "password": PASSWORD,
            "birthdate": "1979-07-07",
        },
    )
    assert response.status_code == 201

    status = await client.get("/api/auth/status")
    assert status.status_code == 200
    assert status.json()["user"]["email"] == "quinn@family.io"

    await client.post("/api/auth/sign-out")
    client.cookies.clear()
    assert (await client.get("/api/auth/status")).status_code == 401


async def test_invalid_bearer_token(client):
    response = await client.get("/api/auth/status", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 401


async def test_upgrade_to_parent_is_idempotent(client):
    member = await sign_up(client, "morgan@family.io")

    first = await client.post("/api/auth/upgrade-to-parent", headers=member.headers)
    second = await client.post("/api/auth/upgrade-to-parent", headers=member.headers)

    assert first.json()["role"] == "Parent"
    assert first.json()["message"] == "Account upgraded to parent"
    assert second.json()["message"] == "Already a parent"


async def test_child_signup_creates_no_account(client, outbox):
    response = await client.post(
        "/api/auth/child-signup",
        json={
            "child_first_name": "Ivy",
            "child_last_name": "Stone",
            "child_birthdate": CHILD_BIRTHDATE,
            "parent_email": "ivy.parent@family.io",
        },
    )

    assert response.status_code == 201
    assert response.json()["parent_state"] == "new"
    assert len(outbox.sent_to("ivy.parent@family.io")) == 1

    attempt = await client.post("/api/auth/sign-in", json={"email": "ivy.parent@family.io", "password": PASSWORD})
    assert attempt.status_code == 401


async def test_health(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


async def test_ready(client):
    response = await client.get("/api/ready")

    assert response.json() == {"status": "ready"}


def _reset_code(outbox, address):
    messages = outbox.sent_to(address)
    assert messages, f"no email sent to {address}"
    match = RESET_CODE_PATTERN.search(messages[-1].text)
    assert match, messages[-1].text
    return match.group(1)


async def test_forgot_password_reply_hides_unknown_emails(client, outbox):
    await sign_up(client, "jordan@family.io")

    known = await client.post("/api/auth/forgot-password", json={"email": "Jordan@Family.io"})
    unknown = await client.post("/api/auth/forgot-password", json={"email": "nobody@family.io"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert len(outbox.sent_to("jordan@family.io")) == 1
    assert outbox.sent_to("nobody@family.io") == []


async def test_reset_password_with_emailed_code(client, outbox):
    await sign_up(client, "jordan@family.io")
    await client.post("/api/auth/forgot-password", json={"email": "jordan@family.io"})
    code = _reset_code(outbox, "jordan@family.io")

    [stored] = await db_scalars(select(User.reset_token))
    assert stored == hashlib.sha256(code.encode()).hexdigest()

    checked = await client.get("/api/auth/validate-reset-token", params={"code": code})
    assert checked.status_code == 200
    assert checked.json() == {"valid": True, "email": "jordan@family.io"}

    reset = await client.post(
        "/api/auth/reset-password",
        json={"code": code, "new_password": "Brand-new-pass-3"},
    )
    assert reset.status_code == 200

    await sign_in(client, "jordan@family.io", "Brand-new-pass-3")
    old = await client.post("/api/auth/sign-in", json={"email": "jordan@family.io", "password": PASSWORD})
    assert old.status_code == 401

    reused = await client.post(
        "/api/auth/reset-password",
        json={"code": code, "new_password": "Another-pass-4"},
    )
    assert reused.status_code == 400
    assert reused.json()["error"]["code"] == "INVALID_TOKEN"


async def test_expired_reset_code(client, outbox):
    await sign_up(client, "jordan@family.io")
    await client.post("/api/auth/forgot-password", json={"email": "jordan@family.io"})
    code = _reset_code(outbox, "jordan@family.io")
    await db_execute(update(User).values(reset_token_expires_at=utc_now() - timedelta(minutes=1)))

    response = await client.get("/api/auth/validate-reset-token", params={"code": code})

    assert response.status_code == 400
    assert response.json()["error"]["details"]["reason"] == "expired"
    assert response.json()["error"]["details"]["help_url"] == "/forgot-password"


async def test_change_password(client):
    member = await sign_up(client, "jordan@family.io")

    def change(current, new):
        return client.post(
            "/api/auth/change-password",
            json={"current_password": current, "new_password": new},
            headers=member.headers,
        )

    wrong = await change("not-my-password", "Brighter-day-7")
    assert wrong.json()["error"]["code"] == "WRONG_PASSWORD"

    weak = await change(PASSWORD, "no-uppercase-7")
    assert weak.status_code == 400
    assert weak.json()["error"]["code"] == "WEAK_PASSWORD"

    changed = await change(PASSWORD, "Brighter-day-7")
    assert changed.status_code == 200
    await sign_in(client, "jordan@family.io", "Brighter-day-7")

    unchanged = await change("Brighter-day-7", "Brighter-day-7")
    assert unchanged.json()["error"]["code"] == "PASSWORD_UNCHANGED"


async def test_change_password_needs_a_session(client):
    response = await client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "Brighter-day-7"},
    )

    assert response.status_code == 401

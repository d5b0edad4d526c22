from datetime import timedelta

from sqlalchemy import select, update

from cliqstr.shared.models import ParentApproval
from cliqstr.shared.models.base import utc_now
from tests.factories import (
    ADULT_BIRTHDATE,
    CHILD_BIRTHDATE,
    CHILD_PASSWORD,
    PASSWORD,
    as_member,
    create_child,
    db_execute,
    db_scalars,
    latest_token,
    request_child_approval,
    select_plan,
    sign_in,
    sign_up,
)


def _signup_body(token, email="jordan@family.io", **overrides):
    body = {
        "first_name": "Jordan",
        "last_name": "Hale",
        "email": email,
        "password": PASSWORD,
        "birthdate": ADULT_BIRTHDATE,
        "approval_token": token,
    }
    body.update(overrides)
    return body


async def _state(client, token, headers=None):
    response = await client.get("/api/parent-approval/state", params={"token": token}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


async def _expire(token):
    await db_execute(
        update(ParentApproval)
        .where(ParentApproval.approval_token == token)
        .values(expires_at=utc_now() - timedelta(hours=1))
    )


async def test_check_returns_approval_summary(client, outbox):
    token = await request_child_approval(client, outbox, "jordan@family.io", first_name="Milo")

    response = await client.get("/api/parent-approval/check", params={"token": token})

    assert response.status_code == 200
    body = response.json()
    assert body["child_first_name"] == "Milo"
    assert body["status"] == "pending"
    assert body["context"] == "direct_signup"
    assert body["parent_state"] == "new"


async def test_unknown_token(client):
    response = await client.get("/api/parent-approval/check", params={"token": "nope"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_TOKEN"
    assert error["details"]["reason"] == "not_found"


async def test_onboarding_steps_for_new_parent(client, outbox):
    token = await request_child_approval(client, outbox, "jordan@family.io")

    state = await _state(client, token)
    assert state["step"] == "parent_signup"
    assert state["redirect_url"] == f"/parent-approval?token={token}"
    assert state["parent_account_exists"] is False

    response = await client.post("/api/parent-approval/signup", json=_signup_body(token))
    assert response.status_code == 201
    assert response.json()["account"]["role"] == "Parent"
    assert response.json()["approval"]["status"] == "approved"
    assert response.json()["redirect_url"] == f"/choose-plan?approvalToken={token}"
    parent = as_member(client, response.json())

    state = await _state(client, token, headers=parent.headers)
    assert state["step"] == "choose_plan"
    assert state["signed_in_as_parent"] is True
    assert state["has_plan"] is False

    selected = await select_plan(client, parent, approval_token=token)
    assert selected["setup_stage"] == "plan_selected"
    assert selected["redirect_url"] == f"/parents/hq?approvalToken={token}"

    state = await _state(client, token)
    assert state["step"] == "create_child"
    assert state["redirect_url"] == f"/parents/hq?approvalToken={token}"

    await create_child(client, parent, "milo_h", approval_token=token)

    state = await _state(client, token)
    assert state["step"] == "complete"
    assert state["redirect_url"] == "/parents/hq/success"

    child = await sign_in(client, "Milo_H", CHILD_PASSWORD)
    status = await client.get("/api/auth/status", headers=child.headers)
    assert status.json()["account"]["role"] == "Child"
    assert status.json()["username"] == "milo_h"
    assert status.json()["user"]["email"] == "milo_h@cliqstr.local"


async def test_existing_adult_signs_in_and_is_upgraded(client, outbox):
    await sign_up(client, "adult@family.io")
    response = await client.post(
        "/api/auth/child-signup",
        json={
            "child_first_name": "Rae",
            "child_last_name": "Hale",
            "child_birthdate": CHILD_BIRTHDATE,
            "parent_email": "adult@family.io",
        },
    )
    assert response.json()["parent_state"] == "existing_adult"
    token = latest_token(outbox, "adult@family.io")

    state = await _state(client, token)
    assert state["step"] == "sign_in"
    assert state["parent_role"] == "Adult"
    assert state["redirect_url"] == f"/sign-in?approvalToken={token}&upgrade=parent"

    response = await client.post(
        "/api/parent-approval/sign-in",
        json={"email": "adult@family.io", "password": PASSWORD, "approval_token": token},
    )

    assert response.status_code == 200
    assert response.json()["account"]["role"] == "Parent"
    assert response.json()["redirect_url"] == f"/choose-plan?approvalToken={token}"
    client.cookies.clear()
    assert (await _state(client, token))["step"] == "choose_plan"


async def test_sign_in_as_other_adult_is_rejected(client, outbox):
    await sign_up(client, "other@family.io")
    token = await request_child_approval(client, outbox, "jordan@family.io")

    response = await client.post(
        "/api/parent-approval/sign-in",
        json={"email": "other@family.io", "password": PASSWORD, "approval_token": token},
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "EMAIL_MISMATCH"


async def test_signup_email_must_match(client, outbox):
    token = await request_child_approval(client, outbox, "jordan@family.io")

    response = await client.post(
        "/api/parent-approval/signup",
        json=_signup_body(token, email="someone.else@family.io"),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "EMAIL_MISMATCH"


async def test_signup_when_account_exists_points_to_sign_in(client, outbox):
    await sign_up(client, "jordan@family.io")
    token = await request_child_approval(client, outbox, "jordan@family.io")

    response = await client.post("/api/parent-approval/signup", json=_signup_body(token))

    assert response.status_code == 409
    assert "upgrade=parent" in response.json()["error"]["details"]["redirect_url"]


async def test_decline_blocks_further_use(client, outbox):
    token = await request_child_approval(client, outbox, "jordan@family.io")

    response = await client.post("/api/parent-approval/decline", json={"approval_token": token})
    assert response.status_code == 200

    state = await _state(client, token)
    assert state["step"] == "declined"

    signup = await client.post("/api/parent-approval/signup", json=_signup_body(token))
    assert signup.status_code == 400
    assert signup.json()["error"]["details"]["reason"] == "declined"

    again = await client.post("/api/parent-approval/decline", json={"approval_token": token})
    assert again.status_code == 409


async def test_expired_token_is_marked_expired(client, outbox):
    token = await request_child_approval(client, outbox, "jordan@family.io")
    await _expire(token)

    response = await client.get("/api/parent-approval/check", params={"token": token})

    assert response.status_code == 400
    assert response.json()["error"]["details"]["reason"] == "expired"
    [approval] = await db_scalars(select(ParentApproval))
    assert approval.status == "expired"

    state = await _state(client, token)
    assert state["step"] == "expired"
    assert state["redirect_url"] == "/help/approval-link?reason=expired"


async def test_parent_email_of_child_account_is_rejected(client, outbox):
    parent = await sign_up(client, "jordan@family.io")
    await select_plan(client, parent)
    token = await request_child_approval(client, outbox, "jordan@family.io")
    await create_child(client, parent, "kid_one", approval_token=token, child_email="kid.one@family.io")

    response = await client.post(
        "/api/auth/child-signup",
        json={
            "child_first_name": "Friend",
            "child_last_name": "Kid",
            "child_birthdate": CHILD_BIRTHDATE,
            "parent_email": "kid.one@family.io",
        },
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PARENT_EMAIL_REQUIRED"


async def test_resend_link_only_mails_known_requests(client, outbox):
    token = await request_child_approval(client, outbox, "jordan@family.io")

    known = await client.post("/api/help/resend-approval-link", json={"email": "Jordan@Family.io"})
    unknown = await client.post("/api/help/resend-approval-link", json={"email": "ghost@family.io"})

    assert known.json() == unknown.json()
    sent = outbox.sent_to("jordan@family.io")
    assert len(sent) == 2
    assert f"token={token}" in sent[-1].text
    assert outbox.sent_to("ghost@family.io") == []


async def test_pending_approvals_and_resume(client, outbox):
    parent = await sign_up(client, "jordan@family.io")
    await client.post("/api/auth/upgrade-to-parent", headers=parent.headers)
    token = await request_child_approval(client, outbox, "jordan@family.io")

    pending = await client.get("/api/parent/pending-approvals", headers=parent.headers)
    assert pending.status_code == 200
    [approval] = pending.json()
    assert approval["parent_state"] == "existing_parent"

    resume = await client.get(
        "/api/parent-approval/resume",
        params={"approval_id": approval["id"]},
        headers=parent.headers,
    )
    assert resume.status_code == 200
    assert resume.json()["redirect_url"] == f"/choose-plan?approvalToken={token}"


async def test_pending_approvals_for_non_parent(client):
    adult = await sign_up(client, "adult@family.io")

    response = await client.get("/api/parent/pending-approvals", headers=adult.headers)

    assert response.status_code == 403

import re

from sqlalchemy import select

from cliqstr.shared.models import Invite, ParentApproval
from tests.factories import (
    CHILD_BIRTHDATE,
    create_cliq,
    create_child,
    db_scalars,
    onboard_parent_with_child,
    select_plan,
    sign_up,
)

CODE_PATTERN = re.compile(r"code=(cliq-[a-z0-9]+)")


async def _owner_with_cliq(client, email="owner@family.io"):
    owner = await sign_up(client, email, first_name="Olive", last_name="Park")
    await select_plan(client, owner)
    cliq_id = await create_cliq(client, owner, name="Book Club")
    return owner, cliq_id


async def _invite_adult(client, owner, cliq_id, email, note=None):
    payload = {"cliq_id": cliq_id, "invite_type": "adult", "invitee_email": email}
    if note:
        payload["invite_note"] = note
    return await client.post("/api/invites", json=payload, headers=owner.headers)


async def test_adult_invite_emails_code_and_validates(client, outbox):
    owner, cliq_id = await _owner_with_cliq(client)

    response = await _invite_adult(client, owner, cliq_id, "Friend@Family.io", note="Join us!")

    assert response.status_code == 201
    body = response.json()
    assert body["target_state"] == "new"
    assert body["approval_id"] is None

    sent = outbox.sent_to("friend@family.io")
    assert len(sent) == 1
    assert CODE_PATTERN.search(sent[0].text).group(1) == body["join_code"]
    assert "Join us!" in sent[0].text

    validation = await client.get("/api/invites/validate", params={"code": body["join_code"]})
    assert validation.status_code == 200
    details = validation.json()
    assert details["valid"] is True
    assert details["cliq_name"] == "Book Club"
    assert details["inviter_name"] == "Olive Park"
    assert details["recipient_email"] == "friend@family.io"


async def test_validate_reports_reasons(client):
    missing = await client.get("/api/invites/validate")
    assert missing.status_code == 400
    assert missing.json()["error"]["code"] == "INVALID_INVITE"
    assert missing.json()["error"]["details"]["reason"] == "missing_code"

    unknown = await client.get("/api/invites/validate", params={"code": "cliq-zzzzzz"})
    assert unknown.status_code == 404
    assert unknown.json()["error"]["details"]["reason"] == "not_found"


async def test_accept_without_plan_waits_for_plan(client):
    owner, cliq_id = await _owner_with_cliq(client)
    code = (await _invite_adult(client, owner, cliq_id, "newbie@family.io")).json()["join_code"]
    newbie = await sign_up(client, "newbie@family.io")

    response = await client.post("/api/invites/accept", json={"code": code}, headers=newbie.headers)

    assert response.status_code == 200
    body = response.json()
    assert body["joined"] is False
    assert body["requires_plan"] is True
    assert body["redirect_url"] == "/choose-plan"

    selected = await select_plan(client, newbie)
    assert selected["joined_cliq_ids"] == [cliq_id]
    assert selected["setup_stage"] == "completed"

    members = await client.get(f"/api/cliqs/{cliq_id}/members", headers=newbie.headers)
    assert members.status_code == 200
    assert len(members.json()) == 2


async def test_accept_with_plan_joins_immediately(client):
    owner, cliq_id = await _owner_with_cliq(client)
    friend = await sign_up(client, "friend@family.io")
    await select_plan(client, friend)
    code = (await _invite_adult(client, owner, cliq_id, friend.email)).json()["join_code"]

    response = await client.post("/api/invites/accept", json={"code": code}, headers=friend.headers)

    assert response.json()["joined"] is True
    assert response.json()["redirect_url"] == f"/cliqs/{cliq_id}"

    reuse = await client.post("/api/invites/accept", json={"code": code}, headers=friend.headers)
    assert reuse.status_code == 400
    assert reuse.json()["error"]["details"]["reason"] == "not_pending"


async def test_accept_by_wrong_user_is_forbidden(client):
    owner, cliq_id = await _owner_with_cliq(client)
    code = (await _invite_adult(client, owner, cliq_id, "someone@family.io")).json()["join_code"]
    stranger = await sign_up(client, "stranger@family.io")

    response = await client.post("/api/invites/accept", json={"code": code}, headers=stranger.headers)

    assert response.status_code == 403


async def test_existing_member_cannot_be_invited_again(client):
    owner, cliq_id = await _owner_with_cliq(client)

    response = await _invite_adult(client, owner, cliq_id, owner.email)

    assert response.status_code == 409


async def test_decline_cancels_invite(client):
    owner, cliq_id = await _owner_with_cliq(client)
    code = (await _invite_adult(client, owner, cliq_id, "nope@family.io")).json()["join_code"]

    response = await client.post("/api/invites/decline", json={"code": code, "reason": "busy"})
    assert response.status_code == 200

    again = await client.post("/api/invites/decline", json={"code": code})
    assert again.status_code == 409

    validation = await client.get("/api/invites/validate", params={"code": code})
    assert validation.json()["error"]["details"]["reason"] == "not_pending"


async def test_pending_invites_for_signed_in_user(client):
    owner, cliq_id = await _owner_with_cliq(client)
    await _invite_adult(client, owner, cliq_id, "pending@family.io")
    invitee = await sign_up(client, "pending@family.io")

    response = await client.get("/api/invites/pending", headers=invitee.headers)

    assert response.status_code == 200
    assert [invite["cliq_id"] for invite in response.json()] == [cliq_id]


async def test_invite_to_child_account_requires_parent_email(client, outbox):
    owner, cliq_id = await _owner_with_cliq(client)
    await onboard_parent_with_child(
        client, outbox, "parent@family.io", "kiddo", child_email="kiddo@family.io"
    )
    outbox.outbox.clear()

    response = await _invite_adult(client, owner, cliq_id, "Kiddo@Family.io")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PARENT_EMAIL_REQUIRED"
    assert outbox.outbox == []
    assert await db_scalars(select(Invite.id)) == []


async def test_child_invite_creates_parent_approval(client, outbox):
    owner, cliq_id = await _owner_with_cliq(client)

    response = await client.post(
        "/api/invites",
        json={
            "cliq_id": cliq_id,
            "invite_type": "child",
            "parent_email": "newparent@family.io",
            "friend_first_name": "Theo",
            "friend_last_name": "Lane",
            "child_birthdate": CHILD_BIRTHDATE,
        },
        headers=owner.headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["approval_id"] is not None

    [approval] = await db_scalars(select(ParentApproval))
    assert approval.context == "child_invite"
    assert approval.cliq_name == "Book Club"
    assert approval.inviter_name == "Olive Park"

    [message] = outbox.sent_to("newparent@family.io")
    assert "Theo" in message.text
    assert "Book Club" in message.text
    assert f"token={approval.approval_token}" in message.text


async def test_child_invite_needs_child_details(client):
    owner, cliq_id = await _owner_with_cliq(client)

    response = await client.post(
        "/api/invites",
        json={"cliq_id": cliq_id, "invite_type": "child", "parent_email": "p@family.io"},
        headers=owner.headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "CHILD_DETAILS_REQUIRED"


async def test_child_invite_code_creates_child_in_cliq(client, outbox):
    owner, cliq_id = await _owner_with_cliq(client)
    parent = await sign_up(client, "haveplan@family.io")
    await select_plan(client, parent)

    response = await client.post(
        "/api/invites",
        json={
            "cliq_id": cliq_id,
            "invite_type": "child",
            "parent_email": parent.email,
            "friend_first_name": "Ada",
            "friend_last_name": "Lane",
            "child_birthdate": CHILD_BIRTHDATE,
        },
        headers=owner.headers,
    )
    assert response.json()["target_state"] == "existing_user_non_parent"
    code = response.json()["join_code"]

    created = await create_child(client, parent, "ada_lane", invite_code=code)

    assert created["joined_cliq_id"] == cliq_id
    [invite] = await db_scalars(select(Invite))
    assert invite.used is True
    assert invite.status == "completed"


async def test_non_member_cannot_invite(client):
    owner, cliq_id = await _owner_with_cliq(client)
    outsider = await sign_up(client, "outsider@family.io")

    response = await _invite_adult(client, outsider, cliq_id, "x@family.io")

    assert response.status_code == 403

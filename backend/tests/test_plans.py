from datetime import timedelta
from uuid import UUID

from sqlalchemy import select, update

from cliqstr.shared.models import Invite, Membership, ParentApproval, Plan
from cliqstr.shared.models.base import utc_now
from tests.factories import (
    create_cliq,
    db_execute,
    db_scalars,
    onboard_parent_with_child,
    request_child_approval,
    select_plan,
    sign_up,
)


async def _invite(client, owner, cliq_id, email):
    response = await client.post(
        "/api/invites",
        json={"cliq_id": cliq_id, "invite_type": "adult", "invitee_email": email},
        headers=owner.headers,
    )
    assert response.status_code == 201, response.text


async def test_catalog_lists_enabled_plans(client):
    response = await client.get("/api/plans")

    assert response.status_code == 200
    assert [plan["key"] for plan in response.json()] == ["test"]
    assert response.json()[0]["max_members"] == 5


async def test_disabled_plan_cannot_be_selected(client):
    member = await sign_up(client, "avery@family.io")

    response = await client.post("/api/plans/select", json={"plan": "premium"}, headers=member.headers)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PLAN_NOT_AVAILABLE"


async def test_slots_require_a_plan(client):
    member = await sign_up(client, "avery@family.io")

    response = await client.get("/api/plans/slots", headers=member.headers)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PLAN_REQUIRED"


async def test_select_plan_for_adult(client):
    member = await sign_up(client, "avery@family.io")

    selected = await select_plan(client, member)
    await select_plan(client, member)

    assert selected["plan"] == "test"
    assert selected["setup_stage"] == "completed"
    assert selected["redirect_url"] == "/my-cliqs-dashboard"
    assert len(await db_scalars(select(Plan))) == 1

    slots = (await client.get("/api/plans/slots", headers=member.headers)).json()
    assert slots == {"plan": "test", "max_members": 5, "current_members": 1, "available_slots": 4}


async def test_auto_join_joins_each_cliq_once(client):
    owner = await sign_up(client, "owner@family.io")
    await select_plan(client, owner)
    soccer = await create_cliq(client, owner, name="Soccer")
    chess = await create_cliq(client, owner, name="Chess")
    await _invite(client, owner, soccer, "friend@family.io")
    await _invite(client, owner, soccer, "friend@family.io")
    await _invite(client, owner, chess, "friend@family.io")

    friend = await sign_up(client, "friend@family.io")
    selected = await select_plan(client, friend)

    assert selected["joined_cliq_ids"] == [soccer, chess]
    memberships = await db_scalars(select(Membership).where(Membership.cliq_id.in_([UUID(soccer), UUID(chess)])))
    assert len(memberships) == 4
    invites = await db_scalars(select(Invite))
    assert {invite.status for invite in invites} == {"completed"}
    assert all(invite.used for invite in invites)

    again = await select_plan(client, friend)
    assert again["joined_cliq_ids"] == []


async def test_child_cannot_select_plan(client, outbox):
    _, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")

    response = await client.post("/api/plans/select", json={"plan": "test"}, headers=child.headers)

    assert response.status_code == 403


async def test_expired_approval_does_not_record_a_plan(client, outbox):
    member = await sign_up(client, "jordan@family.io")
    token = await request_child_approval(client, outbox, member.email)
    await db_execute(
        update(ParentApproval)
        .where(ParentApproval.approval_token == token)
        .values(expires_at=utc_now() - timedelta(hours=1))
    )

    response = await client.post(
        "/api/plans/select",
        json={"plan": "test", "approval_token": token},
        headers=member.headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["details"]["reason"] == "expired"
    assert await db_scalars(select(Plan)) == []
    slots = await client.get("/api/plans/slots", headers=member.headers)
    assert slots.json()["error"]["code"] == "PLAN_REQUIRED"

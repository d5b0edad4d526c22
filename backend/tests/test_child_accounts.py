from datetime import timedelta

from sqlalchemy import select, update

from cliqstr.shared.models import ParentApproval, ParentConsent, ParentLink, Plan, User
from cliqstr.shared.models.base import utc_now
from cliqstr.shared.services.child_account_service import ChildAccountService
from tests.factories import (
    ADULT_BIRTHDATE,
    PASSWORD,
    as_member,
    child_payload,
    create_child,
    db_execute,
    db_scalars,
    onboard_parent_with_child,
    request_child_approval,
    select_plan,
    sign_up,
)


async def _parent_with_plan(client, email="jordan@family.io"):
    parent = await sign_up(client, email, first_name="Jordan")
    await select_plan(client, parent)
    return parent


async def _post_child(client, parent, payload):
    return await client.post("/api/parent/children", json=payload, headers=parent.headers)


async def test_child_gets_safe_defaults_and_parent_overrides(client, outbox):
    parent = await _parent_with_plan(client)
    token = await request_child_approval(client, outbox, parent.email)

    created = await create_child(
        client,
        parent,
        "Sunny_Day",
        approval_token=token,
        permissions={"can_create_public_cliqs": True, "ai_moderation_level": "moderate"},
        silent_monitoring=False,
    )

    assert created["username"] == "sunny_day"
    assert created["redirect_url"] == "/parents/hq/success"

    response = await client.get(f"/api/parent/children/{created['child_id']}", headers=parent.headers)
    assert response.status_code == 200
    child = response.json()
    assert child["link_role"] == "primary"
    assert child["role"] == "Child"
    settings = child["settings"]
    assert settings["can_create_public_cliqs"] is True
    assert settings["ai_moderation_level"] == "moderate"
    assert settings["is_silently_monitored"] is False
    assert settings["can_send_invites"] is False
    assert settings["events_require_approval"] is True

    [consent] = await db_scalars(select(ParentConsent))
    assert consent.red_alert_accepted is True
    assert str(consent.parent_id) == parent.id


async def test_adult_caller_is_upgraded_to_parent(client, outbox):
    parent = await _parent_with_plan(client)
    token = await request_child_approval(client, outbox, parent.email)

    await create_child(client, parent, "kid_a", approval_token=token)

    status = await client.get("/api/auth/status", headers=parent.headers)
    assert status.json()["account"]["role"] == "Parent"
    assert status.json()["account"]["setup_stage"] == "completed"


async def test_approval_token_is_single_use(client, outbox):
    parent = await _parent_with_plan(client)
    token = await request_child_approval(client, outbox, parent.email)
    await create_child(client, parent, "first_kid", approval_token=token)

    response = await _post_child(client, parent, {**child_payload("second_kid"), "approval_token": token})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_TOKEN"
    assert error["details"]["reason"] == "completed"


async def test_red_alert_terms_are_required(client, outbox):
    parent = await _parent_with_plan(client)
    token = await request_child_approval(client, outbox, parent.email)

    response = await _post_child(
        client,
        parent,
        {**child_payload("kid_b", red_alert_accepted=False), "approval_token": token},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "RED_ALERT_REQUIRED"


async def test_exactly_one_authorization_source(client, outbox):
    parent = await _parent_with_plan(client)
    token = await request_child_approval(client, outbox, parent.email)

    neither = await _post_child(client, parent, child_payload("kid_c"))
    both = await _post_child(
        client,
        parent,
        {**child_payload("kid_c"), "approval_token": token, "invite_code": "cliq-abcdef"},
    )

    assert neither.status_code == 400
    assert both.status_code == 400
    assert both.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_parent_without_plan(client, outbox):
    token = await request_child_approval(client, outbox, "jordan@family.io")
    response = await client.post(
        "/api/parent-approval/signup",
        json={
            "first_name": "Jordan",
            "last_name": "Hale",
            "email": "jordan@family.io",
            "password": PASSWORD,
            "birthdate": ADULT_BIRTHDATE,
            "approval_token": token,
        },
    )
    parent = as_member(client, response.json())

    response = await _post_child(client, parent, {**child_payload("kid_d"), "approval_token": token})

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PLAN_REQUIRED"


async def test_token_addressed_to_another_parent(client, outbox):
    parent = await _parent_with_plan(client)
    token = await request_child_approval(client, outbox, "someone.else@family.io")

    response = await _post_child(client, parent, {**child_payload("kid_e"), "approval_token": token})

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "EMAIL_MISMATCH"


async def test_username_must_be_unique(client, outbox):
    parent, _ = await onboard_parent_with_child(client, outbox, "jordan@family.io", "taken")
    token = await request_child_approval(client, outbox, parent.email, first_name="Second")

    response = await _post_child(client, parent, {**child_payload("Taken"), "approval_token": token})

    assert response.status_code == 409


async def test_child_cannot_create_children(client, outbox):
    _, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")
    token = await request_child_approval(client, outbox, "jordan@family.io", first_name="Other")

    response = await _post_child(client, child, {**child_payload("kid_f"), "approval_token": token})

    assert response.status_code == 403


async def test_full_plan_rejects_new_child(client, outbox):
    parent, _ = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kid_one")
    await db_execute(update(Plan).values(max_members=2))
    token = await request_child_approval(client, outbox, parent.email, first_name="Two")

    response = await _post_child(client, parent, {**child_payload("kid_two"), "approval_token": token})

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PLAN_FULL"
    assert await db_scalars(select(User.id).where(User.email == "kid_two@cliqstr.local")) == []

    slots = await client.get("/api/plans/slots", headers=parent.headers)
    assert slots.json()["current_members"] == 2
    assert slots.json()["available_slots"] == 0


async def test_second_parent_is_linked_and_emailed(client, outbox):
    parent = await _parent_with_plan(client)
    token = await request_child_approval(client, outbox, parent.email)

    created = await create_child(
        client, parent, "kid_g", approval_token=token, second_parent_email="Co.Parent@Family.io"
    )

    links = await client.get(f"/api/parent/children/{created['child_id']}/parents", headers=parent.headers)
    assert sorted((link["email"], link["role"]) for link in links.json()) == [
        ("co.parent@family.io", "secondary"),
        (parent.email, "primary"),
    ]
    assert len(outbox.sent_to("co.parent@family.io")) == 1


async def test_failure_mid_bundle_keeps_nothing(client, outbox, monkeypatch):
    parent = await _parent_with_plan(client)
    token = await request_child_approval(client, outbox, parent.email)

    async def broken_link(self, *args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(ChildAccountService, "_link_parents", broken_link)
    response = await _post_child(client, parent, {**child_payload("sunny"), "approval_token": token})

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "CHILD_ACCOUNT_CREATION_FAILED"
    assert await db_scalars(select(User.id).where(User.email == "sunny@cliqstr.local")) == []
    assert await db_scalars(select(ParentLink.id)) == []

    monkeypatch.undo()
    created = await create_child(client, parent, "sunny", approval_token=token)
    assert created["username"] == "sunny"


async def test_expired_token_leaves_the_adult_unchanged(client, outbox):
    adult = await _parent_with_plan(client)
    token = await request_child_approval(client, outbox, adult.email)
    await db_execute(
        update(ParentApproval)
        .where(ParentApproval.approval_token == token)
        .values(expires_at=utc_now() - timedelta(hours=1))
    )

    response = await _post_child(client, adult, {**child_payload("late_kid"), "approval_token": token})

    assert response.status_code == 400
    assert response.json()["error"]["details"]["reason"] == "expired"
    status = await client.get("/api/auth/status", headers=adult.headers)
    assert status.json()["account"]["role"] == "Adult"
    [approval] = await db_scalars(select(ParentApproval))
    assert approval.status == "expired"

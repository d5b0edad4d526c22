from datetime import timedelta

from cliqstr.shared.models.base import utc_now
from tests.factories import (
    create_cliq,
    create_post,
    join_cliq,
    onboard_parent_with_child,
    select_plan,
    sign_up,
)


async def _adult_with_plan(client, email):
    member = await sign_up(client, email)
    await select_plan(client, member)
    return member


async def test_create_and_read_cliq(client):
    owner = await _adult_with_plan(client, "owner@family.io")

    response = await client.post(
        "/api/cliqs",
        json={"name": "  Hiking Crew ", "description": "Weekend hikes", "min_age": 8, "max_age": 14},
        headers=owner.headers,
    )

    assert response.status_code == 201
    cliq = response.json()
    assert cliq["name"] == "Hiking Crew"
    assert cliq["privacy"] == "private"
    assert cliq["owner_id"] == owner.id

    mine = await client.get("/api/cliqs", headers=owner.headers)
    assert [item["id"] for item in mine.json()] == [cliq["id"]]

    members = await client.get(f"/api/cliqs/{cliq['id']}/members", headers=owner.headers)
    assert [(m["user_id"], m["role"]) for m in members.json()] == [(owner.id, "Owner")]


async def test_age_range_must_be_ordered(client):
    owner = await _adult_with_plan(client, "owner@family.io")

    response = await client.post(
        "/api/cliqs",
        json={"name": "Odd", "min_age": 12, "max_age": 9},
        headers=owner.headers,
    )

    assert response.status_code == 400


async def test_cliq_needs_a_plan(client):
    member = await sign_up(client, "noplan@family.io")

    response = await client.post("/api/cliqs", json={"name": "Nope"}, headers=member.headers)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PLAN_REQUIRED"


async def test_child_cliq_creation_follows_permissions(client, outbox):
    _, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")

    private = await client.post("/api/cliqs", json={"name": "Lego Fans"}, headers=child.headers)
    public = await client.post(
        "/api/cliqs",
        json={"name": "Everyone", "privacy": "public"},
        headers=child.headers,
    )

    assert private.status_code == 201
    assert public.status_code == 403
    assert public.json()["error"]["code"] == "CLIQ_NOT_PERMITTED"


async def test_child_with_public_permission(client, outbox):
    _, child = await onboard_parent_with_child(
        client,
        outbox,
        "jordan@family.io",
        "kiddo",
        permissions={"can_create_public_cliqs": True},
    )

    response = await client.post(
        "/api/cliqs",
        json={"name": "Everyone", "privacy": "public"},
        headers=child.headers,
    )

    assert response.status_code == 201


async def test_non_member_is_kept_out(client):
    owner = await _adult_with_plan(client, "owner@family.io")
    cliq_id = await create_cliq(client, owner)
    outsider = await sign_up(client, "outsider@family.io")

    assert (await client.get(f"/api/cliqs/{cliq_id}", headers=outsider.headers)).status_code == 403
    assert (await client.get(f"/api/cliqs/{cliq_id}/posts", headers=outsider.headers)).status_code == 403
    posted = await client.post(
        f"/api/cliqs/{cliq_id}/posts",
        json={"content": "let me in"},
        headers=outsider.headers,
    )
    assert posted.status_code == 403


async def test_unknown_cliq(client):
    member = await _adult_with_plan(client, "owner@family.io")

    response = await client.get("/api/cliqs/00000000-0000-0000-0000-000000000000", headers=member.headers)

    assert response.status_code == 404


async def test_posts_are_paged_newest_first(client):
    owner = await _adult_with_plan(client, "owner@family.io")
    cliq_id = await create_cliq(client, owner)
    ids = [await create_post(client, owner, cliq_id, f"post {n}") for n in range(3)]

    first = await client.get(
        f"/api/cliqs/{cliq_id}/posts",
        params={"page": 1, "per_page": 2},
        headers=owner.headers,
    )
    second = await client.get(
        f"/api/cliqs/{cliq_id}/posts",
        params={"page": 2, "per_page": 2},
        headers=owner.headers,
    )

    assert [post["id"] for post in first.json()] == [ids[2], ids[1]]
    assert [post["id"] for post in second.json()] == [ids[0]]
    assert first.json()[0]["moderation_status"] == "approved"


async def test_notices_are_owner_only(client):
    owner = await _adult_with_plan(client, "owner@family.io")
    member = await _adult_with_plan(client, "member@family.io")
    cliq_id = await create_cliq(client, owner)
    await join_cliq(client, owner, cliq_id, member)

    created = await client.post(
        f"/api/cliqs/{cliq_id}/notices",
        json={"content": "Practice moved to 5pm"},
        headers=owner.headers,
    )
    expired = await client.post(
        f"/api/cliqs/{cliq_id}/notices",
        json={"content": "Old news", "expires_at": (utc_now() - timedelta(days=1)).isoformat()},
        headers=owner.headers,
    )
    denied = await client.post(
        f"/api/cliqs/{cliq_id}/notices",
        json={"content": "I am not the owner"},
        headers=member.headers,
    )

    assert created.status_code == 201
    assert created.json()["type"] == "admin"
    assert expired.status_code == 201
    assert denied.status_code == 403

    notices = await client.get(f"/api/cliqs/{cliq_id}/notices", headers=member.headers)
    assert [notice["content"] for notice in notices.json()] == ["Practice moved to 5pm"]


async def _member_roles(client, member, cliq_id):
    response = await client.get(f"/api/cliqs/{cliq_id}/members", headers=member.headers)
    return {m["user_id"]: m["role"] for m in response.json()}


async def _member_action(client, member, cliq_id, target, action):
    return await client.post(
        f"/api/cliqs/{cliq_id}/member-actions",
        json={"target_user_id": target.id, "action": action},
        headers=member.headers,
    )


async def test_owner_promotes_and_demotes(client):
    owner = await _adult_with_plan(client, "owner@family.io")
    helper = await _adult_with_plan(client, "helper@family.io")
    cliq_id = await create_cliq(client, owner)
    await join_cliq(client, owner, cliq_id, helper)

    promoted = await _member_action(client, owner, cliq_id, helper, "promote")
    assert promoted.status_code == 200
    assert promoted.json()["message"] == "Member promoted to moderator"
    assert (await _member_roles(client, owner, cliq_id))[helper.id] == "Moderator"

    again = await _member_action(client, owner, cliq_id, helper, "promote")
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "INVALID_MEMBER_ACTION"

    demoted = await _member_action(client, owner, cliq_id, helper, "demote")
    assert demoted.status_code == 200
    assert (await _member_roles(client, owner, cliq_id))[helper.id] == "Member"


async def test_moderator_removes_plain_members_only(client):
    owner = await _adult_with_plan(client, "owner@family.io")
    moderator = await _adult_with_plan(client, "mod@family.io")
    member = await _adult_with_plan(client, "member@family.io")
    cliq_id = await create_cliq(client, owner)
    await join_cliq(client, owner, cliq_id, moderator)
    await join_cliq(client, owner, cliq_id, member)
    await _member_action(client, owner, cliq_id, moderator, "promote")

    assert (await _member_action(client, moderator, cliq_id, owner, "remove")).status_code == 403
    assert (await _member_action(client, moderator, cliq_id, member, "promote")).status_code == 403

    removed = await _member_action(client, moderator, cliq_id, member, "remove")
    assert removed.status_code == 200
    assert member.id not in await _member_roles(client, owner, cliq_id)
    assert (await client.get(f"/api/cliqs/{cliq_id}", headers=member.headers)).status_code == 403


async def test_plain_member_cannot_manage_members(client):
    owner = await _adult_with_plan(client, "owner@family.io")
    first = await _adult_with_plan(client, "first@family.io")
    second = await _adult_with_plan(client, "second@family.io")
    cliq_id = await create_cliq(client, owner)
    await join_cliq(client, owner, cliq_id, first)
    await join_cliq(client, owner, cliq_id, second)

    response = await _member_action(client, first, cliq_id, second, "remove")

    assert response.status_code == 403
    assert second.id in await _member_roles(client, owner, cliq_id)


async def test_member_action_on_non_member(client):
    owner = await _adult_with_plan(client, "owner@family.io")
    outsider = await sign_up(client, "outsider@family.io")
    cliq_id = await create_cliq(client, owner)

    assert (await _member_action(client, owner, cliq_id, outsider, "remove")).status_code == 404
    assert (await _member_action(client, owner, cliq_id, owner, "demote")).status_code == 400

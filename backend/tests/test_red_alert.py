import json
from datetime import timedelta

import httpx
import pytest

from cliqstr.shared.models.base import utc_now
from tests.factories import (
    create_cliq,
    create_post,
    invite_child_into_cliq,
    onboard_parent_with_child,
    select_plan,
    set_role,
    sign_up,
)

MODERATION_EMAIL = "safety@cliqstr.com"


@pytest.fixture
async def cliq_with_child(client, outbox):
    """Adult-owned cliq with one invited child and a few posts."""
    owner = await sign_up(client, "owner@family.io", first_name="Olive")
    await select_plan(client, owner)
    cliq_id = await create_cliq(client, owner, name="Art Club")
    parent, _ = await onboard_parent_with_child(client, outbox, "jordan@family.io", "older_kid")
    child = await invite_child_into_cliq(client, outbox, owner, cliq_id, parent, "nia")

    posts = {
        "owner": await create_post(client, owner, cliq_id, "Welcome everyone"),
        "child_1": await create_post(client, child, cliq_id, "hi!"),
        "child_2": await create_post(client, child, cliq_id, "look at my drawing"),
    }
    outbox.outbox.clear()
    return {"owner": owner, "parent": parent, "child": child, "cliq_id": cliq_id, "posts": posts}


async def _raise(client, member, cliq_id, **body):
    response = await client.post(
        "/api/red-alert",
        json={"cliq_id": cliq_id, "reason": "Unkind messages", **body},
        headers=member.headers,
    )
    return response


async def _visible_posts(client, member, cliq_id):
    response = await client.get(f"/api/cliqs/{cliq_id}/posts", headers=member.headers)
    assert response.status_code == 200
    return {post["id"] for post in response.json()}


async def test_overlapping_filters_count_each_post_once(client, cliq_with_child):
    owner, child = cliq_with_child["owner"], cliq_with_child["child"]
    cliq_id, posts = cliq_with_child["cliq_id"], cliq_with_child["posts"]

    response = await _raise(
        client,
        owner,
        cliq_id,
        post_id=posts["child_1"],
        content_to_suspend={
            "post_ids": [posts["child_1"], posts["child_2"]],
            "user_id": child.id,
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["trigger_type"] == "adult"
    assert body["suspended_content"] == 2
    assert await _visible_posts(client, owner, cliq_id) == {posts["owner"]}


async def test_time_range_and_repeat_alerts(client, cliq_with_child):
    owner, cliq_id, posts = cliq_with_child["owner"], cliq_with_child["cliq_id"], cliq_with_child["posts"]
    now = utc_now()

    first = await _raise(
        client,
        owner,
        cliq_id,
        content_to_suspend={
            "post_ids": [posts["owner"]],
            "time_range": {
                "start_time": (now - timedelta(hours=1)).isoformat(),
                "end_time": (now + timedelta(hours=1)).isoformat(),
            },
        },
    )
    second = await _raise(client, owner, cliq_id, post_id=posts["child_2"])

    assert first.json()["suspended_content"] == 3
    assert second.json()["suspended_content"] == 0
    assert await _visible_posts(client, owner, cliq_id) == set()


async def test_parents_and_moderators_are_notified(client, outbox, cliq_with_child):
    owner, parent, cliq_id = cliq_with_child["owner"], cliq_with_child["parent"], cliq_with_child["cliq_id"]
    await invite_child_into_cliq(client, outbox, owner, cliq_id, parent, "leo", first_name="Leo")
    outbox.outbox.clear()

    response = await _raise(client, owner, cliq_id)

    body = response.json()
    assert body["total_parents"] == 1
    assert body["notified"] == 1
    assert body["moderator_notified"] is True
    assert len(outbox.sent_to(parent.email)) == 1
    [moderation] = outbox.sent_to(MODERATION_EMAIL)
    assert body["red_alert_id"] in moderation.text
    assert "Art Club" in moderation.subject


async def test_child_reporter_sets_trigger(client, cliq_with_child):
    child, cliq_id = cliq_with_child["child"], cliq_with_child["cliq_id"]

    response = await _raise(client, child, cliq_id, post_id=cliq_with_child["posts"]["owner"])

    assert response.status_code == 201
    assert response.json()["trigger_type"] == "child"
    assert response.json()["suspended_content"] == 1


async def test_non_member_cannot_raise(client, cliq_with_child):
    outsider = await sign_up(client, "outsider@family.io")

    response = await _raise(client, outsider, cliq_with_child["cliq_id"])

    assert response.status_code == 403


async def test_post_from_other_cliq_is_rejected(client, cliq_with_child):
    owner = cliq_with_child["owner"]
    other_cliq = await create_cliq(client, owner, name="Other")
    foreign_post = await create_post(client, owner, other_cliq, "elsewhere")

    response = await _raise(client, owner, cliq_with_child["cliq_id"], post_id=foreign_post)

    assert response.status_code == 404


async def test_owner_lists_alerts(client, cliq_with_child):
    owner, child, cliq_id = cliq_with_child["owner"], cliq_with_child["child"], cliq_with_child["cliq_id"]
    await _raise(client, owner, cliq_id)

    listed = await client.get("/api/red-alert", params={"cliq_id": cliq_id}, headers=owner.headers)
    filtered = await client.get(
        "/api/red-alert",
        params={"cliq_id": cliq_id, "status": "dismissed"},
        headers=owner.headers,
    )
    forbidden = await client.get("/api/red-alert", params={"cliq_id": cliq_id}, headers=child.headers)

    assert [alert["status"] for alert in listed.json()] == ["pending"]
    assert filtered.json() == []
    assert forbidden.status_code == 403


async def test_admin_dismiss_restores_posts(client, cliq_with_child):
    owner, cliq_id, posts = cliq_with_child["owner"], cliq_with_child["cliq_id"], cliq_with_child["posts"]
    alert_id = (await _raise(client, owner, cliq_id, post_id=posts["child_1"])).json()["red_alert_id"]

    not_admin = await client.patch(f"/api/red-alert/{alert_id}", json={"status": "dismissed"}, headers=owner.headers)
    assert not_admin.status_code == 403

    moderator = await sign_up(client, "mod@cliqstr.io")
    await set_role(moderator.id, "Admin")
    response = await client.patch(
        f"/api/red-alert/{alert_id}",
        json={"status": "dismissed", "moderator_notes": "False alarm"},
        headers=moderator.headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "dismissed"
    assert response.json()["reviewed_by_id"] == moderator.id
    assert await _visible_posts(client, owner, cliq_id) == set(posts.values())


async def test_resolve_keeps_posts_hidden(client, cliq_with_child):
    owner, cliq_id, posts = cliq_with_child["owner"], cliq_with_child["cliq_id"], cliq_with_child["posts"]
    alert_id = (await _raise(client, owner, cliq_id, post_id=posts["child_1"])).json()["red_alert_id"]
    moderator = await sign_up(client, "mod@cliqstr.io")
    await set_role(moderator.id, "Admin")

    await client.patch(f"/api/red-alert/{alert_id}", json={"status": "resolved"}, headers=moderator.headers)

    assert posts["child_1"] not in await _visible_posts(client, owner, cliq_id)


def _recipient(request: httpx.Request) -> str:
    return json.loads(request.content)["to"][0]


async def test_plain_text_provider_reply_still_counts(client, cliq_with_child, email_provider):
    delivered = []

    def queued(request):
        delivered.append(_recipient(request))
        return httpx.Response(200, text="Queued")

    email_provider(queued)
    response = await _raise(client, cliq_with_child["owner"], cliq_with_child["cliq_id"])

    assert response.status_code == 201
    body = response.json()
    assert body["notified"] == body["total_parents"] == 1
    assert body["moderator_notified"] is True
    assert delivered == [cliq_with_child["parent"].email, MODERATION_EMAIL]


async def test_one_failed_parent_email_does_not_stop_the_rest(client, outbox, cliq_with_child, email_provider):
    owner, cliq_id = cliq_with_child["owner"], cliq_with_child["cliq_id"]
    other_parent, _ = await onboard_parent_with_child(client, outbox, "sam@family.io", "sam_kid")
    await invite_child_into_cliq(client, outbox, owner, cliq_id, other_parent, "leo", first_name="Leo")
    broken = cliq_with_child["parent"].email
    attempted = []

    def provider(request):
        recipient = _recipient(request)
        attempted.append(recipient)
        if recipient == broken:
            return httpx.Response(500, json={"message": "mailbox unavailable"})
        return httpx.Response(200, json={"id": f"msg-{len(attempted)}"})

    email_provider(provider)
    response = await _raise(client, owner, cliq_id, post_id=cliq_with_child["posts"]["child_1"])

    assert response.status_code == 201
    body = response.json()
    assert body["total_parents"] == 2
    assert body["notified"] == body["total_parents"] - 1
    assert body["moderator_notified"] is True
    assert body["suspended_content"] == 1
    assert set(attempted) == {broken, "sam@family.io", MODERATION_EMAIL}

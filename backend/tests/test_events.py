from datetime import timedelta

import pytest

from cliqstr.shared.models.base import utc_now
from tests.factories import (
    create_cliq,
    invite_child_into_cliq,
    onboard_parent_with_child,
    select_plan,
    sign_up,
)


@pytest.fixture
async def family_cliq(client, outbox):
    owner = await sign_up(client, "coach@family.io", first_name="Casey")
    await select_plan(client, owner)
    cliq_id = await create_cliq(client, owner, name="Team")
    parent, _ = await onboard_parent_with_child(client, outbox, "jordan@family.io", "older_kid")
    child = await invite_child_into_cliq(client, outbox, owner, cliq_id, parent, "nia")
    return owner, parent, child, cliq_id


def _event_body(title="Bake sale", hours_from_now=24):
    starts = utc_now() + timedelta(hours=hours_from_now)
    return {
        "title": title,
        "location": "Gym",
        "starts_at": starts.isoformat(),
        "ends_at": (starts + timedelta(hours=2)).isoformat(),
    }


async def _create_event(client, member, cliq_id, **kwargs):
    response = await client.post(f"/api/cliqs/{cliq_id}/events", json=_event_body(**kwargs), headers=member.headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _event_ids(client, member, cliq_id):
    response = await client.get(f"/api/cliqs/{cliq_id}/events", headers=member.headers)
    assert response.status_code == 200
    return [event["id"] for event in response.json()]


async def test_child_event_waits_for_parent(client, family_cliq):
    owner, parent, child, cliq_id = family_cliq

    event = await _create_event(client, child, cliq_id, title="Sleepover")

    assert event["requires_parent_approval"] is True
    assert event["is_pending_approval"] is True
    assert await _event_ids(client, owner, cliq_id) == []
    assert await _event_ids(client, child, cliq_id) == [event["id"]]

    pending = await client.get("/api/parent/pending-events", headers=parent.headers)
    assert [item["id"] for item in pending.json()] == [event["id"]]

    approved = await client.post(f"/api/parent/events/{event['id']}/approve", headers=parent.headers)
    assert approved.status_code == 200
    assert approved.json()["is_pending_approval"] is False
    assert await _event_ids(client, owner, cliq_id) == [event["id"]]

    again = await client.post(f"/api/parent/events/{event['id']}/approve", headers=parent.headers)
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "EVENT_NOT_PENDING"


async def test_rejected_event_is_removed(client, family_cliq):
    _, parent, child, cliq_id = family_cliq
    event = await _create_event(client, child, cliq_id)

    response = await client.post(f"/api/parent/events/{event['id']}/reject", headers=parent.headers)

    assert response.status_code == 200
    assert await _event_ids(client, child, cliq_id) == []
    assert (await client.get("/api/parent/pending-events", headers=parent.headers)).json() == []


async def test_only_the_childs_parents_decide(client, family_cliq):
    owner, _, child, cliq_id = family_cliq
    event = await _create_event(client, child, cliq_id)

    response = await client.post(f"/api/parent/events/{event['id']}/approve", headers=owner.headers)

    assert response.status_code == 403


async def test_child_without_event_permission(client, family_cliq):
    _, parent, child, cliq_id = family_cliq
    await client.post(
        "/api/parent/settings/update",
        json={"child_id": child.id, "settings": {"can_create_events": False}},
        headers=parent.headers,
    )

    response = await client.post(f"/api/cliqs/{cliq_id}/events", json=_event_body(), headers=child.headers)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "EVENT_NOT_PERMITTED"


async def test_child_event_without_approval_setting(client, family_cliq):
    owner, parent, child, cliq_id = family_cliq
    await client.post(
        "/api/parent/settings/update",
        json={"child_id": child.id, "settings": {"events_require_approval": False}},
        headers=parent.headers,
    )

    event = await _create_event(client, child, cliq_id)

    assert event["is_pending_approval"] is False
    assert await _event_ids(client, owner, cliq_id) == [event["id"]]


async def test_rsvp_is_one_answer_per_member(client, family_cliq):
    owner, _, child, cliq_id = family_cliq
    event = await _create_event(client, owner, cliq_id, title="Game day")

    await client.post(f"/api/events/{event['id']}/rsvp", json={"status": "going"}, headers=owner.headers)
    await client.post(f"/api/events/{event['id']}/rsvp", json={"status": "maybe"}, headers=child.headers)
    changed = await client.post(
        f"/api/events/{event['id']}/rsvp",
        json={"status": "raincheck"},
        headers=owner.headers,
    )
    assert changed.json() == {"event_id": event["id"], "status": "raincheck"}

    [listed] = (await client.get(f"/api/cliqs/{cliq_id}/events", headers=owner.headers)).json()
    assert listed["rsvps"] == {"going": 0, "maybe": 1, "raincheck": 1}
    assert listed["my_rsvp"] == "raincheck"


async def test_hidden_event_cannot_be_answered(client, family_cliq):
    owner, _, child, cliq_id = family_cliq
    event = await _create_event(client, child, cliq_id)

    response = await client.post(f"/api/events/{event['id']}/rsvp", json={"status": "going"}, headers=owner.headers)

    assert response.status_code == 404


async def test_event_must_end_after_start(client, family_cliq):
    owner, _, _, cliq_id = family_cliq
    body = _event_body()
    body["ends_at"], body["starts_at"] = body["starts_at"], body["ends_at"]

    response = await client.post(f"/api/cliqs/{cliq_id}/events", json=body, headers=owner.headers)

    assert response.status_code == 400


async def test_creator_deletes_event(client, family_cliq):
    owner, _, _, cliq_id = family_cliq
    event = await _create_event(client, owner, cliq_id)

    response = await client.delete(f"/api/events/{event['id']}", headers=owner.headers)

    assert response.status_code == 204
    assert await _event_ids(client, owner, cliq_id) == []
    assert (await client.delete(f"/api/events/{event['id']}", headers=owner.headers)).status_code == 404


async def test_member_cannot_delete_someone_elses_event(client, family_cliq):
    owner, _, child, cliq_id = family_cliq
    event = await _create_event(client, owner, cliq_id)

    response = await client.delete(f"/api/events/{event['id']}", headers=child.headers)

    assert response.status_code == 403
    assert await _event_ids(client, owner, cliq_id) == [event["id"]]


async def test_owner_and_parent_can_delete_a_childs_event(client, family_cliq):
    owner, parent, child, cliq_id = family_cliq
    approved = await _create_event(client, child, cliq_id, title="Movie night")
    await client.post(f"/api/parent/events/{approved['id']}/approve", headers=parent.headers)
    pending = await _create_event(client, child, cliq_id, title="Sleepover")

    assert (await client.delete(f"/api/events/{approved['id']}", headers=owner.headers)).status_code == 204
    assert (await client.delete(f"/api/events/{pending['id']}", headers=parent.headers)).status_code == 204
    assert await _event_ids(client, child, cliq_id) == []

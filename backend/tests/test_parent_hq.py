from tests.factories import onboard_parent_with_child, sign_up


async def _first_child(client, parent):
    response = await client.get("/api/parent/children", headers=parent.headers)
    assert response.status_code == 200
    return response.json()[0]


async def test_children_list(client, outbox):
    parent, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")

    response = await client.get("/api/parent/children", headers=parent.headers)

    [summary] = response.json()
    assert summary["id"] == child.id
    assert summary["username"] == "kiddo"
    assert summary["link_role"] == "primary"
    assert summary["settings"]["can_create_private_cliqs"] is True


async def test_unlinked_parent_sees_not_found(client, outbox):
    _, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")
    stranger = await sign_up(client, "stranger@family.io")

    response = await client.get(f"/api/parent/children/{child.id}", headers=stranger.headers)

    assert response.status_code == 404


async def test_update_settings_changes_only_given_fields(client, outbox):
    parent, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")

    response = await client.post(
        "/api/parent/settings/update",
        json={"child_id": child.id, "settings": {"can_send_invites": True, "can_invite_children": True}},
        headers=parent.headers,
    )

    assert response.status_code == 200
    settings = response.json()
    assert settings["can_send_invites"] is True
    assert settings["can_invite_children"] is True
    assert settings["can_invite_adults"] is False
    assert settings["can_create_private_cliqs"] is True


async def test_activity_log_merges_audit_and_activity(client, outbox):
    parent, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")
    await client.post(
        "/api/parent/settings/update",
        json={"child_id": child.id, "settings": {"can_share_youtube": True}},
        headers=parent.headers,
    )

    response = await client.get(
        "/api/parent/activity-logs",
        params={"child_id": child.id},
        headers=parent.headers,
    )

    assert response.status_code == 200
    entries = response.json()["entries"]
    actions = {(entry["source"], entry["action"]) for entry in entries}
    assert ("audit", "APPROVE_CHILD") in actions
    assert ("audit", "UPDATE_SETTINGS") in actions
    assert ("activity", "sign_in") in actions
    update = next(entry for entry in entries if entry["action"] == "UPDATE_SETTINGS")
    assert update["detail"] == {"can_share_youtube": True}


async def test_add_and_remove_parent(client, outbox):
    parent, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")

    added = await client.post(
        "/api/parent/children/add-parent",
        json={"child_id": child.id, "email": "Grandma@Family.io", "role": "guardian"},
        headers=parent.headers,
    )
    assert added.status_code == 201
    link = added.json()
    assert link["email"] == "grandma@family.io"
    assert link["type"] == "guardian"
    assert link["permissions"]["can_change_settings"] is False
    assert len(outbox.sent_to("grandma@family.io")) == 1

    duplicate = await client.post(
        "/api/parent/children/add-parent",
        json={"child_id": child.id, "email": "grandma@family.io", "role": "secondary"},
        headers=parent.headers,
    )
    assert duplicate.status_code == 409

    removed = await client.post(
        "/api/parent/children/remove-parent",
        json={"child_id": child.id, "link_id": link["id"]},
        headers=parent.headers,
    )
    assert removed.status_code == 200

    parents = await client.get(f"/api/parent/children/{child.id}/parents", headers=parent.headers)
    assert [entry["role"] for entry in parents.json()] == ["primary"]


async def test_primary_role_cannot_be_added(client, outbox):
    parent, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")

    response = await client.post(
        "/api/parent/children/add-parent",
        json={"child_id": child.id, "email": "other@family.io", "role": "primary"},
        headers=parent.headers,
    )

    assert response.status_code == 400


async def test_last_parent_cannot_be_removed(client, outbox):
    parent, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")
    [link] = (await client.get(f"/api/parent/children/{child.id}/parents", headers=parent.headers)).json()

    response = await client.post(
        "/api/parent/children/remove-parent",
        json={"child_id": child.id, "link_id": link["id"]},
        headers=parent.headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "LAST_PARENT"


async def test_secondary_parent_can_view_but_not_change(client, outbox):
    parent, child = await onboard_parent_with_child(client, outbox, "jordan@family.io", "kiddo")
    await client.post(
        "/api/parent/children/add-parent",
        json={"child_id": child.id, "email": "co@family.io"},
        headers=parent.headers,
    )
    co_parent = await sign_up(client, "co@family.io")

    summary = await _first_child(client, co_parent)
    assert summary["link_role"] == "secondary"

    logs = await client.get(
        "/api/parent/activity-logs",
        params={"child_id": child.id},
        headers=co_parent.headers,
    )
    assert logs.status_code == 200

    response = await client.post(
        "/api/parent/settings/update",
        json={"child_id": child.id, "settings": {"can_send_invites": True}},
        headers=co_parent.headers,
    )
    assert response.status_code == 403

    links = (await client.get(f"/api/parent/children/{child.id}/parents", headers=co_parent.headers)).json()
    primary = next(link for link in links if link["role"] == "primary")
    remove = await client.post(
        "/api/parent/children/remove-parent",
        json={"child_id": child.id, "link_id": primary["id"]},
        headers=co_parent.headers,
    )
    assert remove.status_code == 403

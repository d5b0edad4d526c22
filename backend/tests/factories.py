"""
Flow helpers for the API tests.

Each helper drives the public endpoints the way the web app does and
returns what later steps need. Session cookies are cleared after every
sign-in so each request authenticates with the explicit bearer header.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional
from uuid import UUID

from httpx import AsyncClient
from sqlalchemy import update

from cliqstr.shared.adapters.email_adapter import EmailAdapter
from cliqstr.shared.db.session import AsyncSessionLocal
from cliqstr.shared.models import Account

PASSWORD = "correct-horse-9"
CHILD_PASSWORD = "kidpass1"
ADULT_BIRTHDATE = "1984-03-09"
CHILD_BIRTHDATE = date(date.today().year - 10, 6, 1).isoformat()

TOKEN_PATTERN = re.compile(r"token=([\w\-]+)")


@dataclass
class Member:
    id: str
    email: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def as_member(client: AsyncClient, body: dict) -> Member:
    client.cookies.clear()
    return Member(id=body["user"]["id"], email=body["user"]["email"], token=body["access_token"])


async def sign_up(client: AsyncClient, email: str, first_name: str = "Robin", last_name: str = "Hale") -> Member:
    response = await client.post(
        "/api/auth/sign-up",
        json={
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "password": PASSWORD,
            "birthdate": ADULT_BIRTHDATE,
        },
    )
    assert response.status_code == 201, response.text
    return as_member(client, response.json())


async def sign_in(client: AsyncClient, identifier: str, password: str = PASSWORD) -> Member:
    response = await client.post("/api/auth/sign-in", json={"email": identifier, "password": password})
    assert response.status_code == 200, response.text
    return as_member(client, response.json())


async def select_plan(
    client: AsyncClient,
    member: Member,
    plan: str = "test",
    approval_token: Optional[str] = None,
) -> dict:
    payload = {"plan": plan}
    if approval_token:
        payload["approval_token"] = approval_token
    response = await client.post("/api/plans/select", json=payload, headers=member.headers)
    assert response.status_code == 200, response.text
    return response.json()


async def create_cliq(client: AsyncClient, owner: Member, name: str = "Saturday Soccer", privacy: str = "private") -> str:
    response = await client.post(
        "/api/cliqs",
        json={"name": name, "privacy": privacy},
        headers=owner.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def create_post(client: AsyncClient, author: Member, cliq_id: str, content: str) -> str:
    response = await client.post(
        f"/api/cliqs/{cliq_id}/posts",
        json={"content": content},
        headers=author.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


def latest_token(outbox: EmailAdapter, address: str) -> str:
    """Approval token from the newest email sent to an address."""
    messages = outbox.sent_to(address)
    assert messages, f"no email sent to {address}"
    match = TOKEN_PATTERN.search(messages[-1].text)
    assert match, messages[-1].text
    return match.group(1)


async def request_child_approval(
    client: AsyncClient,
    outbox: EmailAdapter,
    parent_email: str,
    first_name: str = "Milo",
    **extra: str,
) -> str:
    response = await client.post(
        "/api/auth/child-signup",
        json={
            "child_first_name": first_name,
            "child_last_name": "Hale",
            "child_birthdate": CHILD_BIRTHDATE,
            "parent_email": parent_email,
            **extra,
        },
    )
    assert response.status_code == 201, response.text
    return latest_token(outbox, parent_email)


def child_payload(username: str, **overrides) -> dict:
    payload = {
        "username": username,
        "password": CHILD_PASSWORD,
        "first_name": "Milo",
        "last_name": "Hale",
        "birthdate": CHILD_BIRTHDATE,
        "red_alert_accepted": True,
    }
    payload.update(overrides)
    return payload


async def create_child(
    client: AsyncClient,
    parent: Member,
    username: str,
    approval_token: Optional[str] = None,
    invite_code: Optional[str] = None,
    **overrides,
) -> dict:
    payload = child_payload(username, **overrides)
    if approval_token:
        payload["approval_token"] = approval_token
    if invite_code:
        payload["invite_code"] = invite_code
    response = await client.post("/api/parent/children", json=payload, headers=parent.headers)
    assert response.status_code == 201, response.text
    return response.json()


async def onboard_parent_with_child(
    client: AsyncClient,
    outbox: EmailAdapter,
    parent_email: str,
    username: str,
    permissions: Optional[dict] = None,
    **child_fields,
) -> tuple[Member, Member]:
    """
    Full direct-signup flow: child request, parent sign-up from the link,
    plan, child creation. Returns (parent, child), both signed in.
    """
    token = await request_child_approval(client, outbox, parent_email)
    response = await client.post(
        "/api/parent-approval/signup",
        json={
            "first_name": "Jordan",
            "last_name": "Hale",
            "email": parent_email,
            "password": PASSWORD,
            "birthdate": ADULT_BIRTHDATE,
            "approval_token": token,
        },
    )
    assert response.status_code == 201, response.text
    parent = as_member(client, response.json())

    await select_plan(client, parent, approval_token=token)
    await create_child(
        client, parent, username, approval_token=token, permissions=permissions or {}, **child_fields
    )
    child = await sign_in(client, username, CHILD_PASSWORD)
    return parent, child


async def join_cliq(client: AsyncClient, owner: Member, cliq_id: str, member: Member) -> None:
    """Invite an adult by email and accept as them (member must have a plan)."""
    response = await client.post(
        "/api/invites",
        json={"cliq_id": cliq_id, "invite_type": "adult", "invitee_email": member.email},
        headers=owner.headers,
    )
    assert response.status_code == 201, response.text
    code = response.json()["join_code"]
    response = await client.post("/api/invites/accept", json={"code": code}, headers=member.headers)
    assert response.status_code == 200, response.text
    assert response.json()["joined"] is True


async def invite_child_into_cliq(
    client: AsyncClient,
    outbox: EmailAdapter,
    owner: Member,
    cliq_id: str,
    parent: Member,
    username: str,
    first_name: str = "Nia",
) -> Member:
    """
    Child invite from the cliq owner, approved by a parent who already has
    a plan. Returns the new child, signed in.
    """
    response = await client.post(
        "/api/invites",
        json={
            "cliq_id": cliq_id,
            "invite_type": "child",
            "parent_email": parent.email,
            "friend_first_name": first_name,
            "friend_last_name": "Hale",
            "child_birthdate": CHILD_BIRTHDATE,
        },
        headers=owner.headers,
    )
    assert response.status_code == 201, response.text
    token = latest_token(outbox, parent.email)

    created = await create_child(client, parent, username, approval_token=token, first_name=first_name)
    assert created["joined_cliq_id"] == cliq_id
    return await sign_in(client, username, CHILD_PASSWORD)


async def db_scalars(statement) -> list:
    """Run a SELECT in its own short session."""
    async with AsyncSessionLocal() as session:
        return list((await session.execute(statement)).scalars().all())


async def db_execute(statement) -> None:
    """Run a write in its own short session and commit it."""
    async with AsyncSessionLocal() as session:
        await session.execute(statement)
        await session.commit()


async def set_role(user_id: str, role: str) -> None:
    """Change an account role directly; there is no endpoint for Admin."""
    await db_execute(update(Account).where(Account.user_id == UUID(user_id)).values(role=role))

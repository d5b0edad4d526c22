"""
Notification Service

Builds the transactional emails of the onboarding and moderation flows and
hands them to the EmailAdapter.

Delivery Policy:
================
Every send goes through _deliver(), which never raises. A provider failure
is logged as `email_send_failed` with the recipient masked and reported
back as False, so a single bad address never aborts an invite, an approval
or a Red Alert fan-out.

Messages:
=========
    send_approval_request()   → parent gets /parent-approval?token=...
    send_resume_link()        → parent asked for their link again
    send_invite()             → adult invitee gets /invite/accept?code=...
    send_parent_link_invite() → co-parent added to a child
    send_password_reset()     → /reset-password?code=...
    send_red_alert_to_parent()
    send_red_alert_to_moderators()
"""

from typing import Optional
from urllib.parse import urlencode

from cliqstr.config.settings import settings
from cliqstr.shared.adapters.email_adapter import EmailAdapter, EmailMessage, get_email_adapter
from cliqstr.shared.core.exceptions import ExternalServiceError
from cliqstr.shared.core.logging import get_logger, mask_email
from cliqstr.shared.models.invite import Invite
from cliqstr.shared.models.parent import ParentApproval
from cliqstr.shared.models.post import RedAlert
from cliqstr.shared.utils.constants import (
    INVITE_ACCEPT_PATH,
    PARENT_APPROVAL_PATH,
    PARENTS_HQ_PATH,
    RESET_PASSWORD_PATH,
)

logger = get_logger("cliqstr.notifications")


def build_url(path: str, **params: str) -> str:
    """Absolute web-app URL for an email link."""
    url = f"{settings.BASE_URL.rstrip('/')}{path}"
    if params:
        url += "?" + urlencode(params)
    return url


class NotificationService:
    """Outbound email for onboarding and Red Alert flows."""

    def __init__(self, adapter: Optional[EmailAdapter] = None) -> None:
        self.adapter = adapter or get_email_adapter()

    async def _deliver(self, message: EmailMessage, kind: str) -> bool:
        try:
            await self.adapter.send(message)
        except ExternalServiceError as e:
            logger.warning(
                "email_send_failed",
                kind=kind,
                to=mask_email(message.to),
                error=e.message,
            )
            return False

        logger.info("email_sent", kind=kind, to=mask_email(message.to))
        return True

    # ═══════════════════════════════════════════════════════════════════════════
    # ONBOARDING
    # ═══════════════════════════════════════════════════════════════════════════

    async def send_approval_request(self, approval: ParentApproval) -> bool:
        link = build_url(PARENT_APPROVAL_PATH, token=approval.approval_token)
        if approval.cliq_name and approval.inviter_name:
            intro = (
                f"{approval.inviter_name} invited {approval.child_first_name} "
                f"to join the cliq \"{approval.cliq_name}\" on Cliqstr."
            )
        else:
            intro = f"{approval.child_first_name} would like to join Cliqstr."

        text = (
            f"{intro}\n\n"
            "Children need a parent's approval before their account is created.\n"
            f"Review the request here: {link}\n\n"
            f"This link expires in {settings.APPROVAL_TOKEN_EXPIRE_HOURS} hours."
        )
        message = EmailMessage(
            to=approval.parent_email,
            subject=f"Approve {approval.child_first_name}'s Cliqstr account",
            text=text,
            html=f"<p>{intro}</p><p><a href=\"{link}\">Review the request</a></p>",
            tags={"category": "parent_approval", "context": approval.context},
        )
        return await self._deliver(message, "parent_approval")

    async def send_resume_link(self, approval: ParentApproval) -> bool:
        link = build_url(PARENT_APPROVAL_PATH, token=approval.approval_token)
        message = EmailMessage(
            to=approval.parent_email,
            subject="Your Cliqstr approval link",
            text=(
                f"Here is the link to finish setting up {approval.child_first_name}'s account:\n"
                f"{link}"
            ),
            tags={"category": "approval_resend"},
        )
        return await self._deliver(message, "approval_resend")

    async def send_invite(self, invite: Invite, cliq_name: str, inviter_name: str) -> bool:
        link = build_url(INVITE_ACCEPT_PATH, code=invite.join_code)
        text = f"{inviter_name} invited you to join \"{cliq_name}\" on Cliqstr.\n\n"
        if invite.invite_note:
            text += f"\"{invite.invite_note}\"\n\n"
        text += f"Accept the invite: {link}\nOr enter the code {invite.join_code}."

        message = EmailMessage(
            to=invite.invitee_email,
            subject=f"You're invited to {cliq_name}",
            text=text,
            html=f"<p>{inviter_name} invited you to join <b>{cliq_name}</b>.</p>"
            f"<p><a href=\"{link}\">Accept the invite</a></p>",
            tags={"category": "invite"},
        )
        return await self._deliver(message, "invite")

    async def send_parent_link_invite(self, email: str, child_username: str, added_by: str) -> bool:
        link = build_url(PARENTS_HQ_PATH)
        message = EmailMessage(
            to=email,
            subject="You were added as a parent on Cliqstr",
            text=(
                f"{added_by} added you as a parent of {child_username} on Cliqstr.\n"
                f"Sign in or create an account with this email to see Parents HQ: {link}"
            ),
            tags={"category": "parent_link"},
        )
        return await self._deliver(message, "parent_link")

    async def send_password_reset(self, email: str, reset_token: str) -> bool:
        link = build_url(RESET_PASSWORD_PATH, code=reset_token)
        message = EmailMessage(
            to=email,
            subject="Reset your Cliqstr password",
            text=(
                "Someone asked to reset the password for this Cliqstr account.\n"
                f"Choose a new password here: {link}\n\n"
                f"This link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. "
                "If you did not ask for it, you can ignore this email."
            ),
            tags={"category": "password_reset"},
        )
        return await self._deliver(message, "password_reset")

    # ═══════════════════════════════════════════════════════════════════════════
    # RED ALERT
    # ═══════════════════════════════════════════════════════════════════════════

    async def send_red_alert_to_parent(self, email: str, alert: RedAlert, cliq_name: str) -> bool:
        message = EmailMessage(
            to=email,
            subject=f"Red Alert in {cliq_name}",
            text=(
                f"A Red Alert was raised in \"{cliq_name}\", a cliq your child belongs to.\n\n"
                f"Reason: {alert.reason}\n"
                f"Posts hidden pending review: {alert.suspended_content_count}\n\n"
                "Our safety team has been notified and is reviewing the report."
            ),
            tags={"category": "red_alert", "trigger": alert.trigger_type},
        )
        return await self._deliver(message, "red_alert_parent")

    async def send_red_alert_to_moderators(self, alert: RedAlert, cliq_name: str) -> bool:
        message = EmailMessage(
            to=settings.MODERATION_EMAIL,
            subject=f"[Red Alert] {cliq_name} ({alert.trigger_type})",
            text=(
                f"Red Alert {alert.id}\n"
                f"Cliq: {cliq_name} ({alert.cliq_id})\n"
                f"Trigger: {alert.trigger_type}\n"
                f"Reported by: {alert.triggered_by_id or 'automated moderation'}\n"
                f"Reason: {alert.reason}\n"
                f"Suspended posts: {alert.suspended_content_count}"
            ),
            tags={"category": "red_alert_moderation", "trigger": alert.trigger_type},
        )
        return await self._deliver(message, "red_alert_moderator")

"""
Invitation notifications.

Delivery is best-effort and happens after the share row is written; the
sharing service logs notifier failures and carries on. Two backends:

- ``LoggingNotifier`` renders the email and logs it (local dev)
- ``ArqNotifier`` enqueues ``send_invitation_email`` for the ARQ worker
"""

from __future__ import annotations

import html
from typing import Optional, Protocol

import structlog

from app.core.config import get_settings
from app.core.redis import get_arq_pool
from creator_hub_shared.schemas.common import ROLE_LABELS, ProjectRole

log = structlog.get_logger()


class Notifier(Protocol):
    async def send_invitation_email(
        self,
        to_email: str,
        project_name: str,
        role: str,
        accept_url: str,
        inviter_email: Optional[str] = None,
    ) -> None: ...


def build_accept_url(app_url: str, share_id: object) -> str:
    return f"{app_url.rstrip('/')}/projects?inviteId={share_id}"


def role_label(role: str) -> str:
    try:
        return ROLE_LABELS[ProjectRole(role)]
    except ValueError:
        return role


def render_invitation_email(
    project_name: str,
    role: str,
    accept_url: str,
    inviter_email: Optional[str] = None,
) -> tuple[str, str]:
    """Returns (subject, html). User-supplied values are HTML-escaped in the body."""
    subject = f"Invitation to collaborate on project: {project_name}"
    inviter_line = (
        f"<p>Invitation sent by: {html.escape(inviter_email)}</p>" if inviter_email else ""
    )
    body = (
        "<div>"
        "<h2>Project Invitation</h2>"
        "<p>You've been invited to collaborate on the project "
        f"<strong>{html.escape(project_name)}</strong> "
        f"with <strong>{html.escape(role_label(role))}</strong> access.</p>"
        f"{inviter_line}"
        f'<p><a href="{html.escape(accept_url, quote=True)}">Accept Invitation</a></p>'
        "<p>If you don't have an account yet, you'll be prompted to create one.</p>"
        "<p>If you did not expect this invitation, you can safely ignore this email.</p>"
        "</div>"
    )
    return subject, body


class LoggingNotifier:
    def __init__(self, from_address: str):
        self.from_address = from_address

    async def send_invitation_email(
        self,
        to_email: str,
        project_name: str,
        role: str,
        accept_url: str,
        inviter_email: Optional[str] = None,
    ) -> None:
        subject, _html = render_invitation_email(project_name, role, accept_url, inviter_email)
        log.info(
            "notifier.invitation_logged",
            to=to_email,
            sender=inviter_email or self.from_address,
            subject=subject,
            url=accept_url,
        )


class ArqNotifier:
    async def send_invitation_email(
        self,
        to_email: str,
        project_name: str,
        role: str,
        accept_url: str,
        inviter_email: Optional[str] = None,
    ) -> None:
        pool = await get_arq_pool()
        job = await pool.enqueue_job(
            "send_invitation_email",
            to_email,
            project_name,
            role,
            accept_url,
            inviter_email,
        )
        log.info(
            "notifier.invitation_enqueued",
            to=to_email,
            job_id=job.job_id if job else None,
        )


def get_notifier() -> Notifier:
    """FastAPI dependency for the configured notifier backend."""
    settings = get_settings()
    if settings.notifier_backend == "arq":
        return ArqNotifier()
    return LoggingNotifier(settings.invitation_from_address)

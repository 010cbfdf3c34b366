"""
ARQ background task: deliver project invitation emails.

Enqueued by ``ArqNotifier`` after a share row is written. Delivery
failures stay inside the worker; the share is never rolled back.
"""

from __future__ import annotations

from typing import Optional

import structlog
from arq.connections import RedisSettings

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.core.notifier import render_invitation_email

log = structlog.get_logger()


async def send_invitation_email(
    ctx: dict,
    to_email: str,
    project_name: str,
    role: str,
    accept_url: str,
    inviter_email: Optional[str] = None,
) -> dict:
    """Render the invitation and hand it to the mail transport.

    The transport is the log stream for now; returns what was sent.
    """
    settings = get_settings()
    subject, html = render_invitation_email(project_name, role, accept_url, inviter_email)
    sender = inviter_email or settings.invitation_from_address

    log.info(
        "invitation.email_sent",
        to=to_email,
        sender=sender,
        subject=subject,
        url=accept_url,
        job_try=ctx.get("job_try"),
    )
    return {"to": to_email, "from": sender, "subject": subject, "html": html}


async def startup(ctx: dict) -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration."""

    functions = [send_invitation_email]
    on_startup = startup
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
    # Notifications are best-effort; a failed job is not retried.
    max_tries = 1

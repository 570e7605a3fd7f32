"""
Push notification dispatch (MagicBell)

notify() is fire-and-forget: delivery problems are logged and reported as
False, never raised, so the operation that triggered the notification is
never blocked or failed by it.
"""

import logging
from typing import Optional

import httpx

from ..config import FRONTEND_URL, MAGICBELL_API_KEY, MAGICBELL_API_SECRET, MAGICBELL_API_URL

logger = logging.getLogger(__name__)

NOTIFY_TIMEOUT_SECONDS = 10.0


def _headers() -> dict:
    return {
        "X-MAGICBELL-API-KEY": MAGICBELL_API_KEY or "",
        "X-MAGICBELL-API-SECRET": MAGICBELL_API_SECRET or "",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


async def notify(
    recipient_email: Optional[str],
    title: str,
    body: str = "",
    action_url: Optional[str] = None,
) -> bool:
    """Send a single notification to one recipient by email"""
    if not recipient_email:
        logger.debug(f"⚠️ No recipient email for notification '{title}'")
        return False

    if not MAGICBELL_API_KEY or not MAGICBELL_API_SECRET:
        logger.warning("⚠️ MagicBell not configured - notification skipped")
        return False

    payload = {
        "broadcast": {
            "title": title,
            "content": body or "",
            "action_url": action_url or FRONTEND_URL,
            "recipients": [{"email": recipient_email}],
        }
    }

    try:
        async with httpx.AsyncClient(timeout=NOTIFY_TIMEOUT_SECONDS) as client:
            response = await client.post(
                f"{MAGICBELL_API_URL}/broadcasts", json=payload, headers=_headers()
            )
        if response.status_code >= 400:
            logger.error(
                f"❌ MagicBell rejected notification to {recipient_email}: "
                f"HTTP {response.status_code} {response.text[:200]}"
            )
            return False
    except httpx.HTTPError as e:
        logger.error(f"❌ Failed to send notification to {recipient_email}: {e}")
        return False

    logger.info(f"🔔 Notification '{title}' sent to {recipient_email}")
    return True

"""
Notification Service
Fans a refund ticket out to the support chat channels

Channels (each fires only when configured):
- Discord: embed posted to DISCORD_WEBHOOK_URL
- Slack: blocks with a "View Request" button, posted to SLACK_WEBHOOK_URL
- WhatsApp: text message through the WhatsApp Business Graph API

A failing channel is logged and reported as "failed"; it never raises.

Author: TM3
Date: 2026-03-07
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

import httpx

from toolsy.core.config import settings

logger = logging.getLogger(__name__)

WHATSAPP_GRAPH_URL = "https://graph.facebook.com/v17.0/{phone_number_id}/messages"
DISCORD_EMBED_COLOR = 0xff6b6b
DESCRIPTION_PREVIEW_LENGTH = 200
REQUEST_TIMEOUT = 10.0


def format_reason(reason: str) -> str:
    """'not-working' -> 'Not Working'; the rest of each word is left as is"""
    return ' '.join(word[:1].upper() + word[1:] for word in (reason or '').replace('-', ' ').split(' '))


def truncate_description(description: str, length: int = DESCRIPTION_PREVIEW_LENGTH) -> str:
    description = description or ''
    return description[:length] + '...' if len(description) > length else description


def review_url(ticket_id: str) -> str:
    return f"{settings.ADMIN_DASHBOARD_URL.rstrip('/')}/refund-requests/{ticket_id}"


def build_discord_payload(payload: dict) -> dict:
    embed = {
        "title": "🔔 New Refund Request",
        "color": DISCORD_EMBED_COLOR,
        "fields": [
            {"name": "📋 Ticket ID", "value": payload['ticketId'], "inline": True},
            {"name": "👤 Customer", "value": payload['name'], "inline": True},
            {"name": "📧 Email", "value": payload['email'], "inline": True},
            {"name": "🛒 Order ID", "value": payload['orderId'], "inline": True},
            {"name": "❓ Reason", "value": format_reason(payload['reason']), "inline": True},
            {"name": "📎 Proof Files", "value": f"{payload['proofCount']} files uploaded", "inline": True},
            {"name": "📝 Description", "value": truncate_description(payload['description']), "inline": False},
        ],
        "footer": {"text": "Toolsy Store Support System"},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return {"username": "Refund Bot", "embeds": [embed]}


def build_slack_payload(payload: dict) -> dict:
    summary = (
        f"*New Refund Request*\n\n"
        f"*Customer:* {payload['name']}\n"
        f"*Email:* {payload['email']}\n"
        f"*Order ID:* {payload['orderId']}\n"
        f"*Reason:* {payload['reason']}\n"
        f"*Ticket ID:* {payload['ticketId']}"
    )
    return {
        "text": f"🔔 New Refund Request: {payload['ticketId']}",
        "blocks": [
            {"type": "section", "text": {"type": "mrkdwn", "text": summary}},
            {
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "text": {"type": "plain_text", "text": "View Request"},
                        "url": review_url(payload['ticketId']),
                        "style": "primary",
                    }
                ],
            },
        ],
    }


def build_whatsapp_payload(payload: dict) -> dict:
    body = (
        f"🔔 New Refund Request\n\n"
        f"Ticket: {payload['ticketId']}\n"
        f"Customer: {payload['name']}\n"
        f"Email: {payload['email']}\n"
        f"Order: {payload['orderId']}\n"
        f"Reason: {payload['reason']}\n\n"
        f"Review: {review_url(payload['ticketId'])}"
    )
    return {
        "messaging_product": "whatsapp",
        "to": settings.SUPPORT_WHATSAPP_NUMBER,
        "type": "text",
        "text": {"body": body},
    }


class NotificationService:
    """Posts refund notifications to the configured webhooks"""

    async def _post(
        self,
        client: httpx.AsyncClient,
        channel: str,
        url: str,
        body: dict,
        headers: Optional[Dict[str, str]] = None
    ) -> str:
        try:
            response = await client.post(
                url,
                json=body,
                headers={"Content-Type": "application/json", **(headers or {})},
                timeout=REQUEST_TIMEOUT
            )
            response.raise_for_status()
            logger.info(f"{channel} notification sent")
            return "sent"

        except httpx.HTTPStatusError as e:
            logger.error(f"{channel} notification failed: {e.response.status_code} - {e.response.text}")
            return "failed"
        except Exception as e:
            logger.error(f"{channel} notification error: {e}")
            return "failed"

    async def notify_refund_request(self, payload: dict) -> Dict[str, str]:
        """
        Send a refund ticket to every configured channel

        Args:
            payload: ticketId, name, email, orderId, reason, description, proofCount

        Returns:
            {channel: "sent" | "failed"} for the channels that were attempted
        """
        results: Dict[str, str] = {}

        async with httpx.AsyncClient() as client:
            if settings.DISCORD_WEBHOOK_URL:
                results['discord'] = await self._post(
                    client, 'Discord', settings.DISCORD_WEBHOOK_URL, build_discord_payload(payload)
                )

            if settings.SLACK_WEBHOOK_URL:
                results['slack'] = await self._post(
                    client, 'Slack', settings.SLACK_WEBHOOK_URL, build_slack_payload(payload)
                )

            if settings.WHATSAPP_ACCESS_TOKEN and settings.WHATSAPP_PHONE_NUMBER_ID:
                results['whatsapp'] = await self._post(
                    client,
                    'WhatsApp',
                    WHATSAPP_GRAPH_URL.format(phone_number_id=settings.WHATSAPP_PHONE_NUMBER_ID),
                    build_whatsapp_payload(payload),
                    headers={"Authorization": f"Bearer {settings.WHATSAPP_ACCESS_TOKEN}"}
                )

        if not results:
            logger.warning(f"No notification channel configured for ticket {payload.get('ticketId')}")
        return results

"""
Transactional email service (Resend HTTP API).

One delivery attempt per call. Failures raise ExternalServiceError; the
caller reports them to the user as a single failed action.
"""
from typing import List, Optional

import httpx
from pydantic import BaseModel

from config import settings
from core.errors import ExternalServiceError


class EmailMessage(BaseModel):
    """A composed email ready for delivery."""
    to: List[str]
    subject: str
    html: str
    reply_to: Optional[str] = None


async def send_email(message: EmailMessage, client: Optional[httpx.AsyncClient] = None) -> str:
    """
    Send an email via Resend. Returns the provider message id.
    """
    if not settings.resend_api_key:
        raise ExternalServiceError("email", "Email provider not configured")

    payload = {
        "from": settings.email_from,
        "to": message.to,
        "subject": message.subject,
        "html": message.html,
    }
    if message.reply_to:
        payload["reply_to"] = message.reply_to

    url = f"{settings.resend_api_url}/emails"
    headers = {"Authorization": f"Bearer {settings.resend_api_key}"}

    try:
        if client is not None:
            response = await client.post(url, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=15.0) as http:
                response = await http.post(url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        print(f"[Email] Delivery to {message.to} failed: {e}")
        raise ExternalServiceError("email", str(e)) from e

    if response.status_code >= 300:
        print(f"[Email] Provider rejected message to {message.to}: {response.status_code} {response.text}")
        raise ExternalServiceError("email", f"HTTP {response.status_code}")

    message_id = response.json().get("id", "")
    print(f"[Email] Sent '{message.subject}' to {message.to} (id={message_id})")
    return message_id

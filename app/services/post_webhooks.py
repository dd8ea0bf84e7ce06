"""Outbound webhooks for committed post changes."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Protocol

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

POST_APPROVED_EVENT = "post.review_approved"
POST_AI_REVIEW_PROMOTED_EVENT = "post.ai_review_promoted"
POST_SOURCE_UPDATED_EVENT = "post.source_updated"
POST_REVERTED_EVENT = "post.reverted"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def sign_post_webhook_payload(
    *,
    secret: str,
    timestamp: str,
    raw_body: bytes,
) -> str:
    """Create HMAC signature for an outbound webhook body."""
    message = timestamp.encode("utf-8") + b"." + raw_body
    digest = hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def build_post_webhook_body(
    *,
    event_type: str,
    payload: dict[str, Any],
    occurred_at: datetime,
) -> dict[str, Any]:
    return {
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "data": payload,
    }


class WebhookDispatcher(Protocol):
    """Delivers post events to subscribers."""

    async def dispatch(self, event_type: str, payload: dict[str, Any]) -> None:
        """Deliver one event; raise on failure."""


class NullWebhookDispatcher:
    """Dispatcher used when no webhook endpoint is configured."""

    async def dispatch(self, event_type: str, payload: dict[str, Any]) -> None:
        logger.debug("Post webhook skipped, no endpoint configured", extra={"event_type": event_type})


class HttpWebhookDispatcher:
    """Sends signed JSON webhooks with httpx."""

    def __init__(
        self,
        *,
        endpoint: str,
        secret: str | None = None,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.secret = secret
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    async def dispatch(self, event_type: str, payload: dict[str, Any]) -> None:
        occurred_at = _utc_now()
        body = build_post_webhook_body(
            event_type=event_type,
            payload=payload,
            occurred_at=occurred_at,
        )
        raw_body = json.dumps(body, separators=(",", ":"), ensure_ascii=False, default=str).encode(
            "utf-8"
        )
        timestamp = str(int(occurred_at.timestamp()))
        headers = {
            "Content-Type": "application/json",
            "X-Strata-Event": event_type,
            "X-Strata-Timestamp": timestamp,
        }
        if self.secret:
            headers["X-Strata-Signature"] = sign_post_webhook_payload(
                secret=self.secret,
                timestamp=timestamp,
                raw_body=raw_body,
            )

        own_client = self._http_client is None
        client = self._http_client or httpx.AsyncClient(
            timeout=self.timeout_seconds,
            follow_redirects=True,
        )
        try:
            response = await client.post(self.endpoint, content=raw_body, headers=headers)
            response.raise_for_status()
        finally:
            if own_client:
                await client.aclose()

        logger.info(
            "Post webhook delivered",
            extra={"event_type": event_type, "http_status": response.status_code},
        )


@lru_cache
def get_webhook_dispatcher() -> WebhookDispatcher:
    """Return the configured webhook dispatcher."""
    if not settings.post_webhooks_enabled:
        return NullWebhookDispatcher()
    return HttpWebhookDispatcher(
        endpoint=str(settings.post_webhook_url),
        secret=settings.post_webhook_secret,
        timeout_seconds=settings.post_webhook_timeout_seconds,
    )

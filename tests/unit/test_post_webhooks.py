"""Unit tests for outbound post webhooks."""

from __future__ import annotations

import json

import httpx
import pytest

from app.services.post_webhooks import (
    POST_APPROVED_EVENT,
    HttpWebhookDispatcher,
    NullWebhookDispatcher,
    sign_post_webhook_payload,
)


def test_signature_covers_timestamp_and_body() -> None:
    first = sign_post_webhook_payload(secret="s3cret", timestamp="100", raw_body=b"{}")
    second = sign_post_webhook_payload(secret="s3cret", timestamp="101", raw_body=b"{}")

    assert first.startswith("sha256=")
    assert first != second


@pytest.mark.asyncio
async def test_http_dispatcher_posts_signed_body() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(204)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        dispatcher = HttpWebhookDispatcher(
            endpoint="https://hooks.example.com/posts",
            secret="s3cret",
            http_client=client,
        )
        await dispatcher.dispatch(POST_APPROVED_EVENT, {"post_id": "post_1"})

    assert len(captured) == 1
    request = captured[0]
    body = json.loads(request.content)
    assert body["event_type"] == POST_APPROVED_EVENT
    assert body["data"] == {"post_id": "post_1"}
    assert request.headers["X-Strata-Event"] == POST_APPROVED_EVENT
    expected = sign_post_webhook_payload(
        secret="s3cret",
        timestamp=request.headers["X-Strata-Timestamp"],
        raw_body=request.content,
    )
    assert request.headers["X-Strata-Signature"] == expected


@pytest.mark.asyncio
async def test_http_dispatcher_without_secret_sends_no_signature() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        dispatcher = HttpWebhookDispatcher(endpoint="https://hooks.example.com/posts", http_client=client)
        await dispatcher.dispatch(POST_APPROVED_EVENT, {"post_id": "post_1"})

    assert "X-Strata-Signature" not in captured[0].headers


@pytest.mark.asyncio
async def test_http_dispatcher_raises_on_server_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        dispatcher = HttpWebhookDispatcher(endpoint="https://hooks.example.com/posts", http_client=client)
        with pytest.raises(httpx.HTTPStatusError):
            await dispatcher.dispatch(POST_APPROVED_EVENT, {"post_id": "post_1"})


@pytest.mark.asyncio
async def test_null_dispatcher_is_a_no_op() -> None:
    await NullWebhookDispatcher().dispatch(POST_APPROVED_EVENT, {"post_id": "post_1"})

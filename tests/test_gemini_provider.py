from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest

from imagen_mcp.providers.base_provider import ImageProviderError
from imagen_mcp.providers.gemini_provider import GeminiImagenProvider


def _provider(handler, requests: List[httpx.Request]) -> GeminiImagenProvider:
    def _record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    return GeminiImagenProvider(
        api_key="test-key",
        model="imagen-4.0-generate-001",
        base_url="https://example.test/v1beta/",
        client=client,
    )


def test_generate_images_posts_predict_request() -> None:
    requests: List[httpx.Request] = []
    provider = _provider(
        lambda request: httpx.Response(
            200,
            json={
                "predictions": [
                    {"bytesBase64Encoded": "AAA=", "mimeType": "image/png"},
                    {"bytesBase64Encoded": "BBB=", "mimeType": "image/png"},
                ]
            },
        ),
        requests,
    )

    images = asyncio.run(
        provider.generate_images(
            "A cat", {"numberOfImages": 2, "aspectRatio": "9:16", "sampleImageSize": "2K"}
        )
    )

    assert images == ["AAA=", "BBB="]
    assert len(requests) == 1
    request = requests[0]
    assert str(request.url) == "https://example.test/v1beta/models/imagen-4.0-generate-001:predict"
    assert request.headers["x-goog-api-key"] == "test-key"
    assert json.loads(request.content) == {
        "instances": [{"prompt": "A cat"}],
        "parameters": {"sampleCount": 2, "aspectRatio": "9:16", "sampleImageSize": "2K"},
    }


def test_predictions_without_payload_are_skipped() -> None:
    provider = _provider(
        lambda request: httpx.Response(
            200,
            json={"predictions": [{"raiFilteredReason": "blocked"}, {"bytesBase64Encoded": "CCC="}]},
        ),
        [],
    )

    assert asyncio.run(provider.generate_images("A cat", {"numberOfImages": 2})) == ["CCC="]


def test_missing_predictions_yield_empty_list() -> None:
    provider = _provider(lambda request: httpx.Response(200, json={}), [])

    assert asyncio.run(provider.generate_images("A cat", {"numberOfImages": 1})) == []


def test_error_status_raises_provider_error() -> None:
    provider = _provider(
        lambda request: httpx.Response(400, text="aspectRatio 2:1 is not supported"),
        [],
    )

    with pytest.raises(ImageProviderError) as exc_info:
        asyncio.run(provider.generate_images("A cat", {"numberOfImages": 1}))

    assert "400" in str(exc_info.value)
    assert "aspectRatio 2:1 is not supported" in str(exc_info.value)


def test_invalid_json_raises_provider_error() -> None:
    provider = _provider(lambda request: httpx.Response(200, text="not json"), [])

    with pytest.raises(ImageProviderError):
        asyncio.run(provider.generate_images("A cat", {"numberOfImages": 1}))


def test_injected_client_is_not_closed() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    provider = GeminiImagenProvider(api_key="k", model="m", client=client)

    asyncio.run(provider.close())

    assert client.is_closed is False

from __future__ import annotations

import base64
from typing import Any, Callable, Dict, List, Optional

import pytest

from imagen_mcp.providers.base_provider import BaseImageProvider


class FakeProvider(BaseImageProvider):
    def __init__(self, payloads: List[str], error: Optional[Exception] = None) -> None:
        self.payloads = payloads
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    async def generate_images(self, prompt: str, config: Dict[str, Any]) -> List[str]:
        self.calls.append({"prompt": prompt, "config": dict(config)})
        if self.error is not None:
            raise self.error
        return list(self.payloads)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    """Builds a provider that answers with the given raw image bytes, base64 encoded."""

    def _make(*images: bytes, error: Optional[Exception] = None) -> FakeProvider:
        payloads = [base64.b64encode(image).decode("ascii") for image in images]
        return FakeProvider(payloads, error=error)

    return _make


@pytest.fixture
def fake_provider(make_provider) -> FakeProvider:
    return make_provider(b"image-0")

import httpx
import logging
from typing import Any, Dict, List, Optional

from imagen_mcp.providers.base_provider import BaseImageProvider, ImageProviderError

logger = logging.getLogger(__name__)

# Request configuration keys mapped onto the :predict "parameters" object.
PARAMETER_NAMES = {
    "numberOfImages": "sampleCount",
    "aspectRatio": "aspectRatio",
    "personGeneration": "personGeneration",
    "sampleImageSize": "sampleImageSize",
}


class GeminiImagenProvider(BaseImageProvider):
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        # The upstream call is allowed to take as long as it needs.
        self.async_client = client or httpx.AsyncClient(timeout=httpx.Timeout(None))

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:predict"

    def build_body(self, prompt: str, config: Dict[str, Any]) -> Dict[str, Any]:
        parameters = {
            PARAMETER_NAMES.get(key, key): value for key, value in config.items()
        }
        return {"instances": [{"prompt": prompt}], "parameters": parameters}

    async def generate_images(self, prompt: str, config: Dict[str, Any]) -> List[str]:
        body = self.build_body(prompt, config)
        logger.debug(f"POST {self.endpoint} parameters={body['parameters']}")
        response = await self.async_client.post(
            self.endpoint,
            json=body,
            headers={"x-goog-api-key": self.api_key},
        )
        if response.status_code < 200 or response.status_code >= 300:
            detail = response.text.strip()
            if len(detail) > 240:
                detail = detail[:240] + "..."
            raise ImageProviderError(
                f"Upstream request failed with status {response.status_code}: {detail}"
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise ImageProviderError("Upstream returned an invalid JSON response") from e

        predictions = payload.get("predictions") if isinstance(payload, dict) else None
        images: List[str] = []
        for prediction in predictions or []:
            if isinstance(prediction, dict) and prediction.get("bytesBase64Encoded"):
                images.append(prediction["bytesBase64Encoded"])
        logger.debug(f"Upstream returned {len(images)} image(s)")
        return images

    async def close(self) -> None:
        if self._owns_client:
            await self.async_client.aclose()

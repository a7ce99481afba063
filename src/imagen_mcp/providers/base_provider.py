from abc import ABC, abstractmethod
from typing import Any, Dict, List


class ImageProviderError(RuntimeError):
    """Raised when the upstream service answers with something unusable."""


class BaseImageProvider(ABC):
    @abstractmethod
    async def generate_images(self, prompt: str, config: Dict[str, Any]) -> List[str]:
        """
        Calls the upstream service once for the given prompt and configuration.
        Returns the base64 encoded image payloads in the order the service produced them.
        """
        pass

    async def close(self) -> None:
        pass

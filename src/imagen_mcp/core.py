import logging
from pathlib import Path
from typing import Any, Dict, Optional

from mcp.shared.exceptions import McpError
from pydantic import ValidationError

from imagen_mcp.errors import internal_error, invalid_params
from imagen_mcp.models import GenerateImageRequest, GenerateImageResult
from imagen_mcp.providers.base_provider import BaseImageProvider
from imagen_mcp.utils import decode_images, save_images


def parse_arguments(raw_arguments: Any) -> GenerateImageRequest:
    """Narrows untyped tool arguments into a request, applying the documented defaults."""
    if not isinstance(raw_arguments, dict):
        raise invalid_params("Invalid generate_image arguments")
    try:
        return GenerateImageRequest.model_validate(raw_arguments)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) for error in e.errors()
        )
        raise invalid_params(f"Invalid generate_image arguments: {fields}") from e


def build_config(request: GenerateImageRequest) -> Dict[str, Any]:
    # Empty strings and zero count as unset so the upstream default applies.
    config: Dict[str, Any] = {"numberOfImages": request.number_of_images or 1}
    if request.aspect_ratio:
        config["aspectRatio"] = request.aspect_ratio
    if request.person_generation:
        config["personGeneration"] = request.person_generation
    if request.sample_image_size:
        config["sampleImageSize"] = request.sample_image_size
    return config


class ImageGenerationPipeline:
    def __init__(
        self,
        provider: BaseImageProvider,
        output_dir: Path,
        logger: Optional[logging.Logger] = None,
    ):
        self.provider = provider
        self.output_dir = Path(output_dir)
        self.logger = logger or logging.getLogger(__name__)

    async def generate_image(self, raw_arguments: Any) -> GenerateImageResult:
        request = parse_arguments(raw_arguments)
        config = build_config(request)
        try:
            payloads = await self.provider.generate_images(request.prompt, config)
            if not payloads:
                raise internal_error("No images generated.")
            saved = await save_images(decode_images(payloads), self.output_dir)
        except Exception as e:
            self.logger.error(f"Error generating image: {e}")
            if isinstance(e, McpError):
                raise
            raise internal_error(f"Image generation failed: {e}") from e
        return GenerateImageResult(file_paths=[str(path) for path in saved])

    async def close(self) -> None:
        await self.provider.close()

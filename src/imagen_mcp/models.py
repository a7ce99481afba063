from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr
from typing import List, Union

from mcp import types

TOOL_NAME = "generate_image"

ASPECT_RATIOS = ["1:1", "3:4", "4:3", "9:16", "16:9"]
IMAGE_SIZES = ["1K", "2K"]
PERSON_GENERATION = ["dont_allow", "allow_adult", "allow_all"]


class GenerateImageRequest(BaseModel):
    """Arguments of one ``generate_image`` call after type narrowing.

    Only primitive types are checked here. Enumerated values and the image
    count range are left to the upstream service to enforce.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    prompt: StrictStr = Field(..., min_length=1)
    number_of_images: Union[StrictInt, StrictFloat] = Field(1, alias="numberOfImages")
    aspect_ratio: StrictStr = Field("9:16", alias="aspectRatio")
    sample_image_size: StrictStr = Field("2K", alias="sampleImageSize")
    person_generation: StrictStr = Field("allow_adult", alias="personGeneration")


class GenerateImageResult(BaseModel):
    file_paths: List[str] = Field(default_factory=list)

    @property
    def summary(self) -> str:
        return f"Generated images saved to: {', '.join(self.file_paths)}"


def _default(name: str):
    return GenerateImageRequest.model_fields[name].default


GENERATE_IMAGE_TOOL = types.Tool(
    name=TOOL_NAME,
    description="Generate images using Google Gemini Imagen",
    inputSchema={
        "type": "object",
        "properties": {
            "prompt": {
                "type": "string",
                "description": "The prompt for image generation",
            },
            "numberOfImages": {
                "type": "number",
                "description": "Number of images to generate (1-4)",
                "minimum": 1,
                "maximum": 4,
                "default": _default("number_of_images"),
            },
            "aspectRatio": {
                "type": "string",
                "description": "Aspect ratio of the generated images",
                "enum": ASPECT_RATIOS,
                "default": _default("aspect_ratio"),
            },
            "sampleImageSize": {
                "type": "string",
                "description": "Resolution of the generated images",
                "enum": IMAGE_SIZES,
                "default": _default("sample_image_size"),
            },
            "personGeneration": {
                "type": "string",
                "description": "Whether people may appear in the generated images",
                "enum": PERSON_GENERATION,
                "default": _default("person_generation"),
            },
        },
        "required": ["prompt"],
    },
)

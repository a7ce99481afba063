import base64
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


def current_timestamp() -> int:
    """Wall-clock milliseconds since the epoch."""
    return int(datetime.now().timestamp() * 1000)


def generate_filename(timestamp: int, index: int, extension: str = "png") -> str:
    return f"generated_image_{timestamp}_{index}.{extension}"


def decode_images(payloads: Sequence[str]) -> List[bytes]:
    return [base64.b64decode(payload) for payload in payloads]


async def save_images(
    images: Sequence[bytes],
    output_dir: Path,
    timestamp: Optional[int] = None,
) -> List[Path]:
    """Writes every image buffer to its own file and returns the paths in input order.

    All files of one call share ``timestamp`` and differ only by index. Existing
    files are overwritten, and a failed write aborts the call without removing
    the files already written.
    """
    if timestamp is None:
        timestamp = current_timestamp()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    saved: List[Path] = []
    for i, image_bytes in enumerate(images):
        output_path = output_dir / generate_filename(timestamp, i)
        output_path.write_bytes(image_bytes)
        logger.info(f"Image saved to {output_path}")
        saved.append(output_path)
    return saved

import asyncio
import io
import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import ImageAcquisitionError
from .schemas import Size

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 20 * 1024 * 1024  # 20 MB
SUPPORTED_EXTENSIONS = ["jpg", "jpeg", "png", "bmp", "tif", "tiff", "webp"]


@dataclass(frozen=True)
class LoadedImage:
    """Raw encoded bytes plus the natural pixel size of the decoded image."""

    name: str
    data: bytes
    width: int
    height: int

    @property
    def size(self) -> Size:
        return Size(width=self.width, height=self.height)


def decode_size(data: bytes) -> tuple[int, int]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        raise ImageAcquisitionError(f"Cannot decode image: {e}") from e


def read_image(path: str) -> LoadedImage:
    p = Path(path)
    if p.suffix.lower().lstrip(".") not in SUPPORTED_EXTENSIONS:
        raise ImageAcquisitionError(f"Unsupported image type: {p.name}")
    try:
        data = p.read_bytes()
    except OSError as e:
        raise ImageAcquisitionError(f"Cannot read {path}: {e}") from e
    if len(data) > MAX_FILE_SIZE:
        raise ImageAcquisitionError(f"{p.name} exceeds 20 MB limit")
    width, height = decode_size(data)
    logger.info("Loaded %s (%dx%d, %d bytes)", p.name, width, height, len(data))
    return LoadedImage(name=p.name, data=data, width=width, height=height)


class FileImageSource:
    """Reads picked files off the event loop."""

    async def load(self, path: str) -> LoadedImage:
        return await asyncio.to_thread(read_image, path)

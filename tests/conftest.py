"""Pytest fixtures for viewer tests."""

import asyncio
import io
from typing import Optional

import pytest
from PIL import Image

from ocr_viewer.image_source import LoadedImage
from ocr_viewer.ocr_engine import OcrEngine
from ocr_viewer.schemas import OcrResult, Point, TextRegion


def make_png(width: int = 100, height: int = 50, color=(255, 255, 255)) -> bytes:
    buff = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buff, "png")
    return buff.getvalue()


def rect_region(left, top, right, bottom, text="text", score=0.9) -> TextRegion:
    return TextRegion(
        polygon=(
            Point(x=left, y=top),
            Point(x=right, y=top),
            Point(x=right, y=bottom),
            Point(x=left, y=bottom),
        ),
        text=text,
        score=score,
    )


def make_image(name="a.png", width=1000, height=2000) -> LoadedImage:
    return LoadedImage(name=name, data=name.encode(), width=width, height=height)


class FakeEngine(OcrEngine):
    """Deterministic engine. Results are keyed by image bytes; set ``gate`` to hold responses."""

    name = "fake"

    def __init__(self, results: Optional[dict] = None, error: Optional[Exception] = None):
        self.results = results or {}
        self.error = error
        self.calls: list[bytes] = []
        self.gates: dict[bytes, asyncio.Event] = {}

    async def detect_text(self, image_bytes: bytes) -> OcrResult:
        self.calls.append(image_bytes)
        gate = self.gates.get(image_bytes)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        return self.results.get(image_bytes, OcrResult())


class FakeImageSource:
    def __init__(self, images: dict, error: Optional[Exception] = None):
        self.images = images
        self.error = error

    async def load(self, path: str) -> LoadedImage:
        if self.error is not None:
            raise self.error
        return self.images[path]


@pytest.fixture
def sample_result() -> OcrResult:
    return OcrResult(
        regions=(
            rect_region(0, 0, 400, 100, text="first", score=0.95),
            rect_region(0, 200, 400, 300, text="second", score=0.6),
            rect_region(500, 200, 900, 300, text="third", score=0.3),
        )
    )


@pytest.fixture
def png_bytes() -> bytes:
    return make_png(320, 240)

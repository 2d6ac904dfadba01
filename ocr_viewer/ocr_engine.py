import asyncio
import io
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

import httpx
import numpy as np
from PIL import Image

from .errors import OcrEngineError
from .schemas import HealthResponse, OCRResponse, OcrResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Engine interface
# ---------------------------------------------------------------------------
class OcrEngine(ABC):
    """Black-box OCR: raw encoded image bytes in, regions in image pixel space out."""

    name = "ocr"

    @abstractmethod
    async def detect_text(self, image_bytes: bytes) -> OcrResult:
        """Raises OcrEngineError on malformed input, transport failure or a bad payload."""

    async def has_text(self, image_bytes: bytes) -> bool:
        result = await self.detect_text(image_bytes)
        return not result.is_empty

    async def is_available(self) -> bool:
        return True

    async def aclose(self) -> None:
        pass


def _guess_content_type(image_bytes: bytes) -> str:
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            return Image.MIME.get(img.format, "application/octet-stream")
    except (OSError, ValueError):
        return "application/octet-stream"


# ---------------------------------------------------------------------------
# HttpOcrEngine: client for an OCR API server (POST /ocr/file)
# ---------------------------------------------------------------------------
class HttpOcrEngine(OcrEngine):
    name = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def detect_text(self, image_bytes: bytes) -> OcrResult:
        content_type = _guess_content_type(image_bytes)
        try:
            resp = await self._client.post(
                "/ocr/file",
                files={"file": ("image", image_bytes, content_type)},
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise OcrEngineError(
                f"OCR server returned {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise OcrEngineError(f"OCR request failed: {e}") from e

        try:
            payload = OCRResponse.model_validate_json(resp.content)
            result = OcrResult.from_lines(payload.lines)
        except ValueError as e:
            raise OcrEngineError(f"Malformed OCR response: {e}") from e
        logger.info("OCR server returned %d lines", len(result))
        return result

    async def is_available(self) -> bool:
        try:
            resp = await self._client.get("/health")
            resp.raise_for_status()
            health = HealthResponse.model_validate_json(resp.content)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("OCR server health check failed: %s", e)
            return False
        return health.status == "ok"

    async def aclose(self) -> None:
        await self._client.aclose()


# ---------------------------------------------------------------------------
# PaddleOcrEngine: local PaddleOCR PP-OCRv5
# ---------------------------------------------------------------------------
# OCR処理用のスレッドプール
_executor = ThreadPoolExecutor(max_workers=1)


class PaddleOcrEngine(OcrEngine):
    name = "paddle"

    def __init__(self, lang: str = "japan", device: Optional[str] = None) -> None:
        self._lang = lang
        self._device = device
        self._ocr: Any = None

    @property
    def ocr(self) -> Any:
        """遅延初期化でPaddleOCRを取得"""
        if self._ocr is None:
            import paddle
            from paddleocr import PaddleOCR

            device = self._device
            if device is None:
                device = "gpu:0" if paddle.device.is_compiled_with_cuda() else "cpu"
            logger.info("Initializing PaddleOCR (lang=%s, device=%s) ...", self._lang, device)
            self._ocr = PaddleOCR(
                lang=self._lang,
                ocr_version="PP-OCRv5",
                device=device,
                use_doc_orientation_classify=False,
                use_doc_unwarping=False,
                use_textline_orientation=False,
            )
        return self._ocr

    def _run_ocr(self, image: np.ndarray):
        """同期的にOCR実行（スレッドプール用）"""
        return self.ocr.predict(image)

    async def detect_text(self, image_bytes: bytes) -> OcrResult:
        try:
            pil_image = Image.open(io.BytesIO(image_bytes))
            if pil_image.mode != "RGB":
                pil_image = pil_image.convert("RGB")
            image = np.array(pil_image)
        except (OSError, ValueError) as e:
            raise OcrEngineError(f"Cannot decode image for OCR: {e}") from e

        loop = asyncio.get_running_loop()
        try:
            results = await loop.run_in_executor(_executor, self._run_ocr, image)
        except Exception as e:
            raise OcrEngineError(f"PaddleOCR failed: {e}") from e

        polygons: list = []
        texts: list = []
        scores: list = []
        for res in results:
            json_data = res.json
            json_data = json_data.get("res", json_data)
            if "rec_texts" not in json_data:
                continue
            polygons.extend(json_data["dt_polys"])
            texts.extend(json_data["rec_texts"])
            scores.extend(json_data["rec_scores"])

        try:
            return OcrResult.from_parallel_lists(polygons, texts, scores)
        except ValueError as e:
            raise OcrEngineError(f"Malformed PaddleOCR result: {e}") from e


def create_engine(config: dict) -> OcrEngine:
    """Engine selected by config["engine"] ("http" or "paddle")."""
    kind = config["engine"]
    if kind == "http":
        return HttpOcrEngine(config["engine_url"], timeout=config["ocr_timeout"])
    if kind == "paddle":
        return PaddleOcrEngine(lang=config["paddle_lang"], device=config.get("device"))
    raise ValueError(f"Unknown OCR engine: {kind}")

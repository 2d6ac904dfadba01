import asyncio
import io
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from PIL import Image

from .errors import ImageAcquisitionError, OcrEngineError
from .geometry import hit_test
from .image_source import FileImageSource, LoadedImage
from .ocr_engine import OcrEngine
from .overlay import OverlayItem, OverlayStyle, build_overlay, draw_overlay
from .reading_order import join_text
from .schemas import OcrResult, Point, Size, TextRegion
from .state import (
    DisplayResized,
    Event,
    ImageCleared,
    ImageSelected,
    OcrFailed,
    OcrStarted,
    OcrSucceeded,
    OverlayToggled,
    RegionSelected,
    SessionState,
    TextCheckFinished,
    TextCheckStarted,
    reduce,
)

logger = logging.getLogger(__name__)


class NoticeKind(Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """User-visible transient message; ``key`` indexes the translation table."""

    kind: NoticeKind
    key: str
    params: dict = field(default_factory=dict)


class PresentationController:
    """Owns the session state and runs user actions against the collaborators.

    All state changes go through ``reduce``; ``on_change`` is called after
    each one and ``on_notice`` for every user-facing message.
    """

    def __init__(
        self,
        engine: OcrEngine,
        image_source: Optional[FileImageSource] = None,
        *,
        ocr_timeout: float = 30.0,
        auto_run_ocr: bool = True,
        min_score: float = 0.0,
        style: OverlayStyle = OverlayStyle(),
        on_change: Optional[Callable[[SessionState], None]] = None,
        on_notice: Optional[Callable[[Notice], None]] = None,
        set_clipboard: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._engine = engine
        self._image_source = image_source or FileImageSource()
        self._ocr_timeout = ocr_timeout
        self._auto_run_ocr = auto_run_ocr
        self._min_score = min_score
        self._style = style
        self._on_change = on_change
        self._on_notice = on_notice
        self._set_clipboard = set_clipboard
        self._tokens = itertools.count(1)
        self.state = SessionState()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def dispatch(self, event: Event) -> SessionState:
        previous = self.state
        self.state = reduce(previous, event)
        if self.state is not previous and self._on_change is not None:
            self._on_change(self.state)
        return self.state

    def _notify(self, kind: NoticeKind, key: str, **params) -> None:
        if kind is NoticeKind.ERROR:
            logger.warning("%s %s", key, params)
        if self._on_notice is not None:
            self._on_notice(Notice(kind, key, params))

    # ------------------------------------------------------------------
    # Image acquisition
    # ------------------------------------------------------------------
    async def select_image(self, path: str) -> bool:
        try:
            image = await self._image_source.load(path)
        except ImageAcquisitionError as e:
            self._notify(NoticeKind.ERROR, "image_load_failed", detail=str(e))
            return False
        await self.set_image(image)
        return True

    async def set_image(self, image: LoadedImage) -> None:
        self.dispatch(ImageSelected(image=image, token=next(self._tokens)))
        if self._auto_run_ocr:
            await self.run_ocr()

    def clear_image(self) -> None:
        self.dispatch(ImageCleared())

    # ------------------------------------------------------------------
    # OCR
    # ------------------------------------------------------------------
    async def run_ocr(self) -> Optional[OcrResult]:
        state = self.state
        if not state.can_run_ocr:
            logger.info("OCR request ignored (phase=%s)", state.phase.value)
            return None

        token = state.image_token
        image = state.image
        self.dispatch(OcrStarted(token=token))
        logger.info("Running OCR on %s (token=%d)", image.name, token)

        try:
            result = await asyncio.wait_for(
                self._engine.detect_text(image.data), timeout=self._ocr_timeout
            )
        except asyncio.TimeoutError:
            self._ocr_failed(token, "ocr_timeout", detail=self._ocr_timeout)
            return None
        except OcrEngineError as e:
            self._ocr_failed(token, "ocr_failed", detail=str(e))
            return None
        except Exception as e:
            logger.exception("Unexpected OCR engine failure")
            self._ocr_failed(token, "ocr_failed", detail=str(e))
            return None

        if token != self.state.image_token:
            logger.info("Discarding stale OCR response for %s (token=%d)", image.name, token)
            return None

        result = result.filter_min_score(self._min_score)
        self.dispatch(OcrSucceeded(token=token, result=result))
        if result.is_empty:
            self._notify(NoticeKind.INFO, "ocr_no_text")
        else:
            self._notify(NoticeKind.INFO, "ocr_complete", count=len(result))
        return result

    def _ocr_failed(self, token: int, key: str, **params) -> None:
        if token != self.state.image_token:
            logger.info("Discarding stale OCR failure (token=%d)", token)
            return
        self.dispatch(OcrFailed(token=token))
        self._notify(NoticeKind.ERROR, key, **params)

    async def check_has_text(self) -> Optional[bool]:
        state = self.state
        if not state.can_run_ocr:
            logger.info("Text check ignored (phase=%s, checking=%s)", state.phase.value, state.is_checking)
            return None

        token = state.image_token
        image = state.image
        self.dispatch(TextCheckStarted(token=token))
        try:
            found = await asyncio.wait_for(
                self._engine.has_text(image.data), timeout=self._ocr_timeout
            )
        except asyncio.TimeoutError:
            self._check_failed(token, "ocr_timeout", detail=self._ocr_timeout)
            return None
        except OcrEngineError as e:
            self._check_failed(token, "ocr_failed", detail=str(e))
            return None
        except Exception as e:
            logger.exception("Unexpected OCR engine failure during text check")
            self._check_failed(token, "ocr_failed", detail=str(e))
            return None

        if token != self.state.check_token:
            logger.info("Discarding stale text check for %s (token=%d)", image.name, token)
            return None
        self.dispatch(TextCheckFinished(token=token))
        self._notify(NoticeKind.INFO, "has_text_result", detail=found)
        return found

    def _check_failed(self, token: int, key: str, **params) -> None:
        if token != self.state.check_token:
            logger.info("Discarding stale text check failure (token=%d)", token)
            return
        self.dispatch(TextCheckFinished(token=token))
        self._notify(NoticeKind.ERROR, key, **params)

    # ------------------------------------------------------------------
    # Overlay and selection
    # ------------------------------------------------------------------
    def toggle_overlay(self) -> None:
        self.dispatch(OverlayToggled())

    def resize_display(self, width: float, height: float) -> None:
        self.dispatch(DisplayResized(size=Size(width=width, height=height)))

    def tap(self, x: float, y: float) -> Optional[TextRegion]:
        state = self.state
        index = None
        if state.result is not None and state.image is not None and state.display_size is not None:
            index = hit_test(state.result.regions, state.image_size, state.display_size, Point(x=x, y=y))
        self.dispatch(RegionSelected(index=index))
        return self.state.selected_region

    def overlay_items(self) -> list[OverlayItem]:
        state = self.state
        if not state.overlay_visible:
            return []
        return build_overlay(
            state.result, state.selected_index, state.image_size, state.display_size, self._style
        )

    def annotated_image(self) -> Optional[Image.Image]:
        state = self.state
        if state.image is None or state.result is None:
            return None
        with Image.open(io.BytesIO(state.image.data)) as img:
            return draw_overlay(img, state.result, state.selected_index, self._style)

    # ------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------
    def copy_region(self, index: int) -> Optional[str]:
        result = self.state.result
        region = result.region_at(index) if result is not None else None
        if region is None:
            return None
        return self._copy(region.text)

    def copy_all(self) -> Optional[str]:
        result = self.state.result
        if result is None:
            return None
        return self._copy(join_text(result.regions))

    def _copy(self, text: str) -> str:
        if self._set_clipboard is not None:
            self._set_clipboard(text)
        if text:
            self._notify(NoticeKind.INFO, "copied_text", count=len(text))
        else:
            self._notify(NoticeKind.INFO, "copied_empty")
        return text

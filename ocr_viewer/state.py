"""Session state machine.

NO_IMAGE -> IMAGE_SELECTED -> OCR_RUNNING -> OCR_COMPLETE

``reduce`` is pure: it takes the current state and an event and returns the
next state. Every OCR request is tagged with the token of the image it was
issued for; completions carrying another token are ignored. A text-presence
check is tracked the same way through ``check_token`` and shares the
single engine slot with OCR.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from .image_source import LoadedImage
from .schemas import OcrResult, Size


class Phase(Enum):
    NO_IMAGE = "no_image"
    IMAGE_SELECTED = "image_selected"
    OCR_RUNNING = "ocr_running"
    OCR_COMPLETE = "ocr_complete"


@dataclass(frozen=True)
class SessionState:
    phase: Phase = Phase.NO_IMAGE
    image: Optional[LoadedImage] = None
    image_token: Optional[int] = None
    result: Optional[OcrResult] = None
    selected_index: Optional[int] = None
    overlay_visible: bool = True
    display_size: Optional[Size] = None
    check_token: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self.phase is Phase.OCR_RUNNING

    @property
    def is_checking(self) -> bool:
        return self.check_token is not None

    @property
    def is_busy(self) -> bool:
        return self.is_running or self.is_checking

    @property
    def can_run_ocr(self) -> bool:
        return self.image is not None and not self.is_busy

    @property
    def image_size(self) -> Optional[Size]:
        return self.image.size if self.image is not None else None

    @property
    def selected_region(self):
        if self.result is None or self.selected_index is None:
            return None
        return self.result.region_at(self.selected_index)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ImageSelected:
    image: LoadedImage
    token: int


@dataclass(frozen=True)
class ImageCleared:
    pass


@dataclass(frozen=True)
class OcrStarted:
    token: int


@dataclass(frozen=True)
class OcrSucceeded:
    token: int
    result: OcrResult


@dataclass(frozen=True)
class OcrFailed:
    token: int


@dataclass(frozen=True)
class TextCheckStarted:
    token: int


@dataclass(frozen=True)
class TextCheckFinished:
    token: int


@dataclass(frozen=True)
class OverlayToggled:
    pass


@dataclass(frozen=True)
class RegionSelected:
    index: Optional[int]


@dataclass(frozen=True)
class DisplayResized:
    size: Size


Event = Union[
    ImageSelected,
    ImageCleared,
    OcrStarted,
    OcrSucceeded,
    OcrFailed,
    TextCheckStarted,
    TextCheckFinished,
    OverlayToggled,
    RegionSelected,
    DisplayResized,
]


def reduce(state: SessionState, event: Event) -> SessionState:
    if isinstance(event, ImageSelected):
        return replace(
            state,
            phase=Phase.IMAGE_SELECTED,
            image=event.image,
            image_token=event.token,
            result=None,
            selected_index=None,
            check_token=None,
        )

    if isinstance(event, ImageCleared):
        return replace(
            state,
            phase=Phase.NO_IMAGE,
            image=None,
            image_token=None,
            result=None,
            selected_index=None,
            check_token=None,
        )

    if isinstance(event, OcrStarted):
        if not state.can_run_ocr or event.token != state.image_token:
            return state
        return replace(state, phase=Phase.OCR_RUNNING)

    if isinstance(event, OcrSucceeded):
        if not state.is_running or event.token != state.image_token:
            return state
        return replace(
            state,
            phase=Phase.OCR_COMPLETE,
            result=event.result,
            selected_index=None,
        )

    if isinstance(event, OcrFailed):
        if not state.is_running or event.token != state.image_token:
            return state
        # 前回の結果は保持する
        phase = Phase.IMAGE_SELECTED if state.result is None else Phase.OCR_COMPLETE
        return replace(state, phase=phase)

    if isinstance(event, TextCheckStarted):
        if not state.can_run_ocr or event.token != state.image_token:
            return state
        return replace(state, check_token=event.token)

    if isinstance(event, TextCheckFinished):
        if event.token != state.check_token:
            return state
        return replace(state, check_token=None)

    if isinstance(event, OverlayToggled):
        return replace(state, overlay_visible=not state.overlay_visible)

    if isinstance(event, RegionSelected):
        index = event.index
        if index is not None and (state.result is None or state.result.region_at(index) is None):
            index = None
        return replace(state, selected_index=index)

    if isinstance(event, DisplayResized):
        return replace(state, display_size=event.size)

    raise TypeError(f"Unknown event: {event!r}")

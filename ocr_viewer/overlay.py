import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .geometry import ContainTransform, topmost_point
from .schemas import OcrResult, Point, Size

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.5
ELLIPSIS = "..."


class Tier(Enum):
    SELECTED = "selected"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class OverlayStyle:
    selected_color: str = "#2196F3"
    high_color: str = "#4CAF50"
    medium_color: str = "#FF9800"
    low_color: str = "#F44336"
    low_opacity: float = 0.5
    stroke_width: float = 2.0
    selected_stroke_width: float = 4.0
    label_max_length: int = 30
    label_margin: float = 16.0
    label_size: int = 12

    def color_for(self, tier: Tier) -> str:
        return {
            Tier.SELECTED: self.selected_color,
            Tier.HIGH: self.high_color,
            Tier.MEDIUM: self.medium_color,
            Tier.LOW: self.low_color,
        }[tier]


@dataclass(frozen=True)
class OverlayItem:
    index: int
    points: tuple[Point, ...]  # display space
    tier: Tier
    color: str
    opacity: float
    stroke_width: float
    label: str
    label_anchor: Point


def classify(score: float, selected: bool) -> Tier:
    if selected:
        return Tier.SELECTED
    if score > HIGH_CONFIDENCE:
        return Tier.HIGH
    if score > MEDIUM_CONFIDENCE:
        return Tier.MEDIUM
    return Tier.LOW


def truncate_label(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def build_overlay(
    result: Optional[OcrResult],
    selected_index: Optional[int],
    image_size: Optional[Size],
    display_size: Optional[Size],
    style: OverlayStyle = OverlayStyle(),
) -> list[OverlayItem]:
    """Overlay items for every drawable region, in detection order."""
    if result is None or image_size is None or display_size is None:
        return []
    transform = ContainTransform.fit(image_size, display_size)
    if transform is None:
        return []

    items = []
    for index, region in enumerate(result.regions):
        if len(region.polygon) < 3:
            continue
        points = tuple(transform.polygon_to_display(region.polygon))
        tier = classify(region.score, index == selected_index)
        top = topmost_point(points)
        items.append(
            OverlayItem(
                index=index,
                points=points,
                tier=tier,
                color=style.color_for(tier),
                opacity=style.low_opacity if tier is Tier.LOW else 1.0,
                stroke_width=(
                    style.selected_stroke_width if tier is Tier.SELECTED else style.stroke_width
                ),
                label=truncate_label(region.text, style.label_max_length),
                label_anchor=Point(x=top.x, y=top.y - style.label_margin),
            )
        )
    return items


# ----------------------------------------------------------------------
# Pillow backend (annotated image export)
# ----------------------------------------------------------------------
def _load_font(size: int):
    try:
        return ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", size)
    except OSError:
        return ImageFont.load_default()


def draw_overlay(
    image: Image.Image,
    result: OcrResult,
    selected_index: Optional[int] = None,
    style: OverlayStyle = OverlayStyle(),
) -> Image.Image:
    """Draw the overlay onto a copy of the image at its native resolution."""
    annotated = image.convert("RGBA")
    layer = Image.new("RGBA", annotated.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    font = _load_font(style.label_size)

    size = Size(width=annotated.width, height=annotated.height)
    items = build_overlay(result, selected_index, size, size, style)
    for item in items:
        r, g, b = ImageColor.getrgb(item.color)[:3]
        fill = (r, g, b, int(255 * item.opacity))
        points = [(p.x, p.y) for p in item.points]
        draw.line(points + [points[0]], fill=fill, width=max(1, int(item.stroke_width)))
        draw.text((item.label_anchor.x, item.label_anchor.y), item.label, fill=fill, font=font)

    logger.debug("Drew %d overlay items on %dx%d image", len(items), *annotated.size)
    return Image.alpha_composite(annotated, layer).convert("RGB")

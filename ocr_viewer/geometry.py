"""Contain-fit coordinate mapping and polygon hit testing.

The image is drawn inside the display area scaled uniformly so it fits
entirely, then centered (letterboxed on the shorter axis). All OCR polygons
live in the original image's pixel space, so every paint and every tap goes
through the same transform. The transform is recomputed from the current
sizes on each call and never cached.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from .schemas import Point, Size, TextRegion

EPSILON = 1e-6


@dataclass(frozen=True)
class ContainTransform:
    scale: float
    offset_x: float
    offset_y: float
    image_size: Size

    @classmethod
    def fit(cls, image_size: Size, display_size: Size) -> Optional["ContainTransform"]:
        """Transform for an aspect-preserving contain fit, or None for empty sizes."""
        if not image_size.is_positive or not display_size.is_positive:
            return None
        scale = min(
            display_size.width / image_size.width,
            display_size.height / image_size.height,
        )
        dest_w = image_size.width * scale
        dest_h = image_size.height * scale
        return cls(
            scale=scale,
            offset_x=(display_size.width - dest_w) / 2,
            offset_y=(display_size.height - dest_h) / 2,
            image_size=image_size,
        )

    @property
    def destination_size(self) -> Size:
        return Size(
            width=self.image_size.width * self.scale,
            height=self.image_size.height * self.scale,
        )

    def to_display(self, point: Point) -> Point:
        return Point(
            x=point.x * self.scale + self.offset_x,
            y=point.y * self.scale + self.offset_y,
        )

    def to_image(self, point: Point) -> Point:
        return Point(
            x=(point.x - self.offset_x) / self.scale,
            y=(point.y - self.offset_y) / self.scale,
        )

    def to_relative(self, point: Point) -> Point:
        """Display point as a fraction of the drawn image, [0, 1] when inside it."""
        dest = self.destination_size
        return Point(
            x=(point.x - self.offset_x) / dest.width,
            y=(point.y - self.offset_y) / dest.height,
        )

    def polygon_to_display(self, polygon: Sequence[Point]) -> list[Point]:
        return [self.to_display(p) for p in polygon]


def point_in_polygon(polygon: Sequence[Point], point: Point) -> bool:
    """Even-odd ray casting test. Polygons with fewer than 3 points never match."""
    n = len(polygon)
    if n < 3:
        return False

    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i].x, polygon[i].y
        xj, yj = polygon[j].x, polygon[j].y
        if (yi > point.y) != (yj > point.y):
            dy = yj - yi
            if abs(dy) < EPSILON:
                dy = EPSILON
            if point.x < (xj - xi) * (point.y - yi) / dy + xi:
                inside = not inside
        j = i
    return inside


def hit_test(
    regions: Sequence[TextRegion],
    image_size: Size,
    display_size: Size,
    tap: Point,
) -> Optional[int]:
    """Index of the first region whose polygon contains the tap, or None.

    Overlapping polygons resolve to the lowest index (detection order).
    """
    transform = ContainTransform.fit(image_size, display_size)
    if transform is None:
        return None

    relative = transform.to_relative(tap)
    if not (0.0 <= relative.x <= 1.0 and 0.0 <= relative.y <= 1.0):
        return None

    image_point = transform.to_image(tap)
    for index, region in enumerate(regions):
        if point_in_polygon(region.polygon, image_point):
            return index
    return None


def topmost_point(points: Sequence[Point]) -> Optional[Point]:
    if not points:
        return None
    return min(points, key=lambda p: p.y)

import flet as ft
import flet.canvas as cv

from ..overlay import OverlayItem


def item_to_shapes(item: OverlayItem, label_size: int = 12) -> list:
    color = ft.Colors.with_opacity(item.opacity, item.color)
    first, *rest = item.points
    elements = [cv.Path.MoveTo(first.x, first.y)]
    elements += [cv.Path.LineTo(p.x, p.y) for p in rest]
    elements.append(cv.Path.Close())
    path = cv.Path(
        elements,
        paint=ft.Paint(
            stroke_width=item.stroke_width,
            style=ft.PaintingStyle.STROKE,
            color=color,
        ),
    )
    text = cv.Text(
        item.label_anchor.x,
        item.label_anchor.y,
        item.label,
        style=ft.TextStyle(size=label_size, color=color, weight=ft.FontWeight.BOLD),
    )
    return [path, text]


def overlay_shapes(items: list[OverlayItem], label_size: int = 12) -> list:
    shapes: list = []
    for item in items:
        shapes.extend(item_to_shapes(item, label_size))
    return shapes

from typing import Sequence

from .schemas import TextRegion


def sort_regions(regions: Sequence[TextRegion]) -> list[TextRegion]:
    """Top-to-bottom, then left-to-right by bounding box."""
    return sorted(regions, key=lambda r: (r.bounding_box().top, r.bounding_box().left))


def group_lines(regions: Sequence[TextRegion]) -> list[list[TextRegion]]:
    """Group regions into rows.

    A region joins the current row when its top edge is within half its own
    height of the previous region's top edge.
    """
    lines: list[list[TextRegion]] = []
    current: list[TextRegion] = []
    last_top = None
    for region in sort_regions(regions):
        rect = region.bounding_box()
        if last_top is None or abs(rect.top - last_top) < rect.height / 2:
            current.append(region)
        else:
            if current:
                lines.append(current)
            current = [region]
        last_top = rect.top
    if current:
        lines.append(current)
    return lines


def join_text(regions: Sequence[TextRegion]) -> str:
    """Text of all regions in reading order; rows joined by newlines, columns by spaces."""
    rows = []
    for line in group_lines(regions):
        line.sort(key=lambda r: r.bounding_box().left)
        rows.append(" ".join(r.text for r in line))
    return "\n".join(rows)

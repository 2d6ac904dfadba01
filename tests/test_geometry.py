"""
Tests for ocr_viewer/geometry.py
"""

import pytest

from ocr_viewer.geometry import ContainTransform, hit_test, point_in_polygon, topmost_point
from ocr_viewer.schemas import Point, Size, TextRegion

from tests.conftest import rect_region


class TestContainTransform:
    def test_portrait_in_square(self):
        """1000x2000 の画像を 500x500 に表示"""
        t = ContainTransform.fit(Size(width=1000, height=2000), Size(width=500, height=500))
        assert t.scale == pytest.approx(0.25)
        assert t.destination_size == Size(width=250, height=500)
        assert (t.offset_x, t.offset_y) == (125, 0)

    def test_landscape_letterbox(self):
        t = ContainTransform.fit(Size(width=400, height=100), Size(width=200, height=200))
        assert t.scale == pytest.approx(0.5)
        assert (t.offset_x, t.offset_y) == (0, 75)

    def test_tap_mapping_example(self):
        t = ContainTransform.fit(Size(width=1000, height=2000), Size(width=500, height=500))
        assert t.to_image(Point(x=125, y=0)) == Point(x=0, y=0)
        mapped = t.to_image(Point(x=126, y=1))
        assert mapped.x == pytest.approx(4)
        assert mapped.y == pytest.approx(4)

    @pytest.mark.parametrize(
        "w,h,dw,dh",
        [(1000, 2000, 500, 500), (640, 480, 375, 812), (3, 7, 1920, 1080), (4032, 3024, 411, 731)],
    )
    def test_round_trip(self, w, h, dw, dh):
        t = ContainTransform.fit(Size(width=w, height=h), Size(width=dw, height=dh))
        for p in [Point(x=0, y=0), Point(x=w, y=h), Point(x=w / 3, y=h / 7), Point(x=w, y=0)]:
            back = t.to_image(t.to_display(p))
            assert back.x == pytest.approx(p.x)
            assert back.y == pytest.approx(p.y)

    @pytest.mark.parametrize(
        "image,display",
        [((0, 100), (100, 100)), ((100, 100), (0, 100)), ((100, -1), (100, 100))],
    )
    def test_degenerate_sizes(self, image, display):
        assert ContainTransform.fit(
            Size(width=image[0], height=image[1]), Size(width=display[0], height=display[1])
        ) is None


class TestPointInPolygon:
    def test_inside_convex(self):
        square = rect_region(0, 0, 10, 10).polygon
        assert point_in_polygon(square, Point(x=5, y=5)) is True
        assert point_in_polygon(square, Point(x=0.1, y=9.9)) is True

    def test_far_outside(self):
        square = rect_region(0, 0, 10, 10).polygon
        assert point_in_polygon(square, Point(x=50, y=5)) is False
        assert point_in_polygon(square, Point(x=-5, y=-5)) is False

    def test_skewed_quadrilateral(self):
        """傾いたテキストの四角形"""
        quad = (Point(x=10, y=0), Point(x=20, y=10), Point(x=10, y=20), Point(x=0, y=10))
        assert point_in_polygon(quad, Point(x=10, y=10)) is True
        # inside the bounding box but outside the diamond
        assert point_in_polygon(quad, Point(x=1, y=1)) is False
        assert point_in_polygon(quad, Point(x=19, y=19)) is False

    def test_concave_polygon(self):
        u_shape = (
            Point(x=0, y=0), Point(x=3, y=0), Point(x=3, y=3), Point(x=2, y=3),
            Point(x=2, y=1), Point(x=1, y=1), Point(x=1, y=3), Point(x=0, y=3),
        )
        assert point_in_polygon(u_shape, Point(x=0.5, y=2)) is True
        assert point_in_polygon(u_shape, Point(x=1.5, y=2)) is False

    def test_degenerate(self):
        assert point_in_polygon((), Point(x=0, y=0)) is False
        assert point_in_polygon((Point(x=0, y=0), Point(x=5, y=5)), Point(x=2, y=2)) is False

    def test_horizontal_edges(self):
        flat = (Point(x=0, y=5), Point(x=10, y=5), Point(x=10, y=5))
        assert point_in_polygon(flat, Point(x=5, y=5)) is False


class TestHitTest:
    image = Size(width=1000, height=2000)
    display = Size(width=500, height=500)

    def test_first_match_wins(self):
        regions = [rect_region(0, 0, 600, 600, "a"), rect_region(100, 100, 800, 800, "b")]
        # image (200, 200) -> display (175, 50)
        assert hit_test(regions, self.image, self.display, Point(x=175, y=50)) == 0
        # image (700, 700) only in b
        assert hit_test(regions, self.image, self.display, Point(x=300, y=175)) == 1

    def test_letterbox_tap_rejected(self):
        regions = [rect_region(0, 0, 1000, 2000)]
        assert hit_test(regions, self.image, self.display, Point(x=50, y=250)) is None
        assert hit_test(regions, self.image, self.display, Point(x=450, y=250)) is None

    def test_tap_in_image_but_no_region(self):
        regions = [rect_region(0, 0, 100, 100)]
        assert hit_test(regions, self.image, self.display, Point(x=300, y=400)) is None

    def test_empty_regions(self):
        assert hit_test([], self.image, self.display, Point(x=250, y=250)) is None

    def test_zero_display(self):
        regions = [rect_region(0, 0, 1000, 2000)]
        assert hit_test(regions, self.image, Size(width=0, height=0), Point(x=0, y=0)) is None

    def test_degenerate_polygon_skipped(self):
        regions = [
            TextRegion(polygon=(Point(x=0, y=0), Point(x=1000, y=2000)), text="line", score=0.9),
            rect_region(0, 0, 1000, 2000, "full"),
        ]
        assert hit_test(regions, self.image, self.display, Point(x=250, y=250)) == 1


def test_topmost_point():
    pts = [Point(x=1, y=5), Point(x=2, y=-1), Point(x=3, y=4)]
    assert topmost_point(pts) == Point(x=2, y=-1)
    assert topmost_point([]) is None

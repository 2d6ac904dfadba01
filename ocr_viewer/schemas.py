from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


class Point(BaseModel):
    """2次元座標 (画像座標系または表示座標系)"""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class Size(BaseModel):
    """幅・高さ (ピクセル)"""

    model_config = ConfigDict(frozen=True)

    width: float
    height: float

    @property
    def is_positive(self) -> bool:
        return self.width > 0 and self.height > 0


class Rect(BaseModel):
    model_config = ConfigDict(frozen=True)

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


class TextRegion(BaseModel):
    """OCRで検出された1テキスト領域"""

    model_config = ConfigDict(frozen=True)

    polygon: tuple[Point, ...]  # 元画像のピクセル座標
    text: str
    score: float = Field(ge=0.0, le=1.0)  # 認識スコア (0-1)

    def bounding_box(self) -> Rect:
        if not self.polygon:
            return Rect(left=0, top=0, right=0, bottom=0)
        xs = [p.x for p in self.polygon]
        ys = [p.y for p in self.polygon]
        return Rect(left=min(xs), top=min(ys), right=max(xs), bottom=max(ys))


class OcrResult(BaseModel):
    """OCR結果 (検出順にインデックスされたテキスト領域のリスト)"""

    model_config = ConfigDict(frozen=True)

    regions: tuple[TextRegion, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.regions

    def __len__(self) -> int:
        return len(self.regions)

    @property
    def texts(self) -> list[str]:
        return [r.text for r in self.regions]

    @property
    def scores(self) -> list[float]:
        return [r.score for r in self.regions]

    def region_at(self, index: int) -> Optional[TextRegion]:
        if index < 0 or index >= len(self.regions):
            return None
        return self.regions[index]

    def filter_min_score(self, threshold: float) -> "OcrResult":
        if threshold <= 0:
            return self
        return OcrResult(regions=tuple(r for r in self.regions if r.score >= threshold))

    # ------------------------------------------------------------------
    # Builders for the engine wire formats
    # ------------------------------------------------------------------
    @classmethod
    def from_lines(cls, lines: Sequence["OCRLine"]) -> "OcrResult":
        return cls(
            regions=tuple(
                TextRegion(
                    polygon=tuple(Point(x=p[0], y=p[1]) for p in line.box),
                    text=line.text,
                    score=line.confidence,
                )
                for line in lines
            )
        )

    @classmethod
    def from_parallel_lists(
        cls,
        polygons: Sequence[Sequence[Sequence[float]]],
        texts: Sequence[str],
        scores: Sequence[float],
    ) -> "OcrResult":
        if not (len(polygons) == len(texts) == len(scores)):
            raise ValueError(
                f"Mismatched OCR result lengths: "
                f"{len(polygons)} boxes, {len(texts)} texts, {len(scores)} scores"
            )
        return cls(
            regions=tuple(
                TextRegion(
                    polygon=tuple(Point(x=float(p[0]), y=float(p[1])) for p in poly),
                    text=text,
                    score=float(score),
                )
                for poly, text, score in zip(polygons, texts, scores)
            )
        )


# ----------------------------------------------------------------------
# OCR API wire models
# ----------------------------------------------------------------------
class OCRLine(BaseModel):
    """OCR APIが返す1行分の結果"""

    text: str
    confidence: float
    box: list[list[float]]  # [[x1,y1], [x2,y2], [x3,y3], [x4,y4]]
    is_vertical: bool = False


class OCRResponse(BaseModel):
    """OCR APIレスポンス"""

    lines: list[OCRLine]


class HealthResponse(BaseModel):
    """ヘルスチェックレスポンス"""

    status: str
    model: Optional[str] = None
    device: Optional[str] = None

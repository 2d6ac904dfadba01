class OcrViewerError(Exception):
    """Base class for recoverable viewer errors."""


class ImageAcquisitionError(OcrViewerError):
    """画像の読み込み・デコードに失敗した"""


class OcrEngineError(OcrViewerError):
    """OCRエンジンの呼び出しに失敗した、または不正な結果を返した"""

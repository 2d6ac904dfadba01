TRANSLATIONS = {
    "main_title":{
        "ja":"OCRビューア",
        "en":"OCR Viewer"
    },
    "main_explain":{
        "ja":"画像を選択するとOCRを実行します",
        "en":"Pick an image to run OCR"
    },
    "main_pick_btn":{
        "ja":"画像を選択",
        "en":"Pick Image"
    },
    "main_ocr_btn":{
        "ja":"OCR実行",
        "en":"Run OCR"
    },
    "main_clear_btn":{
        "ja":"画像をクリア",
        "en":"Clear Image"
    },
    "main_overlay_btn":{
        "ja":"枠の表示切替",
        "en":"Toggle Overlay"
    },
    "main_list_btn":{
        "ja":"認識結果一覧",
        "en":"All Results"
    },
    "main_save_btn":{
        "ja":"枠付き画像を保存",
        "en":"Save Annotated"
    },
    "main_hastext_btn":{
        "ja":"文字の有無",
        "en":"hasText"
    },
    "main_detecting":{
        "ja":"文字を検出中……",
        "en":"Detecting text..."
    },
    "engine_unavailable":{
        "ja":"OCRエンジンに接続できません: {detail}",
        "en":"OCR engine is not reachable: {detail}"
    },
    "image_load_failed":{
        "ja":"画像を読み込めませんでした: {detail}",
        "en":"Failed to load image: {detail}"
    },
    "ocr_complete":{
        "ja":"{count} 件のテキストを検出しました",
        "en":"Detected {count} text regions"
    },
    "ocr_no_text":{
        "ja":"テキストは検出されませんでした",
        "en":"No text detected"
    },
    "ocr_failed":{
        "ja":"OCRに失敗しました: {detail}",
        "en":"OCR failed: {detail}"
    },
    "ocr_timeout":{
        "ja":"OCRがタイムアウトしました ({detail} 秒)",
        "en":"OCR timed out after {detail}s"
    },
    "copied_text":{
        "ja":"コピーしました ({count} 文字)",
        "en":"Copied text ({count} chars)"
    },
    "copied_empty":{
        "ja":"空のテキストをコピーしました",
        "en":"Copied empty text"
    },
    "has_text_result":{
        "ja":"文字の有無: {detail}",
        "en":"hasText result: {detail}"
    },
    "save_done":{
        "ja":"保存しました: {detail}",
        "en":"Saved: {detail}"
    },
    "save_failed":{
        "ja":"保存に失敗しました: {detail}",
        "en":"Save failed: {detail}"
    },
    "region_title":{
        "ja":"認識テキスト",
        "en":"Recognized Text"
    },
    "confidence_label":{
        "ja":"信頼度: {value}%",
        "en":"Confidence: {value}%"
    },
    "list_title":{
        "ja":"検出テキスト ({count})",
        "en":"Detected Text ({count})"
    },
    "empty_text":{
        "ja":"(空)",
        "en":"(empty)"
    },
    "copy_btn":{
        "ja":"コピー",
        "en":"Copy"
    },
    "copy_all_btn":{
        "ja":"すべてコピー",
        "en":"Copy All"
    },
    "common_close":{
        "ja":"閉じる",
        "en":"Close"
    },
}


def label(key: str, langcode: str, **kwargs) -> str:
    text = TRANSLATIONS[key].get(langcode) or TRANSLATIONS[key]["en"]
    return text.format(**kwargs) if kwargs else text

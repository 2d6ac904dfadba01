from typing import Callable, Optional

import flet as ft

from ..schemas import OcrResult, TextRegion
from .localelabel import label


def confidence_percent(score: float) -> str:
    return "{:.1f}".format(min(max(score, 0.0), 1.0) * 100)


class RegionDialog:
    """Text and confidence of the tapped region, with a copy action."""

    def __init__(self, page: ft.Page, langcode: str, on_copy: Callable[[int], None]):
        self.page = page
        self.langcode = langcode
        self.on_copy = on_copy
        self.index: Optional[int] = None

        self.resulttext = ft.Text(value="", selectable=True, weight=ft.FontWeight.W_600)
        self.confidencetext = ft.Text(value="", size=12, color=ft.Colors.BLACK54)
        self.dialog = ft.AlertDialog(
            modal=True,
            title=ft.Text(label("region_title", langcode)),
            content=ft.Column([self.resulttext, self.confidencetext], tight=True),
            actions=[
                ft.TextButton(label("copy_btn", langcode), icon=ft.Icons.COPY, on_click=self.copy_text),
                ft.TextButton(label("common_close", langcode), on_click=self.close_dialog),
            ],
            actions_alignment=ft.MainAxisAlignment.END,
        )

    def set_region(self, index: int, region: TextRegion):
        self.index = index
        self.resulttext.value = region.text or label("empty_text", self.langcode)
        self.confidencetext.value = label(
            "confidence_label", self.langcode, value=confidence_percent(region.score)
        )

    def open_dialog(self, index: int, region: TextRegion):
        self.set_region(index, region)
        self.page.open(self.dialog)

    def copy_text(self, e):
        if self.index is not None:
            self.on_copy(self.index)

    def close_dialog(self, e):
        self.page.close(self.dialog)


class ResultListDialog:
    """Every detected region with per-item copy and a copy-all action."""

    def __init__(
        self,
        page: ft.Page,
        langcode: str,
        on_copy: Callable[[int], None],
        on_copy_all: Callable[[], None],
    ):
        self.page = page
        self.langcode = langcode
        self.on_copy = on_copy
        self.on_copy_all = on_copy_all

        self.title = ft.Text(label("list_title", langcode, count=0))
        self.listview = ft.ListView(spacing=8, width=500, height=400)
        self.copy_all_btn = ft.TextButton(
            label("copy_all_btn", langcode), icon=ft.Icons.COPY_ALL, on_click=lambda e: self.on_copy_all()
        )
        self.dialog = ft.AlertDialog(
            modal=True,
            title=self.title,
            content=self.listview,
            actions=[
                self.copy_all_btn,
                ft.TextButton(label("common_close", langcode), on_click=self.close_dialog),
            ],
            actions_alignment=ft.MainAxisAlignment.END,
        )

    def _build_tile(self, index: int, region: TextRegion) -> ft.Control:
        return ft.ListTile(
            title=ft.Text(region.text or label("empty_text", self.langcode), selectable=True),
            subtitle=ft.Text(
                label("confidence_label", self.langcode, value=confidence_percent(region.score)),
                size=12,
            ),
            trailing=ft.IconButton(
                icon=ft.Icons.COPY,
                tooltip=label("copy_btn", self.langcode),
                on_click=lambda e, i=index: self.on_copy(i),
            ),
        )

    def set_result(self, result: OcrResult):
        self.title.value = label("list_title", self.langcode, count=len(result))
        if result.is_empty:
            self.listview.controls = [ft.Text(label("ocr_no_text", self.langcode))]
            self.copy_all_btn.disabled = True
        else:
            self.listview.controls = [
                self._build_tile(i, region) for i, region in enumerate(result.regions)
            ]
            self.copy_all_btn.disabled = False

    def open_dialog(self, result: OcrResult):
        self.set_result(result)
        self.page.open(self.dialog)

    def close_dialog(self, e):
        self.page.close(self.dialog)

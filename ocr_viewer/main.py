import argparse
import base64
import functools
import logging
from typing import Callable, Optional

import flet as ft
import flet.canvas as cv

from .config import USER_CONFIG_PATH, load_config, save_config
from .controller import Notice, NoticeKind, PresentationController
from .image_source import SUPPORTED_EXTENSIONS
from .ocr_engine import OcrEngine, create_engine
from .overlay import OverlayStyle
from .uicomponent.localelabel import label
from .uicomponent.overlay_canvas import overlay_shapes
from .uicomponent.result_dialogs import RegionDialog, ResultListDialog

logger = logging.getLogger(__name__)

name = "OCR-Viewer"


class OcrViewer:
    def __init__(
        self,
        page: ft.Page,
        config_obj: dict,
        controller: PresentationController,
        on_locale_change: Optional[Callable] = None,
    ):
        self.page = page
        self.config_obj = config_obj
        self.langcode = config_obj["langcode"]
        self.controller = controller
        self.display_width = config_obj["display_width"]
        self.display_height = config_obj["display_height"]
        self._shown_token = None

        self.img = ft.Image(
            src="dummy.dat",
            width=self.display_width,
            height=self.display_height,
            fit=ft.ImageFit.CONTAIN,
            gapless_playback=True,
            visible=False,
        )
        self.placeholder = ft.Container(
            content=ft.Column(
                [
                    ft.Icon(ft.Icons.IMAGE_OUTLINED, size=96, color=ft.Colors.with_opacity(0.3, ft.Colors.ON_SURFACE)),
                    ft.Text(label("main_explain", self.langcode)),
                ],
                horizontal_alignment=ft.CrossAxisAlignment.CENTER,
                alignment=ft.MainAxisAlignment.CENTER,
            ),
            width=self.display_width,
            height=self.display_height,
            alignment=ft.alignment.center,
        )
        self.canvas = cv.Canvas(shapes=[], width=self.display_width, height=self.display_height)
        # 画像の上に配置する透明なレイヤー（タップ検知用）
        self.overlay = ft.GestureDetector(
            content=ft.Container(
                width=self.display_width,
                height=self.display_height,
                bgcolor=ft.Colors.TRANSPARENT,
            ),
            on_tap_down=self.handle_tap,
        )
        self.progress = ft.Row(
            [ft.ProgressRing(width=16, height=16, stroke_width=2), ft.Text(label("main_detecting", self.langcode))],
            visible=False,
        )
        self.image_stack = ft.Stack(
            width=self.display_width,
            height=self.display_height,
            controls=[self.placeholder, self.img, self.canvas, self.overlay],
        )

        self.region_dialog = RegionDialog(page, self.langcode, on_copy=self.controller.copy_region)
        self.list_dialog = ResultListDialog(
            page, self.langcode, on_copy=self.controller.copy_region, on_copy_all=self.controller.copy_all
        )
        self.pick_files_dialog = ft.FilePicker(on_result=self.pick_files_result)
        self.save_file_dialog = ft.FilePicker(on_result=self.save_file_result)

        self.pick_btn = ft.ElevatedButton(
            label("main_pick_btn", self.langcode),
            icon=ft.Icons.PHOTO_LIBRARY_OUTLINED,
            on_click=lambda _: self.pick_files_dialog.pick_files(
                allow_multiple=False,
                file_type=ft.FilePickerFileType.CUSTOM,
                allowed_extensions=SUPPORTED_EXTENSIONS,
            ),
        )
        self.ocr_btn = ft.ElevatedButton(
            label("main_ocr_btn", self.langcode),
            icon=ft.Icons.DOCUMENT_SCANNER_OUTLINED,
            on_click=self.run_ocr,
            disabled=True,
        )
        self.clear_btn = ft.IconButton(
            icon=ft.Icons.CLOSE,
            tooltip=label("main_clear_btn", self.langcode),
            on_click=self.clear_image,
            disabled=True,
        )
        self.overlay_btn = ft.IconButton(
            icon=ft.Icons.LAYERS_OUTLINED,
            tooltip=label("main_overlay_btn", self.langcode),
            on_click=lambda _: self.controller.toggle_overlay(),
            disabled=True,
        )
        self.list_btn = ft.ElevatedButton(
            label("main_list_btn", self.langcode),
            icon=ft.Icons.LIST,
            on_click=self.open_list,
            disabled=True,
        )
        self.hastext_btn = ft.OutlinedButton(
            label("main_hastext_btn", self.langcode),
            icon=ft.Icons.TEXT_FIELDS_OUTLINED,
            on_click=self.check_has_text,
            disabled=True,
        )
        self.save_btn = ft.OutlinedButton(
            label("main_save_btn", self.langcode),
            icon=ft.Icons.SAVE_ALT,
            on_click=lambda _: self.save_file_dialog.save_file(file_name="annotated.png"),
            disabled=True,
        )
        self.localebutton = ft.CupertinoSlidingSegmentedButton(
            selected_index=0 if self.langcode == "ja" else 1,
            thumb_color=ft.Colors.BLUE_400,
            on_change=on_locale_change,
            controls=[ft.Text("日本語"), ft.Text("English")],
        )

    def build(self) -> ft.Control:
        return ft.Column(
            [
                ft.Row([self.localebutton, self.clear_btn, self.overlay_btn], alignment=ft.MainAxisAlignment.END),
                ft.Container(
                    content=self.image_stack,
                    bgcolor=ft.Colors.BLACK,
                    border=ft.border.all(1, ft.Colors.GREY),
                ),
                self.progress,
                ft.Row([self.pick_btn, self.ocr_btn, self.list_btn]),
                ft.Row([self.hastext_btn, self.save_btn]),
            ],
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
        )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def refresh(self):
        state = self.controller.state
        if state.image_token != self._shown_token:
            self._shown_token = state.image_token
            if state.image is not None:
                self.img.src_base64 = base64.b64encode(state.image.data).decode("utf-8")
            self.img.visible = state.image is not None
            self.placeholder.visible = state.image is None

        self.canvas.shapes = overlay_shapes(self.controller.overlay_items())

        busy = state.is_busy
        has_image = state.image is not None
        has_result = state.result is not None
        self.progress.visible = busy
        self.pick_btn.disabled = busy
        self.ocr_btn.disabled = not state.can_run_ocr
        self.clear_btn.disabled = not has_image or busy
        self.hastext_btn.disabled = not state.can_run_ocr
        self.overlay_btn.disabled = not has_result
        self.list_btn.disabled = not has_result
        self.save_btn.disabled = not has_result
        self.page.update()

    def show_notice(self, notice: Notice):
        message = label(notice.key, self.langcode, **notice.params)
        bgcolor = ft.Colors.RED_400 if notice.kind is NoticeKind.ERROR else None
        self.page.open(ft.SnackBar(ft.Text(message), bgcolor=bgcolor))

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    async def pick_files_result(self, e: ft.FilePickerResultEvent):
        if not e.files:
            return
        await self.controller.select_image(e.files[0].path)

    async def run_ocr(self, e):
        await self.controller.run_ocr()

    async def check_has_text(self, e):
        await self.controller.check_has_text()

    def clear_image(self, e):
        self.controller.clear_image()

    def handle_tap(self, e: ft.TapEvent):
        region = self.controller.tap(e.local_x, e.local_y)
        if region is not None:
            self.region_dialog.open_dialog(self.controller.state.selected_index, region)

    def open_list(self, e):
        result = self.controller.state.result
        if result is not None:
            self.list_dialog.open_dialog(result)

    def save_file_result(self, e: ft.FilePickerResultEvent):
        if not e.path:
            return
        annotated = self.controller.annotated_image()
        if annotated is None:
            return
        try:
            annotated.save(e.path)
        except (OSError, ValueError) as err:
            logger.warning("Failed to save annotated image to %s: %s", e.path, err)
            self.show_notice(Notice(NoticeKind.ERROR, "save_failed", {"detail": str(err)}))
            return
        self.show_notice(Notice(NoticeKind.INFO, "save_done", {"detail": e.path}))


def main(page: ft.Page, config_obj: dict, engine: OcrEngine, config_path: str = USER_CONFIG_PATH):
    page.title = label("main_title", config_obj["langcode"])
    page.window.width = config_obj["display_width"] + 80
    page.window.height = config_obj["display_height"] + 260
    page.horizontal_alignment = ft.CrossAxisAlignment.CENTER

    viewer: Optional[OcrViewer] = None

    def on_change(state):
        if viewer is not None:
            viewer.refresh()

    def on_notice(notice: Notice):
        if viewer is not None:
            viewer.show_notice(notice)

    controller = PresentationController(
        engine,
        ocr_timeout=config_obj["ocr_timeout"],
        auto_run_ocr=config_obj["auto_run_ocr"],
        min_score=config_obj["min_score"],
        style=OverlayStyle(label_max_length=config_obj["label_max_length"]),
        on_change=on_change,
        on_notice=on_notice,
        set_clipboard=page.set_clipboard,
    )
    controller.resize_display(config_obj["display_width"], config_obj["display_height"])

    def handle_locale_change(e):
        index = e.control.selected_index
        config_obj["langcode"] = "ja" if index == 0 else "en"
        save_config(config_obj, config_path)
        renderui()

    def renderui():
        nonlocal viewer
        page.clean()
        page.overlay.clear()
        viewer = OcrViewer(page, config_obj, controller, on_locale_change=handle_locale_change)
        page.overlay.extend([viewer.pick_files_dialog, viewer.save_file_dialog])
        page.add(viewer.build())
        viewer.refresh()

    async def on_disconnect(e):
        await engine.aclose()

    async def check_engine():
        if not await engine.is_available():
            on_notice(Notice(NoticeKind.ERROR, "engine_unavailable", {"detail": engine.name}))

    page.on_disconnect = on_disconnect
    renderui()
    page.run_task(check_engine)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="OCR result overlay viewer")
    parser.add_argument("--config", type=str, required=False, help="Path to user config yaml", default=USER_CONFIG_PATH)
    parser.add_argument("--engine", type=str, required=False, choices=["http", "paddle"], help="OCR engine adapter")
    parser.add_argument("--engine-url", type=str, required=False, help="Base URL of the OCR API server")
    parser.add_argument("--device", type=str, required=False, help="Device for the local engine (cpu or gpu:0)")
    parser.add_argument("--timeout", type=float, required=False, help="OCR timeout in seconds")
    parser.add_argument("--min-score", type=float, required=False, help="Drop regions scoring below this")
    return parser.parse_args(argv)


def build_config(args) -> dict:
    config_obj = load_config(args.config)
    overrides = {
        "engine": args.engine,
        "engine_url": args.engine_url,
        "device": args.device,
        "ocr_timeout": args.timeout,
        "min_score": args.min_score,
    }
    config_obj.update({k: v for k, v in overrides.items() if v is not None})
    return config_obj


def run(argv=None):
    logging.basicConfig(level=logging.INFO)
    args = parse_args(argv)
    config_obj = build_config(args)
    engine = create_engine(config_obj)
    logger.info("Starting %s with %s engine", name, engine.name)
    ft.app(functools.partial(main, config_obj=config_obj, engine=engine, config_path=args.config))


if __name__ == "__main__":
    run()

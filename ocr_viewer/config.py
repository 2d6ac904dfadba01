import logging
import os

import yaml

logger = logging.getLogger(__name__)

USER_CONFIG_PATH = "userconf.yaml"

DEFAULT_CONFIG = {
    "langcode": "ja",
    "engine": "http",
    "engine_url": "http://localhost:8000",
    "paddle_lang": "japan",
    "device": None,
    "ocr_timeout": 30.0,
    "auto_run_ocr": True,
    "min_score": 0.0,
    "display_width": 600,
    "display_height": 600,
    "label_max_length": 30,
}

# 環境変数で上書き可能な項目
ENV_OVERRIDES = {
    "OCR_VIEWER_ENGINE": ("engine", str),
    "OCR_VIEWER_ENGINE_URL": ("engine_url", str),
    "OCR_VIEWER_TIMEOUT": ("ocr_timeout", float),
}


def load_config(path: str = USER_CONFIG_PATH, environ=None) -> dict:
    """DEFAULT_CONFIG | userconf.yaml | environment."""
    environ = os.environ if environ is None else environ
    load_obj = {}
    if os.path.exists(path):
        with open(path, encoding="utf-8") as f:
            load_obj = yaml.safe_load(f)
        if load_obj is None:
            load_obj = {}
        if not isinstance(load_obj, dict):
            raise ValueError(f"{path} must contain a mapping, got {type(load_obj).__name__}")

    unknown = set(load_obj) - set(DEFAULT_CONFIG)
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", path, sorted(unknown))
        load_obj = {k: v for k, v in load_obj.items() if k in DEFAULT_CONFIG}

    config_obj = DEFAULT_CONFIG | load_obj
    for env_name, (key, cast) in ENV_OVERRIDES.items():
        if env_name not in environ:
            continue
        try:
            config_obj[key] = cast(environ[env_name])
        except ValueError:
            logger.warning(
                "Ignoring %s=%r (expected %s); keeping %r",
                env_name, environ[env_name], cast.__name__, config_obj[key],
            )
    return config_obj


def save_config(config_obj: dict, path: str = USER_CONFIG_PATH) -> None:
    with open(path, "w", encoding="utf-8") as wf:
        yaml.dump(config_obj, wf, default_flow_style=False, allow_unicode=True)

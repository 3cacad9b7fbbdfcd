from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigError

DEFAULT_STREAM_URL = "http://192.168.4.1:81/stream"
DEFAULT_TOPOLOGY_PATH = "yolov4-tiny.cfg"
DEFAULT_WEIGHTS_PATH = "yolov4-tiny.weights"
DEFAULT_CLASSES_PATH = "coco.names"
DEFAULT_CONF_THRESHOLD = 0.5
DEFAULT_IOU_THRESHOLD = 0.4
DEFAULT_INPUT_SIZE = 416
DEFAULT_CLASSES: Tuple[str, ...] = ("person", "dog")

BACKENDS = ("darknet", "onnxruntime")


@dataclass(frozen=True)
class DetectorConfig:
    conf_threshold: float = DEFAULT_CONF_THRESHOLD
    iou_threshold: float = DEFAULT_IOU_THRESHOLD
    input_size: int = DEFAULT_INPUT_SIZE
    classes: Tuple[str, ...] = DEFAULT_CLASSES
    topology_path: str = DEFAULT_TOPOLOGY_PATH
    weights_path: str = DEFAULT_WEIGHTS_PATH
    classes_path: str = DEFAULT_CLASSES_PATH
    stream_url: str = DEFAULT_STREAM_URL
    class_agnostic_nms: bool = True
    backend: Optional[str] = None
    window_name: str = "Elegoo Conquerer Vision"
    max_read_failures: int = 100

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ConfigError("conf_threshold must be within [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ConfigError("iou_threshold must be within [0, 1]")
        if self.input_size < 32 or self.input_size % 32 != 0:
            raise ConfigError("input_size must be a positive multiple of 32")
        if not self.classes or any(not name.strip() for name in self.classes):
            raise ConfigError("classes must be a non-empty list of non-empty names")
        if self.backend is not None and self.backend not in BACKENDS:
            raise ConfigError(f"backend must be one of {BACKENDS}, got {self.backend!r}")
        if self.max_read_failures < 1:
            raise ConfigError("max_read_failures must be >= 1")


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer")
    return int(value)


def _require_str(payload: Dict[str, Any], key: str) -> str:
    value = payload[key]
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} must be a non-empty string")
    return value.strip()


def _coerce_str_tuple(payload: Dict[str, Any], key: str) -> Tuple[str, ...]:
    value = payload[key]
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{key} must be a string or list of strings")
    return tuple(item.strip() for item in value)


_NUMBER_KEYS = {"conf_threshold", "iou_threshold"}
_INT_KEYS = {"input_size", "max_read_failures"}
_STR_KEYS = {"topology_path", "weights_path", "classes_path", "stream_url", "window_name"}


def config_from_dict(payload: Dict[str, Any], base: DetectorConfig = DetectorConfig()) -> DetectorConfig:
    allowed = {f.name for f in fields(DetectorConfig)}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ConfigError(f"Unknown detector config keys: {unknown}")

    values: Dict[str, Any] = {}
    for key in payload:
        if key in _NUMBER_KEYS:
            values[key] = _require_number(payload, key)
        elif key in _INT_KEYS:
            values[key] = _require_int(payload, key)
        elif key in _STR_KEYS:
            values[key] = _require_str(payload, key)
        elif key == "classes":
            values[key] = _coerce_str_tuple(payload, key)
        elif key == "class_agnostic_nms":
            if not isinstance(payload[key], bool):
                raise ConfigError("class_agnostic_nms must be a boolean")
            values[key] = payload[key]
        elif key == "backend":
            values[key] = None if payload[key] is None else _require_str(payload, key)

    return replace(base, **values)


def load_detector_config(path: Path) -> DetectorConfig:
    if not path.exists():
        raise ConfigError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ConfigError("Detector config must be a JSON object")
    return config_from_dict(payload)

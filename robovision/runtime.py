from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import DetectorConfig
from .errors import ConfigError, InferenceError
from .metadata import load_class_names
from .postprocess import DetectionPostprocessor, PostprocessConfig
from .types import Detection

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]
InferFn = Callable[[np.ndarray], Union[np.ndarray, Sequence[np.ndarray]]]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("coco.names", "pyproject.toml"),
) -> Path:
    """
    Walk up from `start` (default: cwd) to the first directory holding the class
    names file or the project's pyproject. Falls back to `start` itself.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against:
      - `root` if provided
      - project root (auto) otherwise
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: Tuple[int, int]


class FrameDetector:
    """
    Per-frame pipeline: preprocess (resize) -> inference -> post-process.

    Owns the network handle for the lifetime of the run. Frames are BGR
    `np.ndarray` images (OpenCV-style); detections come back in original
    frame coordinates.
    """

    def __init__(
        self,
        infer_fn: InferFn,
        postprocessor: DetectionPostprocessor,
        *,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
        input_size: int = 416,
    ):
        self._infer_fn = infer_fn
        self.backend = backend
        self.backend_name = backend_name
        self.input_size = input_size
        self.post = postprocessor

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        try:
            import cv2  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("OpenCV is required for preprocess(). Install with `pip install opencv-python`.") from e

        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        orig_h, orig_w = image_bgr.shape[:2]
        size = (self.input_size, self.input_size)
        img = cv2.resize(image_bgr, size, interpolation=cv2.INTER_LINEAR)

        # BGR -> RGB, normalize, HWC -> CHW, add batch
        blob = img[:, :, ::-1].astype(np.float32) / 255.0
        blob = np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])

        return PreprocessResult(blob=blob, orig_size=(orig_w, orig_h))

    def __call__(self, image_bgr: np.ndarray) -> List[Detection]:
        if image_bgr is None or getattr(image_bgr, "size", 0) == 0:
            LOGGER.warning("Skipping empty frame")
            return []
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            LOGGER.warning("Skipping frame with unsupported shape %s", image_bgr.shape)
            return []

        prep = self.preprocess(image_bgr)
        try:
            outputs = self._infer_fn(prep.blob)
        except Exception as e:
            raise InferenceError(f"Inference failed ({self.backend_name or 'custom'}): {e}") from e

        if isinstance(outputs, np.ndarray):
            outputs = [outputs]
        orig_w, orig_h = prep.orig_size
        return self.post.process(outputs, orig_w, orig_h)


def _infer_backend(weights_path: Path) -> str:
    suffix = weights_path.suffix.lower()
    if suffix == ".weights":
        return "darknet"
    if suffix == ".onnx":
        return "onnxruntime"
    raise ConfigError(f"Could not infer backend from extension '{suffix}'. Set backend explicitly.")


def load_detector(
    cfg: DetectorConfig = DetectorConfig(),
    *,
    root: Optional[PathLike] = "auto",
    onnx_providers: Optional[Sequence[str]] = None,
) -> FrameDetector:
    """
    Build a ready-to-run detector from configuration.

    The class file is loaded and the whitelist resolved before the network, so a
    bad class setup fails without paying for model loading.

    Args:
        cfg: thresholds, whitelist and file locations
        root: base directory for relative paths ("auto" uses best-effort project root)
    """

    catalog = load_class_names(resolve_path(cfg.classes_path, root=root))
    postprocessor = DetectionPostprocessor(
        catalog,
        PostprocessConfig(
            conf_threshold=cfg.conf_threshold,
            iou_threshold=cfg.iou_threshold,
            classes=tuple(cfg.classes),
            class_agnostic_nms=cfg.class_agnostic_nms,
        ),
    )

    weights = resolve_path(cfg.weights_path, root=root)
    chosen = cfg.backend or _infer_backend(weights)

    if chosen == "darknet":
        from .backends.darknet_backend import DarknetBackend

        darknet = DarknetBackend(resolve_path(cfg.topology_path, root=root), weights)
        return FrameDetector(
            darknet.infer,
            postprocessor,
            backend=darknet,
            backend_name="darknet",
            input_size=cfg.input_size,
        )

    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        ort_backend = OnnxRuntimeBackend(weights, OnnxRuntimeBackendConfig(providers=onnx_providers))
        return FrameDetector(
            ort_backend.infer,
            postprocessor,
            backend=ort_backend,
            backend_name="onnxruntime",
            input_size=cfg.input_size,
        )

    raise ConfigError(f"Unsupported backend: {chosen!r}")

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Union

import numpy as np

from ..errors import ModelLoadError

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class DarknetBackendConfig:
    """
    OpenCV DNN settings. Defaults match a CPU-only build of OpenCV.
    """

    preferable_backend: str = "DNN_BACKEND_OPENCV"
    preferable_target: str = "DNN_TARGET_CPU"


class DarknetBackend:
    """
    Runs a darknet model (`.cfg` topology + `.weights`) through `cv2.dnn`.

    Expects an NCHW float32 blob shaped (1, 3, S, S).
    Returns one (N, 5 + K) array per unconnected output layer.
    """

    def __init__(
        self,
        topology_path: PathLike,
        weights_path: PathLike,
        cfg: DarknetBackendConfig = DarknetBackendConfig(),
    ):
        try:
            import cv2  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("OpenCV is required for the darknet backend. Install with `pip install opencv-python`.") from e

        self.topology_path = Path(topology_path)
        self.weights_path = Path(weights_path)
        for p in (self.topology_path, self.weights_path):
            if not p.is_file():
                raise ModelLoadError(f"Model file not found: {p}", model_path=str(p))

        try:
            net = cv2.dnn.readNetFromDarknet(str(self.topology_path), str(self.weights_path))
        except cv2.error as e:
            raise ModelLoadError(
                f"OpenCV could not load darknet model {self.topology_path} / {self.weights_path}: {e}",
                model_path=str(self.weights_path),
            ) from e
        if net.empty():
            raise ModelLoadError(f"Darknet model is empty: {self.weights_path}", model_path=str(self.weights_path))

        net.setPreferableBackend(getattr(cv2.dnn, cfg.preferable_backend))
        net.setPreferableTarget(getattr(cv2.dnn, cfg.preferable_target))
        self.net = net
        self.output_names: Sequence[str] = tuple(net.getUnconnectedOutLayersNames())
        LOGGER.info("Loaded darknet model %s (outputs: %s)", self.weights_path, ", ".join(self.output_names))

    def infer(self, blob: np.ndarray) -> List[np.ndarray]:
        self.net.setInput(blob)
        outputs = self.net.forward(list(self.output_names))
        return [np.asarray(out) for out in outputs]

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np

from ..errors import ModelLoadError

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - input_name: override the auto-selected input name if needed
    - output_names: restrict to these outputs; None returns every output
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_names: Optional[Sequence[str]] = None


class OnnxRuntimeBackend:
    """
    Minimal ONNX Runtime backend for detectors exported with darknet-style heads.

    Expects an NCHW float32 blob, typically shaped (1, 3, H, W).
    Returns every selected output as a NumPy array.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise ModelLoadError(f"Model file not found: {self.model_path}", model_path=str(self.model_path))

        sess_opts = ort.SessionOptions()
        providers = list(cfg.providers) if cfg.providers is not None else None
        try:
            self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)
        except Exception as e:
            raise ModelLoadError(f"ONNX Runtime rejected {self.model_path}: {e}", model_path=str(self.model_path)) from e

        self.input_name = cfg.input_name or self.session.get_inputs()[0].name
        self.output_names = list(cfg.output_names or [o.name for o in self.session.get_outputs()])
        LOGGER.info("Loaded ONNX model %s (providers: %s)", self.model_path, ", ".join(self.providers_in_use))

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    def infer(self, blob: np.ndarray) -> List[np.ndarray]:
        return list(self.session.run(self.output_names, {self.input_name: blob}))

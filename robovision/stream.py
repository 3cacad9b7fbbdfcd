from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import cv2
import numpy as np

from .config import DetectorConfig, config_from_dict, load_detector_config
from .errors import InferenceError, RoboVisionError
from .ingest import get_capture_info, open_capture
from .runtime import load_detector
from .types import Detection
from .visualize import draw_detections

LOGGER = logging.getLogger(__name__)

QUIT_KEYS = (ord("q"),)


@dataclass
class StreamStats:
    frames_read: int = 0
    frames_processed: int = 0
    frames_skipped: int = 0
    detections: int = 0


def run_stream(
    capture: Any,
    detector: Callable[[np.ndarray], List[Detection]],
    *,
    window_name: str = "detections",
    show: bool = True,
    max_read_failures: int = 100,
    max_frames: int = 0,
) -> StreamStats:
    """
    Read frames until the stream ends, the user quits, or `max_frames` is reached.

    Empty reads, non-BGR frames and inference failures skip the frame; the loop only gives up
    after `max_read_failures` consecutive failed reads.
    """

    stats = StreamStats()
    failures = 0

    while True:
        ok, frame = capture.read()
        if not ok or frame is None or frame.size == 0:
            failures += 1
            if failures >= max_read_failures:
                LOGGER.error("Stream stopped delivering frames after %d failed reads", failures)
                break
            continue
        failures = 0
        stats.frames_read += 1

        if frame.ndim != 3 or frame.shape[2] != 3:
            stats.frames_skipped += 1
            LOGGER.warning("Skipping frame %d: unsupported shape %s", stats.frames_read, frame.shape)
            continue

        try:
            detections = detector(frame)
        except InferenceError as exc:
            stats.frames_skipped += 1
            LOGGER.warning("Skipping frame %d: %s", stats.frames_read, exc)
            continue

        stats.frames_processed += 1
        stats.detections += len(detections)
        LOGGER.debug("Frame %d: %d detections", stats.frames_read, len(detections))

        if show:
            vis = draw_detections(frame, detections)
            cv2.imshow(window_name, vis)
            key = cv2.waitKey(1) & 0xFF
            if key in QUIT_KEYS:
                LOGGER.info("Quit requested")
                break

        if max_frames and stats.frames_processed >= max_frames:
            break

    return stats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect people and dogs on a live camera stream.")
    parser.add_argument("--config", type=Path, default=None, help="JSON detector config; CLI flags override it.")
    parser.add_argument("--source", default=None, help="Stream URL, video file, or webcam index.")
    parser.add_argument("--topology", dest="topology_path", default=None, help="Darknet .cfg file.")
    parser.add_argument("--weights", dest="weights_path", default=None, help="Darknet .weights or .onnx model.")
    parser.add_argument("--classes-file", dest="classes_path", default=None, help="Class names file (one per line).")
    parser.add_argument("--classes", default=None, help='Comma-separated class names to report, e.g. "person,dog".')
    parser.add_argument("--conf", dest="conf_threshold", type=float, default=None, help="Confidence threshold.")
    parser.add_argument("--iou", dest="iou_threshold", type=float, default=None, help="IoU threshold for NMS.")
    parser.add_argument("--imgsz", dest="input_size", type=int, default=None, help="Network input size (e.g., 416).")
    parser.add_argument("--backend", default=None, help="Force backend: darknet / onnxruntime.")
    parser.add_argument(
        "--per-class-nms",
        action="store_true",
        help="Suppress overlaps within each class instead of across all reported classes.",
    )
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--no-show", action="store_true", help="Do not open a display window.")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N processed frames (0 = no limit).")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    return parser


def resolve_config(args: argparse.Namespace) -> DetectorConfig:
    base = load_detector_config(args.config) if args.config is not None else DetectorConfig()

    overrides: Dict[str, Any] = {}
    for key in ("topology_path", "weights_path", "classes_path", "conf_threshold", "iou_threshold", "input_size", "backend"):
        value = getattr(args, key)
        if value is not None:
            overrides[key] = value
    if args.source is not None:
        overrides["stream_url"] = args.source
    if args.classes is not None:
        overrides["classes"] = [c for c in args.classes.split(",") if c.strip()]
    if args.per_class_nms:
        overrides["class_agnostic_nms"] = False
    return config_from_dict(overrides, base=base)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.max_frames < 0:
        parser.error("--max-frames must be >= 0")

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    try:
        cfg = resolve_config(args)
        detector = load_detector(cfg, onnx_providers=onnx_providers)
        cap = open_capture(cfg.stream_url)
    except RoboVisionError as exc:
        LOGGER.error("Startup failed: %s", exc)
        return 1

    info = get_capture_info(cap)
    LOGGER.info("Stream opened (%sx%s @ %s fps)", info.width, info.height, info.fps)

    show = not args.no_show
    if show:
        cv2.namedWindow(cfg.window_name, cv2.WINDOW_AUTOSIZE)
    try:
        stats = run_stream(
            cap,
            detector,
            window_name=cfg.window_name,
            show=show,
            max_read_failures=cfg.max_read_failures,
            max_frames=args.max_frames,
        )
    finally:
        cap.release()
        if show:
            cv2.destroyAllWindows()

    LOGGER.info(
        "Processed %d/%d frames (%d skipped), %d detections",
        stats.frames_processed,
        stats.frames_read,
        stats.frames_skipped,
        stats.detections,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""
Network executors for robovision.

Each backend turns a preprocessed NCHW blob into the list of raw detection-grid
tensors the post-processor consumes. They are kept out of the core so decoding,
filtering and NMS can be used and tested without an inference runtime.
"""

from __future__ import annotations

__all__ = []

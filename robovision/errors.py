"""
Exception taxonomy for robovision.

Every error derives from `RoboVisionError` and from the closest builtin, so
callers may catch either `ClassNotFound` or a plain `LookupError`.
"""


class RoboVisionError(Exception):
    """Base error for the whole package."""


class ClassFileNotFound(RoboVisionError, FileNotFoundError):
    """The class name file could not be read."""


class MalformedClassFile(RoboVisionError, ValueError):
    """The class name file was readable but held no names."""


class ClassNotFound(RoboVisionError, LookupError):
    """A class name or id is absent from the catalog."""


class ConfigError(RoboVisionError, ValueError):
    """Invalid configuration file or value."""


class ModelLoadError(RoboVisionError, RuntimeError):
    """Network topology/weights could not be loaded."""

    def __init__(self, message: str, model_path: str = ""):
        super().__init__(message)
        self.model_path = model_path


class InferenceError(RoboVisionError, RuntimeError):
    """The network executor failed for a single frame."""


class StreamError(RoboVisionError, RuntimeError):
    """The frame source could not be opened."""

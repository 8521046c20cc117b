from __future__ import annotations


class LazySceneError(Exception):
    """Base class for every error raised by the scene engine."""


class DocumentValidationError(LazySceneError, ValueError):
    """Structural problem in a scene document, raised before anything is built."""


class DuplicateLayerError(LazySceneError, ValueError):
    pass


class CyclicReferenceError(LazySceneError, ValueError):
    def __init__(self, trail: list[str]) -> None:
        self.trail = list(trail)
        super().__init__(f"cyclic reference: {' -> '.join(self.trail)}")


class ResourceError(LazySceneError, RuntimeError):
    """An external resource (image, nested pattern scene) failed while drawing."""


class PluginError(LazySceneError, RuntimeError):
    pass


class ExportError(LazySceneError, ValueError):
    pass

"""Line diff engine."""

from oops.diff.engine import DiffEngine, DiffResult

__all__ = ["DiffEngine", "DiffResult"]

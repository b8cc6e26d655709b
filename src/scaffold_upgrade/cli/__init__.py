"""CLI helpers exposed for other modules."""

from .ui import StepTracker

__all__ = ["StepTracker"]

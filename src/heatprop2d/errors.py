"""Exceptions raised by the solver, the renderer and the simulation driver."""

from __future__ import annotations


class DimensionMismatchError(ValueError):
    """A field or frame buffer does not match the configured grid size."""


class StabilityError(ValueError):
    """The explicit scheme parameters violate k*dt/dx^2 <= 1/4."""

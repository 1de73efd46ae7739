# ------------------------------------------------------------
# Simulation parameters for the 2D heat propagation animation
# ------------------------------------------------------------
# PDE:
#   ∂T/∂t = k ( ∂²T/∂x² + ∂²T/∂y² )
#
# Explicit five-point stencil, stable only while
#   r = k*dt/dx² <= 1/4
# ------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from heatprop2d.errors import StabilityError

logger = logging.getLogger(__name__)

# Diffusion number limit of the 2D five-point FTCS scheme
STABILITY_LIMIT = 0.25

# Slack for presets that sit exactly on the limit (25 * 1e-4 / 0.1² is not
# exactly 0.25 in binary floating point)
_STABILITY_RTOL = 1e-9

COORDINATE_MODES = ("grid", "physical")


@dataclass(frozen=True)
class SimulationParams:
    height: int = 600          # grid rows
    width: int = 800           # grid columns
    dt: float = 1.0e-4         # time step
    dx: float = 1.0e-1         # spatial step (same in x and y)
    k: float = 25.0            # diffusivity
    steps_per_frame: int = 32  # solver steps between two displayed frames

    # "grid": boundary evaluated at integer (col, row)
    # "physical": boundary evaluated at (col*dx, row*dx)
    coords: str = "grid"
    initial_value: float = -1.0

    def __post_init__(self) -> None:
        if self.height < 1 or self.width < 1:
            raise ValueError(f"Grid must be at least 1x1, got {self.height}x{self.width}.")
        if self.dt <= 0.0 or self.dx <= 0.0:
            raise ValueError(f"dt and dx must be positive, got dt={self.dt}, dx={self.dx}.")
        if self.k < 0.0:
            raise ValueError(f"Diffusivity must be non-negative, got k={self.k}.")
        if self.steps_per_frame < 1:
            raise ValueError(f"steps_per_frame must be >= 1, got {self.steps_per_frame}.")
        if self.coords not in COORDINATE_MODES:
            raise ValueError(f"coords must be one of {COORDINATE_MODES}, got {self.coords!r}.")

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    @property
    def diffusion_number(self) -> float:
        """r = k*dt/dx², the weight applied to the discrete Laplacian."""
        return self.k * self.dt / (self.dx * self.dx)

    @property
    def is_stable(self) -> bool:
        return self.diffusion_number <= STABILITY_LIMIT * (1.0 + _STABILITY_RTOL)

    @property
    def frame_bytes(self) -> int:
        """Size of an RGBA8 frame buffer for this grid."""
        return 4 * self.height * self.width

    def check_stability(self) -> None:
        """
        Raise StabilityError if the explicit scheme would diverge.

        Called once at startup; the solver itself never checks per step.
        """
        r = self.diffusion_number
        if not self.is_stable:
            raise StabilityError(
                f"Unstable parameters: k*dt/dx^2 = {r:.6g} exceeds {STABILITY_LIMIT} "
                f"(k={self.k}, dt={self.dt}, dx={self.dx}). Reduce dt or k, or increase dx."
            )
        logger.debug("Stability check passed: k*dt/dx^2 = %.6g", r)


# ------------------------------------------------------------
# Presets
# ------------------------------------------------------------
# Stencil stepping, 32 fine steps per displayed frame
DEFAULT_PARAMS = SimulationParams()

# Full analytic recompute; far outside the stencil stability bound, so it is
# only valid in analytic mode
ANALYTIC_PARAMS = SimulationParams(dt=1.0e-1, dx=1.0e-1, steps_per_frame=1)

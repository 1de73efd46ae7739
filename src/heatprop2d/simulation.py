# ------------------------------------------------------------
# Simulation driver: double-buffered stepping + per-frame render
# ------------------------------------------------------------
# Modes:
#   - "stencil":  run steps_per_frame explicit steps per frame
#   - "analytic": recompute the whole field from u(x, y, t)
# The two modes are independent; they are not expected to agree.
# ------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from heatprop2d.colormap import frame_view, render
from heatprop2d.params import SimulationParams
from heatprop2d.solver import analytic_field, get_stepper, initial_field, max_deviation

logger = logging.getLogger(__name__)

MODES = ("stencil", "analytic")


@dataclass
class FrameStats:
    t: float
    center: float
    t_min: float
    t_max: float
    mean: float


class Simulation:
    """
    Holds the two temperature buffers and the step counter.

    Exactly one buffer is current at any time. A step reads `current`,
    writes `next`, then the two references are swapped.
    """

    def __init__(
        self,
        params: SimulationParams,
        mode: str = "stencil",
        init: str = "constant",
        backend: str = "numpy",
    ) -> None:
        if mode not in MODES:
            raise ValueError(f"Unknown mode {mode!r}; choose from {MODES}.")
        if mode == "stencil":
            params.check_stability()

        self.params = params
        self.mode = mode
        self.iteration = 0
        self._stepper = get_stepper(backend)

        self.current = initial_field(params, init)
        self.next = np.empty_like(self.current)

        logger.debug(
            "Simulation %dx%d, mode=%s, init=%s, backend=%s, r=%.6g",
            params.height, params.width, mode, init, backend, params.diffusion_number,
        )

    @property
    def field(self) -> np.ndarray:
        return self.current

    @property
    def time(self) -> float:
        return self.iteration * self.params.dt

    def step(self) -> None:
        """Advance by one time step."""
        if self.mode == "analytic":
            self.advance(1)
            return
        self._stepper(self.current, self.next, self.time, self.params)
        self.current, self.next = self.next, self.current
        self.iteration += 1

    def advance(self, n: int) -> None:
        if n < 0:
            raise ValueError(f"Cannot advance by a negative number of steps ({n}).")
        if self.mode == "analytic":
            self.iteration += n
            analytic_field(self.params, self.time, out=self.current)
            return
        for _ in range(n):
            self.step()

    def advance_frame(self) -> None:
        """One batch of steps_per_frame steps, without rendering."""
        self.advance(self.params.steps_per_frame)

    def produce_next_frame(self, frame_buffer) -> None:
        """
        Frame callback: advance one batch, then draw the current field.

        `frame_buffer` is a writable RGBA8 buffer of at least 4*height*width bytes.
        It is validated before any step runs, so a bad buffer leaves the
        simulation untouched.
        """
        pixels = frame_view(frame_buffer, self.params)
        self.advance_frame()
        render(self.current, pixels, self.params)

    # ------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------
    def center_value(self) -> float:
        return float(self.current[self.params.height // 2, self.params.width // 2])

    def stats(self) -> FrameStats:
        T = self.current
        return FrameStats(
            t=self.time,
            center=self.center_value(),
            t_min=float(T.min()),
            t_max=float(T.max()),
            mean=float(T.mean()),
        )

    def deviation_from_analytic(self) -> float:
        return max_deviation(self.current, self.params, self.time)

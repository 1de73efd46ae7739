# ------------------------------------------------------------
# Field solver: 2D heat equation, explicit five-point stencil
# ------------------------------------------------------------
# Update (for every cell, edges included):
#   new[i,j] = old[i,j] + r * (left + right + top + bottom - 4*old[i,j])
#   r = k*dt/dx²
#
# Boundary:
#   a neighbour outside the grid is replaced by the travelling wave
#   u(x, y, t) = sin((t + x + y) / π), evaluated at the edge cell
#   itself. Every edge is a time-varying Dirichlet boundary.
#
# Backends:
#   - "numpy":  vectorized update using slicing (default)
#   - "python": cell-by-cell loops, reference for validation
#   - "scipy":  convolution with a five-point kernel (optional SciPy)
# ------------------------------------------------------------

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from heatprop2d.errors import DimensionMismatchError
from heatprop2d.params import SimulationParams

logger = logging.getLogger(__name__)

Stepper = Callable[[np.ndarray, np.ndarray, float, SimulationParams], None]

INITIAL_KINDS = ("constant", "analytic", "patch")


def boundary_u(x, y, t):
    """
    Analytic boundary temperature u(x, y, t) = sin((t + x + y) / π).

    Accepts Python floats or NumPy arrays (broadcast).
    """
    if isinstance(x, np.ndarray) or isinstance(y, np.ndarray):
        return np.sin((t + x + y) / np.pi)
    return math.sin((t + x + y) / math.pi)


def grid_coordinates(params: SimulationParams) -> Tuple[np.ndarray, np.ndarray]:
    """
    Coordinates used to evaluate the boundary function.

    Returns
    -------
    (x, y) : tuple of np.ndarray
        x has one entry per column (length width), y one per row (length height).
    """
    x = np.arange(params.width, dtype=np.float64)
    y = np.arange(params.height, dtype=np.float64)
    if params.coords == "physical":
        x = x * params.dx
        y = y * params.dx
    return x, y


def edge_values(params: SimulationParams, time: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Values substituted for the missing neighbours at each edge.

    Returns (left, right, top, bottom): left/right have length height
    (one per row), top/bottom have length width (one per column).
    """
    x, y = grid_coordinates(params)
    left = boundary_u(x[0], y, time)
    right = boundary_u(x[-1], y, time)
    top = boundary_u(x, y[0], time)
    bottom = boundary_u(x, y[-1], time)
    return left, right, top, bottom


def _check_buffers(old: np.ndarray, new: np.ndarray, params: SimulationParams) -> None:
    if old.shape != params.shape or new.shape != params.shape:
        raise DimensionMismatchError(
            f"Field shapes {old.shape} -> {new.shape} do not match grid {params.shape}."
        )
    if np.may_share_memory(old, new):
        raise ValueError("advance() needs two distinct buffers; old and new overlap.")


# ------------------------------------------------------------
# Stencil backends
# ------------------------------------------------------------
def advance(old: np.ndarray, new: np.ndarray, time: float, params: SimulationParams) -> None:
    """
    Write the field at time+dt into `new`, reading the field at `time` from `old`.

    `old` is never modified. Both arrays must have shape (height, width).
    """
    _check_buffers(old, new, params)
    left, right, top, bottom = edge_values(params, time)

    # Neighbour sum, in the order left + right + top + bottom
    new[:, 1:] = old[:, :-1]
    new[:, 0] = left
    new[:, :-1] += old[:, 1:]
    new[:, -1] += right
    new[1:, :] += old[:-1, :]
    new[0, :] += top
    new[:-1, :] += old[1:, :]
    new[-1, :] += bottom

    new -= 4.0 * old
    new *= params.diffusion_number
    new += old


def advance_python(old: np.ndarray, new: np.ndarray, time: float, params: SimulationParams) -> None:
    """
    Reference implementation of advance() with explicit loops over cells.

    Slow; meant for cross-checking the vectorized backends on small grids.
    """
    _check_buffers(old, new, params)
    ny, nx = params.shape
    x, y = grid_coordinates(params)
    xs = x.tolist()
    ys = y.tolist()
    T = old.tolist()
    r = params.diffusion_number

    for i in range(ny):
        for j in range(nx):
            # Edge neighbours take the boundary value at the cell itself
            left = T[i][j - 1] if j > 0 else boundary_u(xs[j], ys[i], time)
            right = T[i][j + 1] if j < nx - 1 else boundary_u(xs[j], ys[i], time)
            top = T[i - 1][j] if i > 0 else boundary_u(xs[j], ys[i], time)
            bottom = T[i + 1][j] if i < ny - 1 else boundary_u(xs[j], ys[i], time)

            value = left + right + top + bottom
            value -= 4.0 * T[i][j]
            value *= r
            value += T[i][j]
            new[i, j] = value


_NEIGHBOUR_KERNEL = np.array(
    [[0.0, 1.0, 0.0],
     [1.0, 0.0, 1.0],
     [0.0, 1.0, 0.0]],
    dtype=np.float64,
)


def advance_scipy(old: np.ndarray, new: np.ndarray, time: float, params: SimulationParams) -> None:
    """
    advance() computed with scipy.signal.convolve2d.

    SciPy is imported only when this backend is selected, so the package
    works without SciPy installed.
    """
    try:
        from scipy.signal import convolve2d
    except ImportError as e:
        raise RuntimeError("SciPy is not installed. Install it or use --backend numpy.") from e

    _check_buffers(old, new, params)
    left, right, top, bottom = edge_values(params, time)

    # Zero fill leaves out-of-grid neighbours at 0; add the boundary values afterwards
    nbr = convolve2d(old, _NEIGHBOUR_KERNEL, mode="same", boundary="fill", fillvalue=0.0)
    nbr[:, 0] += left
    nbr[:, -1] += right
    nbr[0, :] += top
    nbr[-1, :] += bottom

    new[...] = old + params.diffusion_number * (nbr - 4.0 * old)


STEPPERS: Dict[str, Stepper] = {
    "numpy": advance,
    "python": advance_python,
    "scipy": advance_scipy,
}


def get_stepper(name: str) -> Stepper:
    try:
        stepper = STEPPERS[name]
    except KeyError:
        raise ValueError(f"Unknown backend {name!r}; choose from {sorted(STEPPERS)}.") from None
    logger.debug("Using %s stencil backend", name)
    return stepper


# ------------------------------------------------------------
# Analytic recompute (alternative mode / reference oracle)
# ------------------------------------------------------------
def analytic_field(params: SimulationParams, time: float, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Evaluate u(x, y, time) on every cell of the grid.

    Writes into `out` when given (shape must match), otherwise allocates.
    """
    x, y = grid_coordinates(params)
    values = boundary_u(x[np.newaxis, :], y[:, np.newaxis], time)
    if out is None:
        return values
    if out.shape != params.shape:
        raise DimensionMismatchError(f"Output shape {out.shape} does not match grid {params.shape}.")
    out[...] = values
    return out


def max_deviation(field: np.ndarray, params: SimulationParams, time: float) -> float:
    """Largest absolute difference between `field` and the analytic field at `time`."""
    if field.shape != params.shape:
        raise DimensionMismatchError(f"Field shape {field.shape} does not match grid {params.shape}.")
    return float(np.max(np.abs(field - analytic_field(params, time))))


# ------------------------------------------------------------
# Initial conditions
# ------------------------------------------------------------
def initial_field(params: SimulationParams, kind: str = "constant") -> np.ndarray:
    """
    Build the field at t=0.

    kind:
      - "constant": every cell set to params.initial_value
      - "analytic": u(x, y, 0) on every cell
      - "patch":    constant background with a hot (+1) rectangle covering
                    rows [H/3, 3H/4) and columns [3W/40, 71W/80)
    """
    if kind == "constant":
        return np.full(params.shape, params.initial_value, dtype=np.float64)
    if kind == "analytic":
        return analytic_field(params, 0.0)
    if kind == "patch":
        T = np.full(params.shape, params.initial_value, dtype=np.float64)
        # On the 600x800 default grid: rows 200..449, cols 60..709
        r0, r1 = params.height * 200 // 600, params.height * 450 // 600
        c0, c1 = params.width * 60 // 800, params.width * 710 // 800
        T[r0:r1, c0:c1] = 1.0
        return T
    raise ValueError(f"Unknown initial field {kind!r}; choose from {INITIAL_KINDS}.")

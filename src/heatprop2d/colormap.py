# ------------------------------------------------------------
# Color mapping: temperature in [-1, 1] -> RGBA8 frame
# ------------------------------------------------------------
# Temperature selects a hue of an HSL color with S=1, L=0.5:
#   +1 -> hue 0   (red)
#   -1 -> hue 4/6 (blue)
# Inputs outside [-1, 1] are clamped onto the hue range.
# With S=1, L=0.5 the chroma is C=1 and m=0, so the standard
# piecewise HSL -> RGB formula reduces to (1, X, 0), (X, 1, 0), ...
# ------------------------------------------------------------

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from heatprop2d.errors import DimensionMismatchError
from heatprop2d.params import SimulationParams


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp x into the closed interval [lo, hi]."""
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


def hue(value: float) -> float:
    """Hue as a fraction of the full circle, clamped to [0, 1]; 4/6 is blue."""
    if math.isnan(value):
        return 1.0
    return clamp((1.0 - value) * 2.0 / 6.0, 0.0, 1.0)


def map_color(value: float) -> Tuple[int, int, int]:
    """
    Map a temperature to an (r, g, b) byte triple.

    Defined for every float: the hue is clamped to [0, 1], so anything
    at or above 1 is red and anything at or below -2 is blue. NaN is drawn as blue.
    """
    h = hue(value)
    x = 1.0 - abs(((h * 6.0) % 2.0) - 1.0)
    if h < 1.0 / 6.0:
        r, g, b = 1.0, x, 0.0
    elif h < 2.0 / 6.0:
        r, g, b = x, 1.0, 0.0
    elif h < 3.0 / 6.0:
        r, g, b = 0.0, 1.0, x
    else:
        r, g, b = 0.0, x, 1.0
    return int(r * 255.0), int(g * 255.0), int(b * 255.0)


def map_colors(field: np.ndarray) -> np.ndarray:
    """
    Vectorized map_color over a whole field.

    Returns a uint8 array of shape field.shape + (3,), identical to calling
    map_color on every cell.
    """
    v = np.asarray(field, dtype=np.float64)
    # fmin/fmax send NaN to the upper bound, like hue()
    h = np.fmax(0.0, np.fmin(1.0, (1.0 - v) * 2.0 / 6.0))
    x = 1.0 - np.abs(np.mod(h * 6.0, 2.0) - 1.0)

    first = h < 1.0 / 6.0
    second = h < 2.0 / 6.0
    third = h < 3.0 / 6.0

    rgb = np.empty(v.shape + (3,), dtype=np.float64)
    rgb[..., 0] = np.select([first, second], [1.0, x], default=0.0)
    rgb[..., 1] = np.where(~first & third, 1.0, x)
    rgb[..., 2] = np.select([second, third], [0.0, x], default=1.0)
    return (rgb * 255.0).astype(np.uint8)


def _byte_view(frame_buffer) -> np.ndarray:
    if isinstance(frame_buffer, np.ndarray):
        if frame_buffer.dtype != np.uint8:
            raise ValueError(f"Frame buffer must hold uint8, got {frame_buffer.dtype}.")
        if not frame_buffer.flags.c_contiguous:
            raise ValueError("Frame buffer must be C-contiguous.")
        view = frame_buffer.reshape(-1)
    else:
        view = np.frombuffer(frame_buffer, dtype=np.uint8)
    if not view.flags.writeable:
        raise ValueError("Frame buffer is read-only.")
    return view


def frame_view(frame_buffer, params: SimulationParams) -> np.ndarray:
    """
    Validate a frame buffer and return its first 4*height*width bytes as a
    writable (height, width, 4) uint8 view. Nothing is written.
    """
    view = _byte_view(frame_buffer)
    n = params.frame_bytes
    if view.size < n:
        raise DimensionMismatchError(
            f"Frame buffer holds {view.size} bytes, need {n} for {params.height}x{params.width} RGBA."
        )
    return view[:n].reshape(params.height, params.width, 4)


def render(field: np.ndarray, frame_buffer, params: SimulationParams) -> None:
    """
    Write the RGBA image of `field` into `frame_buffer`.

    Pixel (i, j) occupies bytes 4*(i*width + j) .. +3 as r, g, b, 255.
    `frame_buffer` may be a bytearray, a writable memoryview or a uint8
    NumPy array with at least 4*height*width bytes; bytes beyond that are
    left untouched.
    """
    if field.shape != params.shape:
        raise DimensionMismatchError(
            f"Field shape {field.shape} does not match frame size {params.shape}."
        )
    pixels = frame_view(frame_buffer, params)
    pixels[..., :3] = map_colors(field)
    pixels[..., 3] = 255

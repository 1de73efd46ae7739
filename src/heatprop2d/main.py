#!/usr/bin/env python3
# ------------------------------------------------------------
# 2D Heat Propagation (live window or headless export)
# ------------------------------------------------------------
# PDE:
#   ∂T/∂t = k ( ∂²T/∂x² + ∂²T/∂y² )
#
# Method:
#   - 2D explicit finite-difference scheme (FTCS), double-buffered
#   - Time-varying Dirichlet boundary u(x, y, t) = sin((t + x + y) / π)
#   - Each frame: steps_per_frame solver steps, then HSL color mapping
#   - Alternative mode: full analytic recompute from u(x, y, t)
#
# Usage:
#   heatprop2d                                   # window, 600x800
#   heatprop2d --mode analytic                   # analytic recompute
#   heatprop2d --frames 300 --out-dir output/heat2d_anim
# ------------------------------------------------------------

from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path
from typing import List, Optional

from heatprop2d.logging_config import setup_logging
from heatprop2d.params import ANALYTIC_PARAMS, COORDINATE_MODES, DEFAULT_PARAMS, SimulationParams
from heatprop2d.simulation import MODES, Simulation
from heatprop2d.solver import INITIAL_KINDS, STEPPERS

logger = logging.getLogger("heatprop2d.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="2D heat propagation with an explicit stencil and HSL color mapping.")
    parser.add_argument("--mode", choices=list(MODES), default="stencil", help="Stencil stepping or analytic recompute.")
    parser.add_argument("--backend", choices=sorted(STEPPERS), default="numpy", help="Stencil implementation.")
    parser.add_argument("--init", choices=list(INITIAL_KINDS), default="constant", help="Initial temperature field.")
    parser.add_argument("--coords", choices=list(COORDINATE_MODES), default=None, help="Boundary coordinates.")

    grid = parser.add_argument_group("parameters (defaults depend on --mode)")
    grid.add_argument("--height", type=int, default=None)
    grid.add_argument("--width", type=int, default=None)
    grid.add_argument("--dt", type=float, default=None)
    grid.add_argument("--dx", type=float, default=None)
    grid.add_argument("--k", type=float, default=None, help="Diffusivity.")
    grid.add_argument("--steps-per-frame", type=int, default=None)
    grid.add_argument("--initial-value", type=float, default=None)

    out = parser.add_argument_group("headless export")
    out.add_argument("--frames", type=int, default=None, help="Render this many frames to --out-dir instead of opening a window.")
    out.add_argument("--out-dir", type=Path, default=Path("output/heat2d_anim"))
    out.add_argument("--fps", type=int, default=30, help="Video frame rate for export, frame cap for the window (0 = uncapped).")
    out.add_argument("--no-video", action="store_true", help="Skip MP4 encoding.")
    out.add_argument("--no-frames", action="store_true", help="Only write the CSV log and plots.")

    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None)
    return parser


def params_from_args(args: argparse.Namespace) -> SimulationParams:
    base = ANALYTIC_PARAMS if args.mode == "analytic" else DEFAULT_PARAMS
    overrides = {
        "height": args.height,
        "width": args.width,
        "dt": args.dt,
        "dx": args.dx,
        "k": args.k,
        "steps_per_frame": args.steps_per_frame,
        "coords": args.coords,
        "initial_value": args.initial_value,
    }
    return dataclasses.replace(base, **{key: v for key, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        params = params_from_args(args)
        sim = Simulation(params, mode=args.mode, init=args.init, backend=args.backend)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    logger.info(
        "Grid %dx%d, dt=%g, dx=%g, k=%g, r=%.4g, %d steps/frame, mode=%s",
        params.height, params.width, params.dt, params.dx, params.k,
        params.diffusion_number, params.steps_per_frame, args.mode,
    )

    if args.frames is not None:
        # Imported here so the window path does not pull in Matplotlib
        from heatprop2d.export import run_export

        try:
            run_export(
                sim,
                frames=args.frames,
                out_dir=args.out_dir,
                fps=max(1, args.fps),
                encode=not args.no_video,
                save_frames=not args.no_frames,
            )
        except ValueError as e:
            logger.error("Invalid export settings: %s", e)
            return 2
        return 0

    from heatprop2d.display import run_window

    run_window(sim, fps_cap=args.fps)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

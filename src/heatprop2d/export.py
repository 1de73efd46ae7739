# ------------------------------------------------------------
# Headless export of a simulation run
# ------------------------------------------------------------
# Outputs (in out_dir):
#   frames/frame_000000.png ...   RGBA frames (pygame, dummy SDL driver)
#   heat2d.mp4                    if ffmpeg is on PATH
#   heat2d_log.csv                t, center, min, max, max_dev_analytic
#   center_vs_time.png            Matplotlib, dpi=300
#   envelope_vs_time.png          Matplotlib, dpi=300
#   field_final.png               Matplotlib heatmap of the last field
# ------------------------------------------------------------

from __future__ import annotations

import csv
import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Sequence

import numpy as np

# Use a non-GUI backend (works without Tcl/Tk)
import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt

from heatprop2d.params import SimulationParams
from heatprop2d.simulation import Simulation

logger = logging.getLogger(__name__)


def write_csv(filename: Path, header: List[str], cols: Sequence[Sequence[float]]) -> None:
    """
    Write CSV where each element of cols is one column (same length required).
    """
    if not cols:
        raise ValueError("CSV: no columns provided.")
    if len(header) != len(cols):
        raise ValueError("CSV: header and column count do not match.")
    n = len(cols[0])
    for c in cols:
        if len(c) != n:
            raise ValueError("CSV: column size mismatch.")

    filename.parent.mkdir(parents=True, exist_ok=True)
    with filename.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(header)
        for r in range(n):
            w.writerow([float(c[r]) for c in cols])


def save_frame_png(out_path: Path, frame_buffer, params: SimulationParams) -> None:
    """Save an RGBA8 frame buffer of the configured size as a PNG (pygame)."""
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    import pygame

    data = bytes(memoryview(frame_buffer).cast("B")[: params.frame_bytes])
    surface = pygame.image.frombuffer(data, (params.width, params.height), "RGBA")
    pygame.image.save(surface, str(out_path))


def save_heatmap_png(out_path: Path, T: np.ndarray, title: str) -> None:
    """
    Save a heatmap of a field shaped (height, width), row 0 at the top.
    """
    fig = plt.figure(figsize=(6.2, 5.0), dpi=300)
    ax = fig.add_subplot(1, 1, 1)

    im = ax.imshow(T, origin="upper", aspect="auto", cmap="jet", vmin=-1.0, vmax=1.0)
    ax.set_title(title)
    ax.set_xlabel("column")
    ax.set_ylabel("row")
    fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04)

    fig.tight_layout()
    fig.savefig(out_path, dpi=300)
    plt.close(fig)


def save_plots(
    out_dir: Path,
    t: np.ndarray,
    center: np.ndarray,
    t_min: np.ndarray,
    t_max: np.ndarray,
) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)

    fig = plt.figure(figsize=(6.5, 4.0), dpi=300)
    ax = fig.add_subplot(1, 1, 1)
    ax.plot(t, center)
    ax.set_title("Temperature at Grid Center vs Time")
    ax.set_xlabel("time")
    ax.set_ylabel("T(center)")
    fig.tight_layout()
    fig.savefig(out_dir / "center_vs_time.png", dpi=300)
    plt.close(fig)

    fig = plt.figure(figsize=(6.5, 4.0), dpi=300)
    ax = fig.add_subplot(1, 1, 1)
    ax.plot(t, t_min, label="min")
    ax.plot(t, t_max, label="max")
    ax.set_title("Field Min / Max vs Time")
    ax.set_xlabel("time")
    ax.set_ylabel("T")
    ax.legend()
    fig.tight_layout()
    fig.savefig(out_dir / "envelope_vs_time.png", dpi=300)
    plt.close(fig)


def encode_mp4_with_ffmpeg(frames_dir: Path, fps: int, out_mp4: Path) -> bool:
    if shutil.which("ffmpeg") is None:
        logger.warning("ffmpeg not found on PATH; MP4 will not be created.")
        return False

    cmd = [
        "ffmpeg",
        "-y",
        "-framerate",
        str(fps),
        "-i",
        str(frames_dir / "frame_%06d.png"),
        "-c:v",
        "libx264",
        "-pix_fmt",
        "yuv420p",
        str(out_mp4),
    ]

    logger.info("Encoding MP4...")
    try:
        subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except subprocess.CalledProcessError as e:
        logger.error("ffmpeg encoding failed (exit status %s).", e.returncode)
        return False
    logger.info("MP4 created: %s", out_mp4)
    return True


def run_export(
    sim: Simulation,
    frames: int,
    out_dir: Path,
    fps: int = 30,
    encode: bool = True,
    save_frames: bool = True,
) -> Path:
    """
    Produce `frames` frames headlessly and write frames, log, plots and video.

    Returns the path of the CSV log.
    """
    if frames < 1:
        raise ValueError(f"frames must be >= 1, got {frames}.")

    params = sim.params
    frames_dir = out_dir / "frames"
    frames_dir.mkdir(parents=True, exist_ok=True)

    # Clean old frames
    for p in frames_dir.glob("frame_*.png"):
        try:
            p.unlink()
        except OSError as e:
            logger.warning("Could not delete old frame '%s': %s", p, e)

    buf = bytearray(params.frame_bytes)

    t_log = np.zeros((frames,), dtype=np.float64)
    c_log = np.zeros((frames,), dtype=np.float64)
    min_log = np.zeros((frames,), dtype=np.float64)
    max_log = np.zeros((frames,), dtype=np.float64)
    dev_log = np.zeros((frames,), dtype=np.float64)

    report_every = max(1, frames // 10)
    for frame in range(frames):
        sim.produce_next_frame(buf)

        s = sim.stats()
        t_log[frame] = s.t
        c_log[frame] = s.center
        min_log[frame] = s.t_min
        max_log[frame] = s.t_max
        dev_log[frame] = sim.deviation_from_analytic()

        if save_frames:
            save_frame_png(frames_dir / f"frame_{frame:06d}.png", buf, params)

        if frame % report_every == 0:
            logger.info(
                "Frame %d/%d  t=%.4f  center=% .4f  min=% .4f  max=% .4f",
                frame, frames, s.t, s.center, s.t_min, s.t_max,
            )

    if save_frames and encode:
        encode_mp4_with_ffmpeg(frames_dir, fps, out_dir / "heat2d.mp4")

    logger.info("Saving plots and CSV...")
    save_plots(out_dir, t_log, c_log, min_log, max_log)
    save_heatmap_png(out_dir / "field_final.png", sim.field, f"Temperature field, t = {sim.time:.4f}")

    csv_path = out_dir / "heat2d_log.csv"
    write_csv(
        csv_path,
        header=["t", "center", "min", "max", "max_dev_analytic"],
        cols=[t_log, c_log, min_log, max_log, dev_log],
    )
    logger.info("Export finished. Results are in: %s", out_dir)
    return csv_path

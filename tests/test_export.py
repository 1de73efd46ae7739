import csv
import logging

import numpy as np
import pytest

from heatprop2d.export import run_export, save_frame_png, save_heatmap_png, write_csv
from heatprop2d.logging_config import setup_logging
from heatprop2d.main import main
from heatprop2d.params import SimulationParams
from heatprop2d.simulation import Simulation


def read_rows(path):
    with path.open(newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_write_csv(tmp_path):
    out = tmp_path / "sub" / "log.csv"
    write_csv(out, ["t", "T"], [[0.0, 0.5], [1.0, -1.0]])
    rows = read_rows(out)
    assert rows[0] == ["t", "T"]
    assert [float(x) for x in rows[2]] == [0.5, -1.0]


def test_write_csv_rejects_bad_columns(tmp_path):
    with pytest.raises(ValueError):
        write_csv(tmp_path / "a.csv", [], [])
    with pytest.raises(ValueError):
        write_csv(tmp_path / "b.csv", ["a", "b"], [[1.0], [1.0, 2.0]])
    with pytest.raises(ValueError):
        write_csv(tmp_path / "c.csv", ["a"], [[1.0], [2.0]])


def test_save_heatmap_png(tmp_path):
    out = tmp_path / "field.png"
    save_heatmap_png(out, np.zeros((4, 6)), "zeros")
    assert out.exists() and out.stat().st_size > 0


def test_save_frame_png(tmp_path):
    pytest.importorskip("pygame")
    params = SimulationParams(height=4, width=6)
    buf = bytearray(b"\x80" * params.frame_bytes)
    out = tmp_path / "frame.png"
    save_frame_png(out, buf, params)
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_run_export_without_frames(tmp_path):
    params = SimulationParams(height=6, width=8, steps_per_frame=4)
    sim = Simulation(params, init="patch")
    csv_path = run_export(sim, frames=3, out_dir=tmp_path, encode=False, save_frames=False)

    rows = read_rows(csv_path)
    assert rows[0] == ["t", "center", "min", "max", "max_dev_analytic"]
    assert len(rows) == 4
    assert float(rows[-1][0]) == pytest.approx(12 * params.dt)
    assert (tmp_path / "center_vs_time.png").exists()
    assert (tmp_path / "envelope_vs_time.png").exists()
    assert (tmp_path / "field_final.png").exists()
    assert sim.iteration == 12


def test_run_export_rejects_zero_frames(tmp_path):
    sim = Simulation(SimulationParams(height=4, width=4))
    with pytest.raises(ValueError):
        run_export(sim, frames=0, out_dir=tmp_path)


def test_main_headless(tmp_path):
    code = main([
        "--frames", "2", "--height", "6", "--width", "8",
        "--out-dir", str(tmp_path), "--no-frames", "--no-video",
    ])
    assert code == 0
    assert len(read_rows(tmp_path / "heat2d_log.csv")) == 3


def test_main_rejects_unstable_configuration(tmp_path):
    code = main(["--dt", "0.1", "--frames", "1", "--height", "4", "--width", "4", "--out-dir", str(tmp_path)])
    assert code == 2
    assert not (tmp_path / "heat2d_log.csv").exists()


def test_main_analytic_mode(tmp_path):
    code = main([
        "--mode", "analytic", "--frames", "2", "--height", "5", "--width", "5",
        "--out-dir", str(tmp_path), "--no-frames", "--no-video",
    ])
    assert code == 0
    rows = read_rows(tmp_path / "heat2d_log.csv")
    assert float(rows[-1][-1]) == 0.0


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "run.log"
    setup_logging(logging.DEBUG)
    logger = setup_logging(logging.INFO, str(log_file))
    assert logger.name == "heatprop2d"
    assert len(logger.handlers) == 2
    logging.getLogger("heatprop2d.test").info("hello")
    for h in logger.handlers:
        h.flush()
    assert "hello" in log_file.read_text(encoding="utf-8")


def test_setup_logging_closes_previous_file_handler(tmp_path):
    logger = setup_logging(logging.INFO, str(tmp_path / "first.log"))
    old = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    assert len(old) == 1
    stream = old[0].stream
    assert not stream.closed

    setup_logging(logging.INFO)
    assert old[0] not in logger.handlers
    assert stream.closed
    assert not any(isinstance(h, logging.FileHandler) for h in logger.handlers)

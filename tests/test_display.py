import pytest

pygame = pytest.importorskip("pygame")

from heatprop2d.display import run_window
from heatprop2d.params import SimulationParams
from heatprop2d.simulation import Simulation


@pytest.fixture(autouse=True)
def headless_sdl(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")


def stop_after(sim, calls, event):
    """Post `event` from inside the frame callback on its `calls`-th invocation."""
    original = sim.produce_next_frame
    seen = []

    def produce(frame_buffer):
        original(frame_buffer)
        seen.append(len(frame_buffer))
        if len(seen) == calls:
            pygame.event.post(event)

    sim.produce_next_frame = produce
    return seen


@pytest.fixture
def sim():
    return Simulation(SimulationParams(height=12, width=16, steps_per_frame=2))


def test_window_closes_on_quit(sim):
    seen = stop_after(sim, 3, pygame.event.Event(pygame.QUIT))
    frames = run_window(sim, fps_cap=0)
    assert frames == 3
    assert len(seen) == 3
    assert all(n == sim.params.frame_bytes for n in seen)
    assert sim.iteration == frames * sim.params.steps_per_frame


def test_window_closes_on_escape(sim):
    seen = stop_after(sim, 2, pygame.event.Event(pygame.KEYDOWN, key=pygame.K_ESCAPE))
    frames = run_window(sim, fps_cap=0)
    assert frames == 2
    assert len(seen) == 2
    assert sim.iteration == frames * sim.params.steps_per_frame

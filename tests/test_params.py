import dataclasses

import pytest

from heatprop2d.errors import StabilityError
from heatprop2d.params import STABILITY_LIMIT, SimulationParams


def test_diffusion_number():
    p = SimulationParams(dt=1e-3, dx=0.5, k=2.0)
    assert p.diffusion_number == pytest.approx(2.0 * 1e-3 / 0.25)
    assert p.is_stable


def test_frame_bytes_and_shape():
    p = SimulationParams(height=3, width=5)
    assert p.shape == (3, 5)
    assert p.frame_bytes == 60


def test_params_are_immutable():
    p = SimulationParams()
    with pytest.raises(dataclasses.FrozenInstanceError):
        p.dt = 1.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"height": 0},
        {"width": -2},
        {"dt": 0.0},
        {"dx": -0.1},
        {"k": -1.0},
        {"steps_per_frame": 0},
        {"coords": "polar"},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        SimulationParams(**kwargs)


def test_stability_boundary():
    # r exactly at the limit passes, just above fails
    at_limit = SimulationParams(dt=0.25, dx=1.0, k=1.0)
    assert at_limit.diffusion_number == STABILITY_LIMIT
    at_limit.check_stability()

    above = SimulationParams(dt=0.2501, dx=1.0, k=1.0)
    with pytest.raises(StabilityError, match="exceeds"):
        above.check_stability()


def test_stability_error_is_value_error():
    assert issubclass(StabilityError, ValueError)

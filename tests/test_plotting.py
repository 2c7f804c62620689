import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pytest  # noqa: E402

from mpc_tracker.plotting import plot_tracking, tracking_errors  # noqa: E402
from mpc_tracker.simulation import SimulationResult  # noqa: E402


def perfect_result(reference):
    times = np.linspace(reference.t_start, reference.t_end, 21)
    return SimulationResult(times=times, states=reference.evaluate(times),
                            controls=np.tile([10.0, 0.0], (20, 1)))


def test_tracking_errors_vanish_on_the_reference(straight_reference):
    errors = tracking_errors(straight_reference, perfect_result(straight_reference))
    assert errors['max_position_error'] == pytest.approx(0.0, abs=1e-12)
    assert errors['mean_position_error'] == pytest.approx(0.0, abs=1e-12)
    assert errors['max_heading_error'] == pytest.approx(0.0, abs=1e-12)


def test_tracking_errors_measure_offset(straight_reference):
    result = perfect_result(straight_reference)
    result.states[:, 1] += 2.0
    result.states[-1, 2] = 0.5
    errors = tracking_errors(straight_reference, result)
    assert errors['max_position_error'] == pytest.approx(2.0)
    assert errors['mean_position_error'] == pytest.approx(2.0)
    assert errors['max_heading_error'] == pytest.approx(0.5)


def test_plot_tracking_draws_path_and_series(straight_reference):
    fig = plot_tracking(straight_reference, perfect_result(straight_reference))
    try:
        assert len(fig.axes) == 6
        assert fig.axes[0].get_title() == 'Reference Path Tracking'
        assert fig.axes[-1].get_xlabel() == 'Time [s]'
    finally:
        plt.close(fig)

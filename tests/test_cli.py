import logging
from pathlib import Path

import numpy as np

from mpc_tracker import cli, simulation
from mpc_tracker.simulation import SimulationResult

SHIPPED_CONFIG = Path(__file__).resolve().parent.parent / "config" / "simple_car.yaml"


def test_validate_shipped_config(capsys):
    assert cli.main(["validate", str(SHIPPED_CONFIG)]) == 0
    assert "OK" in capsys.readouterr().out


def test_validate_missing_config(tmp_path):
    assert cli.main(["validate", str(tmp_path / "missing.yaml")]) == 1


def test_validate_wrong_type_returns_error(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("workspace:\n  x_bounds: 5\n")
    assert cli.main(["validate", str(path)]) == 1


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_run_passes_overrides(monkeypatch, tmp_path):
    seen = {}

    def fake_run_tracking(config, path_file=None, states_file=None, controls_file=None):
        seen.update(path_file=path_file, states_file=states_file, controls_file=controls_file,
                    horizon=config.horizon.num_steps)
        result = SimulationResult(times=np.zeros(1), states=np.zeros((1, 3)),
                                  controls=np.zeros((0, 2)))
        return None, result

    monkeypatch.setattr(simulation, "run_tracking", fake_run_tracking)
    states = str(tmp_path / "s.txt")
    controls = str(tmp_path / "c.txt")
    code = cli.main(["-q", "run", "--path", "ref.txt",
                     "--states-out", states, "--controls-out", controls])
    assert code == 0
    assert seen == {"path_file": "ref.txt", "states_file": states,
                    "controls_file": controls, "horizon": 25}


def test_parser_verbosity():
    args = cli.create_parser().parse_args(["-vv", "validate", "x.yaml"])
    assert args.verbose == 2
    assert args.command == "validate"


def test_log_level_defaults_to_environment(monkeypatch):
    monkeypatch.setenv("SIMPLE_CAR_MPC_LOG_LEVEL", "DEBUG")
    args = cli.create_parser().parse_args(["validate", "x.yaml"])
    assert cli._log_level(args) is None
    assert cli.main(["validate", str(SHIPPED_CONFIG)]) == 0
    assert logging.getLogger("mpc_tracker").level == logging.DEBUG


def test_quiet_flag_overrides_environment(monkeypatch):
    monkeypatch.setenv("SIMPLE_CAR_MPC_LOG_LEVEL", "DEBUG")
    assert cli.main(["-q", "validate", str(SHIPPED_CONFIG)]) == 0
    assert logging.getLogger("mpc_tracker").level == logging.ERROR

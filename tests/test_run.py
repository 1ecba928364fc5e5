"""Smoke tests for the headless runner and the CLI entrypoint."""

from __future__ import annotations

import pytest
import torch

import run
from infofield.core.config import GridConfig
from infofield.simulator import Injection, SimulationConfig, run_simulation


def _config(**overrides) -> SimulationConfig:
    params = dict(
        grid=GridConfig(resolution=6, dt=0.002),
        vacuum_magnitude=1.0,
        injections=[Injection((0.0, 0.0, 0.0), 2.0)],
        num_steps=7,
        report_every=3,
    )
    params.update(overrides)
    return SimulationConfig(**params)


class TestRunSimulation:
    def test_reports_every_n_and_last(self):
        result = run_simulation(_config(num_steps=8), quiet=True)

        assert [s.step for s in result["snapshots"]] == [0, 3, 6, 7]
        assert result["steps"] == 8
        assert result["time"] == pytest.approx(8 * 0.002)
        assert result["grid"].steps == 8

    def test_last_step_not_duplicated(self):
        result = run_simulation(_config(num_steps=7), quiet=True)
        assert [s.step for s in result["snapshots"]] == [0, 3, 6]

    def test_summary_matches_grid(self):
        result = run_simulation(_config(), quiet=True)
        grid = result["grid"]

        assert result["total_information"] == pytest.approx(grid.total_information())
        assert result["above_threshold_count"] == grid.above_threshold_count()
        assert result["information_created"] == pytest.approx(result["snapshots"][-1].information_created)
        e, b = grid.derived_fields_at((0.0, 0.0, 0.0))
        assert result["electric"] == e
        assert result["magnetic"] == b

    def test_zero_steps(self):
        result = run_simulation(_config(num_steps=0), quiet=True)
        assert result["snapshots"] == []
        assert result["steps"] == 0
        assert result["grid"].get(3, 3, 3).magnitude == 3.0

    @pytest.mark.parametrize("overrides", [{"num_steps": -1}, {"report_every": 0}])
    def test_rejects_invalid(self, overrides):
        with pytest.raises(ValueError):
            run_simulation(_config(**overrides), quiet=True)

    def test_console_output(self):
        result = run_simulation(_config(num_steps=2))
        assert result["steps"] == 2


class TestCli:
    def test_main_runs(self):
        argv = [
            "--grid", "6",
            "--steps", "3",
            "--every", "1",
            "--inject=0,0,0:2",
            "--inject=-1,0,0:1.5",
            "--probe", "0.5,0,0",
            "--boundary", "periodic",
            "--workers", "2",
            "--device", "cpu",
        ]
        assert run.main(argv) == 0

    def test_invalid_configuration_returns_error_code(self):
        assert run.main(["--grid", "0", "--steps", "1"]) == 2

    def test_malformed_injection_is_a_usage_error(self):
        with pytest.raises(SystemExit):
            run.main(["--inject", "1,2:3"])

    def test_explicit_cpu(self):
        assert run.main(["--grid", "4", "--steps", "1", "--device", "cpu"]) == 0

    def test_unknown_device_is_a_usage_error(self):
        with pytest.raises(SystemExit):
            run.main(["--device", "tpu"])

    def test_parsers(self):
        assert run._parse_point("1,2.5,-3") == (1.0, 2.5, -3.0)
        inj = run._parse_injection("0,0,1:4.5")
        assert inj.position == (0.0, 0.0, 1.0)
        assert inj.amount == 4.5
        assert run._parse_bounds("-2,2") == (-2.0, 2.0)


class _WarningRecorder:
    def __init__(self):
        self.messages = []

    def warn(self, message, *, detail=None):
        self.messages.append(message)


class TestDeviceSelection:
    @pytest.fixture
    def backends(self, monkeypatch):
        def set_available(mps: bool, cuda: bool):
            monkeypatch.setattr(torch.backends.mps, "is_available", lambda: mps)
            monkeypatch.setattr(torch.cuda, "is_available", lambda: cuda)

        return set_available

    @pytest.fixture
    def warnings(self, monkeypatch):
        recorder = _WarningRecorder()
        monkeypatch.setattr(run, "console", recorder)
        return recorder.messages

    @pytest.mark.parametrize(
        "mps, cuda, expected",
        [(True, True, "mps"), (False, True, "cuda"), (False, False, "cpu")],
    )
    def test_auto_prefers_accelerators(self, backends, mps, cuda, expected):
        backends(mps, cuda)
        assert run.resolve_device(None) == expected

    @pytest.mark.parametrize("requested", ["mps", "cuda"])
    def test_unavailable_backend_falls_back_to_cpu(self, backends, warnings, requested):
        backends(False, False)
        assert run.resolve_device(requested) == "cpu"
        assert len(warnings) == 1

    def test_available_backend_is_kept(self, backends, warnings):
        backends(False, True)
        assert run.resolve_device("cuda") == "cuda"
        assert warnings == []

    def test_unknown_device_rejected(self, backends):
        backends(False, False)
        with pytest.raises(ValueError):
            run.resolve_device("tpu")

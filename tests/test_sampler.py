"""Tests for gradient-derived electric and magnetic fields."""

from __future__ import annotations

import pytest
import torch

from infofield.core.config import GridConfig
from infofield.core.constants import FieldConstants
from infofield.field.grid import Grid
from infofield.field.sampler import DerivedFields, DerivedFieldSampler


def _ramp_grid(boundary="reflective", diffusion=1.0, constants=None) -> Grid:
    # dx = 1.0; magnitude rises by 0.5 per cell along x.
    kwargs = {"resolution": 8, "bounds": (-4.0, 4.0), "boundary": boundary, "diffusion": diffusion}
    if constants is not None:
        kwargs["constants"] = constants
    ramp = 1.0 + 0.5 * torch.arange(8, dtype=torch.float64)
    values = ramp[:, None, None].expand(8, 8, 8).clone()
    return Grid(GridConfig(**kwargs), values)


class TestUniformField:
    def test_no_gradient_no_fields(self):
        grid = Grid.from_vacuum(resolution=6, vacuum_magnitude=3.0)
        sampler = DerivedFieldSampler(grid)

        e, b = sampler.derived_fields_at((0.3, -1.2, 2.0))

        assert e == (0.0, 0.0, 0.0)
        assert b == (0.0, 0.0, 0.0)
        assert torch.all(sampler.electric_field() == 0.0)
        assert torch.all(sampler.magnetic_field() == 0.0)


class TestRamp:
    def test_interior_gradient(self):
        grid = _ramp_grid()
        sampler = DerivedFieldSampler(grid)
        p = grid.grid_to_world(3, 4, 4)

        assert sampler.gradient_at(p) == pytest.approx((0.5, 0.0, 0.0))
        assert sampler.flux_at(p) == pytest.approx((0.5, 0.0, 0.0))

    def test_electric_opposes_gradient(self):
        grid = _ramp_grid()
        e = DerivedFieldSampler(grid).electric_at(grid.grid_to_world(3, 4, 4))
        assert e == pytest.approx((-0.05, 0.0, 0.0))

    def test_magnetic_from_flux_differences(self):
        grid = _ramp_grid()
        b = DerivedFieldSampler(grid).magnetic_at(grid.grid_to_world(3, 4, 4))
        assert b == pytest.approx((0.0, 0.025, -0.025))

    def test_magnetic_scales_with_diffusion(self):
        grid = _ramp_grid(diffusion=2.0)
        b = DerivedFieldSampler(grid).magnetic_at(grid.grid_to_world(3, 4, 4))
        assert b == pytest.approx((0.0, 0.05, -0.05))

    def test_custom_couplings(self):
        c = FieldConstants(electric_coupling=1.0, magnetic_coupling=0.0)
        grid = _ramp_grid(constants=c)
        e, b = grid.derived_fields_at(grid.grid_to_world(3, 4, 4))
        assert e == pytest.approx((-0.5, 0.0, 0.0))
        assert b == pytest.approx((0.0, 0.0, 0.0))

    def test_reflective_edge_uses_mirrored_neighbour(self):
        grid = _ramp_grid("reflective")
        g = DerivedFieldSampler(grid).gradient_at(grid.grid_to_world(0, 4, 4))
        assert g[0] == pytest.approx(0.25)

    def test_periodic_edge_wraps(self):
        grid = _ramp_grid("periodic")
        g = DerivedFieldSampler(grid).gradient_at(grid.grid_to_world(0, 4, 4))
        assert g[0] == pytest.approx(-1.5)


class TestPointQueries:
    def test_off_grid_point_uses_enclosing_cell(self):
        grid = _ramp_grid()
        sampler = DerivedFieldSampler(grid)
        assert sampler.derived_fields_at((-0.9, 0.1, 0.2)) == sampler.derived_fields_at(grid.grid_to_world(3, 4, 4))

    def test_outside_domain_snaps_to_boundary_cell(self):
        grid = _ramp_grid()
        sampler = DerivedFieldSampler(grid)
        assert sampler.gradient_at((-50.0, 0.0, 0.0)) == sampler.gradient_at(grid.grid_to_world(0, 4, 4))

    def test_queries_do_not_mutate(self):
        grid = _ramp_grid()
        before = grid.values.clone()
        sampler = DerivedFieldSampler(grid)
        sampler.derived_fields_at((0.0, 0.0, 0.0))
        sampler.magnetic_field()

        assert torch.equal(grid.values, before)
        assert grid.steps == 0

    def test_unpacks_and_reports_magnitudes(self):
        fields = DerivedFields(electric=(3.0, 0.0, 4.0), magnetic=(0.0, 1.0, 0.0))
        e, b = fields
        assert e == (3.0, 0.0, 4.0)
        assert b == (0.0, 1.0, 0.0)
        assert fields.electric_magnitude == pytest.approx(5.0)
        assert fields.magnetic_magnitude == pytest.approx(1.0)


class TestWholeField:
    @pytest.mark.parametrize("boundary", ["periodic", "reflective"])
    def test_field_matches_point_queries(self, boundary):
        gen = torch.Generator().manual_seed(4)
        values = torch.rand((4, 4, 4), generator=gen, dtype=torch.float64) * 10.0
        grid = Grid(GridConfig(resolution=4, boundary=boundary, diffusion=0.7), values)
        sampler = DerivedFieldSampler(grid)

        electric = sampler.electric_field()
        magnetic = sampler.magnetic_field()
        assert electric.shape == (4, 4, 4, 3)
        assert magnetic.shape == (4, 4, 4, 3)

        for i in range(4):
            for j in range(4):
                for k in range(4):
                    e, b = sampler.derived_fields_at(grid.grid_to_world(i, j, k))
                    assert electric[i, j, k].tolist() == pytest.approx(e, rel=1e-12, abs=1e-15)
                    assert magnetic[i, j, k].tolist() == pytest.approx(b, rel=1e-12, abs=1e-15)

"""
Tests for mc_kernel.energy_grid module.
"""
import numpy as np
import pytest

from mc_kernel.config import Dictionary
from mc_kernel.energy_grid import EnergyGrid
from mc_kernel.errors import ConfigurationError


class TestLinearGrid:
    def test_boundary_count(self):
        grid = EnergyGrid.linear(0.0, 20.0, 20)
        assert grid.size == 20
        assert len(grid) == 21

    def test_high_energy_first(self):
        grid = EnergyGrid.linear(0.0, 20.0, 20)
        assert grid.bin(1) == pytest.approx(20.0)
        assert grid.bin(21) == pytest.approx(0.0)
        assert grid.bin(3) == pytest.approx(18.0, rel=1e-9)

    def test_monotonically_decreasing(self):
        grid = EnergyGrid.linear(1.0, 2.0, 7)
        assert np.all(np.diff(grid.boundaries) < 0)

    def test_closed_form(self):
        grid = EnergyGrid.linear(2.0, 10.0, 4)
        for k in range(1, 6):
            assert grid.bin(k) == pytest.approx(10.0 - 8.0 * (k - 1) / 4)


class TestLogarithmicGrid:
    def test_bin_3(self):
        grid = EnergyGrid.logarithmic(1.0e-9, 1.0, 9)
        assert grid.bin(3) == pytest.approx(1.0e-2, rel=1e-9)

    def test_ends(self):
        grid = EnergyGrid.logarithmic(1.0e-9, 1.0, 9)
        assert grid.bin(1) == pytest.approx(1.0)
        assert grid.bin(10) == pytest.approx(1.0e-9)

    def test_constant_ratio(self):
        b = EnergyGrid.logarithmic(1.0e-3, 10.0, 4).boundaries
        np.testing.assert_allclose(b[1:] / b[:-1], 0.1, rtol=1e-12)

    def test_non_positive_min_rejected(self):
        with pytest.raises(ConfigurationError):
            EnergyGrid.logarithmic(0.0, 1.0, 4)


class TestUnstructuredGrid:
    def test_verbatim_order(self):
        grid = EnergyGrid.unstructured([10.0, 1.0, 1.0e-6])
        assert grid.bin(1) == 10.0
        assert grid.bin(2) == 1.0
        assert grid.bin(3) == 1.0e-6

    def test_ascending_accepted(self):
        grid = EnergyGrid.unstructured([1.0, 2.0, 3.0])
        assert not grid.is_descending

    def test_too_few_values(self):
        with pytest.raises(ConfigurationError):
            EnergyGrid.unstructured([1.0])

    def test_non_monotonic_rejected(self):
        with pytest.raises(ConfigurationError):
            EnergyGrid.unstructured([10.0, 1.0, 5.0])


class TestValidation:
    @pytest.mark.parametrize("e_min,e_max", [(20.0, 0.0), (5.0, 5.0)])
    def test_min_not_below_max(self, e_min, e_max):
        with pytest.raises(ConfigurationError):
            EnergyGrid.linear(e_min, e_max, 10)

    def test_size_below_one(self):
        with pytest.raises(ConfigurationError, match="size"):
            EnergyGrid.linear(0.0, 1.0, 0)

    def test_missing_key(self):
        with pytest.raises(ConfigurationError, match="max"):
            EnergyGrid.from_dict({'grid': 'lin', 'min': 0.0, 'size': 4})

    def test_unknown_tag(self):
        with pytest.raises(ConfigurationError, match="grid"):
            EnergyGrid.from_dict({'grid': 'cubic', 'min': 0.0, 'max': 1.0, 'size': 4})

    def test_from_dictionary_object(self):
        grid = EnergyGrid.from_dict(Dictionary({'grid': 'lin', 'min': 0.0, 'max': 20.0, 'size': 20}))
        assert grid.bin(3) == pytest.approx(18.0)


class TestQueries:
    def test_bin_out_of_range(self):
        grid = EnergyGrid.linear(0.0, 1.0, 2)
        with pytest.raises(IndexError):
            grid.bin(0)
        with pytest.raises(IndexError):
            grid.bin(4)

    def test_search_descending(self):
        grid = EnergyGrid.unstructured([10.0, 1.0, 1.0e-6])
        assert grid.search(5.0) == 1
        assert grid.search(0.5) == 2
        assert grid.search(10.0) == 1
        assert grid.search(1.0e-6) == 2

    def test_search_outside(self):
        grid = EnergyGrid.unstructured([10.0, 1.0, 1.0e-6])
        assert grid.search(20.0) == -1
        assert grid.search(1.0e-9) == -1

    def test_search_ascending(self):
        grid = EnergyGrid.unstructured([0.0, 1.0, 2.0, 3.0])
        assert grid.search(0.5) == 1
        assert grid.search(2.5) == 3
        assert grid.search(3.0) == 3

    def test_boundaries_are_a_copy(self):
        grid = EnergyGrid.linear(0.0, 1.0, 2)
        b = grid.boundaries
        b[0] = 99.0
        assert grid.bin(1) == pytest.approx(1.0)

    def test_copy_equal(self):
        grid = EnergyGrid.logarithmic(1e-3, 1.0, 3)
        assert grid.copy() == grid

"""
Tests for mc_kernel.simulation module (FixedSourceRun).
"""
import json
import logging

import numpy as np
import pytest

from mc_kernel.backends import CPUBackend
from mc_kernel.errors import ConfigurationError, LookupMiss
from mc_kernel.grid_registry import EnergyGridRegistry
from mc_kernel.simulation import FixedSourceResult, FixedSourceRun


def _config(**overrides):
    config = {
        'energyGrids': {
            'twoGroup': {'grid': 'unstruct', 'bins': [20.0, 1.0, 1.0e-5]},
        },
        'materials': {
            'energyGrid': 'twoGroup',
            'materials': {
                '1': {'name': 'core', 'sigma_t': [4.0, 6.0], 'sigma_s': [2.0, 3.0]},
                '2': {'name': 'reflector', 'sigma_t': [2.0, 3.0], 'sigma_s': [1.8, 2.7]},
            },
        },
        'source': {'type': 'pointSource', 'particle': 'neutron', 'r': [0.0, 0.0, 0.0], 'E': 2.0},
        'mesh': {'origin': [-1.0, -1.0, -0.95], 'size': [0.1, 0.1, 1.9], 'dims': [20, 20, 1]},
        'transport': 'surface',
        'particles': 200,
        'batches': 3,
        'seed': 500,
    }
    config.update(overrides)
    return config


class TestFromDict:
    def test_builds_run(self, geometry):
        registry = EnergyGridRegistry()
        run = FixedSourceRun.from_dict(_config(), geometry, registry)
        assert run.n_particles == 200
        assert run.n_batches == 3
        assert run.operator == 'surface'
        assert 'twoGroup' in registry
        assert run.materials.energy_grid == registry.get('twoGroup')

    def test_missing_grid(self, geometry):
        config = _config()
        del config['energyGrids']
        with pytest.raises(LookupMiss):
            FixedSourceRun.from_dict(config, geometry)

    def test_unknown_operator(self, geometry):
        with pytest.raises(ConfigurationError):
            FixedSourceRun.from_dict(_config(transport='implicit'), geometry)

    def test_invalid_counts(self, geometry):
        with pytest.raises(ConfigurationError):
            FixedSourceRun.from_dict(_config(particles=0), geometry)

    def test_source_outside(self, geometry):
        source = dict(_config()['source'], r=[0.0, 0.0, 3.0])
        with pytest.raises(ConfigurationError, match="outside"):
            FixedSourceRun.from_dict(_config(source=source), geometry)


class TestSolve:
    @pytest.mark.parametrize("operator", ['surface', 'delta'])
    def test_deterministic(self, geometry, operator):
        r1 = FixedSourceRun.from_dict(_config(transport=operator), geometry).solve()
        r2 = FixedSourceRun.from_dict(_config(transport=operator), geometry).solve()
        np.testing.assert_array_equal(r1.density, r2.density)
        assert r1.counts == r2.counts

    def test_result_fields(self, geometry):
        run = FixedSourceRun.from_dict(_config(), geometry)
        result = run.solve()
        assert isinstance(result, FixedSourceResult)
        assert result.density.shape == (20, 20, 1)
        assert result.counts['n_histories'] == 600
        assert run.mesh.n_histories == 600
        assert np.sum(result.density) > 0
        # the source cell sees the most visits
        i, j, _ = np.unravel_index(np.argmax(result.density), result.density.shape)
        assert (i, j) in {(9, 9), (9, 10), (10, 9), (10, 10)}

    def test_density_matches_mesh(self, geometry):
        run = FixedSourceRun.from_dict(_config(), geometry)
        result = run.solve()
        assert result.density[9, 9, 0] == pytest.approx(run.mesh.density(10, 10, 1))

    def test_batch_statistics(self, geometry):
        result = FixedSourceRun.from_dict(_config(), geometry).solve()
        np.testing.assert_allclose(result.density_mean, result.density, rtol=1e-12)
        assert np.any(result.density_std > 0)

    def test_to_dict_is_json_serializable(self, geometry):
        result = FixedSourceRun.from_dict(_config(batches=1), geometry).solve()
        d = json.loads(json.dumps(result.to_dict()))
        assert d['n_particles'] == 200
        assert d['operator'] == 'surface'

    def test_resolve_resets_mesh(self, geometry):
        run = FixedSourceRun.from_dict(_config(batches=1), geometry)
        a = run.solve()
        b = run.solve()
        np.testing.assert_array_equal(a.density, b.density)

    def test_dropped_scores_warned(self, geometry, caplog):
        small = {'origin': [0.0, 0.0, 0.0], 'size': [0.05, 0.05, 0.05], 'dims': [2, 2, 2]}
        with caplog.at_level(logging.WARNING, logger='mc_kernel.simulation'):
            result = FixedSourceRun.from_dict(_config(mesh=small, batches=1), geometry).solve()
        assert result.n_dropped > 0
        assert "dropped" in caplog.text

    def test_parallel_backend_deterministic(self, geometry):
        config = _config(particles=100, batches=2)
        r1 = FixedSourceRun.from_dict(config, geometry, backend=CPUBackend(n_workers=2)).solve()
        r2 = FixedSourceRun.from_dict(config, geometry, backend=CPUBackend(n_workers=2)).solve()
        np.testing.assert_array_equal(r1.density, r2.density)
        assert r1.counts['n_histories'] == 200

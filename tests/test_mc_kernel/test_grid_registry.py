"""
Tests for mc_kernel.grid_registry module.
"""
import pytest

from mc_kernel.errors import ConfigurationError, LookupMiss
from mc_kernel.grid_registry import EnergyGridRegistry

TOL = 1.0e-9


class TestGettingUserDefinedGrid:
    @pytest.mark.parametrize("name", ["linGrid", "linGridC"])
    def test_linear(self, registry, name):
        grid = registry.get(name)
        assert grid.bin(3) == pytest.approx(18.0, rel=TOL)

    @pytest.mark.parametrize("name", ["logGrid", "logGridC"])
    def test_logarithmic(self, registry, name):
        grid = registry.get(name)
        assert grid.bin(3) == pytest.approx(1.0e-2, rel=TOL)

    @pytest.mark.parametrize("name", ["unstructGrid", "unstructGridC"])
    def test_unstructured(self, registry, name):
        grid = registry.get(name)
        assert grid.bin(2) == pytest.approx(1.0, rel=TOL)

    def test_individual_and_combined_definitions_agree(self, registry):
        for name in ("linGrid", "logGrid", "unstructGrid"):
            assert registry.get(name) == registry.get(name + "C")

    def test_returns_independent_copy(self, registry):
        a = registry.get("linGrid")
        b = registry.get("linGrid")
        assert a is not b
        assert a == b


class TestGettingUndefinedGrid:
    def test_flagged_miss(self, registry):
        grid, err = registry.get("invalidGrid", flagged=True)
        assert err is True
        assert grid is None

    def test_flagged_hit(self, registry):
        grid, err = registry.get("linGrid", flagged=True)
        assert err is False
        assert grid.bin(3) == pytest.approx(18.0, rel=TOL)

    def test_try_get(self, registry):
        assert registry.try_get("invalidGrid") == (None, True)

    def test_fatal_mode_raises(self, registry):
        with pytest.raises(LookupMiss, match="invalidGrid"):
            registry.get("invalidGrid")

    def test_lookup_miss_is_key_error(self, registry):
        with pytest.raises(KeyError):
            registry.get("invalidGrid")


class TestKill:
    def test_get_after_kill_is_miss(self, registry):
        registry.kill()
        grid, err = registry.get("linGrid", flagged=True)
        assert err is True
        assert grid is None
        with pytest.raises(LookupMiss):
            registry.get("linGrid")

    def test_kill_is_idempotent(self):
        reg = EnergyGridRegistry()
        reg.kill()
        reg.kill()
        assert len(reg) == 0

    def test_redefine_after_kill(self, registry, lin_dict):
        registry.kill()
        registry.define("linGrid", lin_dict)
        assert registry.get("linGrid").bin(3) == pytest.approx(18.0, rel=TOL)


class TestDefine:
    def test_redefinition_rejected(self, registry, log_dict):
        with pytest.raises(ConfigurationError, match="already defined"):
            registry.define("linGrid", log_dict)
        # original definition untouched
        assert registry.get("linGrid").bin(3) == pytest.approx(18.0, rel=TOL)

    def test_names_and_contains(self, registry):
        assert "linGrid" in registry
        assert "invalidGrid" not in registry
        assert len(registry) == 6
        assert set(registry.names()) == {
            "linGrid", "logGrid", "unstructGrid", "linGridC", "logGridC", "unstructGridC",
        }

    def test_define_multiple_keeps_earlier_entries_on_failure(self, lin_dict):
        reg = EnergyGridRegistry()
        with pytest.raises(ConfigurationError):
            reg.define_multiple({
                'good': lin_dict,
                'bad': {'grid': 'lin', 'min': 5.0, 'max': 1.0, 'size': 4},
                'never': lin_dict,
            })
        assert 'good' in reg
        assert 'bad' not in reg
        assert 'never' not in reg

    def test_invalid_spec_not_stored(self):
        reg = EnergyGridRegistry()
        with pytest.raises(ConfigurationError):
            reg.define('g', {'grid': 'log', 'min': 1.0, 'max': 10.0})  # no size
        assert 'g' not in reg

    def test_empty_name_rejected(self, lin_dict):
        reg = EnergyGridRegistry()
        with pytest.raises(ConfigurationError):
            reg.define('', lin_dict)

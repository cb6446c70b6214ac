"""
Shared pytest fixtures for mc_kernel test suite.
"""
import numpy as np
import pytest

from mc_kernel.geometry import BoxGeometry, CylinderGeometry
from mc_kernel.grid_registry import EnergyGridRegistry
from mc_kernel.materials import Material, MaterialSet
from mc_kernel.rng import RandomStream
from mc_kernel.tallies import Mesh


@pytest.fixture
def rand():
    """RandomStream with fixed seed for reproducible tests."""
    return RandomStream(42)


@pytest.fixture
def geometry():
    """Default CylinderGeometry (core material 1, reflector material 2)."""
    return CylinderGeometry()


@pytest.fixture
def box():
    """2 x 2 x 2 box of material 1 centred at the origin."""
    return BoxGeometry(lower=(-1.0, -1.0, -1.0), upper=(1.0, 1.0, 1.0), material=1)


@pytest.fixture
def materials():
    """Two-group core (1) and reflector (2) materials."""
    return MaterialSet({
        1: Material("core", sigma_t=(4.0, 6.0), sigma_s=(2.0, 3.0)),
        2: Material("reflector", sigma_t=(2.0, 3.0), sigma_s=(1.8, 2.7)),
    })


@pytest.fixture
def lin_dict():
    return {'grid': 'lin', 'min': 0.0, 'max': 20.0, 'size': 20}


@pytest.fixture
def log_dict():
    return {'grid': 'log', 'min': 1.0e-9, 'max': 1.0, 'size': 9}


@pytest.fixture
def unstruct_dict():
    return {'grid': 'unstruct', 'bins': [10.0, 1.0, 1.0e-6]}


@pytest.fixture
def registry(lin_dict, log_dict, unstruct_dict):
    """Registry holding three grids defined one by one and the same three
    defined through a nested multi-definition."""
    reg = EnergyGridRegistry()
    reg.define('linGrid', lin_dict)
    reg.define('logGrid', log_dict)
    reg.define('unstructGrid', unstruct_dict)
    reg.define_multiple({
        'linGridC': lin_dict,
        'logGridC': log_dict,
        'unstructGridC': unstruct_dict,
    })
    yield reg
    reg.kill()


@pytest.fixture
def mesh(geometry):
    """20 x 20 x 1 mesh covering the cylinder cross-section at |z| < 0.1."""
    r = geometry.outer_radius
    return Mesh(origin=[-r, -r, -0.1], cell_size=[2 * r / 20, 2 * r / 20, 0.2], dims=[20, 20, 1])


@pytest.fixture
def point_source_dict():
    return {'type': 'pointSource', 'particle': 'neutron', 'r': [0.0, 0.0, 0.0], 'G': 1}

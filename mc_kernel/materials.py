"""
Material cross sections and the collision hook.

Cross-section physics is reduced to what the random walk needs:

  sigma_t[g]  total macroscopic cross section (1/length), group g
  sigma_s[g]  scattering part of sigma_t

Multi-group particles index the tables with their 1-based group.
Continuous-energy particles are mapped onto groups with the EnergyGrid
attached to the MaterialSet (bin k of the grid <-> group k).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .config import as_dictionary
from .energy_grid import EnergyGrid
from .errors import ConfigurationError, GeometryError
from .particle import sample_isotropic


# ===================================================================
# Material dataclass
# ===================================================================

@dataclass(frozen=True)
class Material:
    """Macroscopic group cross sections of one material."""

    name: str
    sigma_t: Tuple[float, ...]
    sigma_s: Tuple[float, ...]

    def __post_init__(self):
        st = tuple(float(v) for v in self.sigma_t)
        ss = tuple(float(v) for v in self.sigma_s)
        if not st:
            raise ConfigurationError(f"Material '{self.name}' has no cross sections", key='sigma_t')
        if len(ss) != len(st):
            raise ConfigurationError(
                f"Material '{self.name}': sigma_s has {len(ss)} groups, sigma_t has {len(st)}",
                key='sigma_s',
            )
        for t, s in zip(st, ss):
            if t < 0.0 or s < 0.0 or s > t:
                raise ConfigurationError(
                    f"Material '{self.name}': need 0 <= sigma_s <= sigma_t", key='sigma_s'
                )
        object.__setattr__(self, 'sigma_t', st)
        object.__setattr__(self, 'sigma_s', ss)

    @property
    def n_groups(self) -> int:
        return len(self.sigma_t)

    def total(self, g: int) -> float:
        return self.sigma_t[g - 1]

    def scatter_probability(self, g: int) -> float:
        st = self.sigma_t[g - 1]
        return self.sigma_s[g - 1] / st if st > 0.0 else 0.0

    def absorption_probability(self, g: int) -> float:
        return 1.0 - self.scatter_probability(g)

    @classmethod
    def from_dict(cls, name, config) -> "Material":
        d = as_dictionary(config)
        sigma_t = d.get_vector('sigma_t')
        if d.is_present('sigma_s'):
            sigma_s = d.get_vector('sigma_s')
        else:
            sigma_s = [0.0] * len(sigma_t)
        return cls(name=name, sigma_t=tuple(sigma_t), sigma_s=tuple(sigma_s))


# ===================================================================
# Material set
# ===================================================================

class MaterialSet:
    """Materials keyed by the index the geometry reports.

    Args:
        materials: {material index: Material}
        energy_grid: grid mapping continuous energies onto groups
    """

    def __init__(self, materials: Dict[int, Material], energy_grid: Optional[EnergyGrid] = None):
        if not materials:
            raise ConfigurationError("At least one material is required", key='materials')
        groups = {m.n_groups for m in materials.values()}
        if len(groups) != 1:
            raise ConfigurationError("All materials must share one group structure", key='materials')
        self.n_groups = groups.pop()
        if energy_grid is not None and energy_grid.size != self.n_groups:
            raise ConfigurationError(
                f"Energy grid has {energy_grid.size} bins but materials have {self.n_groups} groups",
                key='energyGrid',
            )
        self._materials = dict(materials)
        self.energy_grid = energy_grid
        self._majorant = max(max(m.sigma_t) for m in self._materials.values())

    @classmethod
    def from_dict(cls, config, registry=None) -> "MaterialSet":
        """Build from {'energyGrid': name (optional), 'materials': {idx: {...}}}.

        The energy grid is looked up in *registry*.
        """
        d = as_dictionary(config)
        grid = None
        if d.is_present('energyGrid'):
            if registry is None:
                raise ConfigurationError("Energy grid given but no registry supplied", key='energyGrid')
            grid = registry.get(d.get_str('energyGrid'))
        mats = {}
        entries = d.get_dict('materials')
        for key in entries.keys():
            try:
                idx = int(key)
            except (TypeError, ValueError):
                raise ConfigurationError("Material keys must be integer indices", key=str(key)) from None
            sub = entries.get_dict(key)
            mats[idx] = Material.from_dict(sub.get_or_default('name', f"mat{idx}"), sub)
        return cls(mats, energy_grid=grid)

    def material(self, mat_idx: int) -> Material:
        try:
            return self._materials[mat_idx]
        except KeyError:
            raise GeometryError(f"Geometry reported undefined material index {mat_idx}") from None

    def group_of(self, p) -> int:
        """1-based group the particle's cross sections are read from."""
        if p.is_mg:
            g = p.G
        else:
            if self.energy_grid is None:
                if self.n_groups == 1:
                    return 1
                raise GeometryError("Continuous-energy particle but no energy grid for the materials")
            g = self.energy_grid.search(p.E)
        if not 1 <= g <= self.n_groups:
            raise GeometryError(f"Particle energy/group outside the cross-section tables (group {g})")
        return g

    def sigma_t(self, mat_idx: int, p) -> float:
        return self.material(mat_idx).total(self.group_of(p))

    def majorant(self) -> float:
        """Largest total cross section over all materials and groups."""
        return self._majorant

    def __contains__(self, mat_idx):
        return mat_idx in self._materials

    def __len__(self):
        return len(self._materials)

    def indices(self):
        return sorted(self._materials.keys())


# ===================================================================
# Collision hook
# ===================================================================

class AnalogCollision:
    """Analog scatter/absorb decision.

    Scatter (isotropic, no energy change) with probability sigma_s/sigma_t,
    otherwise the particle is absorbed and killed.
    """

    def collide(self, p, material: Material, group: int, rand):
        p.n_collisions += 1
        if rand.get() < material.scatter_probability(group):
            p.dir = sample_isotropic(rand)
        else:
            p.kill()

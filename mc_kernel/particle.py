"""
Particle state for one history.

A ParticleState is created by a Source, mutated only by a transport
operator (and the collision hook it drives) and dropped when the history
ends. Positions and directions are float64 numpy arrays of shape (3,).
"""
import math
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

from .constants import TWO_PI
from .errors import ConfigurationError, NumericalDegeneracy


class ParticleType(IntEnum):
    NEUTRON = 1
    PHOTON = 2

    @classmethod
    def from_name(cls, name):
        """Map a configuration string ('neutron', 'photon') to a type."""
        try:
            return _TYPE_NAMES[name]
        except (KeyError, TypeError):
            raise ConfigurationError(
                f"Unrecognised particle type '{name}'", key='particle'
            ) from None


_TYPE_NAMES = {
    'neutron': ParticleType.NEUTRON,
    'photon': ParticleType.PHOTON,
}


def normalise(vector) -> np.ndarray:
    """Return *vector* scaled to unit length.

    Raises NumericalDegeneracy for zero-length or non-finite vectors.
    """
    v = np.asarray(vector, dtype=np.float64)
    norm = float(np.linalg.norm(v))
    if not np.isfinite(norm) or norm == 0.0:
        raise NumericalDegeneracy(f"Cannot normalise direction {v.tolist()}")
    return v / norm


def sample_isotropic(rand) -> np.ndarray:
    """Sample a direction uniformly over the unit sphere.

    phi = 2*pi*u1 and theta = acos(1 - 2*u2); drawing cos(theta) rather
    than theta uniformly keeps the poles from being oversampled.
    """
    phi = TWO_PI * rand.get()
    theta = math.acos(1.0 - 2.0 * rand.get())
    sin_theta = math.sin(theta)
    return np.array([
        math.cos(phi) * sin_theta,
        math.sin(phi) * sin_theta,
        math.cos(theta),
    ])


@dataclass
class ParticleState:
    """Mutable record of one particle.

    Exactly one of E (continuous energy, MeV) and G (1-based group) is
    meaningful, as selected by is_mg.
    """
    r: np.ndarray = field(default_factory=lambda: np.zeros(3))
    dir: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))
    E: float = 0.0
    G: int = 0
    is_mg: bool = False
    type: ParticleType = ParticleType.NEUTRON
    alive: bool = True
    n_collisions: int = 0
    history: int = 0

    def point(self, direction):
        """Set a new direction, normalised to unit length."""
        self.dir = normalise(direction)

    def move(self, distance):
        self.r = self.r + distance * self.dir

    def teleport(self, position):
        self.r = np.array(position, dtype=np.float64)

    def kill(self):
        """Mark the particle dead. A dead particle stays dead."""
        self.alive = False

    @property
    def is_dead(self) -> bool:
        return not self.alive

    @property
    def direction_norm(self) -> float:
        return float(np.linalg.norm(self.dir))

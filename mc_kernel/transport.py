"""
Transport operators: advance a particle by one event.

The driving loop calls transport(p) until p.alive is False. Each call
moves the particle, scores the new position into the mesh tally (if one
is attached) and only then resolves the event. Every flight endpoint is
scored, so the number of scores per history is a property of the
tracking strategy:

Surface tracking:
  d_boundary = distance to the nearest surface
  d_collision = -ln(xi) / sigma_t(local material)
  collision if d_collision < d_boundary, else cross the surface
  (nudged by EPSILON); crossing into OUTSIDE_MAT is a leak.
  Scores = collisions + crossings (the leaking crossing included).

Delta tracking:
  d = -ln(xi) / sigma_majorant, surfaces are ignored
  outside the domain -> leak
  accept as real collision with probability sigma_t / sigma_majorant,
  otherwise (virtual collision) sample again.
  Scores = real collisions + virtual collisions + leaks.

Leak positions lie outside the domain; a mesh that does not extend past
the geometry counts them in Mesh.n_dropped.

On return the particle is either strictly inside the domain or dead.
"""
import math
from abc import ABC, abstractmethod

from .constants import EPSILON, INFINITY, OUTSIDE_MAT
from .errors import ConfigurationError, GeometryError
from .materials import AnalogCollision


class TransportOperator(ABC):
    """Shared state and helpers of the tracking strategies.

    The random stream, geometry, materials and tally are borrowed; the
    caller keeps ownership and must keep them alive.
    """

    name = "base"

    def __init__(self):
        self.rand = None
        self.geom = None
        self.materials = None
        self.tally = None
        self.physics = None
        self.n_collisions = 0
        self.n_leaked = 0
        self.n_crossings = 0

    def init(self, rand, geom, materials=None, tally=None, physics=None):
        """Attach the random stream, geometry and cross sections.

        Args:
            rand: RandomStream
            geom: Geometry
            materials: MaterialSet
            tally: Mesh scored after every move (optional)
            physics: collision hook, defaults to AnalogCollision
        """
        if rand is None or geom is None:
            raise ConfigurationError("Transport operator needs a random stream and a geometry",
                                     where=f"{type(self).__name__}.init")
        if materials is None:
            raise ConfigurationError("Transport operator needs materials", key='materials',
                                     where=f"{type(self).__name__}.init")
        self.rand = rand
        self.geom = geom
        self.materials = materials
        self.tally = tally
        self.physics = physics if physics is not None else AnalogCollision()
        return self

    @abstractmethod
    def transport(self, p):
        """Move *p* to its next event and resolve it."""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _sample_distance(self, sigma):
        if sigma <= 0.0:
            return INFINITY
        return -math.log(1.0 - self.rand.get()) / sigma

    def _score(self, p):
        if self.tally is not None:
            self.tally.score(p.r, p.dir)

    def _leak(self, p):
        p.kill()
        self.n_leaked += 1

    def _collide(self, p, material, group):
        self.n_collisions += 1
        self.physics.collide(p, material, group, self.rand)

    def counters(self):
        return {
            'collisions': self.n_collisions,
            'leaked': self.n_leaked,
            'crossings': self.n_crossings,
        }


class SurfaceTracking(TransportOperator):
    """Track every surface crossing exactly."""

    name = "surface"

    def transport(self, p):
        if not p.alive:
            return

        mat_idx, _unique_id = self.geom.what_is_at(p.r)
        if mat_idx == OUTSIDE_MAT:
            raise GeometryError(f"Live particle found outside the geometry at {p.r.tolist()}")
        material = self.materials.material(mat_idx)
        group = self.materials.group_of(p)

        d_boundary = self.geom.distance_to_boundary(p.r, p.dir)
        d_collision = self._sample_distance(material.total(group))

        if d_collision < d_boundary:
            p.move(d_collision)
            self._score(p)
            self._collide(p, material, group)
            return

        if math.isinf(d_boundary):
            raise GeometryError(
                f"Particle in material {mat_idx} streams to infinity from {p.r.tolist()}"
            )

        p.move(d_boundary + EPSILON)
        self.n_crossings += 1
        self._score(p)
        if self.geom.what_is_at(p.r)[0] == OUTSIDE_MAT:
            self._leak(p)


class DeltaTracking(TransportOperator):
    """Woodcock tracking with a global majorant cross section."""

    name = "delta"

    def __init__(self):
        super().__init__()
        self.majorant = 0.0
        self.n_virtual = 0

    def init(self, rand, geom, materials=None, tally=None, physics=None):
        super().init(rand, geom, materials, tally, physics)
        self.majorant = materials.majorant()
        if self.majorant <= 0.0:
            raise ConfigurationError("Delta tracking needs a positive majorant cross section",
                                     key='sigma_t', where='DeltaTracking.init')
        return self

    def transport(self, p):
        if not p.alive:
            return

        while True:
            p.move(self._sample_distance(self.majorant))
            self._score(p)

            mat_idx, _unique_id = self.geom.what_is_at(p.r)
            if mat_idx == OUTSIDE_MAT:
                self._leak(p)
                return

            material = self.materials.material(mat_idx)
            group = self.materials.group_of(p)
            if self.rand.get() * self.majorant < material.total(group):
                self._collide(p, material, group)
                return
            self.n_virtual += 1

    def counters(self):
        counts = super().counters()
        counts['virtual'] = self.n_virtual
        return counts


_OPERATORS = {
    'surface': SurfaceTracking,
    'ST': SurfaceTracking,
    'delta': DeltaTracking,
    'DT': DeltaTracking,
}


def new_transport_operator(name: str) -> TransportOperator:
    """Create an (uninitialised) operator: 'surface'/'ST' or 'delta'/'DT'."""
    try:
        return _OPERATORS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown transport operator '{name}'. Choose from: surface, delta", key='transport'
        ) from None

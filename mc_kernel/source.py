"""
Particle sources.

A Source turns configuration into starting ParticleStates. Concrete
sources fill a particle through four sampling steps, each of which gets
the random stream explicitly:

  sample_type -> sample_position -> sample_energy -> sample_energy_angle

sample_particle() runs them in that order on a fresh particle.
"""
from abc import ABC, abstractmethod

from .config import as_dictionary
from .constants import OUTSIDE_MAT
from .errors import ConfigurationError
from .particle import ParticleState, ParticleType, normalise, sample_isotropic


class Source(ABC):
    """Abstract particle source.

    The geometry handed to init() is borrowed; it must outlive the source.
    """

    def __init__(self):
        self.geom = None

    @abstractmethod
    def init(self, config, geom):
        """Read and validate configuration; keep a reference to *geom*."""

    @abstractmethod
    def sample_type(self, p, rand):
        pass

    @abstractmethod
    def sample_position(self, p, rand):
        pass

    @abstractmethod
    def sample_energy_angle(self, p, rand):
        pass

    @abstractmethod
    def sample_energy(self, p, rand):
        pass

    def sample_particle(self, rand) -> ParticleState:
        """Return a new live particle drawn from this source."""
        p = ParticleState()
        self.sample_type(p, rand)
        self.sample_position(p, rand)
        self.sample_energy(p, rand)
        self.sample_energy_angle(p, rand)
        return p

    def kill(self):
        """Release the geometry reference."""
        self.geom = None


class PointSource(Source):
    """Mono-energetic point source, mono-directional or isotropic.

    Configuration keys:
        particle: 'neutron' (default) or 'photon'
        r:        position, 3 components, must lie inside the geometry
        dir:      direction, 3 components (absent -> isotropic)
        E | G:    continuous energy or 1-based group, exactly one
    """

    def __init__(self, config=None, geom=None):
        super().__init__()
        self.r = None
        self.dir = None
        self.E = 0.0
        self.G = 0
        self.particle_type = ParticleType.NEUTRON
        self.is_mg = False
        self.is_isotropic = True
        if config is not None:
            self.init(config, geom)

    def init(self, config, geom):
        here = 'PointSource.init'
        d = as_dictionary(config)
        self.geom = geom

        name = d.get_or_default('particle', 'neutron')
        try:
            self.particle_type = ParticleType.from_name(name)
        except ConfigurationError:
            raise ConfigurationError(
                f"Unrecognised particle type '{name}'", key='particle', where=here
            ) from None

        r = d.get_vector('r')
        if r.size != 3:
            raise ConfigurationError("Source position must have three components", key='r', where=here)
        self.r = r

        if geom is None:
            raise ConfigurationError("A geometry is required to place the source", where=here)
        mat_idx, _unique_id = geom.what_is_at(self.r)
        if mat_idx == OUTSIDE_MAT:
            raise ConfigurationError("Source has been placed outside geometry", key='r', where=here)

        if d.is_present('dir'):
            direction = d.get_vector('dir')
            if direction.size != 3:
                raise ConfigurationError("Source direction must have three components", key='dir', where=here)
            self.dir = normalise(direction)
            self.is_isotropic = False
        else:
            self.dir = None
            self.is_isotropic = True

        is_ce = d.is_present('E')
        is_mg = d.is_present('G')
        if is_ce and is_mg:
            raise ConfigurationError(
                "Source may be either continuous energy or MG, not both", key='E', where=here
            )
        elif is_ce:
            self.E = d.get_real('E')
            if self.E <= 0.0:
                raise ConfigurationError("Source energy must be positive", key='E', where=here)
            self.is_mg = False
        elif is_mg:
            self.G = d.get_int('G')
            if self.G < 1:
                raise ConfigurationError("Source group must be >= 1", key='G', where=here)
            self.is_mg = True
        else:
            raise ConfigurationError("Must specify source energy, either CE or MG", key='E', where=here)

    def sample_type(self, p, rand):
        p.type = self.particle_type

    def sample_position(self, p, rand):
        p.r = self.r.copy()

    def sample_energy_angle(self, p, rand):
        if self.is_isotropic:
            p.dir = sample_isotropic(rand)
        else:
            p.dir = self.dir.copy()

    def sample_energy(self, p, rand):
        if self.is_mg:
            p.G = self.G
            p.is_mg = True
        else:
            p.E = self.E
            p.is_mg = False


_SOURCE_TYPES = {
    'pointSource': PointSource,
}


def new_source(config, geom) -> Source:
    """Build a source from a definition carrying a 'type' key."""
    d = as_dictionary(config)
    kind = d.get_str('type')
    try:
        cls = _SOURCE_TYPES[kind]
    except KeyError:
        raise ConfigurationError(
            f"Unknown source type '{kind}'. Choose from: {', '.join(_SOURCE_TYPES)}", key='type'
        ) from None
    source = cls()
    source.init(d, geom)
    return source

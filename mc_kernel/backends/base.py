"""Abstract base class for history-execution backends."""
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..materials import MaterialSet
from ..rng import RandomStream
from ..source import Source
from ..tallies import Mesh


@dataclass
class TransportCounts:
    """Event counters summed over histories."""
    n_histories: int = 0
    n_collisions: int = 0
    n_leaked: int = 0
    n_crossings: int = 0
    n_virtual: int = 0

    def __add__(self, other):
        return TransportCounts(
            n_histories=self.n_histories + other.n_histories,
            n_collisions=self.n_collisions + other.n_collisions,
            n_leaked=self.n_leaked + other.n_leaked,
            n_crossings=self.n_crossings + other.n_crossings,
            n_virtual=self.n_virtual + other.n_virtual,
        )

    @classmethod
    def from_operator(cls, operator, n_histories):
        c = operator.counters()
        return cls(
            n_histories=n_histories,
            n_collisions=c['collisions'],
            n_leaked=c['leaked'],
            n_crossings=c['crossings'],
            n_virtual=c.get('virtual', 0),
        )

    def to_dict(self):
        return {
            'n_histories': self.n_histories,
            'n_collisions': self.n_collisions,
            'n_leaked': self.n_leaked,
            'n_crossings': self.n_crossings,
            'n_virtual': self.n_virtual,
        }


class MCBackend(ABC):
    """Runs a block of independent histories.

    The driver (FixedSourceRun) calls transport_histories() once per batch.
    """

    @abstractmethod
    def transport_histories(
        self,
        source: Source,
        operator_name: str,
        geometry,
        materials: MaterialSet,
        mesh: Mesh,
        n_histories: int,
        rand: RandomStream,
        first_history: int = 0,
    ) -> TransportCounts:
        """Run *n_histories* histories, scoring into *mesh*.

        Args:
            source: initialised Source
            operator_name: 'surface' or 'delta'
            geometry: Geometry shared by source and operator
            materials: MaterialSet
            mesh: Mesh receiving all scores (modified in place)
            n_histories: number of histories to run
            rand: RandomStream driving this block
            first_history: index given to the first history

        Returns:
            TransportCounts summed over the block
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Human-readable backend name, e.g. 'CPU (8 cores)'."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        pass

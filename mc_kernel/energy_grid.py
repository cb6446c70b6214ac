"""
Energy grids: ordered partitions of the energy axis into bins.

Structured grids follow the high-energy-first convention:

  lin: bin(k) = max - (max - min) * (k - 1) / size
  log: bin(k) = max * (min / max) ** ((k - 1) / size)

for k = 1 .. size + 1. Unstructured grids keep boundaries in the order
supplied. bin(k) is 1-based.
"""
from typing import Sequence

import numpy as np

from .config import as_dictionary
from .constants import GRID_LINEAR, GRID_LOGARITHMIC, GRID_UNSTRUCTURED
from .errors import ConfigurationError


class EnergyGrid:
    """Immutable, strictly monotonic sequence of bin boundaries."""

    def __init__(self, boundaries: Sequence[float], kind: str = GRID_UNSTRUCTURED):
        bins = np.array(boundaries, dtype=np.float64)
        if bins.ndim != 1 or bins.size < 2:
            raise ConfigurationError("Energy grid needs at least 2 boundaries", key='bins')
        if not np.all(np.isfinite(bins)):
            raise ConfigurationError("Energy grid boundaries must be finite", key='bins')
        diffs = np.diff(bins)
        if not (np.all(diffs < 0) or np.all(diffs > 0)):
            raise ConfigurationError("Energy grid boundaries must be strictly monotonic", key='bins')
        bins.flags.writeable = False
        self._bins = bins
        self.kind = kind

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def linear(cls, e_min: float, e_max: float, size: int) -> "EnergyGrid":
        _check_structured(e_min, e_max, size)
        k = np.arange(size + 1, dtype=np.float64)
        return cls(e_max - (e_max - e_min) * k / size, kind=GRID_LINEAR)

    @classmethod
    def logarithmic(cls, e_min: float, e_max: float, size: int) -> "EnergyGrid":
        _check_structured(e_min, e_max, size)
        if e_min <= 0.0:
            raise ConfigurationError("Logarithmic grid requires min > 0", key='min')
        k = np.arange(size + 1, dtype=np.float64)
        return cls(e_max * (e_min / e_max) ** (k / size), kind=GRID_LOGARITHMIC)

    @classmethod
    def unstructured(cls, values: Sequence[float]) -> "EnergyGrid":
        if len(values) < 2:
            raise ConfigurationError("Unstructured grid needs at least 2 values", key='bins')
        return cls(values, kind=GRID_UNSTRUCTURED)

    @classmethod
    def from_dict(cls, config) -> "EnergyGrid":
        """Build a grid from a definition with a 'grid' tag.

        lin/log read 'min', 'max', 'size'; unstruct reads 'bins'.
        """
        d = as_dictionary(config)
        kind = d.get_str('grid')
        if kind == GRID_LINEAR:
            return cls.linear(d.get_real('min'), d.get_real('max'), d.get_int('size'))
        elif kind == GRID_LOGARITHMIC:
            return cls.logarithmic(d.get_real('min'), d.get_real('max'), d.get_int('size'))
        elif kind == GRID_UNSTRUCTURED:
            return cls.unstructured(d.get_vector('bins'))
        raise ConfigurationError(
            f"Unknown energy grid type '{kind}'. Choose from: lin, log, unstruct", key='grid'
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Number of bins."""
        return self._bins.size - 1

    @property
    def boundaries(self) -> np.ndarray:
        return self._bins.copy()

    @property
    def is_descending(self) -> bool:
        return bool(self._bins[0] > self._bins[-1])

    def bin(self, k: int) -> float:
        """Boundary k (1-based)."""
        if not 1 <= k <= self._bins.size:
            raise IndexError(f"Bin {k} outside 1..{self._bins.size}")
        return float(self._bins[k - 1])

    def search(self, energy: float) -> int:
        """1-based index of the bin holding *energy*, or -1 if outside.

        The lowest-energy boundary belongs to the last bin.
        """
        b = self._bins
        lo, hi = (b[-1], b[0]) if self.is_descending else (b[0], b[-1])
        if energy < lo or energy > hi:
            return -1
        if self.is_descending:
            idx = int(np.searchsorted(-b, -energy, side='right'))
        else:
            idx = int(np.searchsorted(b, energy, side='right'))
        return min(idx, self.size)

    def copy(self) -> "EnergyGrid":
        return EnergyGrid(self._bins.copy(), kind=self.kind)

    def __len__(self):
        return self._bins.size

    def __eq__(self, other):
        if not isinstance(other, EnergyGrid):
            return NotImplemented
        return np.array_equal(self._bins, other._bins)

    def __repr__(self):
        return f"EnergyGrid(kind={self.kind!r}, size={self.size}, range=[{self._bins[0]:.4g}, {self._bins[-1]:.4g}])"


def _check_structured(e_min, e_max, size):
    if e_min >= e_max:
        raise ConfigurationError(f"Grid min ({e_min}) must be smaller than max ({e_max})", key='min')
    if size < 1:
        raise ConfigurationError(f"Grid size must be at least 1, got {size}", key='size')

"""
Mesh tally for MC transport.

Regular rectilinear mesh counting visited positions:
  cell (i, j, k) = floor((r - origin) / cell_size)   (per axis)
  density[i, j, k] = count[i, j, k] / (cell_volume * n_histories)

Positions outside the mesh extent are not scored; they are counted in
n_dropped so that a mesh that misses the problem can be noticed.

Workers accumulate into private meshes which are merged in a fixed
order (merge()), keeping tallies reproducible.
"""
import numpy as np

from .config import as_dictionary
from .errors import ConfigurationError


class Mesh:
    """Regular 3D accumulator of visited positions.

    Args:
        origin: lower-left corner (3,)
        cell_size: edge lengths of one cell (3,)
        dims: number of cells along x, y, z
        name: label used in results
    """

    def __init__(self, origin, cell_size, dims, name="mesh"):
        self.origin = np.array(origin, dtype=np.float64)
        self.cell_size = np.array(cell_size, dtype=np.float64)
        dims = np.array(dims)
        if self.origin.shape != (3,):
            raise ConfigurationError("Mesh origin must have three components", key='origin')
        if self.cell_size.shape != (3,) or np.any(self.cell_size <= 0.0):
            raise ConfigurationError("Mesh cell size must be three positive values", key='size')
        if dims.shape != (3,) or np.any(dims < 1) or not np.all(dims == np.floor(dims)):
            raise ConfigurationError("Mesh dims must be three integers >= 1", key='dims')
        self.dims = tuple(int(n) for n in dims)
        self.name = name

        self._counts = np.zeros(self.dims, dtype=np.int64)
        self.n_histories = 0
        self.n_scores = 0
        self.n_dropped = 0

    @classmethod
    def from_dict(cls, config, name="mesh"):
        d = as_dictionary(config)
        return cls(d.get_vector('origin'), d.get_vector('size'), d.get_vector('dims'),
                   name=d.get_or_default('name', name))

    @property
    def cell_volume(self) -> float:
        return float(np.prod(self.cell_size))

    @property
    def upper(self) -> np.ndarray:
        return self.origin + self.cell_size * np.array(self.dims)

    @property
    def counts(self) -> np.ndarray:
        return self._counts.copy()

    def score(self, r, direction=None):
        """Count one visit at position *r*.

        *direction* is accepted for estimators that need it; the visit
        count does not.
        """
        idx = np.floor((np.asarray(r, dtype=np.float64) - self.origin) / self.cell_size)
        if not np.all(np.isfinite(idx)):
            self.n_dropped += 1
            return
        i, j, k = int(idx[0]), int(idx[1]), int(idx[2])
        nx, ny, nz = self.dims
        if 0 <= i < nx and 0 <= j < ny and 0 <= k < nz:
            self._counts[i, j, k] += 1
            self.n_scores += 1
        else:
            self.n_dropped += 1

    def finish_history(self):
        self.n_histories += 1

    def add_histories(self, n):
        self.n_histories += int(n)

    def density(self, i, j, k) -> float:
        """Visits per unit volume per history in cell (i, j, k), 1-based."""
        nx, ny, nz = self.dims
        if not (1 <= i <= nx and 1 <= j <= ny and 1 <= k <= nz):
            raise IndexError(f"Cell ({i}, {j}, {k}) outside mesh {self.dims}")
        return float(self._counts[i - 1, j - 1, k - 1]) / self._norm()

    def density_array(self) -> np.ndarray:
        """All densities, indexed [i-1, j-1, k-1]."""
        return self._counts / self._norm()

    def _norm(self):
        return self.cell_volume * max(self.n_histories, 1)

    def merge(self, other: "Mesh"):
        """Add *other*'s counts and counters into this mesh."""
        if (other.dims != self.dims
                or not np.allclose(other.origin, self.origin)
                or not np.allclose(other.cell_size, self.cell_size)):
            raise ValueError(f"Cannot merge mesh '{other.name}' into '{self.name}': layouts differ")
        self._counts += other._counts
        self.n_histories += other.n_histories
        self.n_scores += other.n_scores
        self.n_dropped += other.n_dropped

    def copy_empty(self) -> "Mesh":
        """New mesh with the same layout and zero counts."""
        return Mesh(self.origin, self.cell_size, self.dims, name=self.name)

    def reset(self):
        self._counts[:] = 0
        self.n_histories = 0
        self.n_scores = 0
        self.n_dropped = 0


class MeshStatistics:
    """Batch-wise mean and standard error of a mesh density map."""

    def __init__(self, dims):
        self.dims = tuple(dims)
        self.n_batches = 0
        self.density_sum = np.zeros(self.dims)
        self.density_sq_sum = np.zeros(self.dims)

    def accumulate(self, mesh: Mesh):
        """Add the densities of one batch."""
        rho = mesh.density_array()
        self.n_batches += 1
        self.density_sum += rho
        self.density_sq_sum += rho**2

    @property
    def mean(self):
        if self.n_batches == 0:
            return self.density_sum
        return self.density_sum / self.n_batches

    @property
    def std(self):
        if self.n_batches < 2:
            return np.zeros_like(self.density_sum)
        mean = self.mean
        var = self.density_sq_sum / self.n_batches - mean**2
        var = np.maximum(var, 0)  # numerical safety
        return np.sqrt(var / (self.n_batches - 1))

    @property
    def relative_error(self):
        mean = self.mean
        out = np.zeros_like(mean)
        np.divide(self.std, mean, out=out, where=mean > 0)
        return out

"""
CPU Backend: multiprocessing over blocks of histories

Parallelization strategy:
- Split the batch's histories into n_workers contiguous chunks
- Give chunk i the i-th child of rand.spawn(n_workers), so no two
  workers ever draw from the same sub-stream
- Each worker scores into its own private Mesh
- Merge the worker meshes in chunk order (deterministic reduction)

For a fixed seed and worker count the merged tally is reproducible,
independent of process scheduling.
"""
import logging
from multiprocessing import Pool, cpu_count
from typing import Optional

import numpy as np

from ..simulation import run_history
from ..tallies import Mesh
from ..transport import new_transport_operator
from .base import MCBackend, TransportCounts

logger = logging.getLogger(__name__)


# ===================================================================
# Worker (module level so it pickles)
# ===================================================================

def _worker_transport(args):
    """Run one chunk of histories on a private stream and mesh.

    Returns:
        (mesh, TransportCounts) for the chunk
    """
    (source, operator_name, geometry, materials, mesh,
     n_histories, first_history, stream) = args

    operator = new_transport_operator(operator_name)
    operator.init(stream, geometry, materials, tally=mesh)
    for i in range(n_histories):
        run_history(source, operator, stream, history=first_history + i)

    return mesh, TransportCounts.from_operator(operator, n_histories)


# ===================================================================
# CPUBackend class
# ===================================================================

class CPUBackend(MCBackend):
    """CPU-parallel Monte Carlo backend.

    Uses multiprocessing.Pool for inter-core parallelism.

    Parameters
    ----------
    n_workers : int or None
        Number of worker processes.  ``None`` -> ``os.cpu_count()``.
        With one worker the chunk runs in the calling process.
    """

    def __init__(self, n_workers: Optional[int] = None):
        if n_workers is None:
            n_workers = cpu_count() or 1
        self._n_workers = max(1, n_workers)

    @property
    def n_workers(self):
        return self._n_workers

    # ------------------------------------------------------------------
    # MCBackend interface
    # ------------------------------------------------------------------

    def transport_histories(self, source, operator_name, geometry, materials,
                            mesh, n_histories, rand, first_history=0):
        """Split the histories into chunks, run them, merge the tallies."""
        if n_histories == 0:
            return TransportCounts()

        streams = rand.spawn(self._n_workers)
        chunk_sizes = [len(c) for c in np.array_split(np.arange(n_histories), self._n_workers)]

        worker_args = []
        start = first_history
        for size, stream in zip(chunk_sizes, streams):
            worker_args.append((
                source, operator_name, geometry, materials,
                mesh.copy_empty(), size, start, stream,
            ))
            start += size
        logger.debug("Dispatching %d histories to %d worker(s): %s",
                     n_histories, self._n_workers, chunk_sizes)

        if self._n_workers == 1:
            results = [_worker_transport(worker_args[0])]
        else:
            with Pool(processes=self._n_workers) as pool:
                results = pool.map(_worker_transport, worker_args)

        return self._merge_results(results, mesh)

    def get_name(self) -> str:
        n = self._n_workers
        return f"CPU ({n} core{'s' if n > 1 else ''})"

    def is_available(self) -> bool:
        return True  # CPU is always available

    # ------------------------------------------------------------------
    # Merge worker results
    # ------------------------------------------------------------------

    def _merge_results(self, results, mesh: Mesh):
        """Fold worker meshes into *mesh* in chunk order; sum counters."""
        totals = TransportCounts()
        for worker_mesh, counts in results:
            mesh.merge(worker_mesh)
            totals = totals + counts
        return totals

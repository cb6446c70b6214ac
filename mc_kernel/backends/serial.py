"""
Serial backend: one process, one random stream for every history.

This is the reference path; histories consume the run's stream one after
another, so a fixed seed reproduces the tally bit for bit.
"""
from ..simulation import run_history
from ..transport import new_transport_operator
from .base import MCBackend, TransportCounts


class SerialBackend(MCBackend):
    """Run histories sequentially in the calling process."""

    def transport_histories(self, source, operator_name, geometry, materials,
                            mesh, n_histories, rand, first_history=0):
        operator = new_transport_operator(operator_name)
        operator.init(rand, geometry, materials, tally=mesh)
        for i in range(n_histories):
            run_history(source, operator, rand, history=first_history + i)
        return TransportCounts.from_operator(operator, n_histories)

    def get_name(self) -> str:
        return "Serial (1 stream)"

    def is_available(self) -> bool:
        return True

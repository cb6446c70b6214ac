"""
Backend registry.

  serial: one process, one stream shared by all histories
  cpu:    multiprocessing workers with independent sub-streams
"""
from .base import MCBackend, TransportCounts
from .cpu import CPUBackend
from .serial import SerialBackend


def list_backends():
    """List all backends with their status."""
    backends = []
    for label, backend in (('Serial', SerialBackend()), ('CPU', CPUBackend())):
        backends.append((label, backend.get_name(), backend.is_available()))
    return backends


def get_backend(name: str, n_workers=None) -> MCBackend:
    """Get a specific backend by name.

    Args:
        name: 'serial' or 'cpu'
        n_workers: worker processes for 'cpu' (None -> all cores)

    Returns:
        MCBackend instance

    Raises:
        ValueError if the name is unknown
    """
    name = name.lower()

    if name == 'serial':
        return SerialBackend()
    elif name == 'cpu':
        return CPUBackend(n_workers=n_workers)
    else:
        raise ValueError(f"Unknown backend: {name}. Choose from: serial, cpu")

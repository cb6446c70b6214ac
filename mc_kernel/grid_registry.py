"""
Named energy-grid registry.

Lifecycle:
  1. define() / define_multiple() while the run is being configured
  2. get() during the run (read-only, safe from any worker)
  3. kill() at teardown

Mutation is serialised with a lock but must not be interleaved with
get() calls from running workers: treat define/kill as setup/teardown
operations only. Redefining a registered name is a ConfigurationError.
"""
import logging
import threading
from typing import Optional, Tuple

from .config import as_dictionary
from .energy_grid import EnergyGrid
from .errors import ConfigurationError, LookupMiss

logger = logging.getLogger(__name__)


class EnergyGridRegistry:
    """Process-scoped store of EnergyGrid definitions keyed by name."""

    def __init__(self):
        self._grids = {}
        self._lock = threading.Lock()

    def define(self, name: str, definition) -> EnergyGrid:
        """Build a grid from *definition* and store it under *name*."""
        if not isinstance(name, str) or not name:
            raise ConfigurationError("Energy grid name must be a non-empty string", key=str(name))
        grid = EnergyGrid.from_dict(as_dictionary(definition))
        with self._lock:
            if name in self._grids:
                raise ConfigurationError(
                    f"Energy grid '{name}' is already defined", key=name,
                    where='EnergyGridRegistry.define',
                )
            self._grids[name] = grid
        logger.debug("Defined energy grid '%s': %r", name, grid)
        return grid.copy()

    def define_multiple(self, definition):
        """Define every name -> grid-definition entry of *definition*, in order.

        A failing entry raises; entries defined before it stay defined.
        """
        d = as_dictionary(definition)
        for name in d.keys():
            self.define(name, d.get_dict(name))

    def get(self, name: str, flagged: bool = False):
        """Return an independent copy of the grid *name*.

        Default mode raises LookupMiss on an undefined name. With
        flagged=True returns (grid, err): (None, True) on a miss and
        (grid, False) otherwise.
        """
        grid = self._grids.get(name)
        if flagged:
            if grid is None:
                return None, True
            return grid.copy(), False
        if grid is None:
            raise LookupMiss(
                f"Energy grid '{name}' is not defined", key=name,
                where='EnergyGridRegistry.get',
            )
        return grid.copy()

    def try_get(self, name: str) -> Tuple[Optional[EnergyGrid], bool]:
        return self.get(name, flagged=True)

    def kill(self):
        """Remove every definition. Safe to call repeatedly."""
        with self._lock:
            n = len(self._grids)
            self._grids.clear()
        if n:
            logger.debug("Cleared %d energy grid(s)", n)

    def names(self):
        return list(self._grids.keys())

    def __contains__(self, name):
        return name in self._grids

    def __len__(self):
        return len(self._grids)

"""
Typed read-only view over nested configuration mappings.

The kernel never parses files; whoever assembles a run hands over plain
Python mappings (e.g. decoded JSON) and every consumer reads them through
a Dictionary so that missing or mistyped keys surface as
ConfigurationError naming the key.
"""
from collections.abc import Mapping
import copy

import numpy as np

from .errors import ConfigurationError

_MISSING = object()


class Dictionary:
    """Configuration node with typed accessors.

    Nested mappings are returned as Dictionary instances by get_dict().
    """

    def __init__(self, data=None, path=""):
        if data is None:
            data = {}
        if isinstance(data, Dictionary):
            data = data._data
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Expected a mapping, got {type(data).__name__}", key=path or None)
        self._data = dict(data)
        self._path = path

    @classmethod
    def from_mapping(cls, mapping):
        """Build a Dictionary from a deep copy of *mapping*."""
        if isinstance(mapping, Dictionary):
            mapping = mapping._data
        return cls(copy.deepcopy(dict(mapping)))

    # ------------------------------------------------------------------
    # Generic access
    # ------------------------------------------------------------------

    def _qualified(self, key):
        return f"{self._path}.{key}" if self._path else key

    def get(self, key):
        """Return the value stored under *key*; missing keys are fatal."""
        value = self._data.get(key, _MISSING)
        if value is _MISSING:
            raise ConfigurationError("Required key is missing", key=self._qualified(key))
        return value

    def get_or_default(self, key, default):
        return self._data.get(key, default)

    def is_present(self, key) -> bool:
        return key in self._data

    def keys(self):
        return list(self._data.keys())

    def __contains__(self, key):
        return key in self._data

    def __len__(self):
        return len(self._data)

    def __repr__(self):
        return f"Dictionary({self._data!r})"

    # ------------------------------------------------------------------
    # Typed access
    # ------------------------------------------------------------------

    def get_dict(self, key) -> "Dictionary":
        value = self.get(key)
        if isinstance(value, Dictionary):
            return value
        if not isinstance(value, Mapping):
            raise ConfigurationError("Expected a nested dictionary", key=self._qualified(key))
        return Dictionary(value, path=self._qualified(key))

    def get_real(self, key) -> float:
        value = self.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
            raise ConfigurationError("Expected a real number", key=self._qualified(key))
        return float(value)

    def get_int(self, key) -> int:
        value = self.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise ConfigurationError("Expected an integer", key=self._qualified(key))
        return int(value)

    def get_str(self, key) -> str:
        value = self.get(key)
        if not isinstance(value, str):
            raise ConfigurationError("Expected a string", key=self._qualified(key))
        return value

    def get_vector(self, key) -> np.ndarray:
        """Return a 1-D float64 array; length is checked by the caller."""
        value = self.get(key)
        if isinstance(value, (str, bytes, Mapping)):
            raise ConfigurationError("Expected a list of real numbers", key=self._qualified(key))
        try:
            arr = np.asarray(value, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                "Expected a list of real numbers", key=self._qualified(key)
            ) from exc
        if arr.ndim != 1:
            raise ConfigurationError("Expected a flat list of real numbers", key=self._qualified(key))
        return arr.copy()


def as_dictionary(config) -> Dictionary:
    """Accept either a Dictionary or a plain mapping."""
    if isinstance(config, Dictionary):
        return config
    return Dictionary(config)

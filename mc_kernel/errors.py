"""
Exception hierarchy for the transport kernel.

  ConfigurationError  - fatal, raised while building objects from configuration
  LookupMiss          - registry lookup of an undefined name
  NumericalDegeneracy - zero-length direction before normalisation
  GeometryError       - geometry inconsistency detected during a random walk
"""
from typing import Optional


class MCKernelError(Exception):
    """Base class of every error raised by mc_kernel."""


class ConfigurationError(MCKernelError, ValueError):
    """Invalid or incomplete configuration.

    Args:
        message: description of the problem
        key: offending configuration key (if any)
        where: object/method that rejected the configuration
    """

    def __init__(self, message: str, key: Optional[str] = None, where: Optional[str] = None):
        self.key = key
        self.where = where
        text = message
        if key is not None:
            text = f"{text} (key: '{key}')"
        if where is not None:
            text = f"{where}: {text}"
        super().__init__(text)


class LookupMiss(ConfigurationError, KeyError):
    """Name is not defined in a registry."""

    def __str__(self):
        # KeyError would repr() the message otherwise
        return self.args[0]


class NumericalDegeneracy(MCKernelError, ArithmeticError):
    """Vector cannot be normalised."""


class GeometryError(MCKernelError, RuntimeError):
    """Geometry reported something a random walk cannot continue from."""

"""
Shared numerical constants and reserved indices.
All lengths in the geometry's units, energies in MeV.
"""
import math

# ---------------------------------------------------------------------------
# Numerical precision
# ---------------------------------------------------------------------------
INFINITY = math.inf
TWO_PI = 2.0 * math.pi

# ---------------------------------------------------------------------------
# Reserved material indices
# ---------------------------------------------------------------------------
OUTSIDE_MAT = -1                  # outside the modelled domain

# ---------------------------------------------------------------------------
# Transport parameters
# ---------------------------------------------------------------------------
EPSILON = 1.0e-8                  # boundary nudge distance
SURFACE_TOL = 1.0e-10             # minimum positive surface distance

# ---------------------------------------------------------------------------
# Energy-grid tags
# ---------------------------------------------------------------------------
GRID_LINEAR = 'lin'
GRID_LOGARITHMIC = 'log'
GRID_UNSTRUCTURED = 'unstruct'

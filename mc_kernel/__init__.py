"""
mc_kernel - Stochastic kernel of a Monte Carlo particle transport code

Components:
  - Random stream: seeded, explicitly injected uniform(0,1) generator
  - Particle state: position, direction, energy/group, type, liveness
  - Energy-grid registry: named lin/log/unstructured energy partitions
  - Sources: polymorphic particle samplers (point source)
  - Transport operators: surface tracking and delta tracking
  - Mesh tally: regular spatial accumulator of visited positions

Histories run serially or across worker processes with independent
sub-streams and privately accumulated meshes.
"""
__version__ = "0.1.0"

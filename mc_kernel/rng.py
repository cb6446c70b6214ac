"""
Seeded uniform random stream.

Every stochastic call in the kernel receives a RandomStream explicitly;
there is no module-level generator. Parallel workers get independent,
non-overlapping child streams from spawn().
"""
from typing import List, Optional

import numpy as np


class RandomStream:
    """Uniform [0, 1) stream backed by numpy's PCG64.

    Same seed => same sequence for the lifetime of the stream.
    """

    def __init__(self, seed: int = 42, seed_sequence: Optional[np.random.SeedSequence] = None):
        self.seed = seed
        self._seed_sequence = None
        self._generator = None
        if seed_sequence is not None:
            self._reset(seed_sequence)
        else:
            self.init(seed)

    def init(self, seed: int):
        """(Re)start the stream from *seed*."""
        self.seed = seed
        self._reset(np.random.SeedSequence(seed))

    def _reset(self, seed_sequence):
        self._seed_sequence = seed_sequence
        self._generator = np.random.Generator(np.random.PCG64(seed_sequence))

    def get(self) -> float:
        """Next uniform number in [0, 1)."""
        return float(self._generator.random())

    # Contract name used by the rest of the transport code base
    next = get

    def spawn(self, n: int) -> List["RandomStream"]:
        """Return *n* independent child streams for parallel workers.

        Children are derived deterministically from this stream's seed
        sequence; spawning again yields further, distinct children.
        """
        children = self._seed_sequence.spawn(n)
        return [RandomStream(seed=self.seed, seed_sequence=child) for child in children]

    def __getstate__(self):
        return {
            'seed': self.seed,
            'seed_sequence': self._seed_sequence,
            'bit_generator': self._generator.bit_generator.state,
        }

    def __setstate__(self, state):
        self.seed = state['seed']
        self._reset(state['seed_sequence'])
        self._generator.bit_generator.state = state['bit_generator']

"""
Engine configuration.

EngineConfig gathers the knobs that used to be scattered constants: whether
the closed-form gate paths are used, the numerical tolerances, defaults for
parametric gates and repeat blocks, and the measurement RNG seed.
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from .logging import set_log_level

_TRUE = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class EngineConfig:
    """
    Settings shared by QuantumState and Circuit.

    Attributes:
        use_optimized_gates: Use closed-form permutations for CX/CY/CZ/SWAP
            and multi-controlled gates. When False every gate goes through
            matrix multiplication (for parity testing).
        epsilon: Tolerance for complex equality and unitarity checks.
        purity_epsilon: Tolerance for the density-matrix idempotency test.
        collapse_epsilon: Below this total probability a collapse leaves the
            zero vector instead of renormalizing.
        default_angle: Angle used for RX/RY/RZ placed without one.
        default_repeat_count: Count used for REPEAT markers placed without one.
        seed: Seed for the measurement RNG, or None for fresh entropy.
    """

    use_optimized_gates: bool = True
    epsilon: float = 1e-10
    purity_epsilon: float = 1e-8
    collapse_epsilon: float = 1e-10
    default_angle: float = np.pi / 2
    default_repeat_count: int = 2
    seed: Optional[int] = None

    @classmethod
    def from_env(cls, environ=None) -> "EngineConfig":
        """
        Build a config from QUBI_OPTIMIZED, QUBI_SEED and QUBI_LOG_LEVEL.

        QUBI_LOG_LEVEL is applied to the qubi loggers as a side effect.
        """
        env = os.environ if environ is None else environ
        config = cls()

        optimized = env.get("QUBI_OPTIMIZED")
        if optimized is not None:
            config = replace(config, use_optimized_gates=optimized.lower() in _TRUE)

        seed = env.get("QUBI_SEED")
        if seed:
            config = replace(config, seed=int(seed))

        level = env.get("QUBI_LOG_LEVEL")
        if level:
            set_log_level(level)

        return config

    def make_rng(self) -> np.random.Generator:
        """Create the measurement RNG described by this config."""
        return np.random.default_rng(self.seed)


DEFAULT_CONFIG = EngineConfig()

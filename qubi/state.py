"""
The quantum state container.

QuantumState owns one complex amplitude array of length 2^n. Gates mutate it
in place through the engine in core.py; measurement collapses it; the
derived quantities (marginal probabilities, reduced density matrices, Bloch
vectors) are computed from it on demand.

Convention: qubit 0 is the least significant bit of the basis index, so in
the label |q2 q1 q0⟩ qubit 0 is the rightmost character.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from . import core
from . import density
from .complexmath import format_complex
from .config import DEFAULT_CONFIG, EngineConfig
from .errors import QubitIndexError, ShapeError, ValidationError
from .gates import SINGLE_QUBIT_GATES, TWO_QUBIT_GATES, GateCache
from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class QubitReport:
    """Per-qubit summary handed to visualization layers."""
    qubit: int
    pure: bool
    bloch: Tuple[float, float, float]       # unnormalized, |v| < 1 when mixed
    direction: Tuple[float, float, float]   # unit vector, pole when |v| ~ 0
    probability_one: float

    @property
    def label(self) -> str:
        return "pure" if self.pure else "mixed"


class QuantumState:
    """
    State vector of an n-qubit register, starting in |0...0⟩.

    Args:
        num_qubits: Register size (>= 1)
        config: Engine settings; defaults to DEFAULT_CONFIG
        rng: Random generator for measurement; defaults to config.make_rng()
        gate_cache: Cache for parametric gates; a fresh one by default
        use_optimized_gates: Overrides config.use_optimized_gates
    """

    def __init__(self, num_qubits: int = 1, config: Optional[EngineConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 gate_cache: Optional[GateCache] = None,
                 use_optimized_gates: Optional[bool] = None):
        if num_qubits < 1:
            raise ValidationError(f"num_qubits must be >= 1, got {num_qubits}")

        self.config = config or DEFAULT_CONFIG
        self.num_qubits = num_qubits
        self.dimension = 1 << num_qubits
        self.rng = rng if rng is not None else self.config.make_rng()
        self.gate_cache = gate_cache if gate_cache is not None else GateCache()
        self.use_optimized_gates = (self.config.use_optimized_gates
                                    if use_optimized_gates is None else use_optimized_gates)

        self._amplitudes = np.zeros(self.dimension, dtype=complex)
        self._amplitudes[0] = 1.0
        self.measured = False
        self.measurement_result: Optional[List[int]] = None

    # =========================================================================
    # State access
    # =========================================================================

    @property
    def amplitudes(self) -> np.ndarray:
        """The live amplitude array (do not resize it)."""
        return self._amplitudes

    def set_optimization(self, enabled: bool):
        self.use_optimized_gates = bool(enabled)

    def get_state(self) -> np.ndarray:
        """Return a copy of the amplitudes."""
        return self._amplitudes.copy()

    def set_state(self, amplitudes: Sequence[complex]):
        """
        Replace the amplitudes, renormalizing them.

        Accepts real or complex values. Raises ShapeError for a wrong length
        or an all-zero vector.
        """
        values = np.array(amplitudes, dtype=complex).reshape(-1)
        if values.shape[0] != self.dimension:
            raise ShapeError(f"Expected {self.dimension} amplitudes, got {values.shape[0]}")
        norm = np.linalg.norm(values)
        if norm < self.config.collapse_epsilon:
            raise ShapeError("Cannot normalize an all-zero state vector")
        self._amplitudes = np.ascontiguousarray(values / norm)
        self.measured = False
        self.measurement_result = None

    def reset(self):
        """Return to |0...0⟩."""
        self._amplitudes = np.zeros(self.dimension, dtype=complex)
        self._amplitudes[0] = 1.0
        self.measured = False
        self.measurement_result = None

    def copy(self) -> "QuantumState":
        """Independent copy sharing config, RNG and gate cache."""
        other = QuantumState(self.num_qubits, config=self.config, rng=self.rng,
                             gate_cache=self.gate_cache,
                             use_optimized_gates=self.use_optimized_gates)
        other._amplitudes = self._amplitudes.copy()
        return other

    def norm(self) -> float:
        """Σ|a_i|², which stays ~1 after every gate."""
        return float(np.sum(np.abs(self._amplitudes) ** 2))

    def _check_qubit(self, qubit: int) -> int:
        qubit = int(qubit)
        if qubit < 0 or qubit >= self.num_qubits:
            raise QubitIndexError(qubit, self.num_qubits)
        return qubit

    # =========================================================================
    # Gate application
    # =========================================================================

    def apply(self, operation):
        """Apply a resolved operation (see operations.py)."""
        operation.apply(self)

    def apply_matrix(self, matrix, qubits: Sequence[int]):
        """Apply any 2^k x 2^k unitary to k qubits (qubits[0] = low matrix bit)."""
        core.apply_matrix(self._amplitudes, matrix, qubits)

    def apply_gate(self, name: str, qubit: int):
        """
        Apply a named single-qubit gate (I, H, X, Y, Z, S, T).

        Unknown names are treated as identity and logged.
        """
        qubit = self._check_qubit(qubit)
        matrix = SINGLE_QUBIT_GATES.get(name)
        if matrix is None:
            logger.warning("Unknown gate %r, treating it as identity", name)
            return
        if self.use_optimized_gates:
            core.apply_single_qubit(self._amplitudes, matrix, qubit)
        else:
            core.apply_matrix(self._amplitudes, matrix, [qubit])

    def apply_rotation(self, axis: str, qubit: int, angle: float):
        """Apply RX/RY/RZ (axis "X"/"Y"/"Z" or "RX"/"RY"/"RZ") by angle radians."""
        qubit = self._check_qubit(qubit)
        name = axis if axis.startswith("R") else "R" + axis
        matrix = self.gate_cache.rotation(name, angle).matrix
        if self.use_optimized_gates:
            core.apply_single_qubit(self._amplitudes, matrix, qubit)
        else:
            core.apply_matrix(self._amplitudes, matrix, [qubit])

    def apply_two_qubit_gate(self, name: str, control: int, target: int):
        """
        Apply CX, CY, CZ or SWAP.

        For SWAP the two qubits are interchangeable. control == target raises
        DuplicateQubitError.
        """
        core.validate_qubits([control, target], self.num_qubits)

        if not self.use_optimized_gates:
            matrix = TWO_QUBIT_GATES.get(name)
            if matrix is not None:
                # Controlled matrices act on [target, control].
                core.apply_matrix(self._amplitudes, matrix, [target, control])
                return

        if name == "CX":
            core.apply_cx(self._amplitudes, control, target)
        elif name == "CY":
            core.apply_cy(self._amplitudes, control, target)
        elif name == "CZ":
            core.apply_cz(self._amplitudes, control, target)
        elif name == "SWAP":
            core.apply_swap(self._amplitudes, control, target)
        else:
            logger.warning("Unknown two-qubit gate %r, treating it as identity", name)

    def apply_multi_controlled(self, base: str, controls: Sequence[int], target: int):
        """Dispatch a multi-controlled X, Y or Z."""
        if base == "X":
            self.apply_multi_controlled_x(controls, target)
        elif base == "Y":
            self.apply_multi_controlled_y(controls, target)
        elif base == "Z":
            self.apply_multi_controlled_z(controls, target)
        else:
            logger.warning("Unknown multi-controlled gate C%s, treating it as identity", base)

    def _apply_synthesized(self, base: str, controls: Sequence[int], target: int):
        gate = self.gate_cache.multi_controlled(base, len(controls))
        core.apply_matrix(self._amplitudes, gate.matrix, [target] + list(controls))

    def apply_multi_controlled_x(self, controls: Sequence[int], target: int):
        """Toffoli family: flip target when every control is |1⟩."""
        if self.use_optimized_gates:
            core.apply_multi_controlled_x(self._amplitudes, controls, target)
        else:
            self._apply_synthesized("X", controls, target)

    def apply_multi_controlled_y(self, controls: Sequence[int], target: int):
        if self.use_optimized_gates:
            core.apply_multi_controlled_y(self._amplitudes, controls, target)
        else:
            self._apply_synthesized("Y", controls, target)

    def apply_multi_controlled_z(self, controls: Sequence[int], target: Optional[int] = None):
        """Phase flip when all participants are |1⟩ (diagonal, always closed-form)."""
        if self.use_optimized_gates or target is None:
            core.apply_multi_controlled_z(self._amplitudes, controls, target)
        else:
            self._apply_synthesized("Z", controls, target)

    # =========================================================================
    # Probabilities and measurement
    # =========================================================================

    def probability(self, qubit: int, value: int = 1) -> float:
        """Probability that measuring `qubit` gives `value`."""
        qubit = self._check_qubit(qubit)
        bits = (np.arange(self.dimension) >> qubit) & 1
        return float(np.sum(np.abs(self._amplitudes[bits == value]) ** 2))

    get_probability = probability

    def probabilities(self) -> np.ndarray:
        """P(qubit = 1) for every qubit, indexed by qubit."""
        return np.array([self.probability(q, 1) for q in range(self.num_qubits)])

    def get_all_probabilities(self) -> Dict[str, float]:
        """Basis label (qubit n-1 first) -> probability."""
        probs = np.abs(self._amplitudes) ** 2
        return {format(i, f"0{self.num_qubits}b"): float(p) for i, p in enumerate(probs)}

    def collapse(self, qubit: int, outcome: int):
        """
        Project onto `qubit` == outcome and renormalize.

        If the surviving probability is below config.collapse_epsilon the
        state is left as the zero vector. That branch only happens when an
        outcome of (near) zero probability is forced, and it is logged
        rather than raised.
        """
        qubit = self._check_qubit(qubit)
        bits = (np.arange(self.dimension) >> qubit) & 1
        self._amplitudes[bits != outcome] = 0
        total = float(np.sum(np.abs(self._amplitudes) ** 2))
        if total < self.config.collapse_epsilon:
            logger.warning("Collapse of qubit %d to %d left zero probability; "
                           "state is now the zero vector", qubit, outcome)
            return
        self._amplitudes /= np.sqrt(total)

    def measure(self, qubit: int) -> int:
        """
        Measure one qubit and collapse.

        Returns:
            0 or 1
        """
        qubit = self._check_qubit(qubit)
        p0 = self.probability(qubit, 0)
        outcome = 0 if self.rng.random() < p0 else 1
        self.collapse(qubit, outcome)
        return outcome

    def measure_all(self) -> str:
        """
        Measure qubits 0..n-1 in order, each collapse feeding the next.

        Returns:
            Outcome bitstring with qubit n-1 first, matching basis labels.
            The per-qubit outcomes are kept in measurement_result.
        """
        results = [self.measure(q) for q in range(self.num_qubits)]
        self.measured = True
        self.measurement_result = results
        return "".join(str(bit) for bit in reversed(results))

    # =========================================================================
    # Derived quantities
    # =========================================================================

    def density_matrix(self) -> np.ndarray:
        return density.density_matrix(self._amplitudes)

    def is_pure(self) -> bool:
        return density.is_pure(self.density_matrix(), self.config.purity_epsilon)

    def reduced_density_matrix(self, qubit: int) -> np.ndarray:
        return density.reduced_density_matrix(self._amplitudes, self._check_qubit(qubit))

    def bloch_coordinates(self, qubit: int) -> Tuple[float, float, float]:
        """Bloch vector (x, y, z) of one qubit; (0, 0, 0) when maximally mixed."""
        return density.bloch_vector(self.reduced_density_matrix(qubit))

    def bloch_direction(self, qubit: int) -> Tuple[float, float, float]:
        """Unit Bloch vector for drawing; the |0⟩ pole when there is no direction."""
        return density.normalize_direction(self.bloch_coordinates(qubit), self.config.epsilon)

    def qubit_report(self) -> List[QubitReport]:
        """Purity flag, Bloch vector and P(1) for every qubit."""
        reports = []
        for q in range(self.num_qubits):
            reduced = self.reduced_density_matrix(q)
            bloch = density.bloch_vector(reduced)
            reports.append(QubitReport(
                qubit=q,
                pure=density.is_pure(reduced, self.config.purity_epsilon),
                bloch=bloch,
                direction=density.normalize_direction(bloch, self.config.epsilon),
                probability_one=float(reduced[1, 1].real),
            ))
        return reports

    def state_vector_string(self, threshold: float = 1e-6) -> str:
        """Dirac-notation summary, e.g. "0.7071|00⟩ + 0.7071|11⟩"."""
        terms = []
        for i, amp in enumerate(self._amplitudes):
            if abs(amp) ** 2 > threshold:
                terms.append(f"{format_complex(complex(amp))}|{format(i, f'0{self.num_qubits}b')}⟩")
        return " + ".join(terms) or "0"

    def __repr__(self):
        return f"QuantumState({self.num_qubits} qubits: {self.state_vector_string()})"

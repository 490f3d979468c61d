"""
Quantum gate definitions.

Fixed single-qubit gates (Pauli, Hadamard, phase), two-qubit gates (CX, CY,
CZ, SWAP), the rotation generators RX/RY/RZ, synthesis of multi-controlled
matrices, the QuantumGate wrapper and the cache for parametric gates.

Matrix convention:
    A 2^k x 2^k matrix acts on a list of k qubits where list index 0 is the
    least significant bit of the matrix row/column index. The two-qubit
    controlled matrices below therefore act on [target, control]: the
    control is bit 1 and the target is bit 0.
"""

from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from .errors import GateMatrixError
from .logging import get_logger

logger = get_logger(__name__)


def _frozen(rows) -> np.ndarray:
    matrix = np.array(rows, dtype=complex)
    matrix.setflags(write=False)
    return matrix


# =============================================================================
# Single-qubit gates
# =============================================================================

I_gate = _frozen([[1, 0],        # Identity gate
                  [0, 1]])

H_gate = _frozen(np.array([[1,  1],     # Hadamard gate
                           [1, -1]]) * np.sqrt(1/2))

X_gate = _frozen([[0, 1],        # Pauli X gate (NOT gate)
                  [1, 0]])

Y_gate = _frozen([[ 0, -1j],     # Pauli Y gate
                  [1j,   0]])

Z_gate = _frozen([[1,  0],       # Pauli Z gate
                  [0, -1]])

S_gate = _frozen([[1,  0],       # Phase gate, |1⟩ -> i|1⟩
                  [0, 1j]])

T_gate = _frozen([[1,                     0],   # T gate, |1⟩ -> e^{iπ/4}|1⟩
                  [0, np.exp(1j * np.pi / 4)]])


def Rx_gate(theta: float) -> np.ndarray:
    """X rotation gate Rx(θ)"""
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return _frozen([[c,       -1j * s],
                    [-1j * s,       c]])


def Ry_gate(theta: float) -> np.ndarray:
    """Y rotation gate Ry(θ)"""
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return _frozen([[c, -s],
                    [s,  c]])


def Rz_gate(theta: float) -> np.ndarray:
    """Z rotation gate Rz(θ)"""
    return _frozen([[np.exp(-1j * theta / 2),                      0],
                    [                      0, np.exp(1j * theta / 2)]])


# =============================================================================
# Two-qubit gates (qubit list [target, control])
# =============================================================================

CX_gate = _frozen([[1, 0, 0, 0],    # Controlled X (CNOT)
                   [0, 1, 0, 0],
                   [0, 0, 0, 1],
                   [0, 0, 1, 0]])

CY_gate = _frozen([[1, 0,  0,   0],  # Controlled Y
                   [0, 1,  0,   0],
                   [0, 0,  0, -1j],
                   [0, 0, 1j,   0]])

CZ_gate = _frozen([[1, 0, 0,  0],   # Controlled Z
                   [0, 1, 0,  0],
                   [0, 0, 1,  0],
                   [0, 0, 0, -1]])

SWAP_gate = _frozen([[1, 0, 0, 0],  # Swap gate
                     [0, 0, 1, 0],
                     [0, 1, 0, 0],
                     [0, 0, 0, 1]])


SINGLE_QUBIT_GATES: Dict[str, np.ndarray] = {
    "I": I_gate,
    "H": H_gate,
    "X": X_gate,
    "Y": Y_gate,
    "Z": Z_gate,
    "S": S_gate,
    "T": T_gate,
}

TWO_QUBIT_GATES: Dict[str, np.ndarray] = {
    "CX": CX_gate,
    "CY": CY_gate,
    "CZ": CZ_gate,
    "SWAP": SWAP_gate,
}

ROTATIONS = {
    "RX": Rx_gate,
    "RY": Ry_gate,
    "RZ": Rz_gate,
}


def rotation_matrix(axis: str, theta: float) -> np.ndarray:
    """
    Rotation about "X", "Y" or "Z" (or "RX"/"RY"/"RZ").

    An unknown axis gives the identity.
    """
    name = axis if axis.startswith("R") else "R" + axis
    generator = ROTATIONS.get(name)
    if generator is None:
        logger.warning("Unknown rotation axis %r, using identity", axis)
        return I_gate
    return generator(theta)


def multi_controlled_matrix(base: np.ndarray, num_controls: int) -> np.ndarray:
    """
    Build the matrix of a multi-controlled single-qubit gate.

    The result acts on [target, control0, control1, ...]: it is the
    2^(num_controls+1) identity except for the block where every control bit
    is 1, which is replaced by the base gate acting on the target (bit 0).
    With num_controls=1 and base X this is CX_gate; with 2 it is Toffoli.

    Args:
        base: 2x2 gate matrix
        num_controls: Number of control qubits (>= 0)

    Returns:
        Read-only 2^(c+1) x 2^(c+1) matrix
    """
    base = np.asarray(base, dtype=complex)
    if base.shape != (2, 2):
        raise GateMatrixError(f"Base gate must be 2x2, got shape {base.shape}")
    if num_controls < 0:
        raise GateMatrixError(f"num_controls must be >= 0, got {num_controls}")

    dim = 1 << (num_controls + 1)
    matrix = np.eye(dim, dtype=complex)
    control_mask = dim - 2  # every bit but the target

    for i in range(dim):
        if (i & control_mask) == control_mask:
            target_bit = i & 1
            matrix[i, i] = 0
            for j in range(2):
                matrix[i, (i & ~1) | j] = base[target_bit, j]

    matrix.setflags(write=False)
    return matrix


TOFF_gate = multi_controlled_matrix(X_gate, 2)   # Toffoli (CCX) on [target, c0, c1]


# =============================================================================
# QuantumGate wrapper
# =============================================================================

class QuantumGate:
    """
    An immutable 2^k x 2^k gate matrix.

    Raises GateMatrixError if the matrix is not square or its size is not a
    power of two.
    """

    def __init__(self, matrix, name: Optional[str] = None):
        matrix = np.array(matrix, dtype=complex)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise GateMatrixError(f"Gate matrix must be square, got shape {matrix.shape}")
        size = matrix.shape[0]
        if size < 2 or size & (size - 1):
            raise GateMatrixError(f"Gate matrix must be 2^n x 2^n, got {size}x{size}")

        matrix.setflags(write=False)
        self._matrix = matrix
        self.num_qubits = size.bit_length() - 1
        self.name = name

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix

    def dagger(self) -> "QuantumGate":
        """Conjugate transpose as a new gate."""
        name = f"{self.name}†" if self.name else None
        return QuantumGate(self._matrix.conj().T, name=name)

    def is_unitary(self, epsilon: float = 1e-10) -> bool:
        product = self._matrix.conj().T @ self._matrix
        return np.allclose(product, np.eye(len(product)), rtol=0, atol=epsilon)

    def is_hermitian(self, epsilon: float = 1e-10) -> bool:
        return np.allclose(self._matrix, self._matrix.conj().T, rtol=0, atol=epsilon)

    def equals(self, other: "QuantumGate", epsilon: float = 1e-10) -> bool:
        if not isinstance(other, QuantumGate) or other.matrix.shape != self._matrix.shape:
            return False
        return np.allclose(self._matrix, other.matrix, rtol=0, atol=epsilon)

    def apply_to(self, amplitudes: np.ndarray, qubits: Sequence[int]) -> np.ndarray:
        """Apply this gate to the given qubits of a state vector, returning a new one."""
        from .core import apply_matrix
        result = np.array(amplitudes, dtype=complex)
        apply_matrix(result, self._matrix, qubits)
        return result

    def __repr__(self):
        label = self.name or f"{self.num_qubits}-qubit"
        return f"QuantumGate({label})"


# =============================================================================
# Parametric gate cache
# =============================================================================

class GateCache:
    """
    Cache of constructed gates keyed by (name, parameter).

    Rotations are keyed by (name, angle) and multi-controlled matrices by
    (base name, number of controls). One cache is owned per QuantumState by
    default; pass the same instance to several states to share it.
    """

    def __init__(self):
        self._gates: Dict[Tuple[str, float], QuantumGate] = {}
        self.hits = 0
        self.misses = 0

    def rotation(self, name: str, angle: float) -> QuantumGate:
        """RX/RY/RZ gate at the given angle."""
        key = (name, float(angle))
        gate = self._gates.get(key)
        if gate is None:
            self.misses += 1
            gate = QuantumGate(rotation_matrix(name, angle), name=f"{name}({angle:g})")
            self._gates[key] = gate
        else:
            self.hits += 1
        return gate

    def multi_controlled(self, base_name: str, num_controls: int) -> QuantumGate:
        """Multi-controlled X/Y/Z with the given number of controls."""
        key = (f"C{num_controls}{base_name}", float(num_controls))
        gate = self._gates.get(key)
        if gate is None:
            self.misses += 1
            base = SINGLE_QUBIT_GATES.get(base_name)
            if base is None:
                logger.warning("Unknown base gate %r for multi-controlled gate, using identity",
                               base_name)
                base = I_gate
            gate = QuantumGate(multi_controlled_matrix(base, num_controls),
                               name=f"C{num_controls}{base_name}")
            self._gates[key] = gate
        else:
            self.hits += 1
        return gate

    def clear(self):
        self._gates.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self):
        return len(self._gates)

    def __contains__(self, key):
        return key in self._gates

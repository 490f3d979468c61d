"""
Helpers for comparing states and converting basis labels.

Basis labels are written most significant qubit first, so label "110" is
basis index 6 and has q0 = 0. Bit lists are LSB first: bits[i] is qubit i.
"""

from typing import List, Union

import numpy as np

from .errors import ShapeError, ValidationError


# =============================================================================
# State comparison
# =============================================================================

def allclose_up_to_global_phase(v, w, atol: float = 1e-9) -> bool:
    """
    True if two state vectors differ only by a global phase factor.

    The phase is read off the largest amplitude of w, so comparing two
    near-zero vectors falls back to plain allclose.
    """
    v = np.asarray(v, dtype=complex).reshape(-1)
    w = np.asarray(w, dtype=complex).reshape(-1)
    if v.shape != w.shape:
        return False

    pivot = np.argmax(np.abs(w))
    if np.abs(w[pivot]) < atol:
        return bool(np.allclose(v, w, atol=atol))
    phase = v[pivot] / w[pivot]
    return bool(np.allclose(v, phase * w, atol=atol))


def state_fidelity(v, w) -> float:
    """|⟨v|w⟩|² of two pure states, between 0 (orthogonal) and 1."""
    v = np.asarray(v, dtype=complex).reshape(-1)
    w = np.asarray(w, dtype=complex).reshape(-1)
    return float(np.abs(np.vdot(v, w)) ** 2)


# =============================================================================
# Basis labels
# =============================================================================

def basis_label(index: int, num_qubits: int) -> str:
    """Label of a basis index, qubit n-1 first: basis_label(6, 3) == "110"."""
    if index < 0 or index >= 1 << num_qubits:
        raise ValidationError(f"Basis index {index} out of range for {num_qubits} qubits")
    return format(index, f"0{num_qubits}b")


def label_to_index(label: str) -> int:
    """Inverse of basis_label."""
    if not label or set(label) - {"0", "1"}:
        raise ValidationError(f"Not a basis label: {label!r}")
    return int(label, 2)


def basis_state(state: Union[int, str], num_qubits: int) -> np.ndarray:
    """
    Computational basis vector from an index or a label.

    Args:
        state: Basis index, or a label such as "101"
        num_qubits: Register size; must match the label length

    Returns:
        Complex amplitude array with a single 1
    """
    if isinstance(state, str):
        if len(state) != num_qubits:
            raise ShapeError(f"Label {state!r} does not have {num_qubits} qubits")
        state = label_to_index(state)
    basis_label(state, num_qubits)
    vector = np.zeros(1 << num_qubits, dtype=complex)
    vector[state] = 1.0
    return vector


def int_to_bits(x: int, n: int) -> List[int]:
    """n bits of x, LSB first (bits[i] is qubit i)."""
    return [(x >> i) & 1 for i in range(n)]


def bits_to_int(bits: List[int]) -> int:
    """Inverse of int_to_bits."""
    result = 0
    for i, bit in enumerate(bits):
        result |= (int(bit) & 1) << i
    return result

"""
Gate application engine.

All functions here work in place on a one-dimensional, C-contiguous complex
amplitude array of length 2^n. Qubit q is bit q of the basis-state index
(qubit 0 is the least significant bit).

apply_matrix() is the general entry point: it validates its arguments and
then picks the O(2^n) single-qubit or two-qubit path, or the grouping path
for three or more qubits. The closed-form functions (apply_cx, apply_swap,
apply_multi_controlled_x, ...) permute or phase-flip amplitudes directly
without any matrix multiplication.

Every function validates before writing, so a raised ValidationError leaves
the amplitudes untouched.
"""

from typing import List, Optional, Sequence

import numpy as np

from .errors import (
    DuplicateQubitError,
    GateMatrixError,
    QubitCountError,
    QubitIndexError,
    ShapeError,
)


# =============================================================================
# Validation
# =============================================================================

def num_qubits_of(amplitudes: np.ndarray) -> int:
    """Number of qubits of an amplitude array (length must be 2^n)."""
    if amplitudes.ndim != 1:
        raise ShapeError(f"Amplitude array must be one-dimensional, got shape {amplitudes.shape}")
    dim = amplitudes.shape[0]
    if dim < 1 or dim & (dim - 1):
        raise ShapeError(f"State vector must be size 2^n, got {dim}")
    if not amplitudes.flags.c_contiguous:
        raise ShapeError("Amplitude array must be C-contiguous")
    return dim.bit_length() - 1


def validate_qubits(qubits: Sequence[int], num_qubits: int,
                    expected: Optional[int] = None) -> List[int]:
    """
    Check a target list: optional length, range, and distinctness.

    Returns:
        The qubits as a list of ints
    """
    qubits = [int(q) for q in qubits]
    if expected is not None and len(qubits) != expected:
        raise QubitCountError(expected, len(qubits))
    for q in qubits:
        if q < 0 or q >= num_qubits:
            raise QubitIndexError(q, num_qubits)
    if len(set(qubits)) != len(qubits):
        raise DuplicateQubitError(qubits)
    return qubits


def gate_size_of(matrix: np.ndarray) -> int:
    """Number of qubits a square 2^k x 2^k matrix acts on."""
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise GateMatrixError(f"Gate matrix must be square, got shape {matrix.shape}")
    size = matrix.shape[0]
    if size < 2 or size & (size - 1):
        raise GateMatrixError(f"Gate matrix must be 2^n x 2^n, got {size}x{size}")
    return size.bit_length() - 1


# =============================================================================
# Matrix application
# =============================================================================

def apply_matrix(amplitudes: np.ndarray, matrix, qubits: Sequence[int]):
    """
    Apply a 2^k x 2^k unitary to k qubits, identity elsewhere.

    Args:
        amplitudes: State vector, modified in place
        matrix: Gate matrix; row/column bit b corresponds to qubits[b]
        qubits: Distinct target qubit indices
    """
    n = num_qubits_of(amplitudes)
    matrix = np.asarray(matrix, dtype=complex)
    k = gate_size_of(matrix)
    qubits = validate_qubits(qubits, n, expected=k)

    if k == 1:
        _apply_single_qubit(amplitudes, matrix, qubits[0])
    elif k == 2:
        _apply_two_qubit(amplitudes, matrix, qubits[0], qubits[1])
    else:
        _apply_general(amplitudes, matrix, qubits)


def apply_single_qubit(amplitudes: np.ndarray, matrix, qubit: int):
    """Apply a 2x2 matrix to one qubit in O(2^n)."""
    n = num_qubits_of(amplitudes)
    matrix = np.asarray(matrix, dtype=complex)
    if matrix.shape != (2, 2):
        raise GateMatrixError(f"Expected a 2x2 matrix, got shape {matrix.shape}")
    (qubit,) = validate_qubits([qubit], n)
    _apply_single_qubit(amplitudes, matrix, qubit)


def apply_two_qubit(amplitudes: np.ndarray, matrix, q0: int, q1: int):
    """Apply a 4x4 matrix to qubits [q0, q1] (q0 is the low matrix bit) in O(2^n)."""
    n = num_qubits_of(amplitudes)
    matrix = np.asarray(matrix, dtype=complex)
    if matrix.shape != (4, 4):
        raise GateMatrixError(f"Expected a 4x4 matrix, got shape {matrix.shape}")
    q0, q1 = validate_qubits([q0, q1], n)
    _apply_two_qubit(amplitudes, matrix, q0, q1)


def apply_general(amplitudes: np.ndarray, matrix, qubits: Sequence[int]):
    """Apply a 2^k x 2^k matrix through the grouping path, whatever k is."""
    n = num_qubits_of(amplitudes)
    matrix = np.asarray(matrix, dtype=complex)
    k = gate_size_of(matrix)
    qubits = validate_qubits(qubits, n, expected=k)
    _apply_general(amplitudes, matrix, qubits)


def _apply_single_qubit(amplitudes, matrix, qubit):
    # Blocks of 2*step: row 0 holds indices with the qubit's bit clear,
    # row 1 the partners i + step.
    step = 1 << qubit
    view = amplitudes.reshape(-1, 2, step)
    a0 = view[:, 0, :].copy()
    a1 = view[:, 1, :].copy()
    view[:, 0, :] = matrix[0, 0] * a0 + matrix[0, 1] * a1
    view[:, 1, :] = matrix[1, 0] * a0 + matrix[1, 1] * a1


def _apply_two_qubit(amplitudes, matrix, q0, q1):
    lo, hi = min(q0, q1), max(q0, q1)
    view = amplitudes.reshape(-1, 2, 1 << (hi - lo - 1), 2, 1 << lo)

    # Slices of the four amplitudes of each group, ordered by matrix index
    # m = bit(q0) + 2 * bit(q1).
    slots = []
    for m in range(4):
        b0, b1 = m & 1, m >> 1
        bit_lo, bit_hi = (b0, b1) if q0 == lo else (b1, b0)
        slots.append((slice(None), bit_hi, slice(None), bit_lo, slice(None)))

    group = [view[slot].copy() for slot in slots]
    for row, slot in enumerate(slots):
        view[slot] = (matrix[row, 0] * group[0] + matrix[row, 1] * group[1]
                      + matrix[row, 2] * group[2] + matrix[row, 3] * group[3])


def _apply_general(amplitudes, matrix, qubits):
    dim = amplitudes.shape[0]
    k = len(qubits)
    gate_size = 1 << k

    participant_mask = 0
    for q in qubits:
        participant_mask |= 1 << q

    # One base index per group: every target bit cleared.
    indices = np.arange(dim)
    bases = indices[(indices & participant_mask) == 0]

    # Offset of each sub-basis state: bit b of the row index sets qubits[b].
    sub = np.arange(gate_size)
    offsets = np.zeros(gate_size, dtype=indices.dtype)
    for b, q in enumerate(qubits):
        offsets |= ((sub >> b) & 1) << q

    group_indices = bases[:, None] | offsets[None, :]
    groups = amplitudes[group_indices]
    amplitudes[group_indices] = groups @ matrix.T


# =============================================================================
# Closed-form controlled gates
# =============================================================================

def _bits(dim: int, qubit: int) -> np.ndarray:
    return (np.arange(dim) >> qubit) & 1


def _control_mask(dim: int, controls: Sequence[int]) -> np.ndarray:
    """Boolean mask of basis states whose control bits are all 1."""
    mask = np.ones(dim, dtype=bool)
    for c in controls:
        mask &= _bits(dim, c) == 1
    return mask


def apply_cx(amplitudes: np.ndarray, control: int, target: int):
    """CNOT: flip the target bit wherever the control bit is 1."""
    apply_multi_controlled_x(amplitudes, [control], target)


def apply_cy(amplitudes: np.ndarray, control: int, target: int):
    """Controlled-Y: |c=1,t=0⟩ -> i|c=1,t=1⟩, |c=1,t=1⟩ -> -i|c=1,t=0⟩."""
    apply_multi_controlled_y(amplitudes, [control], target)


def apply_cz(amplitudes: np.ndarray, control: int, target: int):
    """Controlled-Z: negate amplitudes where both bits are 1."""
    apply_multi_controlled_z(amplitudes, [control], target)


def apply_swap(amplitudes: np.ndarray, a: int, b: int):
    """Exchange qubits a and b by swapping amplitudes whose two bits differ."""
    n = num_qubits_of(amplitudes)
    a, b = validate_qubits([a, b], n)
    dim = amplitudes.shape[0]
    indices = np.arange(dim)
    # Each unordered pair once: bit a set, bit b clear.
    first = indices[(_bits(dim, a) == 1) & (_bits(dim, b) == 0)]
    second = first ^ (1 << a) ^ (1 << b)
    tmp = amplitudes[first].copy()
    amplitudes[first] = amplitudes[second]
    amplitudes[second] = tmp


def apply_multi_controlled_x(amplitudes: np.ndarray, controls: Sequence[int], target: int):
    """
    Multi-controlled X (CNOT, Toffoli and beyond).

    Where all control bits are 1, swap each amplitude with its partner whose
    target bit is flipped. Pairs are taken from the target-bit-0 side only,
    so no pair is swapped twice.
    """
    n = num_qubits_of(amplitudes)
    qubits = validate_qubits(list(controls) + [target], n)
    controls, target = qubits[:-1], qubits[-1]
    dim = amplitudes.shape[0]

    indices = np.arange(dim)
    zero_side = indices[_control_mask(dim, controls) & (_bits(dim, target) == 0)]
    one_side = zero_side | (1 << target)
    tmp = amplitudes[zero_side].copy()
    amplitudes[zero_side] = amplitudes[one_side]
    amplitudes[one_side] = tmp


def apply_multi_controlled_y(amplitudes: np.ndarray, controls: Sequence[int], target: int):
    """Multi-controlled Y: Y = [[0, -i], [i, 0]] on the target where all controls are 1."""
    n = num_qubits_of(amplitudes)
    qubits = validate_qubits(list(controls) + [target], n)
    controls, target = qubits[:-1], qubits[-1]
    dim = amplitudes.shape[0]

    indices = np.arange(dim)
    zero_side = indices[_control_mask(dim, controls) & (_bits(dim, target) == 0)]
    one_side = zero_side | (1 << target)
    a0 = amplitudes[zero_side].copy()
    a1 = amplitudes[one_side].copy()
    amplitudes[one_side] = 1j * a0
    amplitudes[zero_side] = -1j * a1


def apply_multi_controlled_z(amplitudes: np.ndarray, controls: Sequence[int],
                             target: Optional[int] = None):
    """
    Multi-controlled Z: negate amplitudes whose participant bits are all 1.

    The gate is symmetric in its participants, so target may be None and
    the controls alone are used.
    """
    n = num_qubits_of(amplitudes)
    participants = list(controls) + ([] if target is None else [target])
    participants = validate_qubits(participants, n)
    dim = amplitudes.shape[0]
    amplitudes[_control_mask(dim, participants)] *= -1

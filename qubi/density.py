"""
Density matrices, partial trace and Bloch vectors.

Density matrices are computed on demand from a state vector as |ψ⟩⟨ψ| and
are never mutated in place: every function here returns a fresh array.

Bloch vector convention (qubit 0 = least significant bit):
    x = 2·Re(ρ01),  y = -2·Im(ρ01),  z = ρ00 - ρ11

The minus sign on y matches the Pauli-Y matrix [[0, -i], [i, 0]] used by the
gate library, so S·H|0⟩ = |+i⟩ points along +y.
"""

from typing import Sequence, Tuple, Union

import numpy as np

from .core import apply_matrix, num_qubits_of
from .errors import QubitIndexError, ShapeError, ValidationError

Vector3 = Tuple[float, float, float]


def _as_column(state) -> np.ndarray:
    """Accept a flat vector or an n x 1 column; reject anything wider."""
    vector = np.asarray(state, dtype=complex)
    if vector.ndim == 2:
        if vector.shape[1] != 1:
            raise ShapeError(
                f"Input must be a column vector (n x 1), got shape {vector.shape}")
        vector = vector[:, 0]
    elif vector.ndim != 1:
        raise ShapeError(f"Input must be a column vector, got shape {vector.shape}")
    vector = np.ascontiguousarray(vector)
    num_qubits_of(vector)
    return vector


def density_matrix(state) -> np.ndarray:
    """Outer product |ψ⟩⟨ψ| of a state vector."""
    vector = _as_column(state)
    return np.outer(vector, vector.conj())


def reduced_density_matrix(state, qubit: int) -> np.ndarray:
    """
    Single-qubit reduced density matrix of a pure state.

    Sums a_i·conj(a_j) over index pairs that agree on every bit except
    `qubit`, bucketed by (bit_i, bit_j). Runs in O(2^n) without forming the
    full density matrix.
    """
    vector = _as_column(state)
    n = num_qubits_of(vector)
    if qubit < 0 or qubit >= n:
        raise QubitIndexError(qubit, n)

    psi = vector.reshape(-1, 2, 1 << qubit)
    return np.einsum("aib,ajb->ij", psi, psi.conj())


def partial_trace_single_qubit(rho: np.ndarray, qubit: int) -> np.ndarray:
    """
    Trace every qubit but one out of a full 2^n x 2^n density matrix.

    Unlike reduced_density_matrix this accepts mixed states.
    """
    rho = np.asarray(rho, dtype=complex)
    if rho.ndim != 2 or rho.shape[0] != rho.shape[1]:
        raise ShapeError(f"Density matrix must be square, got shape {rho.shape}")
    dim = rho.shape[0]
    if dim < 2 or dim & (dim - 1):
        raise ShapeError(f"Density matrix must be 2^n x 2^n, got {dim}x{dim}")
    n = dim.bit_length() - 1
    if qubit < 0 or qubit >= n:
        raise QubitIndexError(qubit, n)

    step = 1 << qubit
    # rows and columns split as (outer, bit, inner); sum where outer and
    # inner agree between row and column.
    tensor = rho.reshape(dim // (2 * step), 2, step, dim // (2 * step), 2, step)
    return np.einsum("aibajb->ij", tensor)


def bloch_vector(reduced: np.ndarray) -> Vector3:
    """(x, y, z) of a 2x2 density matrix; |v| = 1 for pure, < 1 for mixed."""
    rho01 = reduced[0, 1]
    x = 2.0 * rho01.real
    y = -2.0 * rho01.imag
    z = (reduced[0, 0] - reduced[1, 1]).real
    return (float(x), float(y), float(z))


def bloch_vector_from_density(rho: np.ndarray, qubit: int) -> Vector3:
    """Bloch vector of one qubit of a (possibly mixed, unnormalized) density matrix."""
    reduced = partial_trace_single_qubit(rho, qubit)
    trace = (reduced[0, 0] + reduced[1, 1]).real
    if trace > 1e-10:
        reduced = reduced / trace
    return bloch_vector(reduced)


def normalize_direction(vector: Vector3, epsilon: float = 1e-10) -> Vector3:
    """
    Unit vector for display, or the |0⟩ pole (0, 0, 1) when |v| is ~0.

    A maximally mixed qubit has no direction; callers drawing arrows get the
    pole instead of a division by zero.
    """
    x, y, z = vector
    r = float(np.sqrt(x * x + y * y + z * z))
    if r > epsilon:
        return (x / r, y / r, z / r)
    return (0.0, 0.0, 1.0)


def purity(rho: np.ndarray) -> float:
    """Tr(ρ²): 1 for a pure state, 1/d for the maximally mixed state."""
    rho = np.asarray(rho, dtype=complex)
    return float(np.real(np.trace(rho @ rho)))


def is_pure(rho: np.ndarray, epsilon: float = 1e-8) -> bool:
    """Idempotency test ρ² ≈ ρ."""
    rho = np.asarray(rho, dtype=complex)
    return bool(np.allclose(rho @ rho, rho, rtol=0, atol=epsilon))


def evolve(rho: np.ndarray, matrix, qubits: Sequence[int]) -> np.ndarray:
    """
    Apply a gate to a density matrix: ρ -> U ρ U†.

    U is applied to each column of ρ, then to each column of the conjugate
    transpose of the result.
    """
    rho = np.asarray(rho, dtype=complex)

    def left_multiply(m):
        out = np.empty_like(m)
        for j in range(m.shape[1]):
            column = np.ascontiguousarray(m[:, j])
            apply_matrix(column, matrix, qubits)
            out[:, j] = column
        return out

    half = left_multiply(rho)
    return left_multiply(half.conj().T).conj().T


def relax(rho: np.ndarray, duration: float,
          t1: Union[float, Sequence[float]],
          t2: Union[float, Sequence[float]]) -> np.ndarray:
    """
    Amplitude and phase relaxation over `duration`.

    Populations decay toward |0…0⟩⟨0…0| with exp(-duration/T1) and coherences
    shrink by exp(-duration/T2). Per-qubit T1/T2 sequences are averaged.

    Returns:
        A new density matrix
    """
    rho = np.array(rho, dtype=complex)
    if duration < 0:
        raise ValidationError(f"duration must be >= 0, got {duration}")
    t1 = float(np.mean(t1))
    t2 = float(np.mean(t2))
    if t1 <= 0 or t2 <= 0:
        raise ValidationError(f"T1 and T2 must be positive, got T1={t1}, T2={t2}")

    dim = rho.shape[0]
    population_decay = np.exp(-duration / t1)
    coherence_decay = np.exp(-duration / t2)

    equilibrium = np.zeros(dim)
    equilibrium[0] = 1.0
    diagonal = population_decay * np.real(np.diag(rho)) + (1 - population_decay) * equilibrium

    relaxed = rho * coherence_decay
    np.fill_diagonal(relaxed, diagonal)
    return relaxed

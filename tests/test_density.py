"""Tests for density matrices, partial trace and relaxation."""

import numpy as np
import pytest

from qubi import (
    H_gate, CX_gate,
    density_matrix, reduced_density_matrix, partial_trace_single_qubit,
    bloch_vector, bloch_vector_from_density, purity, is_pure, evolve, relax,
    QubitIndexError, ShapeError, ValidationError,
)

BELL = np.array([1, 0, 0, 1]) / np.sqrt(2)


def random_state(n, seed=0):
    rng = np.random.default_rng(seed)
    v = rng.normal(size=1 << n) + 1j * rng.normal(size=1 << n)
    return v / np.linalg.norm(v)


class TestDensityMatrix:
    """Tests for density_matrix."""

    def test_outer_product(self):
        rho = density_matrix([1, 0])
        assert np.allclose(rho, [[1, 0], [0, 0]])

    def test_accepts_column_vector(self):
        column = BELL.reshape(-1, 1)
        assert np.allclose(density_matrix(column), density_matrix(BELL))

    def test_rejects_wide_array(self):
        with pytest.raises(ShapeError):
            density_matrix(np.ones((4, 2)))

    def test_rejects_non_power_of_two(self):
        with pytest.raises(ShapeError):
            density_matrix([1, 0, 0])

    def test_trace_is_one(self):
        rho = density_matrix(random_state(3))
        assert np.isclose(np.trace(rho), 1.0)


class TestPartialTrace:
    """Tests for single-qubit reduced density matrices."""

    def test_bell_pair_is_maximally_mixed(self):
        for q in (0, 1):
            assert np.allclose(reduced_density_matrix(BELL, q), np.eye(2) / 2)
            assert np.allclose(bloch_vector(reduced_density_matrix(BELL, q)), (0, 0, 0))

    def test_product_state(self):
        """|1⟩ ⊗ |+⟩ (qubit 1 ⊗ qubit 0)."""
        plus = np.array([1, 1]) / np.sqrt(2)
        psi = np.kron([0, 1], plus)
        assert np.allclose(bloch_vector(reduced_density_matrix(psi, 0)), (1, 0, 0))
        assert np.allclose(bloch_vector(reduced_density_matrix(psi, 1)), (0, 0, -1))

    @pytest.mark.parametrize("qubit", [0, 1, 2])
    def test_vector_and_matrix_routes_agree(self, qubit):
        psi = random_state(3, seed=qubit)
        from_vector = reduced_density_matrix(psi, qubit)
        from_matrix = partial_trace_single_qubit(density_matrix(psi), qubit)
        assert np.allclose(from_vector, from_matrix)

    def test_out_of_range(self):
        with pytest.raises(QubitIndexError):
            reduced_density_matrix(BELL, 2)
        with pytest.raises(QubitIndexError):
            partial_trace_single_qubit(density_matrix(BELL), 5)

    def test_partial_trace_rejects_non_square(self):
        with pytest.raises(ShapeError):
            partial_trace_single_qubit(np.ones((2, 4)), 0)

    def test_bloch_from_mixed_density(self):
        """An equal mixture of |0⟩ and |+⟩ sits halfway between the axes."""
        rho = 0.5 * density_matrix([1, 0]) + 0.5 * density_matrix(np.array([1, 1]) / np.sqrt(2))
        assert np.allclose(bloch_vector_from_density(rho, 0), (0.5, 0, 0.5))


class TestPurity:
    """Tests for purity and the idempotency check."""

    def test_pure_state(self):
        rho = density_matrix(random_state(2))
        assert np.isclose(purity(rho), 1.0)
        assert is_pure(rho)

    def test_maximally_mixed(self):
        rho = np.eye(2) / 2
        assert np.isclose(purity(rho), 0.5)
        assert not is_pure(rho)


class TestEvolve:
    """Tests for U ρ U†."""

    def test_hadamard(self):
        rho = evolve(density_matrix([1, 0]), H_gate, [0])
        assert np.allclose(rho, np.full((2, 2), 0.5))

    def test_matches_dense_conjugation(self):
        psi = random_state(2, seed=3)
        rho = density_matrix(psi)
        # CX on [target=1, control=0] is the swap of indices 1 and 3.
        u = np.eye(4)[[0, 3, 2, 1]]
        assert np.allclose(evolve(rho, CX_gate, [1, 0]), u @ rho @ u.conj().T)

    def test_does_not_modify_input(self):
        rho = density_matrix([1, 0])
        evolve(rho, H_gate, [0])
        assert np.allclose(rho, [[1, 0], [0, 0]])


class TestRelaxation:
    """Tests for T1/T2 relaxation."""

    def test_zero_duration_is_identity(self):
        rho = density_matrix(np.array([1, 1]) / np.sqrt(2))
        assert np.allclose(relax(rho, 0.0, 1.0, 0.5), rho)

    def test_populations_decay_to_ground(self):
        rho = density_matrix([0, 1])
        relaxed = relax(rho, 1.0, 1.0, 1.0)
        expected_excited = np.exp(-1.0)
        assert np.isclose(relaxed[1, 1].real, expected_excited)
        assert np.isclose(relaxed[0, 0].real, 1 - expected_excited)
        assert np.isclose(np.trace(relaxed).real, 1.0)

    def test_coherences_shrink(self):
        rho = density_matrix(np.array([1, 1]) / np.sqrt(2))
        relaxed = relax(rho, 2.0, 100.0, 1.0)
        assert np.isclose(relaxed[0, 1].real, 0.5 * np.exp(-2.0))

    def test_averages_per_qubit_times(self):
        rho = density_matrix(np.array([1, 0, 0, 1]) / np.sqrt(2))
        assert np.allclose(relax(rho, 1.0, [1.0, 3.0], [2.0, 2.0]),
                           relax(rho, 1.0, 2.0, 2.0))

    def test_long_time_reaches_ground_state(self):
        rho = density_matrix(random_state(2, seed=5))
        relaxed = relax(rho, 1e3, 1.0, 1.0)
        assert np.allclose(relaxed, density_matrix([1, 0, 0, 0]), atol=1e-8)

    def test_rejects_negative_duration(self):
        with pytest.raises(ValidationError):
            relax(np.eye(2) / 2, -1.0, 1.0, 1.0)

    def test_rejects_non_positive_times(self):
        with pytest.raises(ValidationError):
            relax(np.eye(2) / 2, 1.0, 0.0, 1.0)

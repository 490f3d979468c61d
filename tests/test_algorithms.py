"""Tests for the algorithm program generators."""

import numpy as np
import pytest

from qubi import ValidationError, bell_state, build_circuit, deutsch_jozsa, ghz_state, grover_search
from qubi.algorithms import ALGORITHMS, format_qubits, grover_iterations


def run(text, seed=0):
    circuit = build_circuit(text)
    circuit.rng = np.random.default_rng(seed)
    return circuit.execute()


class TestEntangledStates:
    """Tests for Bell and GHZ generators."""

    def test_bell_state(self):
        state = run(bell_state())
        assert np.allclose(state.amplitudes, np.array([1, 0, 0, 1]) / np.sqrt(2))

    def test_bell_state_with_comments_is_equivalent(self):
        assert bell_state(comments=True).startswith("//")
        state = run(bell_state(comments=True))
        assert np.allclose(state.amplitudes, np.array([1, 0, 0, 1]) / np.sqrt(2))

    @pytest.mark.parametrize("n", [2, 3, 5])
    def test_ghz_state(self, n):
        state = run(ghz_state(n))
        expected = np.zeros(1 << n)
        expected[0] = expected[-1] = 1 / np.sqrt(2)
        assert state.num_qubits == n
        assert np.allclose(state.amplitudes, expected)

    def test_ghz_needs_two_qubits(self):
        with pytest.raises(ValidationError):
            ghz_state(1)


class TestGrover:
    """Tests for the Grover generator."""

    def test_iteration_count(self):
        assert grover_iterations(2) == 1
        assert grover_iterations(3) == 2
        assert grover_iterations(4) == 3

    def test_program_shape(self):
        lines = grover_search(3, "110").splitlines()
        assert lines[0] == "H (0,1,2)"
        assert "REPEAT 2" in lines
        assert lines[-1] == "END"
        # Only qubit 0 is 0 in "110".
        assert lines.count("X 0") == 2

    def test_two_qubits_finds_target_exactly(self):
        state = run(grover_search(2, "11"))
        assert np.isclose(state.get_all_probabilities()["11"], 1.0)

    @pytest.mark.parametrize("target", ["000", "110", "011", "101"])
    def test_three_qubits_amplifies_target(self, target):
        probs = run(grover_search(3, target)).get_all_probabilities()
        assert max(probs, key=probs.get) == target
        assert probs[target] > 0.9

    def test_comments_do_not_change_result(self):
        plain = run(grover_search(3, "010")).get_state()
        commented = run(grover_search(3, "010", comments=True)).get_state()
        assert np.allclose(plain, commented)

    def test_one_qubit_program_runs(self):
        state = run(grover_search(1, "1"))
        assert np.isclose(state.norm(), 1.0)

    @pytest.mark.parametrize("n,target", [(3, "11"), (2, "12"), (0, "")])
    def test_rejects_bad_arguments(self, n, target):
        with pytest.raises(ValidationError):
            grover_search(n, target)


class TestDeutschJozsa:
    """Tests for the Deutsch-Jozsa generator."""

    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_balanced_oracle_measures_all_ones(self, n):
        state = run(deutsch_jozsa(n, balanced=True))
        for q in range(n):
            assert np.isclose(state.probability(q, 1), 1.0)

    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_constant_oracle_measures_all_zeros(self, n):
        state = run(deutsch_jozsa(n, balanced=False))
        for q in range(n):
            assert np.isclose(state.probability(q, 0), 1.0)

    def test_uses_ancilla(self):
        assert build_circuit(deutsch_jozsa(2)).num_qubits == 3


class TestHelpers:
    """Tests for the registry and formatting."""

    def test_format_qubits(self):
        assert format_qubits([3]) == "3"
        assert format_qubits([0, 1, 2]) == "(0,1,2)"

    def test_registry(self):
        assert set(ALGORITHMS) == {"bell", "ghz", "grover", "deutsch_jozsa"}
        assert ALGORITHMS["ghz"](3) == ghz_state(3)

"""Tests for QuantumState: gates, measurement and derived quantities."""

import numpy as np
import pytest

from qubi import (
    QuantumState, EngineConfig, GateCache,
    DuplicateQubitError, QubitIndexError, ShapeError,
)


class FixedRng:
    """Stands in for a Generator whose next draw is known."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def bell_pair(**kwargs):
    state = QuantumState(2, **kwargs)
    state.apply_gate("H", 0)
    state.apply_two_qubit_gate("CX", 0, 1)
    return state


def run_sequence(state):
    state.apply_gate("H", 0)
    state.apply_gate("T", 1)
    state.apply_rotation("RY", 2, 0.7)
    state.apply_two_qubit_gate("CX", 0, 2)
    state.apply_two_qubit_gate("CY", 2, 1)
    state.apply_two_qubit_gate("CZ", 1, 0)
    state.apply_two_qubit_gate("SWAP", 0, 2)
    state.apply_gate("S", 2)
    state.apply_multi_controlled_x([0, 1], 2)
    state.apply_multi_controlled_y([2, 0], 1)
    state.apply_multi_controlled_z([1, 2], 0)
    return state


class TestInitialState:
    """Tests for construction and state access."""

    def test_starts_in_all_zeros(self):
        state = QuantumState(3)
        assert state.dimension == 8
        assert np.allclose(state.amplitudes, np.eye(8)[0])

    def test_rejects_zero_qubits(self):
        with pytest.raises(ValueError):
            QuantumState(0)

    def test_get_state_is_a_copy(self):
        state = QuantumState(1)
        snapshot = state.get_state()
        state.apply_gate("X", 0)
        assert np.allclose(snapshot, [1, 0])

    def test_set_state_normalizes(self):
        state = QuantumState(1)
        state.set_state([1, 1])
        assert np.allclose(state.amplitudes, [1 / np.sqrt(2), 1 / np.sqrt(2)])

    def test_set_state_rejects_zero_vector(self):
        with pytest.raises(ShapeError):
            QuantumState(2).set_state([0, 0, 0, 0])

    def test_set_state_rejects_wrong_length(self):
        with pytest.raises(ShapeError):
            QuantumState(2).set_state([1, 0])

    def test_reset(self):
        state = bell_pair()
        state.reset()
        assert np.allclose(state.amplitudes, [1, 0, 0, 0])

    def test_copy_is_independent(self):
        state = QuantumState(2)
        other = state.copy()
        other.apply_gate("X", 1)
        assert np.allclose(state.amplitudes, [1, 0, 0, 0])
        assert np.allclose(other.amplitudes, [0, 0, 1, 0])


class TestGateApplication:
    """Tests for the gate methods."""

    def test_x_on_qubit_one(self):
        state = QuantumState(2)
        state.apply_gate("X", 1)
        assert np.allclose(state.amplitudes, [0, 0, 1, 0])

    def test_unknown_gate_is_identity(self):
        """Unknown names must not crash or change the state."""
        state = QuantumState(2)
        state.apply_gate("FOO", 0)
        state.apply_two_qubit_gate("BAR", 0, 1)
        state.apply_multi_controlled("W", [0], 1)
        assert np.allclose(state.amplitudes, [1, 0, 0, 0])

    def test_rotation(self):
        """RX(π)|0⟩ = -i|1⟩."""
        state = QuantumState(1)
        state.apply_rotation("X", 0, np.pi)
        assert np.allclose(state.amplitudes, [0, -1j])

    def test_rotations_use_cache(self):
        cache = GateCache()
        state = QuantumState(1, gate_cache=cache)
        state.apply_rotation("RZ", 0, 0.3)
        state.apply_rotation("RZ", 0, 0.3)
        assert cache.hits == 1
        assert len(cache) == 1

    def test_control_equals_target_raises(self):
        state = QuantumState(2)
        with pytest.raises(DuplicateQubitError):
            state.apply_two_qubit_gate("CX", 1, 1)

    def test_out_of_range_raises(self):
        with pytest.raises(QubitIndexError):
            QuantumState(2).apply_gate("H", 2)

    def test_normalized_after_sequence(self):
        state = run_sequence(QuantumState(3))
        assert np.isclose(state.norm(), 1.0)

    def test_optimized_and_matrix_paths_agree(self):
        fast = run_sequence(QuantumState(3, use_optimized_gates=True))
        slow = run_sequence(QuantumState(3, use_optimized_gates=False))
        assert np.allclose(fast.amplitudes, slow.amplitudes)

    def test_matrix_path_synthesizes_multi_controlled(self):
        cache = GateCache()
        state = QuantumState(3, gate_cache=cache, use_optimized_gates=False)
        state.apply_gate("X", 0)
        state.apply_gate("X", 1)
        state.apply_multi_controlled_x([0, 1], 2)
        assert np.allclose(state.amplitudes, np.eye(8)[7])
        assert len(cache) == 1

    def test_config_disables_optimization(self):
        state = QuantumState(2, config=EngineConfig(use_optimized_gates=False))
        assert not state.use_optimized_gates
        state.set_optimization(True)
        assert state.use_optimized_gates


class TestMeasurement:
    """Tests for probabilities, measurement and collapse."""

    def test_probability(self):
        state = QuantumState(2)
        state.apply_gate("H", 0)
        assert np.isclose(state.probability(0, 1), 0.5)
        assert np.isclose(state.get_probability(0, 0), 0.5)
        assert np.isclose(state.probability(1, 1), 0.0)
        assert np.allclose(state.probabilities(), [0.5, 0.0])

    def test_all_probabilities(self):
        probs = bell_pair().get_all_probabilities()
        assert set(probs) == {"00", "01", "10", "11"}
        assert np.isclose(probs["00"], 0.5)
        assert np.isclose(probs["11"], 0.5)
        assert np.isclose(probs["01"], 0.0)

    def test_draw_below_p0_gives_zero(self):
        state = QuantumState(1, rng=FixedRng(0.3))
        state.apply_gate("H", 0)
        assert state.measure(0) == 0
        assert np.allclose(state.amplitudes, [1, 0])

    def test_draw_above_p0_gives_one(self):
        state = QuantumState(1, rng=FixedRng(0.7))
        state.apply_gate("H", 0)
        assert state.measure(0) == 1
        assert np.allclose(state.amplitudes, [0, 1])

    @pytest.mark.parametrize("draw,outcome", [(0.2, 0), (0.8, 1)])
    def test_bell_correlated_collapse(self, draw, outcome):
        """Measuring one half of a Bell pair fixes the other."""
        state = bell_pair(rng=FixedRng(draw))
        assert state.measure(0) == outcome
        assert np.isclose(state.probability(1, outcome), 1.0)
        assert state.measure(1) == outcome

    def test_bell_statistics(self):
        """Both outcomes occur and the qubits always agree."""
        rng = np.random.default_rng(1234)
        seen = set()
        for _ in range(200):
            state = bell_pair(rng=rng)
            first = state.measure(0)
            assert state.measure(1) == first
            seen.add(first)
        assert seen == {0, 1}

    def test_seeded_measurements_repeat(self):
        config = EngineConfig(seed=42)
        a = [bell_pair(config=config).measure(0) for _ in range(10)]
        b = [bell_pair(config=config).measure(0) for _ in range(10)]
        assert a == b

    def test_zero_probability_collapse_leaves_zero_vector(self):
        state = QuantumState(1)
        state.collapse(0, 1)
        assert np.allclose(state.amplitudes, [0, 0])
        assert state.state_vector_string() == "0"

    def test_measure_all(self):
        state = QuantumState(3)
        state.apply_gate("X", 0)
        state.apply_gate("X", 2)
        assert state.measure_all() == "101"
        assert state.measured
        assert state.measurement_result == [1, 0, 1]


class TestDerivedQuantities:
    """Tests for Bloch vectors, purity and formatting."""

    def test_bloch_zero(self):
        assert np.allclose(QuantumState(1).bloch_coordinates(0), (0, 0, 1))

    def test_bloch_plus(self):
        state = QuantumState(1)
        state.apply_gate("H", 0)
        assert np.allclose(state.bloch_coordinates(0), (1, 0, 0))

    def test_bloch_plus_i(self):
        """S·H|0⟩ points along +y."""
        state = QuantumState(1)
        state.apply_gate("H", 0)
        state.apply_gate("S", 0)
        assert np.allclose(state.bloch_coordinates(0), (0, 1, 0))

    def test_separable_state_recovers_each_qubit(self):
        state = QuantumState(3)
        state.apply_gate("X", 0)
        state.apply_gate("H", 1)
        state.apply_gate("H", 2)
        state.apply_gate("S", 2)
        assert np.allclose(state.bloch_coordinates(0), (0, 0, -1))
        assert np.allclose(state.bloch_coordinates(1), (1, 0, 0))
        assert np.allclose(state.bloch_coordinates(2), (0, 1, 0))

    def test_bell_qubits_are_maximally_mixed(self):
        state = bell_pair()
        for q in (0, 1):
            assert np.allclose(state.bloch_coordinates(q), (0, 0, 0))
            assert np.allclose(state.reduced_density_matrix(q), np.eye(2) / 2)
            assert state.bloch_direction(q) == (0.0, 0.0, 1.0)

    def test_bloch_direction_is_unit(self):
        state = QuantumState(1)
        state.apply_rotation("RY", 0, 0.9)
        assert np.isclose(np.linalg.norm(state.bloch_direction(0)), 1.0)

    def test_qubit_report(self):
        state = QuantumState(3)
        state.apply_gate("H", 0)
        state.apply_two_qubit_gate("CX", 0, 1)
        state.apply_gate("X", 2)
        report = state.qubit_report()
        assert [r.pure for r in report] == [False, False, True]
        assert report[0].label == "mixed"
        assert np.isclose(report[2].probability_one, 1.0)
        assert np.allclose(report[2].bloch, (0, 0, -1))

    def test_full_state_is_pure(self):
        state = bell_pair()
        assert state.is_pure()
        assert state.density_matrix().shape == (4, 4)

    def test_state_vector_string(self):
        assert bell_pair().state_vector_string() == "0.7071|00⟩ + 0.7071|11⟩"

    def test_state_vector_string_imaginary(self):
        state = QuantumState(1)
        state.apply_gate("Y", 0)
        assert state.state_vector_string() == "1.0000i|1⟩"

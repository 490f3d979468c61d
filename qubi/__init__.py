"""
Qubi - A state-vector quantum circuit simulator in Python.

This package simulates small and medium quantum registers as a dense
complex amplitude vector, with a column-based circuit model that supports
REPEAT/END blocks and a small text format for writing circuits.

Modules:
    complexmath - Scalar complex helpers and formatting
    gates       - Gate matrices, QuantumGate, GateCache, multi-controlled synthesis
    core        - Gate application engine (in place, O(2^n) fast paths)
    operations  - Resolved gate operations (one class per gate kind)
    state       - QuantumState: gates, measurement, Bloch vectors
    density     - Density matrices, partial trace, purity, relaxation
    circuit     - Circuit scheduler with REPEAT/END unrolling
    program     - Qubi program text: parse, build_circuit, generate_code
    algorithms  - Program generators (Bell, GHZ, Grover, Deutsch-Jozsa)
    config      - EngineConfig and environment overrides
    errors      - Exception hierarchy
    logging     - Package loggers

Quick Start:
    >>> from qubi import build_circuit
    >>> state = build_circuit("H 0\\nCX [0,1]").execute()
    >>> state.state_vector_string()
    '0.7071|00⟩ + 0.7071|11⟩'
"""

# Gates
from .gates import (
    I_gate,
    H_gate,
    X_gate,
    Y_gate,
    Z_gate,
    S_gate,
    T_gate,
    Rx_gate,
    Ry_gate,
    Rz_gate,
    CX_gate,
    CY_gate,
    CZ_gate,
    SWAP_gate,
    TOFF_gate,
    multi_controlled_matrix,
    rotation_matrix,
    QuantumGate,
    GateCache,
)

# Engine
from .core import (
    apply_matrix,
    apply_single_qubit,
    apply_two_qubit,
    apply_general,
    apply_cx,
    apply_cy,
    apply_cz,
    apply_swap,
    apply_multi_controlled_x,
    apply_multi_controlled_y,
    apply_multi_controlled_z,
)

# State and density matrices
from .state import QuantumState, QubitReport
from .density import (
    density_matrix,
    reduced_density_matrix,
    partial_trace_single_qubit,
    bloch_vector,
    bloch_vector_from_density,
    is_pure,
    purity,
    evolve,
    relax,
)

# Circuits and programs
from .operations import resolve
from .circuit import Circuit, PlacedGate, ControlFlowMarker
from .program import parse, build_circuit, generate_code
from .algorithms import bell_state, ghz_state, grover_search, deutsch_jozsa

# Ambient
from .config import EngineConfig, DEFAULT_CONFIG
from .errors import (
    QubiError,
    ValidationError,
    QubitIndexError,
    DuplicateQubitError,
    QubitCountError,
    GateMatrixError,
    ShapeError,
    ProgramSyntaxError,
)
from .logging import get_logger, set_log_level, configure_logging

# Utilities
from .utils import (
    allclose_up_to_global_phase,
    state_fidelity,
    basis_label,
    basis_state,
    int_to_bits,
    bits_to_int,
)

__version__ = "0.1.0"
__all__ = [
    # Gates
    "I_gate",
    "H_gate",
    "X_gate",
    "Y_gate",
    "Z_gate",
    "S_gate",
    "T_gate",
    "Rx_gate",
    "Ry_gate",
    "Rz_gate",
    "CX_gate",
    "CY_gate",
    "CZ_gate",
    "SWAP_gate",
    "TOFF_gate",
    "multi_controlled_matrix",
    "rotation_matrix",
    "QuantumGate",
    "GateCache",
    # Engine
    "apply_matrix",
    "apply_single_qubit",
    "apply_two_qubit",
    "apply_general",
    "apply_cx",
    "apply_cy",
    "apply_cz",
    "apply_swap",
    "apply_multi_controlled_x",
    "apply_multi_controlled_y",
    "apply_multi_controlled_z",
    # State
    "QuantumState",
    "QubitReport",
    "density_matrix",
    "reduced_density_matrix",
    "partial_trace_single_qubit",
    "bloch_vector",
    "bloch_vector_from_density",
    "is_pure",
    "purity",
    "evolve",
    "relax",
    # Circuits
    "resolve",
    "Circuit",
    "PlacedGate",
    "ControlFlowMarker",
    "parse",
    "build_circuit",
    "generate_code",
    "bell_state",
    "ghz_state",
    "grover_search",
    "deutsch_jozsa",
    # Ambient
    "EngineConfig",
    "DEFAULT_CONFIG",
    "QubiError",
    "ValidationError",
    "QubitIndexError",
    "DuplicateQubitError",
    "QubitCountError",
    "GateMatrixError",
    "ShapeError",
    "ProgramSyntaxError",
    "get_logger",
    "set_log_level",
    "configure_logging",
    # Utils
    "allclose_up_to_global_phase",
    "state_fidelity",
    "basis_label",
    "basis_state",
    "int_to_bits",
    "bits_to_int",
]

"""
Program generators for textbook algorithms.

Each generator returns Qubi program text (see program.py) that
build_circuit() can lay out and Circuit.execute() can run.

Bit ordering convention:
    Target bitstrings are written like basis labels, most significant
    qubit first: "110" means q2=1, q1=1, q0=0.
"""

from typing import Callable, Dict, List, Sequence

import numpy as np

from .errors import ValidationError


def format_qubits(qubits: Sequence[int]) -> str:
    """`3` for one qubit, `(0,1,2)` for several."""
    if len(qubits) == 1:
        return str(qubits[0])
    return f"({','.join(str(q) for q in qubits)})"


def _apply_to(gate: str, qubits: Sequence[int]) -> List[str]:
    return [f"{gate} {format_qubits(qubits)}"] if qubits else []


def _phase_flip_all_ones(qubits: Sequence[int]) -> str:
    """Phase flip of |1...1⟩ on the given qubits."""
    if len(qubits) == 1:
        return f"Z {qubits[0]}"
    return f"CZ [{','.join(str(q) for q in qubits)}]"


def _with_comments(lines: List[str], comments: bool) -> str:
    if not comments:
        lines = [line for line in lines if not line.startswith("//")]
    return "\n".join(lines).strip("\n")


# =============================================================================
# Entangled states
# =============================================================================

def bell_state(comments: bool = False) -> str:
    """(|00⟩ + |11⟩)/√2 on qubits 0 and 1."""
    lines = [
        "// Bell state (|00⟩ + |11⟩)/√2",
        "H 0",
        "CX [0,1]",
    ]
    return _with_comments(lines, comments)


def ghz_state(num_qubits: int = 3, comments: bool = False) -> str:
    """
    GHZ state (|0...0⟩ + |1...1⟩)/√2.

    Args:
        num_qubits: Number of qubits (>= 2)
        comments: Include explanatory comment lines
    """
    if num_qubits < 2:
        raise ValidationError(f"GHZ state needs at least 2 qubits, got {num_qubits}")
    lines = [
        f"// GHZ state (|{'0' * num_qubits}⟩ + |{'1' * num_qubits}⟩)/√2",
        "H 0",
        "// Chain CX gates to entangle every qubit",
    ]
    lines += [f"CX [{i},{i + 1}]" for i in range(num_qubits - 1)]
    return _with_comments(lines, comments)


# =============================================================================
# Grover's search
# =============================================================================

def grover_iterations(num_qubits: int) -> int:
    """Optimal iteration count ⌊π/4·√(2^n)⌋."""
    return int(np.floor(np.pi / 4 * np.sqrt(2 ** num_qubits)))


def grover_search(num_qubits: int, target: str, comments: bool = False) -> str:
    """
    Grover's search for one marked basis state.

    The oracle flips the qubits that are 0 in the target, applies a phase
    flip to |1...1⟩ and flips them back. The diffusion operator is
    H·X·(phase flip)·X·H on every qubit. Both sit in a REPEAT block run
    grover_iterations(num_qubits) times.

    Args:
        num_qubits: Number of qubits (searches 2^n items). Must be >= 1.
        target: Bitstring of length num_qubits, most significant qubit first
        comments: Include explanatory comment lines

    Returns:
        Qubi program text
    """
    if num_qubits < 1:
        raise ValidationError(f"num_qubits must be >= 1, got {num_qubits}")
    if len(target) != num_qubits or set(target) - {"0", "1"}:
        raise ValidationError(f"Target must be a {num_qubits}-bit string, got {target!r}")

    qubits = list(range(num_qubits))
    # target[i] is qubit n-1-i
    zero_qubits = sorted(num_qubits - 1 - i for i, bit in enumerate(target) if bit == "0")
    iterations = grover_iterations(num_qubits)

    lines = [
        f"// Searching for |{target}⟩ in {num_qubits} qubits, {iterations} iterations",
        f"H {format_qubits(qubits)}",
        "",
        f"REPEAT {iterations}",
        f"// Oracle: mark |{target}⟩",
    ]
    lines += _apply_to("X", zero_qubits)
    lines.append(_phase_flip_all_ones(qubits))
    lines += _apply_to("X", zero_qubits)
    lines += [
        "// Diffusion: inversion about the mean",
        f"H {format_qubits(qubits)}",
        f"X {format_qubits(qubits)}",
        _phase_flip_all_ones(qubits),
        f"X {format_qubits(qubits)}",
        f"H {format_qubits(qubits)}",
        "END",
    ]
    return _with_comments(lines, comments)


# =============================================================================
# Deutsch-Jozsa
# =============================================================================

def deutsch_jozsa(num_inputs: int = 2, balanced: bool = True,
                  comments: bool = False) -> str:
    """
    Deutsch-Jozsa with a constant or balanced oracle.

    Qubits 0..n-1 are inputs, qubit n is the ancilla. The balanced oracle
    is f(x) = x0 ⊕ x1 ⊕ ... (one CX per input), the constant oracle is
    f(x) = 1 (X on the ancilla). Measuring all-zero inputs means constant.
    """
    if num_inputs < 1:
        raise ValidationError(f"num_inputs must be >= 1, got {num_inputs}")
    inputs = list(range(num_inputs))
    ancilla = num_inputs

    lines = [
        "// Deutsch-Jozsa: constant or balanced in one query",
        f"X {ancilla}",
        f"H {format_qubits(inputs + [ancilla])}",
        "// Oracle",
    ]
    if balanced:
        lines += [f"CX [{q},{ancilla}]" for q in inputs]
    else:
        lines.append(f"X {ancilla}")
    lines += [
        f"H {format_qubits(inputs)}",
        "// All zeros means constant, anything else balanced",
        f"MEASURE {format_qubits(inputs)}",
    ]
    return _with_comments(lines, comments)


ALGORITHMS: Dict[str, Callable[..., str]] = {
    "bell": bell_state,
    "ghz": ghz_state,
    "grover": grover_search,
    "deutsch_jozsa": deutsch_jozsa,
}

"""
Resolved gate operations.

A placed gate is described by a type string and some qubit indices. resolve()
turns that description into one of the operation classes below exactly once,
when a circuit is linearized; applying an operation afterwards is a plain
method call with no string matching. Unrecognized names become UnknownOp,
which logs and leaves the state unchanged.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, EngineConfig
from .gates import QuantumGate, ROTATIONS, SINGLE_QUBIT_GATES
from .logging import get_logger

logger = get_logger(__name__)

CONTROLLED_GATES = ("CX", "CY", "CZ")
TWO_QUBIT_NAMES = CONTROLLED_GATES + ("SWAP",)


@dataclass(frozen=True)
class SingleQubitOp:
    name: str
    qubit: int

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.qubit,)

    def apply(self, state):
        state.apply_gate(self.name, self.qubit)


@dataclass(frozen=True)
class RotationOp:
    name: str      # "RX", "RY" or "RZ"
    qubit: int
    angle: float

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.qubit,)

    def apply(self, state):
        state.apply_rotation(self.name, self.qubit, self.angle)


@dataclass(frozen=True)
class ControlledOp:
    name: str      # "CX", "CY" or "CZ"
    control: int
    target: int

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.control, self.target)

    def apply(self, state):
        state.apply_two_qubit_gate(self.name, self.control, self.target)


@dataclass(frozen=True)
class SwapOp:
    a: int
    b: int

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.a, self.b)

    def apply(self, state):
        state.apply_two_qubit_gate("SWAP", self.a, self.b)


@dataclass(frozen=True)
class MultiControlledOp:
    base: str      # "X", "Y" or "Z"
    controls: Tuple[int, ...]
    target: int

    @property
    def qubits(self) -> Tuple[int, ...]:
        return self.controls + (self.target,)

    def apply(self, state):
        state.apply_multi_controlled(self.base, self.controls, self.target)


@dataclass(frozen=True)
class MeasureOp:
    qubit: int

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.qubit,)

    def apply(self, state):
        state.measure(self.qubit)


@dataclass(frozen=True)
class MatrixOp:
    """An arbitrary gate on explicit qubits (list index 0 = low matrix bit)."""
    gate: QuantumGate
    targets: Tuple[int, ...]

    @property
    def qubits(self) -> Tuple[int, ...]:
        return self.targets

    def apply(self, state):
        state.apply_matrix(self.gate.matrix, self.targets)


@dataclass(frozen=True)
class UnknownOp:
    """Identity stand-in for a gate that could not be resolved."""
    name: str
    targets: Tuple[int, ...] = ()
    reason: str = "unknown gate"

    @property
    def qubits(self) -> Tuple[int, ...]:
        return self.targets

    def apply(self, state):
        logger.debug("Skipping %s on %s: %s", self.name, list(self.targets), self.reason)


def resolve(gate_type: str, qubit: int, target: Optional[int] = None,
            params: Optional[dict] = None, controls: Optional[Sequence[int]] = None,
            config: EngineConfig = DEFAULT_CONFIG):
    """
    Resolve a placed-gate description into an operation.

    Args:
        gate_type: Gate name (I, H, X, Y, Z, S, T, RX, RY, RZ, CX, CY, CZ,
                   SWAP, MEASURE)
        qubit: The qubit acted on; for CX/CY/CZ the target qubit (singly
               or multi-controlled), for SWAP the first qubit
        target: The control of a singly-controlled CX/CY/CZ, or the
                second SWAP qubit
        params: Gate parameters ({"angle": θ} for rotations;
                {"matrix": m, "targets": (q0, ...)} places an arbitrary
                unitary, whatever the gate name)
        controls: Control list; a non-empty list makes CX/CY/CZ multi-controlled
        config: Supplies the default rotation angle

    Returns:
        An operation object with an apply(state) method
    """
    name = str(gate_type).strip().upper()
    params = params or {}
    qubit = int(qubit)

    if name == "MEASURE":
        return MeasureOp(qubit)

    matrix = params.get("matrix")
    if matrix is not None:
        gate = matrix if isinstance(matrix, QuantumGate) else QuantumGate(matrix, name=name)
        targets = tuple(int(q) for q in params.get("targets", (qubit,)))
        return MatrixOp(gate, targets)

    if name in CONTROLLED_GATES and controls:
        return MultiControlledOp(name[1], tuple(int(c) for c in controls), qubit)

    if name in TWO_QUBIT_NAMES:
        if target is None:
            logger.warning("Two-qubit gate %s requires a target qubit", name)
            return UnknownOp(name, (qubit,), reason="missing target qubit")
        if name == "SWAP":
            return SwapOp(qubit, int(target))
        return ControlledOp(name, int(target), qubit)

    if name in ROTATIONS:
        angle = params.get("angle")
        if angle is None:
            angle = config.default_angle
        return RotationOp(name, qubit, float(angle))

    if name in SINGLE_QUBIT_GATES:
        return SingleQubitOp(name, qubit)

    logger.warning("Unknown gate %r, treating it as identity", gate_type)
    return UnknownOp(str(gate_type), (qubit,))

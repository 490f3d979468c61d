"""
Column-based circuit scheduler.

A Circuit holds sparse gate placements on a (qubit, column) grid plus
REPEAT/END control-flow markers on columns. execute() linearizes the grid
into an ordered operation list, unrolling repeat blocks, and replays it on a
fresh |0...0⟩ state.

Gate placement conventions:
    - Single-qubit gates and MEASURE: `qubit` is the qubit acted on.
    - CX/CY/CZ: `qubit` is always the target. The one control goes in
      `target`, or several go in `controls`, so
      add_gate("CX", 1, c, target=0) and add_gate("CX", 1, c, controls=[0])
      place the same gate.
    - SWAP: `qubit` and `target` are the two qubits swapped.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import DEFAULT_CONFIG, EngineConfig
from .errors import ValidationError
from .gates import GateCache
from .logging import get_logger
from .operations import resolve
from .state import QuantumState

logger = get_logger(__name__)

REPEAT = "REPEAT"
END = "END"


@dataclass
class PlacedGate:
    """One gate placed on the grid."""
    type: str
    qubit: int
    column: int
    target: Optional[int] = None
    params: dict = field(default_factory=dict)
    controls: Optional[List[int]] = None

    @property
    def qubits(self) -> Tuple[int, ...]:
        """Every qubit this placement touches."""
        touched = [self.qubit]
        if self.target is not None:
            touched.append(self.target)
        if self.controls:
            touched.extend(self.controls)
        touched.extend(self.params.get("targets", ()))
        return tuple(touched)

    def to_operation(self, config: EngineConfig = DEFAULT_CONFIG):
        return resolve(self.type, self.qubit, target=self.target, params=self.params,
                       controls=self.controls, config=config)


@dataclass
class ControlFlowMarker:
    """A REPEAT or END marker occupying a whole column."""
    type: str
    column: int
    count: Optional[int] = None


@dataclass(frozen=True)
class _RepeatBlock:
    start: int
    end: int        # exclusive of inner range; may be max_column + 1 when unmatched
    count: int


class Circuit:
    """
    A quantum circuit laid out on columns.

    Args:
        num_qubits: Register size
        config: Engine settings (optimized paths, defaults, seed)
        rng: Measurement RNG shared by every executed state
        gate_cache: Parametric gate cache shared by every executed state
    """

    def __init__(self, num_qubits: int = 2, config: Optional[EngineConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 gate_cache: Optional[GateCache] = None):
        if num_qubits < 1:
            raise ValidationError(f"num_qubits must be >= 1, got {num_qubits}")
        self.num_qubits = num_qubits
        self.config = config or DEFAULT_CONFIG
        self.use_optimized_gates = self.config.use_optimized_gates
        self.rng = rng if rng is not None else self.config.make_rng()
        self.gate_cache = gate_cache if gate_cache is not None else GateCache()

        self._columns: Dict[int, Dict[int, PlacedGate]] = {}
        self._control_flow: Dict[int, ControlFlowMarker] = {}
        self.max_column = -1
        self.state = self._fresh_state()

    def _fresh_state(self) -> QuantumState:
        return QuantumState(self.num_qubits, config=self.config, rng=self.rng,
                            gate_cache=self.gate_cache,
                            use_optimized_gates=self.use_optimized_gates)

    def set_optimization(self, enabled: bool):
        self.use_optimized_gates = bool(enabled)
        self.state.set_optimization(enabled)

    # =========================================================================
    # Register size
    # =========================================================================

    def add_qubit(self):
        self.num_qubits += 1
        self.state = self._fresh_state()

    def remove_qubit(self):
        """Drop the highest qubit and every gate touching it."""
        if self.num_qubits <= 1:
            return
        self.num_qubits -= 1
        for column in list(self._columns):
            cells = self._columns[column]
            for qubit in [q for q, g in cells.items()
                          if any(t >= self.num_qubits for t in g.qubits)]:
                del cells[qubit]
            if not cells:
                del self._columns[column]
        self._update_max_column()
        self.state = self._fresh_state()

    # =========================================================================
    # Placement
    # =========================================================================

    def add_gate(self, type: str, qubit: int, column: int, target: Optional[int] = None,
                 params: Optional[dict] = None,
                 controls: Optional[Sequence[int]] = None) -> PlacedGate:
        """
        Place a gate at (qubit, column), replacing whatever was there.

        Qubit indices are checked against the register only at execution
        time, so a circuit can be edited freely before qubits are added.
        """
        if column < 0:
            raise ValidationError(f"Column must be >= 0, got {column}")
        gate = PlacedGate(type=type, qubit=qubit, column=column, target=target,
                          params=dict(params or {}),
                          controls=list(controls) if controls else None)
        self._columns.setdefault(column, {})[qubit] = gate
        self.max_column = max(self.max_column, column)
        return gate

    def add_control_flow(self, type: str, column: int,
                         count: Optional[int] = None) -> ControlFlowMarker:
        """Place a REPEAT or END marker on a column."""
        kind = type.upper()
        if kind not in (REPEAT, END):
            raise ValidationError(f"Unknown control flow {type!r}, expected REPEAT or END")
        if column < 0:
            raise ValidationError(f"Column must be >= 0, got {column}")
        marker = ControlFlowMarker(kind, column, count)
        self._control_flow[column] = marker
        self.max_column = max(self.max_column, column)
        return marker

    def remove_gate(self, qubit: int, column: int):
        """Remove the gate on (qubit, column) and any gate in that column also touching qubit."""
        cells = self._columns.get(column)
        if cells is None:
            return
        cells.pop(qubit, None)
        for other in [q for q, g in cells.items() if qubit in g.qubits]:
            del cells[other]
        if not cells:
            del self._columns[column]
        self._update_max_column()

    def remove_control_flow(self, column: int):
        self._control_flow.pop(column, None)
        self._update_max_column()

    def clear(self):
        self._columns.clear()
        self._control_flow.clear()
        self.max_column = -1
        self.state = self._fresh_state()

    def _update_max_column(self):
        columns = list(self._columns) + list(self._control_flow)
        self.max_column = max(columns) if columns else -1

    # =========================================================================
    # Queries
    # =========================================================================

    def gate_at(self, qubit: int, column: int) -> Optional[PlacedGate]:
        return self._columns.get(column, {}).get(qubit)

    def control_flow_at(self, column: int) -> Optional[ControlFlowMarker]:
        return self._control_flow.get(column)

    def gates_at_column(self, column: int) -> List[PlacedGate]:
        """Gates in a column, in placement order."""
        return list(self._columns.get(column, {}).values())

    def gates_on_qubit(self, qubit: int) -> List[PlacedGate]:
        """Gates acting on or targeting qubit, ordered by column."""
        return [g for column in sorted(self._columns)
                for g in self._columns[column].values()
                if g.qubit == qubit or g.target == qubit]

    @property
    def gates(self) -> List[PlacedGate]:
        return [g for column in sorted(self._columns) for g in self._columns[column].values()]

    @property
    def control_flow(self) -> List[ControlFlowMarker]:
        return [self._control_flow[c] for c in sorted(self._control_flow)]

    def next_column(self) -> int:
        return self.max_column + 1

    def depth(self) -> int:
        return self.max_column + 1

    def gate_count(self) -> int:
        return sum(len(cells) for cells in self._columns.values())

    # =========================================================================
    # Linearization
    # =========================================================================

    def _repeat_blocks(self) -> Dict[int, _RepeatBlock]:
        """
        Pair REPEAT/END markers with a stack.

        An END with no open REPEAT is ignored. A REPEAT still open at the end
        runs to the last column.
        """
        blocks = {}
        open_repeats: List[ControlFlowMarker] = []
        for marker in self.control_flow:
            if marker.type == REPEAT:
                open_repeats.append(marker)
            elif open_repeats:
                start = open_repeats.pop()
                blocks[start.column] = _RepeatBlock(start.column, marker.column,
                                                    self._repeat_count(start))
            else:
                logger.debug("Ignoring END at column %d with no open REPEAT", marker.column)

        for start in open_repeats:
            blocks[start.column] = _RepeatBlock(start.column, self.max_column + 1,
                                                self._repeat_count(start))
        return blocks

    def _repeat_count(self, marker: ControlFlowMarker) -> int:
        if marker.count is None:
            return self.config.default_repeat_count
        return max(int(marker.count), 0)

    def _linearize(self, start: int, stop: int,
                   blocks: Dict[int, _RepeatBlock]) -> List[PlacedGate]:
        """
        Gates for columns start..stop-1 with repeat blocks unrolled.

        The REPEAT and END columns of a block are stepped over, so gates placed
        on them never run. An unmatched END is not part of any block and its
        column runs like any other.
        """
        sequence = []
        column = start
        while column < stop:
            block = blocks.get(column)
            if block is not None:
                inner = self._linearize(block.start + 1, min(block.end, stop), blocks)
                sequence.extend(inner * block.count)
                column = block.end + 1
                continue
            sequence.extend(self._columns.get(column, {}).values())
            column += 1
        return sequence

    def build_execution_sequence(self) -> List[PlacedGate]:
        """The placed gates in execution order, repeat blocks unrolled."""
        return self._linearize(0, self.max_column + 1, self._repeat_blocks())

    def build_operations(self) -> list:
        """The execution sequence resolved into operations."""
        return [gate.to_operation(self.config) for gate in self.build_execution_sequence()]

    # =========================================================================
    # Execution
    # =========================================================================

    def execute(self, strict: bool = False) -> QuantumState:
        """
        Run the circuit from |0...0⟩ and keep the final state.

        Args:
            strict: Re-raise validation errors instead of skipping the
                    offending gate

        Returns:
            The final QuantumState (also stored on self.state)
        """
        self.state = self._fresh_state()
        sequence = self.build_execution_sequence()
        logger.debug("Executing %d gates on %d qubits", len(sequence), self.num_qubits)

        resolved = {}
        for gate in sequence:
            try:
                operation = resolved.get(id(gate))
                if operation is None:
                    operation = resolved[id(gate)] = gate.to_operation(self.config)
                operation.apply(self.state)
            except ValidationError as exc:
                if strict:
                    raise
                logger.error("Skipping %s at column %d: %s", gate.type, gate.column, exc)
        return self.state

    def __repr__(self):
        return (f"Circuit({self.num_qubits} qubits, {self.gate_count()} gates, "
                f"depth {self.depth()})")

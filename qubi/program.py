"""
The Qubi program format.

A line-oriented text format for circuits, one instruction per line:

    // comment
    H 0                 single gate on qubit 0
    H (0,1,2)           the same gate on each listed qubit
    CX [0,1]            controlled gate: controls first, target last
    CZ [0,1,2]          several controls make it multi-controlled
    SWAP [0,1]
    RX 0 0.5            rotation by 0.5·π
    RY (0,1) 0.25       rotation on several qubits
    REPEAT 3
      X 0
    END

parse() turns text into an instruction tree, build_circuit() lays the tree
out on a Circuit one column per instruction (REPEAT and END get a column
each), and generate_code() renders a Circuit back to text.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import numpy as np

from .circuit import END, REPEAT, Circuit
from .errors import ProgramSyntaxError
from .gates import ROTATIONS
from .logging import get_logger
from .operations import CONTROLLED_GATES

logger = get_logger(__name__)

_NAME = r"([A-Za-z][A-Za-z0-9]*)"
_ANGLE = r"(-?(?:\d+\.?\d*|\.\d+))"
_SHORTHAND_RE = re.compile(rf"^{_NAME}\s+(\d+)(?:\s+{_ANGLE})?$")
_LIST_RE = re.compile(rf"^{_NAME}\s*([(\[])\s*([^)\]]*)\s*([)\]])(?:\s+{_ANGLE})?$")
_REPEAT_RE = re.compile(r"^REPEAT(?:\s+(\d+))?$", re.IGNORECASE)
_END_RE = re.compile(r"^END$", re.IGNORECASE)

INDENT = "  "


@dataclass
class GateInstruction:
    """One gate line: `gate` on `qubits`; `controlled` for the [..] form."""
    gate: str
    qubits: List[int]
    controlled: bool = False
    params: dict = field(default_factory=dict)
    line: int = 0


@dataclass
class RepeatInstruction:
    """A REPEAT block and its body."""
    count: int
    instructions: List["Instruction"] = field(default_factory=list)
    line: int = 0


Instruction = Union[GateInstruction, RepeatInstruction]


# =============================================================================
# Parsing
# =============================================================================

def _parse_qubits(text: str, line: int) -> List[int]:
    try:
        qubits = [int(q) for q in text.split(",")]
    except ValueError:
        raise ProgramSyntaxError(f"Invalid qubit list {text!r}", line) from None
    if any(q < 0 for q in qubits):
        raise ProgramSyntaxError(f"Qubit indices must be non-negative: {text!r}", line)
    return qubits


def _parse_gate(text: str, line: int) -> GateInstruction:
    match = _SHORTHAND_RE.match(text)
    if match:
        name, qubit, angle = match.groups()
        qubits = [int(qubit)]
        controlled = False
    else:
        match = _LIST_RE.match(text)
        if not match:
            raise ProgramSyntaxError(f"Cannot parse {text!r}", line)
        name, bracket, qubit_text, closing, angle = match.groups()
        if (bracket == "(") != (closing == ")"):
            raise ProgramSyntaxError(f"Mismatched brackets in {text!r}", line)
        qubits = _parse_qubits(qubit_text, line)
        controlled = bracket == "["

    name = name.upper()
    params = {}
    if angle is not None:
        if name not in ROTATIONS:
            raise ProgramSyntaxError(f"{name} does not take an angle", line)
        params["angle"] = float(angle) * np.pi
    if controlled and len(qubits) < 2:
        raise ProgramSyntaxError(f"{name} [..] needs at least two qubits", line)
    return GateInstruction(name, qubits, controlled, params, line)


def parse(text: str) -> List[Instruction]:
    """
    Parse Qubi program text into an instruction tree.

    REPEAT without a count repeats twice. An END with no open REPEAT is
    ignored with a warning, and a REPEAT left open closes at the end of the
    text.

    Raises:
        ProgramSyntaxError: A line is not a recognized instruction
    """
    root: List[Instruction] = []
    stack: List[RepeatInstruction] = []

    for number, raw in enumerate(text.splitlines()):
        line = raw.strip()
        if not line or line.startswith("//"):
            continue
        body = stack[-1].instructions if stack else root

        repeat = _REPEAT_RE.match(line)
        if repeat:
            count = int(repeat.group(1)) if repeat.group(1) is not None else 2
            block = RepeatInstruction(count, line=number)
            body.append(block)
            stack.append(block)
        elif _END_RE.match(line):
            if stack:
                stack.pop()
            else:
                logger.warning("line %d: END without REPEAT ignored", number + 1)
        else:
            body.append(_parse_gate(line, number))

    for block in stack:
        logger.debug("line %d: REPEAT %d left open, closing at end of program",
                     block.line + 1, block.count)
    return root


# =============================================================================
# Circuit construction
# =============================================================================

def max_qubit(instructions: List[Instruction]) -> int:
    """Highest qubit index used, or -1."""
    highest = -1
    for instruction in instructions:
        if isinstance(instruction, RepeatInstruction):
            highest = max(highest, max_qubit(instruction.instructions))
        else:
            highest = max([highest] + instruction.qubits)
    return highest


def _place_gate(circuit: Circuit, instruction: GateInstruction, column: int):
    gate, qubits = instruction.gate, instruction.qubits
    if instruction.controlled:
        if gate in CONTROLLED_GATES:
            *controls, target = qubits
            if len(controls) == 1:
                circuit.add_gate(gate, target, column, target=controls[0])
            else:
                circuit.add_gate(gate, target, column, controls=controls)
        elif gate == "SWAP":
            circuit.add_gate("SWAP", qubits[0], column, target=qubits[1])
        else:
            logger.warning("line %d: %s does not take the [..] form, skipped",
                           instruction.line + 1, gate)
        return

    for qubit in qubits:
        circuit.add_gate(gate, qubit, column, params=dict(instruction.params))


def _lay_out(circuit: Circuit, instructions: List[Instruction], column: int) -> int:
    for instruction in instructions:
        if isinstance(instruction, RepeatInstruction):
            circuit.add_control_flow(REPEAT, column, count=instruction.count)
            column = _lay_out(circuit, instruction.instructions, column + 1)
            circuit.add_control_flow(END, column)
        else:
            _place_gate(circuit, instruction, column)
        column += 1
    return column


def build_circuit(text: str, circuit: Optional[Circuit] = None) -> Circuit:
    """
    Build a circuit from program text.

    An existing circuit is cleared and grown to the number of qubits the
    program uses; otherwise a new one is created (at least one qubit).
    """
    instructions = parse(text)
    needed = max(max_qubit(instructions) + 1, 1)
    if circuit is None:
        circuit = Circuit(needed)
    else:
        circuit.clear()
    while circuit.num_qubits < needed:
        circuit.add_qubit()

    _lay_out(circuit, instructions, 0)
    return circuit


# =============================================================================
# Code generation
# =============================================================================

def _format_angle(angle: float) -> str:
    return format(round(angle / np.pi, 4), "g")


def _gate_lines(circuit: Circuit, column: int) -> List[str]:
    groups: Dict[tuple, list] = {}
    for gate in circuit.gates_at_column(column):
        if gate.type in CONTROLLED_GATES and gate.controls:
            key = ("multi", gate.type, tuple(gate.controls), gate.qubit)
        elif gate.target is not None:
            key = ("pair", gate.type, gate.qubit, gate.target)
        elif gate.type in ROTATIONS and "angle" in gate.params:
            key = ("rotation", gate.type, float(gate.params["angle"]))
        else:
            key = ("single", gate.type)
        groups.setdefault(key, []).append(gate)

    lines = []
    for key, group in groups.items():
        kind, name = key[0], key[1]
        first = group[0]
        if kind == "multi":
            lines.append(f"{name} [{','.join(str(q) for q in first.controls + [first.qubit])}]")
        elif kind == "pair" and name == "SWAP":
            lines.append(f"{name} [{first.qubit},{first.target}]")
        elif kind == "pair":
            lines.append(f"{name} [{first.target},{first.qubit}]")
        else:
            qubits = sorted(g.qubit for g in group)
            if len(qubits) == 1:
                operand = str(qubits[0])
            else:
                operand = f"({','.join(str(q) for q in qubits)})"
            if kind == "rotation":
                lines.append(f"{name} {operand} {_format_angle(key[2])}")
            else:
                lines.append(f"{name} {operand}")
    return lines


def generate_code(circuit: Circuit) -> str:
    """
    Render a circuit as Qubi program text.

    Columns are emitted in order; REPEAT/END markers indent their body.
    Empty columns produce nothing. Gates sharing a column and a type are
    merged into one `GATE (q0,q1,...)` line, which parses back into a
    single column.
    """
    lines = []
    depth = 0
    markers = {marker.column: marker for marker in circuit.control_flow}
    for column in range(circuit.max_column + 1):
        marker = markers.get(column)
        if marker is not None:
            if marker.type == REPEAT:
                count = marker.count if marker.count is not None else circuit.config.default_repeat_count
                lines.append(f"{INDENT * depth}REPEAT {count}")
                depth += 1
            else:
                depth = max(depth - 1, 0)
                lines.append(f"{INDENT * depth}END")
            continue
        lines.extend(INDENT * depth + line for line in _gate_lines(circuit, column))
    return "\n".join(lines)

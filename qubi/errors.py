"""
Exception types raised by the simulator.

Validation errors are raised before any amplitude is written, so a caught
error always leaves the state exactly as it was. They derive from ValueError
so callers that only catch ValueError keep working.
"""


class QubiError(Exception):
    """Base class for all simulator errors."""


class ValidationError(QubiError, ValueError):
    """A precondition on a gate application or state operation failed."""


class QubitIndexError(ValidationError):
    """A qubit index is outside [0, num_qubits)."""

    def __init__(self, qubit: int, num_qubits: int):
        self.qubit = qubit
        self.num_qubits = num_qubits
        super().__init__(f"Invalid qubit index: {qubit} (register has {num_qubits} qubits)")


class DuplicateQubitError(ValidationError):
    """The same qubit occurs twice in a target list (includes control == target)."""

    def __init__(self, qubits):
        self.qubits = list(qubits)
        super().__init__(f"The same qubit cannot occur twice as an argument: {self.qubits}")


class QubitCountError(ValidationError):
    """A gate received the wrong number of target qubits."""

    def __init__(self, expected: int, got: int):
        self.expected = expected
        self.got = got
        super().__init__(f"Gate size expects {expected} targets, got {got}")


class GateMatrixError(ValidationError):
    """A gate matrix is not square or not 2^k x 2^k."""


class ShapeError(ValidationError):
    """An array has the wrong shape for the requested operation."""


class ProgramSyntaxError(QubiError, ValueError):
    """A line of a Qubi program could not be parsed."""

    def __init__(self, message: str, line: int):
        self.line = line
        super().__init__(f"line {line + 1}: {message}")

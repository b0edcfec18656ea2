import math
from logging import Logger, getLogger
from typing import List, Optional

import numpy as np

from .config import DEFAULT_MAX_QUBITS
from .errors import InvalidQubitCount, QubitIndexOutOfRange
from .trace import CircuitTrace, GateRecord

H = (1 / math.sqrt(2)) * np.array([[1, 1], [1, -1]], dtype=np.complex128)
X = np.array([[0, 1], [1, 0]], dtype=np.complex128)


class StateVector:
    """Dense amplitudes of an n-qubit register; bit q of an index is qubit q."""
    def __init__(self, n: int):
        self.n = n; self.state = np.zeros(1 << n, dtype=np.complex128); self.state[0] = 1 + 0j

    def apply_single(self, q: int, U: np.ndarray):
        n = self.n; mask = 1 << q; vec = self.state
        a00, a01, a10, a11 = U[0, 0], U[0, 1], U[1, 0], U[1, 1]
        for i in range(0, 1 << n):
            if (i & mask) == 0:
                j = i | mask; v0, v1 = vec[i], vec[j]
                vec[i] = a00*v0 + a01*v1
                vec[j] = a10*v0 + a11*v1

    def apply_cnot(self, control: int, target: int):
        cmask = 1 << control; tmask = 1 << target; vec = self.state
        for i in range(0, 1 << self.n):
            if (i & cmask) and not (i & tmask):
                j = i | tmask
                vec[i], vec[j] = vec[j], vec[i]

    def probabilities(self) -> np.ndarray:
        return self.state.real**2 + self.state.imag**2

    def prob_zero(self, q: int) -> float:
        idx = np.arange(1 << self.n)
        return float(np.sum(self.probabilities()[(idx & (1 << q)) == 0]))

    def outcome_mass(self, q: int, outcome: int) -> float:
        idx = np.arange(1 << self.n)
        return float(np.sum(self.probabilities()[((idx >> q) & 1) == outcome]))

    def collapse(self, q: int, outcome: int, prob0: float):
        idx = np.arange(1 << self.n)
        keep = ((idx >> q) & 1) == outcome
        norm = math.sqrt(prob0 if outcome == 0 else max(0.0, 1.0 - prob0))
        if norm == 0.0:
            norm = math.sqrt(self.outcome_mass(q, outcome))
        self.state[~keep] = 0
        self.state[keep] /= norm


class QuantumEngine:
    """Qubit register plus the trace of every gate applied to it."""

    def __init__(
        self,
        seed: Optional[int] = None,
        logger: Optional[Logger] = None,
        max_qubits: int = DEFAULT_MAX_QUBITS,
    ):
        self.max_qubits = max_qubits
        self.rng = np.random.default_rng(seed)
        self.logger = logger or getLogger(__name__)
        self.sv: Optional[StateVector] = None
        self.trace = CircuitTrace()

    @property
    def num_qubits(self) -> int:
        return self.sv.n if self.sv is not None else 0

    @property
    def initialized(self) -> bool:
        return self.sv is not None

    def _check(self, q) -> int:
        if isinstance(q, bool) or not isinstance(q, (int, np.integer)):
            raise QubitIndexOutOfRange(f"qubit index {q!r} is not an integer")
        if not (0 <= q < self.num_qubits):
            raise QubitIndexOutOfRange(f"qubit index {q} out of range for {self.num_qubits} qubit(s)")
        return int(q)

    def initialize(self, n: int):
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n <= 0:
            raise InvalidQubitCount(f"qubit count must be a positive integer, got {n!r}")
        if n > self.max_qubits:
            raise InvalidQubitCount(f"qubit count {n} exceeds the limit of {self.max_qubits}")
        self.sv = StateVector(int(n))
        self.trace = CircuitTrace(num_qubits=int(n))
        self.logger.debug(f"Initialized register: {n} qubit(s)")

    def hadamard(self, qubit: int):
        q = self._check(qubit)
        self.sv.apply_single(q, H)
        self.trace.append(GateRecord("H", qubit=q))
        self.logger.debug(f"H q[{q}]")

    def pauli_x(self, qubit: int):
        q = self._check(qubit)
        self.sv.apply_single(q, X)
        self.trace.append(GateRecord("X", qubit=q))
        self.logger.debug(f"X q[{q}]")

    def cnot(self, control: int, target: int):
        c = self._check(control); t = self._check(target)
        self.sv.apply_cnot(c, t)
        self.trace.append(GateRecord("CNOT", control=c, target=t))
        self.logger.debug(f"CNOT q[{c}], q[{t}]")

    def measure(self, qubit: int) -> int:
        q = self._check(qubit)
        prob0 = self.sv.prob_zero(q)
        outcome = 0 if self.rng.random() < prob0 else 1
        # rounding can leave the sampled branch with no amplitude at all
        if self.sv.outcome_mass(q, outcome) == 0.0:
            outcome = 1 - outcome
        self.sv.collapse(q, outcome, prob0)
        self.trace.append(GateRecord("M", qubit=q))
        self.logger.debug(f"M q[{q}] -> {outcome} (p0={prob0:.6f})")
        return outcome

    def snapshot_probabilities(self) -> List[float]:
        if self.sv is None:
            return []
        return [float(p) for p in self.sv.probabilities()]

    def amplitudes(self) -> np.ndarray:
        if self.sv is None:
            return np.zeros(0, dtype=np.complex128)
        return self.sv.state.copy()

    def circuit_trace(self) -> CircuitTrace:
        return self.trace

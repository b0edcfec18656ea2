import math
import numpy as np
import pytest

from qbasic.errors import InvalidQubitCount, QubitIndexOutOfRange
from qbasic.runtime import QuantumEngine


def _engine(n, seed=1):
    e = QuantumEngine(seed=seed)
    e.initialize(n)
    return e

def test_initialize_all_zero_state():
    e = _engine(3)
    assert e.snapshot_probabilities() == [1.0] + [0.0] * 7
    assert e.circuit_trace().num_qubits == 3
    assert len(e.circuit_trace()) == 0

@pytest.mark.parametrize("n", [0, -1])
def test_initialize_rejects_non_positive(n):
    with pytest.raises(InvalidQubitCount):
        QuantumEngine().initialize(n)

def test_pauli_x_is_deterministic():
    e = _engine(2)
    e.pauli_x(0)
    assert e.snapshot_probabilities() == [0.0, 1.0, 0.0, 0.0]

def test_hadamard_equal_superposition():
    e = _engine(1)
    e.hadamard(0)
    p = e.snapshot_probabilities()
    assert p[0] == pytest.approx(0.5) and p[1] == pytest.approx(0.5)

def test_hadamard_twice_restores_amplitudes():
    e = _engine(3)
    e.hadamard(0); e.pauli_x(1); e.cnot(0, 2); e.hadamard(1)
    for q in range(3):
        before = e.amplitudes()
        e.hadamard(q); e.hadamard(q)
        assert np.allclose(e.amplitudes(), before, atol=1e-12)

def test_probabilities_stay_normalised():
    rng = np.random.default_rng(42)
    e = _engine(3, seed=3)
    for _ in range(60):
        kind = rng.integers(4)
        q = int(rng.integers(3))
        if kind == 0: e.hadamard(q)
        elif kind == 1: e.pauli_x(q)
        elif kind == 2: e.cnot(q, (q + 1) % 3)
        else: e.measure(q)
        assert math.isclose(sum(e.snapshot_probabilities()), 1.0, abs_tol=1e-9)

def test_cnot_flips_target_only_when_control_set():
    e = _engine(2)
    e.cnot(0, 1)
    assert e.snapshot_probabilities() == [1.0, 0.0, 0.0, 0.0]
    e.pauli_x(0); e.cnot(0, 1)
    assert e.snapshot_probabilities() == [0.0, 0.0, 0.0, 1.0]

def test_cnot_same_qubit_is_recorded_noop():
    e = _engine(2)
    e.hadamard(0)
    before = e.amplitudes()
    e.cnot(0, 0)
    assert np.allclose(e.amplitudes(), before)
    assert e.circuit_trace().gates[-1].to_dict() == {"gate": "CNOT", "control": 0, "target": 0}

def test_measure_collapses_and_renormalises():
    e = _engine(2, seed=7)
    e.hadamard(0); e.cnot(0, 1)
    r = e.measure(0)
    p = e.snapshot_probabilities()
    expected = [1.0, 0.0, 0.0, 0.0] if r == 0 else [0.0, 0.0, 0.0, 1.0]
    assert p == pytest.approx(expected)
    assert e.measure(1) == r

def test_measure_definite_state():
    e = _engine(1)
    e.pauli_x(0)
    assert [e.measure(0) for _ in range(5)] == [1] * 5

def test_bell_pair_correlation():
    ones = 0
    for seed in range(1000):
        e = _engine(2, seed=seed)
        e.hadamard(0); e.cnot(0, 1)
        a, b = e.measure(0), e.measure(1)
        assert a == b
        ones += a
    # 1000 fair flips: sd ~ 16
    assert 400 < ones < 600

def test_seed_reproducible():
    def outcomes(seed):
        e = _engine(1, seed=seed)
        res = []
        for _ in range(20):
            e.hadamard(0); res.append(e.measure(0))
        return res
    assert outcomes(5) == outcomes(5)

@pytest.mark.parametrize("q", [-1, 2, 1.5, "0"])
def test_qubit_index_checked(q):
    e = _engine(2)
    for op in (e.hadamard, e.pauli_x, e.measure):
        with pytest.raises(QubitIndexOutOfRange):
            op(q)
    with pytest.raises(QubitIndexOutOfRange):
        e.cnot(0, q)
    assert len(e.circuit_trace()) == 0

def test_gate_before_initialize():
    with pytest.raises(QubitIndexOutOfRange):
        QuantumEngine().hadamard(0)

def test_trace_order_and_reset():
    e = _engine(2)
    e.hadamard(0); e.cnot(0, 1); e.pauli_x(1); e.measure(1)
    assert e.circuit_trace().to_dict() == {
        "numQubits": 2,
        "gates": [
            {"gate": "H", "qubit": 0},
            {"gate": "CNOT", "control": 0, "target": 1},
            {"gate": "X", "qubit": 1},
            {"gate": "M", "qubit": 1},
        ],
    }
    e.initialize(1)
    assert e.circuit_trace().to_dict() == {"numQubits": 1, "gates": []}
    assert e.snapshot_probabilities() == [1.0, 0.0]

def test_trace_dump():
    e = _engine(2)
    e.hadamard(0); e.cnot(0, 1)
    dump = e.circuit_trace().dump()
    assert dump.splitlines()[0] == "circuit q[2] {"
    assert "H q[0]" in dump and "CNOT q[0], q[1]" in dump

def test_initialize_respects_qubit_limit():
    e = QuantumEngine(max_qubits=4)
    e.initialize(4)
    with pytest.raises(InvalidQubitCount):
        e.initialize(5)
    with pytest.raises(InvalidQubitCount):
        QuantumEngine().initialize(64)
    assert e.num_qubits == 4

class _FixedDraw:
    def __init__(self, value):
        self.value = value
    def random(self):
        return self.value

def test_measure_never_picks_an_empty_branch():
    e = _engine(1)
    # prob0 just below 1 with nothing at all on |1>
    e.sv.state[:] = [math.sqrt(0.9999999), 0]
    e.rng = _FixedDraw(0.99999995)
    assert e.measure(0) == 0
    assert not np.isnan(e.amplitudes()).any()
    assert e.snapshot_probabilities() == pytest.approx([1.0, 0.0])

def test_collapse_uses_branch_mass_when_prob0_rounds_to_one():
    e = _engine(1)
    e.sv.state[:] = [1.0, 1e-6]
    e.sv.collapse(0, 1, 1.0)
    assert e.snapshot_probabilities() == pytest.approx([0.0, 1.0])

from dataclasses import dataclass
from typing import Optional

DEFAULT_MAX_STEPS = 100_000
DEFAULT_MAX_QUBITS = 20


@dataclass
class InterpreterConfig:
    """Knobs for a single run.

    ``max_steps`` / ``time_budget`` bound runaway GOTO loops (``None`` disables
    either bound). ``max_qubits`` caps the register size accepted by QINIT.
    ``strict_goto`` turns a jump to a missing line into an
    error instead of falling through. ``seed`` seeds measurement sampling.
    """
    max_steps: Optional[int] = DEFAULT_MAX_STEPS
    time_budget: Optional[float] = None
    strict_goto: bool = False
    seed: Optional[int] = None
    max_qubits: int = DEFAULT_MAX_QUBITS

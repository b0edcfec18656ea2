from .config import InterpreterConfig
from .errors import (
    InvalidLineFormat, InvalidQubitCount, MissingThen, QBasicError, QuantumEngineNotAttached,
    QubitIndexOutOfRange, ResourceExhausted, UnknownLineTarget, UnknownStatement,
)
from .expr import Evaluator
from .interpreter import RESULT_VAR, Interpreter, RunResult, execute_program, run_program
from .parser import Program
from .runtime import QuantumEngine
from .trace import CircuitTrace, GateRecord

__all__ = [
    "InterpreterConfig", "Evaluator", "Interpreter", "RunResult", "Program",
    "QuantumEngine", "CircuitTrace", "GateRecord", "RESULT_VAR",
    "run_program", "execute_program",
    "QBasicError", "InvalidLineFormat", "UnknownStatement", "MissingThen",
    "QuantumEngineNotAttached", "InvalidQubitCount", "QubitIndexOutOfRange",
    "UnknownLineTarget", "ResourceExhausted",
]

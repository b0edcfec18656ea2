import math, re, time
from dataclasses import dataclass, field
from logging import Logger, getLogger
from typing import Any, Dict, List, Optional, Tuple

from .config import InterpreterConfig
from .errors import (
    InvalidQubitCount, MissingThen, QBasicError, QuantumEngineNotAttached,
    QubitIndexOutOfRange, ResourceExhausted, UnknownLineTarget, UnknownStatement,
)
from .expr import Evaluator, Value, as_number, format_value
from .parser import Program
from .runtime import QuantumEngine
from .trace import CircuitTrace

# MEASURE binds its outcome here
RESULT_VAR = "QRESULT"

_PRINT = re.compile(r"PRINT(?:\s+(.*))?$", re.I)
_LET = re.compile(r"LET\s+([A-Za-z_]\w*)\s*=\s*(.+)$", re.I)
_QINIT = re.compile(r"QINIT\s+(.+)$", re.I)
_HADAMARD = re.compile(r"HADAMARD\s+(.+)$", re.I)
_QNOT = re.compile(r"QNOT\s+(.+)$", re.I)
_CNOT = re.compile(r"CNOT\s+([^,]+),([^,]+)$", re.I)
_MEASURE = re.compile(r"MEASURE\s+(.+)$", re.I)
_IF = re.compile(r"IF\s", re.I)
_THEN = re.compile(r"\s+THEN\s+(.+)$", re.I)
_GOTO = re.compile(r"GOTO\s+(.+)$", re.I)
_END = re.compile(r"END$", re.I)
_REM = re.compile(r"REM(?:\s.*)?$", re.I)


def _integral(n) -> Optional[int]:
    if isinstance(n, int):
        return n
    if n is None or not math.isfinite(n) or n != int(n):
        return None
    return int(n)


def _split_if(stmt: str) -> Optional[Tuple[str, str]]:
    """Split ``IF cond THEN stmt`` at the first THEN outside a string literal."""
    in_str = False
    for i in range(2, len(stmt)):
        ch = stmt[i]
        if ch == '"':
            in_str = not in_str
        elif not in_str and ch.isspace():
            m = _THEN.match(stmt, i)
            if m and stmt[2:i].strip():
                return stmt[2:i].strip(), m.group(1)
    return None


def _split_items(text: str, sep: str = ";") -> List[str]:
    items, buf, in_str = [], [], False
    for ch in text:
        if ch == '"':
            in_str = not in_str
        if ch == sep and not in_str:
            items.append("".join(buf)); buf = []
        else:
            buf.append(ch)
    items.append("".join(buf))
    return [s for s in items if s.strip()]


@dataclass
class RunResult:
    output: List[str]
    quantum_state: Optional[List[float]] = None
    circuit_trace: Optional[CircuitTrace] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output": list(self.output),
            "quantumState": self.quantum_state,
            "circuitTrace": self.circuit_trace.to_dict() if self.circuit_trace is not None else None,
        }


@dataclass
class ExecutionContext:
    """Everything one run mutates; built fresh by ``Interpreter.run``."""
    program: Program
    engine: Optional[QuantumEngine]
    variables: Dict[str, Value] = field(default_factory=dict)
    output: List[str] = field(default_factory=list)
    pc: int = 0
    steps: int = 0
    quantum_used: bool = False
    started: float = field(default_factory=time.monotonic)

    @property
    def evaluator(self) -> Evaluator:
        return Evaluator(self.variables)

    @property
    def halted(self) -> bool:
        return self.pc >= len(self.program)


class Interpreter:
    """Line-numbered Quantum BASIC interpreter driving a ``QuantumEngine``."""

    def __init__(
        self,
        engine: Optional[QuantumEngine] = None,
        config: Optional[InterpreterConfig] = None,
        logger: Optional[Logger] = None,
    ):
        self.engine = engine
        self.config = config or InterpreterConfig()
        self.logger = logger or getLogger(__name__)

    def set_quantum_engine(self, engine: QuantumEngine):
        self.engine = engine

    # ---- run ----------------------------------------------------------------
    def run(self, text: str) -> RunResult:
        program = Program(text).parse()
        ctx = ExecutionContext(program=program, engine=self.engine)
        self.logger.debug(f"Program: {len(program)} line(s)")
        try:
            while not ctx.halted:
                self._tick(ctx)
                line = program.lines[ctx.pc]
                self.logger.debug(f"[{line.number}] {line.statement}")
                self.execute_statement(ctx, line.statement)
                ctx.pc += 1
        except QBasicError as e:
            e.output = list(ctx.output)
            self.logger.info(f"Run aborted at step {ctx.steps}: {e}")
            raise
        return self._result(ctx)

    async def execute(self, text: str) -> RunResult:
        return self.run(text)

    def _tick(self, ctx: ExecutionContext):
        ctx.steps += 1
        cfg = self.config
        if cfg.max_steps is not None and ctx.steps > cfg.max_steps:
            raise ResourceExhausted(f"step limit of {cfg.max_steps} exceeded")
        if cfg.time_budget is not None and time.monotonic() - ctx.started > cfg.time_budget:
            raise ResourceExhausted(f"time budget of {cfg.time_budget}s exceeded")

    def _result(self, ctx: ExecutionContext) -> RunResult:
        engine = ctx.engine
        if engine is None or not ctx.quantum_used or not engine.initialized:
            return RunResult(output=ctx.output)
        return RunResult(
            output=ctx.output,
            quantum_state=engine.snapshot_probabilities(),
            circuit_trace=engine.circuit_trace(),
        )

    # ---- helpers --------------------------------------------------------------
    def _engine(self, ctx: ExecutionContext) -> QuantumEngine:
        if ctx.engine is None:
            raise QuantumEngineNotAttached("quantum instruction issued with no quantum engine attached")
        ctx.quantum_used = True
        return ctx.engine

    def _int_arg(self, ctx: ExecutionContext, expr: str, err) -> int:
        v = ctx.evaluator.evaluate(expr)
        n = _integral(as_number(v))
        if n is None:
            raise err(f"expected an integer, got {expr.strip()!r}")
        return n

    def _qubit(self, ctx: ExecutionContext, expr: str) -> int:
        return self._int_arg(ctx, expr, QubitIndexOutOfRange)

    # ---- dispatch -------------------------------------------------------------
    def execute_statement(self, ctx: ExecutionContext, stmt: str):
        m = _PRINT.match(stmt)
        if m:
            body = m.group(1) or ""
            ctx.output.append("".join(format_value(ctx.evaluator.evaluate(s)) for s in _split_items(body)))
            return

        if re.match(r"LET\s", stmt, re.I):
            m = _LET.match(stmt)
            if not m:
                raise UnknownStatement(stmt)
            name, expr = m.groups()
            ctx.variables[name] = ctx.evaluator.evaluate(expr)
            return

        m = _QINIT.match(stmt)
        if m:
            engine = self._engine(ctx)
            n = self._int_arg(ctx, m.group(1), InvalidQubitCount)
            engine.initialize(n)
            ctx.output.append(f"Initialized {n} qubit(s)")
            return

        m = _HADAMARD.match(stmt)
        if m:
            engine = self._engine(ctx); q = self._qubit(ctx, m.group(1))
            engine.hadamard(q)
            ctx.output.append(f"Applied Hadamard to qubit {q}")
            return

        m = _QNOT.match(stmt)
        if m:
            engine = self._engine(ctx); q = self._qubit(ctx, m.group(1))
            engine.pauli_x(q)
            ctx.output.append(f"Applied X gate to qubit {q}")
            return

        if re.match(r"CNOT\s", stmt, re.I):
            m = _CNOT.match(stmt)
            if not m:
                raise UnknownStatement(stmt)
            engine = self._engine(ctx)
            c = self._qubit(ctx, m.group(1)); t = self._qubit(ctx, m.group(2))
            engine.cnot(c, t)
            ctx.output.append(f"Applied CNOT: control={c}, target={t}")
            return

        m = _MEASURE.match(stmt)
        if m:
            engine = self._engine(ctx); q = self._qubit(ctx, m.group(1))
            result = engine.measure(q)
            ctx.variables[RESULT_VAR] = result
            ctx.output.append(f"Measured qubit {q}: {result}")
            return

        if _IF.match(stmt):
            parts = _split_if(stmt)
            if parts is None:
                raise MissingThen(stmt)
            cond, then = parts
            if ctx.evaluator.evaluate_condition(cond):
                self.execute_statement(ctx, then.strip())
            return

        m = _GOTO.match(stmt)
        if m:
            self._goto(ctx, m.group(1))
            return

        if _END.match(stmt):
            ctx.pc = len(ctx.program)
            return

        if _REM.match(stmt):
            return

        raise UnknownStatement(stmt)

    def _goto(self, ctx: ExecutionContext, expr: str):
        target = _integral(as_number(ctx.evaluator.evaluate(expr)))
        idx = ctx.program.index_of(target) if target is not None else None
        if idx is None:
            if self.config.strict_goto:
                raise UnknownLineTarget(expr.strip())
            # a missing target falls through to the next line
            self.logger.debug(f"GOTO {expr.strip()}: no such line, continuing")
            return
        # the loop increments after dispatch, so land one short
        ctx.pc = idx - 1


def run_program(
    text: str, config: Optional[InterpreterConfig] = None, logger: Optional[Logger] = None
) -> RunResult:
    """Run ``text`` on a fresh interpreter and quantum engine."""
    config = config or InterpreterConfig()
    engine = QuantumEngine(seed=config.seed, logger=logger, max_qubits=config.max_qubits)
    return Interpreter(engine, config, logger).run(text)


async def execute_program(
    text: str, config: Optional[InterpreterConfig] = None, logger: Optional[Logger] = None
) -> RunResult:
    return run_program(text, config, logger)

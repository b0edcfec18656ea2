"""Expression and condition evaluation for Quantum BASIC.

Expressions are evaluated best-effort: anything that cannot be reduced to a
number (malformed arithmetic, unbound names, division by zero) comes back as
the original text instead of raising.
"""
import math, operator, re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

Value = Union[int, float, str]

_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_TOKEN = re.compile(r"\s*(?:(\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)|([A-Za-z_]\w*)|(\S))")


def parse_number(text: str) -> Optional[Union[int, float]]:
    s = text.strip()
    if not _NUMBER.match(s):
        return None
    if re.fullmatch(r"[+-]?\d+", s):
        return int(s)
    return float(s)


def format_value(v: Value) -> str:
    """Default text form; integral floats drop their trailing ``.0``."""
    if isinstance(v, float) and math.isfinite(v) and v.is_integer():
        return str(int(v))
    return str(v)


def as_number(v: Value) -> Optional[Union[int, float]]:
    if isinstance(v, bool):
        return int(v)
    if isinstance(v, (int, float)):
        return v
    return parse_number(v)


# ---- AST --------------------------------------------------------------------

class ExprError(Exception):
    pass


@dataclass
class Num:
    value: Union[int, float]
    def eval(self, env: Dict[str, Value]):
        return self.value

@dataclass
class Var:
    name: str
    def eval(self, env: Dict[str, Value]):
        if self.name not in env:
            raise ExprError(f"unbound name {self.name}")
        v = env[self.name]
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ExprError(f"{self.name} is not numeric")
        return v

@dataclass
class Neg:
    operand: object
    def eval(self, env: Dict[str, Value]):
        return -self.operand.eval(env)

def _div(a, b):
    if b == 0:
        raise ExprError("division by zero")
    return a / b

_BINOPS: Dict[str, Callable] = {"+": operator.add, "-": operator.sub, "*": operator.mul, "/": _div}

@dataclass
class BinOp:
    op: str
    left: object
    right: object
    def eval(self, env: Dict[str, Value]):
        return _BINOPS[self.op](self.left.eval(env), self.right.eval(env))


# ---- recursive-descent parser ----------------------------------------------

def tokenize(text: str) -> List[Tuple[str, str]]:
    toks: List[Tuple[str, str]] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN.match(text, pos)
        if not m:  # trailing whitespace
            break
        num, name, sym = m.groups()
        if num is not None: toks.append(("num", num))
        elif name is not None: toks.append(("name", name))
        elif sym is not None: toks.append(("sym", sym))
        pos = m.end()
    return toks


class ExprParser:
    # expr   := term (('+'|'-') term)*
    # term   := factor (('*'|'/') factor)*
    # factor := ('+'|'-') factor | number | name | '(' expr ')'
    def __init__(self, text: str):
        self.toks = tokenize(text); self.i = 0

    def _peek(self) -> Optional[Tuple[str, str]]:
        return self.toks[self.i] if self.i < len(self.toks) else None

    def _take(self) -> Tuple[str, str]:
        tok = self._peek()
        if tok is None:
            raise ExprError("unexpected end of expression")
        self.i += 1
        return tok

    def parse(self):
        node = self.expr()
        if self._peek() is not None:
            raise ExprError(f"unexpected token {self._peek()[1]!r}")
        return node

    def expr(self):
        node = self.term()
        while self._peek() in (("sym", "+"), ("sym", "-")):
            node = BinOp(self._take()[1], node, self.term())
        return node

    def term(self):
        node = self.factor()
        while self._peek() in (("sym", "*"), ("sym", "/")):
            node = BinOp(self._take()[1], node, self.factor())
        return node

    def factor(self):
        kind, text = self._take()
        if (kind, text) == ("sym", "-"):
            return Neg(self.factor())
        if (kind, text) == ("sym", "+"):
            return self.factor()
        if kind == "num":
            return Num(parse_number(text))
        if kind == "name":
            return Var(text)
        if (kind, text) == ("sym", "("):
            node = self.expr()
            if self._take() != ("sym", ")"):
                raise ExprError("expected ')'")
            return node
        raise ExprError(f"unexpected token {text!r}")


# ---- evaluator ---------------------------------------------------------------

_COMPARATORS: Dict[str, Callable] = {
    "=": operator.eq, "<>": operator.ne,
    "<": operator.lt, ">": operator.gt,
    "<=": operator.le, ">=": operator.ge,
}


def split_condition(cond: str) -> Optional[Tuple[str, str, str]]:
    """Split at the first comparison outside a string literal, longest operator wins."""
    in_str = False
    for i, ch in enumerate(cond):
        if ch == '"':
            in_str = not in_str
        elif not in_str and ch in "<>=":
            op = cond[i:i+2] if cond[i:i+2] in ("<=", ">=", "<>") else ch
            return cond[:i], op, cond[i+len(op):]
    return None


class Evaluator:
    def __init__(self, variables: Dict[str, Value]):
        self.variables = variables

    def evaluate(self, expr: str) -> Value:
        s = expr.strip()
        if len(s) >= 2 and s.startswith('"') and s.endswith('"'):
            return s[1:-1]
        if s in self.variables:
            return self.variables[s]
        num = parse_number(s)
        if num is not None:
            return num
        try:
            return ExprParser(s).parse().eval(self.variables)
        except (ExprError, OverflowError, RecursionError):
            return s

    def evaluate_condition(self, cond: str) -> bool:
        parts = split_condition(cond)
        if parts is None:
            return False
        left, op, right = parts
        a, b = self.evaluate(left), self.evaluate(right)
        na, nb = as_number(a), as_number(b)
        if na is not None and nb is not None:
            return _COMPARATORS[op](na, nb)
        return _COMPARATORS[op](format_value(a), format_value(b))

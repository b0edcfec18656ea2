import re
from dataclasses import dataclass
from typing import List, Optional

from .errors import InvalidLineFormat

_LINE = re.compile(r"^(\d+)\s+(.+)$")


@dataclass
class Line:
    number: int
    statement: str


class Program:
    """Line table of a Quantum BASIC program, sorted by line number.

    Lines sharing a number keep their source order (``sorted`` is stable);
    ``index_of`` resolves a number to the first of them.
    """
    def __init__(self, text: str):
        self.text = text
        self.lines: List[Line] = []

    def _clean_lines(self) -> List[str]:
        return [s for s in (raw.strip() for raw in self.text.splitlines()) if s]

    def parse(self) -> "Program":
        lines: List[Line] = []
        for ln in self._clean_lines():
            m = _LINE.match(ln)
            if not m:
                raise InvalidLineFormat(ln)
            lines.append(Line(int(m.group(1)), m.group(2).strip()))
        self.lines = sorted(lines, key=lambda l: l.number)
        return self

    def index_of(self, number: int) -> Optional[int]:
        for i, ln in enumerate(self.lines):
            if ln.number == number:
                return i
        return None

    def __len__(self) -> int:
        return len(self.lines)


def parse_program(text: str) -> Program:
    return Program(text).parse()

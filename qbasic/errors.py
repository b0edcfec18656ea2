from typing import List, Optional


class QBasicError(Exception):
    """Base class for every condition that aborts a run.

    ``output`` holds the lines produced before the failure so a caller can
    still show them.
    """
    def __init__(self, message: str, output: Optional[List[str]] = None):
        super().__init__(message)
        self.output: List[str] = list(output or [])


class InvalidLineFormat(QBasicError, ValueError):
    def __init__(self, line: str):
        super().__init__(f"Invalid line format: {line}")
        self.line = line


class UnknownStatement(QBasicError, ValueError):
    def __init__(self, statement: str):
        super().__init__(f"Unknown statement: {statement}")
        self.statement = statement


class MissingThen(QBasicError, ValueError):
    def __init__(self, statement: str):
        super().__init__(f"IF without THEN: {statement}")
        self.statement = statement


class UnknownLineTarget(QBasicError, ValueError):
    def __init__(self, target):
        super().__init__(f"GOTO target line {target} does not exist")
        self.target = target


class InvalidQubitCount(QBasicError, ValueError):
    pass


class QubitIndexOutOfRange(QBasicError, IndexError):
    pass


class QuantumEngineNotAttached(QBasicError, RuntimeError):
    pass


class ResourceExhausted(QBasicError, RuntimeError):
    pass

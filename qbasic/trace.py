# qbasic/trace.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class GateRecord:
    gate: str  # "H", "X", "M" or "CNOT"
    qubit: Optional[int] = None
    control: Optional[int] = None
    target: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.gate == "CNOT":
            return {"gate": self.gate, "control": self.control, "target": self.target}
        return {"gate": self.gate, "qubit": self.qubit}

    def __str__(self) -> str:
        if self.gate == "CNOT":
            return f"CNOT q[{self.control}], q[{self.target}]"
        return f"{self.gate} q[{self.qubit}]"


@dataclass
class CircuitTrace:
    num_qubits: int = 0
    gates: List[GateRecord] = field(default_factory=list)

    def append(self, rec: GateRecord) -> GateRecord:
        self.gates.append(rec); return rec

    def __len__(self) -> int:
        return len(self.gates)

    def to_dict(self) -> Dict[str, Any]:
        return {"numQubits": self.num_qubits, "gates": [g.to_dict() for g in self.gates]}

    def dump(self) -> str:
        out = [f"circuit q[{self.num_qubits}] {{"]
        for i, g in enumerate(self.gates):
            out.append(f"  {i:>3}: {g}")
        out.append("}")
        return "\n".join(out)

"""
hsloop Three-Address Code

Triplet and quadruple tuples produced by the expression converter.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Triplet:
    """Three-address instruction: (operator, operand1, operand2, result)."""
    operator: str
    operand1: str
    operand2: Optional[str]
    result: str

    def as_tuple(self):
        return (self.operator, self.operand1, self.operand2, self.result)

    def __str__(self) -> str:
        operands = [o for o in (self.operand1, self.operand2) if o is not None]
        return f"({', '.join([self.operator, *operands, self.result])})"


@dataclass(frozen=True)
class Quadruple(Triplet):
    """Same shape as a triplet; a missing operand renders as '-'."""

    def __str__(self) -> str:
        operand1 = self.operand1 if self.operand1 is not None else "-"
        operand2 = self.operand2 if self.operand2 is not None else "-"
        return f"({self.operator}, {operand1}, {operand2}, {self.result})"


@dataclass
class ConversionResult:
    """
    Generated instructions and the name holding the expression's value.

    A subtree that is not an arithmetic expression yields no
    instructions and an error message instead.
    """
    triplets: List[Triplet] = field(default_factory=list)
    quadruples: List[Quadruple] = field(default_factory=list)
    final_result: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def triplets_summary(self) -> str:
        lines = ["=== INTERMEDIATE CODE (TRIPLETS) ==="]
        lines.extend(f"{i}: {t}" for i, t in enumerate(self.triplets, 1))
        if self.error:
            lines.append(f"Error: {self.error}")
        lines.append(f"Final result: {self.final_result}")
        return "\n".join(lines) + "\n"

    def quadruples_summary(self) -> str:
        lines = ["=== INTERMEDIATE CODE (QUADRUPLES) ==="]
        lines.extend(f"{i}: {q}" for i, q in enumerate(self.quadruples, 1))
        if self.error:
            lines.append(f"Error: {self.error}")
        lines.append(f"Final result: {self.final_result}")
        return "\n".join(lines) + "\n"

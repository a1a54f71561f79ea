"""
hsloop Code Optimizer

Source-to-source optimizer. Each stage works on the previous stage's
output:

1. Comment removal (same scanner as the lexer)
2. Whitespace normalization
3. Common subexpression elimination (CSE)
"""

import difflib
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from frontend.comments import CHAR_PATTERN, STRING_PATTERN, strip_comments
from frontend.tokens import KEYWORDS


# =============================================================================
# Patterns
# =============================================================================

_SPACE_RUN = re.compile(r"[ \t]+")

# A lone '=' (not part of == /= <= >= => and friends)
_ASSIGN = re.compile(r"(?<![=<>/!:+\-*&|\\])\s*=\s*(?![=>])")

# Binary arithmetic operator between two operands
_BINARY_OP = re.compile(r"(?<=[\w')\]])\s*([-+*/])\s*(?=[\w(\[])")

# Numeric literal cut off at its exponent marker, as in 1e or 2.5E
_EXPONENT_START = re.compile(r"(?<![\w.'])[0-9][0-9.]*[eE]$")

_OPERAND = r"(?:[A-Za-z_][A-Za-z0-9_']*|[0-9]+(?:\.[0-9]+)?)"

# Overlapping search for "operand op operand"
_EXPRESSION = re.compile(
    r"(?<![\w'.])(?=((%s)\s*(\+|-|\*|/|&&|\|\|)\s*(%s))(?![\w'.]))" % (_OPERAND, _OPERAND))

_ASSIGNMENT = re.compile(r"(?<![\w'])([a-z_][A-Za-z0-9_']*)\s*(?<![=<>/!:])=(?![=>])([^;\n]*)")

_PRECEDENCE = {'||': 1, '&&': 2, '+': 3, '-': 3, '*': 4, '/': 4}

# Characters that may sit directly before or after a standalone expression
_OPEN_BOUNDARY = frozenset('=([,;{<>')
_CLOSE_BOUNDARY = frozenset(')],;}=<>')


@dataclass
class OptimizationResult:
    """Outcome of one optimize() call."""
    optimized_code: str
    log: List[str] = field(default_factory=list)
    success: bool = True
    error_message: Optional[str] = None
    comments_removed: int = 0
    spaces_optimized: int = 0
    subexpressions_eliminated: int = 0
    original_size: int = 0
    optimized_size: int = 0
    subexpressions: Dict[str, str] = field(default_factory=dict)

    @property
    def reduction_percent(self) -> float:
        if self.original_size == 0:
            return 0.0
        return (1.0 - self.optimized_size / self.original_size) * 100


# =============================================================================
# Whitespace helpers
# =============================================================================

def _map_code(line: str, fn: Callable[[str], str]) -> str:
    """Apply fn to the parts of a line outside string literals."""
    parts = []
    last = 0
    for m in STRING_PATTERN.finditer(line):
        parts.append(fn(line[last:m.start()]))
        parts.append(m.group())
        last = m.end()
    parts.append(fn(line[last:]))
    return "".join(parts)


def _has_quoted_literal(line: str) -> bool:
    return '"' in line or CHAR_PATTERN.search(line) is not None


def normalize_line(line: str) -> str:
    """Canonical spacing for one line of code."""
    line = _map_code(line, lambda s: _SPACE_RUN.sub(" ", s)).strip()
    line = _map_code(line, lambda s: _ASSIGN.sub(" = ", s))
    if not _has_quoted_literal(line):
        line = _BINARY_OP.sub(_space_operator, line)
    return line.strip()


def _space_operator(m: re.Match) -> str:
    """One space around an operator, except the sign of an exponent."""
    if m.group(1) in "-+" and _EXPONENT_START.search(m.string, 0, m.start()):
        return m.group()
    return f" {m.group(1)} "


def _changed_characters(before: str, after: str) -> int:
    """Characters inserted, deleted or replaced between two texts."""
    if before == after:
        return 0
    matcher = difflib.SequenceMatcher(None, before, after, autojunk=False)
    return sum(max(i2 - i1, j2 - j1)
               for tag, i1, i2, j1, j2 in matcher.get_opcodes() if tag != 'equal')


# =============================================================================
# Common subexpression elimination
# =============================================================================

@dataclass
class _Occurrence:
    start: int
    end: int
    key: str


def _neighbour_before(line: str, pos: int) -> str:
    """The non-space text ending right before pos: a word, or one character."""
    i = pos
    while i > 0 and line[i - 1] == ' ':
        i -= 1
    if i == 0:
        return ""
    j = i
    while j > 0 and (line[j - 1].isalnum() or line[j - 1] in "_'"):
        j -= 1
    if j < i:
        return line[j:i]
    # Operators may be two characters long
    if i >= 2 and line[i - 2:i] in _PRECEDENCE:
        return line[i - 2:i]
    return line[i - 1]


def _neighbour_after(line: str, pos: int) -> str:
    """The non-space text starting after pos: a word, or one character."""
    i = pos
    while i < len(line) and line[i] == ' ':
        i += 1
    if i == len(line):
        return ""
    j = i
    while j < len(line) and (line[j].isalnum() or line[j] in "_'"):
        j += 1
    if j > i:
        return line[i:j]
    if line[i:i + 2] in _PRECEDENCE:
        return line[i:i + 2]
    return line[i]


def _bounds_expression(neighbour: str, op: str, closing: bool) -> bool:
    """Check whether a neighbour leaves ``left op right`` as a real subexpression."""
    if neighbour == "" or neighbour in KEYWORDS:
        return True
    if neighbour in _PRECEDENCE:
        # Before the expression an equal operator binds left first;
        # after it only a tighter one steals the right operand.
        if closing:
            return _PRECEDENCE[neighbour] <= _PRECEDENCE[op]
        return _PRECEDENCE[neighbour] < _PRECEDENCE[op]
    boundary = _CLOSE_BOUNDARY if closing else _OPEN_BOUNDARY
    return neighbour in boundary


def find_subexpressions(line: str) -> List[_Occurrence]:
    """
    Every standalone ``operand op operand`` expression in a line.

    An occurrence is skipped when a neighbouring operator or an
    application would bind one of its operands first (``a + b`` in
    ``x * a + b`` or in ``f a + b``).
    """
    found = []
    for m in _EXPRESSION.finditer(line):
        left, op, right = m.group(2), m.group(3), m.group(4)
        before = _neighbour_before(line, m.start(1))
        after = _neighbour_after(line, m.end(1))
        if not (_bounds_expression(before, op, False) and _bounds_expression(after, op, True)):
            continue
        found.append(_Occurrence(m.start(1), m.end(1), f"{left} {op} {right}"))
    return found


def _reassigned_names(lines: List[str]) -> set:
    """Names assigned more than once, or assigned from themselves."""
    counts: Dict[str, int] = {}
    self_referential = set()
    for line in lines:
        for m in _ASSIGNMENT.finditer(line):
            name = m.group(1)
            counts[name] = counts.get(name, 0) + 1
            if re.search(r"(?<![\w'])%s(?![\w'])" % re.escape(name), m.group(2)):
                self_referential.add(name)
    return {name for name, n in counts.items() if n > 1} | self_referential


class _CSEPass:
    """State of one elimination pass; built fresh by every optimize() call."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        self.counter = 0
        # expression -> temporary name, in extraction order
        self.table: Dict[str, str] = {}
        self._definition = re.compile(r"^%s\d+ = " % re.escape(prefix))

    def run(self, code: str) -> str:
        lines = code.split("\n")
        candidates = [i for i, line in enumerate(lines)
                      if '"' not in line and not self._definition.match(line)]
        mutable = _reassigned_names(lines)

        counts: Dict[str, int] = {}
        for i in candidates:
            for occ in find_subexpressions(lines[i]):
                counts[occ.key] = counts.get(occ.key, 0) + 1

        for expr, n in counts.items():
            if n < 2:
                continue
            left, _, right = expr.split(" ")
            if left in mutable or right in mutable:
                continue
            self.table[expr] = self.new_temporary(code)

        if not self.table:
            return code

        for i in candidates:
            lines[i] = self.substitute(lines[i])
        return "\n".join(lines)

    def new_temporary(self, code: str) -> str:
        """Next unused temporary name."""
        while True:
            name = f"{self.prefix}{self.counter}"
            self.counter += 1
            if not re.search(r"(?<![\w'])%s(?![\w'])" % re.escape(name), code):
                return name

    def substitute(self, line: str) -> str:
        """Replace every known expression in a line with its temporary."""
        replacements = []
        last_end = -1
        for occ in find_subexpressions(line):
            if occ.key not in self.table or occ.start < last_end:
                continue
            start, end = occ.start, occ.end
            # "(a + b)" collapses to the temporary itself
            if start > 0 and end < len(line) and line[start - 1] == '(' and line[end] == ')':
                start, end = start - 1, end + 1
            replacements.append((start, end, self.table[occ.key]))
            last_end = end

        for start, end, name in reversed(replacements):
            line = line[:start] + name + line[end:]
        return line


# =============================================================================
# Optimizer
# =============================================================================

class CodeOptimizer:
    """
    Source code optimizer.

    Every call to optimize() starts from a clean temporary counter and
    subexpression table.
    """

    def __init__(self, debug: bool = False, temp_prefix: str = "cse"):
        """
        Create an optimizer.

        Args:
            debug: Print each step as it runs
            temp_prefix: Name prefix for extracted subexpressions
        """
        self.debug = debug
        self.temp_prefix = temp_prefix

    def optimize(self, code: str) -> OptimizationResult:
        """
        Optimize source code.

        Never raises; internal failures produce success=False.
        """
        log: List[str] = []
        try:
            return self._optimize(code, log)
        except Exception as e:
            log.append(f"ERROR: {e}")
            if self.debug:
                print(f"Optimization failed: {e}")
            return OptimizationResult("", log, success=False, error_message=str(e),
                                      original_size=len(code) if isinstance(code, str) else 0)

    def _optimize(self, code: str, log: List[str]) -> OptimizationResult:
        log.append("=== STARTING OPTIMIZATION ===")

        log.append("STEP 1: Removing comments...")
        without_comments, comments_removed = self.remove_comments(code)
        log.append(f"  Comments removed: {comments_removed}")
        self._trace(log)

        log.append("STEP 2: Optimizing whitespace...")
        normalized = self.optimize_spaces(without_comments)
        spaces_optimized = _changed_characters(without_comments, normalized)
        log.append(f"  Whitespace characters optimized: {spaces_optimized}")
        self._trace(log)

        log.append("STEP 3: Eliminating common subexpressions...")
        optimized, extracted = self.eliminate_common_subexpressions(normalized)
        log.append(f"  Subexpressions eliminated: {len(extracted)}")
        self._trace(log)

        if extracted:
            log.append("Extracted subexpressions:")
            definitions = []
            for expr, temp in extracted.items():
                definitions.append(f"{temp} = {expr}")
                log.append(f"  {temp} = {expr}")
            optimized = "\n".join(definitions + ([optimized] if optimized else []))

        result = OptimizationResult(
            optimized,
            log,
            comments_removed=comments_removed,
            spaces_optimized=spaces_optimized,
            subexpressions_eliminated=len(extracted),
            original_size=len(code),
            optimized_size=len(optimized),
            subexpressions={temp: expr for expr, temp in extracted.items()},
        )

        log.append("=== OPTIMIZATION COMPLETE ===")
        log.append(f"Original size: {result.original_size} characters")
        log.append(f"Optimized size: {result.optimized_size} characters")
        log.append(f"Reduction: {result.original_size - result.optimized_size} characters "
                   f"({result.reduction_percent:.1f}%)")
        self._trace(log)

        return result

    def remove_comments(self, code: str) -> Tuple[str, int]:
        """Strip line and nested block comments, keeping newlines."""
        return strip_comments(code)

    def optimize_spaces(self, code: str) -> str:
        """Normalize spacing and drop blank lines."""
        lines = [normalize_line(line) for line in code.split("\n")]
        text = re.sub(r"\n{3,}", "\n\n", "\n".join(lines))
        return "\n".join(line for line in text.split("\n") if line)

    def eliminate_common_subexpressions(self, code: str) -> Tuple[str, Dict[str, str]]:
        """
        Extract repeated expressions into temporaries.

        Returns:
            (rewritten code, expression -> temporary name)
        """
        cse = _CSEPass(self.temp_prefix)
        rewritten = cse.run(code)
        return rewritten, dict(cse.table)

    def _trace(self, log: List[str]) -> None:
        if self.debug:
            print(log[-1])


def optimize(code: str) -> OptimizationResult:
    """Optimize source code with a default optimizer."""
    return CodeOptimizer().optimize(code)

"""
hsloop Semantic Validator

Structural and type checks for the imperative loop constructs
(while, for, loop, ciclo) of an otherwise functional language.

Works on the token list, not the AST, so it can report problems in
programs the parser rejects. Nothing here raises: every finding is an
entry in the returned report.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple
from .tokens import Token, TokenType


class VarType(Enum):
    """Inferred type tags."""
    NUMERIC = "numeric"
    STRING = "string"
    BOOLEAN = "boolean"
    CHAR = "char"
    UNKNOWN = "unknown"


LITERAL_VAR_TYPES = {
    TokenType.INTEGER: VarType.NUMERIC,
    TokenType.FLOAT: VarType.NUMERIC,
    TokenType.STRING: VarType.STRING,
    TokenType.BOOLEAN: VarType.BOOLEAN,
    TokenType.CHAR: VarType.CHAR,
}

ORDER_OPERATORS = ('<', '>', '<=', '>=')
EQUALITY_OPERATORS = ('==', '/=', '!=')
LOGICAL_OPERATORS = ('&&', '||')

# Tokens after which a simple assignment's value is complete
_STATEMENT_ENDS = (';', '}', ',')


@dataclass
class TypeContext:
    """
    Name -> type map for one validation pass.

    The first type bound to a name is kept for the rest of the pass.
    """
    types: Dict[str, VarType] = field(default_factory=dict)

    def lookup(self, name: str) -> VarType:
        return self.types.get(name, VarType.UNKNOWN)

    def bind(self, name: str, var_type: VarType) -> bool:
        """Bind a name unless it is already bound; UNKNOWN is never bound."""
        if var_type == VarType.UNKNOWN or name in self.types:
            return False
        self.types[name] = var_type
        return True

    def __contains__(self, name: str) -> bool:
        return name in self.types


class Severity(Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True)
class SemanticIssue:
    """One error or warning tied to a source line."""
    severity: Severity
    line: int
    message: str

    def __str__(self) -> str:
        return f"{self.severity.value} (line {self.line}): {self.message}"


@dataclass
class LoopInfo:
    """A detected loop keyword."""
    keyword: str
    line: int
    position: int
    well_formed: bool = True


@dataclass
class ValidationReport:
    """Result of validating the cycles of a token list."""
    loops: List[LoopInfo] = field(default_factory=list)
    issues: List[SemanticIssue] = field(default_factory=list)
    types: TypeContext = field(default_factory=TypeContext)

    @property
    def errors(self) -> List[SemanticIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[SemanticIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    def render(self) -> str:
        """Format the report as text."""
        lines = [
            "=== SEMANTIC ANALYSIS OF CYCLES ===",
            f"Total cycles detected: {len(self.loops)}",
            "",
        ]

        if not self.loops:
            lines.append("No cycles were detected in the code.")
            lines.append("Note: the language is functional and does not need imperative cycles.")
            return "\n".join(lines) + "\n"

        lines.append("--- INFORMATION ---")
        for loop in self.loops:
            lines.append(f"Cycle detected: '{loop.keyword}' at line {loop.line}, "
                         f"position {loop.position}")
            if loop.well_formed:
                lines.append("  -> Cycle is semantically well-formed")
        lines.append("")

        if self.issues:
            lines.append("--- SEMANTIC ERRORS AND WARNINGS ---")
            for i, issue in enumerate(self.issues, 1):
                lines.append(f"{i}. {issue}")
        else:
            lines.append("All cycles are semantically well-formed.")

        return "\n".join(lines) + "\n"


@dataclass
class _LoopStructure:
    """Token indices of a loop's delimiters (None when missing)."""
    open_paren: Optional[int] = None
    close_paren: Optional[int] = None
    open_brace: Optional[int] = None
    close_brace: Optional[int] = None


def compatible(a: VarType, b: VarType) -> bool:
    """Types are compatible when equal; char and string coerce."""
    return a == b or {a, b} == {VarType.CHAR, VarType.STRING}


def infer_type(token: Token, context: TypeContext) -> VarType:
    """Classify a single token by its lexical kind or its binding."""
    if token.type in LITERAL_VAR_TYPES:
        return LITERAL_VAR_TYPES[token.type]
    if token.type == TokenType.IDENTIFIER_VAR:
        return context.lookup(token.lexeme)
    return VarType.UNKNOWN


def infer_types(tokens: List[Token]) -> TypeContext:
    """
    Seed a type map from every simple ``name = literal`` assignment.

    A literal may carry a leading unary minus. The value must be the whole
    right-hand side: followed by nothing, a new line or a statement end.
    """
    context = TypeContext()

    for i, token in enumerate(tokens[:-2]):
        if token.type != TokenType.IDENTIFIER_VAR or not tokens[i + 1].is_operator('='):
            continue

        k = i + 2
        if tokens[k].is_operator('-') and k + 1 < len(tokens) \
                and tokens[k + 1].type in (TokenType.INTEGER, TokenType.FLOAT):
            k += 1

        value = tokens[k]
        if value.is_literal() and _ends_statement(tokens, k):
            context.bind(token.lexeme, LITERAL_VAR_TYPES[value.type])

    return context


def _ends_statement(tokens: List[Token], k: int) -> bool:
    """Check that nothing continues the expression ending at tokens[k]."""
    if k + 1 >= len(tokens):
        return True
    following = tokens[k + 1]
    if following.line != tokens[k].line:
        return True
    return following.type == TokenType.TUPLE_END or (
        following.type == TokenType.SYMBOL and following.lexeme in _STATEMENT_ENDS)


def _matching(tokens: List[Token], start: int, is_open, is_close) -> Optional[int]:
    """Index of the delimiter closing tokens[start], tracking nesting."""
    depth = 0
    for j in range(start, len(tokens)):
        if is_open(tokens[j]):
            depth += 1
        elif is_close(tokens[j]):
            depth -= 1
            if depth == 0:
                return j
    return None


def _is_open_paren(t: Token) -> bool:
    return t.type == TokenType.TUPLE_START


def _is_close_paren(t: Token) -> bool:
    return t.type == TokenType.TUPLE_END


def _is_open_brace(t: Token) -> bool:
    return t.is_symbol('{')


def _is_close_brace(t: Token) -> bool:
    return t.is_symbol('}')


def _span_text(span: List[Token]) -> str:
    return " ".join(t.lexeme for t in span)


class CycleValidator:
    """
    Validates every loop of one token list.

    A validator is built per call; its TypeContext is seeded at
    construction and discarded with it.
    """

    def __init__(self, tokens: List[Token], debug: bool = False):
        self.tokens = tokens
        self.debug = debug
        self.context = infer_types(tokens)
        self.report = ValidationReport(types=self.context)
        self._seen: Set[Tuple[Severity, int, str]] = set()

    def run(self) -> ValidationReport:
        if self.debug:
            print("=== DEBUG: FIRST 20 TOKENS ===")
            for i, token in enumerate(self.tokens[:20]):
                print(f"{i}: {token}")
            print(f"Seeded types: {self._describe_types()}")

        for k, token in enumerate(self.tokens):
            if token.is_loop_keyword():
                self.check_loop(k)

        return self.report

    # =========================================================================
    # Per-loop checks
    # =========================================================================

    def check_loop(self, k: int) -> None:
        keyword = self.tokens[k]
        loop = LoopInfo(keyword.lexeme, keyword.line, keyword.position)
        self.report.loops.append(loop)
        errors_before = len(self.report.errors)

        structure = self.locate(k)
        self.check_structure(keyword, structure)

        condition = self.condition_region(k, structure)
        if keyword.lexeme == 'for':
            self.check_for_arity(keyword, condition)
        self.check_condition_types(keyword, condition)
        if keyword.lexeme != 'for':
            self.check_constant_condition(keyword, condition)

        if structure.open_brace is not None:
            end = structure.close_brace if structure.close_brace is not None else len(self.tokens)
            body = self.tokens[structure.open_brace + 1:end]
            if not body and structure.close_brace is not None:
                self.warning(keyword, f"'{keyword.lexeme}' body is empty")
            self.check_body(body)

        loop.well_formed = len(self.report.errors) == errors_before

    def locate(self, k: int) -> _LoopStructure:
        """Find the condition parens and the body braces of the loop at k."""
        tokens = self.tokens
        structure = _LoopStructure()

        j = k + 1
        while j < len(tokens):
            t = tokens[j]
            if t.type == TokenType.TUPLE_START:
                structure.open_paren = j
                break
            if t.is_symbol('{') or t.is_loop_keyword() or self._declaration_at(j):
                break
            j += 1

        if structure.open_paren is not None:
            structure.close_paren = _matching(tokens, structure.open_paren,
                                              _is_open_paren, _is_close_paren)

        j = (structure.close_paren if structure.close_paren is not None else k) + 1
        while j < len(tokens):
            t = tokens[j]
            if t.is_symbol('{'):
                structure.open_brace = j
                break
            if t.is_loop_keyword():
                break
            j += 1

        if structure.open_brace is not None:
            structure.close_brace = _matching(tokens, structure.open_brace,
                                              _is_open_brace, _is_close_brace)

        return structure

    def check_structure(self, keyword: Token, s: _LoopStructure) -> None:
        kw = keyword.lexeme
        if s.open_paren is None:
            self.error(keyword, f"'{kw}' cycle is missing its condition: expected '(' after '{kw}'")
        elif s.close_paren is None:
            self.error(keyword, f"'{kw}' condition is not closed: missing ')'")

        if s.open_brace is None:
            self.error(keyword, f"'{kw}' cycle is missing its code block: expected '{{'")
        elif s.close_brace is None:
            self.error(keyword, f"'{kw}' code block is not closed: missing '}}'")

    def condition_region(self, k: int, s: _LoopStructure) -> List[Token]:
        """Tokens of the loop header, with or without its parens."""
        if s.open_paren is not None:
            if s.close_paren is not None:
                end = s.close_paren
            elif s.open_brace is not None:
                end = s.open_brace
            else:
                end = len(self.tokens)
            return self.tokens[s.open_paren + 1:end]

        if s.open_brace is not None:
            return self.tokens[k + 1:s.open_brace]

        # No delimiters at all: the rest of the keyword's line
        line = self.tokens[k].line
        end = k + 1
        while end < len(self.tokens) and self.tokens[end].line == line \
                and not self.tokens[end].is_loop_keyword():
            end += 1
        return self.tokens[k + 1:end]

    def check_for_arity(self, keyword: Token, condition: List[Token]) -> None:
        """A for header needs exactly two top-level ';' separators."""
        depth = 0
        count = 0
        for t in condition:
            if t.type in (TokenType.TUPLE_START, TokenType.LIST_START) or t.is_symbol('{'):
                depth += 1
            elif t.type in (TokenType.TUPLE_END, TokenType.LIST_END) or t.is_symbol('}'):
                depth -= 1
            elif depth == 0 and t.is_symbol(';'):
                count += 1

        if count != 2:
            relation = "fewer" if count < 2 else "more"
            self.error(keyword,
                       f"'for' header must have exactly 2 ';' separators "
                       f"(init; condition; update), found {count} ({relation} than 2)")

    def check_condition_types(self, keyword: Token, condition: List[Token]) -> None:
        """Check operand types of comparison and logical operators."""
        for m, t in enumerate(condition):
            if not t.is_operator():
                continue
            op = t.lexeme

            if op in ORDER_OPERATORS or op in EQUALITY_OPERATORS:
                left = condition[m - 1] if m > 0 else None
                right = condition[m + 1] if m + 1 < len(condition) else None
                if left is None or right is None:
                    continue
                lt = infer_type(left, self.context)
                rt = self._right_operand_type(condition, m + 1)
                if VarType.UNKNOWN in (lt, rt):
                    continue
                if op in ORDER_OPERATORS and not (lt == rt == VarType.NUMERIC):
                    self.error(t, f"operator '{op}' requires numeric operands, got "
                                  f"'{left.lexeme}' ({lt.value}) and '{right.lexeme}' ({rt.value})")
                elif op in EQUALITY_OPERATORS and not compatible(lt, rt):
                    self.error(t, f"operator '{op}' compares incompatible types: "
                                  f"'{left.lexeme}' ({lt.value}) and '{right.lexeme}' ({rt.value})")

            elif op in LOGICAL_OPERATORS:
                left_span, right_span = self._logical_operands(condition, m)
                lt = self._span_type(left_span)
                rt = self._span_type(right_span)
                if VarType.UNKNOWN in (lt, rt):
                    continue
                if lt != VarType.BOOLEAN or rt != VarType.BOOLEAN:
                    self.error(t, f"operator '{op}' requires boolean operands, got "
                                  f"'{_span_text(left_span)}' ({lt.value}) and "
                                  f"'{_span_text(right_span)}' ({rt.value})")

    def check_constant_condition(self, keyword: Token, condition: List[Token]) -> None:
        if len(condition) == 1 and condition[0].type == TokenType.BOOLEAN \
                and condition[0].lexeme == 'True':
            self.warning(keyword,
                         f"'{keyword.lexeme}' condition is always True: possible infinite loop")

    def check_body(self, body: List[Token]) -> None:
        """Check simple assignments in a loop body against the type map."""
        j = 0
        while j < len(body) - 1:
            t = body[j]
            if t.type != TokenType.IDENTIFIER_VAR or not body[j + 1].is_operator('='):
                j += 1
                continue

            rhs = self._assignment_rhs(body, j + 2)
            rhs_type = self.expression_type(rhs, t)
            current = self.context.lookup(t.lexeme)

            if current == VarType.UNKNOWN:
                self.context.bind(t.lexeme, rhs_type)
            elif rhs_type != VarType.UNKNOWN and not compatible(current, rhs_type):
                self.error(t, f"type mismatch assigning to '{t.lexeme}': "
                              f"inferred {current.value}, assigned {rhs_type.value} "
                              f"('{_span_text(rhs)}')")

            j += 2 + len(rhs)

    def expression_type(self, span: List[Token], anchor: Token) -> VarType:
        """
        Infer the type of a right-hand side.

        Reports numeric/string mixing. Any unresolved operand makes the
        whole expression UNKNOWN.
        """
        if not span:
            return VarType.UNKNOWN

        if any(t.is_operator() and t.lexeme in ORDER_OPERATORS + EQUALITY_OPERATORS
               + LOGICAL_OPERATORS for t in span):
            return VarType.BOOLEAN

        operand_types = [infer_type(t, self.context) for t in span
                         if t.is_literal() or t.type == TokenType.IDENTIFIER_VAR]
        known = set(operand_types) - {VarType.UNKNOWN}

        if VarType.NUMERIC in known and known & {VarType.STRING, VarType.CHAR}:
            self.error(anchor, f"expression mixes numeric and string operands: '{_span_text(span)}'")
            return VarType.UNKNOWN

        if not operand_types or VarType.UNKNOWN in operand_types:
            return VarType.UNKNOWN
        if len(known) == 1:
            return known.pop()
        if known == {VarType.STRING, VarType.CHAR}:
            return VarType.STRING
        return VarType.UNKNOWN

    # =========================================================================
    # Helpers
    # =========================================================================

    def _declaration_at(self, j: int) -> bool:
        tokens = self.tokens
        return (tokens[j].type == TokenType.IDENTIFIER_VAR and j + 1 < len(tokens)
                and tokens[j + 1].is_operator('='))

    def _right_operand_type(self, condition: List[Token], idx: int) -> VarType:
        t = condition[idx]
        if t.is_operator('-') and idx + 1 < len(condition) \
                and condition[idx + 1].type in (TokenType.INTEGER, TokenType.FLOAT):
            return VarType.NUMERIC
        return infer_type(t, self.context)

    def _logical_operands(self, condition: List[Token], m: int) -> Tuple[List[Token], List[Token]]:
        """Token spans on either side of a logical operator."""
        def is_boundary(t: Token) -> bool:
            return t.is_symbol(';') or (t.is_operator() and t.lexeme in LOGICAL_OPERATORS)

        start = m
        while start > 0 and not is_boundary(condition[start - 1]):
            start -= 1
        end = m + 1
        while end < len(condition) and not is_boundary(condition[end]):
            end += 1
        return condition[start:m], condition[m + 1:end]

    def _span_type(self, span: List[Token]) -> VarType:
        if any(t.is_operator() and t.lexeme in ORDER_OPERATORS + EQUALITY_OPERATORS
               for t in span):
            return VarType.BOOLEAN
        inner = [t for t in span if t.type not in (TokenType.TUPLE_START, TokenType.TUPLE_END)]
        if len(inner) == 1:
            return infer_type(inner[0], self.context)
        return VarType.UNKNOWN

    def _assignment_rhs(self, body: List[Token], start: int) -> List[Token]:
        """Tokens of an assignment value: up to a statement end or a new line."""
        end = start
        while end < len(body):
            t = body[end]
            if t.is_symbol(';') or t.is_symbol('{') or t.is_symbol('}') or t.is_loop_keyword():
                break
            if end > start and t.line != body[end - 1].line:
                break
            if t.type == TokenType.IDENTIFIER_VAR and end + 1 < len(body) \
                    and body[end + 1].is_operator('='):
                break
            end += 1
        return body[start:end]

    def _describe_types(self) -> str:
        return ", ".join(f"{name}: {t.value}" for name, t in self.context.types.items()) or "(none)"

    def error(self, token: Token, message: str) -> None:
        self._add(Severity.ERROR, token, message)

    def warning(self, token: Token, message: str) -> None:
        self._add(Severity.WARNING, token, message)

    def _add(self, severity: Severity, token: Token, message: str) -> None:
        # Nested loop bodies are scanned by every enclosing loop; an issue
        # is identified by the token it is reported against
        key = (severity, token.position, message)
        if key in self._seen:
            return
        self._seen.add(key)
        self.report.issues.append(SemanticIssue(severity, token.line, message))


def analyze_cycles(tokens: List[Token], debug: bool = False) -> ValidationReport:
    """Validate every loop, returning the structured report."""
    return CycleValidator(tokens, debug=debug).run()


def validate_cycles(tokens: List[Token], debug: bool = False) -> str:
    """Validate every loop, returning the report as text."""
    return analyze_cycles(tokens, debug=debug).render()

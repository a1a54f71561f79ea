"""
hsloop Expression Converter

Converts arithmetic expressions to prefix notation and to three-address
code (triplets and quadruples), either from an AST subtree or, for
prefix notation, straight from an infix string.

Subtrees are walked with an explicit stack, so long operator chains
convert without hitting the interpreter's recursion limit. A subtree
holding a non-arithmetic node converts to nothing.
"""

from typing import List, Optional, Tuple, Type
from frontend.ast import *
from .tac import Triplet, Quadruple, ConversionResult


# =============================================================================
# AST-based conversion
# =============================================================================

class _Operands(ASTVisitor):
    """Children of an arithmetic node; None for any other node."""

    def visit_literal(self, node: Literal) -> list:
        return []

    def visit_identifier(self, node: Identifier) -> list:
        return []

    def visit_binary_op(self, node: BinaryOp) -> list:
        return [node.left, node.right]

    def visit_unary_op(self, node: UnaryOp) -> list:
        return [node.operand]

    def visit_program(self, node: Program):
        return None

    def visit_decl(self, node: Decl):
        return None

    def visit_if(self, node: If):
        return None

    def visit_let(self, node: Let):
        return None

    def visit_apply(self, node: Apply):
        return None

    def visit_list(self, node: ListLit):
        return None

    def visit_tuple(self, node: TupleLit):
        return None

    def visit_cycle(self, node: Cycle):
        return None


def _label(node: ASTNode) -> str:
    """Operator of an operator node, text of an operand."""
    if isinstance(node, (BinaryOp, UnaryOp)):
        return node.op
    if isinstance(node, Literal):
        return node.token.lexeme
    return node.name


def _walk(node: ASTNode, post_order: bool = False) -> Tuple[List[ASTNode], Optional[ASTNode]]:
    """
    List an arithmetic subtree in pre-order (operator, left, right), or
    in post-order (left, right, operator).

    Returns:
        (nodes, None), or ([], offending node) when the subtree holds a
        node with no arithmetic meaning
    """
    operands = _Operands()
    order = []
    stack = [node]

    while stack:
        current = stack.pop()
        children = current.accept(operands)
        if children is None:
            return [], current
        order.append(current)
        stack.extend(children if post_order else reversed(children))

    if post_order:
        order.reverse()
    return order, None


def _unsupported(node: ASTNode, purpose: str) -> str:
    return f"cannot convert {type(node).__name__} node to {purpose}"


class ExpressionConverter:
    """
    Arithmetic expression converter.

    Temporaries are named t1, t2, ... from a counter shared by every
    conversion until reset_temporals() is called. A failed conversion
    leaves the counter untouched.
    """

    def __init__(self, debug: bool = False):
        self.temporal_counter = 1
        self.debug = debug

    def reset_temporals(self) -> None:
        """Restart temporary numbering at t1."""
        self.temporal_counter = 1

    def next_temporal(self) -> str:
        name = f"t{self.temporal_counter}"
        self.temporal_counter += 1
        return name

    def convert_to_prefix(self, node: Optional[ASTNode]) -> str:
        """
        Render an expression subtree in prefix notation.

        Returns "" for None and for a subtree that is not arithmetic.
        """
        if node is None:
            return ""
        order, bad = _walk(node)
        if bad is not None:
            if self.debug:
                print(_unsupported(bad, "prefix notation"))
            return ""
        return "".join(_label(n) for n in order)

    def convert_to_triplets(self, node: Optional[ASTNode]) -> ConversionResult:
        """Generate triplets for an expression subtree."""
        code, final, error = self._emit(node, Triplet)
        return ConversionResult(triplets=code, final_result=final, error=error)

    def convert_to_quadruples(self, node: Optional[ASTNode]) -> ConversionResult:
        """Generate quadruples for an expression subtree."""
        code, final, error = self._emit(node, Quadruple)
        return ConversionResult(quadruples=code, final_result=final, error=error)

    def _emit(self, node: Optional[ASTNode], instruction: Type[Triplet]):
        """One instruction per operator node, operands first."""
        if node is None:
            return [], "", None

        order, bad = _walk(node, post_order=True)
        if bad is not None:
            error = _unsupported(bad, "three-address code")
            if self.debug:
                print(error)
            return [], "", error

        code: List[Triplet] = []
        values: List[str] = []

        for current in order:
            if isinstance(current, BinaryOp):
                right = values.pop()
                left = values.pop()
                temporal = self.next_temporal()
                code.append(instruction(current.op, left, right, temporal))
                values.append(temporal)
            elif isinstance(current, UnaryOp):
                temporal = self.next_temporal()
                code.append(instruction(current.op, values.pop(), None, temporal))
                values.append(temporal)
            else:
                values.append(_label(current))

        return code, values.pop(), None

    def convert_infix_string_to_prefix(self, expression: Optional[str]) -> str:
        """
        Convert an infix string to prefix notation without an AST.

        Reverses the expression (swapping parentheses), converts that to
        postfix with shunting-yard, and reverses the postfix result.
        Operands are single letters or digits.
        """
        if expression is None:
            return ""
        expression = "".join(expression.split())
        postfix = infix_to_postfix(reverse_and_swap_parens(expression))
        return postfix[::-1]


# =============================================================================
# String-based infix -> prefix
# =============================================================================

def is_operator(c: str) -> bool:
    return c in "+-*/^"


def precedence(op: str) -> int:
    """Operator precedence: ^ binds tighter than * /, which bind tighter than + -."""
    if op in "+-":
        return 1
    if op in "*/":
        return 2
    if op == "^":
        return 3
    return 0


def is_right_associative(op: str) -> bool:
    return op == "^"


def reverse_and_swap_parens(expression: str) -> str:
    """Reverse a string, turning '(' into ')' and vice versa."""
    swap = {"(": ")", ")": "("}
    return "".join(swap.get(c, c) for c in reversed(expression))


def infix_to_postfix(expression: str) -> str:
    """
    Shunting-yard pass tuned for the prefix conversion.

    Pops operators of strictly higher precedence, or of equal precedence
    only when the incoming operator is right-associative.
    """
    stack: List[str] = []
    output: List[str] = []

    for c in expression:
        if c == " ":
            continue

        if c.isalnum():
            output.append(c)
        elif c == "(":
            stack.append(c)
        elif c == ")":
            while stack and stack[-1] != "(":
                output.append(stack.pop())
            if stack:
                stack.pop()
        elif is_operator(c):
            while (stack and stack[-1] != "(" and
                   (precedence(stack[-1]) > precedence(c) or
                    (precedence(stack[-1]) == precedence(c) and is_right_associative(c)))):
                output.append(stack.pop())
            stack.append(c)

    while stack:
        output.append(stack.pop())

    return "".join(output)


# =============================================================================
# Call-scoped helpers
# =============================================================================

def convert_to_prefix(node: Optional[ASTNode]) -> str:
    return ExpressionConverter().convert_to_prefix(node)


def convert_to_triplets(node: Optional[ASTNode]) -> ConversionResult:
    """Triplets numbered from t1, independent of any other conversion."""
    return ExpressionConverter().convert_to_triplets(node)


def convert_to_quadruples(node: Optional[ASTNode]) -> ConversionResult:
    """Quadruples numbered from t1, independent of any other conversion."""
    return ExpressionConverter().convert_to_quadruples(node)


def convert_infix_string_to_prefix(expression: Optional[str]) -> str:
    return ExpressionConverter().convert_infix_string_to_prefix(expression)

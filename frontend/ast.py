"""
hsloop Abstract Syntax Tree

Defines the closed set of AST node classes and the visitor interface
every traversal implements.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Any
from .tokens import Token


# =============================================================================
# Base Classes
# =============================================================================

class ASTNode(ABC):
    """Base class for all AST nodes."""

    @abstractmethod
    def accept(self, visitor: 'ASTVisitor') -> Any:
        """Accept a visitor for traversal."""
        pass


class CycleKind(Enum):
    """Imperative loop flavours."""
    WHILE = "while"
    FOR = "for"
    LOOP = "loop"

    @classmethod
    def from_keyword(cls, keyword: str) -> 'CycleKind':
        """Map a loop keyword to its kind (``ciclo`` is a ``loop``)."""
        if keyword == "ciclo":
            return cls.LOOP
        return cls(keyword)


# =============================================================================
# Nodes
# =============================================================================

@dataclass
class Program(ASTNode):
    """Root node: top-level declarations and expressions."""
    items: List[ASTNode]

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_program(self)


@dataclass
class Decl(ASTNode):
    """Simple declaration: name = expr."""
    name: str
    expr: ASTNode

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_decl(self)


@dataclass
class Identifier(ASTNode):
    """Variable, function or constructor reference."""
    name: str

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_identifier(self)


@dataclass
class Literal(ASTNode):
    """Literal value (integer, float, char, string, boolean)."""
    token: Token

    @property
    def text(self) -> str:
        return self.token.lexeme

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_literal(self)


@dataclass
class If(ASTNode):
    """if cond then e1 else e2."""
    condition: ASTNode
    then_branch: ASTNode
    else_branch: ASTNode

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_if(self)


@dataclass
class Let(ASTNode):
    """let name = bound in body."""
    name: str
    bound: ASTNode
    body: ASTNode

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_let(self)


@dataclass
class Apply(ASTNode):
    """Function application by juxtaposition."""
    function: ASTNode
    args: List[ASTNode]

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_apply(self)


@dataclass
class BinaryOp(ASTNode):
    """Binary operator expression."""
    op: str
    left: ASTNode
    right: ASTNode

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_binary_op(self)


@dataclass
class UnaryOp(ASTNode):
    """Unary operator expression (negation)."""
    op: str
    operand: ASTNode

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_unary_op(self)


@dataclass
class ListLit(ASTNode):
    """List literal [a, b, ...]."""
    elements: List[ASTNode]

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_list(self)


@dataclass
class TupleLit(ASTNode):
    """Tuple literal (a, b, ...); never a one-tuple."""
    elements: List[ASTNode]

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_tuple(self)


@dataclass
class Cycle(ASTNode):
    """
    Imperative loop.

    Only FOR cycles carry ``init`` and ``update``. ``body`` is the ordered
    list of statements inside the braces and may be empty.
    """
    kind: CycleKind
    keyword: str
    condition: Optional[ASTNode]
    body: List[ASTNode] = field(default_factory=list)
    init: Optional[ASTNode] = None
    update: Optional[ASTNode] = None

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_cycle(self)


# =============================================================================
# Visitor Interface
# =============================================================================

class ASTVisitor(ABC):
    """Visitor interface for AST traversal."""

    @abstractmethod
    def visit_program(self, node: Program) -> Any:
        pass

    @abstractmethod
    def visit_decl(self, node: Decl) -> Any:
        pass

    @abstractmethod
    def visit_identifier(self, node: Identifier) -> Any:
        pass

    @abstractmethod
    def visit_literal(self, node: Literal) -> Any:
        pass

    @abstractmethod
    def visit_if(self, node: If) -> Any:
        pass

    @abstractmethod
    def visit_let(self, node: Let) -> Any:
        pass

    @abstractmethod
    def visit_apply(self, node: Apply) -> Any:
        pass

    @abstractmethod
    def visit_binary_op(self, node: BinaryOp) -> Any:
        pass

    @abstractmethod
    def visit_unary_op(self, node: UnaryOp) -> Any:
        pass

    @abstractmethod
    def visit_list(self, node: ListLit) -> Any:
        pass

    @abstractmethod
    def visit_tuple(self, node: TupleLit) -> Any:
        pass

    @abstractmethod
    def visit_cycle(self, node: Cycle) -> Any:
        pass


# =============================================================================
# AST Printer (for debugging)
# =============================================================================

class ASTPrinter(ASTVisitor):
    """Renders an AST as an indented tree, one node per line."""

    def __init__(self):
        self.indent = 0
        self.lines: List[str] = []

    def print(self, node: ASTNode) -> str:
        self.indent = 0
        self.lines = []
        node.accept(self)
        return "\n".join(self.lines)

    def _emit(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def _children(self, *nodes: Optional[ASTNode]) -> None:
        self.indent += 1
        for child in nodes:
            if child is not None:
                child.accept(self)
        self.indent -= 1

    def _section(self, title: str, *nodes: Optional[ASTNode]) -> None:
        self.indent += 1
        self._emit(title)
        self._children(*nodes)
        self.indent -= 1

    def visit_program(self, node: Program) -> None:
        self._emit("Program")
        self._children(*node.items)

    def visit_decl(self, node: Decl) -> None:
        self._emit(f"Decl: {node.name}")
        self._children(node.expr)

    def visit_identifier(self, node: Identifier) -> None:
        self._emit(f"Ident: {node.name}")

    def visit_literal(self, node: Literal) -> None:
        self._emit(f"Literal({node.token.type.name}): {node.token.lexeme}")

    def visit_if(self, node: If) -> None:
        self._emit("If")
        self._children(node.condition)
        self._section("Then", node.then_branch)
        self._section("Else", node.else_branch)

    def visit_let(self, node: Let) -> None:
        self._emit(f"Let {node.name}")
        self._children(node.bound)
        self._section("In", node.body)

    def visit_apply(self, node: Apply) -> None:
        self._emit("Apply")
        self._children(node.function, *node.args)

    def visit_binary_op(self, node: BinaryOp) -> None:
        self._emit(f"BinaryOp({node.op})")
        self._children(node.left, node.right)

    def visit_unary_op(self, node: UnaryOp) -> None:
        self._emit(f"UnaryOp({node.op})")
        self._children(node.operand)

    def visit_list(self, node: ListLit) -> None:
        self._emit("List")
        self._children(*node.elements)

    def visit_tuple(self, node: TupleLit) -> None:
        self._emit("Tuple")
        self._children(*node.elements)

    def visit_cycle(self, node: Cycle) -> None:
        self._emit(f"Cycle({node.kind.name}): {node.keyword}")
        if node.init is not None:
            self._section("Init", node.init)
        if node.condition is not None:
            self._section("Condition", node.condition)
        if node.update is not None:
            self._section("Update", node.update)
        self._section("Body", *node.body)


def to_tree_string(node: ASTNode) -> str:
    """Render an AST subtree as indented text."""
    return ASTPrinter().print(node)

"""
hsloop Token Definitions

Defines the token classes and the Token value produced by lexical analysis.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional


class TokenType(Enum):
    """Lexical classes of the language."""

    # Identifiers
    IDENTIFIER_VAR = auto()    # starts lowercase: variables and functions
    IDENTIFIER_TYPE = auto()   # starts uppercase: types and constructors

    # Literals
    INTEGER = auto()
    FLOAT = auto()
    CHAR = auto()
    STRING = auto()
    BOOLEAN = auto()

    # Brackets
    LIST_START = auto()        # [
    LIST_END = auto()          # ]
    TUPLE_START = auto()       # (
    TUPLE_END = auto()         # )

    OPERATOR = auto()
    KEYWORD = auto()
    SYMBOL = auto()            # , ; { }

    # Special
    ERROR = auto()


KEYWORDS = (
    # Functional keywords
    'let', 'in', 'if', 'then', 'else', 'case', 'of', 'data', 'type', 'where',
    'module', 'import', 'deriving', 'class', 'instance', 'newtype', 'do',
    'default', 'foreign', 'forall', 'hiding', 'qualified', 'as', 'family',
    'role', 'pattern', 'static', 'stock', 'anyclass', 'via',
    # Built-in type names
    'Int', 'Integer', 'Float', 'Double', 'Bool', 'Char', 'String',
    # Imperative loops
    'while', 'for', 'loop', 'ciclo',
)

LOOP_KEYWORDS = ('while', 'for', 'loop', 'ciclo')

BOOLEANS = ('True', 'False')

# Characters that may appear inside an operator run
OPERATOR_CHARS = frozenset('+-*/=<>:|&!$.^%\\')

# Characters that unambiguously end an identifier or an error run
SEPARATORS = frozenset('()[]{},;=:|\\"\'\n\r\t')

LITERAL_TYPES = (
    TokenType.INTEGER, TokenType.FLOAT, TokenType.CHAR,
    TokenType.STRING, TokenType.BOOLEAN,
)


@dataclass(frozen=True)
class Token:
    """A single classified lexeme.

    ``position`` is the 0-based offset of the first character in the
    original source; ``line`` is 1-based.
    """

    type: TokenType
    lexeme: str
    line: int
    position: int

    def __str__(self) -> str:
        return f"'{self.lexeme}' (line: {self.line}, pos: {self.position}) [{self.type.name}]"

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.lexeme!r}, line={self.line}, pos={self.position})"

    @property
    def end(self) -> int:
        """Offset just past the last character of the token."""
        return self.position + len(self.lexeme)

    def is_keyword(self, word: Optional[str] = None) -> bool:
        """Check if this token is a keyword (optionally a specific one)."""
        if self.type != TokenType.KEYWORD:
            return False
        return word is None or self.lexeme == word

    def is_loop_keyword(self) -> bool:
        """Check if this token opens an imperative loop."""
        return self.type == TokenType.KEYWORD and self.lexeme in LOOP_KEYWORDS

    def is_literal(self) -> bool:
        """Check if this token is a literal value."""
        return self.type in LITERAL_TYPES

    def is_operator(self, op: Optional[str] = None) -> bool:
        """Check if this token is an operator (optionally a specific one)."""
        if self.type != TokenType.OPERATOR:
            return False
        return op is None or self.lexeme == op

    def is_symbol(self, sym: str) -> bool:
        """Check if this token is the given separator symbol."""
        return self.type == TokenType.SYMBOL and self.lexeme == sym

    def is_error(self) -> bool:
        return self.type == TokenType.ERROR

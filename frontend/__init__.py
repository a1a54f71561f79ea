"""
hsloop Front End Package

Lexer, parser and cycle validator for hsloop, a Haskell-inspired
teaching language extended with imperative loops.
"""

from .tokens import Token, TokenType
from .lexer import Lexer, tokenize, lexical_errors
from .ast import *
from .parser import Parser, ParseResult, parse, parse_program
from .semantic import CycleValidator, ValidationReport, analyze_cycles, validate_cycles
from .errors import FrontendError, SyntaxError, ParseError

__version__ = "0.1.0"
__all__ = [
    "Token",
    "TokenType",
    "Lexer",
    "Parser",
    "ParseResult",
    "CycleValidator",
    "ValidationReport",
    "tokenize",
    "lexical_errors",
    "parse",
    "parse_program",
    "analyze_cycles",
    "validate_cycles",
    "FrontendError",
    "SyntaxError",
    "ParseError",
]


def parse_source(source: str) -> Program:
    """
    Tokenize and parse hsloop source code.

    Args:
        source: hsloop source code string

    Returns:
        Program AST node

    Raises:
        ParseError: If the source has syntax errors
    """
    lexer = Lexer(source)
    tokens = lexer.tokenize()

    parser = Parser(tokens)
    return parser.parse_program()


def parse_file(filepath: str) -> Program:
    """
    Parse an hsloop source file.

    Args:
        filepath: Path to the source file

    Returns:
        Program AST node
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()
    return parse_source(source)

"""
hsloop Lexer

Tokenizes source code into a flat list of classified tokens.
Never raises: unrecognized input becomes ERROR tokens.
"""

import re
from typing import List, Pattern, Tuple
from .tokens import (Token, TokenType, KEYWORDS, BOOLEANS, OPERATOR_CHARS,
                     SEPARATORS)
from .comments import (STRING_PATTERN, CHAR_PATTERN, starts_line_comment,
                       starts_block_comment, line_comment_end, block_comment_end)


# Rejects a match that continues into identifier characters
_WORD_END = r"(?![A-Za-z0-9_'])"

# Classifiers in priority order; the first match wins
PATTERNS: List[Tuple[TokenType, Pattern]] = [
    (TokenType.KEYWORD, re.compile(r"(?:%s)%s" % ("|".join(KEYWORDS), _WORD_END))),
    (TokenType.BOOLEAN, re.compile(r"(?:%s)%s" % ("|".join(BOOLEANS), _WORD_END))),
    (TokenType.IDENTIFIER_VAR, re.compile(r"[a-z_][A-Za-z0-9_']*")),
    (TokenType.IDENTIFIER_TYPE, re.compile(r"[A-Z][A-Za-z0-9_']*")),
    (TokenType.INTEGER, re.compile(
        r"(?:0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+|[0-9]+)"
        r"(?![0-9A-Za-z_'])(?!\.[0-9])")),
    (TokenType.FLOAT, re.compile(
        r"[0-9]+(?:\.[0-9]+(?:[eE][-+]?[0-9]+)?|[eE][-+]?[0-9]+)" + _WORD_END)),
    (TokenType.STRING, STRING_PATTERN),
    (TokenType.CHAR, CHAR_PATTERN),
    # Maximal munch, but never across the start of a line comment
    (TokenType.OPERATOR, re.compile(r"(?:(?!--)[-+*/=<>:|&!$.^%\\])+")),
    (TokenType.LIST_START, re.compile(r"\[")),
    (TokenType.LIST_END, re.compile(r"\]")),
    (TokenType.TUPLE_START, re.compile(r"\(")),
    (TokenType.TUPLE_END, re.compile(r"\)")),
    (TokenType.SYMBOL, re.compile(r"[,;{}]")),
]


class Lexer:
    """Lexical analyzer for hsloop source code."""

    def __init__(self, source: str):
        """
        Initialize the lexer.

        Args:
            source: Source code to tokenize
        """
        self.source = source
        self.tokens: List[Token] = []
        self.start = 0      # Start of current token
        self.current = 0    # Current position
        self.line = 1       # Current line number

    def tokenize(self) -> List[Token]:
        """
        Tokenize the entire source code.

        Returns:
            List of tokens in source order
        """
        while not self.is_at_end():
            self.start = self.current
            self.scan_token()

        return self.tokens

    def scan_token(self) -> None:
        """Scan the next token, comment or whitespace run."""
        c = self.peek()

        if c.isspace():
            self.skip_to(self.current + 1)
            return

        # Comments
        if starts_line_comment(self.source, self.current):
            self.skip_to(line_comment_end(self.source, self.current))
            return
        if starts_block_comment(self.source, self.current):
            self.skip_to(block_comment_end(self.source, self.current))
            return

        # A word glued to characters no token may contain is one error unit
        if c.isalpha() or c == '_':
            run = self.word_run()
            if is_malformed_word(run):
                self.add_token(TokenType.ERROR, len(run))
                return

        for token_type, pattern in PATTERNS:
            m = pattern.match(self.source, self.current)
            if m:
                self.add_token(token_type, m.end() - self.current)
                return

        self.error_run()

    def peek(self) -> str:
        """Return the current character without consuming it."""
        if self.is_at_end():
            return '\0'
        return self.source[self.current]

    def is_at_end(self) -> bool:
        """Check if we've reached the end of the source."""
        return self.current >= len(self.source)

    def skip_to(self, end: int) -> None:
        """Silently consume source up to end, keeping the line count."""
        self.line += self.source.count('\n', self.current, end)
        self.current = end

    def add_token(self, type: TokenType, length: int) -> None:
        """Add a token of the given length starting at the current position."""
        lexeme = self.source[self.start:self.start + length]
        self.tokens.append(Token(type, lexeme, self.line, self.start))
        self.current = self.start + length

    def word_run(self) -> str:
        """Return the run of characters up to whitespace, a separator or a comment."""
        end = self.current
        while end < len(self.source):
            c = self.source[end]
            if c.isspace() or c in SEPARATORS:
                break
            if end > self.current and (starts_line_comment(self.source, end)
                                       or starts_block_comment(self.source, end)):
                break
            end += 1
        return self.source[self.current:end]

    def error_run(self) -> None:
        """Consume an unrecognized run as a single ERROR token."""
        run = self.word_run()
        self.add_token(TokenType.ERROR, max(len(run), 1))


def is_malformed_word(run: str) -> bool:
    """Check if a word contains characters no identifier or operator allows."""
    for c in run:
        if c.isascii() and (c.isalnum() or c in "_'"):
            continue
        if c in OPERATOR_CHARS:
            continue
        return True
    return False


def tokenize(source: str) -> List[Token]:
    """Tokenize source code with a fresh lexer."""
    return Lexer(source).tokenize()


def lexical_errors(tokens: List[Token]) -> List[Token]:
    """Return the ERROR tokens of a token list."""
    return [t for t in tokens if t.type == TokenType.ERROR]

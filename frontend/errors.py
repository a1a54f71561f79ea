"""
hsloop Front-End Errors

Defines exception classes for parsing errors.
Lexical and semantic problems are reported as data, not raised.
"""

from typing import List, Optional


class FrontendError(Exception):
    """Base exception for all hsloop errors."""

    def __init__(self, message: str, line: Optional[int] = None,
                 position: Optional[int] = None, filename: Optional[str] = None):
        self.message = message
        self.line = line
        self.position = position
        self.filename = filename
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with location information."""
        parts = []

        if self.filename:
            parts.append(self.filename)

        if self.line is not None:
            parts.append(f"line {self.line}")
            if self.position is not None:
                parts.append(f"pos {self.position}")

        if parts:
            return f"{', '.join(parts)}: {self.message}"
        return self.message


class SyntaxError(FrontendError):
    """Raised for a single grammar violation while parsing."""
    pass


class ParseError(FrontendError):
    """Raised once per parse with every syntax error found."""

    def __init__(self, errors: List[SyntaxError], filename: Optional[str] = None):
        self.errors = list(errors)
        first = self.errors[0] if self.errors else None
        super().__init__(
            "\n".join(f"{i}. {err}" for i, err in enumerate(self.errors, 1)),
            line=first.line if first else None,
            position=first.position if first else None,
            filename=filename,
        )

    def _format_message(self) -> str:
        # The numbered list already carries each location
        if self.filename:
            return f"{self.filename}:\n{self.message}"
        return self.message

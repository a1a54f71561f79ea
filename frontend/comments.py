"""
hsloop Comment Scanner

Line (``--``) and nested block (``{- -}``) comment handling shared by the
lexer and the code optimizer, so both agree on what a comment is.
"""

import re
from typing import Tuple

# Double-quoted string literal with backslash escapes
STRING_PATTERN = re.compile(r'"(?:[^"\\\n]|\\.)*"')

# Single-quoted char literal with backslash escapes
CHAR_PATTERN = re.compile(r"'(?:[^'\\\n]|\\.)'")


def starts_line_comment(text: str, pos: int) -> bool:
    """Check whether a ``--`` line comment starts at pos."""
    return text.startswith('--', pos)


def starts_block_comment(text: str, pos: int) -> bool:
    """Check whether a ``{-`` block comment starts at pos."""
    return text.startswith('{-', pos)


def line_comment_end(text: str, start: int) -> int:
    """
    Find the end of a line comment.

    Returns the offset of the terminating newline (which is not part of
    the comment), or the end of the text.
    """
    end = text.find('\n', start)
    return len(text) if end == -1 else end


def block_comment_end(text: str, start: int) -> int:
    """
    Find the end of a nested block comment starting at ``start``.

    Nesting depth is counted, so ``{- a {- b -} c -}`` is one comment.
    An unterminated comment extends to the end of the text.

    Returns:
        Offset just past the closing ``-}``
    """
    pos = start + 2
    depth = 1

    while pos < len(text) and depth > 0:
        if text.startswith('{-', pos):
            depth += 1
            pos += 2
        elif text.startswith('-}', pos):
            depth -= 1
            pos += 2
        else:
            pos += 1

    return pos


def strip_comments(text: str) -> Tuple[str, int]:
    """
    Remove every comment from the text.

    Newlines inside or terminating comments are kept so that line numbers
    survive. String and char literals are copied verbatim.

    Returns:
        (text without comments, number of comments removed)
    """
    out = []
    count = 0
    pos = 0

    while pos < len(text):
        c = text[pos]

        # A quote right after an identifier character is a prime (x')
        if c == "'" and not (pos > 0 and (text[pos - 1].isalnum() or text[pos - 1] in "_'")):
            m = CHAR_PATTERN.match(text, pos)
            if m:
                out.append(m.group())
                pos = m.end()
                continue

        if c == '"':
            m = STRING_PATTERN.match(text, pos)
            if m:
                out.append(m.group())
                pos = m.end()
                continue

        if starts_line_comment(text, pos):
            pos = line_comment_end(text, pos)
            count += 1
            continue

        if starts_block_comment(text, pos):
            end = block_comment_end(text, pos)
            out.append('\n' * text.count('\n', pos, end))
            pos = end
            count += 1
            continue

        out.append(c)
        pos += 1

    return ''.join(out), count

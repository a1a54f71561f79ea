"""
hsloop Parser

Recursive descent parser that produces an AST from tokens.
Syntax errors are collected per top-level item with panic-mode recovery.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from .tokens import Token, TokenType
from .ast import *
from .errors import SyntaxError, ParseError


@dataclass
class ParseResult:
    """Either a Program or every syntax error found while building it."""
    program: Optional[Program]
    errors: List[SyntaxError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> Program:
        """Return the program, or raise a ParseError carrying all errors."""
        if self.errors:
            raise ParseError(self.errors)
        return self.program


class Parser:
    """Recursive descent parser for hsloop."""

    def __init__(self, tokens: List[Token], debug: bool = False):
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer
            debug: Print recovery information
        """
        self.tokens = tokens
        self.current = 0
        self.errors: List[SyntaxError] = []
        self.debug = debug

    def parse(self) -> ParseResult:
        """
        Parse the token stream, recovering from errors.

        Returns:
            ParseResult with the Program, or with the collected errors
        """
        self.current = 0
        self.errors = []
        items = []

        while not self.is_at_end():
            start = self.current
            try:
                items.append(self.top_level())
                continue
            except SyntaxError as e:
                error = e
            except RecursionError:
                token = self.tokens[start]
                error = SyntaxError("expression nested too deeply", token.line, token.position)

            self.errors.append(error)
            self.synchronize(start)
            if self.debug:
                print(f"Syntax error: {error}; resuming at token {self.current}")

        if self.errors:
            return ParseResult(None, list(self.errors))
        return ParseResult(Program(items))

    def parse_program(self) -> Program:
        """
        Parse the token stream into an AST.

        Returns:
            Program AST node

        Raises:
            ParseError: With every syntax error, one per line
        """
        return self.parse().unwrap()

    # =========================================================================
    # Top level
    # =========================================================================

    def top_level(self) -> ASTNode:
        """Parse a declaration (name = expr) or a bare expression."""
        if self.at_declaration():
            name = self.advance().lexeme
            self.advance()  # '='
            return Decl(name, self.expression())
        return self.expression()

    def synchronize(self, start: int) -> None:
        """
        Skip to the next declaration start after an error.

        Brackets opened since ``start`` are counted, and a declaration
        inside an open ``{`` ``(`` or ``[`` is not a resumption point.
        When a bracket is left open at the end of input, the first
        declaration start past the error is used instead.
        """
        resume = max(self.current, start + 1)
        depth = 0
        fallback = None

        for index in range(start, len(self.tokens)):
            if index >= resume and self.declaration_at(index):
                if depth <= 0:
                    self.current = index
                    return
                if fallback is None:
                    fallback = index

            token = self.tokens[index]
            if token.type in (TokenType.TUPLE_START, TokenType.LIST_START) or token.is_symbol('{'):
                depth += 1
            elif token.type in (TokenType.TUPLE_END, TokenType.LIST_END) or token.is_symbol('}'):
                depth -= 1

        if depth > 0 and fallback is not None:
            self.current = fallback
        else:
            self.current = len(self.tokens)

    # =========================================================================
    # Expressions
    # =========================================================================

    def expression(self) -> ASTNode:
        """Parse an expression."""
        if self.match_keyword('if'):
            return self.if_expression()
        if self.match_keyword('let'):
            return self.let_expression()
        if self.check_loop_keyword():
            return self.cycle()
        return self.binary()

    def if_expression(self) -> If:
        """Parse if cond then e1 else e2."""
        condition = self.expression()
        if not self.match_keyword('then'):
            raise self.error("expected 'then' after if condition")
        then_branch = self.expression()
        if not self.match_keyword('else'):
            raise self.error("expected 'else' after then-branch")
        else_branch = self.expression()
        return If(condition, then_branch, else_branch)

    def let_expression(self) -> Let:
        """Parse let name = bound in body."""
        name = self.consume(TokenType.IDENTIFIER_VAR, "expected identifier after 'let'")
        self.consume_operator('=', "expected '=' after let name")
        bound = self.expression()
        if not self.match_keyword('in'):
            raise self.error("expected 'in' after let binding")
        body = self.expression()
        return Let(name.lexeme, bound, body)

    def binary(self) -> ASTNode:
        """Parse binary operators: one flat precedence level, left-associative."""
        expr = self.unary()

        while self.check_binary_operator():
            op = self.advance().lexeme
            right = self.unary()
            expr = BinaryOp(op, expr, right)

        return expr

    def unary(self) -> ASTNode:
        """Parse unary minus."""
        if self.check_operator('-'):
            op = self.advance().lexeme
            return UnaryOp(op, self.unary())
        return self.application()

    def application(self) -> ASTNode:
        """Parse function application: primary { primary }."""
        expr = self.primary()
        args = []

        while self.starts_primary() and not self.at_declaration():
            args.append(self.primary())

        if args:
            return Apply(expr, args)
        return expr

    def primary(self) -> ASTNode:
        """Parse primary expressions."""
        token = self.peek()
        if token is None:
            raise self.error("expected an expression")

        if token.is_literal():
            self.advance()
            return Literal(token)

        if token.type in (TokenType.IDENTIFIER_VAR, TokenType.IDENTIFIER_TYPE):
            self.advance()
            return Identifier(token.lexeme)

        if token.type == TokenType.TUPLE_START:
            return self.tuple_or_group()

        if token.type == TokenType.LIST_START:
            return self.list_literal()

        raise self.error(f"unexpected token in primary: {token.lexeme} ({token.type.name})")

    def tuple_or_group(self) -> ASTNode:
        """Parse (e) as e, and () or (e1, e2, ...) as a tuple."""
        self.consume(TokenType.TUPLE_START, "expected '('")
        elements = self.elements(TokenType.TUPLE_END)
        self.consume(TokenType.TUPLE_END, "expected ')'")

        if len(elements) == 1:
            return elements[0]
        return TupleLit(elements)

    def list_literal(self) -> ListLit:
        """Parse [e1, e2, ...]."""
        self.consume(TokenType.LIST_START, "expected '['")
        elements = self.elements(TokenType.LIST_END)
        self.consume(TokenType.LIST_END, "expected ']'")
        return ListLit(elements)

    def elements(self, closing: TokenType) -> List[ASTNode]:
        """Parse a comma-separated, possibly empty, expression list."""
        elements = []

        if not self.check(closing):
            elements.append(self.expression())
            while self.match_symbol(','):
                elements.append(self.expression())

        return elements

    # =========================================================================
    # Cycles
    # =========================================================================

    def cycle(self) -> Cycle:
        """Parse while/loop/ciclo (cond) { ... } and for (i; c; u) { ... }."""
        keyword = self.advance().lexeme
        kind = CycleKind.from_keyword(keyword)
        init = update = None

        self.consume(TokenType.TUPLE_START, f"expected '(' after '{keyword}'")

        if kind == CycleKind.FOR:
            init = None if self.check_symbol(';') else self.top_level()
            self.consume_symbol(';', "expected ';' after for initializer")
            condition = None if self.check_symbol(';') else self.top_level()
            self.consume_symbol(';', "expected ';' after for condition")
            update = None if self.check(TokenType.TUPLE_END) else self.top_level()
        else:
            condition = self.expression()

        self.consume(TokenType.TUPLE_END, f"expected ')' after '{keyword}' header")
        body = self.block(keyword)

        return Cycle(kind, keyword, condition, body, init, update)

    def block(self, keyword: str) -> List[ASTNode]:
        """Parse a brace-delimited body of items, optionally ';'-separated."""
        self.consume_symbol('{', f"expected '{{' before '{keyword}' body")
        items = []

        while not self.is_at_end() and not self.check_symbol('}'):
            items.append(self.top_level())
            self.match_symbol(';')

        self.consume_symbol('}', f"expected '}}' after '{keyword}' body")
        return items

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def is_at_end(self) -> bool:
        """Check if we've consumed every token."""
        return self.current >= len(self.tokens)

    def peek(self) -> Optional[Token]:
        """Return the current token, or None at the end."""
        if self.is_at_end():
            return None
        return self.tokens[self.current]

    def peek_next(self) -> Optional[Token]:
        """Return the token after the current one, or None."""
        if self.current + 1 >= len(self.tokens):
            return None
        return self.tokens[self.current + 1]

    def advance(self) -> Token:
        """Consume and return the current token."""
        token = self.tokens[self.current]
        self.current += 1
        return token

    def check(self, type: TokenType) -> bool:
        """Check if current token is of given type."""
        token = self.peek()
        return token is not None and token.type == type

    def check_operator(self, op: str) -> bool:
        token = self.peek()
        return token is not None and token.is_operator(op)

    def check_symbol(self, sym: str) -> bool:
        token = self.peek()
        return token is not None and token.is_symbol(sym)

    def check_loop_keyword(self) -> bool:
        token = self.peek()
        return token is not None and token.is_loop_keyword()

    def check_binary_operator(self) -> bool:
        """Check for an operator that continues a binary expression."""
        token = self.peek()
        return token is not None and token.is_operator() and token.lexeme != '='

    def at_declaration(self) -> bool:
        """Check for the start of a declaration: identifier followed by '='."""
        return self.declaration_at(self.current)

    def declaration_at(self, index: int) -> bool:
        if index + 1 >= len(self.tokens):
            return False
        return (self.tokens[index].type == TokenType.IDENTIFIER_VAR
                and self.tokens[index + 1].is_operator('='))

    def starts_primary(self) -> bool:
        """Check if the current token can begin a primary expression."""
        token = self.peek()
        if token is None:
            return False
        return token.is_literal() or token.type in (
            TokenType.IDENTIFIER_VAR, TokenType.IDENTIFIER_TYPE,
            TokenType.TUPLE_START, TokenType.LIST_START,
        )

    def match_keyword(self, word: str) -> bool:
        token = self.peek()
        if token is not None and token.is_keyword(word):
            self.advance()
            return True
        return False

    def match_symbol(self, sym: str) -> bool:
        if self.check_symbol(sym):
            self.advance()
            return True
        return False

    def consume(self, type: TokenType, message: str) -> Token:
        """Consume a token of the expected type or raise an error."""
        if self.check(type):
            return self.advance()
        raise self.error(message)

    def consume_operator(self, op: str, message: str) -> Token:
        if self.check_operator(op):
            return self.advance()
        raise self.error(message)

    def consume_symbol(self, sym: str, message: str) -> Token:
        if self.check_symbol(sym):
            return self.advance()
        raise self.error(message)

    def error(self, message: str) -> SyntaxError:
        """Build a SyntaxError located at the current token."""
        token = self.peek()
        if token is None:
            line = self.tokens[-1].line if self.tokens else None
            return SyntaxError(f"{message} at end of input", line)
        return SyntaxError(f"{message}, found '{token.lexeme}'", token.line, token.position)


def parse(tokens: List[Token]) -> ParseResult:
    """Parse tokens, returning the program or the collected errors."""
    return Parser(tokens).parse()


def parse_program(tokens: List[Token]) -> Program:
    """Parse tokens into a Program, raising ParseError on any syntax error."""
    return Parser(tokens).parse_program()

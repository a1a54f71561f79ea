"""
hsloop Front End Tests

Tests for the hsloop front end: lexer and parser.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from frontend import parse_source, Lexer, Parser, tokenize, lexical_errors, parse, parse_program
from frontend.tokens import Token, TokenType
from frontend.ast import (Program, Decl, Identifier, Literal, If, Let, Apply, BinaryOp,
                          UnaryOp, ListLit, TupleLit, Cycle, CycleKind, to_tree_string)
from frontend.errors import ParseError, SyntaxError


def types_of(source):
    return [t.type for t in tokenize(source)]


def lexemes_of(source):
    return [t.lexeme for t in tokenize(source)]


# =============================================================================
# Lexer Tests
# =============================================================================

class TestLexerBasics:
    """Basic lexer functionality tests."""

    def test_empty_source(self):
        assert Lexer("").tokenize() == []

    def test_whitespace_only(self):
        assert Lexer("   \t\n  ").tokenize() == []

    def test_simple_declaration(self):
        tokens = Lexer("x = 5").tokenize()
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER_VAR, TokenType.OPERATOR, TokenType.INTEGER,
        ]
        assert [t.lexeme for t in tokens] == ["x", "=", "5"]

    def test_line_numbers(self):
        tokens = tokenize("a\nb\n\nc")
        assert [t.line for t in tokens] == [1, 2, 4]

    def test_positions_are_source_offsets(self):
        tokens = tokenize("x = 1\ny")
        assert [t.position for t in tokens] == [0, 2, 4, 6]
        assert tokens[-1].end == 7

    def test_token_str(self):
        token = Token(TokenType.IDENTIFIER_VAR, "x", 1, 0)
        assert str(token) == "'x' (line: 1, pos: 0) [IDENTIFIER_VAR]"


class TestLexerNumbers:
    """Number literal tokenization tests."""

    @pytest.mark.parametrize("source,expected_type", [
        ("42", TokenType.INTEGER),
        ("0xFF", TokenType.INTEGER),
        ("0o17", TokenType.INTEGER),
        ("0b101", TokenType.INTEGER),
        ("3.14", TokenType.FLOAT),
        ("1e10", TokenType.FLOAT),
        ("2.5e-3", TokenType.FLOAT),
    ])
    def test_number_literals(self, source, expected_type):
        tokens = tokenize(source)
        assert len(tokens) == 1
        assert tokens[0].type == expected_type
        assert tokens[0].lexeme == source

    def test_float_is_not_split(self):
        assert lexemes_of("3.14 + 1") == ["3.14", "+", "1"]

    def test_sign_is_an_operator(self):
        assert types_of("-5") == [TokenType.OPERATOR, TokenType.INTEGER]

    def test_subtraction_without_spaces(self):
        assert lexemes_of("x-1") == ["x", "-", "1"]


class TestLexerStrings:
    """String and char literal tokenization tests."""

    def test_double_quote_string(self):
        tokens = tokenize('"hello"')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].lexeme == '"hello"'

    def test_escape_sequences(self):
        tokens = tokenize(r'"say \"hi\""')
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.STRING

    def test_comment_marker_inside_string(self):
        tokens = tokenize('"a -- b" x')
        assert [t.type for t in tokens] == [TokenType.STRING, TokenType.IDENTIFIER_VAR]

    def test_char(self):
        tokens = tokenize("'a'")
        assert tokens[0].type == TokenType.CHAR
        assert tokens[0].lexeme == "'a'"


class TestLexerWords:
    """Keyword, boolean and identifier tests."""

    @pytest.mark.parametrize("word,expected_type", [
        ("let", TokenType.KEYWORD),
        ("where", TokenType.KEYWORD),
        ("while", TokenType.KEYWORD),
        ("for", TokenType.KEYWORD),
        ("loop", TokenType.KEYWORD),
        ("ciclo", TokenType.KEYWORD),
        ("Int", TokenType.KEYWORD),
        ("String", TokenType.KEYWORD),
        ("True", TokenType.BOOLEAN),
        ("False", TokenType.BOOLEAN),
        ("whilex", TokenType.IDENTIFIER_VAR),
        ("_tmp", TokenType.IDENTIFIER_VAR),
        ("x'", TokenType.IDENTIFIER_VAR),
        ("Maybe", TokenType.IDENTIFIER_TYPE),
        ("Trueish", TokenType.IDENTIFIER_TYPE),
    ])
    def test_words(self, word, expected_type):
        tokens = tokenize(word)
        assert len(tokens) == 1
        assert tokens[0].type == expected_type
        assert tokens[0].lexeme == word

    def test_loop_keyword(self):
        assert tokenize("ciclo")[0].is_loop_keyword()
        assert not tokenize("let")[0].is_loop_keyword()


class TestLexerOperators:
    """Operator tokenization tests."""

    @pytest.mark.parametrize("op", [
        "+", "-", "*", "/", "=", "<", ">", "^", "%", "$", ".",
        "++", "::", "->", "<-", "<=", ">=", "==", "/=", "&&", "||", "\\",
    ])
    def test_operators(self, op):
        tokens = tokenize(op)
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.OPERATOR
        assert tokens[0].lexeme == op

    @pytest.mark.parametrize("source,expected_type", [
        ("[", TokenType.LIST_START),
        ("]", TokenType.LIST_END),
        ("(", TokenType.TUPLE_START),
        (")", TokenType.TUPLE_END),
        (",", TokenType.SYMBOL),
        (";", TokenType.SYMBOL),
        ("{", TokenType.SYMBOL),
        ("}", TokenType.SYMBOL),
    ])
    def test_brackets_and_symbols(self, source, expected_type):
        assert types_of(source) == [expected_type]


class TestLexerComments:
    """Comment handling tests."""

    def test_line_comment(self):
        tokens = tokenize("x -- comment\ny")
        assert [(t.lexeme, t.line) for t in tokens] == [("x", 1), ("y", 2)]

    def test_block_comment(self):
        assert lexemes_of("a {- skipped -} b") == ["a", "b"]

    def test_nested_block_comment(self):
        assert lexemes_of("{- a {- b -} c -} x") == ["x"]

    def test_block_comment_keeps_line_count(self):
        tokens = tokenize("{- one\ntwo\n-} x")
        assert tokens[0].line == 3

    def test_unterminated_block_comment(self):
        assert tokenize("x {- never closed") == [tokenize("x")[0]]

    def test_comment_after_char_literal(self):
        source = "c = '\"' -- note \"q\"\nd = 1"
        assert lexemes_of(source) == ["c", "=", "'\"'", "d", "=", "1"]


class TestLexerErrors:
    """Unrecognized input becomes ERROR tokens."""

    def test_malformed_identifier_is_one_token(self):
        tokens = tokenize("var@name = 1")
        assert tokens[0].type == TokenType.ERROR
        assert tokens[0].lexeme == "var@name"
        assert [t.type for t in tokens[1:]] == [TokenType.OPERATOR, TokenType.INTEGER]

    def test_malformed_word_stops_at_comment(self):
        tokens = tokenize("x@--comment\ny = 1")
        assert [t.lexeme for t in tokens] == ["x@", "y", "=", "1"]
        assert tokens[0].is_error()
        assert tokens[1].line == 2

    def test_error_run_stops_at_block_comment(self):
        assert lexemes_of("#{- note -} x") == ["#", "x"]

    def test_non_ascii_identifier(self):
        tokens = tokenize("café")
        assert len(tokens) == 1
        assert tokens[0].is_error()

    def test_stray_character(self):
        tokens = tokenize("x # y")
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER_VAR, TokenType.ERROR, TokenType.IDENTIFIER_VAR,
        ]

    def test_lexical_errors(self):
        errors = lexical_errors(tokenize("a = 1\nb? = 2\n#"))
        assert [(t.lexeme, t.line) for t in errors] == [("b?", 2), ("#", 3)]

    def test_clean_program_has_no_errors(self):
        assert lexical_errors(tokenize("x = 5\ny = 10\nz = x + y\n")) == []


class TestLexerProperties:
    """Properties that hold for any token list."""

    SOURCE = (
        "-- counter\n"
        "count = 0\n"
        "{- main loop -}\n"
        "while (count < 10) { count = count + 1; total = [1, 2] }\n"
        "for (i = 0; i <= n; i = i + 1) { acc = acc * 2.5 }\n"
    )

    def test_positions_strictly_increase(self):
        positions = [t.position for t in tokenize(self.SOURCE)]
        assert positions == sorted(set(positions))

    def test_lexemes_cover_source(self):
        stripped = "".join(c for c in "".join(
            line.split("--")[0] for line in self.SOURCE.replace("{- main loop -}", "").split("\n")
        ) if not c.isspace())
        assert "".join(lexemes_of(self.SOURCE)) == stripped

    def test_lexemes_match_source_slices(self):
        for token in tokenize(self.SOURCE):
            assert self.SOURCE[token.position:token.end] == token.lexeme


# =============================================================================
# Parser Tests
# =============================================================================

def parse_expr(source):
    """Parse source and return the single top-level item."""
    program = parse_source(source)
    assert len(program.items) == 1
    return program.items[0]


class TestParserDeclarations:
    """Declaration parsing tests."""

    def test_empty_program(self):
        program = parse_source("")
        assert isinstance(program, Program)
        assert program.items == []

    def test_three_declarations(self):
        program = parse_source("x = 5\ny = 10\nz = x + y\n")
        assert [item.name for item in program.items] == ["x", "y", "z"]
        assert all(isinstance(item, Decl) for item in program.items)

        z = program.items[2].expr
        assert isinstance(z, BinaryOp)
        assert z.op == "+"
        assert z.left == Identifier("x")
        assert z.right == Identifier("y")

    def test_declaration_value(self):
        decl = parse_expr("answer = 42")
        assert isinstance(decl.expr, Literal)
        assert decl.expr.text == "42"

    def test_bare_expression(self):
        assert isinstance(parse_expr("f x"), Apply)


class TestParserExpressions:
    """Expression parsing tests."""

    def test_application_is_flattened(self):
        node = parse_expr("f a b")
        assert node == Apply(Identifier("f"), [Identifier("a"), Identifier("b")])

    def test_binary_is_flat_and_left_associative(self):
        node = parse_expr("1 + 2 * 3")
        assert isinstance(node, BinaryOp)
        assert node.op == "*"
        assert node.left.op == "+"
        assert node.right.text == "3"

    def test_application_binds_tighter_than_operators(self):
        node = parse_expr("f x + 1")
        assert isinstance(node, BinaryOp)
        assert isinstance(node.left, Apply)

    def test_unary_minus(self):
        node = parse_expr("-x")
        assert node == UnaryOp("-", Identifier("x"))

    def test_if(self):
        node = parse_expr("if x then 1 else 2")
        assert isinstance(node, If)
        assert node.condition == Identifier("x")
        assert node.then_branch.text == "1"
        assert node.else_branch.text == "2"

    def test_let(self):
        node = parse_expr("let y = 1 in y")
        assert isinstance(node, Let)
        assert node.name == "y"
        assert node.body == Identifier("y")

    def test_group_collapses(self):
        node = parse_expr("(x)")
        assert node == Identifier("x")

    def test_tuple(self):
        node = parse_expr("(1, x)")
        assert isinstance(node, TupleLit)
        assert len(node.elements) == 2

    def test_empty_tuple(self):
        assert parse_expr("()") == TupleLit([])

    def test_list(self):
        node = parse_expr("[1, 2, 3]")
        assert isinstance(node, ListLit)
        assert [e.text for e in node.elements] == ["1", "2", "3"]

    def test_empty_list(self):
        assert parse_expr("[]") == ListLit([])

    def test_constructor_identifier(self):
        node = parse_expr("Just 1")
        assert isinstance(node, Apply)
        assert node.function == Identifier("Just")


class TestParserCycles:
    """Loop parsing tests."""

    def test_while(self):
        node = parse_expr("while (x > 0) { x = x - 1 }")
        assert isinstance(node, Cycle)
        assert node.kind == CycleKind.WHILE
        assert node.keyword == "while"
        assert node.condition.op == ">"
        assert len(node.body) == 1
        assert isinstance(node.body[0], Decl)

    def test_for(self):
        node = parse_expr("for (i = 0; i < 10; i = i + 1) { s = s + i }")
        assert node.kind == CycleKind.FOR
        assert isinstance(node.init, Decl)
        assert node.condition.op == "<"
        assert isinstance(node.update, Decl)
        assert [d.name for d in node.body] == ["s"]

    def test_for_with_empty_clauses(self):
        node = parse_expr("for (;;) { }")
        assert node.init is None
        assert node.condition is None
        assert node.update is None
        assert node.body == []

    @pytest.mark.parametrize("keyword,kind", [
        ("loop", CycleKind.LOOP),
        ("ciclo", CycleKind.LOOP),
        ("while", CycleKind.WHILE),
    ])
    def test_conditional_loops(self, keyword, kind):
        node = parse_expr(f"{keyword} (True) {{ }}")
        assert node.kind == kind

    def test_body_with_separators(self):
        node = parse_expr("while (x) { a = 1; b = 2; }")
        assert [d.name for d in node.body] == ["a", "b"]

    def test_nested_loops(self):
        node = parse_expr("while (a) { loop (b) { c = 1 } }")
        assert isinstance(node.body[0], Cycle)

    def test_cycle_as_declaration_value(self):
        decl = parse_expr("r = while (x) { x = 0 }")
        assert isinstance(decl.expr, Cycle)


class TestParserErrors:
    """Syntax error collection and recovery."""

    def test_missing_paren_result(self):
        result = parse(tokenize("while x > 0 { y = x }"))
        assert not result.ok
        assert result.program is None
        assert len(result.errors) == 1
        first = result.errors[0]
        assert isinstance(first, SyntaxError)
        assert first.line == 1
        assert "expected '(' after 'while'" in first.message

    def test_recovery_skips_declarations_inside_braces(self):
        result = parse(tokenize("while x > 0 { y = x }\nz = 1"))
        assert len(result.errors) == 1
        assert result.errors[0].position == 6

    def test_recovery_resumes_after_broken_body(self):
        result = parse(tokenize("while (x) { a = + ; b = 1 }\nz = 1"))
        assert [e.line for e in result.errors] == [1]

    def test_deep_nesting_is_a_syntax_error(self):
        source = "x = " + "(" * 200 + "1" + ")" * 200
        result = parse(tokenize(source))
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], SyntaxError)
        assert "nested too deeply" in result.errors[0].message

    def test_deep_nesting_raises_parse_error(self):
        source = "x = " + "(" * 200 + "1" + ")" * 200 + "\ny = 2"
        with pytest.raises(ParseError) as info:
            parse_program(tokenize(source))
        assert len(info.value.errors) == 1

    def test_parse_program_raises(self):
        with pytest.raises(ParseError) as info:
            parse_program(tokenize("while x > 0 { y = x }"))
        assert info.value.errors
        assert str(info.value).startswith("1. line 1, pos 6: expected '(' after 'while'")

    def test_recovery_collects_every_error(self):
        result = parse(tokenize("x = (1\ny = 2\nz ="))
        assert [e.line for e in result.errors] == [2, 3]

    def test_numbered_message(self):
        with pytest.raises(ParseError) as info:
            Parser(tokenize("x = (1\ny = 2\nz =")).parse_program()
        lines = str(info.value).split("\n")
        assert len(lines) == 2
        assert lines[0].startswith("1. line 2")
        assert lines[1].startswith("2. line 3")

    def test_end_of_input(self):
        result = parse(tokenize("x ="))
        assert len(result.errors) == 1
        assert "end of input" in result.errors[0].message

    def test_error_tokens_are_syntax_errors(self):
        result = parse(tokenize("x = #"))
        assert not result.ok

    def test_unwrap(self):
        result = parse(tokenize("x = 1"))
        assert result.ok
        assert result.unwrap() is result.program


class TestASTPrinter:
    """Tree rendering tests."""

    def test_declaration_tree(self):
        text = to_tree_string(parse_source("x = 1 + y"))
        assert text.split("\n") == [
            "Program",
            "  Decl: x",
            "    BinaryOp(+)",
            "      Literal(INTEGER): 1",
            "      Ident: y",
        ]

    def test_cycle_tree(self):
        text = to_tree_string(parse_expr("while (x) { y = 1 }"))
        assert text.split("\n") == [
            "Cycle(WHILE): while",
            "  Condition",
            "    Ident: x",
            "  Body",
            "    Decl: y",
            "      Literal(INTEGER): 1",
        ]

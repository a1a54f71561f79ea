"""
Unit tests for hsloop Python API.

Tests for the Session facade and the Analysis it returns.
"""

import unittest
import sys
import tempfile
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api import Session, Analysis
from codegen import CodeOptimizer
from frontend.tokens import TokenType


PROGRAM = """\
-- sum the first ten numbers
total = 0
i = 0
while (i < 10) {
    total = total + i
    i = i + 1
}
"""


class TestSessionBasic(unittest.TestCase):
    """Test basic Session functionality."""

    def test_create_session_default(self):
        """Test creating a session with default options."""
        session = Session()
        self.assertFalse(session.debug)
        self.assertIsInstance(session.optimizer, CodeOptimizer)

    def test_custom_optimizer(self):
        """Test that a supplied optimizer is used."""
        optimizer = CodeOptimizer(temp_prefix="tmp")
        session = Session(optimizer=optimizer)
        result = session.optimize("x = a + b\ny = a + b")
        self.assertIs(session.optimizer, optimizer)
        self.assertTrue(result.optimized_code.startswith("tmp0 = a + b"))

    def test_tokenize(self):
        """Test tokenizing through the session."""
        tokens = Session().tokenize("x = 5")
        self.assertEqual([t.type for t in tokens],
                         [TokenType.IDENTIFIER_VAR, TokenType.OPERATOR, TokenType.INTEGER])

    def test_lexical_errors(self):
        """Test collecting ERROR tokens."""
        session = Session()
        errors = session.lexical_errors(session.tokenize("ok = 1\nbad# = 2"))
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].lexeme, "bad#")


class TestSessionPipelines(unittest.TestCase):
    """Test each pipeline through the session."""

    def setUp(self):
        self.session = Session()

    def test_parse(self):
        """Test parsing without raising."""
        result = self.session.parse(self.session.tokenize(PROGRAM))
        self.assertTrue(result.ok)
        self.assertEqual([item.name for item in result.program.items[:2]], ["total", "i"])

    def test_parse_errors(self):
        """Test that syntax errors are returned, not raised."""
        result = self.session.parse(self.session.tokenize("while x > 0 { y = x }"))
        self.assertFalse(result.ok)
        self.assertEqual(result.errors[0].line, 1)

    def test_validate(self):
        """Test the validation report text."""
        text = self.session.validate(self.session.tokenize(PROGRAM))
        self.assertIn("Total cycles detected: 1", text)
        self.assertIn("All cycles are semantically well-formed.", text)

    def test_optimize(self):
        """Test optimization through the session."""
        result = self.session.optimize(PROGRAM)
        self.assertTrue(result.success)
        self.assertEqual(result.comments_removed, 1)

    def test_convert(self):
        """Test triplets and quadruples numbered from t1."""
        program = self.session.parse(self.session.tokenize("a * b + c")).unwrap()
        result = self.session.convert(program.items[0])
        self.assertEqual(len(result.triplets), 2)
        self.assertEqual(len(result.quadruples), 2)
        self.assertEqual(result.quadruples[0].result, "t1")
        self.assertEqual(result.final_result, "t2")

    def test_convert_reports_non_arithmetic(self):
        """Test conversion of a declaration."""
        program = self.session.parse(self.session.tokenize("x = 1")).unwrap()
        result = self.session.convert(program.items[0])
        self.assertFalse(result.ok)
        self.assertEqual(result.triplets, [])
        self.assertEqual(result.quadruples, [])
        self.assertIn("cannot convert Decl node", result.error)


class TestAnalyze(unittest.TestCase):
    """Test session.analyze()."""

    def test_clean_program(self):
        """Test analyzing a program with no problems."""
        analysis = Session().analyze(PROGRAM)
        self.assertIsInstance(analysis, Analysis)
        self.assertEqual(analysis.source, PROGRAM)
        self.assertEqual(analysis.lexical_errors, [])
        self.assertTrue(analysis.parse_result.ok)
        self.assertEqual(len(analysis.validation.loops), 1)
        self.assertTrue(analysis.optimization.success)
        self.assertTrue(analysis.ok)

    def test_declarations_without_loops(self):
        """Test the three-declaration program."""
        analysis = Session().analyze("x = 5\ny = 10\nz = x + y\n")
        self.assertEqual(analysis.lexical_errors, [])
        self.assertEqual(analysis.validation.loops, [])
        self.assertEqual(len(analysis.parse_result.program.items), 3)

    def test_broken_program_does_not_raise(self):
        """Test that every stage reports instead of raising."""
        analysis = Session().analyze("while x > 0 { y = @ }\nfor i = 0 { }")
        self.assertFalse(analysis.ok)
        self.assertEqual(len(analysis.lexical_errors), 1)
        self.assertFalse(analysis.parse_result.ok)
        self.assertEqual(len(analysis.validation.loops), 2)
        self.assertTrue(analysis.validation.errors)

    def test_summary(self):
        """Test the summary text."""
        summary = Session().analyze(PROGRAM).summary()
        self.assertTrue(summary.startswith("=== ANALYSIS ==="))
        self.assertIn("Lexical errors: 0", summary)
        self.assertIn("Cycles: 1", summary)

    def test_analyze_file(self):
        """Test analyzing a source file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "sum.hs"
            path.write_text(PROGRAM, encoding='utf-8')
            analysis = Session().analyze_file(str(path))
        self.assertEqual(analysis.filename, str(path))
        self.assertIn(str(path), analysis.summary())


if __name__ == '__main__':
    unittest.main()

"""
hsloop Session

The main interface for running the hsloop pipelines from Python.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from frontend.tokens import Token
from frontend.lexer import Lexer, lexical_errors
from frontend.ast import ASTNode
from frontend.parser import Parser, ParseResult
from frontend.semantic import ValidationReport, analyze_cycles
from codegen.optimizer import CodeOptimizer, OptimizationResult
from codegen.converter import ExpressionConverter
from codegen.tac import ConversionResult


@dataclass
class Analysis:
    """Everything the pipelines produced for one source text."""
    source: str
    tokens: List[Token] = field(repr=False)
    lexical_errors: List[Token]
    parse_result: ParseResult
    validation: ValidationReport
    optimization: OptimizationResult
    filename: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True when no stage found a problem."""
        return (not self.lexical_errors and self.parse_result.ok
                and not self.validation.errors and self.optimization.success)

    def summary(self) -> str:
        lines = [f"=== ANALYSIS{' OF ' + self.filename if self.filename else ''} ==="]
        lines.append(f"Tokens: {len(self.tokens)}")
        lines.append(f"Lexical errors: {len(self.lexical_errors)}")
        for token in self.lexical_errors:
            lines.append(f"  {token}")
        lines.append(f"Syntax errors: {len(self.parse_result.errors)}")
        for error in self.parse_result.errors:
            lines.append(f"  {error}")
        lines.append(f"Cycles: {len(self.validation.loops)}")
        lines.append(f"Semantic errors: {len(self.validation.errors)}")
        lines.append(f"Semantic warnings: {len(self.validation.warnings)}")
        if self.optimization.success:
            lines.append(f"Optimized size: {self.optimization.optimized_size} characters "
                         f"({self.optimization.reduction_percent:.1f}% reduction)")
        else:
            lines.append(f"Optimization failed: {self.optimization.error_message}")
        return "\n".join(lines)


class Session:
    """
    hsloop analysis session.

    Runs the independent pipelines (tokenize, parse, validate, optimize,
    convert) and combines them for a host application.

    Example:
        session = Session()
        analysis = session.analyze('while (x > 0) { x = x - 1 }')
        print(analysis.validation.render())
    """

    def __init__(self, debug: bool = False, optimizer: Optional[CodeOptimizer] = None):
        """
        Create a new session.

        Args:
            debug: Print progress of each stage
            optimizer: Optimizer to use; defaults to CodeOptimizer(debug=debug)
        """
        self.debug = debug
        self.optimizer = optimizer if optimizer is not None else CodeOptimizer(debug=debug)

    def tokenize(self, source: str) -> List[Token]:
        tokens = Lexer(source).tokenize()
        if self.debug:
            print(f"Tokenized {len(tokens)} tokens")
        return tokens

    def lexical_errors(self, tokens: List[Token]) -> List[Token]:
        return lexical_errors(tokens)

    def parse(self, tokens: List[Token]) -> ParseResult:
        """Parse tokens, collecting syntax errors instead of raising."""
        result = Parser(tokens, debug=self.debug).parse()
        if self.debug:
            print(f"Parsed with {len(result.errors)} syntax errors")
        return result

    def validate(self, tokens: List[Token]) -> str:
        """Cycle validation report text."""
        return analyze_cycles(tokens, debug=self.debug).render()

    def optimize(self, source: str) -> OptimizationResult:
        return self.optimizer.optimize(source)

    def convert(self, node: ASTNode) -> ConversionResult:
        """
        Three-address code for an arithmetic expression.

        Triplets and quadruples are both numbered from t1. A node that is
        not an arithmetic expression gives a result with only ``error`` set.
        """
        triplets = ExpressionConverter(debug=self.debug).convert_to_triplets(node)
        quadruples = ExpressionConverter(debug=self.debug).convert_to_quadruples(node)
        return ConversionResult(triplets.triplets, quadruples.quadruples,
                                triplets.final_result, triplets.error)

    def analyze(self, source: str, filename: Optional[str] = None) -> Analysis:
        """
        Run every pipeline over a source text.

        Args:
            source: hsloop source code string
            filename: Optional filename for the summary

        Returns:
            Analysis with the output of each stage
        """
        tokens = self.tokenize(source)
        analysis = Analysis(
            source=source,
            tokens=tokens,
            lexical_errors=self.lexical_errors(tokens),
            parse_result=self.parse(tokens),
            validation=analyze_cycles(tokens, debug=self.debug),
            optimization=self.optimize(source),
            filename=filename,
        )
        if self.debug:
            print(analysis.summary())
        return analysis

    def analyze_file(self, path: str) -> Analysis:
        """
        Analyze an hsloop source file.

        Args:
            path: Path to the source file
        """
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
        return self.analyze(source, filename=path)

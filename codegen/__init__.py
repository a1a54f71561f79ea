"""
hsloop Code Generation Package

Source-level optimizer and arithmetic expression converter.
"""

from .tac import Triplet, Quadruple, ConversionResult
from .converter import (
    ExpressionConverter,
    convert_to_prefix,
    convert_to_triplets,
    convert_to_quadruples,
    convert_infix_string_to_prefix,
)
from .optimizer import CodeOptimizer, OptimizationResult, optimize

__all__ = [
    "Triplet",
    "Quadruple",
    "ConversionResult",
    "ExpressionConverter",
    "convert_to_prefix",
    "convert_to_triplets",
    "convert_to_quadruples",
    "convert_infix_string_to_prefix",
    "CodeOptimizer",
    "OptimizationResult",
    "optimize",
]

"""
hsloop Python API

Provides the Python interface for analyzing and optimizing hsloop code.
"""

from .session import Session, Analysis

__all__ = [
    'Session',
    'Analysis',
]

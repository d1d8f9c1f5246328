"""
Closure Engine - irreversible majority-failure closure of projects.
"""

from src.engines.closure.closure_rule import ClosureDecision, ClosureRule

__all__ = [
    "ClosureDecision",
    "ClosureRule",
]

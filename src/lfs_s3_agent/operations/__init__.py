"""
Operations package - CLI support layer.

Centralizes exit-code mapping and human-readable output so CLI commands stay
thin and testable.
"""
from .mappers import exit_code_for, run_and_exit

__all__ = ["exit_code_for", "run_and_exit"]

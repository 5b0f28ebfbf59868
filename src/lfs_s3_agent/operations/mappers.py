"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import logging
import typer
from typing import Callable, TypeVar

T = TypeVar('T')

logger = logging.getLogger(__name__)

# Exit codes for the agent process
EXIT_CODES = {
    "ProtocolError": 1,
    "ValueError": 2,  # configuration errors from Settings
}

FALLBACK_EXIT_CODE = 3


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns:
    - 0: Success
    - 1: Protocol framing error on stdin (ProtocolError)
    - 2: Invalid configuration (ValueError)
    - 3: Any other unexpected error

    Args:
        exc: Exception to map

    Returns:
        Exit code (3 as fallback for unknown exceptions)
    """
    return EXIT_CODES.get(type(exc).__name__, FALLBACK_EXIT_CODE)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, logging the error on stderr first.

    Args:
        func: Function to execute

    Returns:
        Function result if successful

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except typer.Exit:
        raise
    except Exception as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise typer.Exit(code=exit_code_for(e)) from e

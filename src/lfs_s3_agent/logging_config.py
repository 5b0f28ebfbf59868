"""
Logging configuration for the agent process.

Standard output carries the transfer protocol, so every log record goes to
standard error through a Rich handler. Verbose mode lowers the level to
DEBUG and lets the AWS SDK loggers through.
"""
from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["configure_logging"]

_SDK_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")


def configure_logging(verbose: bool = False) -> None:
    """Install a stderr Rich handler on the root logger."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    sdk_level = logging.DEBUG if verbose else logging.WARNING
    for name in _SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)

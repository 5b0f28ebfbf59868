"""
LFS S3 Agent CLI

Git LFS launches the agent with no arguments, which runs the transfer
protocol on stdin/stdout. Additional verbs inspect the local cache:
- run: Run the transfer protocol loop (the default)
- where: Show the cache path an object resolves to
- verify: Re-hash cached objects and report inconsistencies
"""
from __future__ import annotations

import sys
from typing import Optional

import typer

from .agent import Agent
from .cli_context import CLIContext
from .logging_config import configure_logging
from .operations import run_and_exit
from .operations.cache_check import verify_cache
from .operations.printers import print_cache_path, print_verify_summary

app = typer.Typer(name="lfs-s3-agent", help="Git LFS custom transfer agent for S3-compatible storage")


def _run_agent(verbose: bool = False) -> None:
    def _run() -> None:
        context = CLIContext.from_env()
        configure_logging(verbose or context.settings.verbose)
        agent = Agent(settings=context.settings, store=context.store, cache=context.cache)
        agent.run(sys.stdin, sys.stdout)

    run_and_exit(_run)


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context) -> None:
    """Run the transfer agent when no command is given."""
    if ctx.invoked_subcommand is None:
        _run_agent()


@app.command()
def run(
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging on stderr")
) -> None:
    """Run the Git LFS custom transfer protocol on stdin/stdout."""
    _run_agent(verbose=verbose)


@app.command()
def where(
    oid: str = typer.Argument(..., help="Object identifier (SHA-256)"),
    name: Optional[str] = typer.Option(None, "--name", help="Cache file name (defaults to the oid)"),
) -> None:
    """Show the cache path an object resolves to."""

    def _where() -> None:
        context = CLIContext.from_env()
        configure_logging(context.settings.verbose)
        cache = context.cache
        path = cache.path_for(oid, name)
        print_cache_path(oid, path, path.is_file())

    run_and_exit(_where)


@app.command()
def verify(
    purge_staging: bool = typer.Option(False, "--purge-staging", help="Delete leftover staging files"),
    verbose: bool = typer.Option(False, "--verbose", help="List every entry, not only bad ones"),
) -> None:
    """Re-hash cached objects and report inconsistencies."""

    def _verify() -> None:
        context = CLIContext.from_env()
        configure_logging(context.settings.verbose)
        cache = context.cache
        purged = cache.purge_staging() if purge_staging else 0
        reports = verify_cache(cache)
        print_verify_summary(reports, purged=purged, verbose=verbose)
        if any(not r.ok for r in reports):
            raise typer.Exit(code=4)

    run_and_exit(_verify)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
